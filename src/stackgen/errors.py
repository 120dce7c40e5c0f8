"""
Error types raised by the generation pipelines.

Every error carries a ``category`` so callers can tell caller-fixable
configuration problems apart from environmental failures:

- ``collaborator``: no active session, project or stores unreadable
- ``validation``: a required secret is not configured
- ``override``: an override document failed to parse
- ``persistence``: directory creation or file write failed
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional, Union


class GenerationError(Exception):
    """Base class for all generation failures."""

    category: str = "generation"

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.message = message
        self.cause = cause
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.cause is not None:
            return f"{self.category}: {self.message}: {self.cause}"
        return f"{self.category}: {self.message}"


class CollaboratorUnavailableError(GenerationError):
    """A collaborator (project, session, manifest or env store) is unavailable."""

    category = "collaborator"


class SecretValidationError(GenerationError):
    """Required secrets are missing from the configured secret set."""

    category = "validation"

    def __init__(self, missing: Iterable[str]):
        self.missing: List[str] = sorted(set(missing))
        super().__init__(
            f"required secrets not configured: {', '.join(self.missing)}. "
            "Set them using: stackgen secrets set <name> <value>"
        )


class OverrideParseError(GenerationError):
    """An override document exists but could not be parsed."""

    category = "override"

    def __init__(self, path: Union[str, Path], cause: Optional[BaseException] = None):
        self.path = Path(path)
        super().__init__(f"failed to parse override file {self.path}", cause)


class PersistenceError(GenerationError):
    """Writing a generated artifact to disk failed."""

    category = "persistence"


class ManifestLoadError(GenerationError):
    """A manifest file could not be read or does not match the schema."""

    category = "collaborator"

    def __init__(self, path: Union[str, Path], cause: Optional[BaseException] = None):
        self.path = Path(path)
        super().__init__(f"failed to load manifest {self.path}", cause)


class SecretNotConfiguredError(KeyError):
    """Raised by secret stores when a name has no configured value."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"secret '{name}' is not configured")

    def __str__(self) -> str:
        return self.args[0]
