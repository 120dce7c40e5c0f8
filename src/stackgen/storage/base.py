"""
Collaborator interfaces and backend factory.

Generation consults three narrow collaborators:

- ``ProjectStore``: project metadata, the active session and its manifests
- ``SecretStore``: which secrets are configured (values are rarely needed)
- ``EnvironmentStore``: project-wide environment variables

Backends implement all three. ``get_stores`` builds a matching set.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Protocol, Set, runtime_checkable

from stackgen.models.manifest import ManifestSet

logger = logging.getLogger(__name__)

DEFAULT_SESSION_NAME = "default"


class StorageType(str, Enum):
    """Available storage backend types."""
    FILE = "file"
    MEMORY = "memory"


@dataclass
class ProjectInfo:
    """Project metadata as recorded in ``project.yaml``."""
    path: Path
    default_session: str = DEFAULT_SESSION_NAME
    active_session: Optional[str] = None
    required_secrets: List[Dict[str, str]] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.path.resolve().name

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"default_session": self.default_session}
        if self.active_session:
            data["active_session"] = self.active_session
        if self.required_secrets:
            data["required_secrets"] = list(self.required_secrets)
        return data

    @classmethod
    def from_dict(cls, path: Path, data: Dict[str, Any]) -> "ProjectInfo":
        return cls(
            path=path,
            default_session=data.get("default_session") or DEFAULT_SESSION_NAME,
            active_session=data.get("active_session") or None,
            required_secrets=list(data.get("required_secrets") or []),
        )


@dataclass
class SessionInfo:
    """A named set of installed manifests."""
    name: str
    path: Optional[Path] = None

    @property
    def manifests_dir(self) -> Optional[Path]:
        return self.path / "manifests" if self.path else None

    @property
    def config_dir(self) -> Optional[Path]:
        return self.path / "config" if self.path else None


@runtime_checkable
class ProjectStore(Protocol):
    """Project and session bookkeeping."""

    def get_project(self) -> ProjectInfo:
        """Return the project, raising ``CollaboratorUnavailableError`` if there is none."""
        ...

    def get_active_session(self) -> Optional[SessionInfo]:
        """Return the active session, or None if no session is active."""
        ...

    def set_active_session(self, name: str) -> None:
        """Mark a session as active."""
        ...

    def list_manifests(self, session: SessionInfo) -> ManifestSet:
        """Return the manifests installed in a session, keyed by name."""
        ...


@runtime_checkable
class SecretStore(Protocol):
    """Configured secret set."""

    def configured_secrets(self) -> Set[str]:
        """Names of every configured secret."""
        ...

    def is_configured(self, name: str) -> bool:
        ...

    def resolve(self, name: str) -> str:
        """Return a secret's value, raising ``SecretNotConfiguredError`` if unset."""
        ...

    def set_secret(self, name: str, value: str) -> None:
        ...


@runtime_checkable
class EnvironmentStore(Protocol):
    """Project-wide environment variables."""

    def get_environment(self) -> Dict[str, str]:
        ...

    def set_variable(self, key: str, value: str) -> None:
        ...


@dataclass
class Stores:
    """A matching set of collaborators from one backend."""
    projects: ProjectStore
    secrets: SecretStore
    environment: EnvironmentStore


# Storage backend registry
_BACKENDS: Dict[StorageType, Callable[..., Stores]] = {}


def register_backend(storage_type: StorageType):
    """Decorator to register a backend factory."""
    def decorator(factory: Callable[..., Stores]) -> Callable[..., Stores]:
        _BACKENDS[storage_type] = factory
        return factory
    return decorator


def get_stores(storage_type: StorageType = StorageType.FILE, **kwargs: Any) -> Stores:
    """
    Get a set of collaborator stores.

    Args:
        storage_type: Backend to use
        **kwargs: Backend-specific options (``settings`` for the file backend)

    Returns:
        Stores instance
    """
    # Import backends to register them
    from stackgen.storage import file, memory  # noqa: F401

    if storage_type not in _BACKENDS:
        raise ValueError(f"Unknown storage type: {storage_type}")

    logger.debug("Using %s storage backend", StorageType(storage_type).value)
    return _BACKENDS[storage_type](**kwargs)
