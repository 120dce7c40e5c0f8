"""
Override Store: project- and session-level override documents.

Data layout:
    <project>/.stackgen/config/
    ├── docker-compose.yml        # project-level compose override
    └── devcontainer.json         # project-level devcontainer override
    <project>/.stackgen/sessions/<session>/config/
    ├── docker-compose.yml        # session-level compose override
    └── devcontainer.json         # session-level devcontainer override

Precedence is session > project > generated base. A missing file at either
level is an empty document, never an error. A file that exists but cannot
be parsed raises ``OverrideParseError`` naming the file.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import ValidationError

from stackgen.errors import OverrideParseError
from stackgen.models.overrides import (
    ArtifactType,
    DevcontainerOverride,
    DockerComposeOverride,
    OverrideLevel,
)
from stackgen.overrides.merge import merge_devcontainer, merge_docker_compose
from stackgen.utils.fileops import dump_json, dump_yaml, atomic_write

logger = logging.getLogger(__name__)

OverrideDocument = Union[DockerComposeOverride, DevcontainerOverride]


class OverrideStore:
    """
    Loads and merges override documents for both artifact types.

    Args:
        project_config_dir: Directory holding project-level overrides
        session_config_dir: Directory holding session-level overrides, or
            None when no session is known
    """

    def __init__(
        self,
        project_config_dir: Optional[Union[str, Path]],
        session_config_dir: Optional[Union[str, Path]] = None,
    ):
        self.project_config_dir = Path(project_config_dir) if project_config_dir else None
        self.session_config_dir = Path(session_config_dir) if session_config_dir else None

    def _level_dir(self, level: OverrideLevel) -> Optional[Path]:
        if level is OverrideLevel.PROJECT:
            return self.project_config_dir
        return self.session_config_dir

    def override_path(self, level: Union[str, OverrideLevel], artifact_type: ArtifactType) -> Optional[Path]:
        """Path of the override document for a level, or None if the level has no directory."""
        directory = self._level_dir(OverrideLevel(level))
        if directory is None:
            return None
        return directory / ArtifactType(artifact_type).file_name

    # Loading

    def load_docker_compose_override(self, path: Union[str, Path]) -> DockerComposeOverride:
        """Load one compose override document; missing file is empty."""
        raw = self._read_document(Path(path), parser="yaml")
        try:
            return DockerComposeOverride.model_validate(raw)
        except ValidationError as e:
            raise OverrideParseError(path, e) from e

    def load_devcontainer_override(self, path: Union[str, Path]) -> DevcontainerOverride:
        """Load one devcontainer override document; missing file is empty."""
        raw = self._read_document(Path(path), parser="json")
        try:
            return DevcontainerOverride.model_validate(raw)
        except ValidationError as e:
            raise OverrideParseError(path, e) from e

    def _read_document(self, path: Path, parser: str) -> Dict[str, Any]:
        if not path.exists():
            return {}

        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise OverrideParseError(path, e) from e

        if not text.strip():
            return {}

        try:
            raw = json.loads(text) if parser == "json" else yaml.safe_load(text)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise OverrideParseError(path, e) from e

        if raw is None:
            return {}
        if not isinstance(raw, dict):
            raise OverrideParseError(
                path, TypeError(f"expected a mapping at the root, got {type(raw).__name__}")
            )
        logger.debug("Loaded override document %s", path)
        return raw

    # Merged views

    def get_docker_compose_overrides(self) -> DockerComposeOverride:
        """Project override with the session override merged on top."""
        merged: Dict[str, Any] = {}
        for level in (OverrideLevel.PROJECT, OverrideLevel.SESSION):
            path = self.override_path(level, ArtifactType.DOCKER_COMPOSE)
            if path is None:
                continue
            document = self.load_docker_compose_override(path)
            merged = merge_docker_compose(merged, document.to_config())
        return DockerComposeOverride.model_validate(merged)

    def get_devcontainer_overrides(self) -> DevcontainerOverride:
        """Project override with the session override merged on top."""
        merged: Dict[str, Any] = {}
        for level in (OverrideLevel.PROJECT, OverrideLevel.SESSION):
            path = self.override_path(level, ArtifactType.DEVCONTAINER)
            if path is None:
                continue
            document = self.load_devcontainer_override(path)
            merged = merge_devcontainer(merged, document.to_config())
        return DevcontainerOverride.model_validate(merged)

    def get_overrides(self, artifact_type: Union[str, ArtifactType]) -> OverrideDocument:
        """Merged override document for an artifact type."""
        if ArtifactType(artifact_type) is ArtifactType.DEVCONTAINER:
            return self.get_devcontainer_overrides()
        return self.get_docker_compose_overrides()

    # Saving

    def save_override(self, level: Union[str, OverrideLevel], document: OverrideDocument) -> Path:
        """
        Write an override document to the project or session level.

        Raises:
            ValueError: If the level is unknown or has no directory
        """
        try:
            level = OverrideLevel(level)
        except ValueError:
            raise ValueError(
                f"invalid override level: {level} (must be 'project' or 'session')"
            ) from None

        if isinstance(document, DevcontainerOverride):
            artifact_type = ArtifactType.DEVCONTAINER
            content = dump_json(document.to_config())
        else:
            artifact_type = ArtifactType.DOCKER_COMPOSE
            content = dump_yaml(document.to_config())

        path = self.override_path(level, artifact_type)
        if path is None:
            raise ValueError(f"{level.value} override directory not set")

        atomic_write(path, content)
        logger.info("Saved %s override to %s", artifact_type.value, path)
        return path
