"""
File-based collaborator stores.

Stores project state as YAML files under the project's state directory.

Data layout:
    <project>/.stackgen/
    ├── project.yaml              # default_session, active_session
    ├── active_session            # name of the active session
    ├── secrets.yaml              # secrets: {name: base64(value)}
    ├── env.yaml                  # env: {KEY: value}
    └── sessions/
        └── <session>/
            ├── manifests/
            │   └── <name>.yaml
            └── config/           # session-level overrides

Secret values are base64-encoded, not encrypted.
"""

from __future__ import annotations

import base64
import binascii
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Set

import yaml

from stackgen.config import StackGenConfig, get_config
from stackgen.errors import CollaboratorUnavailableError, SecretNotConfiguredError
from stackgen.models.manifest import ManifestSet
from stackgen.models.manifest_loader import load_manifest_dir
from stackgen.storage.base import (
    DEFAULT_SESSION_NAME,
    ProjectInfo,
    SessionInfo,
    StorageType,
    Stores,
    register_backend,
)
from stackgen.utils.fileops import atomic_write, write_yaml

logger = logging.getLogger(__name__)

SECRETS_FILE_VERSION = "1.0"
ENV_FILE_VERSION = "1.0"


def _read_yaml_mapping(path: Path) -> Dict[str, Any]:
    """Read a YAML mapping; a missing or empty file is an empty mapping."""
    if not path.exists():
        return {}
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise CollaboratorUnavailableError(f"failed to read {path}", e) from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise CollaboratorUnavailableError(f"{path} must contain a mapping")
    return data


class FileProjectStore:
    """Project and session bookkeeping backed by the state directory."""

    def __init__(self, settings: Optional[StackGenConfig] = None):
        self.settings = settings or get_config()
        self.state_dir = self.settings.state_path

    @property
    def project_file(self) -> Path:
        return self.state_dir / "project.yaml"

    @property
    def active_session_file(self) -> Path:
        return self.state_dir / "active_session"

    def is_project(self) -> bool:
        return self.project_file.exists()

    def init_project(self, session_name: str = DEFAULT_SESSION_NAME) -> ProjectInfo:
        """Create the project file and its first session, and activate it."""
        if self.is_project():
            raise CollaboratorUnavailableError(f"project already initialized at {self.state_dir}")

        project = ProjectInfo(
            path=self.settings.project_path,
            default_session=session_name,
            active_session=session_name,
        )
        self.create_session(session_name)
        write_yaml(self.project_file, project.to_dict())
        atomic_write(self.active_session_file, session_name)
        logger.info("Initialized project at %s with session %s", self.state_dir, session_name)
        return project

    def get_project(self) -> ProjectInfo:
        if not self.is_project():
            raise CollaboratorUnavailableError(
                f"not a stackgen project: {self.project_file} not found"
            )
        return ProjectInfo.from_dict(self.settings.project_path, _read_yaml_mapping(self.project_file))

    def get_session(self, name: str) -> SessionInfo:
        path = self.settings.get_session_path(name)
        if not path.is_dir():
            raise CollaboratorUnavailableError(f"session '{name}' does not exist")
        return SessionInfo(name=name, path=path)

    def create_session(self, name: str) -> SessionInfo:
        if not name:
            raise ValueError("session name cannot be empty")
        path = self.settings.get_session_path(name)
        (path / "manifests").mkdir(parents=True, exist_ok=True)
        (path / "config").mkdir(parents=True, exist_ok=True)
        return SessionInfo(name=name, path=path)

    def get_active_session(self) -> Optional[SessionInfo]:
        """
        Return the active session.

        The ``active_session`` file wins; ``project.yaml`` is consulted when
        the file is absent or empty.
        """
        name = ""
        if self.active_session_file.exists():
            try:
                name = self.active_session_file.read_text(encoding="utf-8").strip()
            except OSError as e:
                raise CollaboratorUnavailableError("failed to read active session", e) from e

        if not name and self.is_project():
            name = self.get_project().active_session or ""

        if not name:
            return None
        return self.get_session(name)

    def set_active_session(self, name: str) -> None:
        if not name:
            raise ValueError("session name cannot be empty")
        self.get_session(name)

        atomic_write(self.active_session_file, name)
        if self.is_project():
            project = self.get_project()
            project.active_session = name
            write_yaml(self.project_file, project.to_dict())
        logger.info("Activated session %s", name)

    def list_manifests(self, session: SessionInfo) -> ManifestSet:
        if session.manifests_dir is None:
            return {}
        return load_manifest_dir(session.manifests_dir)


class FileSecretStore:
    """Secret values in ``secrets.yaml``, base64-encoded."""

    def __init__(self, settings: Optional[StackGenConfig] = None):
        self.settings = settings or get_config()
        self.secrets_file = self.settings.state_path / "secrets.yaml"

    def _load(self) -> Dict[str, str]:
        data = _read_yaml_mapping(self.secrets_file)
        encoded = data.get("secrets") or {}
        if not isinstance(encoded, dict):
            raise CollaboratorUnavailableError(f"{self.secrets_file}: 'secrets' must be a mapping")

        decoded: Dict[str, str] = {}
        for name, value in encoded.items():
            value = "" if value is None else str(value)
            try:
                decoded[str(name)] = base64.b64decode(value, validate=True).decode("utf-8")
            except (binascii.Error, UnicodeDecodeError):
                # Plain text from hand-edited files
                decoded[str(name)] = value
        return decoded

    def _save(self, secrets: Dict[str, str]) -> None:
        encoded = {
            name: base64.b64encode(value.encode("utf-8")).decode("ascii")
            for name, value in sorted(secrets.items())
        }
        write_yaml(self.secrets_file, {"version": SECRETS_FILE_VERSION, "secrets": encoded})

    def configured_secrets(self) -> Set[str]:
        return set(self._load())

    def is_configured(self, name: str) -> bool:
        return name in self._load()

    def resolve(self, name: str) -> str:
        secrets = self._load()
        if name not in secrets:
            raise SecretNotConfiguredError(name)
        return secrets[name]

    def set_secret(self, name: str, value: str) -> None:
        if not name:
            raise ValueError("secret name cannot be empty")
        secrets = self._load()
        secrets[name] = value
        self._save(secrets)
        logger.debug("Stored secret %s", name)

    def delete_secret(self, name: str) -> None:
        secrets = self._load()
        if name not in secrets:
            raise SecretNotConfiguredError(name)
        del secrets[name]
        self._save(secrets)


class FileEnvironmentStore:
    """Project environment variables in ``env.yaml``."""

    def __init__(self, settings: Optional[StackGenConfig] = None):
        self.settings = settings or get_config()
        self.env_file = self.settings.state_path / "env.yaml"

    def get_environment(self) -> Dict[str, str]:
        env = _read_yaml_mapping(self.env_file).get("env") or {}
        if not isinstance(env, dict):
            raise CollaboratorUnavailableError(f"{self.env_file}: 'env' must be a mapping")
        return {str(k): "" if v is None else str(v) for k, v in env.items()}

    def set_variable(self, key: str, value: str) -> None:
        if not key:
            raise ValueError("variable name cannot be empty")
        env = self.get_environment()
        env[key] = value
        write_yaml(self.env_file, {"version": ENV_FILE_VERSION, "env": env})

    def delete_variable(self, key: str) -> None:
        env = self.get_environment()
        if env.pop(key, None) is None:
            raise KeyError(key)
        write_yaml(self.env_file, {"version": ENV_FILE_VERSION, "env": env})


@register_backend(StorageType.FILE)
def file_stores(settings: Optional[StackGenConfig] = None) -> Stores:
    settings = settings or get_config()
    return Stores(
        projects=FileProjectStore(settings),
        secrets=FileSecretStore(settings),
        environment=FileEnvironmentStore(settings),
    )
