"""
In-memory collaborator stores.

Useful for tests and for driving generation from code without a state
directory. Nothing is persisted.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, Optional, Set

from stackgen.errors import CollaboratorUnavailableError, SecretNotConfiguredError
from stackgen.models.manifest import ManifestSet, ServiceManifest
from stackgen.storage.base import (
    DEFAULT_SESSION_NAME,
    ProjectInfo,
    SessionInfo,
    StorageType,
    Stores,
    register_backend,
)


class MemoryProjectStore:
    """Sessions and their manifests held in dictionaries."""

    def __init__(
        self,
        project_path: Optional[Path] = None,
        active_session: Optional[str] = DEFAULT_SESSION_NAME,
        manifests: Optional[Iterable[ServiceManifest]] = None,
    ):
        self.project = ProjectInfo(
            path=Path(project_path or "."),
            active_session=active_session,
        )
        self._sessions: Dict[str, ManifestSet] = {}
        if active_session:
            self._sessions[active_session] = {}
            for manifest in manifests or []:
                self.add_manifest(manifest, active_session)

    def add_manifest(self, manifest: ServiceManifest, session: Optional[str] = None) -> None:
        session = session or self.project.active_session or DEFAULT_SESSION_NAME
        self._sessions.setdefault(session, {})[manifest.name] = manifest

    def get_project(self) -> ProjectInfo:
        return self.project

    def get_active_session(self) -> Optional[SessionInfo]:
        name = self.project.active_session
        if not name:
            return None
        if name not in self._sessions:
            raise CollaboratorUnavailableError(f"session '{name}' does not exist")
        return SessionInfo(name=name)

    def set_active_session(self, name: str) -> None:
        if not name:
            raise ValueError("session name cannot be empty")
        self._sessions.setdefault(name, {})
        self.project.active_session = name

    def list_manifests(self, session: SessionInfo) -> ManifestSet:
        return dict(self._sessions.get(session.name, {}))


class MemorySecretStore:
    def __init__(self, secrets: Optional[Dict[str, str]] = None):
        self._secrets: Dict[str, str] = dict(secrets or {})

    def configured_secrets(self) -> Set[str]:
        return set(self._secrets)

    def is_configured(self, name: str) -> bool:
        return name in self._secrets

    def resolve(self, name: str) -> str:
        if name not in self._secrets:
            raise SecretNotConfiguredError(name)
        return self._secrets[name]

    def set_secret(self, name: str, value: str) -> None:
        self._secrets[name] = value


class MemoryEnvironmentStore:
    def __init__(self, env: Optional[Dict[str, str]] = None):
        self._env: Dict[str, str] = dict(env or {})

    def get_environment(self) -> Dict[str, str]:
        return dict(self._env)

    def set_variable(self, key: str, value: str) -> None:
        self._env[key] = value


@register_backend(StorageType.MEMORY)
def memory_stores(
    manifests: Optional[Iterable[ServiceManifest]] = None,
    secrets: Optional[Dict[str, str]] = None,
    env: Optional[Dict[str, str]] = None,
    project_path: Optional[Path] = None,
) -> Stores:
    return Stores(
        projects=MemoryProjectStore(project_path=project_path, manifests=manifests),
        secrets=MemorySecretStore(secrets),
        environment=MemoryEnvironmentStore(env),
    )
