"""
Collaborator stores for stackgen.

Provides the project, secret and environment stores generation reads from:
- File backend (the ``.stackgen`` state directory)
- Memory backend (tests and programmatic use)

Example:
    from stackgen.storage import get_stores, StorageType

    stores = get_stores()                      # file backend, global config
    stores = get_stores(StorageType.MEMORY)    # empty in-memory stores

    session = stores.projects.get_active_session()
    manifests = stores.projects.list_manifests(session)
"""

from stackgen.storage.base import (
    DEFAULT_SESSION_NAME,
    EnvironmentStore,
    ProjectInfo,
    ProjectStore,
    SecretStore,
    SessionInfo,
    StorageType,
    Stores,
    get_stores,
)
from stackgen.storage.file import FileEnvironmentStore, FileProjectStore, FileSecretStore
from stackgen.storage.memory import MemoryEnvironmentStore, MemoryProjectStore, MemorySecretStore

__all__ = [
    "DEFAULT_SESSION_NAME",
    "EnvironmentStore",
    "ProjectInfo",
    "ProjectStore",
    "SecretStore",
    "SessionInfo",
    "StorageType",
    "Stores",
    "get_stores",
    "FileEnvironmentStore",
    "FileProjectStore",
    "FileSecretStore",
    "MemoryEnvironmentStore",
    "MemoryProjectStore",
    "MemorySecretStore",
]
