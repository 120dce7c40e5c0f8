"""
Pytest configuration and fixtures for stackgen tests.
"""

from __future__ import annotations

import os
import textwrap
from pathlib import Path
from typing import Callable, Generator

import pytest
import yaml

from stackgen.config import StackGenConfig, reset_config
from stackgen.models.manifest import ServiceManifest
from stackgen.models.manifest_loader import load_manifest_from_dict
from stackgen.storage import (
    FileProjectStore,
    MemoryEnvironmentStore,
    MemoryProjectStore,
    MemorySecretStore,
    Stores,
)


# ============================================================================
# Environment Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch) -> Generator[None, None, None]:
    """Drop STACKGEN_* variables and the config singleton around each test."""
    for key in list(os.environ):
        if key.startswith("STACKGEN_"):
            monkeypatch.delenv(key, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def settings(tmp_path: Path) -> StackGenConfig:
    """Config rooted at a temporary project directory."""
    return StackGenConfig(project_dir=str(tmp_path))


# ============================================================================
# Manifest Fixtures
# ============================================================================


ACME_MANIFEST = textwrap.dedent(
    """
    name: acme
    version: 1.2.0
    requirements:
      runtimes:
        - name: python
          version: "3.11"
    services:
      db:
        image: postgres:16
        ports:
          - "5432:5432"
        environment:
          POSTGRES_PASSWORD: "${db_password}"
          POSTGRES_DB: acme
        volumes:
          - pgdata:/var/lib/postgresql/data
      cache:
        image: redis:7
        ports:
          - "127.0.0.1:6380:6379"
    configuration_schema:
      secrets:
        db_password:
          description: Database password
          required: true
    """
)

WEB_MANIFEST = textwrap.dedent(
    """
    name: web
    requirements:
      runtimes:
        - name: node
          version: "20"
        - name: python
          version: "3.12"
    dependencies:
      services:
        app:
          image: node:20
          ports:
            - "3000"
            - "5432:5432"
          environment:
            API_KEY: /run/secrets/api_key
            ENV: production
    """
)


def manifest_from_yaml(text: str) -> ServiceManifest:
    return load_manifest_from_dict(yaml.safe_load(text))


@pytest.fixture
def acme_manifest_yaml() -> str:
    return ACME_MANIFEST


@pytest.fixture
def acme_manifest() -> ServiceManifest:
    return manifest_from_yaml(ACME_MANIFEST)


@pytest.fixture
def web_manifest() -> ServiceManifest:
    return manifest_from_yaml(WEB_MANIFEST)


@pytest.fixture
def manifests(acme_manifest, web_manifest):
    return {"acme": acme_manifest, "web": web_manifest}


# ============================================================================
# Store Fixtures
# ============================================================================


@pytest.fixture
def memory_stores(settings, acme_manifest) -> Stores:
    """In-memory stores with the acme manifest and its secret configured."""
    return Stores(
        projects=MemoryProjectStore(project_path=settings.project_path, manifests=[acme_manifest]),
        secrets=MemorySecretStore({"db_password": "hunter2"}),
        environment=MemoryEnvironmentStore(),
    )


@pytest.fixture
def file_project(settings) -> FileProjectStore:
    """An initialized on-disk project with an empty ``default`` session."""
    store = FileProjectStore(settings)
    store.init_project("default")
    return store


@pytest.fixture
def add_manifest(settings) -> Callable[..., Path]:
    """Write a manifest YAML into a session's manifest directory."""
    def _add(name: str, text: str, session: str = "default") -> Path:
        path = settings.get_session_path(session) / "manifests" / f"{name}.yaml"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path
    return _add


@pytest.fixture
def write_override(settings) -> Callable[..., Path]:
    """Write an override document at project level, or session level when a session is given."""
    def _write(file_name: str, text: str, session: str = None) -> Path:
        if session:
            directory = settings.get_session_config_path(session)
        else:
            directory = settings.get_project_config_path()
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / file_name
        path.write_text(textwrap.dedent(text), encoding="utf-8")
        return path
    return _write
