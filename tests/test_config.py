"""Tests for StackGenConfig and the config singleton."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from stackgen.config import StackGenConfig, get_config, reset_config


def test_defaults():
    config = StackGenConfig()
    assert config.project_dir == "."
    assert config.state_dir_name == ".stackgen"
    assert config.output_dir_name == ".devcontainer"
    assert config.compose_version == "3.8"
    assert config.workspace_service == "workspace"
    assert config.secrets_mount_prefix == "/run/secrets/"
    assert config.log_level == "info"


def test_paths(tmp_path):
    config = StackGenConfig(project_dir=str(tmp_path))
    assert config.state_path == tmp_path / ".stackgen"
    assert config.output_path == tmp_path / ".devcontainer"
    assert config.get_session_path("dev") == tmp_path / ".stackgen" / "sessions" / "dev"
    assert config.get_project_config_path() == tmp_path / ".stackgen" / "config"
    assert config.get_session_config_path("dev") == tmp_path / ".stackgen" / "sessions" / "dev" / "config"
    assert config.get_session_config_path(None) is None


def test_environment_variables(monkeypatch, tmp_path):
    monkeypatch.setenv("STACKGEN_PROJECT_DIR", str(tmp_path))
    monkeypatch.setenv("STACKGEN_COMPOSE_VERSION", "3.9")
    monkeypatch.setenv("STACKGEN_LOG_LEVEL", "debug")

    config = StackGenConfig()

    assert config.project_path == tmp_path
    assert config.compose_version == "3.9"
    assert config.log_level == "debug"


def test_home_expanded(monkeypatch, tmp_path):
    monkeypatch.setenv("HOME", str(tmp_path))
    config = StackGenConfig(project_dir="~/app")
    assert config.project_path == Path(str(tmp_path)) / "app"


def test_mount_prefix_gets_trailing_slash():
    assert StackGenConfig(secrets_mount_prefix="/var/secrets").secrets_mount_prefix == "/var/secrets/"


def test_invalid_log_level():
    with pytest.raises(ValidationError):
        StackGenConfig(log_level="verbose")


def test_singleton():
    first = get_config()
    assert get_config() is first

    overridden = get_config(compose_version="3.9")
    assert overridden is not first
    assert get_config() is overridden

    reset_config()
    assert get_config() is not overridden
