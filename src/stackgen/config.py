"""
stackgen settings.

Values are resolved from constructor arguments first, then STACKGEN_*
environment variables, then a .env file in the working directory, then the
defaults below. Every path stackgen reads or writes derives from
``project_dir``.

Example:
    from stackgen.config import get_config

    config = get_config()
    print(config.output_path)  # <project_dir>/.devcontainer

    # Override at runtime
    config = get_config(project_dir="/path/to/project")
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StackGenConfig(BaseSettings):
    """
    Central configuration for stackgen.

    All settings can be overridden via environment variables
    prefixed with STACKGEN_.

    Example:
        export STACKGEN_PROJECT_DIR=/workspaces/my-app
        export STACKGEN_LOG_LEVEL=debug
    """

    model_config = SettingsConfigDict(
        env_prefix="STACKGEN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Project layout
    project_dir: str = Field(
        default=".",
        description="Project root; all state and output paths are relative to it",
    )
    state_dir_name: str = Field(
        default=".stackgen",
        description="Directory holding project, session, secret and override state",
    )
    output_dir_name: str = Field(
        default=".devcontainer",
        description="Directory the generated artifacts are written to",
    )

    # Artifact defaults
    compose_version: str = Field(
        default="3.8",
        description="Version tag written to the generated docker-compose file",
    )
    workspace_service: str = Field(
        default="workspace",
        description="Name of the primary workspace service",
    )

    # Secret reference notation
    secrets_mount_prefix: str = Field(
        default="/run/secrets/",
        description="Path prefix that marks a value as a file-mounted secret reference",
    )
    secrets_label: str = Field(
        default="stackgen.secrets",
        description="Service label listing secrets explicitly (comma-separated)",
    )

    # Logging
    log_level: Literal["debug", "info", "warning", "error"] = Field(
        default="info",
        description="Logging level for stackgen",
    )
    log_format: Literal["json", "text"] = Field(
        default="text",
        description="Log output format (json for log shippers, text for console)",
    )

    @field_validator("project_dir")
    @classmethod
    def expand_path(cls, v: str) -> str:
        """Expand ~ and environment variables in paths."""
        return os.path.expanduser(os.path.expandvars(v))

    @field_validator("secrets_mount_prefix")
    @classmethod
    def ensure_trailing_slash(cls, v: str) -> str:
        """The mount prefix is matched verbatim, so it must end in a separator."""
        return v if v.endswith("/") else v + "/"

    @property
    def project_path(self) -> Path:
        return Path(self.project_dir)

    @property
    def state_path(self) -> Path:
        """Get the state directory (``<project>/.stackgen``)."""
        return self.project_path / self.state_dir_name

    @property
    def output_path(self) -> Path:
        """Get the artifact output directory (``<project>/.devcontainer``)."""
        return self.project_path / self.output_dir_name

    def get_session_path(self, session: str) -> Path:
        """Get the directory of a named session."""
        return self.state_path / "sessions" / session

    def get_project_config_path(self) -> Path:
        """Get the project-level override directory."""
        return self.state_path / "config"

    def get_session_config_path(self, session: Optional[str]) -> Optional[Path]:
        """Get the session-level override directory, if a session is known."""
        if not session:
            return None
        return self.get_session_path(session) / "config"


# Process-wide settings, built lazily
_config: Optional[StackGenConfig] = None


def get_config(**overrides) -> StackGenConfig:
    """
    Return the process-wide settings.

    The first call builds them; passing overrides rebuilds them (the CLI
    does this with --project-dir and --log-level).
    """
    global _config

    if overrides or _config is None:
        _config = StackGenConfig(**overrides)

    return _config


def reset_config() -> None:
    """Reset the global configuration (for testing)."""
    global _config
    _config = None
