"""
Override document models.

Overrides are partial documents the user writes to add, replace or extend
generated fields. Known top-level keys are typed; anything else is kept
opaque (``extra="allow"``) and passed through to the artifact untouched.

- ``DockerComposeOverride``: read from ``docker-compose.yml`` (YAML)
- ``DevcontainerOverride``: read from ``devcontainer.json`` (JSON)
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from stackgen.models.manifest import scalar_to_str


class ArtifactType(str, Enum):
    """The two generated artifacts and their on-disk file names."""

    DEVCONTAINER = "devcontainer"
    DOCKER_COMPOSE = "docker-compose"

    @property
    def file_name(self) -> str:
        if self is ArtifactType.DEVCONTAINER:
            return "devcontainer.json"
        return "docker-compose.yml"


class OverrideLevel(str, Enum):
    """Where an override document lives. Session wins over project."""

    PROJECT = "project"
    SESSION = "session"


def _normalize_key_values(v: Any) -> Dict[str, str]:
    """Accept map form or ``KEY=VALUE`` list form; always return a map."""
    if v is None:
        return {}
    if isinstance(v, dict):
        return {str(k): "" if val is None else scalar_to_str(val) for k, val in v.items()}
    if isinstance(v, list):
        result: Dict[str, str] = {}
        for item in v:
            key, _, value = str(item).partition("=")
            result[key] = value
        return result
    raise ValueError(f"expected a mapping or a list of KEY=VALUE strings, got {type(v).__name__}")


class ServiceOverride(BaseModel):
    """Service-level override; unknown compose keys are carried as extras."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    image: str = ""
    environment: Dict[str, str] = Field(default_factory=dict)
    ports: List[str] = Field(default_factory=list)
    volumes: List[str] = Field(default_factory=list)
    command: Optional[Union[List[str], str]] = None
    depends_on: Optional[List[str]] = None
    networks: Optional[List[str]] = None
    labels: Dict[str, str] = Field(default_factory=dict)

    @field_validator("environment", "labels", mode="before")
    @classmethod
    def normalize_key_values(cls, v: Any) -> Dict[str, str]:
        return _normalize_key_values(v)

    @field_validator("ports", "volumes", mode="before")
    @classmethod
    def coerce_string_list(cls, v: Any) -> List[str]:
        if v is None:
            return []
        if not isinstance(v, (list, tuple)):
            raise ValueError(f"expected a list, got {type(v).__name__}")
        return [scalar_to_str(item) for item in v]

    @property
    def extra(self) -> Dict[str, Any]:
        return dict(self.model_extra or {})

    def to_config(self) -> Dict[str, Any]:
        """Render as a generic compose service map, omitting unset fields."""
        config: Dict[str, Any] = {}
        if self.image:
            config["image"] = self.image
        if self.environment:
            config["environment"] = [f"{k}={v}" for k, v in self.environment.items()]
        if self.ports:
            config["ports"] = list(self.ports)
        if self.volumes:
            config["volumes"] = list(self.volumes)
        if self.command:
            config["command"] = self.command
        if self.depends_on:
            config["depends_on"] = list(self.depends_on)
        if self.networks:
            config["networks"] = list(self.networks)
        if self.labels:
            config["labels"] = dict(self.labels)
        config.update(self.extra)
        return config


class DockerComposeOverride(BaseModel):
    """Partial docker-compose document."""

    model_config = ConfigDict(extra="allow")

    version: str = ""
    services: Dict[str, ServiceOverride] = Field(default_factory=dict)
    networks: Dict[str, Any] = Field(default_factory=dict)
    volumes: Dict[str, Any] = Field(default_factory=dict)
    secrets: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("version", mode="before")
    @classmethod
    def coerce_version(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("services", "networks", "volumes", "secrets", mode="before")
    @classmethod
    def none_is_empty(cls, v: Any) -> Any:
        return {} if v is None else v

    @field_validator("services", mode="before")
    @classmethod
    def empty_service_bodies(cls, v: Any) -> Any:
        # "cache:" with no body parses as None
        if isinstance(v, dict):
            return {name: body if body is not None else {} for name, body in v.items()}
        return v

    @property
    def extra(self) -> Dict[str, Any]:
        return dict(self.model_extra or {})

    def is_empty(self) -> bool:
        return not (
            self.version or self.services or self.networks
            or self.volumes or self.secrets or self.extra
        )

    def to_config(self) -> Dict[str, Any]:
        """Render as a generic map suitable for merging onto an artifact."""
        config: Dict[str, Any] = {}
        if self.version:
            config["version"] = self.version
        if self.services:
            config["services"] = {name: svc.to_config() for name, svc in self.services.items()}
        if self.networks:
            config["networks"] = dict(self.networks)
        if self.volumes:
            config["volumes"] = dict(self.volumes)
        if self.secrets:
            config["secrets"] = dict(self.secrets)
        config.update(self.extra)
        return config


class DevcontainerOverride(BaseModel):
    """Partial devcontainer document. Field names follow devcontainer.json."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: str = ""
    image: str = ""
    features: Dict[str, Any] = Field(default_factory=dict)
    customizations: Dict[str, Any] = Field(default_factory=dict)
    forward_ports: List[Union[int, str]] = Field(default_factory=list, alias="forwardPorts")
    post_create_command: str = Field("", alias="postCreateCommand")
    post_start_command: str = Field("", alias="postStartCommand")
    remote_user: str = Field("", alias="remoteUser")
    workspace_folder: str = Field("", alias="workspaceFolder")
    mounts: List[str] = Field(default_factory=list)

    @field_validator("features", "customizations", mode="before")
    @classmethod
    def none_is_empty(cls, v: Any) -> Any:
        return {} if v is None else v

    @property
    def extra(self) -> Dict[str, Any]:
        return dict(self.model_extra or {})

    def is_empty(self) -> bool:
        return not self.to_config()

    def to_config(self) -> Dict[str, Any]:
        """Render as a generic devcontainer map, omitting unset fields."""
        config: Dict[str, Any] = {}
        if self.name:
            config["name"] = self.name
        if self.image:
            config["image"] = self.image
        if self.remote_user:
            config["remoteUser"] = self.remote_user
        if self.workspace_folder:
            config["workspaceFolder"] = self.workspace_folder
        if self.post_create_command:
            config["postCreateCommand"] = self.post_create_command
        if self.post_start_command:
            config["postStartCommand"] = self.post_start_command
        if self.forward_ports:
            config["forwardPorts"] = list(self.forward_ports)
        if self.mounts:
            config["mounts"] = list(self.mounts)
        if self.features:
            config["features"] = dict(self.features)
        if self.customizations:
            config["customizations"] = dict(self.customizations)
        config.update(self.extra)
        return config
