"""
Service Manifest models.

A service manifest is the authored description of one installable unit:
identifying metadata, the runtimes it needs, the container-backed services it
depends on, and the secrets/config options it expects to be configured.

Example manifest (YAML):

    name: acme
    version: 1.2.0
    requirements:
      runtimes:
        - name: python
          version: "3.11"
    services:
      db:
        image: postgres:16
        ports: ["5432:5432"]
        environment:
          POSTGRES_PASSWORD: ${db_password}
        volumes: ["pgdata:/var/lib/postgresql/data"]
    configuration_schema:
      secrets:
        db_password:
          description: Database password
          required: true
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


def scalar_to_str(value: Any) -> str:
    """Render a typed YAML scalar the way it was written; booleans stay lowercase."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


# =============================================================================
# REQUIREMENTS
# =============================================================================


class RuntimeRequirement(BaseModel):
    """A runtime the manifest needs, at a minimum version."""

    name: str = Field(..., min_length=1, description="Runtime name (python, node, go, ...)")
    version: str = Field("", description="Minimum requested version")

    @field_validator("version", mode="before")
    @classmethod
    def coerce_version(cls, v: Any) -> str:
        """Versions are text; a float from a plain YAML load would turn ``3.10`` into ``3.1``."""
        if v is None:
            return ""
        return scalar_to_str(v)


class Requirements(BaseModel):
    runtimes: List[RuntimeRequirement] = Field(default_factory=list)


# =============================================================================
# SERVICES
# =============================================================================


class HealthCheck(BaseModel):
    """Container health check, copied into the compose service when present."""

    test: List[str] = Field(default_factory=list)
    interval: Optional[str] = None
    timeout: Optional[str] = None
    retries: Optional[int] = None


class ServiceDependency(BaseModel):
    """One container-backed component a manifest needs at runtime."""

    model_config = ConfigDict(extra="ignore")

    image: str = Field("", description="Container image reference")
    ports: List[str] = Field(
        default_factory=list,
        description="Port mappings: PORT, HOST:CONTAINER or IP:HOST:CONTAINER",
    )
    environment: Dict[str, str] = Field(
        default_factory=dict,
        description="Environment values; literal or secret references",
    )
    volumes: List[str] = Field(
        default_factory=list,
        description="Volume mounts; logical names are rehomed per service",
    )
    command: Optional[Union[List[str], str]] = Field(None, description="Command override")
    healthcheck: Optional[HealthCheck] = None

    @field_validator("ports", "volumes", mode="before")
    @classmethod
    def coerce_string_list(cls, v: Any) -> List[str]:
        if v is None:
            return []
        if not isinstance(v, (list, tuple)):
            raise ValueError(f"expected a list, got {type(v).__name__}")
        return [scalar_to_str(item) for item in v]

    @field_validator("environment", mode="before")
    @classmethod
    def coerce_environment(cls, v: Any) -> Dict[str, str]:
        """Accept both map form and ``KEY=VALUE`` list form."""
        if v is None:
            return {}
        if isinstance(v, list):
            env: Dict[str, str] = {}
            for item in v:
                key, _, value = str(item).partition("=")
                env[key] = value
            return env
        if not isinstance(v, dict):
            raise ValueError(f"expected a mapping or a list, got {type(v).__name__}")
        return {str(k): "" if val is None else scalar_to_str(val) for k, val in v.items()}


class Dependencies(BaseModel):
    services: Dict[str, ServiceDependency] = Field(default_factory=dict)


# =============================================================================
# CONFIGURATION SCHEMA
# =============================================================================


class SecretSchema(BaseModel):
    """A named secret the manifest expects to be configured."""

    description: str = ""
    type: str = "string"
    required: bool = False
    validation: Optional[str] = None
    prompt: Optional[str] = None
    env_var: Optional[str] = None


class ConfigOption(BaseModel):
    """A named free-form configuration option."""

    description: str = ""
    type: str = "string"
    required: bool = False
    default: Any = None
    options: List[Any] = Field(default_factory=list)
    validation: Optional[str] = None
    env_var: Optional[str] = None


class ConfigurationSchema(BaseModel):
    secrets: Dict[str, SecretSchema] = Field(default_factory=dict)
    config: Dict[str, ConfigOption] = Field(default_factory=dict)


class Server(BaseModel):
    """How the manifest's own process is started."""

    transport: str = "stdio"
    command: str = ""
    args: List[str] = Field(default_factory=list)
    environment: Dict[str, str] = Field(default_factory=dict)
    working_directory: Optional[str] = None


# =============================================================================
# MANIFEST
# =============================================================================


class ServiceManifest(BaseModel):
    """
    Authored description of one installable unit.

    Services may be declared either at the top level (``services``) or under
    ``dependencies.services``; both are honored and ``services`` wins on a
    name collision.
    """

    model_config = ConfigDict(extra="ignore")

    name: str = Field(..., min_length=1, description="Manifest name, used as service prefix")
    version: Optional[str] = None
    description: Optional[str] = None
    author: Optional[str] = None
    license: Optional[str] = None
    requirements: Requirements = Field(default_factory=Requirements)
    dependencies: Dependencies = Field(default_factory=Dependencies)
    services: Dict[str, ServiceDependency] = Field(default_factory=dict)
    configuration_schema: ConfigurationSchema = Field(default_factory=ConfigurationSchema)
    server: Server = Field(default_factory=Server)

    @field_validator("version", mode="before")
    @classmethod
    def coerce_version(cls, v: Any) -> Optional[str]:
        return None if v is None else scalar_to_str(v)

    def all_services(self) -> Dict[str, ServiceDependency]:
        """Return every declared service, sorted by name."""
        merged = dict(self.dependencies.services)
        merged.update(self.services)
        return {name: merged[name] for name in sorted(merged)}

    @property
    def runtimes(self) -> List[RuntimeRequirement]:
        return self.requirements.runtimes

    def required_secret_names(self) -> List[str]:
        """Names of secrets the configuration schema marks as required."""
        return sorted(
            name
            for name, schema in self.configuration_schema.secrets.items()
            if schema.required
        )


# Manifest set keyed by manifest name
ManifestSet = Dict[str, ServiceManifest]
