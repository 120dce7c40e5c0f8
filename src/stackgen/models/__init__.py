"""
stackgen data models.

- Service manifests (``ServiceManifest`` and its parts)
- Override documents for both artifact types
"""

from stackgen.models.manifest import (
    ConfigOption,
    ConfigurationSchema,
    Dependencies,
    HealthCheck,
    ManifestSet,
    Requirements,
    RuntimeRequirement,
    SecretSchema,
    Server,
    ServiceDependency,
    ServiceManifest,
)
from stackgen.models.manifest_loader import (
    load_manifest,
    load_manifest_dir,
    load_manifest_from_dict,
)
from stackgen.models.overrides import (
    ArtifactType,
    DevcontainerOverride,
    DockerComposeOverride,
    OverrideLevel,
    ServiceOverride,
)

__all__ = [
    # Manifest
    "ConfigOption",
    "ConfigurationSchema",
    "Dependencies",
    "HealthCheck",
    "ManifestSet",
    "Requirements",
    "RuntimeRequirement",
    "SecretSchema",
    "Server",
    "ServiceDependency",
    "ServiceManifest",
    # Loading
    "load_manifest",
    "load_manifest_dir",
    "load_manifest_from_dict",
    # Overrides
    "ArtifactType",
    "DevcontainerOverride",
    "DockerComposeOverride",
    "OverrideLevel",
    "ServiceOverride",
]
