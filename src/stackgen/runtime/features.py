"""
Runtime feature resolution.

Maps abstract runtime requirements declared by manifests ("needs python at
3.11 or later") to devcontainer feature descriptors with a selected version.

The registry of known runtimes is an explicit object. ``default_registry()``
builds a fresh one each call so tests can construct isolated registries.

Usage:
    from stackgen.runtime import RuntimeFeatureResolver, default_registry

    resolver = RuntimeFeatureResolver(default_registry())
    for feature in resolver.resolve(manifests).values():
        print(feature.feature_id, feature.selected_version)
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

from stackgen.models.manifest import ManifestSet

logger = logging.getLogger(__name__)

_CONSTRAINT_PREFIX = re.compile(r"^\s*(?:>=|=>|==|\^|~=?|>|=)?\s*v?")


def normalize_version(version: Optional[str]) -> str:
    """Strip constraint operators and a leading ``v`` (``>=3.11`` -> ``3.11``)."""
    if not version:
        return ""
    return _CONSTRAINT_PREFIX.sub("", str(version), count=1).strip()


def _version_key(version: str) -> Tuple[Tuple[int, Any], ...]:
    # Numeric components sort below non-numeric tags such as "latest"
    normalized = normalize_version(version)
    if not normalized:
        return ()
    parts = []
    for part in normalized.split("."):
        if part.isdigit():
            parts.append((0, int(part)))
        else:
            parts.append((1, part))
    return tuple(parts)


def compare_versions(a: str, b: str) -> int:
    """
    Compare two version strings.

    Dot-separated numeric components compare numerically ("10" > "9");
    non-numeric components compare as strings and sort above numbers.
    This is best-effort ordering, not full semantic versioning.

    Returns:
        -1, 0 or 1
    """
    ka, kb = _version_key(a), _version_key(b)
    if ka == kb:
        return 0
    return 1 if ka > kb else -1


@dataclass
class RuntimeFeature:
    """How one runtime maps to a devcontainer feature."""

    name: str
    feature_id: str
    default_version: str
    versions: List[str] = field(default_factory=list)
    default_config: Dict[str, Any] = field(default_factory=dict)

    def select_version(self, requested: Optional[str] = None) -> str:
        """
        Choose the version to install for a requested version.

        An exact match to a supported version wins. A requested version that
        refines a supported one ("3.11.2" against "3.11") is honored verbatim.
        Anything else falls back to the default version.
        """
        requested = normalize_version(requested)
        if not requested:
            return self.default_version

        for version in self.versions:
            if requested == version:
                return version
            if requested.startswith(version + "."):
                return requested

        logger.debug(
            "Runtime %s has no supported version matching %s, using %s",
            self.name, requested, self.default_version,
        )
        return self.default_version

    def supports_version(self, version: str) -> bool:
        return version in self.versions


@dataclass
class ResolvedFeature:
    """A runtime feature paired with the version selected for this manifest set."""

    feature: RuntimeFeature
    requested_version: str
    selected_version: str

    @property
    def name(self) -> str:
        return self.feature.name

    @property
    def feature_id(self) -> str:
        return self.feature.feature_id

    def to_feature_config(self) -> Dict[str, Any]:
        """Feature options for devcontainer.json, with the selected version set."""
        config = dict(self.feature.default_config)
        if self.selected_version:
            config["version"] = self.selected_version
        return config


class RuntimeFeatureRegistry:
    """Registry of runtime name -> feature definition."""

    def __init__(self, features: Optional[List[RuntimeFeature]] = None):
        self._features: Dict[str, RuntimeFeature] = {}
        for feature in features or []:
            self.register(feature)

    def register(self, feature: RuntimeFeature) -> None:
        """Register a feature, replacing any earlier one for the same runtime."""
        self._features[feature.name] = feature

    def get(self, runtime_name: str) -> Optional[RuntimeFeature]:
        return self._features.get(runtime_name)

    def list(self) -> List[RuntimeFeature]:
        return [self._features[name] for name in sorted(self._features)]

    def __contains__(self, runtime_name: object) -> bool:
        return runtime_name in self._features

    def __iter__(self) -> Iterator[RuntimeFeature]:
        return iter(self.list())

    def __len__(self) -> int:
        return len(self._features)


def python_feature() -> RuntimeFeature:
    return RuntimeFeature(
        name="python",
        feature_id="ghcr.io/devcontainers/features/python:1",
        default_version="3.11",
        versions=["3.12", "3.11", "3.10", "3.9"],
        default_config={"installTools": True, "installJupyterlab": False},
    )


def node_feature() -> RuntimeFeature:
    return RuntimeFeature(
        name="node",
        feature_id="ghcr.io/devcontainers/features/node:1",
        default_version="18",
        versions=["20", "18", "16"],
        default_config={"nodeGypDependencies": True},
    )


def go_feature() -> RuntimeFeature:
    return RuntimeFeature(
        name="go",
        feature_id="ghcr.io/devcontainers/features/go:1",
        default_version="1.21",
        versions=["1.22", "1.21", "1.20"],
    )


def docker_feature() -> RuntimeFeature:
    return RuntimeFeature(
        name="docker",
        feature_id="ghcr.io/devcontainers/features/docker-outside-of-docker:1",
        default_version="latest",
        versions=["latest", "24", "23", "20"],
        default_config={"version": "latest", "moby": True, "dockerDashComposeVersion": "v2"},
    )


def default_registry() -> RuntimeFeatureRegistry:
    """Build a new registry with the built-in runtime features."""
    return RuntimeFeatureRegistry(
        [python_feature(), node_feature(), go_feature(), docker_feature()]
    )


class RuntimeFeatureResolver:
    """Resolves the runtime requirements of a manifest set to features."""

    def __init__(self, registry: Optional[RuntimeFeatureRegistry] = None):
        self.registry = registry if registry is not None else default_registry()

    def requested_versions(self, manifests: ManifestSet) -> Dict[str, str]:
        """Highest requested version per runtime name across all manifests."""
        versions: Dict[str, str] = {}
        for manifest_name in sorted(manifests):
            manifest = manifests[manifest_name]
            if manifest is None:
                continue
            for runtime in manifest.runtimes:
                existing = versions.get(runtime.name)
                if existing is None or compare_versions(runtime.version, existing) > 0:
                    versions[runtime.name] = runtime.version
        return versions

    def resolve(self, manifests: ManifestSet) -> Dict[str, ResolvedFeature]:
        """
        Resolve one feature per distinct, known runtime name.

        Unknown runtimes contribute nothing and do not fail resolution.
        """
        resolved: Dict[str, ResolvedFeature] = {}
        for runtime_name, version in sorted(self.requested_versions(manifests).items()):
            feature = self.registry.get(runtime_name)
            if feature is None:
                logger.debug("No feature registered for runtime %s, skipping", runtime_name)
                continue
            resolved[runtime_name] = ResolvedFeature(
                feature=feature,
                requested_version=version,
                selected_version=feature.select_version(version),
            )
        return resolved
