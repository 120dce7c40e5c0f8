"""Runtime requirement -> devcontainer feature resolution."""

from stackgen.runtime.features import (
    ResolvedFeature,
    RuntimeFeature,
    RuntimeFeatureRegistry,
    RuntimeFeatureResolver,
    compare_versions,
    default_registry,
    normalize_version,
)

__all__ = [
    "ResolvedFeature",
    "RuntimeFeature",
    "RuntimeFeatureRegistry",
    "RuntimeFeatureResolver",
    "compare_versions",
    "default_registry",
    "normalize_version",
]
