"""Override documents: loading, precedence and merge rules."""

from stackgen.overrides.merge import (
    ConfigValue,
    merge_devcontainer,
    merge_docker_compose,
    merge_env,
    merge_service,
    union_ports,
)
from stackgen.overrides.store import OverrideStore

__all__ = [
    "ConfigValue",
    "OverrideStore",
    "merge_devcontainer",
    "merge_docker_compose",
    "merge_env",
    "merge_service",
    "union_ports",
]
