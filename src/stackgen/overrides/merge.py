"""
Generic merge rules for generated artifacts and override documents.

Artifacts are plain nested structures (``ConfigValue``): strings, numbers,
booleans, None, lists and string-keyed maps. The same functions merge a
session override onto a project override and the combined override onto a
generated artifact, so precedence behaves identically at every layer.

Rules, applied with the right-hand side taking precedence:

- scalars: a non-empty override replaces the base
- compose services: keyed union; existing services are field-merged
- service ``environment`` and ``labels``: key-wise union
- service ``ports``: replaced wholesale
- service ``volumes`` and other lists: concatenated, base first
- devcontainer ``features``/``customizations``: key-wise union, one level deep
- devcontainer ``forwardPorts``: union without duplicates

No merge drops a key that only the base has. Inputs are never mutated.
"""

from __future__ import annotations

import copy
from typing import Any, Dict, List, Union

ConfigValue = Union[str, int, float, bool, None, List[Any], Dict[str, Any]]

# Service fields that hold a single command line, not a list of entries
_REPLACE_LIST_FIELDS = frozenset({"ports", "command", "entrypoint"})

# Top-level compose maps merged key by key
_COMPOSE_KEYED_SECTIONS = frozenset({"networks", "volumes", "secrets", "configs"})

# Devcontainer maps merged one level deep
_DEVCONTAINER_NESTED_SECTIONS = frozenset({"features", "customizations"})


def is_empty(value: ConfigValue) -> bool:
    """True for None, "" and empty containers; False for 0 and False."""
    if value is None:
        return True
    if isinstance(value, (str, list, dict)):
        return len(value) == 0
    return False


# =============================================================================
# KEY/VALUE BLOCKS
# =============================================================================


def normalize_key_values(value: ConfigValue) -> Dict[str, str]:
    """Turn a map or a ``KEY=VALUE`` list into an ordered map."""
    result: Dict[str, str] = {}
    if isinstance(value, dict):
        for key, item in value.items():
            result[str(key)] = "" if item is None else str(item)
    elif isinstance(value, list):
        for item in value:
            if not isinstance(item, str):
                continue
            key, _, val = item.partition("=")
            result[key] = val
    return result


def render_env(env: Dict[str, str]) -> List[str]:
    """Render an env map in the compose ``KEY=VALUE`` list form."""
    return [f"{key}={value}" for key, value in env.items()]


def merge_env(base: ConfigValue, override: ConfigValue) -> List[str]:
    """Key-wise environment union, override wins; rendered as a list."""
    merged = normalize_key_values(base)
    merged.update(normalize_key_values(override))
    return render_env(merged)


def merge_labels(base: ConfigValue, override: ConfigValue) -> Dict[str, str]:
    """Key-wise label union, override wins; rendered as a map."""
    merged = normalize_key_values(base)
    merged.update(normalize_key_values(override))
    return merged


# =============================================================================
# LISTS AND MAPS
# =============================================================================


def _as_list(value: ConfigValue) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return list(value)
    return [value]


def concat_lists(base: ConfigValue, override: ConfigValue) -> List[Any]:
    """Base entries then override entries, duplicates kept."""
    return _as_list(base) + copy.deepcopy(_as_list(override))


def _port_key(port: Any) -> Any:
    if isinstance(port, str) and port.isdigit():
        return int(port)
    return port


def union_ports(base: ConfigValue, override: ConfigValue) -> List[Any]:
    """Forward-port union preserving first-seen order; "3000" equals 3000."""
    seen = set()
    result: List[Any] = []
    for port in _as_list(base) + _as_list(override):
        key = _port_key(port)
        if key in seen:
            continue
        seen.add(key)
        result.append(key)
    return result


def merge_maps(base: ConfigValue, override: ConfigValue) -> Dict[str, Any]:
    """Shallow key-wise union, override wins per key."""
    result = dict(base) if isinstance(base, dict) else {}
    if isinstance(override, dict):
        for key, value in override.items():
            result[key] = copy.deepcopy(value)
    return result


def merge_nested_maps(base: ConfigValue, override: ConfigValue) -> Dict[str, Any]:
    """Key-wise union where map values present on both sides are unioned too."""
    result = dict(base) if isinstance(base, dict) else {}
    if not isinstance(override, dict):
        return result
    for key, value in override.items():
        existing = result.get(key)
        if isinstance(existing, dict) and isinstance(value, dict):
            merged = dict(existing)
            merged.update(copy.deepcopy(value))
            result[key] = merged
        else:
            result[key] = copy.deepcopy(value)
    return result


def merge_value(base: ConfigValue, override: ConfigValue) -> ConfigValue:
    """Fallback rule for keys without a dedicated rule."""
    if is_empty(override):
        return base
    if isinstance(base, dict) and isinstance(override, dict):
        return merge_maps(base, override)
    if isinstance(base, list) and isinstance(override, list):
        return concat_lists(base, override)
    return copy.deepcopy(override)


# =============================================================================
# DOCKER COMPOSE
# =============================================================================


def merge_service(base: ConfigValue, override: ConfigValue) -> ConfigValue:
    """Field-merge one compose service onto another."""
    if not isinstance(base, dict) or not isinstance(override, dict):
        return copy.deepcopy(override) if override is not None else base

    result = dict(base)
    for key, value in override.items():
        if key == "environment":
            result[key] = merge_env(result.get(key), value)
        elif key == "labels":
            result[key] = merge_labels(result.get(key), value)
        elif key in _REPLACE_LIST_FIELDS:
            if not is_empty(value):
                result[key] = copy.deepcopy(value)
        elif key in result:
            result[key] = merge_value(result[key], value)
        elif not is_empty(value):
            result[key] = copy.deepcopy(value)
    return result


def merge_services(base: ConfigValue, override: ConfigValue) -> Dict[str, Any]:
    """Keyed union of compose services; shared names are field-merged."""
    result = dict(base) if isinstance(base, dict) else {}
    if not isinstance(override, dict):
        return result
    for name, service in override.items():
        if name in result:
            result[name] = merge_service(result[name], service)
        else:
            result[name] = copy.deepcopy(service) if service is not None else {}
    return result


def merge_docker_compose(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge a docker-compose override map onto a base map."""
    result = dict(base)
    for key, value in override.items():
        if key == "services":
            result[key] = merge_services(result.get(key), value)
        elif key in _COMPOSE_KEYED_SECTIONS:
            result[key] = merge_maps(result.get(key), value)
        elif key in result:
            result[key] = merge_value(result[key], value)
        elif not is_empty(value):
            result[key] = copy.deepcopy(value)
    return result


# =============================================================================
# DEVCONTAINER
# =============================================================================


def merge_devcontainer(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge a devcontainer override map onto a base map."""
    result = dict(base)
    for key, value in override.items():
        if key in _DEVCONTAINER_NESTED_SECTIONS:
            result[key] = merge_nested_maps(result.get(key), value)
        elif key == "forwardPorts":
            result[key] = union_ports(result.get(key), value)
        elif key in result:
            result[key] = merge_value(result[key], value)
        elif not is_empty(value):
            result[key] = copy.deepcopy(value)
    return result
