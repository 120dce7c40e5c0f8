"""
Secret reference scanning and injection.

A secret reference is a string value that names a secret indirectly. Two
notations are recognized, and both canonicalize to a lower-cased name:

- brace form: ``${DATABASE_URL}`` -> ``database_url``
- mount form: ``/run/secrets/database_url`` -> ``database_url``

Services can also name secrets explicitly through a label
(``stackgen.secrets: "api_key, db_password"``).

``inject_secrets`` uses the scan results to declare the secrets a compose
service needs, without ever touching secret values.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set

from stackgen.models.manifest import ManifestSet

logger = logging.getLogger(__name__)

DEFAULT_MOUNT_PREFIX = "/run/secrets/"
DEFAULT_SECRETS_LABEL = "stackgen.secrets"


def extract_secret_name(value: Any, mount_prefix: str = DEFAULT_MOUNT_PREFIX) -> Optional[str]:
    """
    Return the canonical secret name a value refers to, or None.

    Only whole-value references count: ``"${API_KEY}"`` is a reference,
    ``"Bearer ${API_KEY}"`` is not.
    """
    if not isinstance(value, str) or not value:
        return None

    if len(value) > 3 and value.startswith("${") and value.endswith("}"):
        return value[2:-1].lower()

    if len(value) > len(mount_prefix) and value.startswith(mount_prefix):
        return value[len(mount_prefix):].lower()

    return None


def scan_environment(env: Any, mount_prefix: str = DEFAULT_MOUNT_PREFIX) -> Set[str]:
    """
    Collect secret names referenced by an environment block.

    Accepts map form (``{"KEY": "value"}``) and list form (``["KEY=value"]``).
    List entries without ``=`` carry no value and are ignored.
    """
    names: Set[str] = set()
    if isinstance(env, Mapping):
        values: Iterable[Any] = env.values()
    elif isinstance(env, (list, tuple)):
        values = [
            str(item).split("=", 1)[1]
            for item in env
            if isinstance(item, str) and "=" in item
        ]
    else:
        return names

    for value in values:
        name = extract_secret_name(value, mount_prefix)
        if name:
            names.add(name)
    return names


def scan_labels(labels: Any, label_key: str = DEFAULT_SECRETS_LABEL) -> Set[str]:
    """Collect secret names listed explicitly in the secrets label."""
    raw: Optional[str] = None
    if isinstance(labels, Mapping):
        value = labels.get(label_key)
        raw = value if isinstance(value, str) else None
    elif isinstance(labels, (list, tuple)):
        for item in labels:
            if isinstance(item, str) and item.startswith(label_key + "="):
                raw = item.split("=", 1)[1]

    if not raw:
        return set()
    return {name.strip() for name in raw.split(",") if name.strip()}


def service_secret_names(
    service_config: Mapping[str, Any],
    mount_prefix: str = DEFAULT_MOUNT_PREFIX,
    label_key: str = DEFAULT_SECRETS_LABEL,
) -> Set[str]:
    """Every secret a compose service needs, from its environment and labels."""
    names = scan_environment(service_config.get("environment"), mount_prefix)
    names |= scan_labels(service_config.get("labels"), label_key)
    return names


def required_secrets_by_reference(
    manifests: ManifestSet,
    mount_prefix: str = DEFAULT_MOUNT_PREFIX,
) -> List[str]:
    """
    Secret names a manifest set needs, by reference or by schema.

    Informational only: generation gates on schema-required secrets.
    """
    names: Set[str] = set()
    for manifest in manifests.values():
        if manifest is None:
            continue
        names |= scan_environment(manifest.server.environment, mount_prefix)
        for service in manifest.all_services().values():
            names |= scan_environment(service.environment, mount_prefix)
        names.update(manifest.required_secret_names())
    return sorted(names)


def inject_secrets(
    artifact: Dict[str, Any],
    configured: Iterable[str],
    mount_prefix: str = DEFAULT_MOUNT_PREFIX,
    label_key: str = DEFAULT_SECRETS_LABEL,
) -> List[str]:
    """
    Declare the secrets each compose service references.

    For every service, each referenced secret that is configured gets a
    ``{source, target}`` entry in the service's ``secrets`` list and an
    ``external: true`` entry in the top-level ``secrets`` block. Services
    without references are left untouched. Mutates ``artifact`` in place.

    Returns:
        Sorted names of all secrets declared.
    """
    configured_set = set(configured)
    if not configured_set:
        logger.debug("No secrets configured, skipping secret injection")
        return []

    services = artifact.get("services")
    if not isinstance(services, dict):
        return []

    declared: Set[str] = set()
    for service_name, service in services.items():
        if not isinstance(service, dict):
            continue

        needed = service_secret_names(service, mount_prefix, label_key)
        unconfigured = needed - configured_set
        if unconfigured:
            logger.warning(
                "Service %s references unconfigured secrets %s; not declaring them",
                service_name, sorted(unconfigured),
            )
        needed &= configured_set
        if not needed:
            continue

        entries = service.get("secrets")
        if not isinstance(entries, list):
            entries = []
        present = {
            entry.get("source") if isinstance(entry, dict) else entry
            for entry in entries
        }
        for name in sorted(needed):
            if name not in present:
                entries.append({"source": name, "target": name})
        service["secrets"] = entries
        declared |= needed

    if declared:
        top_level = artifact.get("secrets")
        if not isinstance(top_level, dict):
            top_level = {}
        for name in sorted(declared):
            top_level.setdefault(name, {"external": True})
        artifact["secrets"] = top_level

    return sorted(declared)
