"""Secret reference detection and compose secret declaration."""

from stackgen.secrets.scanner import (
    DEFAULT_MOUNT_PREFIX,
    DEFAULT_SECRETS_LABEL,
    extract_secret_name,
    inject_secrets,
    required_secrets_by_reference,
    scan_environment,
    scan_labels,
    service_secret_names,
)

__all__ = [
    "DEFAULT_MOUNT_PREFIX",
    "DEFAULT_SECRETS_LABEL",
    "extract_secret_name",
    "inject_secrets",
    "required_secrets_by_reference",
    "scan_environment",
    "scan_labels",
    "service_secret_names",
]
