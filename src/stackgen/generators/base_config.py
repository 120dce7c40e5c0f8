"""
Base Config Builder: infrastructure-only skeletons for both artifacts.

The devcontainer skeleton points at the generated compose file and carries
runtime features, forwarded ports and lifecycle commands. The compose
skeleton carries only the workspace service and its shared volume; manifest
services are folded in by the docker-compose pipeline via
``build_service_config``.

Port mapping shapes and the host port each yields:

    "5432"                 -> 5432
    "5433:5432"            -> 5433
    "127.0.0.1:5433:5432"  -> 5433
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from stackgen.config import StackGenConfig, get_config
from stackgen.models.manifest import ManifestSet, ServiceDependency
from stackgen.overrides.merge import render_env
from stackgen.runtime.features import RuntimeFeatureResolver

logger = logging.getLogger(__name__)

DEVCONTAINER_NAME = "stackgen Development Environment"
WORKSPACE_FOLDER = "/workspace"
REMOTE_USER = "root"
DEV_MODE_ENV = "STACKGEN_DEV_MODE=1"
WORKSPACE_VOLUME = "workspace-data"
IDLE_COMMAND = '/bin/sh -c "while sleep 1000; do :; done"'
DEFAULT_VOLUME_TARGET = "/data"

POST_START_COMMAND = (
    "echo 'Development container started. Services should be running via docker-compose.'; "
    "docker compose ps || echo 'docker compose not yet available'"
)


def common_features() -> Dict[str, Dict[str, Any]]:
    """Features included in every devcontainer regardless of manifests."""
    return {
        "ghcr.io/devcontainers/features/common-utils:2": {
            "installZsh": True,
            "configureZshAsDefaultShell": True,
            "installOhMyZsh": True,
            "upgradePackages": True,
            "username": "vscode",
        },
        "ghcr.io/devcontainers/features/docker-in-docker:2": {
            "moby": True,
            "dockerDashComposeVersion": "v2",
        },
        "ghcr.io/devcontainers/features/git:1": {
            "ppa": True,
            "version": "latest",
        },
    }


# =============================================================================
# PORTS
# =============================================================================


def normalize_port_mapping(mapping: str) -> Optional[str]:
    """Host-side port of a mapping, or None for an unrecognized shape."""
    parts = str(mapping).split(":")
    if len(parts) in (1, 2):
        return parts[0]
    if len(parts) == 3:
        return parts[1]
    return None


def extract_forward_ports(manifests: Optional[ManifestSet]) -> List[int]:
    """
    Host ports of every service port mapping across all manifests.

    Ports are integers, first occurrence wins, and mappings whose host side
    is not a plain number (ranges, protocol suffixes) are skipped.
    """
    ports: List[int] = []
    seen = set()
    for manifest_name in sorted(manifests or {}):
        manifest = manifests[manifest_name]
        if manifest is None:
            continue
        for service_name, service in manifest.all_services().items():
            for mapping in service.ports:
                host_port = normalize_port_mapping(mapping)
                if not host_port or not host_port.isdigit():
                    logger.debug(
                        "Skipping port mapping %r of %s/%s", mapping, manifest_name, service_name
                    )
                    continue
                port = int(host_port)
                if port not in seen:
                    seen.add(port)
                    ports.append(port)
    return ports


# =============================================================================
# VOLUMES
# =============================================================================


def rehome_volume(
    manifest_name: str,
    service_name: str,
    volume: str,
    state_dir_name: str = ".stackgen",
) -> str:
    """
    Rewrite a logical volume into a per-service host path.

    ``pgdata:/var/lib/postgresql/data`` becomes
    ``../.stackgen/services/<manifest>/<service>/pgdata:/var/lib/postgresql/data``.
    A bare name mounts at ``/data``. Sources starting with ``/`` or ``.`` are
    host paths and are returned unchanged.
    """
    source, sep, rest = volume.partition(":")
    if sep and (source.startswith("/") or source.startswith(".")):
        return volume

    host_path = f"../{state_dir_name}/services/{manifest_name}/{service_name}/{source}"
    if not sep:
        return f"{host_path}:{DEFAULT_VOLUME_TARGET}"
    return f"{host_path}:{rest}"


def persistence_commands(
    manifests: Optional[ManifestSet],
    state_dir_name: str = ".stackgen",
) -> List[str]:
    """``mkdir`` commands for every service that declares volumes."""
    commands: List[str] = []
    seen = set()
    root = f"{WORKSPACE_FOLDER}/{state_dir_name}"
    for manifest_name in sorted(manifests or {}):
        manifest = manifests[manifest_name]
        if manifest is None:
            continue
        for service_name, service in manifest.all_services().items():
            if not service.volumes:
                continue
            for kind in ("services", "logs"):
                command = f"mkdir -p {root}/{kind}/{manifest_name}/{service_name}"
                if command not in seen:
                    seen.add(command)
                    commands.append(command)
    return commands


def build_on_create_command(
    manifests: Optional[ManifestSet],
    state_dir_name: str = ".stackgen",
) -> str:
    root = f"{WORKSPACE_FOLDER}/{state_dir_name}"
    commands = [
        "echo 'Setting up development environment...'",
        f"mkdir -p {root}/services",
        f"mkdir -p {root}/logs",
    ]
    commands.extend(persistence_commands(manifests, state_dir_name))
    commands.append("echo 'Development environment ready!'")
    return " && ".join(commands)


# =============================================================================
# DEVCONTAINER
# =============================================================================


def build_features(
    manifests: Optional[ManifestSet],
    resolver: Optional[RuntimeFeatureResolver] = None,
) -> Dict[str, Any]:
    """Resolved runtime features followed by the common features."""
    resolver = resolver or RuntimeFeatureResolver()
    features: Dict[str, Any] = {}
    for resolved in resolver.resolve(manifests or {}).values():
        features[resolved.feature_id] = resolved.to_feature_config()
    features.update(common_features())
    return features


def _devcontainer_header(settings: StackGenConfig) -> Dict[str, Any]:
    return {
        "name": DEVCONTAINER_NAME,
        "dockerComposeFile": ["docker-compose.yml"],
        "service": settings.workspace_service,
        "workspaceFolder": WORKSPACE_FOLDER,
        "remoteUser": REMOTE_USER,
    }


def build_devcontainer_base(
    manifests: ManifestSet,
    resolver: Optional[RuntimeFeatureResolver] = None,
    settings: Optional[StackGenConfig] = None,
) -> Dict[str, Any]:
    """Devcontainer skeleton for a manifest set, before overrides."""
    settings = settings or get_config()
    config = _devcontainer_header(settings)
    config["features"] = build_features(manifests, resolver)
    config["forwardPorts"] = extract_forward_ports(manifests)
    config["onCreateCommand"] = build_on_create_command(manifests, settings.state_dir_name)
    config["postStartCommand"] = POST_START_COMMAND
    return config


def build_devcontainer_fallback(settings: Optional[StackGenConfig] = None) -> Dict[str, Any]:
    """Minimal valid devcontainer used when manifests cannot be read."""
    settings = settings or get_config()
    config = _devcontainer_header(settings)
    config["features"] = {}
    config["forwardPorts"] = []
    config["customizations"] = {}
    config["onCreateCommand"] = build_on_create_command(None, settings.state_dir_name)
    config["postStartCommand"] = POST_START_COMMAND
    return config


# =============================================================================
# DOCKER COMPOSE
# =============================================================================


def build_workspace_service(settings: Optional[StackGenConfig] = None) -> Dict[str, Any]:
    settings = settings or get_config()
    return {
        "build": {"dockerfile": "Dockerfile", "context": ".."},
        "volumes": [
            "../..:/workspaces:cached",
            f"{WORKSPACE_VOLUME}:{WORKSPACE_FOLDER}/{settings.state_dir_name}",
        ],
        "command": IDLE_COMMAND,
        "environment": [DEV_MODE_ENV],
        "working_dir": "/workspaces",
    }


def build_docker_compose_base(settings: Optional[StackGenConfig] = None) -> Dict[str, Any]:
    """Compose skeleton: version, workspace service and its shared volume."""
    settings = settings or get_config()
    return {
        "version": settings.compose_version,
        "services": {settings.workspace_service: build_workspace_service(settings)},
        "volumes": {WORKSPACE_VOLUME: None},
    }


def build_service_config(
    manifest_name: str,
    service_name: str,
    service: ServiceDependency,
    project_env: Optional[Dict[str, str]] = None,
    state_dir_name: str = ".stackgen",
) -> Dict[str, Any]:
    """
    Compose service for one manifest service dependency.

    The environment is the project environment overlaid with the service's
    own, service values winning, rendered as a ``KEY=VALUE`` list.
    """
    config: Dict[str, Any] = {}
    if service.image:
        config["image"] = service.image
    if service.ports:
        config["ports"] = list(service.ports)

    env = dict(project_env or {})
    env.update(service.environment)
    if env:
        config["environment"] = render_env(env)

    if service.volumes:
        config["volumes"] = [
            rehome_volume(manifest_name, service_name, volume, state_dir_name)
            for volume in service.volumes
        ]
    if service.command:
        config["command"] = service.command
    if service.healthcheck is not None:
        healthcheck = service.healthcheck.model_dump(exclude_none=True)
        if healthcheck.get("test"):
            config["healthcheck"] = healthcheck
    return config
