"""
Artifact generators.

- ``DevcontainerGenerator``: ``.devcontainer/devcontainer.json``
- ``DockerComposeGenerator``: ``.devcontainer/docker-compose.yml``
- ``GeneratorManager``: runs either or both
"""

from stackgen.generators.base import BaseGenerator, GenerationContext
from stackgen.generators.base_config import (
    build_devcontainer_base,
    build_devcontainer_fallback,
    build_docker_compose_base,
    build_service_config,
    extract_forward_ports,
    normalize_port_mapping,
    rehome_volume,
)
from stackgen.generators.devcontainer import DevcontainerGenerator
from stackgen.generators.docker_compose import DockerComposeGenerator
from stackgen.generators.manager import GeneratorManager

__all__ = [
    "BaseGenerator",
    "GenerationContext",
    "DevcontainerGenerator",
    "DockerComposeGenerator",
    "GeneratorManager",
    "build_devcontainer_base",
    "build_devcontainer_fallback",
    "build_docker_compose_base",
    "build_service_config",
    "extract_forward_ports",
    "normalize_port_mapping",
    "rehome_volume",
]
