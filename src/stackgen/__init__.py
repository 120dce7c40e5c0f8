"""
stackgen - Development environments synthesized from service manifests.

Reads the service manifests installed in the active session and produces:
- ``.devcontainer/devcontainer.json`` with runtime features and forwarded ports
- ``.devcontainer/docker-compose.yml`` with one service per manifest service

Project and session override documents are layered on top (session > project
> generated), and required secrets are validated before anything is written.

Example usage:
    from stackgen import GeneratorManager

    manager = GeneratorManager()
    paths = manager.generate_all()
"""

__version__ = "0.1.0"
__all__ = [
    "GeneratorManager",
    "DevcontainerGenerator",
    "DockerComposeGenerator",
    "OverrideStore",
    "get_config",
    "__version__",
]


# Lazy imports keep ``stackgen --version`` and config access light
def __getattr__(name: str):
    if name == "GeneratorManager":
        from stackgen.generators.manager import GeneratorManager
        return GeneratorManager
    if name == "DevcontainerGenerator":
        from stackgen.generators.devcontainer import DevcontainerGenerator
        return DevcontainerGenerator
    if name == "DockerComposeGenerator":
        from stackgen.generators.docker_compose import DockerComposeGenerator
        return DockerComposeGenerator
    if name == "OverrideStore":
        from stackgen.overrides.store import OverrideStore
        return OverrideStore
    if name == "get_config":
        from stackgen.config import get_config
        return get_config
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
