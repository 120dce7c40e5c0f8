"""Docker-compose pipeline: ``.devcontainer/docker-compose.yml``."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from stackgen.generators.base import BaseGenerator, GenerationContext
from stackgen.generators.base_config import build_docker_compose_base, build_service_config
from stackgen.models.manifest import ManifestSet
from stackgen.models.overrides import ArtifactType
from stackgen.overrides.merge import merge_docker_compose
from stackgen.secrets.scanner import inject_secrets
from stackgen.utils.fileops import dump_yaml

logger = logging.getLogger(__name__)


class DockerComposeGenerator(BaseGenerator):
    """
    Generates the docker-compose descriptor.

    Each manifest service becomes ``<manifest>-<service>``. Manifests and
    services are folded in name order, so a prefixed-name collision is won
    by the later one.
    """

    artifact_type = ArtifactType.DOCKER_COMPOSE

    def add_manifest_services(
        self,
        artifact: Dict[str, Any],
        manifests: ManifestSet,
        project_env: Optional[Dict[str, str]] = None,
    ) -> None:
        services = artifact.setdefault("services", {})
        for manifest_name in sorted(manifests):
            manifest = manifests[manifest_name]
            if manifest is None:
                continue
            for service_name, service in manifest.all_services().items():
                prefixed = f"{manifest_name}-{service_name}"
                if prefixed in services:
                    logger.warning("Service %s defined more than once, last definition wins", prefixed)
                services[prefixed] = build_service_config(
                    manifest_name,
                    service_name,
                    service,
                    project_env,
                    self.settings.state_dir_name,
                )

    def build_artifact(self, context: GenerationContext) -> Dict[str, Any]:
        artifact = build_docker_compose_base(self.settings)
        project_env = self.load_project_environment()
        self.add_manifest_services(artifact, context.manifests, project_env)
        return artifact

    def apply_overrides(self, artifact: Dict[str, Any], context: GenerationContext) -> Dict[str, Any]:
        overrides = self.get_override_store(context.session).get_docker_compose_overrides()
        if overrides.is_empty():
            return artifact
        return merge_docker_compose(artifact, overrides.to_config())

    def finalize(self, artifact: Dict[str, Any], context: GenerationContext) -> Dict[str, Any]:
        """Secret injection: declare every configured secret a service references."""
        declared = inject_secrets(
            artifact,
            self.secret_store.configured_secrets(),
            mount_prefix=self.settings.secrets_mount_prefix,
            label_key=self.settings.secrets_label,
        )
        if declared:
            logger.debug("Declared secrets %s", declared)
        return artifact

    def render(self, artifact: Dict[str, Any]) -> str:
        return dump_yaml(artifact)

    def summarize(self, artifact: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "service_count": len(artifact.get("services") or {}),
            "secret_count": len(artifact.get("secrets") or {}),
        }
