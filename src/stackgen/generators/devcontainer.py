"""Devcontainer pipeline: ``.devcontainer/devcontainer.json``."""

from __future__ import annotations

from typing import Any, Dict

from stackgen.generators.base import BaseGenerator, GenerationContext
from stackgen.generators.base_config import build_devcontainer_base, build_devcontainer_fallback
from stackgen.models.overrides import ArtifactType
from stackgen.overrides.merge import merge_devcontainer
from stackgen.utils.fileops import dump_json


class DevcontainerGenerator(BaseGenerator):
    """
    Generates the devcontainer descriptor.

    Manifest read failures produce the minimal fallback skeleton instead of
    aborting; a missing active session still aborts.
    """

    artifact_type = ArtifactType.DEVCONTAINER
    tolerate_manifest_errors = True

    def build_artifact(self, context: GenerationContext) -> Dict[str, Any]:
        if context.manifest_error is not None:
            return build_devcontainer_fallback(self.settings)
        return build_devcontainer_base(context.manifests, self.resolver, self.settings)

    def apply_overrides(self, artifact: Dict[str, Any], context: GenerationContext) -> Dict[str, Any]:
        overrides = self.get_override_store(context.session).get_devcontainer_overrides()
        if overrides.is_empty():
            return artifact
        return merge_devcontainer(artifact, overrides.to_config())

    def render(self, artifact: Dict[str, Any]) -> str:
        return dump_json(artifact)

    def summarize(self, artifact: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "feature_count": len(artifact.get("features") or {}),
            "forward_ports": list(artifact.get("forwardPorts") or []),
        }
