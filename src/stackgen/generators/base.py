"""
Shared generation pipeline.

Both artifacts are produced by the same staged pipeline:

    collect -> validate secrets -> build -> override -> [inject secrets] -> persist

Every stage before persist works on an in-memory map owned by the run, so a
failure at any stage leaves the previously written artifact untouched.
Subclasses supply the build, override and render steps.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Set

from stackgen.config import StackGenConfig, get_config
from stackgen.errors import (
    CollaboratorUnavailableError,
    GenerationError,
    PersistenceError,
    SecretValidationError,
)
from stackgen.logger import GenerationLogger
from stackgen.models.manifest import ManifestSet
from stackgen.models.overrides import ArtifactType
from stackgen.overrides.store import OverrideStore
from stackgen.runtime.features import RuntimeFeatureResolver
from stackgen.storage.base import (
    EnvironmentStore,
    ProjectInfo,
    ProjectStore,
    SecretStore,
    SessionInfo,
    Stores,
)
from stackgen.utils.fileops import atomic_write

logger = logging.getLogger(__name__)


@dataclass
class GenerationContext:
    """Inputs gathered by the collect stage."""

    project: ProjectInfo
    session: SessionInfo
    manifests: ManifestSet = field(default_factory=dict)
    # Set when manifests could not be read and the pipeline tolerates it
    manifest_error: Optional[GenerationError] = None


class BaseGenerator:
    """
    Staged generation pipeline shared by both artifact types.

    Args:
        project_store: Project and session bookkeeping
        secret_store: Configured secret set
        env_store: Project-wide environment variables
        settings: Configuration; the global config when omitted
        resolver: Runtime feature resolver; built from the default registry
            when omitted
        override_store: Override store; derived from settings and the
            active session when omitted
    """

    artifact_type: ArtifactType
    # Manifest read failures degrade to a fallback instead of aborting
    tolerate_manifest_errors = False

    def __init__(
        self,
        project_store: ProjectStore,
        secret_store: SecretStore,
        env_store: EnvironmentStore,
        settings: Optional[StackGenConfig] = None,
        resolver: Optional[RuntimeFeatureResolver] = None,
        override_store: Optional[OverrideStore] = None,
    ):
        self.project_store = project_store
        self.secret_store = secret_store
        self.env_store = env_store
        self.settings = settings or get_config()
        self.resolver = resolver or RuntimeFeatureResolver()
        self._override_store = override_store
        self.stage = "idle"
        self.events = GenerationLogger(
            artifact=self.artifact_type.value,
            project=str(self.settings.project_path),
        )

    @classmethod
    def from_stores(cls, stores: Stores, settings: Optional[StackGenConfig] = None, **kwargs: Any):
        return cls(stores.projects, stores.secrets, stores.environment, settings, **kwargs)

    @property
    def output_path(self) -> Path:
        return self.settings.output_path / self.artifact_type.file_name

    # Collect

    def collect(self) -> GenerationContext:
        """
        Gather the project, active session and its manifests.

        Raises:
            CollaboratorUnavailableError: No active session, or a store failed
        """
        try:
            project = self.project_store.get_project()
            session = self.project_store.get_active_session()
        except GenerationError:
            raise
        except (OSError, ValueError) as e:
            raise CollaboratorUnavailableError("failed to read project state", e) from e

        if session is None:
            raise CollaboratorUnavailableError("no active session")

        try:
            manifests = self._list_manifests(session)
        except GenerationError as e:
            if not self.tolerate_manifest_errors:
                raise
            logger.warning("Could not read manifests, using fallback configuration: %s", e)
            return GenerationContext(project=project, session=session, manifest_error=e)

        return GenerationContext(project=project, session=session, manifests=manifests)

    def _list_manifests(self, session: SessionInfo) -> ManifestSet:
        try:
            return self.project_store.list_manifests(session)
        except OSError as e:
            raise CollaboratorUnavailableError(
                f"failed to list manifests for session '{session.name}'", e
            ) from e

    # Validate secrets

    def required_secrets(self, manifests: ManifestSet) -> Set[str]:
        """Union of schema-required secret names across all manifests."""
        required: Set[str] = set()
        for manifest in manifests.values():
            if manifest is not None:
                required.update(manifest.required_secret_names())
        return required

    def validate_secrets(self, manifests: ManifestSet) -> None:
        """
        Ensure every schema-required secret is configured.

        Raises:
            SecretValidationError: With the sorted missing names
        """
        required = self.required_secrets(manifests)
        if not required:
            return

        missing = required - self.secret_store.configured_secrets()
        if missing:
            self.events.log_secrets_missing(missing)
            raise SecretValidationError(missing)

    # Build helpers

    def load_project_environment(self) -> Dict[str, str]:
        try:
            return self.env_store.get_environment()
        except GenerationError:
            raise
        except (OSError, ValueError) as e:
            raise CollaboratorUnavailableError("failed to load project environment variables", e) from e

    def get_override_store(self, session: SessionInfo) -> OverrideStore:
        if self._override_store is not None:
            return self._override_store
        session_dir = session.config_dir or self.settings.get_session_config_path(session.name)
        return OverrideStore(self.settings.get_project_config_path(), session_dir)

    # Subclass hooks

    def build_artifact(self, context: GenerationContext) -> Dict[str, Any]:
        """Build stage: the artifact before overrides."""
        raise NotImplementedError

    def apply_overrides(self, artifact: Dict[str, Any], context: GenerationContext) -> Dict[str, Any]:
        """Override stage: merge the session/project overrides onto the artifact."""
        raise NotImplementedError

    def finalize(self, artifact: Dict[str, Any], context: GenerationContext) -> Dict[str, Any]:
        """Post-override stage (secret injection for docker-compose)."""
        return artifact

    def render(self, artifact: Dict[str, Any]) -> str:
        raise NotImplementedError

    # Pipeline

    def build(self) -> Dict[str, Any]:
        """Run every stage except persist and return the final artifact."""
        self.stage = "collect"
        context = self.collect()
        self.events.log_started(session=context.session.name, manifest_count=len(context.manifests))

        self.stage = "validate"
        self.validate_secrets(context.manifests)

        self.stage = "build"
        artifact = self.build_artifact(context)

        self.stage = "override"
        artifact = self.apply_overrides(artifact, context)

        self.stage = "finalize"
        return self.finalize(artifact, context)

    def persist(self, artifact: Dict[str, Any]) -> Path:
        """Write the artifact atomically, creating the output directory."""
        self.stage = "persist"
        path = self.output_path
        try:
            atomic_write(path, self.render(artifact))
        except OSError as e:
            raise PersistenceError(f"failed to write {path}", e) from e
        return path

    def generate(self) -> Path:
        """
        Run the full pipeline and write the artifact.

        Returns:
            Path of the written artifact

        Raises:
            GenerationError: Any stage failed; nothing was written
        """
        try:
            artifact = self.build()
            path = self.persist(artifact)
        except GenerationError as e:
            self.events.log_failed(e, stage=self.stage)
            raise

        self.stage = "done"
        self.events.log_completed(path=str(path), **self.summarize(artifact))
        logger.info("Generated %s at %s", self.artifact_type.value, path)
        return path

    def summarize(self, artifact: Dict[str, Any]) -> Dict[str, Any]:
        """Extra fields for the completion event."""
        return {}
