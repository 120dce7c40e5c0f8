"""Coordinates the devcontainer and docker-compose pipelines."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from stackgen.config import StackGenConfig, get_config
from stackgen.generators.devcontainer import DevcontainerGenerator
from stackgen.generators.docker_compose import DockerComposeGenerator
from stackgen.models.overrides import ArtifactType
from stackgen.storage.base import StorageType, Stores, get_stores

logger = logging.getLogger(__name__)


class GeneratorManager:
    """
    Runs one or both pipelines against a shared set of stores.

    Example:
        manager = GeneratorManager()                 # file stores, global config
        paths = manager.generate_all()
        print(paths[ArtifactType.DOCKER_COMPOSE])
    """

    def __init__(
        self,
        stores: Optional[Stores] = None,
        settings: Optional[StackGenConfig] = None,
        **generator_kwargs: Any,
    ):
        self.settings = settings or get_config()
        self.stores = stores or get_stores(StorageType.FILE, settings=self.settings)
        self.devcontainer = DevcontainerGenerator.from_stores(
            self.stores, self.settings, **generator_kwargs
        )
        self.docker_compose = DockerComposeGenerator.from_stores(
            self.stores, self.settings, **generator_kwargs
        )

    def get_generator(self, artifact_type: ArtifactType):
        if ArtifactType(artifact_type) is ArtifactType.DEVCONTAINER:
            return self.devcontainer
        return self.docker_compose

    def generate_devcontainer(self) -> Path:
        return self.devcontainer.generate()

    def generate_docker_compose(self) -> Path:
        return self.docker_compose.generate()

    def generate_all(self) -> Dict[ArtifactType, Path]:
        """
        Generate the devcontainer descriptor, then docker-compose.

        Stops at the first failure; an artifact already written stays written.
        """
        paths = {ArtifactType.DEVCONTAINER: self.generate_devcontainer()}
        paths[ArtifactType.DOCKER_COMPOSE] = self.generate_docker_compose()
        return paths
