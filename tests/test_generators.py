"""
Tests for the devcontainer and docker-compose generation pipelines.
"""

import json
import logging

import pytest
import yaml

from stackgen.errors import (
    CollaboratorUnavailableError,
    ManifestLoadError,
    OverrideParseError,
    PersistenceError,
    SecretValidationError,
)
from stackgen.generators import (
    DevcontainerGenerator,
    DockerComposeGenerator,
    GeneratorManager,
)
from stackgen.models.manifest import SecretSchema, ServiceManifest
from stackgen.models.overrides import ArtifactType
from stackgen.storage import (
    MemoryEnvironmentStore,
    MemoryProjectStore,
    MemorySecretStore,
    StorageType,
    Stores,
    get_stores,
)


def compose_generator(stores, settings):
    return DockerComposeGenerator.from_stores(stores, settings)


def devcontainer_generator(stores, settings):
    return DevcontainerGenerator.from_stores(stores, settings)


def read_compose(path):
    return yaml.safe_load(path.read_text(encoding="utf-8"))


def read_devcontainer(path):
    return json.loads(path.read_text(encoding="utf-8"))


class BrokenManifestStore(MemoryProjectStore):
    """Project store whose manifests cannot be read."""

    def list_manifests(self, session):
        raise ManifestLoadError("acme.yaml", ValueError("bad manifest"))


class TestDockerComposeGeneration:

    def test_generates_prefixed_services(self, memory_stores, settings):
        path = compose_generator(memory_stores, settings).generate()

        assert path == settings.output_path / "docker-compose.yml"
        compose = read_compose(path)
        assert compose["version"] == "3.8"
        assert list(compose["services"]) == ["workspace", "acme-cache", "acme-db"]
        assert compose["services"]["acme-db"]["image"] == "postgres:16"
        assert compose["services"]["acme-cache"]["ports"] == ["127.0.0.1:6380:6379"]

    def test_idempotent(self, memory_stores, settings):
        generator = compose_generator(memory_stores, settings)
        first = generator.generate().read_bytes()
        second = generator.generate().read_bytes()
        assert first == second

    def test_volumes_rehomed(self, memory_stores, settings):
        compose = read_compose(compose_generator(memory_stores, settings).generate())
        assert compose["services"]["acme-db"]["volumes"] == [
            "../.stackgen/services/acme/db/pgdata:/var/lib/postgresql/data"
        ]

    def test_project_environment_merged_service_wins(self, settings, acme_manifest):
        stores = Stores(
            projects=MemoryProjectStore(manifests=[acme_manifest]),
            secrets=MemorySecretStore({"db_password": "x"}),
            environment=MemoryEnvironmentStore({"TZ": "UTC", "POSTGRES_DB": "shared"}),
        )

        compose = read_compose(compose_generator(stores, settings).generate())

        db_env = compose["services"]["acme-db"]["environment"]
        assert "TZ=UTC" in db_env
        assert "POSTGRES_DB=acme" in db_env
        assert "POSTGRES_DB=shared" not in db_env
        assert compose["services"]["acme-cache"]["environment"] == ["TZ=UTC", "POSTGRES_DB=shared"]
        assert compose["services"]["workspace"]["environment"] == ["STACKGEN_DEV_MODE=1"]

    def test_secrets_declared(self, memory_stores, settings):
        compose = read_compose(compose_generator(memory_stores, settings).generate())

        assert compose["services"]["acme-db"]["secrets"] == [
            {"source": "db_password", "target": "db_password"}
        ]
        assert "secrets" not in compose["services"]["acme-cache"]
        assert compose["secrets"] == {"db_password": {"external": True}}

    def test_secret_gate(self, settings, web_manifest):
        web_manifest.configuration_schema.secrets["api_key"] = SecretSchema(required=True)
        stores = Stores(
            projects=MemoryProjectStore(manifests=[web_manifest]),
            secrets=MemorySecretStore({"unrelated": "x"}),
            environment=MemoryEnvironmentStore(),
        )
        generator = compose_generator(stores, settings)

        with pytest.raises(SecretValidationError) as exc_info:
            generator.generate()

        assert exc_info.value.missing == ["api_key"]
        assert "api_key" in str(exc_info.value)
        assert exc_info.value.category == "validation"
        assert not generator.output_path.exists()

    def test_previous_artifact_untouched_on_failure(self, memory_stores, settings, write_override):
        generator = compose_generator(memory_stores, settings)
        before = generator.generate().read_bytes()

        write_override("docker-compose.yml", "services: [broken\n")
        with pytest.raises(OverrideParseError):
            generator.generate()

        assert generator.output_path.read_bytes() == before

    def test_override_precedence(self, memory_stores, settings, write_override):
        write_override("docker-compose.yml", """
            services:
              acme-db:
                environment:
                  ENV: production
                ports: ["15432:5432"]
        """)
        write_override("docker-compose.yml", """
            services:
              acme-db:
                environment:
                  ENV: development
        """, session="default")

        compose = read_compose(compose_generator(memory_stores, settings).generate())

        db = compose["services"]["acme-db"]
        assert "ENV=development" in db["environment"]
        assert "ENV=production" not in db["environment"]
        assert "POSTGRES_DB=acme" in db["environment"]
        assert db["ports"] == ["15432:5432"]
        assert db["image"] == "postgres:16"

    def test_override_adds_services(self, memory_stores, settings, write_override):
        write_override("docker-compose.yml", """
            services:
              mailhog:
                image: mailhog/mailhog
                ports: ["8025:8025"]
            volumes:
              mail-data: {}
        """)

        compose = read_compose(compose_generator(memory_stores, settings).generate())

        assert set(compose["services"]) == {"workspace", "acme-cache", "acme-db", "mailhog"}
        assert compose["volumes"] == {"workspace-data": None, "mail-data": {}}

    def test_no_active_session(self, settings):
        stores = Stores(
            projects=MemoryProjectStore(active_session=None),
            secrets=MemorySecretStore(),
            environment=MemoryEnvironmentStore(),
        )
        with pytest.raises(CollaboratorUnavailableError, match="no active session"):
            compose_generator(stores, settings).generate()

    def test_manifest_errors_propagate(self, settings):
        stores = Stores(
            projects=BrokenManifestStore(),
            secrets=MemorySecretStore(),
            environment=MemoryEnvironmentStore(),
        )
        with pytest.raises(ManifestLoadError):
            compose_generator(stores, settings).generate()

    def test_persist_failure(self, memory_stores, settings):
        settings.output_path.parent.mkdir(parents=True, exist_ok=True)
        settings.output_path.write_text("not a directory")

        with pytest.raises(PersistenceError) as exc_info:
            compose_generator(memory_stores, settings).generate()
        assert exc_info.value.category == "persistence"

    def test_build_does_not_write(self, memory_stores, settings):
        generator = compose_generator(memory_stores, settings)
        artifact = generator.build()
        assert "acme-db" in artifact["services"]
        assert not generator.output_path.exists()


class TestDevcontainerGeneration:

    def test_generates_descriptor(self, memory_stores, settings):
        path = devcontainer_generator(memory_stores, settings).generate()

        assert path == settings.output_path / "devcontainer.json"
        config = read_devcontainer(path)
        assert config["service"] == "workspace"
        assert config["forwardPorts"] == [6380, 5432]
        assert config["features"]["ghcr.io/devcontainers/features/python:1"]["version"] == "3.11"

    def test_idempotent(self, memory_stores, settings):
        generator = devcontainer_generator(memory_stores, settings)
        assert generator.generate().read_bytes() == generator.generate().read_bytes()

    def test_port_normalization(self, settings):
        manifest = ServiceManifest.model_validate({
            "name": "ports",
            "services": {"web": {"image": "nginx", "ports": ["80", "8080:80", "127.0.0.1:9090:80"]}},
        })
        stores = Stores(
            projects=MemoryProjectStore(manifests=[manifest]),
            secrets=MemorySecretStore(),
            environment=MemoryEnvironmentStore(),
        )

        config = read_devcontainer(devcontainer_generator(stores, settings).generate())

        assert config["forwardPorts"] == [80, 8080, 9090]

    def test_overrides_applied(self, memory_stores, settings, write_override):
        write_override("devcontainer.json", json.dumps({
            "name": "Acme Dev",
            "forwardPorts": [5432, 8000],
            "features": {"ghcr.io/devcontainers/features/python:1": {"version": "3.12"}},
            "customizations": {"vscode": {"extensions": ["ms-python.python"]}},
        }))

        config = read_devcontainer(devcontainer_generator(memory_stores, settings).generate())

        assert config["name"] == "Acme Dev"
        assert config["forwardPorts"] == [6380, 5432, 8000]
        assert config["features"]["ghcr.io/devcontainers/features/python:1"] == {
            "installTools": True,
            "installJupyterlab": False,
            "version": "3.12",
        }
        assert config["customizations"] == {"vscode": {"extensions": ["ms-python.python"]}}
        assert config["remoteUser"] == "root"

    def test_fallback_when_manifests_unreadable(self, settings):
        stores = Stores(
            projects=BrokenManifestStore(),
            secrets=MemorySecretStore(),
            environment=MemoryEnvironmentStore(),
        )

        config = read_devcontainer(devcontainer_generator(stores, settings).generate())

        assert config["features"] == {}
        assert config["forwardPorts"] == []
        assert config["customizations"] == {}

    def test_secret_gate(self, settings, acme_manifest):
        stores = Stores(
            projects=MemoryProjectStore(manifests=[acme_manifest]),
            secrets=MemorySecretStore(),
            environment=MemoryEnvironmentStore(),
        )
        generator = devcontainer_generator(stores, settings)

        with pytest.raises(SecretValidationError) as exc_info:
            generator.generate()
        assert exc_info.value.missing == ["db_password"]
        assert not generator.output_path.exists()


class TestGenerationEvents:

    def test_completed_event(self, memory_stores, settings, caplog):
        caplog.set_level(logging.INFO, logger="stackgen.events")

        compose_generator(memory_stores, settings).generate()

        events = [json.loads(r.getMessage()) for r in caplog.records if r.name == "stackgen.events"]
        assert [e["event"] for e in events] == ["generation.started", "generation.completed"]
        assert events[0]["session"] == "default"
        assert events[0]["manifest_count"] == 1
        assert events[1]["artifact"] == "docker-compose"
        assert events[1]["service_count"] == 3

    def test_failed_event(self, settings, acme_manifest, caplog):
        caplog.set_level(logging.INFO, logger="stackgen.events")
        stores = Stores(
            projects=MemoryProjectStore(manifests=[acme_manifest]),
            secrets=MemorySecretStore(),
            environment=MemoryEnvironmentStore(),
        )

        with pytest.raises(SecretValidationError):
            compose_generator(stores, settings).generate()

        events = [json.loads(r.getMessage()) for r in caplog.records if r.name == "stackgen.events"]
        by_name = {e["event"]: e for e in events}
        assert by_name["secrets.missing"]["missing"] == ["db_password"]
        assert by_name["generation.failed"]["stage"] == "validate"
        assert by_name["generation.failed"]["category"] == "validation"


class TestGeneratorManager:

    def test_generate_all(self, memory_stores, settings):
        paths = GeneratorManager(memory_stores, settings).generate_all()

        assert set(paths) == {ArtifactType.DEVCONTAINER, ArtifactType.DOCKER_COMPOSE}
        for path in paths.values():
            assert path.exists()

    def test_individual_targets(self, memory_stores, settings):
        manager = GeneratorManager(memory_stores, settings)
        assert manager.generate_devcontainer().name == "devcontainer.json"
        assert manager.generate_docker_compose().name == "docker-compose.yml"
        assert manager.get_generator("docker-compose") is manager.docker_compose


class TestFileBackedGeneration:

    def test_end_to_end(self, settings, file_project, add_manifest, write_override, acme_manifest_yaml):
        add_manifest("acme", acme_manifest_yaml)
        stores = get_stores(StorageType.FILE, settings=settings)
        stores.secrets.set_secret("db_password", "hunter2")
        stores.environment.set_variable("TZ", "UTC")
        write_override("docker-compose.yml", """
            services:
              acme-db:
                environment:
                  ENV: development
        """, session="default")

        paths = GeneratorManager(stores, settings).generate_all()

        compose = read_compose(paths[ArtifactType.DOCKER_COMPOSE])
        db_env = compose["services"]["acme-db"]["environment"]
        assert db_env[0] == "TZ=UTC"
        assert "ENV=development" in db_env
        assert compose["secrets"] == {"db_password": {"external": True}}

        config = read_devcontainer(paths[ArtifactType.DEVCONTAINER])
        assert config["forwardPorts"] == [6380, 5432]

    def test_unreadable_manifest(self, settings, file_project, add_manifest):
        add_manifest("broken", "services: [unclosed\n")
        stores = get_stores(StorageType.FILE, settings=settings)

        config = read_devcontainer(DevcontainerGenerator.from_stores(stores, settings).generate())
        assert config["features"] == {}

        with pytest.raises(ManifestLoadError):
            DockerComposeGenerator.from_stores(stores, settings).generate()

    def test_undecodable_manifest(self, settings, file_project, caplog):
        caplog.set_level(logging.INFO, logger="stackgen.events")
        manifests_dir = settings.get_session_path("default") / "manifests"
        manifests_dir.mkdir(parents=True, exist_ok=True)
        (manifests_dir / "latin1.yaml").write_bytes(b"name: caf\xe9\nservices:\n  db:\n    image: \xff\n")
        stores = get_stores(StorageType.FILE, settings=settings)

        config = read_devcontainer(DevcontainerGenerator.from_stores(stores, settings).generate())
        assert config["features"] == {}
        assert config["forwardPorts"] == []

        with pytest.raises(ManifestLoadError):
            DockerComposeGenerator.from_stores(stores, settings).generate()
        events = [json.loads(r.getMessage()) for r in caplog.records if r.name == "stackgen.events"]
        failed = [e for e in events if e["event"] == "generation.failed"]
        assert failed[-1]["stage"] == "collect"
        assert failed[-1]["category"] == "collaborator"

    def test_uninitialized_project(self, settings):
        stores = get_stores(StorageType.FILE, settings=settings)
        with pytest.raises(CollaboratorUnavailableError, match="not a stackgen project"):
            DockerComposeGenerator.from_stores(stores, settings).generate()
