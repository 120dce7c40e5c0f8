"""stackgen CLI - Core commands (init, generate)."""

import click

from stackgen.models.overrides import ArtifactType
from stackgen.storage import DEFAULT_SESSION_NAME, FileProjectStore

from ._common import file_stores, handle_errors


@click.command()
@click.option("--session", "-s", "session_name", default=DEFAULT_SESSION_NAME, help="Name of the first session")
@click.pass_obj
@handle_errors
def init(settings, session_name: str):
    """Initialize a stackgen project in the project directory."""
    project = FileProjectStore(settings).init_project(session_name)
    click.echo(f"Initialized stackgen project in {settings.state_path}")
    click.echo(f"  Active session: {project.active_session}")
    click.echo(f"  Add manifests to: {settings.get_session_path(session_name) / 'manifests'}")


@click.command()
@click.argument(
    "target",
    type=click.Choice(["all", ArtifactType.DEVCONTAINER.value, ArtifactType.DOCKER_COMPOSE.value]),
    default="all",
)
@click.option("--dry-run", is_flag=True, help="Print the generated artifact instead of writing it")
@click.pass_obj
@handle_errors
def generate(settings, target: str, dry_run: bool):
    """Generate devcontainer.json and/or docker-compose.yml.

    Examples:

        stackgen generate

        stackgen generate docker-compose --dry-run
    """
    from stackgen.generators import GeneratorManager

    manager = GeneratorManager(file_stores(settings), settings)
    if target == "all":
        targets = [ArtifactType.DEVCONTAINER, ArtifactType.DOCKER_COMPOSE]
    else:
        targets = [ArtifactType(target)]

    for artifact_type in targets:
        generator = manager.get_generator(artifact_type)
        if dry_run:
            click.echo(f"# {generator.output_path}")
            click.echo(generator.render(generator.build()), nl=False)
            continue
        path = generator.generate()
        click.echo(f"Generated {artifact_type.value}: {path}")
