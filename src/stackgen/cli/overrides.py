"""stackgen CLI - Override inspection."""

import click

from stackgen.models.overrides import ArtifactType
from stackgen.overrides.store import OverrideStore
from stackgen.storage import FileProjectStore
from stackgen.utils.fileops import dump_json, dump_yaml

from ._common import handle_errors


@click.group()
def overrides():
    """Inspect override documents."""
    pass


@overrides.command("show")
@click.argument(
    "artifact",
    type=click.Choice([ArtifactType.DEVCONTAINER.value, ArtifactType.DOCKER_COMPOSE.value]),
)
@click.pass_obj
@handle_errors
def overrides_show(settings, artifact: str):
    """Show the merged (session over project) override for an artifact."""
    active = FileProjectStore(settings).get_active_session()
    store = OverrideStore(
        settings.get_project_config_path(),
        settings.get_session_config_path(active.name if active else None),
    )
    document = store.get_overrides(ArtifactType(artifact))
    if document.is_empty():
        click.echo("No overrides.")
        return

    config = document.to_config()
    if ArtifactType(artifact) is ArtifactType.DEVCONTAINER:
        click.echo(dump_json(config), nl=False)
    else:
        click.echo(dump_yaml(config), nl=False)
