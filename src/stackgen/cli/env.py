"""stackgen CLI - Project environment variable commands."""

import click

from stackgen.storage import FileEnvironmentStore

from ._common import handle_errors


@click.group()
def env():
    """Manage environment variables added to every generated service."""
    pass


@env.command("set")
@click.argument("key")
@click.argument("value")
@click.pass_obj
@handle_errors
def env_set(settings, key: str, value: str):
    """Set a project environment variable."""
    FileEnvironmentStore(settings).set_variable(key, value)
    click.echo(f"Set {key}")


@env.command("list")
@click.pass_obj
@handle_errors
def env_list(settings):
    """List project environment variables."""
    variables = FileEnvironmentStore(settings).get_environment()
    if not variables:
        click.echo("No environment variables set.")
    for key in sorted(variables):
        click.echo(f"{key}={variables[key]}")


@env.command("unset")
@click.argument("key")
@click.pass_obj
@handle_errors
def env_unset(settings, key: str):
    """Remove a project environment variable."""
    try:
        FileEnvironmentStore(settings).delete_variable(key)
    except KeyError:
        raise click.ClickException(f"environment variable {key} is not set")
    click.echo(f"Unset {key}")
