"""stackgen CLI - Secret commands."""

import json

import click

from stackgen.secrets.scanner import required_secrets_by_reference
from stackgen.storage import FileProjectStore, FileSecretStore

from ._common import handle_errors


@click.group()
def secrets():
    """Configure secrets and list the ones manifests need."""
    pass


@secrets.command("set")
@click.argument("name")
@click.argument("value")
@click.pass_obj
@handle_errors
def secrets_set(settings, name: str, value: str):
    """Configure a secret value."""
    FileSecretStore(settings).set_secret(name, value)
    click.echo(f"Secret {name} configured")


@secrets.command("unset")
@click.argument("name")
@click.pass_obj
@handle_errors
def secrets_unset(settings, name: str):
    """Remove a configured secret."""
    FileSecretStore(settings).delete_secret(name)
    click.echo(f"Secret {name} removed")


@secrets.command("list")
@click.pass_obj
@handle_errors
def secrets_list(settings):
    """List configured secret names (values are never shown)."""
    names = sorted(FileSecretStore(settings).configured_secrets())
    if not names:
        click.echo("No secrets configured.")
    for name in names:
        click.echo(name)


@secrets.command("required")
@click.option("--format", "output_format", type=click.Choice(["table", "json"]), default="table")
@click.pass_obj
@handle_errors
def secrets_required(settings, output_format: str):
    """List secrets the active session's manifests require or reference."""
    projects = FileProjectStore(settings)
    active = projects.get_active_session()
    if active is None:
        raise click.ClickException("no active session")

    manifests = projects.list_manifests(active)
    by_schema = set()
    for manifest in manifests.values():
        by_schema.update(manifest.required_secret_names())
    names = required_secrets_by_reference(manifests, settings.secrets_mount_prefix)
    configured = FileSecretStore(settings).configured_secrets()

    rows = [
        {"name": name, "required": name in by_schema, "configured": name in configured}
        for name in names
    ]
    if output_format == "json":
        click.echo(json.dumps(rows, indent=2))
        return

    if not rows:
        click.echo("No secrets required.")
    for row in rows:
        status = "configured" if row["configured"] else "MISSING"
        kind = "required" if row["required"] else "referenced"
        click.echo(f"{row['name']:<30} {kind:<12} {status}")
