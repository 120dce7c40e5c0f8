"""stackgen CLI - Session commands."""

import click

from stackgen.storage import FileProjectStore

from ._common import handle_errors


@click.group()
def session():
    """Create, activate and inspect sessions."""
    pass


@session.command("create")
@click.argument("name")
@click.option("--activate", is_flag=True, help="Make the new session active")
@click.pass_obj
@handle_errors
def session_create(settings, name: str, activate: bool):
    """Create a session."""
    store = FileProjectStore(settings)
    created = store.create_session(name)
    click.echo(f"Created session {name} at {created.path}")
    if activate:
        store.set_active_session(name)
        click.echo(f"Activated session {name}")


@session.command("activate")
@click.argument("name")
@click.pass_obj
@handle_errors
def session_activate(settings, name: str):
    """Make an existing session the active one."""
    FileProjectStore(settings).set_active_session(name)
    click.echo(f"Activated session {name}")


@session.command("show")
@click.pass_obj
@handle_errors
def session_show(settings):
    """Show the active session and its manifests."""
    store = FileProjectStore(settings)
    active = store.get_active_session()
    if active is None:
        click.echo("No active session.")
        return

    manifests = store.list_manifests(active)
    click.echo(f"Active session: {active.name}")
    if not manifests:
        click.echo("  No manifests installed.")
    for name in sorted(manifests):
        manifest = manifests[name]
        services = ", ".join(manifest.all_services()) or "-"
        click.echo(f"  {name} {manifest.version or ''}".rstrip() + f"  services: {services}")
