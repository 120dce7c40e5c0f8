"""
stackgen CLI - Generate devcontainer and docker-compose files from manifests.

Commands:
    stackgen init        Initialize a project in the current directory
    stackgen generate    Generate devcontainer.json and/or docker-compose.yml
    stackgen session     Create, activate and inspect sessions
    stackgen secrets     Configure secrets and list required ones
    stackgen env         Manage project-wide environment variables
    stackgen overrides   Show merged override documents
"""

from typing import Optional

import click

from stackgen import __version__
from stackgen.config import get_config
from stackgen.logger import configure_logging

from .core import generate, init
from .env import env
from .overrides import overrides
from .secrets import secrets
from .session import session


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--project-dir", "-C",
    envvar="STACKGEN_PROJECT_DIR",
    type=click.Path(file_okay=False),
    help="Project root (default: current directory)",
)
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"]),
    help="Logging level",
)
@click.pass_context
def main(ctx: click.Context, project_dir: Optional[str], log_level: Optional[str]):
    """stackgen - Development environments from service manifests."""
    config_overrides = {}
    if project_dir:
        config_overrides["project_dir"] = project_dir
    if log_level:
        config_overrides["log_level"] = log_level
    settings = get_config(**config_overrides)
    configure_logging(settings.log_level, settings.log_format)
    ctx.obj = settings


# Register standalone commands
main.add_command(init)
main.add_command(generate)

# Register command groups
main.add_command(session)
main.add_command(secrets)
main.add_command(env)
main.add_command(overrides)


if __name__ == "__main__":
    main()
