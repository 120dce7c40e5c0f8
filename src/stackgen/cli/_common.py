"""Shared helpers for CLI commands."""

import functools

import click

from stackgen.config import StackGenConfig
from stackgen.errors import GenerationError, SecretNotConfiguredError
from stackgen.storage import Stores, StorageType, get_stores


def handle_errors(func):
    """Turn domain errors into ``click.ClickException`` with a clean message."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except GenerationError as e:
            raise click.ClickException(str(e)) from e
        except SecretNotConfiguredError as e:
            raise click.ClickException(str(e)) from e
        except ValueError as e:
            raise click.ClickException(str(e)) from e
    return wrapper


def file_stores(settings: StackGenConfig) -> Stores:
    return get_stores(StorageType.FILE, settings=settings)
