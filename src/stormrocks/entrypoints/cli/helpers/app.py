"""Build the application container for a CLI command."""

from __future__ import annotations

import click

from stormrocks import config
from stormrocks.bootstrap import AppContainer, bootstrap
from stormrocks.config import AppSettings, InvalidSettingError

from .db_url import MISSING_DB_URL_MSG


def load_settings() -> AppSettings:
    """Read `AppSettings` from the environment.

    Raises:
        click.ClickException: If a variable holds an unusable value.
    """
    try:
        return AppSettings.from_env()
    except InvalidSettingError as e:
        raise click.ClickException(str(e)) from e


def open_container(db_url: str | None) -> AppContainer:
    """Wire the application without starting background seeding.

    Args:
        db_url: Database URL, or None for a throwaway in-memory store.
    """
    return bootstrap(load_settings(), db_url, start_seeding=False)


def resolve_db_url(in_memory: bool) -> str | None:
    """``STORMROCKS_DB_URL`` unless ``in_memory`` was requested."""
    if in_memory:
        return None
    try:
        return config.get_db_url()
    except config.DatabaseUrlNotSetError as e:
        raise click.ClickException(MISSING_DB_URL_MSG) from e
