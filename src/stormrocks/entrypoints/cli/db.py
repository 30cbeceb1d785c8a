"""``stormrocks db``: forward-only schema management for the documents table.

Every collection lives in the single ``documents`` table, so the schema only
ever moves forward through the packaged Alembic revisions. There is no
``downgrade`` or ``stamp``. Alembic's own output goes to stdout; notices and
prompts go to stderr.

``heads`` and a plain ``history`` read the packaged scripts and need no
database. Everything else requires ``STORMROCKS_DB_URL`` and checks that the
database answers before doing any work.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

import click
import click_extra as clickx
from alembic import command
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy import func, select, text
from sqlalchemy.exc import ArgumentError, OperationalError

from stormrocks import config
from stormrocks.adapters.db.engine import make_engine
from stormrocks.adapters.document_store.schema import documents

from .helpers import error, sanitize_url, success, warn
from .helpers.db_url import MISSING_DB_URL_MSG

if TYPE_CHECKING:
    from alembic.config import Config
    from sqlalchemy.engine import Engine

__all__ = [
    "CANNOT_CONNECT_MSG",
    "INVALID_URL_FORMAT_MSG",
    "MISSING_DB_URL_MSG",
    "UPGRADE_SCHEMA_INSTRUCTIONS",
    "UPGRADE_SCHEMA_WARNING",
    "SchemaState",
    "SchemaReport",
    "inspect_schema",
    "db",
]

INVALID_URL_FORMAT_MSG = (
    "The value of STORMROCKS_DB_URL is not a valid SQLAlchemy database URL."
)

CANNOT_CONNECT_MSG = (
    "STORMROCKS_DB_URL is set, but the database is not reachable.\n"
    "Please ensure the database is running and the URL is correct."
)

UPGRADE_SCHEMA_WARNING = (
    "This will upgrade the database schema to the latest version.\n"
    "Please ensure you have a backup before proceeding."
)

UPGRADE_SCHEMA_INSTRUCTIONS = "Run 'stormrocks db upgrade' to update the schema."

verbose_option = click.option(
    "--verbose", "-v", is_flag=True, help="Pass Alembic's verbose flag through."
)


def reachable_url() -> str:
    """``STORMROCKS_DB_URL``, once a ``SELECT 1`` against it has succeeded.

    Raises:
        click.ClickException: The URL is unset, malformed or unreachable.
    """
    try:
        url = config.get_db_url()
    except config.DatabaseUrlNotSetError as e:
        raise click.ClickException(MISSING_DB_URL_MSG) from e
    try:
        with make_engine(url).connect() as conn:
            conn.execute(text("SELECT 1"))  # pragma: no mutate
    except ArgumentError as e:
        raise click.ClickException(INVALID_URL_FORMAT_MSG) from e
    except OperationalError as e:
        raise click.ClickException(CANNOT_CONNECT_MSG) from e
    return url


def _alembic(*, with_database: bool) -> Config:
    url = reachable_url() if with_database else None
    return config.build_alembic_config(db_url=url, stdout=sys.stdout)


class SchemaState(Enum):
    """Where a database stands relative to the packaged head revision."""

    UP_TO_DATE = "up to date"
    OUT_OF_DATE = "out of date"
    UNINITIALIZED = "uninitialized"


@dataclass(frozen=True, slots=True)
class SchemaReport:
    """Result of `inspect_schema`.

    ``documents`` maps collection names to row counts and is only filled in
    once the schema is up to date.
    """

    revision: str | None
    state: SchemaState
    documents: dict[str, int] = field(default_factory=dict)

    def describe(self) -> str:
        if self.revision is None:
            return self.state.value
        return f"{self.revision} ({self.state.value})"


def inspect_schema(engine: Engine) -> SchemaReport:
    """Compare ``engine``'s stamped revision with head and count its documents."""
    scripts = ScriptDirectory.from_config(config.build_alembic_config())
    with engine.connect() as conn:
        revision = MigrationContext.configure(conn).get_current_revision()
        if revision is None:
            return SchemaReport(None, SchemaState.UNINITIALIZED)
        if revision not in scripts.get_heads():
            return SchemaReport(revision, SchemaState.OUT_OF_DATE)  # pragma: nocover
        rows = conn.execute(
            select(documents.c.collection, func.count())
            .group_by(documents.c.collection)
            .order_by(documents.c.collection)
        )
        return SchemaReport(revision, SchemaState.UP_TO_DATE, dict(rows.tuples()))


@click.group(cls=clickx.ExtraGroup)
def db() -> None:
    """Manage the documents schema."""


@db.command()
@verbose_option
def current(verbose: bool) -> None:
    """Show the revision the database is at."""
    command.current(_alembic(with_database=True), verbose=verbose)


@db.command()
@verbose_option
def heads(verbose: bool) -> None:
    """Show the newest packaged revision."""
    command.heads(_alembic(with_database=False), verbose=verbose)


@db.command()
@verbose_option
@click.option(
    "--indicate-current",
    "-i",
    is_flag=True,
    help="Mark the revision the database is at (needs STORMROCKS_DB_URL).",
)
def history(verbose: bool, indicate_current: bool) -> None:
    """List the packaged revisions, oldest last."""
    command.history(
        _alembic(with_database=indicate_current),
        verbose=verbose,
        indicate_current=indicate_current,
    )


@db.command()
@click.option("--sql", is_flag=True, help="Print the DDL instead of running it.")
@click.option("--force", is_flag=True, help="Skip the confirmation prompt.")
def upgrade(sql: bool, force: bool) -> None:
    """Bring the database up to the head revision."""
    url = reachable_url()
    cfg = config.build_alembic_config(db_url=url, stdout=sys.stdout)
    if not (force or sql):
        warn(UPGRADE_SCHEMA_WARNING)
        click.secho(f"db: {click.style(sanitize_url(url), underline=True)}")
        click.confirm("Are you sure you want to proceed?", abort=True)
    command.upgrade(cfg, revision="head", sql=sql)
    success("Upgrade complete!")


@db.command()
def status() -> None:
    """Report reachability, schema revision and stored documents."""
    try:
        engine = make_engine(reachable_url())
    except click.ClickException as e:
        error("Cannot connect to database")
        click.echo(e.format_message())
        return

    success("Database reachable")
    click.echo(f"Backend : {engine.dialect.name}")
    click.echo(f"URL     : {sanitize_url(engine.url.render_as_string(hide_password=False))}")  # fmt: skip # pylint: disable=line-too-long
    report = inspect_schema(engine)
    click.echo(f"Schema  : {report.describe()}")

    if report.state is not SchemaState.UP_TO_DATE:
        warn(UPGRADE_SCHEMA_INSTRUCTIONS)
        return
    total = sum(report.documents.values())
    click.echo(f"Documents: {total} in {len(report.documents)} collection(s)")
    for name, count in report.documents.items():
        click.echo(f"  {name}: {count}")
