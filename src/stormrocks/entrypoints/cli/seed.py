"""StormRocks seed command: run the bootstrap pipeline in the foreground.

Seeds every collection (or only the ones named) from the seed directories under
``$STORMROCKS_APP_LOCATION/db/bootstrap`` and the payloads embedded in the
package, then prints one line per collection.

Examples
    $ stormrocks seed
    $ stormrocks seed Users Accounts
    $ stormrocks seed --in-memory      # dry run against a throwaway store
"""

from __future__ import annotations

import click

from stormrocks.service_layer.errors import UnknownCollectionError
from stormrocks.service_layer.seeding import SeedReport

from .helpers import error, success, warn
from .helpers.app import open_container, resolve_db_url


def describe(report: SeedReport) -> str:
    """One-line summary of a seed report."""
    parts = [
        f"{report.applied}/{report.candidates} applied",
        f"{len(report.skipped)} gated",
        f"{len(report.deleted)} deleted",
        f"{report.skipped_payloads} payload(s) unchanged",
    ]
    if report.dump_imported:
        parts.append("dump imported")
    if report.failures:
        parts.append(f"{len(report.failures)} failed")
    return f"{report.collection}: " + ", ".join(parts)


@click.command()
@click.argument("collections", nargs=-1)
@click.option(
    "--in-memory",
    is_flag=True,
    help="Seed a throwaway in-memory store instead of STORMROCKS_DB_URL.",
)
@click.option(
    "--show-skipped",
    is_flag=True,
    help="List records left out by the deployment gates, with their reasons.",
)
def seed(collections: tuple[str, ...], in_memory: bool, show_skipped: bool) -> None:
    """Seed collections from the bootstrap data (all when none are named)."""
    container = open_container(resolve_db_url(in_memory))
    try:
        reports = container.seed_now(collections)
    except UnknownCollectionError as e:
        raise click.ClickException(str(e)) from e
    finally:
        container.shutdown()

    failed = False
    for report in reports:
        if report.aborted is not None:
            warn(f"{report.collection}: not seeded ({report.aborted})")
            failed = failed or report.aborted != "seeding disabled"
        elif report.failures:
            error(describe(report))
            failed = True
        else:
            success(describe(report))
        if show_skipped:
            for record_id, reasons in report.skipped.items():
                click.echo(f"    {record_id}: {', '.join(reasons)}")

    if failed:
        raise click.ClickException("Seeding finished with errors; see the log.")
