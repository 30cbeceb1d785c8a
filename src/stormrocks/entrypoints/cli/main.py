"""StormRocks CLI entry point.

Defines the top-level ``stormrocks`` command (via Click-Extra) and registers
the subcommands exposed by the project.

Currently available commands
- ``stormrocks db``: forward-only database management (upgrade/current/heads/history/status).
- ``stormrocks seed``: run the bootstrap pipeline in the foreground.
- ``stormrocks get``: print one entity, with its joins, as JSON.

Notes
- The CLI version is sourced from `stormrocks.__version__` and displayed
  automatically by Click-Extra (``--version``).

Examples
    $ stormrocks --version
    $ stormrocks db upgrade
    $ stormrocks seed Users
    $ stormrocks get Users 5a0c... --join Account.LastUpdateUser
"""

import logging
from pathlib import Path
from typing import TYPE_CHECKING

import click
import click_extra as clickx
from platformdirs import user_log_dir

from stormrocks import __version__
from stormrocks.logging import (
    config_console_handler,
    config_flight_recorder,
    configure_join_logging,
    log_startup,
)

from .db import db as db_group
from .get import get as get_command
from .helpers import hyperlink
from .helpers.log_level_parser import parse_log_level
from .seed import seed as seed_command

if TYPE_CHECKING:
    from logging import Handler

logger = logging.getLogger(__name__)


HELP = """STORMROCKS command-line interface.

    StormRocks keeps accounts, users, roles and server settings in a document
    store. Collections are seeded from versioned bootstrap payloads at start-up,
    and related records are hydrated on read by following declared relations.
    """


EPILOG = "\b\n" + "\n".join(
    [
        f"{click.style('See Also:', fg='blue', bold=True, underline=True)}",
        "  Migrations: " + hyperlink("https://alembic.sqlalchemy.org/", "Alembic"),
    ]
)


@clickx.extra_group(
    version=__version__,
    help=HELP,
    params=[
        clickx.ColorOption(show_envvar=True),
        clickx.TimerOption(show_envvar=True),
        clickx.ExtraVersionOption(),
    ],
    epilog=EPILOG,
)
@click.option(
    "--verbose",
    "-v",
    "verbose_count",
    count=True,
    help=(
        "Show more console output. Each repetition lowers the "
        "console threshold one level below WARNING."
    ),
    default=0,
)
@click.option(
    "--quiet",
    "-q",
    "quiet_count",
    count=True,
    help=(
        "Show less console output. Each repetition raises the "
        "console threshold one level above WARNING."
    ),
    default=0,
)
@click.option(
    "--debug/--no-debug",
    is_flag=True,
    help="Log everything to the console with timestamps and source paths.",
    default=False,
)
@click.option(
    "--log-path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="File the flight recorder writes to.",
    default=Path(user_log_dir("stormrocks", appauthor=False, ensure_exists=True))
    / "latest.log",
    envvar="STORMROCKS_LOG_PATH",
    show_default=True,
    show_envvar=True,
)
@click.option(
    "--flight-recorder-capacity",
    type=int,
    default=2000,
    hidden=True,
    envvar="STORMROCKS_FLIGHT_RECORDER_CAPACITY",
    show_envvar=True,
    help="Number of log records the flight recorder keeps.",
)
@click.option(
    "--flight-recorder/--no-flight-recorder",
    "flight_recorder",
    is_flag=True,
    help=(
        "Buffer recent DEBUG records in memory and write them to --log-path "
        "when a WARNING or worse is logged. The buffer ignores -v/-q. "
        "Turn off with --no-flight-recorder."
    ),
    default=True,
    show_envvar=True,
)
@click.option(
    "--force-flush/--no-force-flush",
    "force_flush_flight_recorder",
    is_flag=True,
    help=(
        "Also write the flight recorder buffer to --log-path when the "
        "command finishes without a warning."
    ),
    default=False,
    show_default=True,
    show_envvar=True,
)
@click.option(
    "--log-joins/--no-log-joins",
    "log_joins",
    is_flag=True,
    help=(
        "Log every join step (relation, lookup id, remaining path, budget) at "
        "DEBUG. Also enabled by STORMROCKS_LOG_JOIN_QUERIES."
    ),
    default=False,
    show_envvar=True,
)
@click.option(
    "-L",
    "--logger-level",
    "logger_levels",
    multiple=True,  # repeatable option
    callback=parse_log_level,
    help=(
        "Minimum level for a named logger, as NAME=LEVEL. Applies to the "
        "console and the flight recorder alike. Repeat the option, or list "
        "pairs in STORMROCKS_LOGGER_LEVEL separated by commas or spaces."
    ),
    default=("sqlalchemy=WARNING", "alembic=WARNING"),
    show_default=True,
    show_envvar=True,
)
@clickx.pass_context
def stormrocks(  # pylint: disable=too-many-arguments, too-many-locals, too-many-positional-arguments
    ctx: click.Context,
    verbose_count: int,
    quiet_count: int,
    debug: bool,
    log_path: Path,
    flight_recorder_capacity: int,
    flight_recorder: bool,
    force_flush_flight_recorder: bool,
    log_joins: bool,
    logger_levels: dict[str, int],
) -> None:
    """STORMROCKS command-line interface."""
    level = console_level(verbose_count, quiet_count)
    handlers = _install_handlers(
        level=level,
        debug=debug,
        color=ctx.color is not False,
        log_path=log_path if flight_recorder else None,
        capacity=flight_recorder_capacity,
        force_flush=force_flush_flight_recorder,
    )

    for name, lvl in logger_levels.items():
        logging.getLogger(name).setLevel(lvl)
    if log_joins:
        configure_join_logging(True)
    # subcommands read this to switch on resolver tracing
    ctx.ensure_object(dict)["log_joins"] = log_joins

    log_startup(
        logger,
        app_version=__version__,
        level=level,
        handlers=handlers,
        log_path=log_path,
        flight_recorder=flight_recorder,
        flight_capacity=flight_recorder_capacity if flight_recorder else None,
        force_flush_fr=force_flush_flight_recorder,
        logger_levels=logger_levels,
    )

    # flushes the flight recorder once the subcommand has returned
    ctx.call_on_close(logging.shutdown)


def console_level(verbose_count: int, quiet_count: int) -> int:
    """Console level: WARNING, moved one step per ``-v`` (down) or ``-q`` (up)."""
    level = logging.WARNING + 10 * (quiet_count - verbose_count)
    return max(logging.DEBUG, min(logging.CRITICAL, level))


def _install_handlers(  # pylint: disable=too-many-arguments
    *,
    level: int,
    debug: bool,
    color: bool,
    log_path: Path | None,
    capacity: int,
    force_flush: bool,
) -> list["Handler"]:
    """Replace the root logger's handlers with the console and recorder pair.

    The root logger itself stays at DEBUG; each handler applies its own level.
    """
    handlers: list[Handler] = [
        config_console_handler(level=level, debug_mode=debug, color=color)
    ]
    if log_path is not None:
        handlers.append(
            config_flight_recorder(
                path=log_path, capacity=capacity, flush_on_close=force_flush
            )
        )
    logging.basicConfig(level=logging.DEBUG, handlers=handlers, force=True)
    return handlers


stormrocks.add_command(db_group)
stormrocks.add_command(seed_command)
stormrocks.add_command(get_command)
