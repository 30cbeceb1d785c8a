"""Fixtures for end-to-end CLI tests.

`log-demo` is a test-only command that logs one line per level from a project
logger and a few from a third-party logger, so the logging options of the
top-level group can be observed without seeding anything.
"""

import logging

import click
import pytest
from click.testing import CliRunner

from stormrocks.entrypoints.cli.main import stormrocks

# pylint: disable=redefined-outer-name

PROJECT_LOGGER = "stormrocks.demo"
THIRD_PARTY_LOGGER = "some.thirdparty"


@click.command()
def log_demo():
    """Log a line at every level from a project and a third-party logger."""
    project = logging.getLogger(PROJECT_LOGGER)
    third_party = logging.getLogger(THIRD_PARTY_LOGGER)
    for level in ("debug", "info", "warning", "error", "critical"):
        getattr(project, level)("demo %s line", level)
    for level in ("debug", "info", "warning"):
        getattr(third_party, level)("third-party %s line", level)
    project.debug("demo trailing debug line")


@pytest.fixture
def registered_log_demo():
    """Attach `log-demo` to the `stormrocks` group for one test."""
    stormrocks.add_command(log_demo, name="log-demo")
    try:
        yield
    finally:
        stormrocks.commands.pop("log-demo", None)
        for section in getattr(stormrocks, "_sections", []):
            getattr(section, "commands", {}).pop("log-demo", None)
        default = getattr(stormrocks, "_default_section", None)
        if default is not None:
            default.commands.pop("log-demo", None)


@pytest.fixture
def runner():
    """Click test runner."""
    return CliRunner()


@pytest.fixture
def fs(runner):
    """Run the test inside a fresh working directory.

    The default seed root is ``./db/bootstrap``, so this also keeps seed
    files written by one test away from the next.
    """
    with runner.isolated_filesystem():
        yield
