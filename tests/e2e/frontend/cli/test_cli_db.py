"""End-to-end tests for the ``stormrocks db`` subcommands on SQLite.

Walks the onboarding flow a new user takes: checking heads, hitting the missing
URL error, inspecting status, upgrading and confirming the current revision.
"""

import re

import pytest

from stormrocks.entrypoints.cli.db import (
    CANNOT_CONNECT_MSG,
    INVALID_URL_FORMAT_MSG,
    MISSING_DB_URL_MSG,
    UPGRADE_SCHEMA_INSTRUCTIONS,
    UPGRADE_SCHEMA_WARNING,
)
from stormrocks.entrypoints.cli.main import stormrocks

# pylint: disable=magic-value-comparison

BASE_REVISION = "3c1f0a9e5d27"
REV_RE = re.compile(r"\b[0-9a-f]{12,}\b")  # Alembic rev ids are 12+ hex chars


def _revs(text: str) -> set[str]:
    """Extract unique Alembic revision identifiers from ``text``."""
    return set(REV_RE.findall(text))


@pytest.mark.parametrize(
    "cmd",
    [["db", "current"], ["db", "history", "-i"], ["db", "upgrade"]],
)
def test_db_no_url(runner, cmd):
    """db commands requiring a connection error out if STORMROCKS_DB_URL is not set."""
    result = runner.invoke(stormrocks, cmd, env={"STORMROCKS_DB_URL": ""})
    assert result.exit_code == 1
    assert MISSING_DB_URL_MSG in result.output


def test_db_heads_needs_no_url(runner):
    """Heads are read from the packaged scripts alone."""
    result = runner.invoke(stormrocks, ["db", "heads"])
    assert result.exit_code == 0, result.output
    assert BASE_REVISION in _revs(result.output)


def test_invalid_url(runner):
    """A malformed URL is reported as such."""
    result = runner.invoke(
        stormrocks, ["db", "current"], env={"STORMROCKS_DB_URL": "not a url"}
    )
    assert result.exit_code == 1
    assert INVALID_URL_FORMAT_MSG in result.output


def test_unreachable_database(runner, tmp_path):
    """A database that cannot be opened is reported as unreachable."""
    url = f"sqlite:///{tmp_path / 'missing' / 'dir' / 'x.db'}"
    result = runner.invoke(stormrocks, ["db", "current"], env={"STORMROCKS_DB_URL": url})
    assert result.exit_code == 1
    assert CANNOT_CONNECT_MSG in result.output


def test_new_user_initial_db_setup(runner, sqlite_url):
    """A new user inspects, upgrades and verifies a fresh SQLite database."""
    env = {"STORMROCKS_DB_URL": sqlite_url}

    # status on an empty database: reachable but uninitialized
    result = runner.invoke(stormrocks, ["db", "status"], env=env)
    assert result.exit_code == 0, result.output
    assert "Database reachable" in result.output
    assert "Backend : sqlite" in result.output
    assert "Schema  : uninitialized" in result.output
    assert UPGRADE_SCHEMA_INSTRUCTIONS in result.output

    # nothing applied yet
    result = runner.invoke(stormrocks, ["db", "current"], env=env)
    assert result.exit_code == 0, result.output
    assert not _revs(result.output)

    # --sql prints DDL without touching the database
    result = runner.invoke(stormrocks, ["db", "upgrade", "--sql"], env=env)
    assert result.exit_code == 0, result.output
    assert "CREATE TABLE documents" in result.output

    # declining the prompt aborts
    result = runner.invoke(stormrocks, ["db", "upgrade"], env=env, input="n\n")
    assert result.exit_code == 1
    assert UPGRADE_SCHEMA_WARNING in result.output

    # confirming applies the migrations
    result = runner.invoke(stormrocks, ["db", "upgrade"], env=env, input="y\n")
    assert result.exit_code == 0, result.output
    assert "Upgrade complete!" in result.output

    result = runner.invoke(stormrocks, ["db", "current"], env=env)
    assert result.exit_code == 0, result.output
    assert BASE_REVISION in _revs(result.output)

    result = runner.invoke(stormrocks, ["db", "history", "-i"], env=env)
    assert result.exit_code == 0, result.output
    assert "(current)" in result.output

    result = runner.invoke(stormrocks, ["db", "status"], env=env)
    assert result.exit_code == 0, result.output
    assert f"Schema  : {BASE_REVISION} (up to date)" in result.output
    assert UPGRADE_SCHEMA_INSTRUCTIONS not in result.output
    assert "Documents: 0 in 0 collection(s)" in result.output


def test_status_counts_documents(runner, fs, sqlite_engine_file, sqlite_url):
    """Once seeded, status lists the stored documents per collection."""
    env = {"STORMROCKS_DB_URL": sqlite_url}
    seeded = runner.invoke(stormrocks, ["seed", "Users", "Accounts"], env=env)
    assert seeded.exit_code == 0, seeded.output

    result = runner.invoke(stormrocks, ["db", "status"], env=env)

    assert result.exit_code == 0, result.output
    assert "Documents: 4 in 2 collection(s)" in result.output
    assert "  Accounts: 1" in result.output
    assert "  Users: 3" in result.output
