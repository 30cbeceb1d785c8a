"""Global pytest fixtures for StormRocks."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine


pytest_plugins = [
    "tests.fixtures.sqlite",
    "tests.fixtures.datagen",
]


# Helper to route to an existing engine fixture by name
@pytest.fixture
def engine(request: pytest.FixtureRequest) -> Engine:
    """Indirection fixture to parametrize over engine-providing fixtures.

    Example:
        ```py
        @pytest.mark.parametrize("engine", ["sqlite_engine_memory", "sqlite_engine_file"], indirect=True)
        def test_something(engine): ...
        ```
    """
    return request.getfixturevalue(request.param)


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path_factory) -> None:
    """Keep tests away from the developer's STORMROCKS_* settings and caches."""
    for name in (
        "STORMROCKS_DB_URL",
        "STORMROCKS_BOOTSTRAP_DATA",
        "STORMROCKS_PRODUCT_NAME",
        "STORMROCKS_SERVER_FQDN",
        "STORMROCKS_VERSION_NUMERIC",
        "STORMROCKS_RELEASE_MODE",
        "STORMROCKS_LOG_JOIN_QUERIES",
        "STORMROCKS_APP_LOCATION",
        "STORMROCKS_JOIN_RECURSION_LIMIT",
        "STORMROCKS_DUMP_IMPORT_COMMAND",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv(
        "STORMROCKS_CACHE_DIR", str(tmp_path_factory.mktemp("seed-cache"))
    )
