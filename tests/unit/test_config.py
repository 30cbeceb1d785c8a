"""Unit tests for environment-driven settings."""

from pathlib import Path

import pytest

from stormrocks import config
from stormrocks.config import AppSettings, InvalidSettingError, env_bool, env_int

# pylint: disable=magic-value-comparison


class TestEnvBool:
    """Boolean flags."""

    @staticmethod
    @pytest.mark.parametrize("raw", ["1", "true", "YES", " on "])
    def test_true_values(raw) -> None:
        """Common spellings of "yes" are accepted."""
        assert env_bool({"FLAG": raw}, "FLAG", False) is True

    @staticmethod
    @pytest.mark.parametrize("raw", ["0", "false", "No", "off", ""])
    def test_false_values(raw) -> None:
        """Common spellings of "no" (and blank) are accepted."""
        assert env_bool({"FLAG": raw}, "FLAG", True) is False

    @staticmethod
    def test_missing_uses_default() -> None:
        """An unset flag falls back to the default."""
        assert env_bool({}, "FLAG", True) is True

    @staticmethod
    def test_garbage_raises() -> None:
        """Anything else is rejected with the variable name in the message."""
        with pytest.raises(InvalidSettingError) as excinfo:
            env_bool({"FLAG": "maybe"}, "FLAG", False)
        assert excinfo.value.name == "FLAG"
        assert str(excinfo.value) == "FLAG='maybe' is not a valid boolean."


class TestEnvInt:
    """Integer settings."""

    @staticmethod
    @pytest.mark.parametrize(("environ", "expected"), [({}, 7), ({"N": " "}, 7), ({"N": "42"}, 42)])  # fmt: skip # pylint: disable=line-too-long
    def test_values(environ, expected) -> None:
        """Blank or missing values use the default."""
        assert env_int(environ, "N", 7) == expected

    @staticmethod
    def test_garbage_raises() -> None:
        """Non-numeric values are rejected."""
        with pytest.raises(InvalidSettingError, match="integer"):
            env_int({"N": "ten"}, "N", 0)


class TestAppSettings:
    """Building settings from the environment."""

    @staticmethod
    def test_defaults(tmp_path) -> None:
        """An empty environment yields the documented defaults."""
        settings = AppSettings.from_env({"STORMROCKS_CACHE_DIR": str(tmp_path)})

        assert settings.bootstrap_data is True
        assert settings.product_name == "stormrocks"
        assert settings.server_fqdn == "localhost"
        assert settings.version_numeric == 0
        assert settings.release_mode == "development"
        assert settings.is_development
        assert settings.log_join_queries is False
        assert settings.join_recursion_limit == 5
        assert settings.dump_import_command is None
        assert settings.cache_dir == tmp_path

    @staticmethod
    def test_overrides(tmp_path) -> None:
        """Every variable maps onto its setting."""
        settings = AppSettings.from_env(
            {
                "STORMROCKS_BOOTSTRAP_DATA": "off",
                "STORMROCKS_PRODUCT_NAME": "Acme",
                "STORMROCKS_SERVER_FQDN": "acme.example.com",
                "STORMROCKS_VERSION_NUMERIC": "12",
                "STORMROCKS_RELEASE_MODE": "production",
                "STORMROCKS_LOG_JOIN_QUERIES": "yes",
                "STORMROCKS_APP_LOCATION": str(tmp_path),
                "STORMROCKS_CACHE_DIR": str(tmp_path / "cache"),
                "STORMROCKS_JOIN_RECURSION_LIMIT": "3",
                "STORMROCKS_DUMP_IMPORT_COMMAND": "mongoimport {file}",
            }
        )

        assert settings.bootstrap_data is False
        assert settings.product_name == "Acme"
        assert settings.server_fqdn == "acme.example.com"
        assert settings.version_numeric == 12
        assert not settings.is_development
        assert settings.log_join_queries is True
        assert settings.seed_root == tmp_path / "db" / "bootstrap"
        assert settings.join_recursion_limit == 3
        assert settings.dump_import_command == "mongoimport {file}"

    @staticmethod
    def test_reads_os_environ(monkeypatch) -> None:
        """Without an explicit mapping, os.environ is used."""
        monkeypatch.setenv("STORMROCKS_PRODUCT_NAME", "FromEnv")
        assert AppSettings.from_env().product_name == "FromEnv"

    @staticmethod
    def test_default_app_location_is_cwd(monkeypatch, tmp_path) -> None:
        """Seeds are looked up under the working directory by default."""
        monkeypatch.chdir(tmp_path)
        assert AppSettings.from_env({}).seed_root == Path(tmp_path) / "db" / "bootstrap"


def test_get_db_url(monkeypatch) -> None:
    """The URL comes from STORMROCKS_DB_URL."""
    monkeypatch.setenv("STORMROCKS_DB_URL", "sqlite:///x.db")
    assert config.get_db_url() == "sqlite:///x.db"


def test_get_db_url_missing() -> None:
    """An unset URL raises DatabaseUrlNotSetError."""
    with pytest.raises(config.DatabaseUrlNotSetError):
        config.get_db_url()


def test_build_alembic_config() -> None:
    """The config points at the packaged migrations and carries the URL."""
    cfg = config.build_alembic_config("sqlite:///x.db")

    assert cfg.get_main_option("sqlalchemy.url") == "sqlite:///x.db"
    location = Path(cfg.get_main_option("script_location"))
    assert location.name == "alembic"
    assert (location / "env.py").is_file()


def test_build_alembic_config_without_url() -> None:
    """A URL is optional for offline Alembic commands."""
    assert config.build_alembic_config().get_main_option("sqlalchemy.url") is None
