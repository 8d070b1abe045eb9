"""Tests for environment-driven configuration."""

import pytest

from podsync.config import Config


@pytest.fixture
def clean_env(monkeypatch):
    for name in (
        "DATABASE_URL",
        "DB_POOL_SIZE",
        "DB_MAX_OVERFLOW",
        "DB_ECHO",
        "ALLOWED_ORIGINS",
        "RATE_LIMIT",
        "PORT",
        "LOG_LEVEL",
        "ADMIN_USERNAME",
    ):
        monkeypatch.delenv(name, raising=False)
    # Keep a developer's .env out of the picture
    monkeypatch.setattr("podsync.config.load_dotenv", lambda *args, **kwargs: None)
    return monkeypatch


class TestConfig:
    """Tests for Config."""

    def test_defaults(self, clean_env):
        config = Config()

        assert config.DATABASE_URL == "sqlite:///./podsync.db"
        assert config.DB_POOL_SIZE == 5
        assert config.DB_MAX_OVERFLOW == 10
        assert config.DB_ECHO is False
        assert config.WEB_PORT == 8080
        assert config.WEB_RATE_LIMIT == "60/minute"
        assert config.LOG_LEVEL == "INFO"
        assert config.ADMIN_USERNAME is None

    def test_environment_overrides(self, clean_env):
        clean_env.setenv("DATABASE_URL", "postgresql://u:p@db:5432/podsync")
        clean_env.setenv("DB_ECHO", "TRUE")
        clean_env.setenv("PORT", "9000")
        clean_env.setenv("LOG_LEVEL", "debug")
        clean_env.setenv("ADMIN_USERNAME", "admin")

        config = Config()

        assert config.DB_ECHO is True
        assert config.WEB_PORT == 9000
        assert config.LOG_LEVEL == "DEBUG"
        assert config.ADMIN_USERNAME == "admin"

    def test_database_location_hides_credentials(self, clean_env):
        clean_env.setenv("DATABASE_URL", "postgresql://u:secret@db:5432/podsync")

        assert Config().database_location == "...@db:5432/podsync"

    def test_invalid_port(self, clean_env):
        clean_env.setenv("PORT", "70000")

        with pytest.raises(ValueError) as exc_info:
            Config()
        assert "PORT" in str(exc_info.value)

    def test_empty_database_url(self, clean_env):
        clean_env.setenv("DATABASE_URL", "")

        with pytest.raises(ValueError):
            Config()

    def test_env_file(self, clean_env):
        calls = []
        clean_env.setattr("podsync.config.load_dotenv", lambda *args: calls.append(args))

        Config(env_file="/etc/podsync.env")

        assert calls == [("/etc/podsync.env",)]
