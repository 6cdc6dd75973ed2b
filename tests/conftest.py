"""Pytest configuration and common fixtures."""

import sys
from pathlib import Path
from typing import List

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest
from loguru import logger
from pydantic import SecretStr

from skyrimgrade.core.config.config_loader import ConfigResolver
from skyrimgrade.core.config.settings import AppConfig
from skyrimgrade.models.db_factory import DatabaseFactory

CONFIG_ENV_VARS = (
    "DB_URL",
    "DB_USERNAME",
    "DB_PASSWORD",
    "DB_POOL_SIZE",
    "DB_CONNECTION_TIMEOUT",
    "SERVER_PORT",
    "SERVER_HOST",
    "APP_NAME",
    "APP_VERSION",
    "APP_ENVIRONMENT",
    "LOGGING_LEVEL",
    "LOGGING_FILE_PATH",
)


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch):
    """Keep the host environment from leaking into configuration tests."""
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def reset_database_factory():
    """Each test starts without a process-wide pool."""
    DatabaseFactory.reset_instance()
    yield
    DatabaseFactory.reset_instance()


@pytest.fixture
def log_messages() -> List[str]:
    """Collect Loguru output (DEBUG and above) for assertions."""
    messages: List[str] = []
    handler_id = logger.add(lambda message: messages.append(str(message)), level="DEBUG", format="{level} | {message}")
    yield messages
    logger.remove(handler_id)


@pytest.fixture
def write_defaults(tmp_path):
    """Write a YAML defaults file and return its path."""

    def _write(content: str, name: str = "application.yaml") -> Path:
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def missing_defaults(tmp_path) -> Path:
    return tmp_path / "does-not-exist.yaml"


@pytest.fixture
def resolver_factory(missing_defaults):
    """Build resolvers with the .env layer disabled unless asked for."""

    def _build(config_path=None, **kwargs) -> ConfigResolver:
        kwargs.setdefault("load_dotenv", False)
        return ConfigResolver(config_path=config_path or missing_defaults, **kwargs)

    return _build


@pytest.fixture
def sqlite_url(tmp_path) -> str:
    return f"sqlite:///{tmp_path / 'skyrimgrade.db'}?check_same_thread=false"


@pytest.fixture
def make_config(sqlite_url):
    """Build an AppConfig pointing at a temporary SQLite database."""

    def _make(**overrides) -> AppConfig:
        values = {
            "database_url": sqlite_url,
            "database_username": "skyrim",
            "database_password": SecretStr("dragonborn"),
            "database_pool_size": 4,
            "database_connection_timeout": 1000,
            "app_environment": "production",
        }
        values.update(overrides)
        return AppConfig(**values)

    return _make


@pytest.fixture
def app_config(make_config) -> AppConfig:
    return make_config()
