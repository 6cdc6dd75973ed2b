"""Tests for AppConfig and load_app_config."""

import pytest
from pydantic import SecretStr, ValidationError

from skyrimgrade.core.config.settings import AppConfig, load_app_config
from skyrimgrade.core.environment import AppEnvironment
from skyrimgrade.core.exceptions import ConfigurationError, MissingConfigurationError


@pytest.fixture
def db_env(monkeypatch):
    """Provide the three required database settings through the environment."""
    monkeypatch.setenv("DB_URL", "jdbc:db://h/x")
    monkeypatch.setenv("DB_USERNAME", "skyrim")
    monkeypatch.setenv("DB_PASSWORD", "dragonborn")


class TestLoadAppConfig:
    """Tests for resolving the full configuration."""

    def test_env_url_and_default_pool_size(self, db_env, resolver_factory):
        """Test env URL is used verbatim and unset pool size defaults to 10."""
        config = load_app_config(resolver_factory())
        assert config.database_url == "jdbc:db://h/x"
        assert config.database_pool_size == 10

    def test_defaults_when_absent_everywhere(self, db_env, resolver_factory):
        """Test every optional field falls back to its documented default."""
        config = load_app_config(resolver_factory())
        assert config.database_connection_timeout == 30000
        assert config.server_port == 8080
        assert config.server_host == "0.0.0.0"
        assert config.app_name == "SkyrimGrade"
        assert config.app_version == "1.0.0"
        assert config.app_environment == "development"
        assert config.logging_level == "INFO"
        assert config.logging_file_path == "logs/application.log"

    def test_properties_layer(self, write_defaults, resolver_factory):
        """Test all fields can come from the defaults file."""
        path = write_defaults(
            "db:\n"
            "  url: postgresql://db/skyrim\n"
            "  username: props-user\n"
            "  password: props-pass\n"
            "  pool:\n"
            "    size: 6\n"
            "server:\n"
            "  port: 9090\n"
            "app:\n"
            "  environment: production\n"
        )
        config = load_app_config(resolver_factory(path))
        assert config.database_username == "props-user"
        assert config.database_password.get_secret_value() == "props-pass"
        assert config.database_pool_size == 6
        assert config.server_port == 9090
        assert config.is_production()

    def test_env_overrides_properties(self, db_env, monkeypatch, write_defaults, resolver_factory):
        """Test environment values beat the defaults file."""
        monkeypatch.setenv("DB_POOL_SIZE", "3")
        path = write_defaults("db:\n  pool:\n    size: 6\n  url: jdbc:db://props/x\n")
        config = load_app_config(resolver_factory(path))
        assert config.database_pool_size == 3
        assert config.database_url == "jdbc:db://h/x"

    def test_malformed_int_uses_default(self, db_env, monkeypatch, resolver_factory):
        """Test malformed integers do not stop startup."""
        monkeypatch.setenv("DB_POOL_SIZE", "ten")
        monkeypatch.setenv("SERVER_PORT", "80a")
        config = load_app_config(resolver_factory())
        assert config.database_pool_size == 10
        assert config.server_port == 8080

    def test_missing_url(self, monkeypatch, resolver_factory):
        """Test a missing URL names the URL setting."""
        monkeypatch.setenv("DB_USERNAME", "skyrim")
        monkeypatch.setenv("DB_PASSWORD", "dragonborn")
        with pytest.raises(MissingConfigurationError) as exc_info:
            load_app_config(resolver_factory())
        assert exc_info.value.env_key == "DB_URL"
        assert "Database URL is required (DB_URL or db.url)" in str(exc_info.value)

    def test_missing_username(self, monkeypatch, resolver_factory):
        """Test URL present but username missing names the username."""
        monkeypatch.setenv("DB_URL", "jdbc:db://h/x")
        monkeypatch.setenv("DB_PASSWORD", "dragonborn")
        with pytest.raises(MissingConfigurationError) as exc_info:
            load_app_config(resolver_factory())
        assert exc_info.value.field == "Database username"
        assert exc_info.value.property_key == "db.username"
        assert "DB_USERNAME or db.username" in str(exc_info.value)

    def test_missing_password(self, monkeypatch, resolver_factory):
        """Test URL present but password missing names the password."""
        monkeypatch.setenv("DB_URL", "jdbc:db://h/x")
        monkeypatch.setenv("DB_USERNAME", "skyrim")
        with pytest.raises(MissingConfigurationError) as exc_info:
            load_app_config(resolver_factory())
        assert exc_info.value.field == "Database password"
        assert "DB_PASSWORD or db.password" in str(exc_info.value)

    def test_blank_password_is_missing(self, db_env, monkeypatch, resolver_factory):
        """Test a whitespace-only value counts as missing."""
        monkeypatch.setenv("DB_PASSWORD", "   ")
        with pytest.raises(MissingConfigurationError):
            load_app_config(resolver_factory())

    def test_non_positive_pool_size_is_configuration_error(self, db_env, monkeypatch, resolver_factory):
        """Test constraint violations surface as ConfigurationError."""
        monkeypatch.setenv("DB_POOL_SIZE", "0")
        with pytest.raises(ConfigurationError) as exc_info:
            load_app_config(resolver_factory())
        assert not isinstance(exc_info.value, MissingConfigurationError)
        assert "database_pool_size" in str(exc_info.value)
        assert exc_info.value.recoverable is False


class TestAppConfig:
    """Tests for the AppConfig value object."""

    def test_requires_non_empty_credentials(self):
        """Test direct construction rejects empty required fields."""
        with pytest.raises(ValidationError):
            AppConfig(database_url="", database_username="u", database_password=SecretStr("p"))
        with pytest.raises(ValidationError):
            AppConfig(database_url="x", database_username="u", database_password=SecretStr(""))

    def test_is_immutable(self, app_config):
        """Test fields cannot be reassigned."""
        with pytest.raises(ValidationError):
            app_config.database_pool_size = 99

    def test_password_never_rendered(self, app_config):
        """Test str/repr and the safe summary mask the password."""
        assert "dragonborn" not in str(app_config)
        assert "dragonborn" not in repr(app_config)
        summary = app_config.safe_summary()
        assert summary["database_password"] == "***"
        assert summary["database_username"] == "skyrim"

    def test_safe_summary_masks_url_credentials(self, make_config):
        """Test credentials embedded in the URL are masked."""
        config = make_config(database_url="postgresql://admin:topsecret@db:5432/skyrim")
        assert config.safe_summary()["database_url"] == "postgresql://***:***@db:5432/skyrim"

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("development", AppEnvironment.DEVELOPMENT),
            ("DEVELOPMENT", AppEnvironment.DEVELOPMENT),
            ("Production", AppEnvironment.PRODUCTION),
            ("staging", AppEnvironment.OTHER),
        ],
    )
    def test_environment_tag(self, make_config, raw, expected):
        """Test environment tags are case-insensitive with an OTHER bucket."""
        config = make_config(app_environment=raw)
        assert config.environment is expected
        assert config.is_development() is (expected is AppEnvironment.DEVELOPMENT)
        assert config.is_production() is (expected is AppEnvironment.PRODUCTION)

    def test_connection_timeout_seconds(self, make_config):
        """Test millisecond timeout converts to seconds."""
        assert make_config(database_connection_timeout=2500).connection_timeout_seconds == 2.5
