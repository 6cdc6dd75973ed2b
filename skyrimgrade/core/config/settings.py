"""Application settings with Pydantic validation."""

from typing import Any, Dict, NamedTuple, Optional

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError, field_validator

from skyrimgrade.core.config.config_loader import ConfigResolver
from skyrimgrade.core.environment import AppEnvironment
from skyrimgrade.core.exceptions import ConfigurationError, MissingConfigurationError
from skyrimgrade.utils.masking import mask_database_url, mask_sensitive


class SettingKey(NamedTuple):
    """Where a setting can be found."""

    label: str
    env: str
    prop: str


DB_URL = SettingKey("Database URL", "DB_URL", "db.url")
DB_USERNAME = SettingKey("Database username", "DB_USERNAME", "db.username")
DB_PASSWORD = SettingKey("Database password", "DB_PASSWORD", "db.password")
DB_POOL_SIZE = SettingKey("Database pool size", "DB_POOL_SIZE", "db.pool.size")
DB_CONNECTION_TIMEOUT = SettingKey(
    "Database connection timeout", "DB_CONNECTION_TIMEOUT", "db.connection.timeout"
)
SERVER_PORT = SettingKey("Server port", "SERVER_PORT", "server.port")
SERVER_HOST = SettingKey("Server host", "SERVER_HOST", "server.host")
APP_NAME = SettingKey("Application name", "APP_NAME", "app.name")
APP_VERSION = SettingKey("Application version", "APP_VERSION", "app.version")
APP_ENVIRONMENT = SettingKey("Application environment", "APP_ENVIRONMENT", "app.environment")
LOGGING_LEVEL = SettingKey("Logging level", "LOGGING_LEVEL", "logging.level")
LOGGING_FILE_PATH = SettingKey("Logging file path", "LOGGING_FILE_PATH", "logging.file.path")

DEFAULT_POOL_SIZE = 10
DEFAULT_CONNECTION_TIMEOUT_MS = 30000
DEFAULT_SERVER_PORT = 8080
DEFAULT_SERVER_HOST = "0.0.0.0"
DEFAULT_APP_NAME = "SkyrimGrade"
DEFAULT_APP_VERSION = "1.0.0"
DEFAULT_ENVIRONMENT = AppEnvironment.DEVELOPMENT.value
DEFAULT_LOGGING_LEVEL = "INFO"
DEFAULT_LOGGING_FILE_PATH = "logs/application.log"


class AppConfig(BaseModel):
    """Immutable, validated application configuration."""

    model_config = ConfigDict(frozen=True)

    # Database
    database_url: str = Field(..., min_length=1, description="Database connection URL")
    database_username: str = Field(..., min_length=1, description="Database username")
    database_password: SecretStr = Field(..., description="Database password")
    database_pool_size: int = Field(
        default=DEFAULT_POOL_SIZE, gt=0, description="Maximum number of pooled connections"
    )
    database_connection_timeout: int = Field(
        default=DEFAULT_CONNECTION_TIMEOUT_MS,
        gt=0,
        description="Connection acquisition timeout in milliseconds",
    )

    # Server
    server_port: int = Field(default=DEFAULT_SERVER_PORT, description="HTTP server port")
    server_host: str = Field(default=DEFAULT_SERVER_HOST, description="HTTP server bind host")

    # Application
    app_name: str = Field(default=DEFAULT_APP_NAME)
    app_version: str = Field(default=DEFAULT_APP_VERSION)
    app_environment: str = Field(
        default=DEFAULT_ENVIRONMENT, description="development, production or any other tag"
    )

    # Logging
    logging_level: str = Field(default=DEFAULT_LOGGING_LEVEL)
    logging_file_path: str = Field(default=DEFAULT_LOGGING_FILE_PATH)

    @field_validator("database_password")
    @classmethod
    def validate_password_not_empty(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value():
            raise ValueError("database_password must not be empty")
        return v

    @property
    def environment(self) -> AppEnvironment:
        """Environment tag derived from ``app_environment``."""
        return AppEnvironment.from_value(self.app_environment)

    def is_development(self) -> bool:
        return self.environment is AppEnvironment.DEVELOPMENT

    def is_production(self) -> bool:
        return self.environment is AppEnvironment.PRODUCTION

    @property
    def connection_timeout_seconds(self) -> float:
        return self.database_connection_timeout / 1000.0

    def safe_summary(self) -> Dict[str, Any]:
        """
        Render the configuration for logging with secrets masked.

        Returns:
            Dictionary keyed by field name; sensitive fields show the mask
        """
        summary: Dict[str, Any] = {}
        for name in type(self).model_fields:
            value = getattr(self, name)
            if isinstance(value, SecretStr):
                value = value.get_secret_value()
            summary[name] = mask_sensitive(name, value)
        summary["database_url"] = mask_database_url(self.database_url)
        return summary

    def __str__(self) -> str:
        fields = ", ".join(f"{key}={value!r}" for key, value in self.safe_summary().items())
        return f"AppConfig({fields})"

    def __repr__(self) -> str:
        return self.__str__()


def _require(resolver: ConfigResolver, setting: SettingKey) -> str:
    value = resolver.get(setting.env, setting.prop)
    if value is None or not value.strip():
        raise MissingConfigurationError(setting.label, setting.env, setting.prop)
    return value


def load_app_config(resolver: Optional[ConfigResolver] = None) -> AppConfig:
    """
    Resolve and validate the application configuration.

    Args:
        resolver: Resolver to read from (a default resolver is built when omitted)

    Returns:
        Validated AppConfig

    Raises:
        MissingConfigurationError: If database URL, username or password is absent
        ConfigurationError: If a resolved value violates a constraint
        ResourceLoadError: If the defaults file cannot be read
    """
    resolver = resolver or ConfigResolver()

    database_url = _require(resolver, DB_URL)
    database_username = _require(resolver, DB_USERNAME)
    database_password = _require(resolver, DB_PASSWORD)

    try:
        config = AppConfig(
            database_url=database_url,
            database_username=database_username,
            database_password=SecretStr(database_password),
            database_pool_size=resolver.get_int(
                DB_POOL_SIZE.env, DB_POOL_SIZE.prop, DEFAULT_POOL_SIZE
            ),
            database_connection_timeout=resolver.get_int(
                DB_CONNECTION_TIMEOUT.env, DB_CONNECTION_TIMEOUT.prop, DEFAULT_CONNECTION_TIMEOUT_MS
            ),
            server_port=resolver.get_int(SERVER_PORT.env, SERVER_PORT.prop, DEFAULT_SERVER_PORT),
            server_host=resolver.get(SERVER_HOST.env, SERVER_HOST.prop, DEFAULT_SERVER_HOST),
            app_name=resolver.get(APP_NAME.env, APP_NAME.prop, DEFAULT_APP_NAME),
            app_version=resolver.get(APP_VERSION.env, APP_VERSION.prop, DEFAULT_APP_VERSION),
            app_environment=resolver.get(
                APP_ENVIRONMENT.env, APP_ENVIRONMENT.prop, DEFAULT_ENVIRONMENT
            ),
            logging_level=resolver.get(LOGGING_LEVEL.env, LOGGING_LEVEL.prop, DEFAULT_LOGGING_LEVEL),
            logging_file_path=resolver.get(
                LOGGING_FILE_PATH.env, LOGGING_FILE_PATH.prop, DEFAULT_LOGGING_FILE_PATH
            ),
        )
    except ValidationError as e:
        fields = ", ".join(".".join(str(part) for part in err["loc"]) for err in e.errors())
        raise ConfigurationError(
            f"Invalid configuration values: {fields}", details={"fields": fields}
        ) from e

    logger.debug(f"Configuration loaded: {config}")
    return config
