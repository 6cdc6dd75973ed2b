"""Configuration resolution and the validated application settings."""

from .config_loader import ConfigResolver, ConfigSource
from .settings import AppConfig, load_app_config

__all__ = ["AppConfig", "ConfigResolver", "ConfigSource", "load_app_config"]
