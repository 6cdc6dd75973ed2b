"""SkyrimGrade - application bootstrap: layered configuration and connection pooling."""

import importlib as _importlib
from typing import TYPE_CHECKING, Any

__version__ = "1.0.0"
__license__ = "MIT"

if TYPE_CHECKING:
    from .core.config.config_loader import ConfigResolver as ConfigResolver
    from .core.config.settings import AppConfig as AppConfig
    from .core.config.settings import load_app_config as load_app_config
    from .core.context import AppContext as AppContext
    from .core.logger import setup_logging as setup_logging
    from .models.db_connection import DatabaseConnectionManager as DatabaseConnectionManager
    from .models.db_connection import PoolStats as PoolStats
    from .models.db_factory import DatabaseFactory as DatabaseFactory

# Explicit lazy-loading map: name -> (module_path, attribute_name)
_LAZY_MODULE_MAP = {
    # Core
    "ConfigResolver": ("skyrimgrade.core.config.config_loader", "ConfigResolver"),
    "AppConfig": ("skyrimgrade.core.config.settings", "AppConfig"),
    "load_app_config": ("skyrimgrade.core.config.settings", "load_app_config"),
    "AppContext": ("skyrimgrade.core.context", "AppContext"),
    "setup_logging": ("skyrimgrade.core.logger", "setup_logging"),
    # Models
    "DatabaseConnectionManager": ("skyrimgrade.models.db_connection", "DatabaseConnectionManager"),
    "PoolStats": ("skyrimgrade.models.db_connection", "PoolStats"),
    "DatabaseFactory": ("skyrimgrade.models.db_factory", "DatabaseFactory"),
}

# Auto-derive __all__ from _LAZY_MODULE_MAP to prevent manual sync issues
__all__ = list(_LAZY_MODULE_MAP.keys())


def __getattr__(name: str) -> Any:
    """Lazy import with explicit mapping - importlib based."""
    if name in _LAZY_MODULE_MAP:
        module_path, attr_name = _LAZY_MODULE_MAP[name]
        module = _importlib.import_module(module_path)
        attr = getattr(module, attr_name)
        # Cache in module globals to avoid repeated imports
        globals()[name] = attr
        return attr
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
