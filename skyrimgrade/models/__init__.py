"""Database models module."""

import importlib as _importlib
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .db_connection import DatabaseConnectionManager as DatabaseConnectionManager
    from .db_connection import PoolSettings as PoolSettings
    from .db_connection import PoolStats as PoolStats
    from .db_factory import DatabaseFactory as DatabaseFactory

# Explicit lazy-loading map: name -> (module_path, attribute_name)
_LAZY_MODULE_MAP = {
    "DatabaseConnectionManager": ("skyrimgrade.models.db_connection", "DatabaseConnectionManager"),
    "PoolSettings": ("skyrimgrade.models.db_connection", "PoolSettings"),
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
        globals()[name] = attr
        return attr
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
