"""Core infrastructure module."""

from .environment import AppEnvironment
from .exceptions import (
    # Base exception
    SkyrimGradeError,
    # Configuration
    ConfigurationError,
    MissingConfigurationError,
    ResourceLoadError,
    # Database
    DatabaseError,
    PoolInitializationError,
    ConnectionAcquisitionError,
    DatabasePoolTimeoutError,
    PoolStateError,
    PoolNotInitializedError,
    PoolClosedError,
)

__all__ = [
    "AppEnvironment",
    "SkyrimGradeError",
    "ConfigurationError",
    "MissingConfigurationError",
    "ResourceLoadError",
    "DatabaseError",
    "PoolInitializationError",
    "ConnectionAcquisitionError",
    "DatabasePoolTimeoutError",
    "PoolStateError",
    "PoolNotInitializedError",
    "PoolClosedError",
]
