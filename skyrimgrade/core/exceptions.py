"""Custom exception classes for SkyrimGrade."""

from datetime import datetime, timezone
from typing import Any, Dict, Optional


class SkyrimGradeError(Exception):
    """Base exception for SkyrimGrade."""

    def __init__(
        self, message: str, recoverable: bool = True, details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize SkyrimGrade error.

        Args:
            message: Error message
            recoverable: Whether the process can keep running after this error
            details: Additional error details
        """
        self.message = message
        self.recoverable = recoverable
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "recoverable": self.recoverable,
            "details": self.details,
            "timestamp": self.timestamp,
        }


# Configuration Errors
class ConfigurationError(SkyrimGradeError):
    """Configuration error occurred."""

    def __init__(
        self,
        message: str = "Configuration error",
        recoverable: bool = False,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, recoverable, details)


class MissingConfigurationError(ConfigurationError):
    """Raised when a required setting is absent from every source."""

    def __init__(self, field: str, env_key: str, property_key: str):
        """
        Initialize missing configuration error.

        Args:
            field: Human readable name of the missing setting
            env_key: Environment variable that was consulted
            property_key: Defaults-file key that was consulted
        """
        self.field = field
        self.env_key = env_key
        self.property_key = property_key
        super().__init__(
            f"{field} is required ({env_key} or {property_key})",
            recoverable=False,
            details={"field": field, "env_key": env_key, "property_key": property_key},
        )


class ResourceLoadError(ConfigurationError):
    """Raised when a configuration resource exists but cannot be read."""

    def __init__(self, path: str, reason: str = ""):
        self.path = path
        message = f"Failed to load configuration resource: {path}"
        if reason:
            message += f" ({reason})"
        super().__init__(message, recoverable=False, details={"path": path})


# Database Errors
class DatabaseError(SkyrimGradeError):
    """Base class for database-related errors."""

    def __init__(
        self,
        message: str = "Database error occurred",
        recoverable: bool = True,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, recoverable, details)


class PoolInitializationError(DatabaseError):
    """Connection pool could not be built."""

    def __init__(self, message: str = "Database initialization failed"):
        super().__init__(message, recoverable=False)


class ConnectionAcquisitionError(DatabaseError):
    """Borrowing a connection from the pool failed."""

    def __init__(
        self,
        message: str = "Failed to get connection from pool",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, recoverable=True, details=details)


class DatabasePoolTimeoutError(ConnectionAcquisitionError):
    """No connection became available before the acquisition timeout."""

    def __init__(self, timeout: float, pool_size: int):
        self.timeout = timeout
        self.pool_size = pool_size
        super().__init__(
            f"Database connection pool exhausted (timeout: {timeout}s, pool_size: {pool_size})",
            details={"timeout": timeout, "pool_size": pool_size},
        )


class PoolStateError(DatabaseError):
    """Pool operation attempted in a state that does not allow it."""

    def __init__(self, message: str, state: str):
        self.state = state
        super().__init__(message, recoverable=False, details={"state": state})


class PoolNotInitializedError(PoolStateError):
    """Pool handle requested before any successful initialization."""

    def __init__(self):
        super().__init__(
            "DatabaseConnectionManager not initialized. Call DatabaseFactory.initialize(config) first.",
            state="uninitialized",
        )


class PoolClosedError(PoolStateError):
    """Pool operation attempted after shutdown."""

    def __init__(self, operation: str = "operation"):
        self.operation = operation
        super().__init__(
            f"Database connection pool is closed; cannot perform {operation}",
            state="closed",
        )
