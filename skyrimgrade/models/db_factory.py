"""Process-level access to the single connection pool manager."""

import threading
from typing import Optional

from loguru import logger

from skyrimgrade.core.config.settings import AppConfig
from skyrimgrade.core.exceptions import PoolNotInitializedError
from skyrimgrade.models.db_connection import DatabaseConnectionManager


class DatabaseFactory:
    """
    Holder for the process-wide DatabaseConnectionManager.

    The first successful ``initialize`` call builds the pool; later calls
    return the same manager and do not apply their configuration.

    Example:
        ```python
        manager = DatabaseFactory.initialize(config)

        # Elsewhere in the process
        manager = DatabaseFactory.get_instance()  # Same instance
        ```
    """

    _instance: Optional[DatabaseConnectionManager] = None
    _class_lock = threading.Lock()

    @classmethod
    def initialize(cls, config: AppConfig) -> DatabaseConnectionManager:
        """
        Build the pool manager once for this process.

        Args:
            config: Configuration used only if no manager exists yet

        Returns:
            The process-wide manager

        Raises:
            PoolInitializationError: If the pool cannot be built; the factory
                stays uninitialized
        """
        # Fast path: instance already exists
        instance = cls._instance
        if instance is None:
            with cls._class_lock:
                if cls._instance is None:
                    cls._instance = DatabaseConnectionManager(config)
                    logger.info("Created database connection manager instance")
                    return cls._instance
                instance = cls._instance

        if instance.config != config:
            logger.warning(
                "DatabaseConnectionManager already initialized; ignoring the new configuration"
            )
        return instance

    @classmethod
    def get_instance(cls) -> DatabaseConnectionManager:
        """
        Get the manager built by ``initialize``.

        Raises:
            PoolNotInitializedError: If ``initialize`` has not succeeded yet
        """
        instance = cls._instance
        if instance is None:
            raise PoolNotInitializedError()
        return instance

    @classmethod
    def is_initialized(cls) -> bool:
        return cls._instance is not None

    @classmethod
    def is_closed(cls) -> bool:
        """True if nothing was initialized or the manager has been shut down."""
        instance = cls._instance
        return instance is None or instance.is_closed()

    @classmethod
    def shutdown(cls) -> None:
        """
        Shut down the manager if one exists.

        The closed manager is kept so later pool operations fail with
        PoolClosedError instead of silently reopening a pool.
        """
        instance = cls._instance
        if instance is not None:
            instance.shutdown()

    @classmethod
    def reset_instance(cls) -> None:
        """
        Shut down and forget the manager (useful for testing).
        """
        with cls._class_lock:
            instance, cls._instance = cls._instance, None
        if instance is not None:
            instance.shutdown()
            logger.info("Reset database connection manager instance")
