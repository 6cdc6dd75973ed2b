"""Application context built once at process start and handed to consumers."""

from dataclasses import dataclass

from loguru import logger

from skyrimgrade.core.config.settings import AppConfig
from skyrimgrade.core.exceptions import PoolClosedError
from skyrimgrade.models.db_connection import DatabaseConnectionManager
from skyrimgrade.models.db_factory import DatabaseFactory


@dataclass(frozen=True)
class AppContext:
    """Owns the resolved configuration and the connection pool manager."""

    config: AppConfig
    database: DatabaseConnectionManager

    @classmethod
    def create(cls, config: AppConfig) -> "AppContext":
        """
        Build the context, initializing the process-wide pool.

        Raises:
            PoolInitializationError: If the pool cannot be built
        """
        return cls(config=config, database=DatabaseFactory.initialize(config))

    def close(self) -> None:
        """Release the resources owned by the context. Idempotent."""
        try:
            logger.info(f"Final pool state: {self.database.get_pool_stats()}")
        except PoolClosedError:
            # Closed concurrently, e.g. by a signal handler or atexit cleanup
            logger.debug("Connection pool already closed, no final pool state")
        self.database.shutdown()

    def __enter__(self) -> "AppContext":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
