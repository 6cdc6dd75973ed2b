"""Database connection pool management."""

import threading
import time
import traceback
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator, Optional

from loguru import logger
from sqlalchemy import create_engine, event, exc, text
from sqlalchemy.engine import Connection, Engine, URL, make_url
from sqlalchemy.pool import QueuePool

from skyrimgrade.core.config.settings import AppConfig
from skyrimgrade.core.exceptions import (
    ConnectionAcquisitionError,
    DatabasePoolTimeoutError,
    PoolClosedError,
    PoolInitializationError,
)
from skyrimgrade.utils.masking import mask_database_url

POOL_NAME = "SkyrimGradePool"
VALIDATION_QUERY = "SELECT 1"

# Connection lifecycle, in multiples of one base quantum (seconds)
BASE_TIME_QUANTUM = 60.0
IDLE_TIMEOUT = 10 * BASE_TIME_QUANTUM
MAX_LIFETIME = 30 * BASE_TIME_QUANTUM
KEEPALIVE_INTERVAL = 5 * BASE_TIME_QUANTUM

HEALTH_CHECK_TIMEOUT = 5.0
LEAK_DETECTION_THRESHOLD = 10.0


@dataclass(frozen=True)
class PoolSettings:
    """Pool parameters derived from the application configuration."""

    max_size: int
    min_idle: int
    connection_timeout: float
    validation_query: str = VALIDATION_QUERY
    idle_timeout: float = IDLE_TIMEOUT
    max_lifetime: float = MAX_LIFETIME
    keepalive_interval: float = KEEPALIVE_INTERVAL
    leak_detection_threshold: Optional[float] = None
    pool_name: str = POOL_NAME

    @classmethod
    def from_config(cls, config: AppConfig) -> "PoolSettings":
        """
        Derive pool settings from configuration.

        Minimum idle is half the pool size, at least 2 and never above the pool
        size. Leak detection is only enabled in development.

        Args:
            config: Resolved application configuration

        Returns:
            PoolSettings for the connection manager
        """
        max_size = config.database_pool_size
        return cls(
            max_size=max_size,
            min_idle=min(max(2, max_size // 2), max_size),
            connection_timeout=config.connection_timeout_seconds,
            leak_detection_threshold=LEAK_DETECTION_THRESHOLD if config.is_development() else None,
        )


@dataclass(frozen=True)
class PoolStats:
    """Point-in-time snapshot of pool usage."""

    total: int
    active: int
    idle: int
    waiting: int

    def __str__(self) -> str:
        return (
            f"Pool[total={self.total}, active={self.active}, "
            f"idle={self.idle}, waiting={self.waiting}]"
        )


def build_database_url(config: AppConfig) -> URL:
    """
    Build the SQLAlchemy URL for the configured database.

    A leading ``jdbc:`` prefix is dropped. Credentials from the configuration
    are applied for server backends; SQLite takes none.

    Args:
        config: Resolved application configuration

    Returns:
        SQLAlchemy URL object

    Raises:
        sqlalchemy.exc.ArgumentError: If the URL cannot be parsed
    """
    raw = config.database_url.strip()
    if raw.lower().startswith("jdbc:"):
        raw = raw[len("jdbc:"):]
    url = make_url(raw)
    if url.get_backend_name() == "sqlite":
        return url
    return url.set(
        username=config.database_username,
        password=config.database_password.get_secret_value(),
    )


class DatabaseConnectionManager:
    """Manages the connection pool lifecycle, health and statistics."""

    def __init__(self, config: AppConfig):
        """
        Build the connection pool and warm it up to the minimum idle size.

        Args:
            config: Resolved application configuration

        Raises:
            PoolInitializationError: If the pool cannot be built or the first
                connections cannot be opened
        """
        self.config = config
        self.settings = PoolSettings.from_config(config)
        self._state_lock = threading.Lock()
        self._closed = False
        self._waiting = 0
        self._health_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="pool-health")
        try:
            self.engine: Engine = self._initialize_engine()
        except PoolInitializationError:
            self._health_executor.shutdown(wait=False)
            raise
        logger.info(
            f"DatabaseConnectionManager initialized with pool size "
            f"{self.settings.min_idle}-{self.settings.max_size}"
        )

    def _initialize_engine(self) -> Engine:
        settings = self.settings
        logger.info(
            f"Initializing {settings.pool_name} with URL: "
            f"{mask_database_url(self.config.database_url)}"
        )
        try:
            engine = create_engine(
                build_database_url(self.config),
                poolclass=QueuePool,
                pool_size=settings.max_size,
                max_overflow=0,
                pool_timeout=settings.connection_timeout,
                pool_recycle=int(settings.max_lifetime),
                pool_logging_name=settings.pool_name,
            )
        except Exception as e:
            logger.error(f"Failed to initialize database connection pool: {e}")
            raise PoolInitializationError(f"Database initialization failed: {e}") from e

        event.listen(engine, "checkout", self._on_checkout)
        event.listen(engine, "checkin", self._on_checkin)

        try:
            self._warm_up(engine)
        except Exception as e:
            # Clean up on error
            engine.dispose()
            logger.error(f"Failed to open initial database connections: {e}")
            raise PoolInitializationError(f"Database initialization failed: {e}") from e
        return engine

    def _warm_up(self, engine: Engine) -> None:
        connections = []
        try:
            for _ in range(self.settings.min_idle):
                connections.append(engine.pool.connect())
        finally:
            for connection in connections:
                connection.close()

    def _validate(self, dbapi_connection: Any) -> None:
        cursor = dbapi_connection.cursor()
        try:
            cursor.execute(self.settings.validation_query)
        except Exception as e:
            logger.warning(f"Connection failed validation, replacing it: {e}")
            raise exc.DisconnectionError("connection failed validation query") from e
        finally:
            cursor.close()

    def _on_checkout(self, dbapi_connection: Any, connection_record: Any, connection_proxy: Any) -> None:
        # dispose() leaves a fresh pool behind the engine; refuse it so a closed pool stays closed
        if self._closed:
            raise PoolClosedError("checkout")

        # Raising DisconnectionError makes the pool discard the connection and open a new one
        settings = self.settings
        now = time.monotonic()
        returned_at = connection_record.info.pop("returned_at", None)
        if returned_at is not None:
            idle_for = now - returned_at
            if idle_for > settings.idle_timeout:
                logger.debug(f"Retiring connection idle for {idle_for:.0f}s")
                raise exc.DisconnectionError("connection exceeded idle timeout")
            if idle_for > settings.keepalive_interval:
                self._validate(dbapi_connection)

        if settings.leak_detection_threshold is not None:
            connection_record.info["checked_out_at"] = now
            connection_record.info["checkout_stack"] = "".join(traceback.format_stack()[:-1])

    def _on_checkin(self, dbapi_connection: Any, connection_record: Any) -> None:
        now = time.monotonic()
        connection_record.info["returned_at"] = now
        checked_out_at = connection_record.info.pop("checked_out_at", None)
        checkout_stack = connection_record.info.pop("checkout_stack", "")
        threshold = self.settings.leak_detection_threshold
        if threshold is not None and checked_out_at is not None:
            held_for = now - checked_out_at
            if held_for > threshold:
                logger.warning(
                    f"Connection leak detection triggered: connection held for {held_for:.1f}s "
                    f"(threshold: {threshold}s), acquired at:\n{checkout_stack}"
                )

    def _ensure_open(self, operation: str) -> None:
        if self._closed:
            raise PoolClosedError(operation)

    def get_connection(self) -> Connection:
        """
        Borrow a connection from the pool.

        Blocks up to the configured connection timeout. Closing the returned
        connection hands it back to the pool.

        Returns:
            Open SQLAlchemy connection

        Raises:
            PoolClosedError: If the pool has been shut down
            DatabasePoolTimeoutError: If no connection became available in time
            ConnectionAcquisitionError: If the driver failed to provide a connection
        """
        self._ensure_open("get_connection")
        with self._state_lock:
            self._waiting += 1
        try:
            connection = self.engine.connect()
        except PoolClosedError:
            raise
        except exc.TimeoutError as e:
            if self._closed:
                raise PoolClosedError("get_connection") from e
            logger.error(
                f"Database connection pool exhausted "
                f"(timeout: {self.settings.connection_timeout}s, pool_size: {self.settings.max_size})"
            )
            raise DatabasePoolTimeoutError(
                timeout=self.settings.connection_timeout, pool_size=self.settings.max_size
            ) from e
        except Exception as e:
            if self._closed:
                raise PoolClosedError("get_connection") from e
            logger.error(f"Failed to get connection from pool: {e}")
            raise ConnectionAcquisitionError(f"Failed to get connection from pool: {e}") from e
        finally:
            with self._state_lock:
                self._waiting -= 1

        if self._closed:
            # Shutdown completed while this borrow was in flight
            connection.invalidate()
            connection.close()
            raise PoolClosedError("get_connection")
        return connection

    @contextmanager
    def connection(self) -> Iterator[Connection]:
        """
        Borrow a connection for the duration of a ``with`` block.

        Yields:
            Open SQLAlchemy connection, returned to the pool on exit
        """
        conn = self.get_connection()
        try:
            yield conn
        finally:
            conn.close()

    def get_engine(self) -> Engine:
        """Return the pooled engine (data source) backing this manager."""
        self._ensure_open("get_engine")
        return self.engine

    def _run_validation_query(self) -> Any:
        with self.connection() as conn:
            return conn.execute(text(self.settings.validation_query)).scalar()

    def health_check(self) -> bool:
        """
        Perform a health check on the database connection.

        Borrowing and validating together must finish within
        ``HEALTH_CHECK_TIMEOUT``. A check still running at the deadline keeps
        going in the background and releases its connection when done.

        Returns:
            True if a connection could be borrowed and validated within
            the health check deadline
        """
        if self._closed:
            return False
        deadline = HEALTH_CHECK_TIMEOUT
        try:
            future = self._health_executor.submit(self._run_validation_query)
            result = future.result(timeout=deadline)
        except FutureTimeoutError:
            logger.warning(f"Database health check exceeded {deadline}s deadline")
            return False
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return False
        return result is not None

    def get_pool_stats(self) -> PoolStats:
        """
        Get current connection pool statistics.

        Returns:
            Snapshot with total, active (checked out), idle (checked in) and
            waiting (callers blocked in get_connection) counts

        Raises:
            PoolClosedError: If the pool has been shut down
        """
        self._ensure_open("get_pool_stats")
        pool = self.engine.pool
        idle = pool.checkedin()  # type: ignore[attr-defined]
        active = pool.checkedout()  # type: ignore[attr-defined]
        with self._state_lock:
            waiting = self._waiting
        return PoolStats(total=idle + active, active=active, idle=idle, waiting=waiting)

    def shutdown(self) -> None:
        """Close the pool and release its connections. Safe to call repeatedly."""
        with self._state_lock:
            if self._closed:
                return
            self._closed = True
        logger.info("Shutting down database connection pool...")
        self._health_executor.shutdown(wait=False)
        self.engine.dispose()
        logger.info("Database connection pool closed")

    def is_closed(self) -> bool:
        return self._closed

    def __enter__(self) -> "DatabaseConnectionManager":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.shutdown()
