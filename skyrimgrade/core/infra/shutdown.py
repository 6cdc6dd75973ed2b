"""
Shutdown and signal handling module.

Handles graceful shutdown, signal handling, and resource cleanup.
"""

import atexit
import signal
import threading
from typing import Any, Callable, Optional

from loguru import logger

# Global shutdown event for coordinating graceful shutdown
_shutdown_event = threading.Event()


def get_shutdown_event() -> threading.Event:
    """Get the process shutdown event."""
    return _shutdown_event


def request_shutdown() -> None:
    """Ask the main thread to stop waiting and clean up."""
    _shutdown_event.set()


def setup_signal_handlers(cleanup: Optional[Callable[[], None]] = None) -> None:
    """
    Setup graceful shutdown handlers.

    The first SIGINT/SIGTERM sets the shutdown event. A second signal runs
    ``cleanup`` immediately and raises SystemExit.

    Args:
        cleanup: Callable releasing critical resources (the connection pool)
    """

    def handle_signal(signum: int, frame: Any) -> None:
        if not _shutdown_event.is_set():
            logger.info(f"Received signal {signum}, initiating graceful shutdown...")
            _shutdown_event.set()
            return

        logger.warning("Second signal received, forcing cleanup before exit...")
        if cleanup is not None:
            cleanup()
        raise SystemExit(1)

    signal.signal(signal.SIGTERM, handle_signal)
    signal.signal(signal.SIGINT, handle_signal)


def register_exit_cleanup(cleanup: Callable[[], None]) -> None:
    """Run ``cleanup`` at interpreter exit in case the normal path was skipped."""
    atexit.register(cleanup)


def wait_for_shutdown(timeout: Optional[float] = None) -> bool:
    """
    Block until shutdown is requested.

    Args:
        timeout: Maximum seconds to wait (None waits forever)

    Returns:
        True if shutdown was requested, False on timeout
    """
    return _shutdown_event.wait(timeout)
