"""Process infrastructure (signals, shutdown)."""

from .shutdown import (
    get_shutdown_event,
    register_exit_cleanup,
    request_shutdown,
    setup_signal_handlers,
    wait_for_shutdown,
)

__all__ = [
    "get_shutdown_event",
    "register_exit_cleanup",
    "request_shutdown",
    "setup_signal_handlers",
    "wait_for_shutdown",
]
