"""Logging setup with Loguru."""

import logging
import sys
from pathlib import Path
from types import FrameType
from typing import Optional, Union

from loguru import logger

__all__ = ["InterceptHandler", "setup_logging"]

_VALID_LEVELS = frozenset({"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"})


class InterceptHandler(logging.Handler):
    """Forward standard ``logging`` records (SQLAlchemy, etc.) to Loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        # Get corresponding Loguru level if it exists
        try:
            level: Union[str, int] = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find caller from where originated the logged message
        frame: Optional[FrameType] = logging.currentframe()
        depth = 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(
    level: str = "INFO",
    log_file: Union[str, Path] = "logs/application.log",
    development: bool = False,
) -> None:
    """
    Setup Loguru sinks.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        log_file: Path of the rotating application log
        development: Enables variable values in error tracebacks
    """
    requested = (level or "").upper()
    if requested == "WARN":
        requested = "WARNING"
    level = requested if requested in _VALID_LEVELS else "INFO"

    # Remove default handler
    logger.remove()

    console_format = (
        "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
        "<level>{message}</level>"
    )
    logger.add(sys.stdout, format=console_format, level=level, colorize=True)

    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    text_format = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"
    logger.add(
        log_path,
        format=text_format,
        level=level,
        rotation="10 MB",
        retention="30 days",
        compression="zip",
        enqueue=True,
    )

    # Separate error log next to the application log
    logger.add(
        log_path.parent / "errors_{time:YYYY-MM-DD}.log",
        format=text_format,
        level="ERROR",
        rotation="10 MB",
        retention="90 days",
        backtrace=True,
        diagnose=development,  # variable values only outside production
        enqueue=True,
    )

    if requested != level:
        logger.warning(f"Unknown logging level {requested!r}, using INFO")

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    logging.root.setLevel(getattr(logging, level, logging.INFO))

    logger.info(f"Logging initialized (level={level}, file={log_path})")
