#!/usr/bin/env python3
"""
SkyrimGrade - application entry point.

Loads configuration, initializes the database connection pool and keeps the
process alive until it receives SIGINT/SIGTERM.
"""

import argparse
import sys
from typing import List, Optional

from loguru import logger

from skyrimgrade.core.config.config_loader import DEFAULT_CONFIG_PATH, DEFAULT_ENV_FILE, ConfigResolver
from skyrimgrade.core.config.settings import load_app_config
from skyrimgrade.core.context import AppContext
from skyrimgrade.core.exceptions import ConfigurationError, DatabaseError
from skyrimgrade.core.infra.shutdown import (
    register_exit_cleanup,
    setup_signal_handlers,
    wait_for_shutdown,
)
from skyrimgrade.core.logger import setup_logging


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="SkyrimGrade application")
    parser.add_argument(
        "--config", default=str(DEFAULT_CONFIG_PATH), help="Path to the YAML defaults file"
    )
    parser.add_argument("--env-file", default=str(DEFAULT_ENV_FILE), help="Path to the .env file")
    parser.add_argument(
        "--no-dotenv", action="store_true", help="Ignore the .env override layer"
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Run startup and the database health check, then exit",
    )
    return parser.parse_args(argv)


def run(args: argparse.Namespace) -> int:
    """
    Start the application.

    Returns:
        Process exit status
    """
    logger.info("Starting SkyrimGrade application...")

    resolver = ConfigResolver(
        config_path=args.config, load_dotenv=not args.no_dotenv, env_file=args.env_file
    )
    config = load_app_config(resolver)

    setup_logging(config.logging_level, config.logging_file_path, config.is_development())
    logger.info(f"Configuration loaded: {config}")

    context = AppContext.create(config)
    register_exit_cleanup(context.close)
    setup_signal_handlers(context.close)

    with context:
        healthy = context.database.health_check()
        logger.info(f"Database health check: {'OK' if healthy else 'FAILED'}")
        logger.info(f"Connection pool: {context.database.get_pool_stats()}")

        if args.check:
            return 0 if healthy else 1

        # Migrations and the HTTP server are provided by other components
        logger.info(f"HTTP server expected on {config.server_host}:{config.server_port}")
        logger.info(
            f"{config.app_name} {config.app_version} started successfully "
            f"in {config.app_environment} mode"
        )
        logger.info("Application is running. Press Ctrl+C to stop.")

        while not wait_for_shutdown(1.0):
            pass

    logger.info("Shutdown complete")
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point."""
    args = parse_args(argv)
    try:
        sys.exit(run(args))
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)
    except DatabaseError as e:
        logger.error(f"Database startup failed: {e}")
        sys.exit(1)
    except Exception as e:
        logger.opt(exception=e).error(f"Failed to start application: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
