"""Tests for db_factory module."""

import threading
from unittest.mock import patch

import pytest

from skyrimgrade.core.exceptions import (
    PoolClosedError,
    PoolInitializationError,
    PoolNotInitializedError,
)
from skyrimgrade.models import db_factory
from skyrimgrade.models.db_connection import DatabaseConnectionManager
from skyrimgrade.models.db_factory import DatabaseFactory


class TestDatabaseFactory:
    """Tests for DatabaseFactory singleton pattern."""

    def test_get_instance_before_initialize(self):
        """Test get_instance fails before any initialization."""
        with pytest.raises(PoolNotInitializedError) as exc_info:
            DatabaseFactory.get_instance()
        assert exc_info.value.state == "uninitialized"
        assert not DatabaseFactory.is_initialized()
        assert DatabaseFactory.is_closed() is True

    def test_initialize_creates_singleton(self, app_config):
        """Test initialize and get_instance hand out the same manager."""
        manager = DatabaseFactory.initialize(app_config)
        assert isinstance(manager, DatabaseConnectionManager)
        assert DatabaseFactory.get_instance() is manager
        assert DatabaseFactory.initialize(app_config) is manager
        assert DatabaseFactory.is_initialized()
        assert DatabaseFactory.is_closed() is False

    def test_initialize_ignores_later_config(self, make_config, log_messages):
        """Test a second configuration is ignored with a warning."""
        first = DatabaseFactory.initialize(make_config(database_pool_size=4))
        second = DatabaseFactory.initialize(make_config(database_pool_size=8))
        assert first is second
        assert second.settings.max_size == 4
        assert any("ignoring the new configuration" in message for message in log_messages)

    def test_concurrent_initialize_builds_once(self, app_config):
        """Test racing initializers construct exactly one manager."""
        workers = 8
        barrier = threading.Barrier(workers)
        results = []
        results_lock = threading.Lock()

        def initialize():
            barrier.wait()
            manager = DatabaseFactory.initialize(app_config)
            with results_lock:
                results.append(manager)

        with patch.object(
            db_factory, "DatabaseConnectionManager", wraps=DatabaseConnectionManager
        ) as constructor:
            threads = [threading.Thread(target=initialize) for _ in range(workers)]
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join(timeout=10)

        assert constructor.call_count == 1
        assert len(results) == workers
        assert all(manager is results[0] for manager in results)

    def test_failed_initialize_leaves_factory_empty(self, make_config, app_config):
        """Test a failed build can be retried with a good configuration."""
        with pytest.raises(PoolInitializationError):
            DatabaseFactory.initialize(make_config(database_url="jdbc:db://h/x"))
        assert not DatabaseFactory.is_initialized()

        assert DatabaseFactory.initialize(app_config) is DatabaseFactory.get_instance()

    def test_shutdown_keeps_closed_manager(self, app_config):
        """Test shutdown closes the pool and later use fails as closed."""
        manager = DatabaseFactory.initialize(app_config)
        DatabaseFactory.shutdown()
        DatabaseFactory.shutdown()

        assert DatabaseFactory.is_closed() is True
        assert DatabaseFactory.get_instance() is manager
        with pytest.raises(PoolClosedError):
            DatabaseFactory.get_instance().get_connection()

    def test_shutdown_when_none(self):
        """Test shutdown without an instance is a no-op."""
        DatabaseFactory.shutdown()
        assert not DatabaseFactory.is_initialized()

    def test_reset_instance(self, app_config):
        """Test reset_instance closes and clears the singleton."""
        first = DatabaseFactory.initialize(app_config)
        DatabaseFactory.reset_instance()
        assert first.is_closed()
        assert DatabaseFactory._instance is None

        second = DatabaseFactory.initialize(app_config)
        assert second is not first
