"""Database connection management, adapter factory and per-test connection registry."""

import logging
import time
from typing import Any, Dict, List, Optional, Sequence, Type

from sqlfixture.config.models import DatabaseConfig, DatabaseType, ConnectionPoolConfig, SQLFixtureConfig
from sqlfixture.db.base import BaseAdapter, DatabaseConnection
from sqlfixture.db.adapters.postgresql import PostgreSQLAdapter
from sqlfixture.db.adapters.mysql import MySQLAdapter
from sqlfixture.db.adapters.sqlite import SQLiteAdapter
from sqlfixture.exceptions import DatabaseError

logger = logging.getLogger(__name__)


class AdapterFactory:
    """Factory for creating database adapters."""

    _adapters: Dict[DatabaseType, Type[BaseAdapter]] = {
        DatabaseType.POSTGRESQL: PostgreSQLAdapter,
        DatabaseType.MYSQL: MySQLAdapter,
        DatabaseType.SQLITE: SQLiteAdapter,
    }

    @classmethod
    def create_adapter(
        cls,
        config: DatabaseConfig,
        pool_config: Optional[ConnectionPoolConfig] = None,
    ) -> BaseAdapter:
        """Create a database adapter based on configuration.

        Raises:
            DatabaseError: If database type is not supported.
        """
        adapter_class = cls._adapters.get(config.type)
        if not adapter_class:
            supported_types = list(cls._adapters.keys())
            raise DatabaseError(
                f"Unsupported database type: {config.type}. "
                f"Supported types: {supported_types}"
            )

        return adapter_class(config, pool_config)


class ConnectionManager:
    """Shared connection provider: one adapter (engine and pool) per configured database."""

    def __init__(self, config: SQLFixtureConfig) -> None:
        self.config = config
        self._adapters: Dict[str, BaseAdapter] = {}
        self._factory = AdapterFactory()

    @property
    def default_database(self) -> Optional[str]:
        return self.config.default_database

    def get_adapter(self, db_name: Optional[str] = None) -> BaseAdapter:
        """Get database adapter by name, creating it on first use.

        Args:
            db_name: Database connection name. If None or blank, uses default database.

        Raises:
            DatabaseError: If database connection is not found or creation fails.
        """
        if not db_name:
            db_name = self.config.default_database

        if not db_name:
            raise DatabaseError("No database specified and no default database configured")

        if db_name not in self.config.databases:
            available_dbs = list(self.config.databases.keys())
            raise DatabaseError(
                f"Database '{db_name}' not found in configuration. "
                f"Available databases: {available_dbs}"
            )

        if db_name in self._adapters:
            return self._adapters[db_name]

        try:
            db_config = self.config.databases[db_name]
            pool_config = self.config.connection_pools.get(db_name) or self.config.connection_pools.get(
                "default", ConnectionPoolConfig()
            )

            adapter = self._factory.create_adapter(db_config, pool_config)
            self._adapters[db_name] = adapter
            logger.debug(f"Created {db_config.type.value} adapter for database '{db_name}'")

            return adapter

        except DatabaseError:
            raise
        except Exception as e:
            raise DatabaseError(f"Failed to create adapter for database '{db_name}': {e}") from e

    def connect(self, db_name: Optional[str] = None) -> DatabaseConnection:
        """Open a dedicated connection on ``db_name`` (default database when blank)."""
        name = db_name or self.config.default_database
        return self.get_adapter(name).connect(name)

    def test_connection(self, db_name: Optional[str] = None) -> Dict[str, Any]:
        """Test database connection.

        Returns:
            Connection test result with timing and status information.
        """
        start_time = time.time()

        try:
            adapter = self.get_adapter(db_name)
            adapter.test_connection()

            return {
                'database': db_name or self.config.default_database,
                'status': 'success',
                'message': 'Connection successful',
                'response_time': round((time.time() - start_time) * 1000, 2),
                'driver': adapter.get_driver_name(),
                'database_type': adapter.config.type.value,
            }

        except DatabaseError as e:
            return {
                'database': db_name or self.config.default_database,
                'status': 'failed',
                'message': str(e),
                'response_time': round((time.time() - start_time) * 1000, 2),
                'error': type(e).__name__,
            }

    def test_all_connections(self) -> Dict[str, Dict[str, Any]]:
        """Test all configured database connections."""
        return {db_name: self.test_connection(db_name) for db_name in self.config.databases}

    def get_connection_status(self) -> Dict[str, Any]:
        """Get status of all database connections."""
        status = {
            'total_configured': len(self.config.databases),
            'total_active': len(self._adapters),
            'default_database': self.config.default_database,
            'connections': {},
        }

        for db_name, db_config in self.config.databases.items():
            status['connections'][db_name] = {
                'active': db_name in self._adapters,
                'type': db_config.type.value,
            }

        return status

    def close_connection(self, db_name: str) -> None:
        """Dispose of the adapter of ``db_name`` if it was created."""
        adapter = self._adapters.pop(db_name, None)
        if adapter is not None:
            adapter.close()

    def close_all_connections(self) -> None:
        """Dispose of every adapter and its pool."""
        for db_name in list(self._adapters):
            self.close_connection(db_name)


class ConnectionRegistry:
    """Live connections owned by a single test, keyed by logical name.

    Connections are opened lazily on first use and closed exactly once by
    :meth:`close_all`.
    """

    def __init__(
        self,
        provider: ConnectionManager,
        default_name: Optional[str] = None,
        allowed_names: Sequence[str] = (),
    ) -> None:
        self.provider = provider
        self.default_name = default_name or provider.default_database or ""
        self.allowed_names = list(allowed_names)
        self._connections: Dict[str, DatabaseConnection] = {}
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def names(self) -> List[str]:
        """Names of the connections opened so far, in opening order."""
        return list(self._connections)

    def resolve_name(self, name: Optional[str] = None) -> str:
        return name or self.default_name

    def get(self, name: Optional[str] = None) -> DatabaseConnection:
        """Return the connection called ``name`` (default when blank), opening it if needed.

        Raises:
            DatabaseError: If the registry is closed or the connection cannot be opened.
        """
        if self._closed:
            raise DatabaseError("Connection registry is already closed")
        resolved = self.resolve_name(name)
        if self.allowed_names and resolved not in self.allowed_names:
            raise DatabaseError(
                f"Connection '{resolved}' is not available to tests. "
                f"Available connections: {self.allowed_names}"
            )
        connection = self._connections.get(resolved)
        if connection is None:
            connection = self.provider.connect(resolved)
            self._connections[resolved] = connection
        return connection

    def get_all(self, names: Sequence[str]) -> List[DatabaseConnection]:
        return [self.get(name) for name in names]

    def close_all(self) -> None:
        """Close every open connection; a second call is a no-op.

        Every connection is closed even if closing an earlier one fails; the
        first failure is raised afterwards.
        """
        if self._closed:
            return
        self._closed = True
        first_error: Optional[DatabaseError] = None
        for connection in self._connections.values():
            try:
                connection.close()
            except DatabaseError as e:
                logger.warning(f"Failed to close connection '{connection.name}': {e}")
                if first_error is None:
                    first_error = e
        self._connections.clear()
        if first_error is not None:
            raise first_error


# Global connection manager instance
_connection_manager: Optional[ConnectionManager] = None


def get_connection_manager(config: Optional[SQLFixtureConfig] = None) -> ConnectionManager:
    """Get the global connection manager instance.

    Passing a configuration other than the one the current manager was built
    from disposes of that manager and replaces it.

    Raises:
        DatabaseError: If no configuration is available.
    """
    global _connection_manager

    if _connection_manager is not None and config is not None and _connection_manager.config is not config:
        _connection_manager.close_all_connections()
        _connection_manager = None

    if _connection_manager is None:
        if config is None:
            from sqlfixture.config import get_config
            from sqlfixture.exceptions import ConfigurationError

            try:
                config = get_config()
            except ConfigurationError as e:
                raise DatabaseError("No configuration available for connection manager") from e

        _connection_manager = ConnectionManager(config)

    return _connection_manager


def set_connection_manager(manager: Optional[ConnectionManager]) -> None:
    """Set (or reset with None) the global connection manager instance."""
    global _connection_manager
    _connection_manager = manager
