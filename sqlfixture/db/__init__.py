"""Database connectivity, per-test connections and dataset operations."""

from sqlfixture.db.base import BaseAdapter, DatabaseConnection
from sqlfixture.db.connection import (
    AdapterFactory,
    ConnectionManager,
    ConnectionRegistry,
    get_connection_manager,
    set_connection_manager,
)
from sqlfixture.db.operations import DatabaseOperation, OperationExecutor
from sqlfixture.db.adapters import (
    PostgreSQLAdapter,
    MySQLAdapter,
    SQLiteAdapter,
)

__all__ = [
    # Base classes
    "BaseAdapter",
    "DatabaseConnection",
    # Connection management
    "AdapterFactory",
    "ConnectionManager",
    "ConnectionRegistry",
    "get_connection_manager",
    "set_connection_manager",
    # Operations
    "DatabaseOperation",
    "OperationExecutor",
    # Database adapters
    "PostgreSQLAdapter",
    "MySQLAdapter",
    "SQLiteAdapter",
]
