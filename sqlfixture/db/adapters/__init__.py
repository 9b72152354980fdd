"""Database adapters for different database types."""

from sqlfixture.db.adapters.postgresql import PostgreSQLAdapter
from sqlfixture.db.adapters.mysql import MySQLAdapter
from sqlfixture.db.adapters.sqlite import SQLiteAdapter

__all__ = [
    "PostgreSQLAdapter",
    "MySQLAdapter",
    "SQLiteAdapter",
]
