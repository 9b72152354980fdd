"""SQLite database adapter."""

from pathlib import Path
from typing import Any, Dict, Optional

from sqlalchemy.pool import StaticPool

from sqlfixture.config.models import DatabaseConfig, ConnectionPoolConfig
from sqlfixture.db.base import BaseAdapter
from sqlfixture.exceptions import DatabaseError

MEMORY_DATABASE = ":memory:"


class SQLiteAdapter(BaseAdapter):
    """SQLite database adapter.

    A ``path`` of ``:memory:`` gives one in-memory database shared by every
    connection of the adapter, which lets fixtures and the code under test
    see the same data.
    """

    def __init__(
        self,
        config: DatabaseConfig,
        pool_config: Optional[ConnectionPoolConfig] = None,
    ) -> None:
        """Initialize SQLite adapter."""
        super().__init__(config, pool_config)

        if not self.config.path and not self.config.url:
            raise DatabaseError("SQLite requires a database file path")

    @property
    def in_memory(self) -> bool:
        return self.config.path == MEMORY_DATABASE

    def get_driver_name(self) -> str:
        """Get the driver name for SQLite."""
        return "sqlite"

    def build_connection_string(self) -> str:
        """Build SQLite connection string.

        Raises:
            DatabaseError: If database path is invalid.
        """
        if not self.config.path:
            raise DatabaseError("SQLite requires a database file path")

        if self.in_memory:
            return "sqlite://"

        # Relative paths are resolved against the working directory
        db_path = Path(self.config.path)
        if not db_path.is_absolute():
            db_path = Path.cwd() / db_path

        db_path.parent.mkdir(parents=True, exist_ok=True)

        return f"sqlite:///{db_path}"

    def _get_engine_args(self) -> Dict[str, Any]:
        if self.in_memory:
            return {
                'poolclass': StaticPool,
                'echo': False,
                'connect_args': {'check_same_thread': False},
            }
        return super()._get_engine_args()

    def _get_engine_options(self) -> Dict[str, Any]:
        """Get SQLite-specific engine options."""
        return {
            'pool_pre_ping': True,
            'pool_recycle': -1,  # No recycling for SQLite
            'connect_args': {
                'check_same_thread': False,
                'timeout': self.config.options.get('timeout', 30),
            }
        }

    def truncate_statement(self, quoted_table: str) -> str:
        """SQLite has no TRUNCATE; an unqualified DELETE uses its truncate optimisation."""
        return f"DELETE FROM {quoted_table}"
