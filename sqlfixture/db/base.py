"""Base database adapter and live connection handle."""

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Dict, Generator, List, Optional

from sqlalchemy import MetaData, Table as SQLTable, create_engine, inspect, select, text
from sqlalchemy.engine import Engine, Connection
from sqlalchemy.exc import NoSuchTableError as SANoSuchTableError, SQLAlchemyError

from sqlfixture.config.models import DatabaseConfig, ConnectionPoolConfig
from sqlfixture.dataset.models import Dataset, Table
from sqlfixture.exceptions import DatabaseError, NoSuchTableError

logger = logging.getLogger(__name__)


class BaseAdapter(ABC):
    """Base class for database adapters."""

    def __init__(
        self,
        config: DatabaseConfig,
        pool_config: Optional[ConnectionPoolConfig] = None,
    ) -> None:
        """Initialize database adapter.

        Args:
            config: Database configuration.
            pool_config: Connection pool configuration.
        """
        self.config = config
        self.pool_config = pool_config or ConnectionPoolConfig()
        self._engine: Optional[Engine] = None

    @abstractmethod
    def build_connection_string(self) -> str:
        """Build database connection string."""
        pass

    @abstractmethod
    def get_driver_name(self) -> str:
        """Get the driver name for this adapter."""
        pass

    def get_engine(self) -> Engine:
        """Get or create SQLAlchemy engine.

        Raises:
            DatabaseError: If engine creation fails.
        """
        if self._engine is None:
            try:
                connection_string = self.config.url or self.build_connection_string()
                self._engine = create_engine(connection_string, **self._get_engine_args())
            except Exception as e:
                raise DatabaseError(
                    f"Failed to create database engine: {e}",
                    database_type=self.config.type.value,
                ) from e

        return self._engine

    def _get_engine_args(self) -> Dict[str, Any]:
        """Build the keyword arguments passed to ``create_engine``."""
        engine_args = {
            'pool_size': self.pool_config.max_connections,
            'max_overflow': self.pool_config.max_overflow,
            'pool_timeout': self.pool_config.timeout,
            'pool_recycle': self.pool_config.pool_recycle,
            'pool_pre_ping': self.pool_config.pool_pre_ping,
            'echo': False,
        }
        engine_args.update(self._get_engine_options())
        return engine_args

    def _get_engine_options(self) -> Dict[str, Any]:
        """Get database-specific engine options."""
        return {}

    def truncate_statement(self, quoted_table: str) -> str:
        """SQL used to empty a table for the TRUNCATE_TABLE operation."""
        return f"TRUNCATE TABLE {quoted_table}"

    @contextmanager
    def get_connection(self) -> Generator[Connection, None, None]:
        """Get a pooled connection that is committed and closed on exit.

        Raises:
            DatabaseError: If connection fails.
        """
        engine = self.get_engine()
        connection = None

        try:
            connection = engine.connect()
            yield connection
            connection.commit()
        except SQLAlchemyError as e:
            if connection is not None:
                connection.rollback()
            raise DatabaseError(f"Database connection error: {e}") from e
        finally:
            if connection is not None:
                connection.close()

    def connect(self, name: str) -> "DatabaseConnection":
        """Open a dedicated connection used by one test.

        Raises:
            DatabaseError: If the connection cannot be opened.
        """
        try:
            connection = self.get_engine().connect()
        except SQLAlchemyError as e:
            raise DatabaseError(
                f"Unable to open connection '{name}': {e}",
                database_type=self.config.type.value,
            ) from e
        logger.debug(f"Opened fixture connection '{name}' ({self.get_driver_name()})")
        return DatabaseConnection(name, self, connection)

    def test_connection(self) -> bool:
        """Test database connection.

        Raises:
            DatabaseError: If connection test fails.
        """
        with self.get_connection() as conn:
            conn.execute(text("SELECT 1 as test")).fetchone()
            return True

    def close(self) -> None:
        """Dispose of the engine and its pooled connections."""
        if self._engine:
            self._engine.dispose()
            self._engine = None


def split_statements(script: str, delimiter: str = ";") -> List[str]:
    """Split a SQL script into individual non-empty statements."""
    return [stmt.strip() for stmt in script.split(delimiter) if stmt.strip()]


class DatabaseConnection:
    """A live database handle owned by a single test.

    Every unit of work is committed immediately so that code under test,
    which uses its own connections, observes the fixture state.
    """

    def __init__(self, name: str, adapter: BaseAdapter, connection: Connection) -> None:
        self.name = name
        self.adapter = adapter
        self._connection = connection
        self._metadata = MetaData()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @contextmanager
    def transaction(self) -> Generator[Connection, None, None]:
        """Run a unit of work, committing on success and rolling back on failure.

        Raises:
            DatabaseError: If the database rejects the work.
        """
        if self._closed:
            raise DatabaseError(f"Connection '{self.name}' is already closed")
        try:
            yield self._connection
            self._connection.commit()
        except SQLAlchemyError as e:
            self._connection.rollback()
            raise DatabaseError(f"Database error on connection '{self.name}': {e}") from e
        except Exception:
            self._connection.rollback()
            raise

    def get_table_names(self) -> List[str]:
        """Table names in foreign key dependency order (parents first)."""
        with self.transaction() as conn:
            inspector = inspect(conn)
            return [name for name, _ in inspector.get_sorted_table_and_fkc_names() if name]

    def resolve_table_name(self, name: str) -> str:
        """Map ``name`` to the table name known by the database (case-insensitive).

        Raises:
            NoSuchTableError: If the database has no such table.
        """
        table_names = self.get_table_names()
        lowered = name.strip().lower()
        for candidate in table_names:
            if candidate.lower() == lowered:
                return candidate
        raise NoSuchTableError(name, table_names)

    def reflect_table(self, name: str) -> SQLTable:
        """Reflect (and cache) the SQLAlchemy table for ``name``."""
        real_name = self.resolve_table_name(name)
        if real_name in self._metadata.tables:
            return self._metadata.tables[real_name]
        try:
            with self.transaction() as conn:
                return SQLTable(real_name, self._metadata, autoload_with=conn)
        except SANoSuchTableError as e:
            raise NoSuchTableError(name) from e

    def create_table(self, name: str) -> Table:
        """Read the full current content of a table, ordered by primary key."""
        target = self.reflect_table(name)
        statement = select(target)
        order_by = list(target.primary_key.columns) or list(target.columns)
        statement = statement.order_by(*order_by)
        with self.transaction() as conn:
            result = conn.execute(statement)
            columns = list(result.keys())
            rows = [dict(zip(columns, row)) for row in result.fetchall()]
        return Table.from_records(target.name, rows, columns=columns)

    def create_query_table(self, name: str, query: str) -> Table:
        """Read the result of ``query`` as a table called ``name``."""
        with self.transaction() as conn:
            result = conn.execute(text(query))
            columns = list(result.keys())
            rows = [dict(zip(columns, row)) for row in result.fetchall()]
        return Table.from_records(name, rows, columns=columns)

    def create_dataset(self, table_names: Optional[List[str]] = None) -> Dataset:
        """Snapshot the current content of ``table_names`` (default: every table)."""
        names = table_names if table_names is not None else self.get_table_names()
        return Dataset(self.create_table(name) for name in names)

    def execute_sql(self, script: str) -> int:
        """Execute every statement of a SQL script; returns the statement count."""
        statements = split_statements(script)
        with self.transaction() as conn:
            for index, statement in enumerate(statements):
                try:
                    conn.execute(text(statement))
                except SQLAlchemyError as e:
                    raise DatabaseError(
                        f"Script execution failed at statement {index + 1}: {e}"
                    ) from e
        return len(statements)

    def truncate_table(self, name: str) -> None:
        target = self.reflect_table(name)
        quoted = self._connection.dialect.identifier_preparer.format_table(target)
        with self.transaction() as conn:
            conn.execute(text(self.adapter.truncate_statement(quoted)))

    def execute(self, operation: Any, dataset: Dataset) -> None:
        """Apply a dataset operation (insert, clean insert, ...) to this connection."""
        from sqlfixture.db.operations import OperationExecutor

        OperationExecutor().execute(operation, self, dataset)

    def close(self) -> None:
        """Close the underlying connection; closing twice is a no-op."""
        if self._closed:
            return
        self._closed = True
        try:
            self._connection.close()
        except SQLAlchemyError as e:
            raise DatabaseError(f"Unable to close connection '{self.name}': {e}") from e
        logger.debug(f"Closed fixture connection '{self.name}'")

    def __repr__(self) -> str:
        return f"DatabaseConnection(name={self.name!r}, closed={self._closed})"
