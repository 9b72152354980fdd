"""Dataset operations applied to a live database connection.

Each operation takes a :class:`~sqlfixture.dataset.models.Dataset` and
writes it to the database: tables are processed in dataset order for
inserts and in reverse order for deletes, so parents can be declared
before children.
"""

import datetime
import decimal
import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from sqlalchemy import Column, Table as SQLTable, and_, delete, insert, select, func, update

from sqlfixture.dataset.models import Dataset, Table
from sqlfixture.exceptions import ConfigurationError, DatabaseError, UnsupportedOperationError

logger = logging.getLogger(__name__)

_TRUE_STRINGS = {'true', 't', 'yes', 'y', '1'}
_FALSE_STRINGS = {'false', 'f', 'no', 'n', '0'}


class DatabaseOperation(str, Enum):
    """Operations that bring the database into a known state."""
    NONE = "NONE"
    UPDATE = "UPDATE"
    INSERT = "INSERT"
    REFRESH = "REFRESH"
    DELETE = "DELETE"
    DELETE_ALL = "DELETE_ALL"
    CLEAN_INSERT = "CLEAN_INSERT"
    TRUNCATE_TABLE = "TRUNCATE_TABLE"
    SQL = "SQL"

    @classmethod
    def parse(cls, value: Any) -> "DatabaseOperation":
        """Parse an operation from its name (case-insensitive).

        Raises:
            ConfigurationError: If ``value`` names no operation.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls[str(value).strip().upper()]
        except KeyError:
            valid = [member.value for member in cls]
            raise ConfigurationError(
                f"Unknown database operation '{value}'. Valid operations: {valid}"
            ) from None


def coerce_value(column: Column, value: Any) -> Any:
    """Convert a dataset value to the Python type of ``column`` where possible.

    Values that cannot be converted are passed through unchanged and left for
    the database driver to judge.
    """
    if value is None:
        return None
    if hasattr(value, 'item') and not isinstance(value, (str, bytes)):
        value = value.item()
    try:
        python_type = column.type.python_type
    except NotImplementedError:
        return value

    if isinstance(value, python_type) and not (python_type is int and isinstance(value, bool)):
        return value

    try:
        if python_type is bool:
            text_value = str(value).strip().lower()
            if text_value in _TRUE_STRINGS:
                return True
            if text_value in _FALSE_STRINGS:
                return False
            return value
        if python_type is int:
            if isinstance(value, float) and value.is_integer():
                return int(value)
            return int(str(value).strip())
        if python_type is float:
            return float(value)
        if python_type is decimal.Decimal:
            return decimal.Decimal(str(value).strip())
        if python_type is datetime.datetime:
            return datetime.datetime.fromisoformat(str(value).strip())
        if python_type is datetime.date:
            return datetime.date.fromisoformat(str(value).strip()[:10])
        if python_type is datetime.time:
            return datetime.time.fromisoformat(str(value).strip())
        if python_type is str:
            return str(value)
    except (ValueError, TypeError, decimal.InvalidOperation):
        return value
    return value


def _find_column(target: SQLTable, name: str) -> Optional[Column]:
    lowered = name.lower()
    for column in target.columns:
        if column.name.lower() == lowered:
            return column
    return None


def _prepare_rows(target: SQLTable, table: Table) -> List[Dict[str, Any]]:
    """Map dataset rows onto the columns of ``target`` with type coercion.

    Raises:
        DatabaseError: If the dataset names a column the table does not have.
    """
    column_map: Dict[str, Column] = {}
    for name in table.columns:
        column = _find_column(target, name)
        if column is None:
            raise DatabaseError(f"Column '{name}' not found in table '{target.name}'")
        column_map[name] = column

    return [
        {column_map[name].name: coerce_value(column_map[name], value) for name, value in record.items()}
        for record in table.records()
    ]


def _primary_key(target: SQLTable) -> List[Column]:
    columns = list(target.primary_key.columns)
    if not columns:
        raise DatabaseError(f"Table '{target.name}' has no primary key")
    return columns


def _split_row(target: SQLTable, row: Dict[str, Any]) -> Tuple[Any, Dict[str, Any]]:
    """Return the primary key clause and the non-key values of ``row``."""
    key_columns = _primary_key(target)
    missing = [column.name for column in key_columns if column.name not in row]
    if missing:
        raise DatabaseError(f"Dataset for table '{target.name}' lacks primary key column(s) {missing}")
    clause = and_(*[column == row[column.name] for column in key_columns])
    key_names = {column.name for column in key_columns}
    values = {name: value for name, value in row.items() if name not in key_names}
    return clause, values


class OperationExecutor:
    """Applies a :class:`DatabaseOperation` to a connection through a dispatch table."""

    def __init__(self) -> None:
        self.operation_handlers: Dict[DatabaseOperation, Callable[[Any, Dataset], None]] = {
            DatabaseOperation.UPDATE: self._update,
            DatabaseOperation.INSERT: self._insert,
            DatabaseOperation.REFRESH: self._refresh,
            DatabaseOperation.DELETE: self._delete,
            DatabaseOperation.DELETE_ALL: self._delete_all,
            DatabaseOperation.CLEAN_INSERT: self._clean_insert,
            DatabaseOperation.TRUNCATE_TABLE: self._truncate,
        }

    def execute(self, operation: DatabaseOperation, connection, dataset: Dataset) -> None:
        """Apply ``operation`` with ``dataset`` to ``connection``.

        Raises:
            UnsupportedOperationError: If the operation has no handler.
            DatabaseError: If the database rejects the operation.
        """
        handler = self.operation_handlers.get(operation)
        if handler is None:
            raise UnsupportedOperationError(operation)
        logger.debug(
            f"Applying {operation.value} to '{connection.name}' with tables {dataset.table_names}"
        )
        handler(connection, dataset)

    def _targets(self, connection, dataset: Dataset) -> List[Tuple[SQLTable, Table]]:
        return [(connection.reflect_table(table.name), table) for table in dataset]

    def _insert(self, connection, dataset: Dataset) -> None:
        targets = self._targets(connection, dataset)
        with connection.transaction() as conn:
            self._insert_rows(conn, targets)

    def _update(self, connection, dataset: Dataset) -> None:
        targets = self._targets(connection, dataset)
        with connection.transaction() as conn:
            for target, table in targets:
                for row in _prepare_rows(target, table):
                    clause, values = _split_row(target, row)
                    if values:
                        conn.execute(update(target).where(clause).values(**values))

    def _refresh(self, connection, dataset: Dataset) -> None:
        targets = self._targets(connection, dataset)
        with connection.transaction() as conn:
            for target, table in targets:
                for row in _prepare_rows(target, table):
                    clause, values = _split_row(target, row)
                    exists = conn.execute(
                        select(func.count()).select_from(target).where(clause)
                    ).scalar()
                    if exists:
                        if values:
                            conn.execute(update(target).where(clause).values(**values))
                    else:
                        conn.execute(insert(target).values(**row))

    def _delete(self, connection, dataset: Dataset) -> None:
        targets = self._targets(connection, dataset)
        with connection.transaction() as conn:
            for target, table in reversed(targets):
                for row in _prepare_rows(target, table):
                    clause, _ = _split_row(target, row)
                    conn.execute(delete(target).where(clause))

    def _delete_all(self, connection, dataset: Dataset) -> None:
        targets = self._targets(connection, dataset)
        with connection.transaction() as conn:
            self._delete_rows(conn, targets)

    def _clean_insert(self, connection, dataset: Dataset) -> None:
        targets = self._targets(connection, dataset)
        with connection.transaction() as conn:
            self._delete_rows(conn, targets)
            self._insert_rows(conn, targets)

    def _truncate(self, connection, dataset: Dataset) -> None:
        for table in reversed(dataset.tables):
            connection.truncate_table(table.name)

    @staticmethod
    def _insert_rows(conn, targets: List[Tuple[SQLTable, Table]]) -> None:
        for target, table in targets:
            rows = _prepare_rows(target, table)
            if rows:
                conn.execute(insert(target), rows)

    @staticmethod
    def _delete_rows(conn, targets: List[Tuple[SQLTable, Table]]) -> None:
        # children before parents
        for target, _ in reversed(targets):
            conn.execute(delete(target))
