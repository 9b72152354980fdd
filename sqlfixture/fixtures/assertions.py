"""Comparison of expected datasets with the database.

Differences are passed to a :class:`FailureHandler`, which decides whether
to fail fast or to collect every difference and fail once at the end.
"""

import decimal
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from fnmatch import fnmatchcase
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from sqlfixture.dataset.codecs.base import to_text
from sqlfixture.dataset.models import Dataset, Table
from sqlfixture.exceptions import ConfigurationError, DatabaseAssertionError
from sqlfixture.fixtures.declarations import AssertionMode, ExpectationDeclaration

logger = logging.getLogger(__name__)

_TRUE_STRINGS = {'true', 't', 'yes', 'y', '1'}


@dataclass(frozen=True)
class Difference:
    """One mismatch between expected and actual content."""
    table: str
    row: Optional[int]
    column: Optional[str]
    expected: Any
    actual: Any
    message: str

    def __str__(self) -> str:
        return self.message


class ColumnFilter(ABC):
    """Decides whether a column takes part in a comparison."""

    @abstractmethod
    def accept(self, table_name: str, column: str) -> bool:
        pass


def _matches(pattern: str, table_name: str, column: str) -> bool:
    pattern = pattern.lower()
    if '.' in pattern:
        table_pattern, column_pattern = pattern.rsplit('.', 1)
        return fnmatchcase(table_name.lower(), table_pattern) and fnmatchcase(column.lower(), column_pattern)
    return fnmatchcase(column.lower(), pattern)


@dataclass(frozen=True)
class IncludeColumnFilter(ColumnFilter):
    """Keeps only columns matching one of the patterns (``col``, ``tab*.col``)."""
    patterns: tuple

    def __init__(self, patterns: Union[str, Sequence[str]]):
        object.__setattr__(self, 'patterns', (patterns,) if isinstance(patterns, str) else tuple(patterns))

    def accept(self, table_name: str, column: str) -> bool:
        return any(_matches(pattern, table_name, column) for pattern in self.patterns)


@dataclass(frozen=True)
class ExcludeColumnFilter(ColumnFilter):
    """Drops columns matching one of the patterns."""
    patterns: tuple

    def __init__(self, patterns: Union[str, Sequence[str]]):
        object.__setattr__(self, 'patterns', (patterns,) if isinstance(patterns, str) else tuple(patterns))

    def accept(self, table_name: str, column: str) -> bool:
        return not any(_matches(pattern, table_name, column) for pattern in self.patterns)


class FailureHandler(ABC):
    """Receives every difference found during one verification pass."""

    @abstractmethod
    def handle(self, difference: Difference) -> None:
        pass

    def finish(self) -> None:
        """Called once the pass is over."""
        pass


class DefaultFailureHandler(FailureHandler):
    """Fails on the first difference."""

    def handle(self, difference: Difference) -> None:
        raise DatabaseAssertionError(difference.message, [difference])


class DiffCollectingFailureHandler(FailureHandler):
    """Collects every difference and fails once from :meth:`finish`."""

    def __init__(self) -> None:
        self.differences: List[Difference] = []

    def handle(self, difference: Difference) -> None:
        logger.debug(f"Collected difference: {difference.message}")
        self.differences.append(difference)

    def finish(self) -> None:
        if not self.differences:
            return
        lines = [f"  {difference.message}" for difference in self.differences]
        message = f"Found {len(self.differences)} difference(s) in database content:\n" + "\n".join(lines)
        raise DatabaseAssertionError(message, self.differences)


FAILURE_HANDLERS: Dict[str, Callable[[], FailureHandler]] = {
    'default': DefaultFailureHandler,
    'diff_collecting': DiffCollectingFailureHandler,
}


def create_failure_handler(handler: Union[str, Callable[[], FailureHandler], None] = None) -> FailureHandler:
    """Build a fresh failure handler from a registered key or a factory callable.

    Raises:
        ConfigurationError: If the key is not registered.
    """
    if handler is None:
        return DefaultFailureHandler()
    if callable(handler):
        return handler()
    factory = FAILURE_HANDLERS.get(handler)
    if factory is None:
        raise ConfigurationError(
            f"Unknown failure handler '{handler}'. Available handlers: {list(FAILURE_HANDLERS)}"
        )
    return factory()


def _plain(value: Any) -> Any:
    if hasattr(value, 'item') and not isinstance(value, (str, bytes)):
        return value.item()
    return value


def values_equal(expected: Any, actual: Any) -> bool:
    """Null-aware comparison; the expected value is read as the actual value's type."""
    expected, actual = _plain(expected), _plain(actual)
    if expected is None or actual is None:
        return expected is None and actual is None

    if isinstance(actual, bool):
        if isinstance(expected, bool):
            return expected == actual
        return (str(expected).strip().lower() in _TRUE_STRINGS) == actual

    if isinstance(actual, (int, float, decimal.Decimal)) and not isinstance(expected, bool):
        try:
            return decimal.Decimal(str(expected).strip()) == decimal.Decimal(str(actual))
        except decimal.InvalidOperation:
            return False

    if type(expected) is type(actual):
        return expected == actual

    return to_text(expected) == to_text(actual)


class DatabaseAssertion:
    """Compares tables in one :class:`AssertionMode`."""

    def __init__(self, mode: AssertionMode = AssertionMode.DEFAULT) -> None:
        self.mode = mode

    def _compared_columns(
        self,
        table: Table,
        column_filters: Sequence[ColumnFilter],
        ignore_columns: Sequence[str],
    ) -> List[str]:
        ignored = {column.lower() for column in ignore_columns}
        return [
            column for column in table.columns
            if column.lower() not in ignored
            and all(column_filter.accept(table.name, column) for column_filter in column_filters)
        ]

    def assert_tables_equal(
        self,
        expected: Table,
        actual: Table,
        column_filters: Sequence[ColumnFilter],
        ignore_columns: Sequence[str],
        handler: FailureHandler,
    ) -> None:
        """Report every difference between ``expected`` and ``actual`` to ``handler``."""
        table_name = expected.name
        if expected.is_empty and actual.is_empty:
            return

        if expected.row_count != actual.row_count:
            handler.handle(Difference(
                table=table_name,
                row=None,
                column=None,
                expected=expected.row_count,
                actual=actual.row_count,
                message=(
                    f"row count (table={table_name}) expected:<{expected.row_count}> "
                    f"but was:<{actual.row_count}>"
                ),
            ))
            return

        expected_columns = self._compared_columns(expected, column_filters, ignore_columns)
        actual_columns = self._compared_columns(actual, column_filters, ignore_columns)
        actual_by_lower = {column.lower(): column for column in actual_columns}

        missing = [column for column in expected_columns if column.lower() not in actual_by_lower]
        extra = [
            column for column in actual_columns
            if column.lower() not in {name.lower() for name in expected_columns}
        ]
        if missing or (self.mode == AssertionMode.DEFAULT and extra):
            handler.handle(Difference(
                table=table_name,
                row=None,
                column=None,
                expected=expected_columns,
                actual=actual_columns,
                message=(
                    f"column mismatch (table={table_name}) expected:<{expected_columns}> "
                    f"but was:<{actual_columns}>"
                ),
            ))
            return

        pairs = [(column, actual_by_lower[column.lower()]) for column in expected_columns]
        if self.mode == AssertionMode.NON_STRICT_UNORDERED:
            expected = expected.sorted_by([expected_column for expected_column, _ in pairs])
            actual = actual.sorted_by([actual_column for _, actual_column in pairs])

        expected_rows = expected.records()
        actual_rows = actual.records()
        for index, (expected_row, actual_row) in enumerate(zip(expected_rows, actual_rows)):
            for expected_column, actual_column in pairs:
                expected_value = expected_row[expected_column]
                actual_value = actual_row[actual_column]
                if not values_equal(expected_value, actual_value):
                    handler.handle(Difference(
                        table=table_name,
                        row=index,
                        column=expected_column,
                        expected=expected_value,
                        actual=actual_value,
                        message=(
                            f"value (table={table_name}, row={index}, col={expected_column}) "
                            f"expected:<{expected_value}> but was:<{actual_value}>"
                        ),
                    ))

    def assert_datasets_equal(
        self,
        expected: Dataset,
        actual: Dataset,
        column_filters: Sequence[ColumnFilter],
        ignore_columns: Sequence[str],
        handler: FailureHandler,
    ) -> None:
        """Compare every table of ``expected`` with the same table of ``actual``.

        Raises:
            NoSuchTableError: If ``actual`` lacks a table of ``expected``.
        """
        for expected_table in expected:
            actual_table = actual.get_table(expected_table.name)
            self.assert_tables_equal(expected_table, actual_table, column_filters, ignore_columns, handler)


class AssertionEngine:
    """Verifies one expectation against a live connection."""

    def verify(
        self,
        declaration: ExpectationDeclaration,
        expected: Optional[Dataset],
        connection,
        column_filters: Sequence[ColumnFilter],
        handler: FailureHandler,
    ) -> None:
        """Check the database against ``expected``; a missing dataset is skipped.

        Raises:
            ConfigurationError: If a query is given without a table name.
        """
        if expected is None:
            return

        logger.debug(f"Verifying expectation '{declaration.location}' on '{connection.name}'")
        assertion = DatabaseAssertion(declaration.assertion_mode)
        ignore_columns = declaration.ignore_columns

        if declaration.query:
            if not declaration.table:
                raise ConfigurationError("The table name must be specified when using a SQL query")
            expected_table = expected.get_table(declaration.table.strip())
            actual_table = connection.create_query_table(declaration.table.strip(), declaration.query)
            assertion.assert_tables_equal(expected_table, actual_table, column_filters, ignore_columns, handler)
        elif declaration.table_names:
            for name in declaration.table_names:
                actual_table = connection.create_table(name)
                expected_table = expected.get_table(name)
                assertion.assert_tables_equal(expected_table, actual_table, column_filters, ignore_columns, handler)
        else:
            actual = connection.create_dataset()
            assertion.assert_datasets_equal(expected, actual, column_filters, ignore_columns, handler)
