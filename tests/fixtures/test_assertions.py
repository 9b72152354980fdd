"""Tests for table comparison, column filters and failure handlers."""

import decimal
from unittest.mock import Mock

import pytest

from sqlfixture.dataset.models import Dataset, Table
from sqlfixture.exceptions import ConfigurationError, DatabaseAssertionError, NoSuchTableError
from sqlfixture.fixtures.assertions import (
    AssertionEngine,
    DatabaseAssertion,
    DefaultFailureHandler,
    DiffCollectingFailureHandler,
    ExcludeColumnFilter,
    IncludeColumnFilter,
    create_failure_handler,
    values_equal,
)
from sqlfixture.fixtures.declarations import AssertionMode, ExpectationDeclaration


def person(*rows, name="person") -> Table:
    return Table.from_records(name, list(rows))


def compare(expected, actual, mode=AssertionMode.DEFAULT, column_filters=(), ignore_columns=()):
    handler = DiffCollectingFailureHandler()
    DatabaseAssertion(mode).assert_tables_equal(expected, actual, column_filters, ignore_columns, handler)
    return handler.differences


class TestValuesEqual:
    """Test null-aware value comparison."""

    @pytest.mark.parametrize("expected, actual", [
        (None, None),
        ("1", 1),
        ("1.50", decimal.Decimal("1.5")),
        ("2.5", 2.5),
        ("true", True),
        ("0", False),
        ("Phillip", "Phillip"),
        (1, "1"),
    ])
    def test_equal(self, expected, actual):
        assert values_equal(expected, actual)

    @pytest.mark.parametrize("expected, actual", [
        (None, "x"),
        ("x", None),
        ("1", 2),
        ("abc", 1),
        ("false", True),
        ("Phil", "Phillip"),
    ])
    def test_not_equal(self, expected, actual):
        assert not values_equal(expected, actual)


class TestDatabaseAssertion:
    """Test table comparison in every assertion mode."""

    def test_equal_tables(self):
        assert compare(person({"id": "1", "name": "a"}), person({"id": 1, "name": "a"})) == []

    def test_two_empty_tables_are_equal(self):
        assert compare(Table("person", columns=["id"]), Table("person", columns=["id", "name"])) == []

    def test_row_count_mismatch_is_one_difference(self):
        differences = compare(person({"id": "1"}, {"id": "2"}), person({"id": 1}))

        assert len(differences) == 1
        assert "row count (table=person) expected:<2> but was:<1>" in differences[0].message

    def test_value_mismatch(self):
        differences = compare(person({"id": "1", "name": "a"}), person({"id": 1, "name": "b"}))

        assert [(d.row, d.column, d.expected, d.actual) for d in differences] == [(0, "name", "a", "b")]

    def test_default_mode_requires_same_columns(self):
        differences = compare(person({"id": "1"}), person({"id": 1, "name": "a"}))

        assert len(differences) == 1
        assert "column mismatch" in differences[0].message

    def test_non_strict_ignores_extra_actual_columns(self):
        assert compare(person({"id": "1"}), person({"id": 1, "name": "a"}), AssertionMode.NON_STRICT) == []

    def test_missing_expected_column_fails_in_non_strict(self):
        differences = compare(person({"id": "1", "age": "3"}), person({"id": 1}), AssertionMode.NON_STRICT)

        assert len(differences) == 1

    def test_unordered_mode_sorts_rows(self):
        expected = person({"id": "2", "name": "b"}, {"id": "1", "name": "a"})
        actual = person({"id": 1, "name": "a"}, {"id": 2, "name": "b"})

        assert len(compare(expected, actual, AssertionMode.NON_STRICT)) == 4
        assert compare(expected, actual, AssertionMode.NON_STRICT_UNORDERED) == []

    def test_column_filters_and_ignored_columns(self):
        expected = person({"id": "1", "name": "a", "created": "x"})
        actual = person({"id": 1, "name": "b", "created": "y"})

        assert compare(expected, actual, ignore_columns=["NAME", "created"]) == []
        assert compare(expected, actual, column_filters=[IncludeColumnFilter("id")]) == []
        assert compare(expected, actual, column_filters=[ExcludeColumnFilter(["person.name", "cre*"])]) == []
        assert compare(expected, actual, column_filters=[ExcludeColumnFilter("other.name")]) != []

    def test_datasets_require_expected_tables(self):
        expected = Dataset([person({"id": "1"}), person(name="bankcard")])
        actual = Dataset([person({"id": 1})])

        with pytest.raises(NoSuchTableError):
            DatabaseAssertion().assert_datasets_equal(expected, actual, [], [], DefaultFailureHandler())


class TestFailureHandlers:
    """Test fail-fast and diff-collecting handlers."""

    def test_default_handler_fails_on_first_difference(self):
        with pytest.raises(DatabaseAssertionError) as exc_info:
            DatabaseAssertion().assert_tables_equal(
                person({"id": "1", "name": "a"}, {"id": "2", "name": "b"}),
                person({"id": 1, "name": "x"}, {"id": 2, "name": "y"}),
                [], [], DefaultFailureHandler(),
            )

        assert isinstance(exc_info.value, AssertionError)
        assert len(exc_info.value.differences) == 1

    def test_diff_collecting_handler_fails_once_at_finish(self):
        handler = DiffCollectingFailureHandler()
        DatabaseAssertion().assert_tables_equal(
            person({"id": "1", "name": "a"}, {"id": "2", "name": "b"}),
            person({"id": 1, "name": "x"}, {"id": 2, "name": "y"}),
            [], [], handler,
        )

        with pytest.raises(DatabaseAssertionError, match="Found 2 difference"):
            handler.finish()

    def test_finish_without_differences(self):
        DiffCollectingFailureHandler().finish()

    def test_create_failure_handler(self):
        assert isinstance(create_failure_handler("diff_collecting"), DiffCollectingFailureHandler)
        assert isinstance(create_failure_handler(None), DefaultFailureHandler)
        assert isinstance(create_failure_handler(DiffCollectingFailureHandler), DiffCollectingFailureHandler)
        with pytest.raises(ConfigurationError):
            create_failure_handler("unknown")


class TestAssertionEngine:
    """Test how expectations pick the actual data."""

    @pytest.fixture
    def connection(self):
        connection = Mock()
        connection.name = "main"
        connection.create_table.side_effect = lambda name: person({"id": 1}, name=name)
        connection.create_query_table.side_effect = lambda name, query: person({"id": 1}, name=name)
        connection.create_dataset.return_value = Dataset([person({"id": 1})])
        return connection

    def test_query_requires_table(self, connection):
        declaration = ExpectationDeclaration("expected.xml", query="SELECT 1")

        with pytest.raises(ConfigurationError):
            AssertionEngine().verify(declaration, Dataset([person()]), connection, [], DefaultFailureHandler())

    def test_query_with_table(self, connection):
        declaration = ExpectationDeclaration("expected.xml", query="SELECT id FROM person", table="person")

        AssertionEngine().verify(declaration, Dataset([person({"id": "1"})]), connection, [], DefaultFailureHandler())

        connection.create_query_table.assert_called_once_with("person", "SELECT id FROM person")

    def test_table_list(self, connection):
        declaration = ExpectationDeclaration("expected.xml", table="person, bankcard")
        expected = Dataset([person({"id": "1"}), person({"id": "1"}, name="bankcard")])

        AssertionEngine().verify(declaration, expected, connection, [], DefaultFailureHandler())

        assert [call.args[0] for call in connection.create_table.call_args_list] == ["person", "bankcard"]

    def test_full_dataset(self, connection):
        declaration = ExpectationDeclaration("expected.xml")

        AssertionEngine().verify(declaration, Dataset([person({"id": "1"})]), connection, [], DefaultFailureHandler())

        connection.create_dataset.assert_called_once_with()

    def test_missing_dataset_is_skipped(self, connection):
        AssertionEngine().verify(ExpectationDeclaration(""), None, connection, [], DefaultFailureHandler())

        connection.create_dataset.assert_not_called()
