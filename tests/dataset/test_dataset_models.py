"""Tests for the table and dataset model."""

import pandas as pd
import pytest

from sqlfixture.dataset.models import CompositeDataset, Dataset, Table
from sqlfixture.exceptions import DuplicateTableError, NoSuchTableError


class TestTable:
    """Test table construction and helpers."""

    def test_from_records_senses_columns_in_first_seen_order(self):
        table = Table.from_records("person", [{"id": 1}, {"id": 2, "first_name": "Fred"}])

        assert table.columns == ["id", "first_name"]
        assert table.row_count == 2
        assert table.get_value(0, "first_name") is None

    def test_from_records_keeps_integers_next_to_nulls(self):
        table = Table.from_records("person", [{"id": 1, "age": None}, {"id": 2, "age": 40}])

        assert table.get_value(1, "age") == 40
        assert isinstance(table.get_value(1, "age"), int)
        assert table.get_value(0, "age") is None

    def test_missing_values_in_frame_become_none(self):
        frame = pd.DataFrame({"id": [1, 2], "name": ["a", None]})
        table = Table("t", frame)

        assert table.records()[1]["name"] is None

    def test_empty_table_keeps_declared_columns(self):
        table = Table("person", columns=["id", "name"])

        assert table.is_empty
        assert table.columns == ["id", "name"]

    def test_column_lookup_is_case_insensitive(self):
        table = Table.from_records("person", [{"First_Name": "Phillip"}])

        assert table.find_column("first_name") == "First_Name"
        assert table.get_value(0, "FIRST_NAME") == "Phillip"
        with pytest.raises(KeyError):
            table.get_value(0, "missing")

    def test_sorted_by_puts_nulls_last(self):
        table = Table.from_records("t", [{"v": "b"}, {"v": None}, {"v": "a"}])

        assert [row["v"] for row in table.sorted_by(["v"]).records()] == ["a", "b", None]

    def test_select_columns_and_rename(self):
        table = Table.from_records("t", [{"a": 1, "b": 2, "c": 3}])

        selected = table.select_columns(["c", "a"]).renamed("u")

        assert selected.name == "u"
        assert selected.columns == ["c", "a"]

    def test_empty_name_is_rejected(self):
        with pytest.raises(ValueError):
            Table("")


class TestDataset:
    """Test dataset lookups and composition."""

    def test_tables_keep_declared_order(self):
        dataset = Dataset([Table("b"), Table("a")])

        assert dataset.table_names == ["b", "a"]
        assert len(dataset) == 2

    def test_lookup_is_case_insensitive(self):
        dataset = Dataset([Table("Person")])

        assert "person" in dataset
        assert dataset.get_table("PERSON").name == "Person"

    def test_missing_table_raises(self):
        with pytest.raises(NoSuchTableError) as exc_info:
            Dataset([Table("person")]).get_table("bankcard")

        assert exc_info.value.table_name == "bankcard"

    def test_duplicate_table_raises(self):
        with pytest.raises(DuplicateTableError):
            Dataset([Table("person"), Table("PERSON")])

    def test_composite_requires_disjoint_tables(self):
        first = Dataset([Table("person")])
        second = Dataset([Table("bankcard")])

        composite = CompositeDataset([first, second])

        assert composite.table_names == ["person", "bankcard"]
        assert composite.sources == [first, second]
        with pytest.raises(DuplicateTableError):
            CompositeDataset([first, Dataset([Table("person")])])
