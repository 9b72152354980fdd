"""Tests for resource resolution, dataset composition and modifiers."""

from pathlib import Path
from unittest.mock import Mock

import pytest

from sqlfixture.dataset.codecs import FlatXmlCodec
from sqlfixture.dataset.composer import DatasetComposer
from sqlfixture.dataset.models import CompositeDataset, Dataset, Table
from sqlfixture.dataset.modifiers import (
    NONE,
    ModifierChain,
    ReplacementModifier,
    null_token_modifier,
)
from sqlfixture.dataset.resources import ResourceLocator
from sqlfixture.exceptions import DuplicateTableError, ResourceNotFoundError


@pytest.fixture
def resources(tmp_path: Path) -> Path:
    """A namespace directory and a shared resource directory."""
    namespace = tmp_path / "tests" / "people"
    shared = tmp_path / "shared"
    namespace.mkdir(parents=True)
    shared.mkdir()
    (namespace / "person.xml").write_text('<dataset><person id="1" first_name="Local"/></dataset>')
    (shared / "person.xml").write_text('<dataset><person id="1" first_name="Shared"/></dataset>')
    (shared / "bankcard.xml").write_text('<dataset><bankcard id="1" number="0123"/></dataset>')
    return tmp_path


class TestResourceLocator:
    """Test namespace-relative and generic lookup."""

    def test_namespace_relative_wins(self, resources: Path):
        locator = ResourceLocator(["shared"], resources)

        assert locator.resolve(resources / "tests" / "people", "person.xml") == \
            resources / "tests" / "people" / "person.xml"

    def test_falls_back_to_search_paths(self, resources: Path):
        locator = ResourceLocator(["shared"], resources)

        assert locator.resolve(resources / "tests" / "people", "bankcard.xml") == \
            resources / "shared" / "bankcard.xml"

    def test_classpath_prefix_skips_namespace(self, resources: Path):
        locator = ResourceLocator(["shared"], resources)

        assert locator.resolve(resources / "tests" / "people", "classpath:/person.xml") == \
            resources / "shared" / "person.xml"

    def test_unresolved_and_blank(self, resources: Path):
        locator = ResourceLocator(["shared"], resources)

        assert locator.resolve(resources, "missing.xml") is None
        assert locator.resolve(resources, "  ") is None

    def test_literal_sql_is_not_a_file(self, resources: Path):
        locator = ResourceLocator(["shared"], resources)

        assert locator.resolve(resources, "DELETE FROM person WHERE name = 'a/b'") is None


class TestDatasetComposer:
    """Test loading and composing datasets."""

    def test_blank_location_loads_nothing(self, resources: Path):
        assert DatasetComposer().load(FlatXmlCodec(), resources, "") is None

    def test_missing_location_raises(self, resources: Path):
        with pytest.raises(ResourceNotFoundError) as exc_info:
            DatasetComposer().load(FlatXmlCodec(), resources, "missing.xml")

        assert str(exc_info.value) == 'Unable to load dataset from "missing.xml"'

    def test_modifier_is_applied(self, resources: Path):
        modifier = ReplacementModifier(objects={"Local": "Replaced"})

        dataset = DatasetComposer().load(
            FlatXmlCodec(), resources / "tests" / "people", "person.xml", modifier=modifier
        )

        assert dataset.get_table("person").get_value(0, "first_name") == "Replaced"

    def test_compose_locations(self, resources: Path):
        codec = FlatXmlCodec(ResourceLocator(["shared"], resources))

        dataset = DatasetComposer().compose(
            ["person.xml", "bankcard.xml"], codec, Mock(), resources / "tests" / "people"
        )

        assert isinstance(dataset, CompositeDataset)
        assert dataset.table_names == ["person", "bankcard"]
        assert dataset.get_table("person").get_value(0, "first_name") == "Local"

    def test_compose_duplicate_tables(self, resources: Path):
        codec = FlatXmlCodec(ResourceLocator(["shared"], resources))

        with pytest.raises(DuplicateTableError):
            DatasetComposer().compose(
                ["person.xml", "classpath:person.xml"], codec, Mock(), resources / "tests" / "people"
            )

    def test_compose_without_locations_snapshots_connection(self, resources: Path):
        connection = Mock()
        snapshot = Dataset([Table("person")])
        connection.create_dataset.return_value = snapshot

        assert DatasetComposer().compose([], FlatXmlCodec(), connection, resources) is snapshot
        connection.create_dataset.assert_called_once_with()


class TestModifiers:
    """Test replacement modifiers and modifier chains."""

    def test_object_and_substring_replacement(self):
        dataset = Dataset([Table.from_records("t", [{"a": "[now]", "b": "x-[id]-y", "c": None}])])
        modifier = ReplacementModifier().add_object("[now]", "2024-01-01").add_substring("[id]", "42")

        row = modifier.modify(dataset).get_table("t").records()[0]

        assert row == {"a": "2024-01-01", "b": "x-42-y", "c": None}

    def test_chain_skips_duplicates_and_none(self):
        chain = ModifierChain([NONE, null_token_modifier(), null_token_modifier()])

        assert len(chain) == 1

    def test_chain_applies_in_order(self):
        chain = ModifierChain([
            ReplacementModifier(objects={"a": "b"}),
            ReplacementModifier(objects={"b": "c"}),
        ])
        dataset = Dataset([Table.from_records("t", [{"v": "a"}])])

        assert chain.modify(dataset).get_table("t").get_value(0, "v") == "c"
