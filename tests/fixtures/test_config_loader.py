"""Tests for YAML declaration files."""

from pathlib import Path

import pytest

from sqlfixture.db.operations import DatabaseOperation
from sqlfixture.exceptions import ConfigurationError
from sqlfixture.fixtures.assertions import ExcludeColumnFilter, IncludeColumnFilter
from sqlfixture.fixtures.config_loader import load_declarations
from sqlfixture.fixtures.declarations import AssertionMode

DECLARATIONS = """
setups:
  - locations: sampleData.xml
teardowns:
  - operation: delete_all
    locations: [sampleData.xml]
expectations:
  - location: expectedData.xml
    table: person
    assertion_mode: non_strict
    exclude_columns: [created_*]
    include_columns: [id, first_name]
    ignore_columns: [title]
cases:
  test_export:
    exports:
      - table_name: person
        query: ${EXPORT_QUERY:-select * from person}
        format: json
        replacements: [id, "[ID()]"]
"""


@pytest.fixture
def declaration_file(tmp_path: Path) -> Path:
    path = tmp_path / "fixtures.yaml"
    path.write_text(DECLARATIONS, encoding="utf-8")
    return path


def test_suite_declarations(declaration_file: Path):
    loaded = load_declarations(declaration_file)

    setup = loaded.suite.setups[0]
    assert setup.operation is DatabaseOperation.CLEAN_INSERT
    assert setup.locations == ("sampleData.xml",)
    assert loaded.suite.teardowns[0].operation is DatabaseOperation.DELETE_ALL

    expectation = loaded.suite.expectations[0]
    assert expectation.assertion_mode is AssertionMode.NON_STRICT
    assert expectation.column_filters == (
        ExcludeColumnFilter(["created_*"]),
        IncludeColumnFilter(["id", "first_name"]),
    )
    assert expectation.ignore_columns == ("title",)


def test_case_declarations(declaration_file: Path):
    loaded = load_declarations(declaration_file, default_format="csv")

    export = loaded.for_case("test_export").exports[0]
    assert export.query == "select * from person"
    assert export.format == "json"
    assert export.replacement_pairs == [("id", "[ID()]")]
    assert loaded.for_case("test_other").is_empty


def test_environment_interpolation(declaration_file: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("EXPORT_QUERY", "select id from person")

    loaded = load_declarations(declaration_file)

    assert loaded.for_case("test_export").exports[0].query == "select id from person"


def test_default_export_format(tmp_path: Path):
    path = tmp_path / "exports.yaml"
    path.write_text("cases:\n  test_a:\n    exports:\n      - table_name: person\n", encoding="utf-8")

    assert load_declarations(path, default_format="yml").for_case("test_a").exports[0].format == "yml"


@pytest.mark.parametrize("content", [
    "setups:\n  - operation: merge\n",
    "expectations:\n  - assertion_mode: fuzzy\n",
    "cases:\n  test_a:\n    exports:\n      - table_name: person\n        replacements: [id]\n",
    "setups: [unclosed\n",
])
def test_invalid_declarations(tmp_path: Path, content: str):
    path = tmp_path / "broken.yaml"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(ConfigurationError):
        load_declarations(path)


def test_missing_file(tmp_path: Path):
    with pytest.raises(ConfigurationError, match="not found"):
        load_declarations(tmp_path / "missing.yaml")
