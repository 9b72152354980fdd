"""Tests for merging suite and case declarations."""

import logging

import pytest

from sqlfixture.dataset.codecs import FlatXmlCodec, JsonCodec
from sqlfixture.dataset.modifiers import ReplacementModifier, null_token_modifier
from sqlfixture.db.operations import DatabaseOperation
from sqlfixture.exceptions import ConfigurationError
from sqlfixture.fixtures.assertions import ExcludeColumnFilter, IncludeColumnFilter
from sqlfixture.fixtures.context import FixtureContext
from sqlfixture.fixtures.declarations import (
    ExpectationDeclaration,
    ExportDeclaration,
    FixtureDeclaration,
    ScopedDeclarations,
)
from sqlfixture.fixtures.resolver import ConfigurationResolver


def context_for(suite=None, case=None, test_name="test_something") -> FixtureContext:
    return FixtureContext(
        test_name=test_name,
        suite_scope=suite or ScopedDeclarations(),
        case_scope=case or ScopedDeclarations(),
    )


class TestDeclarations:
    """Test normalisation of declarations."""

    def test_fixture_declaration_defaults(self):
        declaration = FixtureDeclaration(locations="sampleData.xml")

        assert declaration.operation is DatabaseOperation.CLEAN_INSERT
        assert declaration.locations == ("sampleData.xml",)
        assert declaration.connection == ""

    def test_operation_names_are_parsed(self):
        assert FixtureDeclaration("delete_all").operation is DatabaseOperation.DELETE_ALL
        with pytest.raises(ConfigurationError):
            FixtureDeclaration("merge")

    def test_expectation_table_names(self):
        declaration = ExpectationDeclaration("expected.xml", table=" person , bankcard ,")

        assert declaration.table_names == ["person", "bankcard"]

    def test_export_requires_table_and_replacement_pairs(self):
        with pytest.raises(ConfigurationError):
            ExportDeclaration("")
        with pytest.raises(ConfigurationError):
            ExportDeclaration("person", replacements=("id",))

        declaration = ExportDeclaration("person", format="JSON", replacements=["id", "[ID()]"])
        assert declaration.format == "json"
        assert declaration.replacement_pairs == [("id", "[ID()]")]


class TestConfigurationResolver:
    """Test declaration merging and per-declaration resolution."""

    def test_setups_suite_first(self):
        suite = ScopedDeclarations(setups=[FixtureDeclaration(locations="suite.xml")])
        case = ScopedDeclarations(setups=[
            FixtureDeclaration(locations="case1.xml"),
            FixtureDeclaration(locations="case2.xml"),
        ])

        merged = ConfigurationResolver().setups(context_for(suite, case))

        assert [declaration.locations[0] for declaration in merged] == ["suite.xml", "case1.xml", "case2.xml"]
        assert len(merged.suite_scope) == 1
        assert len(merged.case_scope) == 2

    def test_teardowns_suite_first(self):
        suite = ScopedDeclarations(teardowns=[FixtureDeclaration(locations="suite.xml")])
        case = ScopedDeclarations(teardowns=[FixtureDeclaration(locations="case.xml")])

        merged = ConfigurationResolver().teardowns(context_for(suite, case))

        assert [declaration.locations[0] for declaration in merged] == ["suite.xml", "case.xml"]

    def test_expectations_case_first(self):
        suite = ScopedDeclarations(expectations=[ExpectationDeclaration("suite.xml")])
        case = ScopedDeclarations(expectations=[ExpectationDeclaration("case.xml")])

        merged = ConfigurationResolver().expectations(context_for(suite, case))

        assert [declaration.location for declaration in merged] == ["case.xml", "suite.xml"]

    def test_override_drops_suite_expectations(self):
        suite = ScopedDeclarations(expectations=[ExpectationDeclaration("suite.xml")])
        case = ScopedDeclarations(expectations=[
            ExpectationDeclaration("case1.xml"),
            ExpectationDeclaration("case2.xml", override=True),
        ])

        merged = ConfigurationResolver().expectations(context_for(suite, case))

        assert [declaration.location for declaration in merged] == ["case1.xml", "case2.xml"]
        assert len(merged.suite_scope) == 1

    def test_export_groups(self):
        suite = ScopedDeclarations(exports=[ExportDeclaration("ignored")])
        case = ScopedDeclarations(exports=[
            ExportDeclaration("person", file_name="people"),
            ExportDeclaration("bankcard", query="SELECT * FROM bankcard", file_name="people",
                              sort_columns=True, replacements=("id", "[ID()]")),
            ExportDeclaration("person", format="json"),
        ])

        groups = ConfigurationResolver().export_groups(context_for(suite, case, test_name="test_export"))

        assert len(groups) == 2
        people, defaults = groups
        assert (people.file_name, people.format) == ("people", "xml")
        assert people.tables == (("bankcard", "SELECT * FROM bankcard"), ("person", ""))
        assert people.sort_columns is True
        assert people.replacements == (("id", "[ID()]"),)
        assert (defaults.file_name, defaults.format) == ("test_export", "json")

    def test_codec_resolution(self):
        resolver = ConfigurationResolver()
        instance = JsonCodec()

        assert resolver.resolve_codec(None) is resolver.default_codec
        assert isinstance(resolver.default_codec, FlatXmlCodec)
        assert resolver.resolve_codec(instance) is instance
        assert isinstance(resolver.resolve_codec("json"), JsonCodec)
        assert resolver.resolve_codec("json").locator is resolver.locator

    def test_unknown_codec_falls_back_with_warning(self, caplog: pytest.LogCaptureFixture):
        resolver = ConfigurationResolver()

        with caplog.at_level(logging.WARNING, logger="sqlfixture.fixtures.resolver"):
            codec = resolver.codec_for(FixtureDeclaration(codec="no_such_codec"))

        assert codec is resolver.default_codec
        assert "no_such_codec" in caplog.text

    def test_column_filters_suite_first_without_duplicates(self):
        resolver = ConfigurationResolver(column_filters=["created_*"])
        declaration = ExpectationDeclaration(
            "expected.xml",
            column_filters=(ExcludeColumnFilter("created_*"), IncludeColumnFilter(["id", "name"])),
        )

        filters = resolver.column_filters_for(declaration)

        assert filters == [ExcludeColumnFilter("created_*"), IncludeColumnFilter(["id", "name"])]

    def test_modifier_chain_spans_both_scopes(self):
        shared = ReplacementModifier(objects={"[today]": "2024-01-01"})
        suite = ScopedDeclarations(expectations=[ExpectationDeclaration("suite.xml", modifiers=[shared])])
        case = ScopedDeclarations(expectations=[
            ExpectationDeclaration("case.xml", modifiers=[null_token_modifier(), shared], override=True),
        ])
        resolver = ConfigurationResolver()

        chain = resolver.modifier_chain(resolver.expectations(context_for(suite, case)))

        assert chain.modifiers == [shared, null_token_modifier()]
