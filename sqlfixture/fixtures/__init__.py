"""Fixture declarations and the orchestrator that runs them around tests."""

from sqlfixture.fixtures.declarations import (
    AssertionMode,
    ExpectationDeclaration,
    ExportDeclaration,
    FixtureDeclaration,
    MergedDeclarationSet,
    ScopedDeclarations,
)
from sqlfixture.fixtures.assertions import (
    AssertionEngine,
    ColumnFilter,
    DatabaseAssertion,
    DefaultFailureHandler,
    DiffCollectingFailureHandler,
    Difference,
    ExcludeColumnFilter,
    FailureHandler,
    IncludeColumnFilter,
)
from sqlfixture.fixtures.context import FixtureContext, OrchestratorState
from sqlfixture.fixtures.resolver import ConfigurationResolver, ExportGroup
from sqlfixture.fixtures.export import Exporter
from sqlfixture.fixtures.orchestrator import FixtureOrchestrator
from sqlfixture.fixtures.config_loader import DeclarationFile, load_declarations

__all__ = [
    "AssertionMode",
    "ExpectationDeclaration",
    "ExportDeclaration",
    "FixtureDeclaration",
    "MergedDeclarationSet",
    "ScopedDeclarations",
    "AssertionEngine",
    "ColumnFilter",
    "DatabaseAssertion",
    "DefaultFailureHandler",
    "DiffCollectingFailureHandler",
    "Difference",
    "ExcludeColumnFilter",
    "FailureHandler",
    "IncludeColumnFilter",
    "FixtureContext",
    "OrchestratorState",
    "ConfigurationResolver",
    "ExportGroup",
    "Exporter",
    "FixtureOrchestrator",
    "DeclarationFile",
    "load_declarations",
]
