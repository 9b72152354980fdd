"""
Loading of fixture declarations from YAML files.

A declaration file holds suite-scope declarations at its root and
case-scope declarations per test name under ``cases``::

    setups:
      - locations: [sampleData.xml]
    expectations:
      - location: expectedData.xml
        table: person
    cases:
      test_remove:
        exports:
          - table_name: person
            format: json
            replacements: [id, "[ID()]"]
"""
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from sqlfixture.config.parser import ConfigParser
from sqlfixture.db.operations import DatabaseOperation
from sqlfixture.exceptions import ConfigurationError
from sqlfixture.fixtures.assertions import ExcludeColumnFilter, IncludeColumnFilter
from sqlfixture.fixtures.declarations import (
    AssertionMode,
    ExpectationDeclaration,
    ExportDeclaration,
    FixtureDeclaration,
    ScopedDeclarations,
)

logger = logging.getLogger(__name__)


class FixtureDeclarationConfig(BaseModel):
    """Configuration model for a setup or teardown step."""
    operation: str = DatabaseOperation.CLEAN_INSERT.value
    locations: List[str] = Field(default_factory=list)
    connection: str = ""
    codec: Optional[str] = None
    dataset_id: Optional[str] = None

    @field_validator('locations', mode='before')
    def validate_locations(cls, v):
        if isinstance(v, str):
            return [v]
        return v

    @field_validator('operation')
    def validate_operation(cls, v):
        valid_operations = [member.value for member in DatabaseOperation]
        if v.strip().upper() not in valid_operations:
            raise ValueError(f"Invalid operation. Must be one of: {valid_operations}")
        return v.strip().upper()

    def to_dataclass(self) -> FixtureDeclaration:
        """Convert step config to dataclass."""
        return FixtureDeclaration(
            operation=DatabaseOperation(self.operation),
            locations=tuple(self.locations),
            connection=self.connection,
            codec=self.codec,
            dataset_id=self.dataset_id,
        )


class ExpectationDeclarationConfig(BaseModel):
    """Configuration model for an expected database state."""
    location: str = ""
    query: Optional[str] = None
    table: Optional[str] = None
    connection: str = ""
    assertion_mode: str = AssertionMode.DEFAULT.value
    exclude_columns: List[str] = Field(default_factory=list)
    include_columns: List[str] = Field(default_factory=list)
    ignore_columns: List[str] = Field(default_factory=list)
    override: bool = False
    codec: Optional[str] = None
    dataset_id: Optional[str] = None

    @field_validator('assertion_mode')
    def validate_assertion_mode(cls, v):
        valid_modes = [member.value for member in AssertionMode]
        if v.strip().upper() not in valid_modes:
            raise ValueError(f"Invalid assertion mode. Must be one of: {valid_modes}")
        return v.strip().upper()

    def to_dataclass(self) -> ExpectationDeclaration:
        """Convert expectation config to dataclass."""
        column_filters = []
        if self.exclude_columns:
            column_filters.append(ExcludeColumnFilter(self.exclude_columns))
        if self.include_columns:
            column_filters.append(IncludeColumnFilter(self.include_columns))
        return ExpectationDeclaration(
            location=self.location,
            query=self.query,
            table=self.table,
            connection=self.connection,
            assertion_mode=AssertionMode(self.assertion_mode),
            column_filters=tuple(column_filters),
            ignore_columns=tuple(self.ignore_columns),
            override=self.override,
            codec=self.codec,
            dataset_id=self.dataset_id,
        )


class ExportDeclarationConfig(BaseModel):
    """Configuration model for an export."""
    table_name: str
    query: str = ""
    file_name: Optional[str] = None
    format: Optional[str] = None
    connection: str = ""
    xml_element: bool = False
    sort_columns: bool = False
    replacements: List[str] = Field(default_factory=list)

    @field_validator('replacements')
    def validate_replacements(cls, v):
        if len(v) % 2:
            raise ValueError("Replacements must be given as (target, replacement) pairs")
        return v

    def to_dataclass(self, default_format: str = "xml") -> ExportDeclaration:
        """Convert export config to dataclass."""
        return ExportDeclaration(
            table_name=self.table_name,
            query=self.query,
            file_name=self.file_name,
            format=self.format or default_format,
            connection=self.connection,
            xml_element=self.xml_element,
            sort_columns=self.sort_columns,
            replacements=tuple(self.replacements),
        )


class ScopeConfig(BaseModel):
    """Declarations of one scope."""
    setups: List[FixtureDeclarationConfig] = Field(default_factory=list)
    teardowns: List[FixtureDeclarationConfig] = Field(default_factory=list)
    expectations: List[ExpectationDeclarationConfig] = Field(default_factory=list)
    exports: List[ExportDeclarationConfig] = Field(default_factory=list)

    def to_dataclass(self, default_format: str = "xml") -> ScopedDeclarations:
        """Convert scope config to dataclass."""
        return ScopedDeclarations(
            setups=[setup.to_dataclass() for setup in self.setups],
            teardowns=[teardown.to_dataclass() for teardown in self.teardowns],
            expectations=[expectation.to_dataclass() for expectation in self.expectations],
            exports=[export.to_dataclass(default_format) for export in self.exports],
        )


class DeclarationFileConfig(ScopeConfig):
    """Root model of a declaration file."""
    cases: Dict[str, ScopeConfig] = Field(default_factory=dict)


@dataclass
class DeclarationFile:
    """Suite declarations and per-case declarations loaded from one file."""
    path: Path
    suite: ScopedDeclarations = field(default_factory=ScopedDeclarations)
    cases: Dict[str, ScopedDeclarations] = field(default_factory=dict)

    def for_case(self, test_name: str) -> ScopedDeclarations:
        """Case declarations of ``test_name``; empty when the file has none."""
        return self.cases.get(test_name, ScopedDeclarations())


def load_declarations(
    path: Union[str, Path],
    default_format: str = "xml",
) -> DeclarationFile:
    """Load a YAML declaration file.

    Raises:
        ConfigurationError: If the file is missing or invalid.
    """
    path = Path(path)
    try:
        with open(path, 'r', encoding='utf-8') as file:
            raw: Any = yaml.safe_load(file) or {}
    except FileNotFoundError as e:
        raise ConfigurationError(f"Declaration file '{path}' not found") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in declaration file '{path}': {e}") from e

    raw = ConfigParser().interpolate(raw)
    try:
        config = DeclarationFileConfig(**raw)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid declaration file '{path}': {e}") from e

    logger.debug(f"Loaded declarations from {path} with {len(config.cases)} case(s)")
    return DeclarationFile(
        path=path,
        suite=config.to_dataclass(default_format),
        cases={name: case.to_dataclass(default_format) for name, case in config.cases.items()},
    )
