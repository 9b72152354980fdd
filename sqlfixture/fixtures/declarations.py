"""Typed declarations describing the fixture work around a test.

Declarations are immutable once built. They come from pytest markers or
from YAML suite files and are grouped per scope in
:class:`ScopedDeclarations`.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, List, Optional, Sequence, Tuple, TypeVar, Union

from sqlfixture.dataset.codecs.base import DatasetCodec, pair_replacements
from sqlfixture.db.operations import DatabaseOperation
from sqlfixture.exceptions import ConfigurationError

T = TypeVar('T')

CodecSpec = Optional[Union[str, DatasetCodec]]


class AssertionMode(str, Enum):
    """How strictly an expected dataset is compared with the database."""
    DEFAULT = "DEFAULT"
    NON_STRICT = "NON_STRICT"
    NON_STRICT_UNORDERED = "NON_STRICT_UNORDERED"

    @classmethod
    def parse(cls, value: Any) -> "AssertionMode":
        if isinstance(value, cls):
            return value
        try:
            return cls[str(value).strip().upper()]
        except KeyError:
            valid = [member.value for member in cls]
            raise ConfigurationError(f"Unknown assertion mode '{value}'. Valid modes: {valid}") from None


def _as_tuple(value: Any) -> Tuple:
    if value is None:
        return ()
    if isinstance(value, (str, bytes)):
        return (value,)
    return tuple(value)


@dataclass(frozen=True)
class FixtureDeclaration:
    """One setup or teardown step."""
    operation: DatabaseOperation = DatabaseOperation.CLEAN_INSERT
    locations: Tuple[str, ...] = ()
    connection: str = ""
    codec: CodecSpec = None
    dataset_id: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, 'operation', DatabaseOperation.parse(self.operation))
        object.__setattr__(self, 'locations', _as_tuple(self.locations))
        object.__setattr__(self, 'connection', self.connection or "")


@dataclass(frozen=True)
class ExpectationDeclaration:
    """Expected database content checked after the test body."""
    location: str = ""
    query: Optional[str] = None
    table: Optional[str] = None
    connection: str = ""
    assertion_mode: AssertionMode = AssertionMode.DEFAULT
    column_filters: Tuple[Any, ...] = ()
    ignore_columns: Tuple[str, ...] = ()
    override: bool = False
    modifiers: Tuple[Any, ...] = ()
    codec: CodecSpec = None
    dataset_id: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, 'location', self.location or "")
        object.__setattr__(self, 'connection', self.connection or "")
        object.__setattr__(self, 'assertion_mode', AssertionMode.parse(self.assertion_mode))
        object.__setattr__(self, 'column_filters', _as_tuple(self.column_filters))
        object.__setattr__(self, 'ignore_columns', _as_tuple(self.ignore_columns))
        object.__setattr__(self, 'modifiers', _as_tuple(self.modifiers))

    @property
    def table_names(self) -> List[str]:
        """The comma separated ``table`` value as a list of names."""
        if not self.table:
            return []
        return [name.strip() for name in self.table.split(',') if name.strip()]


@dataclass(frozen=True)
class ExportDeclaration:
    """A table (or query result) written to a file after verification."""
    table_name: str
    query: str = ""
    file_name: Optional[str] = None
    format: str = "xml"
    connection: str = ""
    xml_element: bool = False
    sort_columns: bool = False
    replacements: Tuple[str, ...] = ()

    def __post_init__(self):
        if not self.table_name or not self.table_name.strip():
            raise ConfigurationError("An export requires a table name")
        object.__setattr__(self, 'query', self.query or "")
        object.__setattr__(self, 'format', (self.format or "xml").strip().lower())
        object.__setattr__(self, 'connection', self.connection or "")
        object.__setattr__(self, 'replacements', _as_tuple(self.replacements))
        pair_replacements(self.replacements)

    @property
    def replacement_pairs(self) -> List[Tuple[str, str]]:
        return pair_replacements(self.replacements)


@dataclass
class ScopedDeclarations:
    """All declarations of one scope, each list in declared order."""
    setups: List[FixtureDeclaration] = field(default_factory=list)
    teardowns: List[FixtureDeclaration] = field(default_factory=list)
    expectations: List[ExpectationDeclaration] = field(default_factory=list)
    exports: List[ExportDeclaration] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.setups or self.teardowns or self.expectations or self.exports)

    def extend(self, other: "ScopedDeclarations") -> "ScopedDeclarations":
        """Return a new scope holding this scope's declarations followed by ``other``'s."""
        return ScopedDeclarations(
            setups=self.setups + other.setups,
            teardowns=self.teardowns + other.teardowns,
            expectations=self.expectations + other.expectations,
            exports=self.exports + other.exports,
        )


@dataclass(frozen=True)
class MergedDeclarationSet(Generic[T]):
    """Declarations of both scopes plus the order in which they apply."""
    suite_scope: Tuple[T, ...] = ()
    case_scope: Tuple[T, ...] = ()
    execution_order: Tuple[T, ...] = ()

    def __iter__(self):
        return iter(self.execution_order)

    def __len__(self) -> int:
        return len(self.execution_order)


def merge_in_order(suite: Sequence[T], case: Sequence[T]) -> MergedDeclarationSet:
    """Suite declarations first, then case declarations."""
    return MergedDeclarationSet(tuple(suite), tuple(case), tuple(suite) + tuple(case))
