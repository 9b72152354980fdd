"""Merges suite and case declarations into what runs for one test."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlfixture.dataset.codecs import create_codec
from sqlfixture.dataset.codecs.base import DatasetCodec
from sqlfixture.dataset.modifiers import ModifierChain
from sqlfixture.dataset.resources import ResourceLocator
from sqlfixture.exceptions import CodecInstantiationError, ConfigurationError
from sqlfixture.fixtures.assertions import ColumnFilter, ExcludeColumnFilter
from sqlfixture.fixtures.context import FixtureContext
from sqlfixture.fixtures.declarations import (
    CodecSpec,
    ExpectationDeclaration,
    ExportDeclaration,
    MergedDeclarationSet,
    merge_in_order,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExportGroup:
    """Exports sharing connection, file name and format; written as one file."""
    connection: str
    file_name: str
    format: str
    tables: Tuple[Tuple[str, str], ...]
    xml_element: bool = False
    sort_columns: bool = False
    replacements: Tuple[Tuple[str, str], ...] = ()


def _as_column_filter(value: Any) -> ColumnFilter:
    if isinstance(value, ColumnFilter):
        return value
    if isinstance(value, str):
        return ExcludeColumnFilter([value])
    raise ConfigurationError(f"Invalid column filter {value!r}")


class ConfigurationResolver:
    """Resolves declarations, codecs, column filters and modifiers for a test."""

    def __init__(
        self,
        default_codec: str = "flat_xml",
        locator: Optional[ResourceLocator] = None,
        replace_null_token: bool = True,
        column_filters: Sequence[Any] = (),
    ) -> None:
        self.locator = locator or ResourceLocator()
        self.replace_null_token = replace_null_token
        self.default_codec_key = default_codec
        self.default_codec = create_codec(default_codec, **self._codec_args())
        self.column_filters: List[ColumnFilter] = [_as_column_filter(value) for value in column_filters]

    def _codec_args(self) -> Dict[str, Any]:
        return {'locator': self.locator, 'replace_null_token': self.replace_null_token}

    def setups(self, context: FixtureContext) -> MergedDeclarationSet:
        return merge_in_order(context.suite_scope.setups, context.case_scope.setups)

    def teardowns(self, context: FixtureContext) -> MergedDeclarationSet:
        return merge_in_order(context.suite_scope.teardowns, context.case_scope.teardowns)

    def expectations(self, context: FixtureContext) -> MergedDeclarationSet:
        """Case expectations first; suite expectations unless a case expectation overrides."""
        case = tuple(context.case_scope.expectations)
        suite = tuple(context.suite_scope.expectations)
        if any(declaration.override for declaration in case):
            order = case
        else:
            order = case + suite
        return MergedDeclarationSet(suite, case, order)

    def export_groups(self, context: FixtureContext) -> List[ExportGroup]:
        """Group the case exports by (connection, file name, format).

        Tables of a group are sorted by name; the flags and replacements of
        a group come from its last declaration.
        """
        grouped: Dict[Tuple[str, str, str], List[ExportDeclaration]] = {}
        for declaration in context.case_scope.exports:
            file_name = declaration.file_name or context.test_name
            key = (declaration.connection, file_name, declaration.format)
            grouped.setdefault(key, []).append(declaration)

        groups = []
        for (connection, file_name, fmt), declarations in grouped.items():
            last = declarations[-1]
            tables = sorted(
                ((declaration.table_name, declaration.query) for declaration in declarations),
                key=lambda pair: pair[0],
            )
            groups.append(ExportGroup(
                connection=connection,
                file_name=file_name,
                format=fmt,
                tables=tuple(tables),
                xml_element=last.xml_element,
                sort_columns=last.sort_columns,
                replacements=tuple(last.replacement_pairs),
            ))
        return groups

    def resolve_codec(self, codec: CodecSpec) -> DatasetCodec:
        """Codec instance as given, registered key instantiated, else the default codec.

        An unknown key or failing factory is logged and replaced by the default codec.
        """
        if codec is None or codec == "":
            return self.default_codec
        if isinstance(codec, DatasetCodec):
            return codec
        try:
            return create_codec(str(codec), **self._codec_args())
        except CodecInstantiationError as e:
            logger.warning(f"{e.message}; falling back to '{self.default_codec_key}'")
            return self.default_codec

    def codec_for(self, declaration: Any) -> DatasetCodec:
        return self.resolve_codec(getattr(declaration, 'codec', None))

    def column_filters_for(self, declaration: ExpectationDeclaration) -> List[ColumnFilter]:
        """Suite filters followed by the declaration's own, without duplicates."""
        filters: List[ColumnFilter] = []
        for value in list(self.column_filters) + list(declaration.column_filters):
            column_filter = _as_column_filter(value)
            if column_filter not in filters:
                filters.append(column_filter)
        return filters

    def modifier_chain(self, expectations: MergedDeclarationSet) -> ModifierChain:
        """One chain holding the modifiers of every expectation in both scopes."""
        chain = ModifierChain()
        for declaration in expectations.suite_scope + expectations.case_scope:
            for modifier in declaration.modifiers:
                chain.add(modifier)
        return chain
