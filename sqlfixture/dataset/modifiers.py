"""Dataset modifiers applied to expected datasets after loading."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Mapping, Optional

from sqlfixture.dataset.models import Dataset, Table

logger = logging.getLogger(__name__)

NULL_TOKEN = "[null]"


class DatasetModifier(ABC):
    """Transforms a loaded dataset."""

    @abstractmethod
    def modify(self, dataset: Dataset) -> Dataset:
        pass


class NoOpModifier(DatasetModifier):
    """Leaves the dataset untouched."""

    def modify(self, dataset: Dataset) -> Dataset:
        return dataset


NONE = NoOpModifier()


class ReplacementModifier(DatasetModifier):
    """Replaces whole values and substrings in every table of a dataset.

    Whole-value replacements are checked first (exact match on the cell
    value); substring replacements then apply to the remaining text values.
    """

    def __init__(
        self,
        objects: Optional[Mapping[Any, Any]] = None,
        substrings: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.objects: Dict[Any, Any] = dict(objects or {})
        self.substrings: Dict[str, str] = dict(substrings or {})

    def add_object(self, original: Any, replacement: Any) -> "ReplacementModifier":
        self.objects[original] = replacement
        return self

    def add_substring(self, original: str, replacement: str) -> "ReplacementModifier":
        self.substrings[original] = replacement
        return self

    def replace_value(self, value: Any) -> Any:
        if value is None:
            return None
        try:
            if value in self.objects:
                return self.objects[value]
        except TypeError:
            # unhashable cell
            return value
        if isinstance(value, str):
            for original, replacement in self.substrings.items():
                value = value.replace(original, replacement)
        return value

    def modify(self, dataset: Dataset) -> Dataset:
        if not self.objects and not self.substrings:
            return dataset
        tables = []
        for table in dataset:
            records = [
                {column: self.replace_value(value) for column, value in record.items()}
                for record in table.records()
            ]
            tables.append(Table.from_records(table.name, records, columns=table.columns))
        return Dataset(tables)

    def __eq__(self, other: object) -> bool:
        return (
            isinstance(other, ReplacementModifier)
            and self.objects == other.objects
            and self.substrings == other.substrings
        )

    def __hash__(self) -> int:
        return hash((type(self), tuple(self.substrings.items())))

    def __repr__(self) -> str:
        return f"ReplacementModifier(objects={self.objects!r}, substrings={self.substrings!r})"


def null_token_modifier() -> ReplacementModifier:
    """Modifier that turns the ``[null]`` token into ``None``."""
    return ReplacementModifier(objects={NULL_TOKEN: None})


class ModifierChain(DatasetModifier):
    """Applies several modifiers in order; duplicates are added only once."""

    def __init__(self, modifiers: Iterable[DatasetModifier] = ()) -> None:
        self.modifiers: List[DatasetModifier] = []
        for modifier in modifiers:
            self.add(modifier)

    def add(self, modifier: DatasetModifier) -> None:
        if modifier is NONE or modifier in self.modifiers:
            return
        self.modifiers.append(modifier)

    def modify(self, dataset: Dataset) -> Dataset:
        for modifier in self.modifiers:
            dataset = modifier.modify(dataset)
        return dataset

    def __len__(self) -> int:
        return len(self.modifiers)
