"""Tabular dataset model shared by codecs, database operations and assertions.

A :class:`Table` wraps a pandas ``DataFrame`` whose cells are plain Python
objects, with ``None`` standing for SQL ``NULL``. A :class:`Dataset` is an
ordered collection of uniquely named tables. Table and column lookups are
case-insensitive, names keep the case they were declared with.
"""

from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence

import pandas as pd

from sqlfixture.exceptions import DuplicateTableError, NoSuchTableError


def _normalize_frame(data: pd.DataFrame) -> pd.DataFrame:
    """Return an object-typed copy of ``data`` with missing values as ``None``."""
    frame = data.reset_index(drop=True).astype(object)
    return frame.where(frame.notna(), None)


def _sense_columns(records: Sequence[Mapping[str, Any]]) -> List[str]:
    """Collect column names across all records, in first-seen order."""
    columns: List[str] = []
    seen = set()
    for record in records:
        for column in record:
            if column not in seen:
                seen.add(column)
                columns.append(column)
    return columns


def _sort_key(value: Any):
    return (value is None, str(value) if value is not None else "")


class Table:
    """A named, ordered set of rows over a fixed ordered set of columns."""

    def __init__(
        self,
        name: str,
        data: Optional[pd.DataFrame] = None,
        columns: Optional[Sequence[str]] = None,
    ) -> None:
        if not name:
            raise ValueError("Table name cannot be empty")
        if data is None:
            data = pd.DataFrame(columns=list(columns or []))
        self.name = name
        self.data = _normalize_frame(data)

    @classmethod
    def from_records(
        cls,
        name: str,
        records: Iterable[Mapping[str, Any]],
        columns: Optional[Sequence[str]] = None,
    ) -> "Table":
        """Build a table from row mappings; missing keys become ``None``."""
        rows = [dict(record) for record in records]
        column_names = list(columns) if columns is not None else _sense_columns(rows)
        if not rows:
            return cls(name, columns=column_names)
        frame = pd.DataFrame(rows, columns=column_names, dtype=object)
        return cls(name, frame)

    @property
    def columns(self) -> List[str]:
        return [str(column) for column in self.data.columns]

    @property
    def row_count(self) -> int:
        return len(self.data)

    @property
    def is_empty(self) -> bool:
        return self.data.empty

    def find_column(self, column: str) -> Optional[str]:
        """Return the declared name of ``column`` (case-insensitive) or None."""
        lowered = column.lower()
        for candidate in self.columns:
            if candidate.lower() == lowered:
                return candidate
        return None

    def get_value(self, row: int, column: str) -> Any:
        name = self.find_column(column)
        if name is None:
            raise KeyError(f"Column '{column}' not found in table '{self.name}'")
        return self.data.iloc[row][name]

    def records(self) -> List[Dict[str, Any]]:
        """Rows as dictionaries keyed by column name."""
        return self.data.to_dict('records')

    def select_columns(self, columns: Sequence[str]) -> "Table":
        """Return a table restricted to ``columns`` (declared names) in that order."""
        return Table(self.name, self.data.loc[:, list(columns)])

    def sorted_by(self, columns: Sequence[str]) -> "Table":
        """Return a copy with rows sorted on ``columns`` using a null-safe textual key."""
        if self.is_empty or not columns:
            return Table(self.name, self.data)
        records = self.records()
        order = sorted(
            range(len(records)),
            key=lambda index: tuple(_sort_key(records[index][column]) for column in columns),
        )
        return Table(self.name, self.data.iloc[order])

    def renamed(self, name: str) -> "Table":
        return Table(name, self.data)

    def __repr__(self) -> str:
        return f"Table(name={self.name!r}, columns={self.columns!r}, rows={self.row_count})"


class Dataset:
    """An ordered collection of uniquely named tables."""

    def __init__(self, tables: Iterable[Table] = ()) -> None:
        self._tables: Dict[str, Table] = {}
        for table in tables:
            self._add_table(table)

    def _add_table(self, table: Table) -> None:
        key = table.name.lower()
        if key in self._tables:
            raise DuplicateTableError(table.name)
        self._tables[key] = table

    @property
    def table_names(self) -> List[str]:
        return [table.name for table in self._tables.values()]

    @property
    def tables(self) -> List[Table]:
        return list(self._tables.values())

    def has_table(self, name: str) -> bool:
        return name.lower() in self._tables

    def get_table(self, name: str) -> Table:
        """Return the table called ``name``.

        Raises:
            NoSuchTableError: If the dataset has no such table.
        """
        try:
            return self._tables[name.strip().lower()]
        except KeyError:
            raise NoSuchTableError(name, self.table_names) from None

    def __iter__(self) -> Iterator[Table]:
        return iter(self._tables.values())

    def __len__(self) -> int:
        return len(self._tables)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.has_table(name)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(tables={self.table_names!r})"


class CompositeDataset(Dataset):
    """A dataset made of several source datasets with disjoint table names."""

    def __init__(self, datasets: Sequence[Dataset]) -> None:
        self.sources = list(datasets)
        super().__init__(table for dataset in self.sources for table in dataset)
