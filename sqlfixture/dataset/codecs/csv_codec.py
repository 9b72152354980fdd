"""CSV dataset codec.

A dataset is a directory holding ``table-ordering.txt`` (one table name per
line) and one ``<table>.csv`` file per table. A single ``.csv`` file is also
accepted and read as one table named after the file stem. Empty cells are
null values.
"""

from pathlib import Path
from typing import List, Optional

import pandas as pd

from sqlfixture.dataset.codecs.base import DatasetCodec, to_text
from sqlfixture.dataset.models import Dataset, Table
from sqlfixture.exceptions import DatasetError

TABLE_ORDERING_FILE = "table-ordering.txt"


class CsvCodec(DatasetCodec):
    """CSV directory codec."""

    key = "csv"
    formats = ("csv",)

    def resolve(self, namespace_dir: Optional[Path], location: str) -> Optional[Path]:
        return self.locator.resolve(namespace_dir, location) or self.locator.resolve_directory(
            namespace_dir, location
        )

    def read(self, path: Path) -> Dataset:
        if path.is_file():
            return Dataset([self._read_table(path.stem, path)])

        ordering_file = path / TABLE_ORDERING_FILE
        if ordering_file.is_file():
            names = self._read_ordering(ordering_file)
        else:
            names = sorted(csv_file.stem for csv_file in path.glob("*.csv"))

        tables = []
        for name in names:
            csv_file = path / f"{name}.csv"
            if not csv_file.is_file():
                raise DatasetError(f"Table '{name}' listed in {ordering_file} has no file {csv_file}")
            tables.append(self._read_table(name, csv_file))
        return Dataset(tables)

    def _read_ordering(self, ordering_file: Path) -> List[str]:
        lines = ordering_file.read_text(encoding='utf-8').splitlines()
        return [line.strip() for line in lines if line.strip() and not line.strip().startswith('#')]

    def _read_table(self, name: str, csv_file: Path) -> Table:
        try:
            frame = pd.read_csv(csv_file, dtype=str, keep_default_na=False, na_values=[""])
        except pd.errors.EmptyDataError:
            return Table(name)
        return Table(name, frame)

    def write_dataset(self, dataset: Dataset, destination: Path, xml_element: bool = False) -> None:
        if len(dataset) == 1:
            self._write_table(dataset.tables[0], destination)
            return

        destination.mkdir(parents=True, exist_ok=True)
        for table in dataset:
            self._write_table(table, destination / f"{table.name}.csv")
        (destination / TABLE_ORDERING_FILE).write_text(
            "\n".join(dataset.table_names) + "\n", encoding='utf-8'
        )

    def _write_table(self, table: Table, csv_file: Path) -> None:
        frame = table.data.apply(lambda column: column.map(to_text)) if not table.is_empty else table.data
        frame.to_csv(csv_file, index=False)
