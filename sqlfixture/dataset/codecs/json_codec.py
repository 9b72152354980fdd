"""JSON dataset codec: ``{"table": [{"column": value, ...}, ...], ...}``."""

import json
from pathlib import Path
from typing import Any, Dict, List

from sqlfixture.dataset.codecs.base import DatasetCodec, to_plain
from sqlfixture.dataset.models import Dataset, Table
from sqlfixture.exceptions import DatasetError


def dataset_from_mapping(content: Any, source: Path) -> Dataset:
    """Build a dataset from a ``{table: [row, ...]}`` mapping."""
    if content is None:
        return Dataset()
    if not isinstance(content, dict):
        raise DatasetError(f"Dataset '{source}' must map table names to lists of rows")

    tables = []
    for name, rows in content.items():
        rows = rows or []
        if not isinstance(rows, list) or not all(isinstance(row, dict) for row in rows):
            raise DatasetError(f"Table '{name}' in '{source}' must be a list of rows")
        tables.append(Table.from_records(str(name), rows))
    return Dataset(tables)


def dataset_to_mapping(dataset: Dataset) -> Dict[str, List[Dict[str, Any]]]:
    return {
        table.name: [
            {column: to_plain(value) for column, value in record.items()}
            for record in table.records()
        ]
        for table in dataset
    }


class JsonCodec(DatasetCodec):
    """JSON codec."""

    key = "json"
    formats = ("json",)

    def read(self, path: Path) -> Dataset:
        try:
            with open(path, 'r', encoding='utf-8') as file:
                content = json.load(file)
        except json.JSONDecodeError as e:
            raise DatasetError(f"Invalid JSON in dataset '{path}': {e}") from e
        return dataset_from_mapping(content, path)

    def write_dataset(self, dataset: Dataset, destination: Path, xml_element: bool = False) -> None:
        with open(destination, 'w', encoding='utf-8') as file:
            json.dump(dataset_to_mapping(dataset), file, indent=2, default=str)
