"""Base class and shared helpers for dataset codecs."""

import base64
import datetime
import decimal
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, List, Optional, Sequence, Tuple, Union

from sqlfixture.dataset.models import Dataset, Table
from sqlfixture.dataset.modifiers import null_token_modifier
from sqlfixture.dataset.resources import ResourceLocator
from sqlfixture.exceptions import ConfigurationError, DatasetError, SQLFixtureError

logger = logging.getLogger(__name__)

ReplacementPairs = Sequence[Tuple[str, str]]


def pair_replacements(flat: Sequence[str]) -> List[Tuple[str, str]]:
    """Turn a flat ``[from, to, from, to, ...]`` sequence into pairs.

    Raises:
        ConfigurationError: If the sequence has an odd length.
    """
    values = list(flat or [])
    if len(values) % 2:
        raise ConfigurationError(
            f"Replacements must be given as (target, replacement) pairs, got {len(values)} values"
        )
    return [(str(values[i]), str(values[i + 1])) for i in range(0, len(values), 2)]


def apply_replacements(dataset: Dataset, replacements: Optional[ReplacementPairs]) -> Dataset:
    """Apply export replacements to every table of ``dataset``.

    A target naming a column masks every non-null value of that column;
    any other target is replaced as a substring inside text values.
    """
    if not replacements:
        return dataset
    tables = []
    for table in dataset:
        column_masks = {}
        substrings = []
        for target, replacement in replacements:
            column = table.find_column(target)
            if column is not None:
                column_masks[column] = replacement
            else:
                substrings.append((target, replacement))

        records = []
        for record in table.records():
            row = {}
            for column, value in record.items():
                if column in column_masks and value is not None:
                    value = column_masks[column]
                elif isinstance(value, str):
                    for target, replacement in substrings:
                        value = value.replace(target, replacement)
                row[column] = value
            records.append(row)
        tables.append(Table.from_records(table.name, records, columns=table.columns))
    return Dataset(tables)


def sort_dataset_columns(dataset: Dataset) -> Dataset:
    """Order the columns of every table alphabetically (case-insensitive)."""
    return Dataset(
        table.select_columns(sorted(table.columns, key=str.lower)) for table in dataset
    )


def select_dataset_id(dataset: Dataset, dataset_id: str) -> Dataset:
    """Restrict ``dataset`` to the table named by ``dataset_id``."""
    return Dataset([dataset.get_table(dataset_id)])


def to_text(value: Any) -> Optional[str]:
    """Render a cell value as text for text based formats; None stays None."""
    if value is None:
        return None
    if hasattr(value, 'item') and not isinstance(value, (str, bytes)):
        value = value.item()
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (bytes, bytearray, memoryview)):
        return base64.b64encode(bytes(value)).decode('ascii')
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def to_plain(value: Any) -> Any:
    """Convert a cell value into a JSON/YAML friendly scalar."""
    if value is None:
        return None
    if hasattr(value, 'item') and not isinstance(value, (str, bytes)):
        value = value.item()
    if isinstance(value, decimal.Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return base64.b64encode(bytes(value)).decode('ascii')
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return value.isoformat()
    return value


class DatasetCodec(ABC):
    """Reads datasets from and writes datasets to one on-disk format."""

    key: str = ""
    formats: Tuple[str, ...] = ()

    def __init__(
        self,
        locator: Optional[ResourceLocator] = None,
        replace_null_token: bool = True,
    ) -> None:
        self.locator = locator or ResourceLocator()
        self.replace_null_token = replace_null_token

    def resolve(self, namespace_dir: Optional[Path], location: str) -> Optional[Path]:
        return self.locator.resolve(namespace_dir, location)

    def load(
        self,
        namespace_dir: Optional[Path],
        location: str,
        dataset_id: Optional[str] = None,
    ) -> Optional[Dataset]:
        """Load the dataset at ``location``; None when it cannot be found.

        Raises:
            DatasetError: If the resource exists but cannot be parsed.
        """
        path = self.resolve(namespace_dir, location)
        if path is None:
            return None

        logger.debug(f"Loading {self.key} dataset from {path}")
        try:
            dataset = self.read(path)
        except SQLFixtureError:
            raise
        except Exception as e:
            raise DatasetError(f"Unable to parse {self.key} dataset '{path}': {e}") from e

        if dataset_id:
            dataset = select_dataset_id(dataset, dataset_id)
        if self.replace_null_token:
            dataset = null_token_modifier().modify(dataset)
        return dataset

    def write(
        self,
        dataset: Dataset,
        destination: Union[str, Path],
        sort_columns: bool = False,
        xml_element: bool = False,
        replacements: Optional[ReplacementPairs] = None,
    ) -> Path:
        """Write ``dataset`` to ``destination`` and return the written path.

        Raises:
            DatasetError: If the file cannot be written.
        """
        destination = Path(destination)
        prepared = apply_replacements(dataset, replacements)
        if sort_columns:
            prepared = sort_dataset_columns(prepared)

        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            self.write_dataset(prepared, destination, xml_element=xml_element)
        except OSError as e:
            raise DatasetError(f"Unable to write {self.key} dataset '{destination}': {e}") from e

        logger.debug(f"Wrote {self.key} dataset with tables {prepared.table_names} to {destination}")
        return destination

    @abstractmethod
    def read(self, path: Path) -> Dataset:
        """Parse the file (or directory) at ``path``."""
        pass

    @abstractmethod
    def write_dataset(self, dataset: Dataset, destination: Path, xml_element: bool = False) -> None:
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"
