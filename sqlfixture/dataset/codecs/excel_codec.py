"""Excel dataset codec: one worksheet per table, first row holds the column names.

Workbooks are read and written in the OOXML format through openpyxl for
both the ``xlsx`` and ``xls`` extensions.
"""

import io
from pathlib import Path

import pandas as pd

from sqlfixture.dataset.codecs.base import DatasetCodec, to_plain
from sqlfixture.dataset.models import Dataset, Table
from sqlfixture.exceptions import DatasetError


class ExcelCodec(DatasetCodec):
    """Excel workbook codec."""

    key = "excel"
    formats = ("xls", "xlsx")

    def read(self, path: Path) -> Dataset:
        # openpyxl refuses the .xls extension, a buffer carries no name
        buffer = io.BytesIO(path.read_bytes())
        sheets = pd.read_excel(buffer, sheet_name=None, engine="openpyxl", dtype=object)
        return Dataset(Table(str(name), frame) for name, frame in sheets.items())

    def write_dataset(self, dataset: Dataset, destination: Path, xml_element: bool = False) -> None:
        if not len(dataset):
            raise DatasetError(f"Cannot write an empty dataset to workbook '{destination}'")
        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
            for table in dataset:
                frame = table.data.apply(lambda column: column.map(to_plain)) if not table.is_empty else table.data
                frame.to_excel(writer, sheet_name=table.name, index=False)
        destination.write_bytes(buffer.getvalue())
