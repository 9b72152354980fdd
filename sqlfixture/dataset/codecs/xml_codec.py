"""Flat XML dataset codec.

Each child of the ``<dataset>`` root is one row; the element name is the
table name and the attributes are the column values::

    <dataset>
        <person id="1" first_name="Phillip" last_name="Webb"/>
        <person id="2" first_name="Fred"/>
    </dataset>

A missing attribute is a null value. The columns of a table are sensed
across all of its rows. An element without attributes declares an empty
table. With ``xml_element`` the values are written as child elements
instead of attributes; both styles are accepted when reading.
"""

import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Dict, List

from sqlfixture.dataset.codecs.base import DatasetCodec, to_text
from sqlfixture.dataset.models import Dataset, Table
from sqlfixture.exceptions import DatasetError


class FlatXmlCodec(DatasetCodec):
    """Flat XML codec."""

    key = "flat_xml"
    formats = ("xml",)

    def read(self, path: Path) -> Dataset:
        try:
            root = ET.parse(str(path)).getroot()
        except ET.ParseError as e:
            raise DatasetError(f"Invalid XML in dataset '{path}': {e}") from e

        rows_by_table: Dict[str, List[Dict[str, str]]] = {}
        for element in root:
            if not isinstance(element.tag, str):
                continue
            rows = rows_by_table.setdefault(element.tag, [])
            row = self._read_row(element)
            if row:
                rows.append(row)

        return Dataset(Table.from_records(name, rows) for name, rows in rows_by_table.items())

    def _read_row(self, element: ET.Element) -> Dict[str, str]:
        if element.attrib:
            return dict(element.attrib)
        return {child.tag: (child.text or "") for child in element if isinstance(child.tag, str)}

    def write_dataset(self, dataset: Dataset, destination: Path, xml_element: bool = False) -> None:
        root = ET.Element('dataset')
        for table in dataset:
            if table.is_empty:
                ET.SubElement(root, table.name)
                continue
            for record in table.records():
                if xml_element:
                    row = ET.SubElement(root, table.name)
                    for column, value in record.items():
                        text = to_text(value)
                        if text is not None:
                            ET.SubElement(row, column).text = text
                else:
                    attributes = {
                        column: to_text(value)
                        for column, value in record.items()
                        if value is not None
                    }
                    ET.SubElement(root, table.name, attributes)

        tree = ET.ElementTree(root)
        ET.indent(tree, space="    ")
        tree.write(str(destination), encoding='utf-8', xml_declaration=True)
