"""Writes database content to dataset files after a test."""

import logging
from pathlib import Path
from typing import Optional, Union

from sqlfixture.dataset.codecs import codec_for_format
from sqlfixture.dataset.models import Dataset
from sqlfixture.fixtures.context import FixtureContext
from sqlfixture.fixtures.resolver import ExportGroup

logger = logging.getLogger(__name__)


class Exporter:
    """Exports groups of tables to ``<root>/<namespace path>/<file name>.<format>``.

    Without an output directory the file goes next to the test module.
    """

    def __init__(self, output_dir: Optional[Union[str, Path]] = None) -> None:
        self.output_dir = Path(output_dir) if output_dir else None

    def destination_for(self, context: FixtureContext, group: ExportGroup) -> Path:
        if self.output_dir is not None:
            directory = self.output_dir / context.namespace_path
        else:
            directory = context.namespace_dir or Path.cwd()

        suffix = f".{group.format}"
        file_name = group.file_name
        if not file_name.lower().endswith(suffix):
            file_name += suffix
        return directory / file_name

    def build_dataset(self, group: ExportGroup, connection) -> Dataset:
        """One table per (table, query) pair; a blank query reads the whole table."""
        tables = []
        for table_name, query in group.tables:
            if query and query.strip():
                tables.append(connection.create_query_table(table_name, query))
            else:
                tables.append(connection.create_table(table_name).renamed(table_name))
        return Dataset(tables)

    def export(self, group: ExportGroup, connection, context: FixtureContext) -> Path:
        """Write one export group and return the file written.

        Raises:
            ConfigurationError: If the format is not supported.
        """
        codec = codec_for_format(group.format, replace_null_token=False)
        dataset = self.build_dataset(group, connection)
        destination = self.destination_for(context, group)
        written = codec.write(
            dataset,
            destination,
            sort_columns=group.sort_columns,
            xml_element=group.xml_element,
            replacements=group.replacements,
        )
        logger.info(f"Exported tables {dataset.table_names} of '{connection.name}' to {written}")
        return written
