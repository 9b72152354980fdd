"""Export and load CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Tuple

import click

from sqlfixture.cli.utils import console, load_config, print_exception
from sqlfixture.dataset.codecs import get_supported_formats
from sqlfixture.dataset.composer import DatasetComposer
from sqlfixture.dataset.resources import ResourceLocator
from sqlfixture.db import DatabaseOperation, get_connection_manager
from sqlfixture.db.operations import OperationExecutor
from sqlfixture.exceptions import ConfigurationError, SQLFixtureError
from sqlfixture.fixtures.context import FixtureContext
from sqlfixture.fixtures.export import Exporter
from sqlfixture.fixtures.resolver import ConfigurationResolver, ExportGroup


@click.command(name="export")
@click.argument("tables", nargs=-1, required=True)
@click.option("--query", "-q", default="", help="Query producing the rows (single table only)")
@click.option("--output", "-o", type=click.Path(), required=True, help="Output file; the format suffix is added if missing")
@click.option("--format", "-f", "export_format", help="Dataset format (default: configured export format)")
@click.option("--database", "-d", help="Database to export from (default: default database)")
@click.option("--xml-element", is_flag=True, help="Write XML values as child elements")
@click.option("--sort-columns", is_flag=True, help="Sort columns alphabetically")
@click.option(
    "--replace",
    "replacements",
    type=(str, str),
    multiple=True,
    help="Replace a column's values, or a substring, with a token (repeatable)",
)
@click.pass_context
def export_command(
    ctx: click.Context,
    tables: Tuple[str, ...],
    query: str,
    output: str,
    export_format: Optional[str],
    database: Optional[str],
    xml_element: bool,
    sort_columns: bool,
    replacements: Tuple[Tuple[str, str], ...],
) -> None:
    """Export database tables to a dataset file."""
    try:
        if query and len(tables) != 1:
            raise ConfigurationError("--query can only be used with a single table")

        config = load_config(ctx.obj.get('config'))
        export_format = (export_format or config.fixture_settings.export.default_format).lower()
        if export_format not in get_supported_formats():
            raise ConfigurationError(
                f"Unsupported export format '{export_format}'. Supported formats: {get_supported_formats()}"
            )

        output_path = Path(output).resolve()
        group = ExportGroup(
            connection=database or ctx.obj.get('db') or "",
            file_name=output_path.name,
            format=export_format,
            tables=tuple((table_name, query) for table_name in tables),
            xml_element=xml_element,
            sort_columns=sort_columns,
            replacements=tuple(replacements),
        )

        manager = get_connection_manager(config)
        connection = manager.connect(group.connection)
        try:
            context = FixtureContext(test_name=output_path.stem, namespace_dir=output_path.parent)
            written = Exporter().export(group, connection, context)
        finally:
            connection.close()

        console.print(f"[green]Exported {', '.join(tables)} to {written}[/green]")
    except ConfigurationError as exc:
        console.print(f"[red]Configuration Error: {exc}[/red]")
        raise SystemExit(1) from exc
    except SQLFixtureError as exc:
        print_exception("Export failed", exc, ctx.obj.get('verbose', False))
        raise SystemExit(1) from exc


@click.command(name="load")
@click.argument("locations", nargs=-1, required=True)
@click.option(
    "--operation",
    type=click.Choice([operation.value for operation in OperationExecutor().operation_handlers], case_sensitive=False),
    default=DatabaseOperation.CLEAN_INSERT.value,
    show_default=True,
    help="Operation applied to the dataset",
)
@click.option("--codec", "codec_key", help="Dataset codec (default: configured codec)")
@click.option("--dataset-id", help="Identifier selecting one dataset within a file")
@click.option("--database", "-d", help="Database to load into (default: default database)")
@click.pass_context
def load_command(
    ctx: click.Context,
    locations: Tuple[str, ...],
    operation: str,
    codec_key: Optional[str],
    dataset_id: Optional[str],
    database: Optional[str],
) -> None:
    """Apply dataset files to a database."""
    try:
        config = load_config(ctx.obj.get('config'))
        settings = config.fixture_settings
        resolver = ConfigurationResolver(
            default_codec=settings.default_codec,
            locator=ResourceLocator(settings.resource_paths, Path.cwd()),
            replace_null_token=settings.replace_null_token,
        )
        codec = resolver.resolve_codec(codec_key)
        dataset_operation = DatabaseOperation.parse(operation)

        manager = get_connection_manager(config)
        connection = manager.connect(database or ctx.obj.get('db'))
        try:
            dataset = DatasetComposer().compose(locations, codec, connection, Path.cwd(), dataset_id)
            connection.execute(dataset_operation, dataset)
        finally:
            connection.close()

        console.print(
            f"[green]Applied {dataset_operation.value} with {len(dataset.table_names)} table(s) "
            f"to '{connection.name}'[/green]"
        )
    except ConfigurationError as exc:
        console.print(f"[red]Configuration Error: {exc}[/red]")
        raise SystemExit(1) from exc
    except SQLFixtureError as exc:
        print_exception("Load failed", exc, ctx.obj.get('verbose', False))
        raise SystemExit(1) from exc
