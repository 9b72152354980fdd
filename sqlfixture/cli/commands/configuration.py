"""Configuration management CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from sqlfixture.cli.utils import console, load_config
from sqlfixture.config import create_sample_config
from sqlfixture.exceptions import ConfigurationError
from sqlfixture.fixtures.config_loader import load_declarations


@click.group(name="config")
def config_group() -> None:
    """Configuration management."""
    pass


@config_group.command(name="validate")
@click.argument("config_file", type=click.Path(exists=True))
@click.option(
    "--declarations",
    type=click.Path(exists=True),
    multiple=True,
    help="Fixture declaration file(s) to validate as well",
)
def validate_command(config_file: str, declarations: tuple) -> None:
    """Validate configuration file."""
    try:
        config = load_config(config_file)
        console.print(f"[green]Configuration file '{config_file}' is valid[/green]")
        console.print(f"Found {len(config.databases)} database(s): {', '.join(config.databases.keys())}")
        console.print(f"Default database: [cyan]{config.default_database}[/cyan]")
        console.print(f"Default codec: [cyan]{config.fixture_settings.default_codec}[/cyan]")

        for declaration_file in declarations:
            loaded = load_declarations(declaration_file, config.fixture_settings.export.default_format)
            suite = loaded.suite
            console.print(
                f"[green]Declaration file '{declaration_file}' is valid[/green] "
                f"({len(suite.setups)} setup(s), {len(suite.expectations)} expectation(s), "
                f"{len(loaded.cases)} case(s))"
            )
    except ConfigurationError as exc:
        console.print(f"[red]Configuration validation failed: {exc}[/red]")
        raise SystemExit(1) from exc


@config_group.command(name="sample")
@click.argument("output_file", type=click.Path())
@click.option("--force", is_flag=True, help="Overwrite an existing file without asking")
def sample_command(output_file: str, force: bool) -> None:
    """Create sample configuration file."""
    try:
        output_path = Path(output_file)
        if output_path.exists() and not force:
            click.confirm(f"File '{output_file}' exists. Overwrite?", abort=True)

        create_sample_config(output_path)
        console.print(f"[green]Sample configuration created: {output_file}[/green]")
        console.print("\n[yellow]Next steps:[/yellow]")
        console.print("1. Edit the configuration file to match your database settings")
        console.print("2. Set required environment variables (e.g., REPORTING_DB_PASSWORD)")
        console.print(f"3. Validate: [cyan]sqlfixture config validate {output_file}[/cyan]")
    except OSError as exc:
        console.print(f"[red]Error creating sample configuration: {exc}[/red]")
        raise SystemExit(1) from exc
