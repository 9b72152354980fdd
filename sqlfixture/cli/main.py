"""Main CLI entry point for SQLFixture."""

from __future__ import annotations

import click
from rich.panel import Panel
from rich.text import Text

from sqlfixture import __version__
from sqlfixture.cli.commands import register_commands
from sqlfixture.cli.commands.configuration import config_group
from sqlfixture.cli.commands.database import db_group
from sqlfixture.cli.commands.export import export_command, load_command
from sqlfixture.cli.utils import configure_logging, console


@click.group(invoke_without_command=True)
@click.option("--version", is_flag=True, help="Show version information")
@click.option("--config", type=click.Path(exists=True), help="Path to configuration file")
@click.option("--db", help="Database connection name")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(
    ctx: click.Context,
    version: bool,
    config: str,
    db: str,
    verbose: bool,
) -> None:
    """SQLFixture - database fixtures for tests."""
    ctx.ensure_object(dict)
    ctx.obj.update(
        {
            "config": config,
            "db": db,
            "verbose": verbose,
        }
    )
    configure_logging(verbose)

    if version:
        console.print(f"SQLFixture v{__version__}")
        return

    if ctx.invoked_subcommand is None:
        show_dashboard()


# Registered in workflow order: capture data, seed databases, environment tools.
COMMAND_REGISTRY = [
    export_command,
    load_command,
    db_group,
    config_group,
]

register_commands(cli, COMMAND_REGISTRY)


def show_dashboard() -> None:
    """Display the overview panel."""
    title = Text("SQLFixture", style="bold blue")
    subtitle = Text("Database fixtures for tests", style="italic")

    dashboard_content = Text()
    dashboard_content.append("export  Capture tables as expected datasets\n", style="bold")
    dashboard_content.append("load    Seed a database from dataset files\n", style="bold")
    dashboard_content.append("db      Test and inspect connections\n", style="bold")
    dashboard_content.append("config  Validate or create configuration\n", style="bold")
    dashboard_content.append("\nRun 'sqlfixture --help' for available commands", style="dim")

    panel = Panel(
        dashboard_content,
        title=title,
        subtitle=subtitle,
        border_style="blue",
        padding=(1, 2),
    )

    console.print(panel)


if __name__ == "__main__":
    cli()
