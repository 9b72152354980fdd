"""Database management CLI commands."""

from __future__ import annotations

from typing import Any, Dict, Optional

import click
from rich.table import Table

from sqlfixture.cli.utils import console, load_config
from sqlfixture.db import get_connection_manager
from sqlfixture.exceptions import ConfigurationError


@click.group(name="db")
@click.pass_context
def db_group(ctx: click.Context) -> None:
    """Database connection management."""
    pass


@db_group.command(name="test")
@click.option("--database", "-d", help="Specific database to test (default: all)")
@click.pass_context
def test_connection_command(ctx: click.Context, database: Optional[str]) -> None:
    """Test database connections."""
    try:
        config = load_config(ctx.obj.get('config'))
        manager = get_connection_manager(config)

        console.print("[bold blue]Testing Database Connections[/bold blue]\n")

        if database:
            results = {database: manager.test_connection(database)}
        else:
            results = manager.test_all_connections()

        for result in results.values():
            _show_connection_result(result)
            console.print()

        if any(result['status'] != 'success' for result in results.values()):
            raise SystemExit(1)
    except ConfigurationError as exc:
        console.print(f"[red]Configuration Error: {exc}[/red]")
        raise SystemExit(1) from exc


@db_group.command(name="status")
@click.pass_context
def status_command(ctx: click.Context) -> None:
    """Show database connection status."""
    try:
        config = load_config(ctx.obj.get('config'))
        manager = get_connection_manager(config)

        console.print("[bold blue]Database Connection Status[/bold blue]\n")

        status_info = manager.get_connection_status()
        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Database", style="cyan")
        table.add_column("Type", style="green")
        table.add_column("Status", style="yellow")
        table.add_column("Default", style="blue")

        for db_name, conn_info in status_info['connections'].items():
            status_label = "Active" if conn_info['active'] else "Inactive"
            is_default = "yes" if db_name == status_info['default_database'] else ""
            table.add_row(db_name, conn_info['type'], status_label, is_default)

        console.print(table)
        console.print(
            f"\nTotal: {status_info['total_active']} active / {status_info['total_configured']} configured"
        )
    except ConfigurationError as exc:
        console.print(f"[red]Configuration Error: {exc}[/red]")
        raise SystemExit(1) from exc


@db_group.command(name="tables")
@click.option("--database", "-d", help="Database to list tables from (default: default database)")
@click.pass_context
def tables_command(ctx: click.Context, database: Optional[str]) -> None:
    """List tables in dependency order, parents first."""
    try:
        config = load_config(ctx.obj.get('config'))
        manager = get_connection_manager(config)

        db_name = database or ctx.obj.get('db') or config.default_database
        connection = manager.connect(db_name)
        try:
            tables_list = connection.get_table_names()
        finally:
            connection.close()

        console.print(f"[bold blue]Tables in {db_name}[/bold blue]\n")
        if not tables_list:
            console.print("[yellow]No tables found[/yellow]")
            return

        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("#", style="dim", width=4)
        table.add_column("Table Name", style="cyan")
        for i, table_name in enumerate(tables_list, start=1):
            table.add_row(str(i), table_name)
        console.print(table)
        console.print(f"\n[dim]Total: {len(tables_list)} table(s)[/dim]")
    except ConfigurationError as exc:
        console.print(f"[red]Configuration Error: {exc}[/red]")
        raise SystemExit(1) from exc
    except Exception as exc:
        console.print(f"[red]Error: {exc}[/red]")
        raise SystemExit(1) from exc


def _show_connection_result(result: Dict[str, Any]) -> None:
    db_name = result['database']
    if result['status'] == 'success':
        console.print(f"[green]{db_name}[/green]: {result['message']}")
        console.print(f"   Driver: {result.get('driver', 'unknown')}")
        console.print(f"   Type: {result.get('database_type', 'unknown')}")
    else:
        console.print(f"[red]{db_name}[/red]: {result['message']}")
        console.print(f"   Error type: {result.get('error', 'unknown')}")
    console.print(f"   Response time: {result['response_time']}ms")
