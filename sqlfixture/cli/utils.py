"""Shared CLI utilities for SQLFixture."""

from __future__ import annotations

import logging
from typing import Optional

from rich.console import Console

from sqlfixture.config import SQLFixtureConfig, get_config
from sqlfixture.config.models import EnvironmentSettings

# Single console instance reused across CLI modules
console = Console()


def configure_logging(verbose: bool = False) -> None:
    """Configure root logging from ``--verbose`` or ``SQLFIXTURE_LOG_LEVEL``."""
    settings = EnvironmentSettings()
    level_name = "DEBUG" if verbose or settings.debug else settings.log_level.upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def load_config(config_path: Optional[str]) -> SQLFixtureConfig:
    """Load the configuration named on the command line, in SQLFIXTURE_CONFIG_FILE or a default location."""
    return get_config(config_path or EnvironmentSettings().config_file, reload=True)


def print_exception(message: str, error: Exception, verbose: bool = False) -> None:
    """Render a formatted exception message.

    Args:
        message: Friendly context message to display before the exception.
        error: Original exception instance.
        verbose: When True, render the full traceback for debugging.
    """
    console.print(f"[red]{message}: {error}[/red]")
    if verbose:
        import traceback

        console.print(f"[dim]{traceback.format_exc()}[/dim]")
