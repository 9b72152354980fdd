"""Configuration management for SQLFixture."""

from sqlfixture.config.models import (
    DatabaseType,
    DatabaseConfig,
    ConnectionPoolConfig,
    ExportSettings,
    FixtureSettings,
    SQLFixtureConfig,
    EnvironmentSettings,
)
from sqlfixture.config.parser import (
    ConfigParser,
    get_config,
    validate_config_file,
    create_sample_config,
)

__all__ = [
    # Models
    "DatabaseType",
    "DatabaseConfig",
    "ConnectionPoolConfig",
    "ExportSettings",
    "FixtureSettings",
    "SQLFixtureConfig",
    "EnvironmentSettings",
    # Parser
    "ConfigParser",
    "get_config",
    "validate_config_file",
    "create_sample_config",
]
