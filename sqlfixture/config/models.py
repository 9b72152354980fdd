"""Pydantic models for SQLFixture configuration."""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import (
    BaseModel,
    Field,
    field_validator,
    model_validator,
    AliasChoices,
    ConfigDict,
)
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseType(str, Enum):
    """Supported database types."""
    POSTGRESQL = "postgresql"
    MYSQL = "mysql"
    SQLITE = "sqlite"


class ConnectionPoolConfig(BaseModel):
    """Connection pool configuration shared by every test of a session."""
    min_connections: int = Field(default=1, ge=0, le=100, description="Minimum number of connections to maintain")
    max_connections: int = Field(default=5, ge=1, le=1000, description="Maximum number of connections allowed")
    timeout: int = Field(default=30, ge=1, le=3600, description="Connection timeout in seconds")
    pool_recycle: int = Field(default=3600, ge=-1, le=86400, description="Connection recycle time in seconds")
    pool_pre_ping: bool = Field(default=True, description="Validate connections before use")
    max_overflow: int = Field(default=0, ge=0, le=100, description="Connections allowed beyond max_connections")

    @model_validator(mode='after')
    def validate_connection_limits(self):
        """Ensure min_connections <= max_connections."""
        if self.min_connections > self.max_connections:
            raise ValueError("min_connections must be <= max_connections")
        return self


class DatabaseConfig(BaseModel):
    """Database connection configuration."""

    model_config = ConfigDict(populate_by_name=True)

    type: DatabaseType = Field(validation_alias=AliasChoices("type", "driver"))
    host: Optional[str] = None
    port: Optional[int] = None
    database: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    path: Optional[str] = None  # For SQLite
    url: Optional[str] = None  # Full SQLAlchemy URL, overrides the other fields
    options: Dict[str, Any] = Field(default_factory=dict)

    @field_validator('port')
    def validate_port(cls, v):
        """Validate port number range."""
        if v is not None and (v < 1 or v > 65535):
            raise ValueError("Port must be between 1 and 65535")
        return v

    @model_validator(mode='after')
    def validate_database_config(self):
        """Validate database-specific required fields."""
        if self.url:
            return self
        if self.type == DatabaseType.SQLITE:
            if not (self.path or self.database):
                raise ValueError("SQLite databases require a 'path' or 'database' field")
            if not self.path:
                # Allow configs that specify `database` instead of `path`
                object.__setattr__(self, "path", self.database)
            return self
        required_fields = ['host', 'database', 'username', 'password']
        for field in required_fields:
            if not getattr(self, field):
                raise ValueError(f"{self.type.value} databases require '{field}' field")
        return self


class ExportSettings(BaseModel):
    """Where and how exported datasets are written."""
    output_dir: Optional[str] = Field(
        default=None,
        description="Root directory for exports; defaults to the directory of the test module",
    )
    default_format: str = Field(default="xml", pattern="^(xml|csv|json|xls|xlsx|yml|yaml)$")


class FixtureSettings(BaseModel):
    """Suite-wide fixture behaviour."""
    default_codec: str = Field(default="flat_xml", description="Codec key used when a declaration names none")
    resource_paths: List[str] = Field(
        default_factory=lambda: ["."],
        description="Search paths for resources that are not relative to the test module",
    )
    failure_handler: str = Field(default="default", pattern="^(default|diff_collecting)$")
    column_filters: List[str] = Field(
        default_factory=list,
        description="Column patterns excluded from every comparison",
    )
    replace_null_token: bool = Field(default=True, description="Treat '[null]' in datasets as NULL")
    connections: List[str] = Field(
        default_factory=list,
        description="Database names available to tests; all configured databases when empty",
    )
    export: ExportSettings = Field(default_factory=ExportSettings)


class SQLFixtureConfig(BaseModel):
    """Main configuration model for SQLFixture."""
    databases: Dict[str, DatabaseConfig]
    connection_pools: Dict[str, ConnectionPoolConfig] = Field(
        default_factory=lambda: {"default": ConnectionPoolConfig()}
    )
    default_database: Optional[str] = None
    fixture_settings: FixtureSettings = Field(default_factory=FixtureSettings)

    @model_validator(mode='after')
    def validate_default_database(self):
        """Ensure default_database exists in databases."""
        if self.default_database and self.default_database not in self.databases:
            raise ValueError(f"default_database '{self.default_database}' not found in databases")
        return self

    @model_validator(mode='after')
    def set_default_database(self):
        """Set default database if not specified."""
        if not self.default_database and self.databases:
            self.default_database = next(iter(self.databases))
        return self

    @model_validator(mode='after')
    def validate_fixture_connections(self):
        """Ensure every fixture connection names a configured database."""
        unknown = [name for name in self.fixture_settings.connections if name not in self.databases]
        if unknown:
            raise ValueError(f"fixture connections {unknown} not found in databases")
        return self


class EnvironmentSettings(BaseSettings):
    """Environment-specific settings."""
    log_level: str = Field(default="INFO")
    debug: bool = Field(default=False)
    config_file: Optional[str] = Field(default=None)

    model_config = SettingsConfigDict(env_prefix="SQLFIXTURE_", case_sensitive=False)
