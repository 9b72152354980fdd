"""Core exceptions for SQLFixture."""

from typing import Any, Dict, List, Optional


class SQLFixtureError(Exception):
    """Base exception for all SQLFixture errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(SQLFixtureError):
    """Raised when there's an error in configuration parsing or validation."""
    pass


class UnsupportedOperationError(ConfigurationError):
    """Raised when a database operation has no registered handler."""

    def __init__(self, operation: Any, details: Optional[Dict[str, Any]] = None):
        super().__init__(f"The database operation {operation} is not supported", details)
        self.operation = operation


class DuplicateTableError(ConfigurationError):
    """Raised when two datasets in a composite define the same table."""

    def __init__(self, table_name: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            f"Unable to compose datasets: table '{table_name}' is defined more than once",
            details,
        )
        self.table_name = table_name


class NoSuchTableError(ConfigurationError):
    """Raised when a dataset does not contain a requested table."""

    def __init__(self, table_name: str, available: Optional[List[str]] = None):
        super().__init__(
            f"Table '{table_name}' not found. Available tables: {available or []}",
            {'available': available or []},
        )
        self.table_name = table_name


class CodecInstantiationError(ConfigurationError):
    """Raised when a dataset codec cannot be created from its registered key."""
    pass


class ResourceNotFoundError(SQLFixtureError):
    """Raised when a dataset or SQL resource cannot be located."""

    def __init__(self, location: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(f"Unable to load dataset from \"{location}\"", details)
        self.location = location


class DatasetError(SQLFixtureError):
    """Raised when a dataset file cannot be parsed or written."""
    pass


class DatabaseError(SQLFixtureError):
    """Raised when there's an error connecting to or querying a database."""

    def __init__(
        self,
        message: str,
        database_type: Optional[str] = None,
        connection_string: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, details)
        self.database_type = database_type
        self.connection_string = connection_string


class DatabaseAssertionError(SQLFixtureError, AssertionError):
    """Raised when the database content does not match the expected dataset."""

    def __init__(self, message: str, differences: Optional[List[Any]] = None):
        super().__init__(message, {'difference_count': len(differences or [])})
        self.differences = list(differences or [])


class TeardownError(SQLFixtureError):
    """Raised when the database teardown of a test fails."""

    def __init__(self, message: str, test_name: Optional[str] = None):
        super().__init__(message, {'test_name': test_name})
        self.test_name = test_name
