"""SQLFixture: database fixture lifecycle management for tests.

SQLFixture provides:
- Declarative database setup and teardown around each test
- Datasets loaded from flat XML, CSV, JSON, YAML and Excel files
- Verification of the database state after a test
- Export of query results for later use as expected datasets
- A pytest plugin and a small CLI
"""

__version__ = "0.1.0"
__author__ = "David Schaaf"
__email__ = "your.email@example.com"
__license__ = "MIT"

# Core exports
from sqlfixture.exceptions import (
    SQLFixtureError,
    ConfigurationError,
    DatabaseError,
    DatabaseAssertionError,
    ResourceNotFoundError,
)

__all__ = [
    "__version__",
    "SQLFixtureError",
    "ConfigurationError",
    "DatabaseError",
    "DatabaseAssertionError",
    "ResourceNotFoundError",
]
