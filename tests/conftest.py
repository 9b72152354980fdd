"""
Shared fixtures for SQLFixture tests.

Every database used here is a SQLite file under the test's temporary
directory holding the ``person`` and ``bankcard`` tables.
"""
from pathlib import Path

import pytest

from sqlfixture.config.models import (
    DatabaseConfig,
    DatabaseType,
    FixtureSettings,
    SQLFixtureConfig,
)
from sqlfixture.db.connection import ConnectionManager

SCHEMA = """
CREATE TABLE person (
    id INTEGER PRIMARY KEY,
    first_name VARCHAR(50) NOT NULL,
    last_name VARCHAR(50),
    title VARCHAR(50)
);
CREATE TABLE bankcard (
    id INTEGER PRIMARY KEY,
    number VARCHAR(20) NOT NULL,
    person_id INTEGER REFERENCES person (id)
);
"""

SAMPLE_XML = """<?xml version="1.0" encoding="UTF-8"?>
<dataset>
    <person id="1" first_name="Phillip" last_name="Webb" title="Mr"/>
    <bankcard id="1" number="0123456789" person_id="1"/>
</dataset>
"""


@pytest.fixture
def make_config(tmp_path: Path):
    """Factory for a configuration with a single SQLite database called ``main``."""
    def factory(**fixture_settings) -> SQLFixtureConfig:
        return SQLFixtureConfig(
            databases={
                "main": DatabaseConfig(type=DatabaseType.SQLITE, path=str(tmp_path / "main.db")),
            },
            fixture_settings=FixtureSettings(**fixture_settings),
        )
    return factory


@pytest.fixture
def sqlite_config(make_config) -> SQLFixtureConfig:
    return make_config()


@pytest.fixture
def connection_manager(sqlite_config: SQLFixtureConfig):
    """Connection manager whose default database has the sample schema."""
    manager = ConnectionManager(sqlite_config)
    connection = manager.connect()
    connection.execute_sql(SCHEMA)
    connection.close()
    yield manager
    manager.close_all_connections()


@pytest.fixture
def db_connection(connection_manager: ConnectionManager):
    connection = connection_manager.connect()
    yield connection
    connection.close()


@pytest.fixture
def sample_xml(tmp_path: Path) -> Path:
    path = tmp_path / "sampleData.xml"
    path.write_text(SAMPLE_XML, encoding="utf-8")
    return path
