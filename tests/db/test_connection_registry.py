"""Tests for adapters, live connections and the per-test connection registry."""

from pathlib import Path
from unittest.mock import Mock

import pytest

from sqlfixture.config.models import DatabaseConfig, DatabaseType, SQLFixtureConfig
from sqlfixture.db.adapters.sqlite import SQLiteAdapter
from sqlfixture.db.base import split_statements
from sqlfixture.db.connection import (
    AdapterFactory,
    ConnectionManager,
    ConnectionRegistry,
    get_connection_manager,
    set_connection_manager,
)
from sqlfixture.exceptions import DatabaseError, NoSuchTableError


class TestSQLiteAdapter:
    """Test SQLite connection strings and engines."""

    def test_in_memory_database_is_shared(self):
        adapter = SQLiteAdapter(DatabaseConfig(type=DatabaseType.SQLITE, path=":memory:"))

        assert adapter.build_connection_string() == "sqlite://"
        first = adapter.connect("memory")
        first.execute_sql("CREATE TABLE t (id INTEGER PRIMARY KEY)")
        second = adapter.connect("memory")

        assert second.get_table_names() == ["t"]
        first.close()
        second.close()
        adapter.close()

    def test_relative_path_resolved_against_cwd(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.chdir(tmp_path)
        adapter = SQLiteAdapter(DatabaseConfig(type=DatabaseType.SQLITE, path="build/test.db"))

        assert adapter.build_connection_string() == f"sqlite:///{Path.cwd() / 'build' / 'test.db'}"
        assert (tmp_path / "build").is_dir()

    def test_truncate_statement(self):
        adapter = SQLiteAdapter(DatabaseConfig(type=DatabaseType.SQLITE, path=":memory:"))

        assert adapter.truncate_statement('"person"') == 'DELETE FROM "person"'

    def test_factory_rejects_unknown_type(self):
        config = Mock()
        config.type = "oracle"

        with pytest.raises(DatabaseError):
            AdapterFactory.create_adapter(config)


class TestDatabaseConnection:
    """Test reads and writes through a fixture connection."""

    def test_table_names_in_dependency_order(self, db_connection):
        assert db_connection.get_table_names() == ["person", "bankcard"]

    def test_resolve_table_name_ignores_case(self, db_connection):
        assert db_connection.resolve_table_name("PERSON") == "person"
        with pytest.raises(NoSuchTableError):
            db_connection.resolve_table_name("missing")

    def test_execute_sql_returns_statement_count(self, db_connection):
        count = db_connection.execute_sql(
            "INSERT INTO person (id, first_name) VALUES (2, 'Fred');"
            "INSERT INTO person (id, first_name) VALUES (1, 'Phillip');"
        )

        assert count == 2

    def test_create_table_is_ordered_by_primary_key(self, db_connection):
        db_connection.execute_sql(
            "INSERT INTO person (id, first_name) VALUES (2, 'Fred');"
            "INSERT INTO person (id, first_name) VALUES (1, 'Phillip')"
        )

        table = db_connection.create_table("Person")

        assert table.name == "person"
        assert table.columns == ["id", "first_name", "last_name", "title"]
        assert [row["first_name"] for row in table.records()] == ["Phillip", "Fred"]
        assert table.get_value(0, "title") is None

    def test_create_query_table(self, db_connection):
        db_connection.execute_sql("INSERT INTO person (id, first_name) VALUES (1, 'Phillip')")

        table = db_connection.create_query_table("names", "SELECT first_name FROM person")

        assert table.name == "names"
        assert table.records() == [{"first_name": "Phillip"}]

    def test_create_dataset_snapshot(self, db_connection):
        dataset = db_connection.create_dataset()

        assert dataset.table_names == ["person", "bankcard"]
        assert all(table.is_empty for table in dataset)

    def test_failed_script_is_rolled_back(self, db_connection):
        with pytest.raises(DatabaseError, match="statement 2"):
            db_connection.execute_sql(
                "INSERT INTO person (id, first_name) VALUES (1, 'Phillip');"
                "INSERT INTO no_such_table VALUES (1)"
            )

        assert db_connection.create_table("person").is_empty

    def test_truncate_table(self, db_connection):
        db_connection.execute_sql("INSERT INTO person (id, first_name) VALUES (1, 'Phillip')")

        db_connection.truncate_table("person")

        assert db_connection.create_table("person").is_empty

    def test_close_twice(self, db_connection):
        db_connection.close()
        db_connection.close()

        assert db_connection.closed
        with pytest.raises(DatabaseError):
            db_connection.create_table("person")


class TestConnectionRegistry:
    """Test lazy opening and single closing of test connections."""

    def test_connections_open_lazily_and_are_reused(self, connection_manager):
        registry = ConnectionRegistry(connection_manager)

        assert registry.names == []
        first = registry.get()
        assert registry.get("main") is first
        assert registry.names == ["main"]

        registry.close_all()
        assert first.closed

    def test_close_all_runs_once(self):
        provider = Mock()
        provider.default_database = "main"
        registry = ConnectionRegistry(provider)
        connection = registry.get()

        registry.close_all()
        registry.close_all()

        connection.close.assert_called_once_with()
        assert registry.closed

    def test_closed_registry_refuses_connections(self, connection_manager):
        registry = ConnectionRegistry(connection_manager)
        registry.close_all()

        with pytest.raises(DatabaseError):
            registry.get()

    def test_close_all_closes_everything_and_raises_first_error(self):
        provider = Mock()
        provider.default_database = "a"
        failing, healthy = Mock(), Mock()
        failing.name, healthy.name = "a", "b"
        failing.close.side_effect = DatabaseError("close failed")
        provider.connect.side_effect = [failing, healthy]
        registry = ConnectionRegistry(provider)
        registry.get_all(["a", "b"])

        with pytest.raises(DatabaseError, match="close failed"):
            registry.close_all()

        healthy.close.assert_called_once_with()

    def test_allowed_names(self, connection_manager):
        registry = ConnectionRegistry(connection_manager, allowed_names=["main"])

        with pytest.raises(DatabaseError, match="not available"):
            registry.get("other")


class TestConnectionManager:
    """Test the shared connection provider."""

    def test_unknown_database(self, connection_manager):
        with pytest.raises(DatabaseError, match="not found in configuration"):
            connection_manager.get_adapter("missing")

    def test_test_connection_and_status(self, connection_manager):
        result = connection_manager.test_connection()

        assert result["status"] == "success"
        assert result["database"] == "main"
        status = connection_manager.get_connection_status()
        assert status["connections"]["main"] == {"active": True, "type": "sqlite"}

    def test_global_manager_follows_configuration(self, sqlite_config: SQLFixtureConfig, tmp_path: Path):
        try:
            manager = get_connection_manager(sqlite_config)
            assert get_connection_manager() is manager

            other = SQLFixtureConfig(
                databases={"other": DatabaseConfig(type=DatabaseType.SQLITE, path=str(tmp_path / "o.db"))}
            )
            assert get_connection_manager(other).config is other
        finally:
            set_connection_manager(None)


def test_split_statements():
    assert split_statements("SELECT 1;\n ;SELECT 2;") == ["SELECT 1", "SELECT 2"]
