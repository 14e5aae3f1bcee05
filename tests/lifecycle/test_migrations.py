"""Migration runner tests.

Covers version comparison, ordered/once-only execution, stop-on-failure
and the idempotent column/index guards.
"""
import pytest
from sqlalchemy import text

from config.component_config import ComponentConfig
from database.types import MenuItem
from lifecycle.migrations import (
    Migration, add_column_if_missing, add_index_if_missing,
    column_exists, compare_versions, parse_version, run_migrations
)
from lifecycle.runner import MigrationRunner


def _create_notes(db):
    db.execute_raw_sql(
        "CREATE TABLE notes (id INTEGER PRIMARY KEY, body TEXT)"
    )


def _add_title(connection):
    add_column_if_missing(connection, "notes", "title", "VARCHAR(100) NULL")


def _add_priority(connection):
    add_column_if_missing(connection, "notes", "priority", "INTEGER NULL")


def _explode(connection):
    raise RuntimeError("boom")


class TestVersions:
    """Test parse_version / compare_versions."""

    def test_parse(self):
        assert parse_version("1.2.3") == (1, 2, 3)
        assert parse_version("1.2") == (1, 2, 0)
        assert parse_version("v2.0.1-beta") == (2, 0, 1)

    @pytest.mark.parametrize("a,b,expected", [
        ("1.0.0", "1.0.0", 0),
        ("1.10.0", "1.9.0", 1),
        ("1.0.0", "1.0.1", -1),
        ("1.0", "1.0.0", 0),
        ("0.0.0", "1.0.0", -1),
        ("2.0.0-beta", "2.0.0", 0),
    ])
    def test_compare(self, a, b, expected):
        assert compare_versions(a, b) == expected


class TestRunMigrations:
    """Test run_migrations()."""

    def test_applies_in_version_order(self, temp_db):
        _create_notes(temp_db)
        calls = []
        stored = []

        def record(version):
            return lambda connection: calls.append(version)

        report = run_migrations(
            temp_db.conn, "1.0.0",
            [Migration("1.10.0", record("1.10.0")),
             Migration("1.2.0", record("1.2.0")),
             Migration("1.0.0", record("1.0.0"))],
            stored.append,
        )
        assert calls == ["1.2.0", "1.10.0"]
        assert stored == ["1.2.0", "1.10.0"]
        assert report.applied == ["1.2.0", "1.10.0"]
        assert report.final_version == "1.10.0"
        assert report.success is True

    def test_nothing_pending(self, temp_db):
        report = run_migrations(
            temp_db.conn, "2.0.0", [Migration("1.1.0", _explode)],
            lambda v: None,
        )
        assert report.applied == []
        assert report.final_version == "2.0.0"
        assert report.success is True

    def test_stops_at_first_failure(self, temp_db):
        _create_notes(temp_db)
        stored = []
        report = run_migrations(
            temp_db.conn, "1.0.0",
            [Migration("1.1.0", _add_title),
             Migration("1.2.0", _explode),
             Migration("1.3.0", _add_priority)],
            stored.append,
        )
        assert report.success is False
        assert report.applied == ["1.1.0"]
        assert report.final_version == "1.1.0"
        assert stored == ["1.1.0"]
        assert report.errors == ["Migration 1.2.0 failed: boom"]

        columns = temp_db.conn.get_column_names("notes")
        assert "title" in columns
        assert "priority" not in columns

    def test_failed_migration_is_rolled_back(self, temp_db):
        _create_notes(temp_db)

        def insert_then_fail(connection):
            connection.execute(text("INSERT INTO notes (body) VALUES ('x')"))
            raise RuntimeError("late failure")

        report = run_migrations(temp_db.conn, "1.0.0",
                                [Migration("1.1.0", insert_then_fail)],
                                lambda v: None)
        assert report.success is False
        with temp_db.get_session() as session:
            assert session.execute(
                text("SELECT COUNT(*) FROM notes")
            ).scalar() == 0

    def test_version_store_failure_is_reported(self, temp_db):
        """A version that cannot be persisted stops the run with an error."""
        _create_notes(temp_db)

        def store(version):
            raise OSError("disk full")

        report = run_migrations(
            temp_db.conn, "1.0.0",
            [Migration("1.1.0", _add_title),
             Migration("1.2.0", _add_priority)],
            store,
        )
        assert report.success is False
        assert report.applied == []
        assert report.final_version == "1.0.0"
        assert report.errors == [
            "Migration 1.1.0 applied but the version could not be "
            "recorded: disk full"
        ]
        assert "priority" not in temp_db.conn.get_column_names("notes")


class TestSchemaGuards:
    """Column/index guards must make migrations safely re-runnable."""

    def test_add_column_twice(self, temp_db):
        _create_notes(temp_db)
        with temp_db.conn.begin() as connection:
            assert add_column_if_missing(
                connection, "notes", "title", "VARCHAR(100) NULL"
            ) is True
        with temp_db.conn.begin() as connection:
            assert add_column_if_missing(
                connection, "notes", "title", "VARCHAR(100) NULL"
            ) is False
            assert column_exists(connection, "notes", "title") is True

    def test_add_index_twice(self, temp_db):
        _create_notes(temp_db)
        with temp_db.conn.begin() as connection:
            assert add_index_if_missing(
                connection, "notes", "idx_notes_body", ["body"]
            ) is True
        with temp_db.conn.begin() as connection:
            assert add_index_if_missing(
                connection, "notes", "idx_notes_body", ["body"]
            ) is False
        assert "idx_notes_body" in temp_db.conn.get_index_names("notes")

    def test_rerun_same_migration_after_version_reset(self, temp_db):
        """Running a column migration again never raises duplicate column."""
        _create_notes(temp_db)
        for _ in range(2):
            report = run_migrations(temp_db.conn, "1.0.0",
                                    [Migration("1.1.0", _add_title)],
                                    lambda v: None)
            assert report.success is True


class NotesComponentConfig(ComponentConfig):
    name = "notes"
    version = "1.2.0"
    baseline_version = "1.0.0"

    def get_menu_section(self):
        return "Notes"

    def get_menu_items(self):
        return [MenuItem(title="Notes", page="list", path="index.php")]

    def get_default_parameters(self):
        return []

    def get_migrations(self):
        return [
            Migration("1.1.0", lambda c: add_column_if_missing(
                c, "notes_config", "scope", "VARCHAR(20) NULL")),
            Migration("1.2.0", lambda c: add_index_if_missing(
                c, "notes_config", "idx_notes_config_scope", ["scope"])),
        ]


class TestMigrationRunner:
    """Test MigrationRunner against a component's config table."""

    @pytest.fixture
    def runner(self, temp_db):
        component = NotesComponentConfig()
        config_repo = temp_db.component_config(component.name)
        config_repo.create_core_tables()
        config_repo.set_version(component.baseline_version)
        return MigrationRunner(temp_db, component)

    def test_current_version_before_install(self, temp_db):
        runner = MigrationRunner(temp_db, NotesComponentConfig())
        assert runner.current_version() == "0.0.0"

    def test_pending(self, runner):
        assert runner.current_version() == "1.0.0"
        assert runner.pending() == ["1.1.0", "1.2.0"]

    def test_run_persists_version(self, runner, temp_db):
        report = runner.run()
        assert report.applied == ["1.1.0", "1.2.0"]
        assert temp_db.component_config("notes").get_version() == "1.2.0"
        assert runner.pending() == []

    def test_second_run_applies_nothing(self, runner):
        runner.run()
        report = runner.run()
        assert report.applied == []
        assert report.final_version == "1.2.0"
        assert report.success is True
