"""BackupService tests: snapshot completeness and failure handling."""
import os
from datetime import datetime

import pytest

from lifecycle.backup import BackupService, load_backup


def _add_items(db):
    db.execute_raw_sql(
        "INSERT INTO widgets_items (name, description, color) "
        "VALUES ('gear', 'Small gear', 'red')"
    )
    db.execute_raw_sql(
        "INSERT INTO widgets_item_tags (item_id, tag) VALUES (1, 'metal')"
    )


class TestSnapshot:
    """Test BackupService.snapshot()."""

    def test_keys(self, installed_widgets, components_dir):
        data = BackupService(installed_widgets, "widgets",
                             components_dir).snapshot()
        assert set(data) == {
            "parameters", "config", "widgets_items", "widgets_item_tags"
        }

    def test_contains_every_row(self, installed_widgets, components_dir):
        db = installed_widgets
        db.set_parameter("widgets", "Display", "color", "blue")
        _add_items(db)

        data = BackupService(db, "widgets", components_dir).snapshot()
        assert len(data["parameters"]) == 1
        assert data["parameters"][0]["parameter_name"] == "color"
        assert data["parameters"][0]["value"] == "blue"
        assert {row["config_key"] for row in data["config"]} == {
            "version", "installed_at"
        }
        assert data["widgets_items"][0]["name"] == "gear"
        assert data["widgets_items"][0]["color"] == "red"
        assert data["widgets_item_tags"][0]["tag"] == "metal"

    def test_not_installed_is_empty(self, temp_db, components_dir):
        data = BackupService(temp_db, "widgets", components_dir).snapshot()
        assert data == {"parameters": [], "config": []}

    def test_other_components_excluded(self, installed_widgets, components_dir):
        installed_widgets.component_config("gadgets").create_core_tables()
        data = BackupService(installed_widgets, "widgets",
                             components_dir).snapshot()
        assert not any(key.startswith("gadgets") for key in data)


class TestCreateBackup:
    """Test BackupService.create_backup()."""

    def test_writes_json_file(self, installed_widgets, components_dir):
        installed_widgets.set_parameter("widgets", "Display", "color", "blue")
        result = BackupService(installed_widgets, "widgets",
                               components_dir).create_backup()

        assert result.success is True
        assert result.error is None
        assert os.path.dirname(result.backup_file) == os.path.join(
            components_dir, "widgets", "backups"
        )
        name = os.path.basename(result.backup_file)
        assert name.startswith("uninstall_backup_")
        assert name.endswith(".json")

        data = load_backup(result.backup_file)
        assert len(data["parameters"]) == 1
        datetime.strptime(data["backup_timestamp"], "%Y-%m-%d %H:%M:%S")

    def test_datetimes_serialized(self, installed_widgets, components_dir):
        installed_widgets.set_parameter("widgets", "Display", "color", "blue")
        result = BackupService(installed_widgets, "widgets",
                               components_dir).create_backup()
        row = load_backup(result.backup_file)["parameters"][0]
        assert isinstance(row["updated_at"], str)
        datetime.fromisoformat(row["updated_at"])

    def test_unicode_kept_readable(self, installed_widgets, components_dir):
        installed_widgets.set_parameter("widgets", "Display", "label", "小部件")
        result = BackupService(installed_widgets, "widgets",
                               components_dir).create_backup()
        with open(result.backup_file, encoding="utf-8") as f:
            assert "小部件" in f.read()

    def test_backups_never_overwrite(self, installed_widgets, components_dir):
        service = BackupService(installed_widgets, "widgets", components_dir)
        first = service.create_backup()
        second = service.create_backup()
        assert first.backup_file != second.backup_file
        assert os.path.exists(first.backup_file)
        assert os.path.exists(second.backup_file)

    def test_unwritable_directory(self, installed_widgets, temp_dir):
        blocker = os.path.join(temp_dir, "blocker")
        with open(blocker, "w") as f:
            f.write("not a directory")

        result = BackupService(installed_widgets, "widgets",
                               blocker).create_backup()
        assert result.success is False
        assert result.backup_file is None
        assert result.error


def _touch(directory, name):
    os.makedirs(directory, exist_ok=True)
    path = os.path.join(directory, name)
    with open(path, "w") as f:
        f.write("{}")
    return path


class TestListAndCleanup:
    """Test BackupService.list_backups() / cleanup()."""

    @pytest.fixture
    def service(self, installed_widgets, components_dir):
        return BackupService(installed_widgets, "widgets", components_dir)

    def test_no_backup_directory(self, service):
        assert service.list_backups() == []
        assert service.cleanup(keep=0) == []

    def test_newest_first(self, service):
        for name in ("uninstall_backup_2024-01-01_00-00-00.json",
                     "uninstall_backup_2024-03-01_00-00-00.json",
                     "uninstall_backup_2024-02-01_00-00-00_2.json",
                     "uninstall_backup_2024-02-01_00-00-00_10.json",
                     "notes.txt"):
            _touch(service.backup_dir, name)

        assert [os.path.basename(p) for p in service.list_backups()] == [
            "uninstall_backup_2024-03-01_00-00-00.json",
            "uninstall_backup_2024-02-01_00-00-00_10.json",
            "uninstall_backup_2024-02-01_00-00-00_2.json",
            "uninstall_backup_2024-01-01_00-00-00.json",
        ]

    def test_created_backups_listed(self, service):
        first = service.create_backup().backup_file
        second = service.create_backup().backup_file
        assert service.list_backups() == [second, first]

    def test_cleanup_keeps_newest(self, service):
        old = _touch(service.backup_dir,
                     "uninstall_backup_2024-01-01_00-00-00.json")
        new = _touch(service.backup_dir,
                     "uninstall_backup_2024-06-01_00-00-00.json")
        other = _touch(service.backup_dir, "notes.txt")

        assert service.cleanup(keep=1) == [old]
        assert service.list_backups() == [new]
        assert os.path.exists(other)

        assert service.cleanup(keep=5) == []
        assert service.cleanup(keep=0) == [new]
        assert service.list_backups() == []

    def test_negative_keep(self, service):
        with pytest.raises(ValueError):
            service.cleanup(keep=-1)


class TestNestedComponent:
    """A component named widgets_extra is not part of the widgets backup."""

    def test_snapshot_skips_nested_component(self, installed_widgets,
                                             components_dir):
        repo = installed_widgets.component_config("widgets_extra")
        repo.create_core_tables()
        repo.set_version("1.0.0")

        data = BackupService(installed_widgets, "widgets",
                             components_dir).snapshot()
        assert set(data) == {
            "parameters", "config", "widgets_items", "widgets_item_tags"
        }
