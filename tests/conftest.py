"""Shared fixtures for database and lifecycle tests.

Every test gets its own temp-file SQLite database and its own components
directory, so config files and backups never leak between tests.
"""
import os
import shutil
import sys
import tempfile

import pytest
from loguru import logger
from sqlalchemy import text

from config.component_config import WidgetsComponentConfig
from database import DatabaseManager
from lifecycle.installer import ComponentInstaller


@pytest.fixture(autouse=True)
def reset_logging():
    """Restore the default loguru sink after CLI tests reconfigure it."""
    yield
    logger.remove()
    logger.add(sys.stderr)


@pytest.fixture
def temp_dir():
    """Yield a scratch directory that is removed after the test."""
    path = tempfile.mkdtemp(prefix="lifecycle-tests-")
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)


@pytest.fixture
def db_url(temp_dir):
    """SQLite URL of a fresh temp database file."""
    return f"sqlite:///{os.path.join(temp_dir, 'test.db')}"


@pytest.fixture
def temp_db(db_url):
    """Yield a DatabaseManager without the menu system installed."""
    manager = DatabaseManager(database_url=db_url)
    try:
        yield manager
    finally:
        manager.close()


@pytest.fixture
def menu_db(temp_db):
    """Yield a DatabaseManager with the menu system tables created."""
    temp_db.create_menu_tables()
    return temp_db


@pytest.fixture
def components_dir(temp_dir):
    """Directory holding per-component config files and backups."""
    path = os.path.join(temp_dir, "components")
    os.makedirs(path)
    return path


@pytest.fixture
def widgets():
    return WidgetsComponentConfig()


@pytest.fixture
def installed_widgets(menu_db, components_dir, widgets):
    """Install the widgets component and yield the DatabaseManager."""
    result = ComponentInstaller(
        menu_db, widgets, components_dir=components_dir
    ).install()
    assert result.success, result.errors
    return menu_db


def count_rows(db, table_name):
    """Helper: number of rows in a table."""
    with db.get_session() as session:
        return session.execute(
            text(f'SELECT COUNT(*) FROM "{table_name}"')
        ).scalar()
