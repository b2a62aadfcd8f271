from __future__ import annotations

from collections.abc import Generator
from pathlib import Path

import pytest

from sqlsimply.adapters.sqlite import SqliteConfig, SqliteConnection, SqliteDatabase

here = Path(__file__).parent
root_path = here.parent

WIDGETS_DDL = """
CREATE TABLE widgets (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    price REAL,
    created_at TEXT
)
"""


@pytest.fixture
def sqlite_config() -> SqliteConfig:
    """In-memory SQLite configuration; every connection sees a fresh database."""
    return SqliteConfig(connection_config={"database": ":memory:"})


@pytest.fixture
def sqlite_connection(sqlite_config: SqliteConfig) -> Generator[SqliteConnection, None, None]:
    """An unopened connection that is closed after the test."""
    with sqlite_config.provide_connection() as connection:
        yield connection


@pytest.fixture
def widgets_database(tmp_path: Path) -> SqliteDatabase:
    """File-backed database with an empty ``widgets`` table."""
    database = SqliteDatabase(f"Data Source={tmp_path / 'widgets.db'}")
    database.create_statement(WIDGETS_DDL)
    with database.provide_connection() as connection:
        database.execute(connection)
    database.clear_all()
    return database
