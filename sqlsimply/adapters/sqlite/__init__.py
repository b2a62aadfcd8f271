"""SQLite adapter for SQLSimply."""

from sqlsimply.adapters.sqlite.config import SqliteConfig, SqliteConnectionParams, parse_connection_string
from sqlsimply.adapters.sqlite.database import SqliteDatabase
from sqlsimply.adapters.sqlite.driver import SqliteCommand, SqliteConnection, SqliteDataReader

__all__ = (
    "SqliteCommand",
    "SqliteConfig",
    "SqliteConnection",
    "SqliteConnectionParams",
    "SqliteDataReader",
    "SqliteDatabase",
    "parse_connection_string",
)
