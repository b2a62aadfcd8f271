"""SQLSimply: stage SQL statements and parameters, execute them on SQLite, and read typed column values."""

from sqlsimply import adapters, builder, exceptions, protocols, type_conversion, typing, utils
from sqlsimply.__metadata__ import __version__
from sqlsimply.adapters.sqlite import (
    SqliteCommand,
    SqliteConfig,
    SqliteConnection,
    SqliteConnectionParams,
    SqliteDatabase,
    SqliteDataReader,
    parse_connection_string,
)
from sqlsimply.builder import Parameter, StatementBuilder
from sqlsimply.exceptions import (
    ConversionError,
    DriverError,
    ImproperConfigurationError,
    MissingIdentifierError,
    NullValueError,
    SQLBuilderError,
    SQLSimplyError,
)
from sqlsimply.typing import DatabaseValue, StorageClass

__all__ = (
    "ConversionError",
    "DatabaseValue",
    "DriverError",
    "ImproperConfigurationError",
    "MissingIdentifierError",
    "NullValueError",
    "Parameter",
    "SQLBuilderError",
    "SQLSimplyError",
    "SqliteCommand",
    "SqliteConfig",
    "SqliteConnection",
    "SqliteConnectionParams",
    "SqliteDataReader",
    "SqliteDatabase",
    "StatementBuilder",
    "StorageClass",
    "__version__",
    "adapters",
    "builder",
    "exceptions",
    "parse_connection_string",
    "protocols",
    "type_conversion",
    "typing",
    "utils",
)
