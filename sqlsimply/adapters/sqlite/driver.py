"""sqlite3-backed connection, command and reader handles."""

import contextlib
import logging
import sqlite3
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional, Union
from uuid import UUID

from sqlsimply.exceptions import SQLBuilderError
from sqlsimply.utils.logging import get_logger, log_with_context

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

    from sqlsimply.protocols import ParameterProtocol
    from sqlsimply.typing import DatabaseValue, ParameterValue

__all__ = (
    "SqliteCommand",
    "SqliteConnection",
    "SqliteDataReader",
    "coerce_parameter_value",
    "normalize_parameter_name",
    "split_statements",
)

logger = get_logger("adapters.sqlite.driver")

PARAMETER_PREFIXES = ("@", ":", "$")


def normalize_parameter_name(name: str) -> str:
    """Strip the placeholder prefix from a parameter name.

    sqlite3 binds ``@a``, ``:a`` and ``$a`` placeholders from the mapping key ``a``.

    Args:
        name: Parameter name, with or without its prefix.

    Returns:
        The name without its prefix.
    """
    if name[:1] in PARAMETER_PREFIXES:
        return name[1:]
    return name


def coerce_parameter_value(value: "ParameterValue") -> Any:
    """Convert a Python value into something sqlite3 binds natively.

    Args:
        value: Value passed to ``add_parameter``.

    Returns:
        ``None``, ``int``, ``float``, ``str`` or ``bytes`` for known types, otherwise ``value`` unchanged.
    """
    if value is None or isinstance(value, (str, float, bytes)):
        return value
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, Enum):
        return coerce_parameter_value(value.value)
    if isinstance(value, int):
        return value
    if isinstance(value, datetime):
        return value.isoformat(sep=" ")
    if isinstance(value, (date, time)):
        return value.isoformat()
    if isinstance(value, (Decimal, UUID)):
        return str(value)
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    return value


def split_statements(text: str) -> list[str]:
    """Split SQL text into complete statements.

    Semicolons inside string literals, comments and trigger bodies do not end a
    statement; :func:`sqlite3.complete_statement` decides where each one stops.
    Trailing text without a terminating semicolon is kept as the last statement.

    Args:
        text: One or more SQL statements.

    Returns:
        The non-empty statements, in order.
    """
    statements: list[str] = []
    buffer = ""
    for piece in text.split(";"):
        buffer += piece + ";"
        if sqlite3.complete_statement(buffer):
            if buffer.strip(" \t\r\n;"):
                statements.append(buffer.strip())
            buffer = ""
    remainder = buffer[:-1].strip()
    if remainder:
        statements.append(remainder)
    return statements


class SqliteDataReader:
    """Forward-only reader over the rows of one query.

    Call :meth:`read` to move to the next row, then fetch columns by ordinal
    or (case-insensitive) name. Iterating the reader yields each remaining row
    as a ``dict``. The reader borrows its connection and is unusable once the
    connection is closed.
    """

    __slots__ = ("_closed", "_column_names", "_cursor", "_ordinals", "_row")

    def __init__(self, cursor: sqlite3.Cursor) -> None:
        self._cursor = cursor
        self._column_names: list[str] = [column[0] for column in cursor.description or ()]
        self._ordinals: dict[str, int] = {}
        for ordinal, name in enumerate(self._column_names):
            self._ordinals.setdefault(name.lower(), ordinal)
        self._row: Optional[tuple[Any, ...]] = None
        self._closed = False

    def __enter__(self) -> "SqliteDataReader":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def __iter__(self) -> "Iterator[dict[str, DatabaseValue]]":
        while self.read():
            yield dict(zip(self._column_names, self._current_row()))

    def __getitem__(self, key: Union[int, str]) -> "DatabaseValue":
        return self.get_column(key)

    @property
    def column_names(self) -> list[str]:
        return list(self._column_names)

    @property
    def field_count(self) -> int:
        return len(self._column_names)

    @property
    def is_closed(self) -> bool:
        return self._closed

    def read(self) -> bool:
        """Advance to the next row.

        Raises:
            SQLBuilderError: If the reader has been closed.

        Returns:
            True if a row is available, False once the rows are exhausted.
        """
        if self._closed:
            msg = "Cannot read from a closed reader."
            raise SQLBuilderError(msg)
        self._row = self._cursor.fetchone()
        return self._row is not None

    def advance(self) -> bool:
        return self.read()

    def get_ordinal(self, name: str) -> int:
        try:
            return self._ordinals[name.lower()]
        except KeyError:
            msg = f"No column named {name!r}; available columns: {', '.join(self._column_names)}"
            raise KeyError(msg) from None

    def get_name(self, ordinal: int) -> str:
        return self._column_names[ordinal]

    def get_column(self, key: Union[int, str]) -> "DatabaseValue":
        """Get a column of the current row.

        Args:
            key: Zero-based ordinal or column name.

        Returns:
            The raw stored value.
        """
        row = self._current_row()
        ordinal = self.get_ordinal(key) if isinstance(key, str) else key
        return row[ordinal]  # type: ignore[no-any-return]

    def get_values(self) -> "tuple[DatabaseValue, ...]":
        return tuple(self._current_row())

    def is_db_null(self, key: Union[int, str]) -> bool:
        return self.get_column(key) is None

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._row = None
        with contextlib.suppress(sqlite3.ProgrammingError):
            self._cursor.close()

    def _current_row(self) -> "tuple[Any, ...]":
        if self._row is None:
            msg = "No current row. Call read() and check that it returned True."
            raise SQLBuilderError(msg)
        return self._row


class SqliteCommand:
    """A SQL statement and its parameters, executed against one connection."""

    def __init__(
        self,
        connection: "SqliteConnection",
        text: str = "",
        parameters: "Optional[list[ParameterProtocol]]" = None,
    ) -> None:
        self.connection = connection
        self.text = text
        self._parameters: list[ParameterProtocol] = list(parameters or ())

    @property
    def parameters(self) -> "list[ParameterProtocol]":
        return self._parameters

    def execute_reader(self) -> SqliteDataReader:
        """Execute the command as a row-producing query.

        Returns:
            A reader over the result rows.
        """
        cursor = self._execute()
        return SqliteDataReader(cursor)

    def execute_non_query(self) -> int:
        """Execute the command, discarding any rows.

        Text holding several statements, such as a schema script, runs them one
        after another with the same bindings. Each statement commits on its own,
        so a failure leaves the earlier ones applied.

        Returns:
            Total rows changed, or -1 when no statement changes rows by definition.
        """
        statements = split_statements(self.text)
        if len(statements) <= 1:
            return self._execute_counting(self.text)

        log_with_context(
            logger,
            logging.DEBUG,
            "Running statement script",
            database=self.connection.database,
            statement_count=len(statements),
        )
        changed = -1
        for statement in statements:
            rowcount = self._execute_counting(statement)
            if rowcount >= 0:
                changed = max(changed, 0) + rowcount
        return changed

    def execute_scalar(self) -> "DatabaseValue":
        """Execute the command and return the first column of the first row.

        Returns:
            The value, or None when the statement yields no rows.
        """
        cursor = self._execute()
        try:
            row = cursor.fetchone()
        finally:
            cursor.close()
        if row is None:
            return None
        return row[0]  # type: ignore[no-any-return]

    def _bindings(self) -> "dict[str, Any]":
        # Duplicate names collapse to the last binding.
        return {
            normalize_parameter_name(parameter.name): coerce_parameter_value(parameter.value)
            for parameter in self._parameters
        }

    def _execute_counting(self, text: str) -> int:
        cursor = self._execute(text)
        try:
            return cursor.rowcount
        finally:
            cursor.close()

    def _execute(self, text: "Optional[str]" = None) -> sqlite3.Cursor:
        native = self.connection.native_connection
        cursor = native.cursor()
        try:
            cursor.execute(self.text if text is None else text, self._bindings())
        except Exception:
            cursor.close()
            raise
        return cursor


class SqliteConnection:
    """Connection handle around :func:`sqlite3.connect`.

    Created unopened. :meth:`open` is idempotent; leaving a ``with`` block closes the handle.
    """

    def __init__(self, connection_config: "Mapping[str, Any]") -> None:
        params = dict(connection_config)
        self.foreign_keys: Optional[bool] = params.pop("foreign_keys", None)
        self.connection_parameters = params
        self._connection: Optional[sqlite3.Connection] = None

    def __enter__(self) -> "SqliteConnection":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "open" if self.is_open else "closed"
        return f"{self.__class__.__name__}(database={self.database!r}, {state})"

    @property
    def database(self) -> str:
        return str(self.connection_parameters.get("database", ""))

    @property
    def is_open(self) -> bool:
        return self._connection is not None

    @property
    def native_connection(self) -> sqlite3.Connection:
        """The underlying :class:`sqlite3.Connection`.

        Raises:
            SQLBuilderError: If the connection has not been opened.
        """
        if self._connection is None:
            msg = "Connection must be opened before executing a command."
            raise SQLBuilderError(msg)
        return self._connection

    def open(self) -> None:
        if self._connection is not None:
            return
        log_with_context(
            logger, logging.DEBUG, "Opening SQLite connection", database=self.database, foreign_keys=self.foreign_keys
        )
        connection = sqlite3.connect(**self.connection_parameters)
        if self.foreign_keys is not None:
            try:
                connection.execute(f"PRAGMA foreign_keys = {'ON' if self.foreign_keys else 'OFF'}")
            except Exception:
                connection.close()
                raise
        self._connection = connection

    def close(self) -> None:
        if self._connection is None:
            return
        connection, self._connection = self._connection, None
        connection.close()
        log_with_context(logger, logging.DEBUG, "Closed SQLite connection", database=self.database)

    def create_command(
        self, text: str = "", parameters: "Optional[list[ParameterProtocol]]" = None
    ) -> SqliteCommand:
        return SqliteCommand(self, text, parameters)
