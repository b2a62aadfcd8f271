"""Statement builder bound to a SQLite database."""

from typing import TYPE_CHECKING, Union

from sqlsimply.adapters.sqlite.config import SqliteConfig
from sqlsimply.builder import StatementBuilder

if TYPE_CHECKING:
    from contextlib import AbstractContextManager

    from sqlsimply.adapters.sqlite.driver import SqliteConnection

__all__ = ("SqliteDatabase",)


class SqliteDatabase(StatementBuilder):
    """Statement builder that also knows how to reach its database.

    Example::

        db = SqliteDatabase("Data Source=app.db")
        db.create_statement("INSERT INTO notes (body) VALUES (@body)")
        db.add_parameter("@body", "hello")
        with db.provide_connection() as connection:
            note_id = db.insert(connection)
    """

    __slots__ = ("config",)

    def __init__(self, connection: "Union[str, SqliteConfig]") -> None:
        """Initialize the database.

        Args:
            connection: Connection string or a prepared :class:`SqliteConfig`.
        """
        super().__init__()
        self.config = connection if isinstance(connection, SqliteConfig) else SqliteConfig(connection)

    def create_connection(self) -> "SqliteConnection":
        """Create an unopened connection. The caller must close it."""
        return self.config.create_connection()

    def provide_connection(self) -> "AbstractContextManager[SqliteConnection]":
        """Provide a connection that is closed however the block exits."""
        return self.config.provide_connection()
