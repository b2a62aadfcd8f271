"""Statement builder: stage SQL text and named parameters, then hand them to a driver connection."""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlsimply.exceptions import SQLBuilderError
from sqlsimply.type_conversion import get_long_non_null
from sqlsimply.typing import ParameterValue
from sqlsimply.utils.logging import get_logger, log_with_context

if TYPE_CHECKING:
    from sqlsimply.protocols import CommandProtocol, ConnectionProtocol, RowCursorProtocol

__all__ = ("LAST_INSERT_ROWID_SQL", "Parameter", "StatementBuilder")

logger = get_logger("builder")

LAST_INSERT_ROWID_SQL = "SELECT last_insert_rowid()"


@dataclass(frozen=True)
class Parameter:
    """A named parameter binding.

    ``value`` of ``None`` binds SQL NULL.
    """

    name: str
    value: ParameterValue = None


class StatementBuilder:
    """Accumulates SQL text and named parameters for one logical statement at a time.

    A builder is owned by a single caller and is not safe for concurrent
    mutation. Call :meth:`create_statement` (or :meth:`clear_all`) before
    building each new statement; otherwise appended text and parameters from
    the previous statement are carried along.

    The execution verbs open the connection they are given but never close it.
    Closing is the caller's job, on every exit path.
    """

    __slots__ = ("_parameters", "_sql")

    def __init__(self) -> None:
        self._sql: list[str] = []
        self._parameters: list[Parameter] = []

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(sql={self.sql!r}, parameters={len(self._parameters)})"

    @property
    def sql(self) -> str:
        """The SQL text staged so far."""
        return "".join(self._sql)

    @property
    def parameters(self) -> list[Parameter]:
        """The staged parameters, in the order they were added."""
        return self._parameters

    def create_statement(self, sql: str) -> None:
        """Start a new statement, discarding the current SQL text and parameters.

        Args:
            sql: SQL statement, usually a SELECT, INSERT or UPDATE with named placeholders.
        """
        self.clear_all()
        self._sql.append(sql)

    def append_statement(self, statement: str) -> None:
        """Append SQL code to the current statement, padded with a space on each side.

        Parameters are left untouched.

        Args:
            statement: SQL code to append.
        """
        self._sql.append(f" {statement} ")

    def add_parameter(self, name: str, value: ParameterValue = None) -> None:
        """Add a named parameter.

        Names are not checked against the SQL text and duplicates are kept;
        mismatches surface from the driver when the statement executes.

        Args:
            name: Placeholder name as written in the SQL, e.g. ``"@id"``.
            value: Value to bind; ``None`` binds SQL NULL.
        """
        self._parameters.append(Parameter(name=name, value=value))

    def clear_all(self) -> None:
        """Clear the current SQL text and parameter list."""
        self._sql.clear()
        self._parameters.clear()

    def query(self, connection: "ConnectionProtocol") -> "RowCursorProtocol":
        """Execute the staged statement as a query.

        The returned cursor borrows ``connection`` and must not be used after the
        connection is closed.

        Args:
            connection: Connection to execute on; opened here if it is not open yet.

        Returns:
            A forward-only cursor over the result rows.
        """
        command = self._prepare_command(connection, "query")
        return command.execute_reader()

    def insert(self, connection: "ConnectionProtocol") -> int:
        """Execute the staged INSERT and return the new row's identifier.

        The identifier comes from ``last_insert_rowid()``, which is scoped to the
        connection rather than the statement: an INSERT fired by a trigger, or
        another INSERT on the same connection between the two calls, makes the
        returned value refer to that other row.

        Args:
            connection: Connection to execute on; opened here if it is not open yet.

        Returns:
            The rowid most recently generated on ``connection``.
        """
        command = self._prepare_command(connection, "insert")
        command.execute_non_query()

        command.parameters.clear()
        command.text = LAST_INSERT_ROWID_SQL
        row_id = get_long_non_null(command.execute_scalar())
        log_with_context(logger, logging.DEBUG, "Inserted row", verb="insert", row_id=row_id)
        return row_id

    def execute(self, connection: "ConnectionProtocol") -> None:
        """Execute the staged statement, discarding any result.

        Used for UPDATE, DELETE, DDL and anything else whose result is not needed.

        Args:
            connection: Connection to execute on; opened here if it is not open yet.
        """
        command = self._prepare_command(connection, "execute")
        command.execute_non_query()

    def _prepare_command(self, connection: "ConnectionProtocol", verb: str) -> "CommandProtocol":
        sql = self.sql
        if not sql.strip():
            msg = f"No SQL statement to {verb}. Call create_statement() first."
            raise SQLBuilderError(msg)

        command = connection.create_command(sql, list(self._parameters))
        connection.open()
        log_with_context(
            logger, logging.DEBUG, f"Running {verb}", verb=verb, sql=sql, parameter_count=len(self._parameters)
        )
        return command
