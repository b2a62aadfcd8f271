"""Runtime-checkable protocols describing the driver capabilities the builder consumes.

The builder only ever talks to these shapes, so any driver (or a test double)
that provides them can stand in for the bundled sqlite3 adapter.
"""

from typing import TYPE_CHECKING, Any, Optional, Protocol, Union, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterator, MutableSequence

    from sqlsimply.typing import DatabaseValue

__all__ = ("CommandProtocol", "ConnectionProtocol", "ParameterProtocol", "RowCursorProtocol")


@runtime_checkable
class ParameterProtocol(Protocol):
    """A named parameter binding."""

    name: str
    value: Any


@runtime_checkable
class RowCursorProtocol(Protocol):
    """Forward-only, non-restartable cursor over result rows."""

    def advance(self) -> bool:
        """Move to the next row, returning False once the rows are exhausted."""
        ...

    def get_column(self, key: Union[int, str]) -> "DatabaseValue":
        """Get a column of the current row by ordinal or name."""
        ...

    def close(self) -> None: ...

    def __iter__(self) -> "Iterator[Any]": ...


@runtime_checkable
class CommandProtocol(Protocol):
    """A SQL command bound to one connection."""

    text: str

    @property
    def parameters(self) -> "MutableSequence[Any]":
        """Parameters bound when the command executes."""
        ...

    def execute_reader(self) -> RowCursorProtocol: ...

    def execute_non_query(self) -> int: ...

    def execute_scalar(self) -> "DatabaseValue": ...


@runtime_checkable
class ConnectionProtocol(Protocol):
    """A database connection handle."""

    def open(self) -> None:
        """Open the connection. Opening an already open connection is a no-op."""
        ...

    def close(self) -> None: ...

    def create_command(
        self, text: str = "", parameters: "Optional[list[ParameterProtocol]]" = None
    ) -> CommandProtocol: ...
