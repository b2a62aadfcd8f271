import sqlite3
from typing import Any, Optional

from typing_extensions import TypeAlias

__all__ = (
    "ConversionError",
    "DriverError",
    "ImproperConfigurationError",
    "MissingIdentifierError",
    "NullValueError",
    "SQLBuilderError",
    "SQLSimplyError",
)

DriverError: TypeAlias = sqlite3.Error
"""Errors raised by the underlying driver.

These are never wrapped: malformed SQL, constraint violations and I/O
failures reach the caller as the driver raised them.
"""


class SQLSimplyError(Exception):
    """Base exception class from which all SQLSimply exceptions inherit."""

    detail: str

    def __init__(self, *args: Any, detail: str = "") -> None:
        """Initialize ``SQLSimplyError``.

        Args:
            *args: args are converted to :class:`str` before passing to :class:`Exception`
            detail: detail of the exception.
        """
        str_args = [str(arg) for arg in args if arg]
        if not detail:
            if str_args:
                detail, *str_args = str_args
            elif hasattr(self, "detail"):
                detail = self.detail
        self.detail = detail
        super().__init__(*str_args)

    def __repr__(self) -> str:
        if self.detail:
            return f"{self.__class__.__name__} - {self.detail}"
        return self.__class__.__name__

    def __str__(self) -> str:
        return " ".join((*self.args, self.detail)).strip()


class SQLBuilderError(SQLSimplyError):
    """Issues building or executing a staged SQL statement."""

    def __init__(self, message: Optional[str] = None) -> None:
        if message is None:
            message = "Issues building SQL statement."
        super().__init__(message)


class ImproperConfigurationError(SQLSimplyError):
    """Improper Configuration error.

    Raised when a connection string or connection configuration cannot be understood.
    """


class ConversionError(SQLSimplyError, ValueError):
    """A stored database value could not be interpreted as the requested type."""

    value: Any
    target: str

    def __init__(self, value: Any, target: str, message: Optional[str] = None) -> None:
        if message is None:
            message = f"Value {value!r} is not convertible to {target}."
        super().__init__(message)
        self.value = value
        self.target = target


class NullValueError(SQLSimplyError, ValueError):
    """A non-null accessor received a null database value."""

    target: str

    def __init__(self, target: str, message: Optional[str] = None) -> None:
        if message is None:
            message = f"{target} value is null in database. Expecting to return a non-null type."
        super().__init__(message)
        self.target = target


class MissingIdentifierError(NullValueError):
    """An identifier column, which the schema guarantees to be non-null, was null."""

    def __init__(self, target: str) -> None:
        super().__init__(
            target,
            f"Database ID column is null! This is a non-nullable {target} ID column "
            "and something serious may be wrong.",
        )
