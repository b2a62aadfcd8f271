"""Value types shared by the builder, the driver adapter and the converters."""

from enum import Enum
from typing import Union

from typing_extensions import TypeAlias

from sqlsimply.exceptions import ConversionError

__all__ = ("DatabaseValue", "ParameterValue", "StorageClass", "storage_class_of")

DatabaseValue: TypeAlias = Union[None, int, float, str, bytes]
"""A single column value as materialized by SQLite.

One member per SQLite storage class: NULL, INTEGER, REAL, TEXT and BLOB.
"""

ParameterValue: TypeAlias = object
"""Any value accepted by :meth:`StatementBuilder.add_parameter`.

Values outside :data:`DatabaseValue` are coerced by the driver before binding.
"""


class StorageClass(Enum):
    """SQLite storage classes."""

    NULL = "null"
    INTEGER = "integer"
    REAL = "real"
    TEXT = "text"
    BLOB = "blob"

    def __str__(self) -> str:
        return self.value


def storage_class_of(value: DatabaseValue) -> StorageClass:
    """Classify a materialized value by its SQLite storage class.

    Args:
        value: Value read from a row.

    Raises:
        ConversionError: If ``value`` is not one of the five storage classes.

    Returns:
        The storage class of ``value``.
    """
    if value is None:
        return StorageClass.NULL
    if isinstance(value, int):
        return StorageClass.INTEGER
    if isinstance(value, float):
        return StorageClass.REAL
    if isinstance(value, str):
        return StorageClass.TEXT
    if isinstance(value, (bytes, bytearray, memoryview)):
        return StorageClass.BLOB
    raise ConversionError(value, "a SQLite storage class")
