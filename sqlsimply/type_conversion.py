"""Convert raw column values into native Python scalars.

Every accessor takes one value exactly as the driver materialized it (one of
the SQLite storage classes, see :data:`sqlsimply.typing.DatabaseValue`) and
converts it to a single target type. Already-typed Python values such as
:class:`~decimal.Decimal` or :class:`~datetime.datetime` are accepted too.

Null handling differs per target and is part of the contract:

=====================  ==========================  =================================
Accessor               NULL                        Unconvertible value
=====================  ==========================  =================================
``get_<numeric>``      ``None``                    :class:`ConversionError`
``get_<numeric>_non_null``  :class:`NullValueError`  :class:`ConversionError`
``get_string``         ``""``                      :class:`ConversionError` (bad UTF-8)
``get_boolean``        :class:`NullValueError`     :class:`ConversionError`
``get_datetime``       ``None``                    ``None``
``get_datetime_non_null``   :class:`NullValueError`  :class:`ConversionError`
``get_guid``           ``EMPTY_GUID``              ``EMPTY_GUID``
``get_id_int/long``    :class:`MissingIdentifierError`  :class:`ConversionError`
=====================  ==========================  =================================
"""

import math
import struct
from datetime import date, datetime, timedelta, timezone
from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation
from typing import Any, Final, Optional
from uuid import UUID

from sqlsimply.exceptions import ConversionError, MissingIdentifierError, NullValueError
from sqlsimply.typing import StorageClass, storage_class_of

__all__ = (
    "EMPTY_GUID",
    "SQL_DATETIME_FORMAT",
    "format_datetime_for_sql",
    "format_optional_datetime_for_sql",
    "get_boolean",
    "get_bytes",
    "get_datetime",
    "get_datetime_non_null",
    "get_decimal",
    "get_decimal_non_null",
    "get_double",
    "get_double_non_null",
    "get_float",
    "get_float_non_null",
    "get_guid",
    "get_id_int",
    "get_id_long",
    "get_integer",
    "get_integer_non_null",
    "get_long",
    "get_long_non_null",
    "get_string",
)

SQL_DATETIME_FORMAT: Final = "%Y-%m-%d %H:%M:%S"
EMPTY_GUID: Final = UUID(int=0)

INT32_MIN: Final = -(2**31)
INT32_MAX: Final = 2**31 - 1
INT64_MIN: Final = -(2**63)
INT64_MAX: Final = 2**63 - 1

_INT32 = "32-bit integer"
_INT64 = "64-bit integer"
_FLOAT32 = "32-bit float"
_FLOAT64 = "64-bit float"
_DECIMAL = "decimal"
_BOOLEAN = "boolean"
_DATETIME = "datetime"
_STRING = "string"
_BYTES = "bytes"

_UNIX_EPOCH: Final = datetime(1970, 1, 1)
_TRUE_TEXT: Final = "true"
_FALSE_TEXT: Final = "false"


def _parse_integer_text(value: str, target: str) -> int:
    text = value.strip()
    if "_" in text:
        raise ConversionError(value, target)
    try:
        return int(text)
    except ValueError as e:
        raise ConversionError(value, target) from e


def _to_integer(value: Any, target: str, low: int, high: int) -> int:
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise ConversionError(value, target)
        result = int(value.to_integral_value(rounding=ROUND_HALF_EVEN))
    else:
        storage = storage_class_of(value)
        if storage is StorageClass.INTEGER:
            result = int(value)
        elif storage is StorageClass.REAL:
            if not math.isfinite(value):
                raise ConversionError(value, target)
            result = round(value)
        elif storage is StorageClass.TEXT:
            result = _parse_integer_text(value, target)
        else:
            raise ConversionError(value, target)

    if not low <= result <= high:
        raise ConversionError(value, target, f"Value {value!r} is outside the range of a {target}.")
    return result


def _to_double(value: Any) -> float:
    if isinstance(value, Decimal):
        return float(value)
    storage = storage_class_of(value)
    if storage is StorageClass.REAL:
        return float(value)
    if storage is StorageClass.INTEGER:
        return float(value)
    if storage is StorageClass.TEXT:
        try:
            return float(value.strip())
        except ValueError as e:
            raise ConversionError(value, _FLOAT64) from e
    raise ConversionError(value, _FLOAT64)


def _to_float(value: Any) -> float:
    try:
        double = _to_double(value)
    except ConversionError as e:
        raise ConversionError(value, _FLOAT32) from e
    msg = f"Value {value!r} is outside the range of a {_FLOAT32}."
    try:
        result: float = struct.unpack("f", struct.pack("f", double))[0]
    except OverflowError as e:
        raise ConversionError(value, _FLOAT32, msg) from e
    # Newer interpreters pack out-of-range doubles as inf instead of raising.
    if math.isinf(result) and math.isfinite(double):
        raise ConversionError(value, _FLOAT32, msg)
    return result


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        result = value
    else:
        storage = storage_class_of(value)
        if storage is StorageClass.INTEGER:
            result = Decimal(int(value))
        elif storage is StorageClass.REAL:
            result = Decimal(repr(value))
        elif storage is StorageClass.TEXT:
            try:
                result = Decimal(value.strip())
            except InvalidOperation as e:
                raise ConversionError(value, _DECIMAL) from e
        else:
            raise ConversionError(value, _DECIMAL)

    if not result.is_finite():
        raise ConversionError(value, _DECIMAL)
    return result


def _parse_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, datetime.min.time())
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return _UNIX_EPOCH + timedelta(seconds=value)
        except (OverflowError, ValueError):
            return None
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    return None


def get_integer(value: Any) -> Optional[int]:
    """Get a 32-bit integer from a database value.

    Args:
        value: Raw column value.

    Raises:
        ConversionError: If the value is not an integer or is out of range.

    Returns:
        Integer value, or None for NULL.
    """
    if value is None:
        return None
    return _to_integer(value, _INT32, INT32_MIN, INT32_MAX)


def get_integer_non_null(value: Any) -> int:
    """Get a non-null 32-bit integer from a database value.

    Raises:
        NullValueError: If the value is NULL.
        ConversionError: If the value is not an integer or is out of range.
    """
    if value is None:
        raise NullValueError(_INT32)
    return _to_integer(value, _INT32, INT32_MIN, INT32_MAX)


def get_long(value: Any) -> Optional[int]:
    """Get a 64-bit integer from a database value, or None for NULL."""
    if value is None:
        return None
    return _to_integer(value, _INT64, INT64_MIN, INT64_MAX)


def get_long_non_null(value: Any) -> int:
    """Get a non-null 64-bit integer from a database value."""
    if value is None:
        raise NullValueError(_INT64)
    return _to_integer(value, _INT64, INT64_MIN, INT64_MAX)


def get_float(value: Any) -> Optional[float]:
    """Get a single-precision float from a database value.

    The result is rounded to the nearest IEEE-754 single-precision value.
    """
    if value is None:
        return None
    return _to_float(value)


def get_float_non_null(value: Any) -> float:
    if value is None:
        raise NullValueError(_FLOAT32)
    return _to_float(value)


def get_double(value: Any) -> Optional[float]:
    """Get a double from a database value, or None for NULL.

    Text is parsed, so a stored ``"3.14"`` yields ``3.14``.
    """
    if value is None:
        return None
    return _to_double(value)


def get_double_non_null(value: Any) -> float:
    if value is None:
        raise NullValueError(_FLOAT64)
    return _to_double(value)


def get_decimal(value: Any) -> Optional[Decimal]:
    """Get a decimal from a database value, or None for NULL.

    REAL values go through their shortest ``repr`` so ``0.1`` becomes ``Decimal("0.1")``.
    """
    if value is None:
        return None
    return _to_decimal(value)


def get_decimal_non_null(value: Any) -> Decimal:
    if value is None:
        raise NullValueError(_DECIMAL)
    return _to_decimal(value)


def get_string(value: Any) -> str:
    """Get a string from a database value.

    NULL becomes the empty string. BLOBs are decoded as UTF-8.

    Raises:
        ConversionError: If a BLOB is not valid UTF-8.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        try:
            return bytes(value).decode("utf-8")
        except UnicodeDecodeError as e:
            raise ConversionError(value, _STRING) from e
    return str(value)


def get_boolean(value: Any) -> bool:
    """Get a bool from a database value.

    Numbers are true when non-zero. Text must be ``true``/``false`` (any case)
    or an integer literal.

    Raises:
        NullValueError: If the value is NULL; there is no nullable variant.
        ConversionError: If the value cannot be read as a bool.
    """
    if value is None:
        raise NullValueError(_BOOLEAN, "Database boolean value is null. This should not happen.")
    if isinstance(value, Decimal):
        return value != 0
    storage = storage_class_of(value)
    if storage is StorageClass.INTEGER or storage is StorageClass.REAL:
        return value != 0
    if storage is StorageClass.TEXT:
        text = value.strip().lower()
        if text == _TRUE_TEXT:
            return True
        if text == _FALSE_TEXT:
            return False
        return _parse_integer_text(value, _BOOLEAN) != 0
    raise ConversionError(value, _BOOLEAN)


def get_datetime(value: Any) -> Optional[datetime]:
    """Get a datetime from a database value.

    Text is parsed with :meth:`datetime.fromisoformat`, which covers the
    ``yyyy-MM-dd HH:mm:ss`` form written by :func:`format_datetime_for_sql`.
    Numbers are read as Unix epoch seconds and yield a naive UTC datetime.

    Returns:
        The datetime, or None if the value is NULL or cannot be parsed.
    """
    if value is None:
        return None
    return _parse_datetime(value)


def get_datetime_non_null(value: Any) -> datetime:
    """Get a non-null datetime from a database value.

    Raises:
        NullValueError: If the value is NULL.
        ConversionError: If the value cannot be parsed.
    """
    if value is None:
        raise NullValueError(_DATETIME)
    result = _parse_datetime(value)
    if result is None:
        raise ConversionError(value, _DATETIME, f"Value {value!r} was not parseable into a datetime.")
    return result


def get_guid(value: Any) -> UUID:
    """Get a UUID from a database value.

    Never fails: NULL and unparseable values both yield :data:`EMPTY_GUID`.
    """
    if isinstance(value, UUID):
        return value
    if isinstance(value, str):
        try:
            return UUID(value.strip())
        except ValueError:
            return EMPTY_GUID
    return EMPTY_GUID


def get_bytes(value: Any) -> Optional[bytes]:
    """Get the raw bytes of a BLOB column, or None for NULL.

    Text is encoded as UTF-8.
    """
    if value is None:
        return None
    storage = storage_class_of(value)
    if storage is StorageClass.BLOB:
        return bytes(value)
    if storage is StorageClass.TEXT:
        return value.encode("utf-8")  # type: ignore[no-any-return]
    raise ConversionError(value, _BYTES)


def get_id_int(value: Any) -> int:
    """Get a non-null 32-bit identifier.

    ID columns are expected to always have a value.

    Raises:
        MissingIdentifierError: If the value is NULL.
        ConversionError: If the value is not an integer or is out of range.
    """
    try:
        return get_integer_non_null(value)
    except NullValueError as e:
        raise MissingIdentifierError(_INT32) from e


def get_id_long(value: Any) -> int:
    """Get a non-null 64-bit identifier.

    Raises:
        MissingIdentifierError: If the value is NULL.
        ConversionError: If the value is not an integer or is out of range.
    """
    try:
        return get_long_non_null(value)
    except NullValueError as e:
        raise MissingIdentifierError(_INT64) from e


def format_datetime_for_sql(value: datetime, format_string: str = "") -> str:
    """Render a datetime as text for SQLite, which has no native temporal type.

    The rendered form carries no offset: an aware datetime is converted to UTC
    first, so reading it back with :func:`get_datetime` yields the naive UTC
    equivalent.

    Args:
        value: Datetime to render.
        format_string: Optional :meth:`~datetime.datetime.strftime` format.

    Returns:
        ``value`` as ``yyyy-MM-dd HH:mm:ss``, or in ``format_string`` when one is given.
    """
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    if format_string:
        return value.strftime(format_string)
    return value.strftime(SQL_DATETIME_FORMAT)


def format_optional_datetime_for_sql(value: Optional[datetime], format_string: str = "") -> Optional[str]:
    """Like :func:`format_datetime_for_sql`, passing None through for NULL bindings."""
    if value is None:
        return None
    return format_datetime_for_sql(value, format_string)
