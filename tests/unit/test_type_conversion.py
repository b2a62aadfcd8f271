"""Unit tests for sqlsimply.type_conversion.

Covers every accessor's conversion rules and its null policy, plus the
datetime formatting helpers.
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Callable
from uuid import UUID

import pytest

from sqlsimply import type_conversion as tc
from sqlsimply.exceptions import ConversionError, MissingIdentifierError, NullValueError

NON_NULL_ACCESSORS = [
    tc.get_integer_non_null,
    tc.get_long_non_null,
    tc.get_float_non_null,
    tc.get_double_non_null,
    tc.get_decimal_non_null,
    tc.get_boolean,
    tc.get_datetime_non_null,
]

NULLABLE_ACCESSORS = [
    tc.get_integer,
    tc.get_long,
    tc.get_float,
    tc.get_double,
    tc.get_decimal,
    tc.get_datetime,
    tc.get_bytes,
]


@pytest.mark.parametrize("accessor", NON_NULL_ACCESSORS, ids=lambda f: f.__name__)
def test_non_null_accessors_reject_null(accessor: "Callable[[Any], Any]") -> None:
    """Test every non-null accessor raises NullValueError for NULL."""
    with pytest.raises(NullValueError):
        accessor(None)


@pytest.mark.parametrize("accessor", NULLABLE_ACCESSORS, ids=lambda f: f.__name__)
def test_nullable_accessors_return_none_for_null(accessor: "Callable[[Any], Any]") -> None:
    """Test every nullable accessor maps NULL to None."""
    assert accessor(None) is None


def test_string_null_is_empty_string() -> None:
    """Test NULL becomes an empty string, not None."""
    assert tc.get_string(None) == ""


def test_guid_null_is_empty_guid() -> None:
    """Test NULL becomes the all-zero UUID."""
    assert tc.get_guid(None) == UUID(int=0)
    assert tc.get_guid(None) == tc.EMPTY_GUID


@pytest.mark.parametrize(
    "value,expected",
    [(5, 5), (-5, -5), (True, 1), ("42", 42), (" 42 ", 42), (2.5, 2), (3.5, 4), (-2.5, -2), (Decimal("7.5"), 8)],
)
def test_get_integer_conversions(value: Any, expected: int) -> None:
    """Test integer conversion from each storage class, rounding half to even."""
    assert tc.get_integer(value) == expected
    assert tc.get_integer_non_null(value) == expected


@pytest.mark.parametrize("value", ["abc", "1.5", "", "1_000", b"\x01", float("nan"), float("inf"), Decimal("NaN")])
def test_get_integer_rejects_unconvertible(value: Any) -> None:
    """Test non-integer values raise ConversionError."""
    with pytest.raises(ConversionError):
        tc.get_integer(value)


@pytest.mark.parametrize("value", [2**31, -(2**31) - 1, "2147483648"])
def test_get_integer_range_is_32_bit(value: Any) -> None:
    """Test values outside the 32-bit range are rejected."""
    with pytest.raises(ConversionError, match="outside the range"):
        tc.get_integer(value)


def test_get_integer_range_bounds() -> None:
    """Test the 32-bit bounds themselves are accepted."""
    assert tc.get_integer(2**31 - 1) == 2**31 - 1
    assert tc.get_integer(-(2**31)) == -(2**31)


def test_get_long_accepts_64_bit_range() -> None:
    """Test 64-bit values convert and anything wider is rejected."""
    assert tc.get_long(2**31) == 2**31
    assert tc.get_long_non_null(2**63 - 1) == 2**63 - 1
    assert tc.get_long("-9223372036854775808") == -(2**63)
    with pytest.raises(ConversionError):
        tc.get_long(2**63)


def test_get_double_parses_text() -> None:
    """Test a stored "3.14" text value converts to 3.14."""
    assert tc.get_double("3.14") == 3.14
    assert tc.get_double(3) == 3.0
    assert isinstance(tc.get_double(3), float)
    assert tc.get_double(Decimal("1.25")) == 1.25


def test_get_double_null_policy() -> None:
    """Test NULL is None for get_double and an error for get_double_non_null."""
    assert tc.get_double(None) is None
    with pytest.raises(NullValueError):
        tc.get_double_non_null(None)


@pytest.mark.parametrize("value", ["not a number", "", b"3.14"])
def test_get_double_rejects_unconvertible(value: Any) -> None:
    """Test non-numeric values raise ConversionError."""
    with pytest.raises(ConversionError):
        tc.get_double(value)


def test_get_float_rounds_to_single_precision() -> None:
    """Test floats are rounded through IEEE-754 single precision."""
    assert tc.get_float(0.5) == 0.5
    assert tc.get_float(0.1) != 0.1
    assert tc.get_float(0.1) == pytest.approx(0.1, rel=1e-7)
    assert tc.get_float_non_null("2.25") == 2.25


def test_get_float_rejects_overflow() -> None:
    """Test values beyond single precision range raise ConversionError."""
    with pytest.raises(ConversionError):
        tc.get_float(1e39)
    with pytest.raises(ConversionError):
        tc.get_float("x")


@pytest.mark.parametrize("value", [1e39, -1e39, "3.5e38"])
def test_get_float_out_of_range_message(value: Any) -> None:
    """Test finite doubles too large for single precision are reported as out of range."""
    with pytest.raises(ConversionError, match="outside the range"):
        tc.get_float_non_null(value)


def test_get_float_keeps_infinity() -> None:
    """Test an infinite double stays infinite instead of being reported as out of range."""
    assert tc.get_float(float("inf")) == float("inf")


@pytest.mark.parametrize(
    "value,expected",
    [(0.1, Decimal("0.1")), (10, Decimal(10)), ("12.340", Decimal("12.340")), (Decimal("1.5"), Decimal("1.5"))],
)
def test_get_decimal_conversions(value: Any, expected: Decimal) -> None:
    """Test decimal conversion keeps the shortest representation of REAL values."""
    assert tc.get_decimal(value) == expected
    assert tc.get_decimal_non_null(value) == expected


@pytest.mark.parametrize("value", ["abc", "NaN", "Infinity", float("inf"), b"1"])
def test_get_decimal_rejects_unconvertible(value: Any) -> None:
    """Test non-numeric and non-finite values raise ConversionError."""
    with pytest.raises(ConversionError):
        tc.get_decimal(value)


@pytest.mark.parametrize(
    "value,expected",
    [("hello", "hello"), (42, "42"), (1.5, "1.5"), (b"caf\xc3\xa9", "café"), (Decimal("2.50"), "2.50")],
)
def test_get_string_conversions(value: Any, expected: str) -> None:
    """Test values are rendered as text and BLOBs decoded as UTF-8."""
    assert tc.get_string(value) == expected


def test_get_string_rejects_invalid_utf8() -> None:
    """Test a BLOB that is not UTF-8 raises ConversionError."""
    with pytest.raises(ConversionError):
        tc.get_string(b"\xff\xfe")


@pytest.mark.parametrize(
    "value,expected",
    [(1, True), (0, False), (-3, True), (0.0, False), ("true", True), (" FALSE ", False), ("1", True), ("0", False)],
)
def test_get_boolean_conversions(value: Any, expected: bool) -> None:
    """Test boolean conversion from numbers and text."""
    assert tc.get_boolean(value) is expected


@pytest.mark.parametrize("value", ["yes", "", b"\x01"])
def test_get_boolean_rejects_unconvertible(value: Any) -> None:
    """Test unrecognized values raise ConversionError."""
    with pytest.raises(ConversionError):
        tc.get_boolean(value)


@pytest.mark.parametrize(
    "value,expected",
    [
        ("2024-03-05 14:30:15", datetime(2024, 3, 5, 14, 30, 15)),
        ("2024-03-05T14:30:15.250000", datetime(2024, 3, 5, 14, 30, 15, 250000)),
        ("2024-03-05", datetime(2024, 3, 5)),
        (0, datetime(1970, 1, 1)),
        (86400.5, datetime(1970, 1, 2, 0, 0, 0, 500000)),
        (date(2024, 3, 5), datetime(2024, 3, 5)),
    ],
)
def test_get_datetime_conversions(value: Any, expected: datetime) -> None:
    """Test datetime parsing of ISO text, epoch numbers and dates."""
    assert tc.get_datetime(value) == expected
    assert tc.get_datetime_non_null(value) == expected


@pytest.mark.parametrize("value", ["not a date", "2024-13-45", "", b"2024-03-05"])
def test_get_datetime_unparseable_is_none(value: Any) -> None:
    """Test the nullable accessor returns None, not an error, for unparseable values."""
    assert tc.get_datetime(value) is None


def test_get_datetime_non_null_unparseable_fails() -> None:
    """Test the non-null accessor distinguishes NULL from unparseable input."""
    with pytest.raises(NullValueError):
        tc.get_datetime_non_null(None)
    with pytest.raises(ConversionError, match="not parseable"):
        tc.get_datetime_non_null("not a date")


def test_get_guid_conversions() -> None:
    """Test UUID parsing never raises."""
    value = UUID("12345678-1234-5678-1234-567812345678")

    assert tc.get_guid(str(value)) == value
    assert tc.get_guid("{12345678-1234-5678-1234-567812345678}") == value
    assert tc.get_guid(value) is value
    assert tc.get_guid("garbage") == tc.EMPTY_GUID
    assert tc.get_guid(12345) == tc.EMPTY_GUID
    assert tc.get_guid(b"\x00" * 16) == tc.EMPTY_GUID


def test_get_bytes_conversions() -> None:
    """Test BLOBs are returned as bytes and text is UTF-8 encoded."""
    assert tc.get_bytes(b"\x00\x01") == b"\x00\x01"
    assert tc.get_bytes(memoryview(b"ab")) == b"ab"
    assert tc.get_bytes("é") == b"\xc3\xa9"
    with pytest.raises(ConversionError):
        tc.get_bytes(5)


def test_get_id_int_and_long() -> None:
    """Test identifier accessors convert like their non-null counterparts."""
    assert tc.get_id_int(12) == 12
    assert tc.get_id_int("12") == 12
    assert tc.get_id_long(2**40) == 2**40


@pytest.mark.parametrize("accessor", [tc.get_id_int, tc.get_id_long], ids=lambda f: f.__name__)
def test_id_accessors_raise_missing_identifier(accessor: "Callable[[Any], int]") -> None:
    """Test a NULL identifier raises MissingIdentifierError chained from NullValueError."""
    with pytest.raises(MissingIdentifierError, match="Database ID column is null") as exc_info:
        accessor(None)

    assert isinstance(exc_info.value.__cause__, NullValueError)


def test_id_accessors_propagate_conversion_errors() -> None:
    """Test non-null but unconvertible identifiers keep their ConversionError."""
    with pytest.raises(ConversionError):
        tc.get_id_int("abc")
    with pytest.raises(ConversionError):
        tc.get_id_int(2**31)


def test_format_datetime_for_sql() -> None:
    """Test the canonical and custom formats."""
    value = datetime(2024, 3, 5, 7, 8, 9, 123456)

    assert tc.format_datetime_for_sql(value) == "2024-03-05 07:08:09"
    assert tc.format_datetime_for_sql(value, "%Y/%m/%d") == "2024/03/05"
    assert tc.format_datetime_for_sql(value, "") == "2024-03-05 07:08:09"


def test_format_optional_datetime_for_sql() -> None:
    """Test None passes through for NULL bindings."""
    assert tc.format_optional_datetime_for_sql(None) is None
    assert tc.format_optional_datetime_for_sql(datetime(2024, 1, 2)) == "2024-01-02 00:00:00"


@pytest.mark.parametrize(
    "value",
    [datetime(2024, 3, 5, 7, 8, 9, 999999), datetime(1999, 12, 31, 23, 59, 59), datetime(2000, 2, 29)],
)
def test_datetime_round_trip_truncates_to_seconds(value: datetime) -> None:
    """Test formatting then parsing returns the value truncated to one-second resolution."""
    text = tc.format_datetime_for_sql(value)

    assert tc.get_datetime(text) == value.replace(microsecond=0)


def test_format_datetime_for_sql_converts_aware_values_to_utc() -> None:
    """Test aware datetimes are written as their naive UTC equivalent."""
    value = datetime(2024, 1, 2, 5, 4, 5, tzinfo=timezone(timedelta(hours=2)))

    text = tc.format_datetime_for_sql(value)

    assert text == "2024-01-02 03:04:05"
    assert tc.get_datetime(text) == datetime(2024, 1, 2, 3, 4, 5)
    assert tc.get_datetime(text) == value.astimezone(timezone.utc).replace(tzinfo=None)
