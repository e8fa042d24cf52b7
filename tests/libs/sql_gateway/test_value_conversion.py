"""Tests for cell value conversion."""

import datetime as dt
import json
import uuid
from decimal import Decimal

import pytest

from libs.sql_gateway.value_conversion import (
    NULL_VALUE,
    UNSUPPORTED_TYPE_SENTINEL,
    TypedValue,
    ValueKind,
    blob_placeholder,
    convert,
    convert_to_json,
)


class TestScalars:
    """Test suite for scalar conversions."""

    def test_none_is_null(self) -> None:
        assert convert(None) == NULL_VALUE
        assert convert_to_json(None) is None

    def test_bool_stays_bool(self) -> None:
        result = convert(True)

        assert result == TypedValue(ValueKind.BOOLEAN, True)
        assert result.to_json() is True

    def test_int_is_exact(self) -> None:
        assert convert(42) == TypedValue(ValueKind.INTEGER, 42)
        assert convert(-(2**63)).value == -(2**63)

    def test_ubigint_range_is_exact(self) -> None:
        assert convert(2**64 - 1).value == 2**64 - 1

    def test_hugeint_wraps_to_int64(self) -> None:
        assert convert(2**64).value == 0
        assert convert(2**64 + 5).value == 5
        assert convert(-(2**63) - 1).value == 2**63 - 1

    def test_float(self) -> None:
        assert convert(1.5) == TypedValue(ValueKind.FLOAT, 1.5)

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_float_is_null(self, value: float) -> None:
        assert convert(value) == NULL_VALUE

    def test_decimal_becomes_float(self) -> None:
        result = convert(Decimal("12.34"))

        assert result.kind is ValueKind.FLOAT
        assert result.value == pytest.approx(12.34)

    def test_non_finite_decimal_is_null(self) -> None:
        assert convert(Decimal("NaN")) == NULL_VALUE

    def test_text(self) -> None:
        assert convert("héllo") == TypedValue(ValueKind.TEXT, "héllo")

    def test_text_with_lone_surrogate_is_replaced(self) -> None:
        result = convert("a\ud800b")

        assert result.kind is ValueKind.TEXT
        assert result.value == "a?b"


class TestTemporalAndOther:
    """Test suite for dates, UUIDs, blobs and unsupported values."""

    def test_date_is_iso_text(self) -> None:
        assert convert(dt.date(2024, 1, 31)) == TypedValue(ValueKind.TEXT, "2024-01-31")

    def test_timestamp_is_iso_text(self) -> None:
        value = dt.datetime(2024, 1, 31, 12, 30, 0)

        assert convert(value).value == "2024-01-31T12:30:00"

    def test_time_is_iso_text(self) -> None:
        assert convert(dt.time(8, 15)).value == "08:15:00"

    def test_uuid_is_text(self) -> None:
        value = uuid.UUID("12345678-1234-5678-1234-567812345678")

        assert convert(value) == TypedValue(ValueKind.TEXT, str(value))

    @pytest.mark.parametrize("blob", [b"abc", bytearray(b"abc"), memoryview(b"abc")])
    def test_blob_is_placeholder(self, blob: bytes) -> None:
        result = convert(blob)

        assert result.kind is ValueKind.BLOB_PLACEHOLDER
        assert result.value == "<BLOB 3 bytes>"

    def test_blob_placeholder_format(self) -> None:
        assert blob_placeholder(0) == "<BLOB 0 bytes>"

    @pytest.mark.parametrize(
        "value",
        [[1, 2], {"a": 1}, dt.timedelta(days=1), object()],
    )
    def test_unknown_types_are_unsupported(self, value: object) -> None:
        result = convert(value)

        assert result.kind is ValueKind.UNSUPPORTED
        assert result.value == UNSUPPORTED_TYPE_SENTINEL

    def test_converted_values_are_json_serializable(self) -> None:
        values = [
            None,
            True,
            2**64 - 1,
            1.25,
            Decimal("1.1"),
            "x",
            dt.date(2024, 1, 1),
            b"\x00",
            [1],
        ]

        encoded = json.dumps([convert_to_json(v) for v in values])

        assert "<BLOB 1 bytes>" in encoded
        assert UNSUPPORTED_TYPE_SENTINEL in encoded
