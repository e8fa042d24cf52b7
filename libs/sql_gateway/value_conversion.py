"""Conversion of DuckDB cell values into JSON-safe tagged values.

DuckDB's Python client hands back native Python objects. Every object is
routed through an explicit dispatch table into one of a closed set of
``ValueKind`` variants; anything the table does not name becomes the
unsupported sentinel rather than its ``repr``.
"""

from __future__ import annotations

import datetime as dt
import logging
import math
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

UNSUPPORTED_TYPE_SENTINEL = "<UNSUPPORTED_TYPE>"

_INT64_MIN = -(2**63)
_UINT64_MAX = 2**64 - 1


class ValueKind(str, Enum):
    NULL = "null"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    FLOAT = "float"
    TEXT = "text"
    BLOB_PLACEHOLDER = "blob_placeholder"
    UNSUPPORTED = "unsupported"


@dataclass(frozen=True, slots=True)
class TypedValue:
    """One converted cell: its kind plus the JSON-ready payload."""

    kind: ValueKind
    value: bool | int | float | str | None = None

    def to_json(self) -> bool | int | float | str | None:
        return self.value


NULL_VALUE = TypedValue(ValueKind.NULL)
UNSUPPORTED_VALUE = TypedValue(ValueKind.UNSUPPORTED, UNSUPPORTED_TYPE_SENTINEL)


def blob_placeholder(size: int) -> str:
    return f"<BLOB {size} bytes>"


def _wrap_int64(value: int) -> int:
    """Reinterpret the low 64 bits of ``value`` as a signed integer."""
    low = value & _UINT64_MAX
    return low - 2**64 if low >= 2**63 else low


def _from_bool(value: bool) -> TypedValue:
    return TypedValue(ValueKind.BOOLEAN, value)


def _from_int(value: int) -> TypedValue:
    # Signed and unsigned 64-bit values are carried exactly; HUGEINT and
    # wider fall back to 64-bit wraparound.
    if _INT64_MIN <= value <= _UINT64_MAX:
        return TypedValue(ValueKind.INTEGER, int(value))
    return TypedValue(ValueKind.INTEGER, _wrap_int64(value))


def _from_float(value: float) -> TypedValue:
    if not math.isfinite(value):
        return NULL_VALUE
    return TypedValue(ValueKind.FLOAT, float(value))


def _from_decimal(value: Decimal) -> TypedValue:
    if not value.is_finite():
        return NULL_VALUE
    return _from_float(float(value))


def _from_text(value: str) -> TypedValue:
    # Lone surrogates cannot be encoded as UTF-8; replace them.
    return TypedValue(ValueKind.TEXT, value.encode("utf-8", "replace").decode("utf-8"))


def _from_temporal(value: dt.date | dt.time) -> TypedValue:
    return TypedValue(ValueKind.TEXT, value.isoformat())


def _from_uuid(value: uuid.UUID) -> TypedValue:
    return TypedValue(ValueKind.TEXT, str(value))


def _from_blob(value: bytes | bytearray | memoryview) -> TypedValue:
    return TypedValue(ValueKind.BLOB_PLACEHOLDER, blob_placeholder(len(value)))


# bool must precede int (bool subclasses int); datetime precedes date.
CONVERTERS: tuple[tuple[type | tuple[type, ...], Callable[[Any], TypedValue]], ...] = (
    (bool, _from_bool),
    (int, _from_int),
    (float, _from_float),
    (Decimal, _from_decimal),
    (str, _from_text),
    ((dt.datetime, dt.date, dt.time), _from_temporal),
    (uuid.UUID, _from_uuid),
    ((bytes, bytearray, memoryview), _from_blob),
)


def convert(native: Any) -> TypedValue:
    """Convert one native cell value. Never raises."""
    if native is None:
        return NULL_VALUE
    for native_type, converter in CONVERTERS:
        if isinstance(native, native_type):
            try:
                return converter(native)
            except Exception:
                logger.debug(
                    "cell_conversion_failed",
                    extra={"native_type": type(native).__name__},
                )
                return UNSUPPORTED_VALUE
    return UNSUPPORTED_VALUE


def convert_to_json(native: Any) -> bool | int | float | str | None:
    return convert(native).to_json()


__all__ = [
    "CONVERTERS",
    "NULL_VALUE",
    "UNSUPPORTED_TYPE_SENTINEL",
    "UNSUPPORTED_VALUE",
    "TypedValue",
    "ValueKind",
    "blob_placeholder",
    "convert",
    "convert_to_json",
]
