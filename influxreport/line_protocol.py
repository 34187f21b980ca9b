"""
Line protocol serialization.

Converts tags, fields, records and batches into the InfluxDB line protocol::

    measurement[,tag_key=tag_value...] field_key=field_value[,field_key2=field_value2] [timestamp]

Tags are written sorted by key; the InfluxDB docs recommend this for better
insert performance and it keeps the output deterministic.
"""

from __future__ import annotations

import math
import numbers
from collections.abc import Iterable
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

from .core.errors import InvalidArgumentError, TimestampOutOfRangeError
from .models import Batch, Field, Record, Tag
from .precision import DEFAULT_PRECISION, Precision


UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)

TICKS_PER_MICROSECOND = 10
TICKS_PER_MILLISECOND = 10_000
TICKS_PER_SECOND = 10_000_000
TICKS_PER_MINUTE = TICKS_PER_SECOND * 60
TICKS_PER_HOUR = TICKS_PER_MINUTE * 60

_TICKS_PER_UNIT = {
    Precision.MICROSECONDS: TICKS_PER_MICROSECOND,
    Precision.MILLISECONDS: TICKS_PER_MILLISECOND,
    Precision.SECONDS: TICKS_PER_SECOND,
    Precision.MINUTES: TICKS_PER_MINUTE,
    Precision.HOURS: TICKS_PER_HOUR,
}

VALID_VALUE_TYPES: tuple[str, ...] = ("int", "float", "Decimal", "bool", "str")


def escape_value(value: str) -> str:
    """Escape spaces, commas and equals signs with a leading backslash."""
    if value is None or not value.strip():
        raise InvalidArgumentError("Cannot escape a blank value", "value", value)
    return value.replace(" ", "\\ ").replace(",", "\\,").replace("=", "\\=")


def is_integral(value: Any) -> bool:
    return isinstance(value, numbers.Integral) and not isinstance(value, bool)


def is_floating_point(value: Any) -> bool:
    return isinstance(value, (float, Decimal)) or (
        isinstance(value, numbers.Real) and not isinstance(value, numbers.Integral)
    )


def is_valid_value(value: Any) -> bool:
    return isinstance(value, (bool, str)) or is_integral(value) or is_floating_point(value)


def format_integer(value: int) -> str:
    return f"{int(value)}i"


def format_float(value: float | Decimal) -> str:
    """Format a floating-point value using its shortest round-trip form.

    Integral values drop the trailing ``.0`` and the exponent marker is
    upper-case, e.g. ``25``, ``123.456``, ``1.7976931348623157E+308``.
    """
    number = float(value)
    if not math.isfinite(number):
        raise InvalidArgumentError(
            f"Field value must be a finite number: {value}", "value", value
        )
    text = repr(number)
    if text.endswith(".0"):
        text = text[:-2]
    return text.replace("e", "E")


def format_bool(value: bool) -> str:
    # Capitalized on purpose; existing consumers expect True/False.
    return "True" if value else "False"


def format_string(value: str) -> str:
    """Quote a string field value, escaping embedded double quotes.

    Only used for field values, never for tag values.
    """
    if value is None or not value.strip():
        raise InvalidArgumentError("String field value cannot be blank", "value", value)
    escaped = value.replace('"', '\\"')
    return f'"{escaped}"'


def format_value(value: Any) -> str:
    """Format a field value according to its runtime type."""
    if value is None:
        raise InvalidArgumentError("Field value cannot be null", "value", value)
    # bool is an int subclass, so it has to be checked first
    if isinstance(value, bool):
        return format_bool(value)
    if is_integral(value):
        return format_integer(value)
    if is_floating_point(value):
        return format_float(value)
    if isinstance(value, str):
        return format_string(value)
    raise InvalidArgumentError(
        f"Value is not one of the supported types: {type(value).__name__} - "
        f"Valid types: {', '.join(VALID_VALUE_TYPES)}",
        "value",
        value,
    )


def _to_ticks(timestamp: datetime) -> int:
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=UTC)
    if timestamp < UNIX_EPOCH:
        raise TimestampOutOfRangeError(
            "The timestamp cannot be earlier than the UNIX epoch (1970/1/1).",
            "timestamp",
            timestamp,
        )
    since_epoch = timestamp - UNIX_EPOCH
    seconds = since_epoch.days * 86_400 + since_epoch.seconds
    return seconds * TICKS_PER_SECOND + since_epoch.microseconds * TICKS_PER_MICROSECOND


def format_timestamp(timestamp: datetime, precision: Precision) -> str:
    """Format the timestamp as an integer with the given precision.

    Naive timestamps are treated as UTC. One tick is 100 nanoseconds.
    """
    ticks = _to_ticks(timestamp)
    if precision == Precision.NANOSECONDS:
        return str(ticks * 100)
    divisor = _TICKS_PER_UNIT.get(precision)
    if divisor is None:
        raise InvalidArgumentError(
            f"Invalid timestamp precision: {precision}", "precision", precision
        )
    return str(ticks // divisor)


def tag_to_line(tag: Tag) -> str:
    return f"{escape_value(tag.key)}={escape_value(tag.value)}"


def field_to_line(field: Field) -> str:
    return f"{escape_value(field.key)}={format_value(field.value)}"


def record_to_line(record: Record, precision: Precision | None = None) -> str:
    """Convert the record to a single line, without a trailing newline.

    Args:
        record: The record to serialize
        precision: Timestamp precision; defaults to ``DEFAULT_PRECISION``

    Raises:
        InvalidArgumentError: If the name is blank or there are no fields
    """
    if record is None:
        raise InvalidArgumentError("Record cannot be null", "record")
    if not record.name or not record.name.strip():
        raise InvalidArgumentError(
            "The measurement name must be specified.", "name", record.name
        )
    if not record.fields:
        raise InvalidArgumentError(
            f"Must specify at least one field. Metric name: {record.name}",
            "fields",
            record.fields,
        )

    parts = [escape_value(record.name)]
    for tag in sorted(record.tags, key=lambda t: t.key):
        parts.append(f",{tag_to_line(tag)}")
    parts.append(" ")
    parts.append(",".join(field_to_line(f) for f in record.fields))
    if record.timestamp is not None:
        parts.append(f" {format_timestamp(record.timestamp, precision or DEFAULT_PRECISION)}")
    return "".join(parts)


def batch_to_line(batch: Iterable[Record], precision: Precision | None = None) -> str:
    """Convert every record in the batch, joined by newlines (none trailing)."""
    if batch is None:
        raise InvalidArgumentError("Batch cannot be null", "batch")
    return "\n".join(record_to_line(r, precision) for r in batch)


__all__ = [
    "UNIX_EPOCH",
    "VALID_VALUE_TYPES",
    "escape_value",
    "format_value",
    "format_timestamp",
    "tag_to_line",
    "field_to_line",
    "record_to_line",
    "batch_to_line",
]
