"""
JSON transport for the legacy InfluxDB series API.

InfluxDB 0.9.1 and earlier accept writes as JSON series posted to
``/db/{database}/series``. Each record becomes one series holding a single
point, and timestamps are always sent as Unix seconds.
"""

from __future__ import annotations

import json
import math
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import httpx

from ..core.errors import ConfigurationError, InvalidArgumentError
from ..line_protocol import (
    UNIX_EPOCH,
    VALID_VALUE_TYPES,
    is_floating_point,
    is_integral,
)
from ..models import Batch, Record
from ..precision import DEFAULT_HTTP_PORT, Precision
from .http import DEFAULT_TIMEOUT, HttpTransport


if TYPE_CHECKING:
    from ..config.influx import InfluxConfig


def to_unix_time(timestamp: datetime) -> int:
    """Convert to whole seconds since the Unix epoch, rounding to nearest."""
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=UTC)
    return round((timestamp - UNIX_EPOCH).total_seconds())


def to_json_value(value: Any) -> int | float | str:
    """Convert a tag or field value to its JSON representation.

    Integers and floats stay numeric; everything else, booleans included,
    is sent as its string form.
    """
    if value is None:
        raise InvalidArgumentError("Value cannot be null", "value", value)
    if isinstance(value, bool):
        return str(value)
    if is_integral(value):
        return int(value)
    if is_floating_point(value):
        number = float(value)
        if not math.isfinite(number):
            raise InvalidArgumentError(
                f"Floating point value must be finite: {value}", "value", value
            )
        return number
    if isinstance(value, str):
        return value
    raise InvalidArgumentError(
        f"Value is not one of the supported types: {type(value).__name__} - "
        f"Valid types: {', '.join(VALID_VALUE_TYPES)}",
        "value",
        value,
    )


def record_to_json(record: Record) -> dict[str, Any]:
    if record is None:
        raise InvalidArgumentError("Record cannot be null", "record")
    if not record.name or not record.name.strip():
        raise InvalidArgumentError("The measurement name must be specified.", "name")
    if not record.fields:
        raise InvalidArgumentError(
            f"Must specify at least one field. Metric name: {record.name}", "fields"
        )

    timestamp = record.timestamp or datetime.now(UTC)
    columns = ["time"]
    columns.extend(tag.key for tag in record.tags)
    columns.extend(field.key for field in record.fields)
    point: list[Any] = [to_unix_time(timestamp)]
    point.extend(to_json_value(tag.value) for tag in record.tags)
    point.extend(to_json_value(field.value) for field in record.fields)
    return {"name": record.name, "columns": columns, "points": [point]}


def batch_to_json(batch: Batch) -> str:
    return json.dumps([record_to_json(record) for record in batch], separators=(",", ":"))


class JsonHttpTransport(HttpTransport):
    """POSTs each batch as JSON series to a pre-0.9.2 InfluxDB server."""

    content_type = "application/json; charset=utf-8"
    user_agent = "influxreport-json-writer/1.0"

    def __init__(
        self,
        config: InfluxConfig,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.Client | None = None,
    ) -> None:
        if config.precision not in (None, Precision.SECONDS):
            raise ConfigurationError(
                f"InfluxDB timestamp precision '{config.precision.name.title()}' is not "
                "supported by the JSON protocol, which only supports Seconds precision."
            )
        super().__init__(config, "http", timeout=timeout, client=client)

    def _build_uri(self, password: str | None = None) -> str:
        config = self.config
        port = config.port or DEFAULT_HTTP_PORT
        if password is None:
            password = config.password or ""
        return (
            f"http://{config.hostname}:{port}/db/{config.database}/series"
            f"?u={config.username or ''}&p={password}"
            f"&time_precision={Precision.SECONDS.short_name}"
        )

    def serialize(self, batch: Batch) -> bytes:
        return batch_to_json(batch).encode("utf-8")

    def describe(self) -> str:
        return self._build_uri(password="***" if self.config.password else "")
