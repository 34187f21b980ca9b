"""
Record model for the InfluxDB line protocol.

A ``Record`` is one named, tagged, timestamped data point holding at least
one ``Field``. Records are collected into a ``Batch`` which the writer
flushes as a single payload.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from .core.errors import InvalidArgumentError


def _is_blank(value: object) -> bool:
    return not isinstance(value, str) or not value.strip()


@dataclass(frozen=True)
class Tag:
    """A key/value dimension attached to a record.

    Both key and value are required and must not be blank. Tags hash by key
    so that a merge keeps a single tag per key.
    """

    key: str
    value: str

    def __post_init__(self) -> None:
        if _is_blank(self.key):
            raise InvalidArgumentError("Tag key must be a non-blank string", "key", self.key)
        if _is_blank(self.value):
            raise InvalidArgumentError(
                f"Tag value must be a non-blank string (key: {self.key})", "value", self.value
            )

    def __hash__(self) -> int:
        return hash(self.key)

    def __str__(self) -> str:
        from .line_protocol import tag_to_line

        return tag_to_line(self)


@dataclass(frozen=True)
class Field:
    """A named measured value attached to a record.

    The value may be an integer, float, decimal, bool, or a non-blank string.
    Unsupported value types are rejected when the field is serialized.
    """

    key: str
    value: Any

    def __post_init__(self) -> None:
        if _is_blank(self.key):
            raise InvalidArgumentError("Field key must be a non-blank string", "key", self.key)
        if self.value is None or (isinstance(self.value, str) and _is_blank(self.value)):
            raise InvalidArgumentError(
                f"Field value cannot be null or blank (key: {self.key})",
                "value",
                self.value,
            )

    def __hash__(self) -> int:
        return hash(self.key)

    def __str__(self) -> str:
        from .line_protocol import field_to_line

        return field_to_line(self)


class Record:
    """A single data point: measurement name, tags, fields and timestamp.

    Construction is permissive so records can be built incrementally; a
    blank name or an empty field list is rejected at serialization time.
    The name, tag list and field list may be rewritten in place by a
    formatting pass before the record reaches the writer.
    """

    __slots__ = ("name", "tags", "fields", "timestamp")

    def __init__(
        self,
        name: str | None = None,
        tags: Iterable[Tag] | None = None,
        fields: Iterable[Field] | None = None,
        timestamp: datetime | None = None,
    ) -> None:
        self.name: str = name or ""
        self.tags: list[Tag] = list(tags) if tags is not None else []
        self.fields: list[Field] = list(fields) if fields is not None else []
        self.timestamp: datetime | None = timestamp

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Record):
            return NotImplemented
        return (
            self.name == other.name
            and self.tags == other.tags
            and self.fields == other.fields
            and self.timestamp == other.timestamp
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"Record(name={self.name!r}, tags={self.tags!r}, "
            f"fields={self.fields!r}, timestamp={self.timestamp!r})"
        )

    def __str__(self) -> str:
        from .line_protocol import record_to_line

        return record_to_line(self)


class Batch(list[Record]):
    """An ordered group of records flushed together in one transport call."""

    def __str__(self) -> str:
        from .line_protocol import batch_to_line

        return batch_to_line(self)
