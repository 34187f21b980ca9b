"""
Tag parsing helpers.

Metric tags and item labels arrive as free-form strings such as
``"key1=value1,tag2"``. Entries that are not a ``key=value`` pair are
silently dropped; a backslash in front of a space, comma or equals sign
escapes it from splitting.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from ..core.errors import InvalidArgumentError
from ..models import Tag


UNESCAPED_SPACE = re.compile(r"(?<!\\)[ ]")
UNESCAPED_EQUAL = re.compile(r"(?<!\\)[=]")
UNESCAPED_COMMA = re.compile(r"(?<!\\)[,]")

NAME_TAG_KEY = "Name"


def lower_and_replace_spaces(
    value: str, lowercase: bool = True, replace_chars: str | None = "_"
) -> str:
    """Lowercase the string and replace unescaped spaces.

    Args:
        value: The string to transform
        lowercase: Convert the string to lowercase
        replace_chars: Replacement for each unescaped space; ``""`` removes
            spaces and ``None`` leaves them untouched

    Returns:
        The transformed copy of ``value``
    """
    if value is None:
        raise InvalidArgumentError("Value cannot be null", "value")
    if lowercase:
        value = value.lower()
    if replace_chars is not None:
        value = UNESCAPED_SPACE.sub(lambda _: replace_chars, value)
    return value


def split_unescaped(value: str | None, pattern: re.Pattern[str]) -> list[str]:
    """Split on ``pattern``, trimming parts and dropping empty ones."""
    if not value:
        return []
    return [part.strip() for part in pattern.split(value) if part.strip()]


def to_influx_tag(key_value_pair: str | None) -> Tag | None:
    """Parse ``key=value`` into a tag, or return None if it is malformed."""
    if key_value_pair is None or not key_value_pair.strip():
        return None
    parts = split_unescaped(key_value_pair, UNESCAPED_EQUAL)
    if len(parts) != 2:
        return None
    return Tag(parts[0], parts[1])


def _tag_strings(group: str | Iterable[str]) -> Iterable[str]:
    if isinstance(group, str):
        return [part for part in group.split(",") if part]
    return group


def to_influx_tags(*groups: str | Iterable[str]) -> list[Tag]:
    """Parse tags from comma-separated strings or sequences of tag strings.

    A plain string is split on commas; each entry of a sequence is parsed
    as a single ``key=value`` pair. Malformed entries are dropped.
    """
    tags: list[Tag] = []
    for group in groups:
        for entry in _tag_strings(group):
            tag = to_influx_tag(entry)
            if tag is not None:
                tags.append(tag)
    return tags


def join_tags(item_name: str | None, *groups: str | Iterable[str]) -> list[Tag]:
    """Merge tag groups with any tags parsed from an item label.

    The item label is a comma-separated list of ``key=value`` pairs. When it
    holds a single entry that is not a pair, that entry becomes a ``Name``
    tag. Later tags override earlier tags with the same key, so pass global
    tags first.

    Args:
        item_name: The item label; may be None or empty
        groups: Tag groups in increasing order of precedence

    Returns:
        One tag per key, ordered by first appearance of the key
    """
    item_parts = split_unescaped(item_name, UNESCAPED_COMMA)
    if len(item_parts) == 1 and not UNESCAPED_EQUAL.search(item_parts[0]):
        item_parts[0] = f"{NAME_TAG_KEY}={item_parts[0]}"

    merged: dict[str, Tag] = {}
    item_tags = (to_influx_tag(part) for part in item_parts)
    for tag in [*to_influx_tags(*groups), *item_tags]:
        if tag is not None:
            merged[tag.key] = tag
    return list(merged.values())
