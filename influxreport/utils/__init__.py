"""Utility helpers for the influxreport package."""

from .tags import (
    join_tags,
    lower_and_replace_spaces,
    split_unescaped,
    to_influx_tag,
    to_influx_tags,
)


__all__ = [
    "join_tags",
    "lower_and_replace_spaces",
    "split_unescaped",
    "to_influx_tag",
    "to_influx_tags",
]
