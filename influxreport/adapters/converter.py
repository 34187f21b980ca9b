"""
Conversion of metric snapshots into line protocol records.

Every metric kind maps to a fixed set of field keys; consumers query these
names, so they must not change. Labeled item breakdowns produce one extra
record per item with tags parsed from the item label.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from datetime import datetime

from ..models import Field, Record
from ..snapshots import (
    CounterValue,
    HealthStatus,
    HistogramValue,
    MeterValue,
    MetricTags,
    TimerValue,
    parse_metric_tags,
)
from ..utils.tags import (
    NAME_TAG_KEY,
    UNESCAPED_COMMA,
    join_tags,
    lower_and_replace_spaces,
    split_unescaped,
)


HEALTH_CHECKS_MEASUREMENT = "Health Checks"
EXPLICIT_NAME_TAG = re.compile(r"^[Nn]ame=")


def _meter_fields(value: MeterValue) -> list[Field]:
    return [
        Field("Mean Rate", value.mean_rate),
        Field("1 Min Rate", value.one_minute_rate),
        Field("5 Min Rate", value.five_minute_rate),
        Field("15 Min Rate", value.fifteen_minute_rate),
    ]


def _histogram_fields(value: HistogramValue) -> list[Field]:
    # last/min/max user values are left out on purpose
    return [
        Field("Last", value.last_value),
        Field("Min", value.min),
        Field("Mean", value.mean),
        Field("Max", value.max),
        Field("StdDev", value.std_dev),
        Field("Median", value.median),
        Field("Sample Size", value.sample_size),
        Field("Percentile 75%", value.percentile_75),
        Field("Percentile 95%", value.percentile_95),
        Field("Percentile 98%", value.percentile_98),
        Field("Percentile 99%", value.percentile_99),
        Field("Percentile 99.9%", value.percentile_999),
    ]


class InfluxConverter:
    """Converts metric snapshot values into ``Record`` instances.

    The converter carries the timestamp of the current reporting phase and
    a set of global tags added to every record it creates. Metric tags
    override global tags with the same key, and tags parsed from an item
    label override both.
    """

    def __init__(self, global_tags: MetricTags | str | None = None) -> None:
        """Initialize the converter.

        Args:
            global_tags: Tags added to every created record
        """
        self.timestamp: datetime | None = None
        self.global_tags: MetricTags = parse_metric_tags(global_tags)

    def get_gauge_records(
        self, name: str, tags: MetricTags, unit: str, value: float
    ) -> Iterator[Record]:
        yield self.get_record(name, tags, [Field("Value", value)])

    def get_counter_records(
        self, name: str, tags: MetricTags, unit: str, value: CounterValue
    ) -> Iterator[Record]:
        yield self.get_record(name, tags, [Field("Count", value.count)])

        for item in value.items:
            yield self.get_record(
                name,
                tags,
                [Field("Count", item.count), Field("Percent", item.percent)],
                item_name=item.item,
            )

    def get_meter_records(
        self, name: str, tags: MetricTags, unit: str, value: MeterValue
    ) -> Iterator[Record]:
        yield self.get_record(name, tags, [Field("Count", value.count), *_meter_fields(value)])
        yield from self._meter_item_records(name, tags, value)

    def get_histogram_records(
        self, name: str, tags: MetricTags, unit: str, value: HistogramValue
    ) -> Iterator[Record]:
        yield self.get_record(
            name, tags, [Field("Count", value.count), *_histogram_fields(value)]
        )

    def get_timer_records(
        self, name: str, tags: MetricTags, unit: str, value: TimerValue
    ) -> Iterator[Record]:
        """Create the timer record and one record per rate item.

        Items recorded on the timer's histogram are not emitted separately;
        only the rate (meter) half contributes item records.
        """
        yield self.get_record(
            name,
            tags,
            [
                Field("Active Sessions", value.active_sessions),
                Field("Total Time", value.total_time),
                Field("Count", value.rate.count),
                *_meter_fields(value.rate),
                *_histogram_fields(value.histogram),
            ],
        )
        yield from self._meter_item_records(name, tags, value.rate)

    def get_health_records(self, status: HealthStatus) -> Iterator[Record]:
        """Create one record per health check result.

        The check name becomes a ``Name`` tag (lowercased, spaces replaced)
        unless it already starts with ``Name=``; further comma-separated
        ``key=value`` pairs in the check name become extra tags.
        """
        for result in status.results:
            parts = split_unescaped(result.name, UNESCAPED_COMMA)
            if parts and not EXPLICIT_NAME_TAG.match(parts[0]):
                parts[0] = f"{NAME_TAG_KEY}={lower_and_replace_spaces(parts[0])}"
            yield self.get_record(
                HEALTH_CHECKS_MEASUREMENT,
                (),
                [
                    Field("IsHealthy", result.is_healthy),
                    Field("Message", result.message),
                ],
                item_name=",".join(parts),
            )

    def get_record(
        self,
        name: str,
        tags: MetricTags,
        fields: Iterable[Field],
        item_name: str | None = None,
    ) -> Record:
        """Create a record stamped with the converter's current timestamp.

        Args:
            name: The measurement name
            tags: Metric tags; these override global tags with the same key
            fields: The record fields
            item_name: Optional item label holding comma-separated tags

        Returns:
            A new ``Record``
        """
        # global tags must come first so they can be overridden
        joined = join_tags(item_name, self.global_tags, tags)
        return Record(name, joined, fields, self.timestamp)

    def _meter_item_records(
        self, name: str, tags: MetricTags, value: MeterValue
    ) -> Iterator[Record]:
        for item in value.items:
            yield self.get_record(
                name,
                tags,
                [
                    Field("Count", item.value.count),
                    Field("Percent", item.percent),
                    *_meter_fields(item.value),
                ],
                item_name=item.item,
            )
