"""Tests for the legacy JSON series transport."""

import json
from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest
from pytest_httpx import HTTPXMock

from influxreport.adapters.json_http import (
    JsonHttpTransport,
    batch_to_json,
    record_to_json,
    to_json_value,
    to_unix_time,
)
from influxreport.config.influx import InfluxConfig
from influxreport.core.errors import ConfigurationError, InvalidArgumentError
from influxreport.models import Batch, Field, Record, Tag
from influxreport.precision import Precision


@pytest.fixture
def json_config() -> InfluxConfig:
    return InfluxConfig(
        hostname="localhost", database="testdb", username="user", password="pass"
    )


class TestJsonSerialization:
    """Test conversion of records into JSON series."""

    def test_record_to_json(self, fixed_timestamp: datetime) -> None:
        record = Record(
            "Test Metric",
            [Tag("zone", "b"), Tag("host", "a")],
            [Field("Count", 3), Field("Rate", 1.5), Field("Ok", True), Field("Msg", "hi")],
            fixed_timestamp,
        )

        assert record_to_json(record) == {
            "name": "Test Metric",
            "columns": ["time", "zone", "host", "Count", "Rate", "Ok", "Msg"],
            "points": [[1464784215, "b", "a", 3, 1.5, "True", "hi"]],
        }

    def test_missing_timestamp_uses_now(self) -> None:
        before = to_unix_time(datetime.now(UTC))

        point = record_to_json(Record("m", fields=[Field("f", 1)]))["points"][0]

        assert before <= point[0] <= before + 5

    def test_unix_time_rounds_to_nearest_second(self) -> None:
        epoch = datetime(1970, 1, 1, tzinfo=UTC)

        assert to_unix_time(epoch + timedelta(seconds=10, milliseconds=600)) == 11
        assert to_unix_time(epoch + timedelta(seconds=10, milliseconds=400)) == 10

    def test_value_conversion(self) -> None:
        assert to_json_value(7) == 7
        assert to_json_value(Decimal("2.5")) == 2.5
        assert to_json_value(False) == "False"
        with pytest.raises(InvalidArgumentError):
            to_json_value(float("nan"))
        with pytest.raises(InvalidArgumentError):
            to_json_value(object())

    def test_invalid_records_fail(self) -> None:
        with pytest.raises(InvalidArgumentError):
            record_to_json(Record("", fields=[Field("f", 1)]))
        with pytest.raises(InvalidArgumentError):
            record_to_json(Record("m"))

    def test_batch_is_json_array(self, fixed_timestamp: datetime) -> None:
        batch = Batch(
            [
                Record("a", fields=[Field("f", 1)], timestamp=fixed_timestamp),
                Record("b", fields=[Field("f", 2)], timestamp=fixed_timestamp),
            ]
        )

        parsed = json.loads(batch_to_json(batch))

        assert [series["name"] for series in parsed] == ["a", "b"]


class TestJsonHttpTransport:
    """Test configuration and delivery of the JSON transport."""

    def test_uri(self, json_config: InfluxConfig) -> None:
        transport = JsonHttpTransport(json_config)

        assert transport.uri == (
            "http://localhost:8086/db/testdb/series?u=user&p=pass&time_precision=s"
        )
        assert transport.describe() == (
            "http://localhost:8086/db/testdb/series?u=user&p=***&time_precision=s"
        )

    def test_rejects_non_second_precision(self, json_config: InfluxConfig) -> None:
        json_config.precision = Precision.MILLISECONDS

        with pytest.raises(ConfigurationError, match="only supports Seconds"):
            JsonHttpTransport(json_config)

    def test_requires_database(self) -> None:
        with pytest.raises(ConfigurationError):
            JsonHttpTransport(InfluxConfig(hostname="localhost", precision="s"))

    def test_posts_json(
        self, httpx_mock: HTTPXMock, json_config: InfluxConfig, fixed_timestamp: datetime
    ) -> None:
        httpx_mock.add_response(method="POST", status_code=200)
        transport = JsonHttpTransport(json_config)
        batch = Batch([Record("m", fields=[Field("f", 1)], timestamp=fixed_timestamp)])

        transport.send(transport.serialize(batch))

        request = httpx_mock.get_request()
        assert request is not None
        assert request.url.path == "/db/testdb/series"
        assert request.headers["content-type"] == "application/json; charset=utf-8"
        assert json.loads(request.content) == [
            {"name": "m", "columns": ["time", "f"], "points": [[1464784215, 1]]}
        ]
        transport.close()
