"""Core building blocks shared across the influxreport package."""

from .errors import (
    ConfigurationError,
    InfluxReportError,
    InvalidArgumentError,
    TimestampOutOfRangeError,
    TransportError,
)
from .logging import get_logger, setup_logging


__all__ = [
    "InfluxReportError",
    "InvalidArgumentError",
    "TimestampOutOfRangeError",
    "TransportError",
    "ConfigurationError",
    "get_logger",
    "setup_logging",
]
