"""Adapters that turn metric snapshots into records and deliver them."""

from .converter import HEALTH_CHECKS_MEASUREMENT, InfluxConverter
from .formatter import InfluxFormatter
from .http import HttpTransport
from .json_http import JsonHttpTransport
from .udp import UdpTransport
from .writer import (
    ErrorHandler,
    InfluxTransport,
    InfluxWriter,
    format_size,
    log_error_handler,
)


__all__ = [
    "HEALTH_CHECKS_MEASUREMENT",
    "ErrorHandler",
    "HttpTransport",
    "InfluxConverter",
    "InfluxFormatter",
    "InfluxTransport",
    "InfluxWriter",
    "JsonHttpTransport",
    "UdpTransport",
    "format_size",
    "log_error_handler",
]
