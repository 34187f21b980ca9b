"""Report application metrics to InfluxDB."""

from .adapters import (
    HttpTransport,
    InfluxConverter,
    InfluxFormatter,
    InfluxTransport,
    InfluxWriter,
    JsonHttpTransport,
    UdpTransport,
)
from .config import InfluxConfig, Settings
from .core.errors import (
    ConfigurationError,
    InfluxReportError,
    InvalidArgumentError,
    TimestampOutOfRangeError,
    TransportError,
)
from .models import Batch, Field, Record, Tag
from .precision import Precision
from .report import InfluxReport
from .scheduler import ReportScheduler


__version__ = "0.1.0"

__all__ = [
    "Batch",
    "ConfigurationError",
    "Field",
    "HttpTransport",
    "InfluxConfig",
    "InfluxConverter",
    "InfluxFormatter",
    "InfluxReport",
    "InfluxReportError",
    "InfluxTransport",
    "InfluxWriter",
    "InvalidArgumentError",
    "JsonHttpTransport",
    "Precision",
    "Record",
    "ReportScheduler",
    "Settings",
    "Tag",
    "TimestampOutOfRangeError",
    "TransportError",
    "UdpTransport",
]
