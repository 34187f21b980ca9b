"""Configuration for InfluxDB reporting."""

from .influx import InfluxConfig, format_influx_uri
from .settings import LoggingSettings, Settings


__all__ = ["InfluxConfig", "LoggingSettings", "Settings", "format_influx_uri"]
