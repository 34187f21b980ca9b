"""InfluxDB connection configuration."""

from __future__ import annotations

from typing import Any
from urllib.parse import parse_qsl, quote, urlsplit

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..adapters.converter import InfluxConverter
from ..adapters.formatter import InfluxFormatter
from ..adapters.writer import InfluxWriter
from ..core.errors import ConfigurationError, InvalidArgumentError
from ..precision import DEFAULT_HTTP_PORT, DEFAULT_PRECISION, Precision


SCHEME_HTTP = "http"
SCHEME_HTTPS = "https"


def format_influx_uri(
    scheme: str | None,
    hostname: str | None,
    port: int | None,
    database: str | None,
    username: str | None = None,
    password: str | None = None,
    retention_policy: str | None = None,
    precision: Precision | None = None,
) -> str:
    """Build the InfluxDB write URI.

    A missing or zero port falls back to 8086 for http and https. The
    precision parameter is left out only for nanoseconds, the server default.
    """
    scheme = scheme or SCHEME_HTTP
    if not port and scheme in (SCHEME_HTTP, SCHEME_HTTPS):
        port = DEFAULT_HTTP_PORT
    prec = precision or DEFAULT_PRECISION

    uri = f"{scheme}://{hostname}:{port if port is not None else ''}/write?db={_quote(database)}"
    if username and username.strip():
        uri += f"&u={_quote(username)}"
    if password and password.strip():
        uri += f"&p={_quote(password)}"
    if retention_policy and retention_policy.strip():
        uri += f"&rp={_quote(retention_policy)}"
    if prec != Precision.NANOSECONDS:
        uri += f"&precision={prec.short_name}"
    return uri


def _quote(value: str | None) -> str:
    return quote(value or "", safe="")


class InfluxConfig(BaseModel):
    """Connection target and collaborators for an InfluxDB report.

    The converter, formatter and writer are optional here; a report checks
    that all three are present when it is constructed.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, validate_assignment=True)

    hostname: str | None = Field(
        default=None,
        description="Hostname or IP address of the InfluxDB server",
    )
    port: int | None = Field(
        default=None,
        ge=1,
        le=65535,
        description="Server port, or None to use the transport default",
    )
    database: str | None = Field(
        default=None,
        description="Database the records are written to",
    )
    username: str | None = Field(default=None, description="Username, if authentication is used")
    password: str | None = Field(default=None, description="Password, if authentication is used")
    retention_policy: str | None = Field(
        default=None,
        description="Retention policy; None uses the server default",
    )
    precision: Precision | None = Field(
        default=None,
        description="Timestamp precision; None uses seconds",
    )
    batch_size: int = Field(
        default=0,
        ge=0,
        description="Maximum records per flush; 0 flushes everything at once",
    )

    converter: InfluxConverter | None = None
    formatter: InfluxFormatter | None = None
    writer: InfluxWriter | None = None

    @field_validator("precision", mode="before")
    @classmethod
    def validate_precision(cls, v: Any) -> Precision | None:
        """Accept a Precision member, a member name or a short name."""
        if v is None or v == "":
            return None
        try:
            return Precision.parse(v)
        except InvalidArgumentError as e:
            raise ValueError(str(e)) from e

    @property
    def effective_precision(self) -> Precision:
        """The configured precision, or the default when unset."""
        return self.precision or DEFAULT_PRECISION

    @classmethod
    def from_uri(cls, uri: str, **kwargs: Any) -> InfluxConfig:
        """Create a config from a URI such as
        ``http://host:8086/write?db=metrics&u=user&p=pass&rp=week&precision=ms``.

        Query keys are case-insensitive and blank values are ignored.
        """
        if not uri or not uri.strip():
            raise ConfigurationError("InfluxDB URI cannot be empty")
        try:
            parts = urlsplit(uri)
            port = parts.port
        except ValueError as e:
            raise ConfigurationError(f"Invalid InfluxDB URI: {uri}", cause=e) from e

        values: dict[str, Any] = {"hostname": parts.hostname, "port": port}

        query_keys = {
            "db": "database",
            "rp": "retention_policy",
            "u": "username",
            "p": "password",
            "precision": "precision",
        }
        for key, value in parse_qsl(parts.query):
            field_name = query_keys.get(key.lower())
            if field_name and value:
                values[field_name] = value

        if "precision" in values:
            try:
                values["precision"] = Precision.from_short_name(values["precision"])
            except InvalidArgumentError as e:
                raise ConfigurationError(f"Invalid InfluxDB URI: {uri}", cause=e) from e
        values.update(kwargs)
        return cls(**values)

    def format_uri(self, scheme: str = SCHEME_HTTP, redact_password: bool = False) -> str:
        """Format the write URI for this configuration.

        Args:
            scheme: URI scheme, http or https for the HTTP transport
            redact_password: Replace the password with asterisks for logging
        """
        uri = format_influx_uri(
            scheme,
            self.hostname,
            self.port,
            self.database,
            self.username,
            self.password,
            self.retention_policy,
            self.precision,
        )
        if redact_password and self.password and self.password.strip():
            uri = uri.replace(f"&p={_quote(self.password)}", "&p=***", 1)
        return uri
