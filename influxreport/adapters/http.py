"""HTTP transport for the InfluxDB line protocol."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx

from ..core.errors import ConfigurationError, TransportError
from ..core.logging import get_logger
from ..models import Batch
from ..precision import Precision
from .writer import InfluxTransport, encode_line_protocol


if TYPE_CHECKING:
    from ..config.influx import InfluxConfig


logger = get_logger(__name__)

HTTP_SCHEMES = ("http", "https")
DEFAULT_TIMEOUT = 30.0


class HttpTransport(InfluxTransport):
    """POSTs each batch to the InfluxDB ``/write`` endpoint.

    Any non-2xx response is raised as a TransportError carrying the status
    code and the response body; the writer routes it to its error handler.
    """

    content_type = "text/plain; charset=utf-8"
    user_agent = "influxreport-http-writer/1.0"

    def __init__(
        self,
        config: InfluxConfig,
        scheme: str = "http",
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.Client | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            config: Connection settings; hostname and database are required
            scheme: Either http or https
            timeout: Request timeout in seconds, used when creating the client
            client: Optional pre-configured client; the transport will not close it
        """
        if not config.hostname:
            raise ConfigurationError("Hostname is required for the HTTP transport")
        if not config.database:
            raise ConfigurationError("Database is required for the HTTP transport")
        if scheme not in HTTP_SCHEMES:
            raise ConfigurationError(
                f"The URI scheme must be either http or https. Scheme: {scheme}"
            )

        self.config = config
        self.scheme = scheme
        self.precision: Precision = config.effective_precision
        self.uri = self._build_uri()
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout)

    def _build_uri(self) -> str:
        return self.config.format_uri(self.scheme)

    def serialize(self, batch: Batch) -> bytes:
        return encode_line_protocol(batch, self.precision)

    def send(self, payload: bytes) -> bytes | None:
        try:
            response = self._client.post(
                self.uri,
                content=payload,
                headers={
                    "Content-Type": self.content_type,
                    "User-Agent": self.user_agent,
                },
            )
        except httpx.HTTPError as e:
            raise TransportError(
                f"Error while uploading to InfluxDB over HTTP [{self.describe()}]: {e}",
                url=self.describe(),
                cause=e,
            ) from e

        if not response.is_success:
            raise TransportError(
                f"InfluxDB rejected the write with status {response.status_code}",
                url=self.describe(),
                status_code=response.status_code,
                response_text=response.text[:500] if response.text else "empty",
            )

        logger.debug(
            "influx_http_write_success",
            url=self.describe(),
            status=response.status_code,
            bytes=len(payload),
        )
        return response.content

    def describe(self) -> str:
        return self.config.format_uri(self.scheme, redact_password=True)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()
