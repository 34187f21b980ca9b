"""UDP transport for the InfluxDB line protocol."""

from __future__ import annotations

import socket
from typing import TYPE_CHECKING

from ..core.errors import ConfigurationError, TransportError
from ..models import Batch
from ..precision import Precision
from .writer import InfluxTransport, encode_line_protocol


if TYPE_CHECKING:
    from ..config.influx import InfluxConfig


UDP_SCHEME = "net.udp"


class UdpTransport(InfluxTransport):
    """Sends each batch as a single UDP datagram.

    The UDP listener only understands nanosecond timestamps, so batches are
    always serialized with nanosecond precision. A batch that does not fit in
    the socket send buffer fails; lower the writer's batch size if that
    happens.
    """

    precision = Precision.NANOSECONDS

    def __init__(self, config: InfluxConfig) -> None:
        if not config.hostname:
            raise ConfigurationError("Hostname is required for UDP connections")
        if not config.port:
            raise ConfigurationError("Port is required for UDP connections")
        if (config.precision or Precision.NANOSECONDS) != Precision.NANOSECONDS:
            raise ConfigurationError(
                "Timestamp precision for UDP connections must be Nanoseconds. "
                f"Actual: {config.precision.name.title()}"
            )
        self.hostname: str = config.hostname
        self.port: int = config.port

    def serialize(self, batch: Batch) -> bytes:
        return encode_line_protocol(batch, self.precision)

    def send(self, payload: bytes) -> bytes | None:
        try:
            family, socktype, proto, _, address = socket.getaddrinfo(
                self.hostname, self.port, type=socket.SOCK_DGRAM
            )[0]
            with socket.socket(family, socktype, proto) as sock:
                sent = sock.sendto(payload, address)
        except OSError as e:
            raise TransportError(
                f"Error while uploading to InfluxDB over UDP [{self.describe()}] - "
                "Ensure that the message size is less than the UDP send buffer size "
                "(usually 8-64KB), and reduce the batch size on the writer if necessary.",
                url=self.describe(),
                cause=e,
            ) from e
        return str(sent).encode("utf-8")

    def describe(self) -> str:
        return f"{UDP_SCHEME}://{self.hostname}:{self.port}/"
