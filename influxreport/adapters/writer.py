"""
Batching writer.

The writer buffers records and hands them to a transport in size-bounded
groups. Delivery is at-most-once: a failed flush is reported to the error
handler and the batch is dropped, never retried.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from types import TracebackType

from ..core.errors import ConfigurationError, InvalidArgumentError, TransportError
from ..core.logging import get_logger
from ..line_protocol import batch_to_line
from ..models import Batch, Record
from ..precision import Precision


logger = get_logger(__name__)

ErrorHandler = Callable[[BaseException, str], None]

PREVIEW_LINES = 5


def format_size(size: int) -> str:
    """Format a byte count as bytes or KiB."""
    if size < (1 << 12):
        return f"{size:,} bytes"
    return f"{size / 1024.0:,.2f} KiB"


def encode_line_protocol(batch: Batch, precision: Precision | None) -> bytes:
    """Serialize the batch to UTF-8 encoded line protocol."""
    return batch_to_line(batch, precision).encode("utf-8")


def log_error_handler(error: BaseException, message: str) -> None:
    """Default error handler: log the failure and move on."""
    logger.error(
        "influx_flush_failed",
        message=message,
        error=str(error),
        error_type=type(error).__name__,
        exc_info=error,
    )


class InfluxTransport(ABC):
    """Serializes a batch and delivers the payload to the server."""

    @abstractmethod
    def serialize(self, batch: Batch) -> bytes:
        """Convert the batch into the bytes sent over the wire."""

    @abstractmethod
    def send(self, payload: bytes) -> bytes | None:
        """Deliver one payload.

        Returns:
            The server response, or None when the protocol has none

        Raises:
            TransportError: If delivery fails
        """

    @abstractmethod
    def describe(self) -> str:
        """Describe the delivery target for diagnostics."""

    def close(self) -> None:
        """Release any resources held by the transport."""


class InfluxWriter:
    """Buffers records and flushes them through a transport.

    With a positive ``batch_size`` the batch is flushed as soon as it holds
    that many records; with zero it is only flushed explicitly. The writer
    is meant to be driven by a single reporting task and is not thread-safe.
    """

    def __init__(
        self,
        transport: InfluxTransport,
        batch_size: int = 0,
        error_handler: ErrorHandler | None = None,
    ) -> None:
        """Initialize the writer.

        Args:
            transport: Serializes and delivers each flushed batch
            batch_size: Maximum records per flush; zero flushes only on demand
            error_handler: Receives flush failures; defaults to logging them
        """
        if transport is None:
            raise ConfigurationError("Writer transport cannot be None")
        self.transport = transport
        self.error_handler: ErrorHandler = error_handler or log_error_handler
        self._batch = Batch()
        self._batch_size = 0
        self.batch_size = batch_size

    @property
    def batch(self) -> Batch:
        """Records buffered since the last flush."""
        return self._batch

    @property
    def batch_size(self) -> int:
        return self._batch_size

    @batch_size.setter
    def batch_size(self, value: int) -> None:
        if value < 0:
            raise ConfigurationError(f"Batch size cannot be negative: {value}")
        self._batch_size = value

    def write(self, record: Record) -> None:
        """Buffer the record, flushing first if the batch becomes full."""
        if record is None:
            raise InvalidArgumentError("Record cannot be None", "record")
        self._batch.append(record)
        if self._batch_size > 0 and len(self._batch) >= self._batch_size:
            self.flush()

    def write_records(self, records: Iterable[Record]) -> None:
        """Buffer each record in turn, flushing whenever the batch fills up."""
        if records is None:
            raise InvalidArgumentError("Records cannot be None", "records")
        for record in records:
            self.write(record)

    def flush(self) -> bool:
        """Serialize and deliver the buffered batch, then clear it.

        Failures go to the error handler instead of the caller. The batch is
        cleared whether or not delivery succeeded.

        Returns:
            True if the batch was delivered, False if it was empty or failed
        """
        if not self._batch:
            return False

        payload = b""
        try:
            payload = self.transport.serialize(self._batch)
            self._deliver(payload)
            logger.debug(
                "influx_flush_success",
                records=len(self._batch),
                size=format_size(len(payload)),
                target=self.transport.describe(),
            )
            return True
        except Exception as e:
            self._handle_error(e, self._failure_message(e, payload))
            return False
        finally:
            # clear always, regardless if it was successful or not
            self._batch.clear()

    def close(self) -> None:
        """Flush any buffered records and release the transport."""
        try:
            self.flush()
        finally:
            self._batch.clear()
            self.transport.close()

    def __enter__(self) -> InfluxWriter:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def _deliver(self, payload: bytes) -> bytes | None:
        return self.transport.send(payload)

    def _failure_message(self, error: Exception, payload: bytes) -> str:
        lines = payload.decode("utf-8", errors="replace").split("\n")[:PREVIEW_LINES]
        message = (
            f"Error while flushing {len(self._batch)} measurements to InfluxDB "
            f"({self.transport.describe()}). Bytes: {format_size(len(payload))}"
        )
        if isinstance(error, TransportError):
            if error.status_code is not None:
                message += f" [ResponseStatus: {error.status_code}]"
            if error.response_text:
                message += f" [Response: {error.response_text}]"
        return message + " - First 5 lines: \n" + "\n".join(lines) + "\n"

    def _handle_error(self, error: Exception, message: str) -> None:
        try:
            self.error_handler(error, message)
        except Exception as handler_error:
            logger.error(
                "influx_error_handler_failed",
                error=str(handler_error),
                original_error=str(error),
                exc_info=handler_error,
            )
