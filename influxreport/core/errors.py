"""Core error types for the InfluxDB reporting pipeline."""

from typing import Any


class InfluxReportError(Exception):
    """Base exception for all influxreport errors."""

    def __init__(self, message: str, cause: Exception | None = None):
        """Initialize with a message and optional cause.

        Args:
            message: The error message
            cause: The underlying exception that caused this error
        """
        super().__init__(message)
        self.cause = cause
        if cause:
            # Use Python's exception chaining
            self.__cause__ = cause


class InvalidArgumentError(InfluxReportError, ValueError):
    """Error raised when a key, value, name or record fails validation."""

    def __init__(
        self,
        message: str,
        argument: str | None = None,
        value: Any = None,
        cause: Exception | None = None,
    ):
        """Initialize with a message, the offending argument name and value.

        Args:
            message: The error message
            argument: The name of the argument that failed validation
            value: The rejected value
            cause: The underlying exception
        """
        super().__init__(message, cause)
        self.argument = argument
        self.value = value


class TimestampOutOfRangeError(InvalidArgumentError):
    """Error raised when a timestamp is earlier than the Unix epoch."""


class TransportError(InfluxReportError):
    """Error raised when a transport fails to deliver a payload."""

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
        response_text: str | None = None,
        cause: Exception | None = None,
    ):
        """Initialize with a message, target and optional server response.

        Args:
            message: The error message
            url: The delivery target (URI or host:port)
            status_code: The response status code, if the server answered
            response_text: The response body, if the server answered
            cause: The underlying exception
        """
        super().__init__(message, cause)
        self.url = url
        self.status_code = status_code
        self.response_text = response_text


class ConfigurationError(InfluxReportError):
    """Raised when configuration loading or validation fails."""
