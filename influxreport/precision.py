"""Timestamp precision used when rendering timestamps into the line protocol."""

from enum import Enum

from .core.errors import InvalidArgumentError


class Precision(str, Enum):
    """Timestamp precision; the value is the short name used in write URIs."""

    NANOSECONDS = "n"
    MICROSECONDS = "u"
    MILLISECONDS = "ms"
    SECONDS = "s"
    MINUTES = "m"
    HOURS = "h"

    @property
    def short_name(self) -> str:
        """The short name (n, u, ms, s, m, h) used in the URI query string."""
        return self.value

    @classmethod
    def from_short_name(cls, short_name: str) -> "Precision":
        """Get the precision for a short name produced by ``short_name``."""
        try:
            return cls(short_name)
        except ValueError as e:
            raise InvalidArgumentError(
                f"Invalid precision specifier: {short_name}",
                argument="precision",
                value=short_name,
                cause=e,
            ) from e

    @classmethod
    def parse(cls, value: "str | Precision") -> "Precision":
        """Parse a precision from a member, a short name, or a member name."""
        if isinstance(value, Precision):
            return value
        by_name = {member.name.lower(): member for member in cls}
        if value.lower() in by_name:
            return by_name[value.lower()]
        return cls.from_short_name(value)


DEFAULT_PRECISION = Precision.SECONDS
"""Precision used when none is configured."""

WIRE_DEFAULT_PRECISION = Precision.NANOSECONDS
"""Precision the server assumes when a write URI does not specify one."""

DEFAULT_HTTP_PORT = 8086
