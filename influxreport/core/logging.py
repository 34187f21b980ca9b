"""
Structured logging for influxreport.

Library code only calls ``get_logger``. Applications that want console or
JSON output call ``setup_logging`` once at startup.
"""

import logging
import sys

import structlog
from structlog.stdlib import BoundLogger


PACKAGE_LOGGER = "influxreport"


def setup_logging(json_logs: bool = False, log_level: str = "INFO") -> BoundLogger:
    """Route structlog and stdlib records through one stdout handler.

    Args:
        json_logs: Render JSON lines instead of the console format
        log_level: Level name for the root and influxreport loggers

    Returns:
        A logger for the caller
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer()
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer,
            foreign_pre_chain=[
                structlog.stdlib.add_log_level,
                structlog.stdlib.add_logger_name,
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(level)
    logging.getLogger(PACKAGE_LOGGER).setLevel(level)

    # httpx logs each write request at INFO
    httpx_level = logging.INFO if level <= logging.DEBUG else logging.WARNING
    logging.getLogger("httpx").setLevel(httpx_level)
    logging.getLogger("httpcore").setLevel(max(level, logging.WARNING))

    return get_logger()


def get_logger(name: str | None = None) -> BoundLogger:
    """Get a structlog logger instance."""
    return structlog.get_logger(name)  # type: ignore[no-any-return]
