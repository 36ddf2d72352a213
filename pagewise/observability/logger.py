"""
Logger configuration.

Configures the root logger once at application startup. Every record is
stamped with the correlation ID of the HTTP request it was emitted under,
or ``-`` for scheduler and startup work.

Dependencies: logging (stdlib), pagewise.observability.middleware
System role: Centralized logging configuration
"""

import logging
import sys

from pagewise.observability.middleware import get_correlation_id

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(correlation_id)s] %(message)s"

# Libraries that log per request, per statement or per page at INFO/DEBUG
QUIET_LOGGERS = (
    "httpx",
    "httpcore",
    "aiosqlite",
    "sqlalchemy.engine",
    "pypdf",
    "faiss",
    "langchain_google_genai",
    "google_genai",
)


class CorrelationIdFilter(logging.Filter):
    """Adds ``correlation_id`` to every record passing the handler."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "correlation_id", None):
            record.correlation_id = get_correlation_id() or "-"
        return True


def configure_logging(level: str = "INFO") -> None:
    """
    Install a single stdout handler on the root logger.

    Calling this again replaces the handler instead of stacking a second one,
    so reloading the app does not duplicate output.

    Args:
        level: Root logging level name (DEBUG, INFO, ...)
    """
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(CorrelationIdFilter())
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
