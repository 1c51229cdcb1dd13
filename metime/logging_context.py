"""Request ID logging context for tracing booking commands across modules.

Every store-backed booking command runs under its own request ID, so the
validation, transaction and calendar log lines of one booking attempt can
be grepped together even when several customers book at once.

Usage:
    from metime.logging_context import get_request_logger, set_request_id

    set_request_id("BK-3F9A1C")
    logger = get_request_logger(__name__)
    logger.info("Reserving slot")  # record.request_id == "BK-3F9A1C"
"""

import logging
import uuid
from contextvars import ContextVar

_request_id: ContextVar[str] = ContextVar("request_id", default="NO_REQUEST_ID")


def new_request_id() -> str:
    """Generate a short booking request ID."""
    return f"BK-{uuid.uuid4().hex[:6].upper()}"


def set_request_id(request_id: str) -> None:
    """Set the request ID for the current async context."""
    _request_id.set(request_id)


def get_request_id() -> str:
    """Retrieve the current request ID."""
    return _request_id.get()


class RequestIdFilter(logging.Filter):
    """Injects request_id into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = _request_id.get()  # type: ignore[attr-defined]
        return True


def get_request_logger(name: str) -> logging.Logger:
    """Return a logger with the RequestIdFilter attached.

    The filter adds ``request_id`` to each record so formatters can
    include ``%(request_id)s`` in their format string.
    """
    logger = logging.getLogger(name)
    if not any(isinstance(f, RequestIdFilter) for f in logger.filters):
        logger.addFilter(RequestIdFilter())
    return logger
