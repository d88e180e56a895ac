"""
Logging setup shared by the HTTP and MCP entry points.

- `configure_logging()` is called once at startup.
- Modules log through `logging.getLogger(__name__)`.
- `log_adapter()` attaches the request correlation id to every record.
"""

from __future__ import annotations

import logging
import sys

from .config import Settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s cid=%(cid)s %(message)s"


class CorrelationIdFilter(logging.Filter):
    """Default `cid` to "-" for records logged outside a request."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "cid"):
            record.cid = "-"
        return True


def configure_logging(settings: Settings, stream=sys.stdout) -> None:
    """Initialize global logging once at startup."""
    # Hard mute for CI/benchmarks
    if settings.mute_all_logs:
        logging.disable(logging.CRITICAL)
        return

    logging.basicConfig(
        level=settings.log_level,
        format=LOG_FORMAT,
        stream=stream,
    )
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, CorrelationIdFilter) for f in handler.filters):
            handler.addFilter(CorrelationIdFilter())

    # Keep uvicorn loggers consistent with the app level
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).setLevel(settings.log_level)

    if not settings.access_log:
        logging.getLogger("uvicorn.access").disabled = True


def log_adapter(logger: logging.Logger, cid: str | None) -> logging.LoggerAdapter:
    """Return a `LoggerAdapter` that injects an optional correlation id."""
    return logging.LoggerAdapter(logger, extra={"cid": cid} if cid else {})
