"""
Logging configuration for the ledger service.

``setup_logging`` configures the root logger exactly once. Local and
development environments get human-readable lines; production emits one
JSON object per line so records can be shipped as-is. Every record is
guaranteed a ``request_id`` attribute so formatters never fail on
records emitted outside a request.
"""

import json
import logging
from datetime import datetime, timezone

_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime", "request_id"}


class RequestIdFilter(logging.Filter):
    """Default ``request_id`` to ``"-"`` for records without one."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = "-"
        return True


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging"""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", "-"),
        }
        for key, value in vars(record).items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                log_entry[key] = value

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


def setup_logging(level: str = "INFO", environment: str = "local") -> None:
    """Configure the root logger.

    Parameters
    ----------
    level : str
        Logging level name (e.g. ``"DEBUG"``, ``"INFO"``). Case
        insensitive.
    environment : str
        ``"production"`` selects the JSON formatter; anything else
        selects the plain text one.
    """
    logger = logging.getLogger()
    if logger.handlers:
        # Already configured (tests, repeated app creation).
        return

    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    if environment == "production":
        formatter: logging.Formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(
            fmt="%(asctime)s [%(levelname)s] %(name)s [%(request_id)s]: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    handler = logging.StreamHandler()
    handler.addFilter(RequestIdFilter())
    handler.setFormatter(formatter)
    logger.addHandler(handler)


class RequestLoggerAdapter(logging.LoggerAdapter):
    """Adapter that merges its fields with per-call ``extra`` fields."""

    def process(self, msg, kwargs):
        kwargs["extra"] = {**(self.extra or {}), **kwargs.get("extra", {})}
        return msg, kwargs


def request_logger(name: str, request_id: str) -> RequestLoggerAdapter:
    return RequestLoggerAdapter(logging.getLogger(name), {"request_id": request_id})
