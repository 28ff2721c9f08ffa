"""Logging setup for podagent.

Log calls pass their context as ``extra={"event": LogEvent..., "app_guid": ...}``.
Both formats render that context:
- text: ``... - message [event] namespace=ns-1 app_guid=abc pod=web-0``
- json: one object per line with the context as top-level keys
"""

import logging
import sys
import time
from collections.abc import Callable
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from cachetools import TTLCache
from pythonjsonlogger import json as jsonlogger

from podagent.config import LoggingConfig

# Extra keys identifying the instance a record is about, in render order
CONTEXT_FIELDS = ("namespace", "app_guid", "process_type", "pod")


def _context(record: logging.LogRecord) -> dict[str, str]:
    return {
        field: str(value)
        for field in CONTEXT_FIELDS
        if (value := getattr(record, field, None)) is not None
    }


def _event(record: logging.LogRecord) -> str | None:
    event = getattr(record, "event", None)
    if isinstance(event, Enum):
        return str(event.value)
    return event


class RateLimitFilter(logging.Filter):
    """Drop repeats of the same event for the same application.

    A failing API server makes every open termination watch and every stats
    call log the same warning. Records are keyed by level, event and
    application, so one app's failures never hide another's. Records without
    an event fall back to logger and message. ERROR and above always pass.
    """

    def __init__(
        self,
        rate_limit_seconds: float = 5.0,
        max_cache_size: int = 1000,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__()
        self._seen: TTLCache[tuple, bool] = TTLCache(
            maxsize=max_cache_size, ttl=rate_limit_seconds, timer=timer
        )

    @staticmethod
    def _key(record: logging.LogRecord) -> tuple:
        event = _event(record)
        if event is None:
            return (record.levelno, record.name, record.getMessage())
        return (record.levelno, event, getattr(record, "app_guid", None))

    def filter(self, record: logging.LogRecord) -> bool:
        if record.levelno >= logging.ERROR:
            return True
        key = self._key(record)
        if key in self._seen:
            return False
        self._seen[key] = True
        return True


class ContextTextFormatter(logging.Formatter):
    """Plain text with the event name and instance context appended."""

    def __init__(self) -> None:
        super().__init__("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        suffix = " ".join(f"{k}={v}" for k, v in _context(record).items())
        event = _event(record)
        if event:
            suffix = f"[{event}] {suffix}".rstrip()
        if not suffix:
            return line
        # Keep tracebacks below the context
        head, sep, tail = line.partition("\n")
        return f"{head} {suffix}{sep}{tail}"


class AgentJsonFormatter(jsonlogger.JsonFormatter):
    """One JSON object per record.

    Always carries timestamp, level, logger and service. The event name and
    the instance context (namespace, app_guid, process_type, pod) are
    top-level keys; extras logged as None are dropped.
    """

    def __init__(self, config: LoggingConfig, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._service = config.service_name

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        for key in [k for k, v in log_record.items() if v is None]:
            del log_record[key]

        log_record["timestamp"] = datetime.fromtimestamp(
            record.created, tz=timezone.utc
        ).isoformat()
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["service"] = self._service

        event = _event(record)
        if event is not None:
            log_record["event"] = event
        log_record.update(_context(record))

        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)


def setup_logging(config: LoggingConfig) -> None:
    """Route root and uvicorn logs through one rate-limited stdout handler."""
    formatter: logging.Formatter
    if config.format == "json":
        formatter = AgentJsonFormatter(config)
    else:
        formatter = ContextTextFormatter()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.addFilter(RateLimitFilter())

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(getattr(logging, config.level.upper(), logging.INFO))

    for name in ("uvicorn", "uvicorn.error"):
        server_logger = logging.getLogger(name)
        server_logger.handlers[:] = [handler]
        server_logger.propagate = False
    logging.getLogger("uvicorn.access").disabled = True

    # One line per pod list and watch request otherwise
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.WARNING)
