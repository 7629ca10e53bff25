from __future__ import annotations

import json
import logging
import os
import sys
import time
from contextlib import contextmanager
from typing import Any, Iterator, MutableMapping, Optional

LOG_LEVEL_ENV = "FILTRO_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "INFO"

_ROOT = "filtro"

# silent unless the application opts in
logging.getLogger(_ROOT).addHandler(logging.NullHandler())


def configure_logging(log_level: Optional[str] = None) -> None:
    """Attach a readable console handler to the package logger.

    Opt-in: applications that route logging themselves never need this.
    """
    level_name = (log_level or os.getenv(LOG_LEVEL_ENV) or DEFAULT_LOG_LEVEL).upper()
    level = getattr(logging, level_name, logging.INFO)

    root = logging.getLogger(_ROOT)
    root.setLevel(level)
    if not any(isinstance(h, logging.StreamHandler) for h in root.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(ConsoleFormatter())
        root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def _format_event(event: str, extra: Optional[MutableMapping[str, Any]] = None) -> str:
    payload: dict = {"event": event}
    if extra:
        payload.update(extra)
    return json.dumps(payload, default=str)


class ConsoleFormatter(logging.Formatter):
    """Console formatter that unwraps structured event payloads."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = time.strftime("%H:%M:%S", time.localtime(record.created))
        message = record.getMessage()
        details = ""

        try:
            payload = json.loads(message)
        except json.JSONDecodeError:
            payload = None

        if isinstance(payload, dict):
            event = payload.pop("event", None)
            message = event or message
            if payload:
                details = " " + " ".join(f"{k}={payload[k]}" for k in sorted(payload))
        output = f"{timestamp} | {record.levelname:<8} | {record.name} | {message}{details}"

        if record.exc_info:
            output += "\n" + self.formatException(record.exc_info)
        return output


def log_event(logger: logging.Logger, event: str, **extra: Any) -> None:
    logger.info(_format_event(event, extra))


@contextmanager
def log_timing(logger: logging.Logger, event: str, **extra: Any) -> Iterator[None]:
    """Log start and completion of a block with elapsed milliseconds."""
    start = time.perf_counter()
    logger.info(_format_event(event + ".start", extra))
    try:
        yield
    except Exception as e:
        elapsed = round((time.perf_counter() - start) * 1000, 2)
        logger.warning(_format_event(event + ".failed", {**extra, "elapsed_ms": elapsed, "error": type(e).__name__}))
        raise
    elapsed = round((time.perf_counter() - start) * 1000, 2)
    logger.info(_format_event(event + ".complete", {**extra, "elapsed_ms": elapsed}))
