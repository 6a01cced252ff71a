"""Structured JSON logger for scrapshare.

Share failures are silent to the end user, so these records are the only
diagnostic trace an operator gets.  Every record is a single-line JSON
object::

    {"ts": "2026-03-05T10:00:00.123456+00:00", "level": "WARNING",
     "logger": "scrapshare.pipeline", "component": "pipeline",
     "message": "Share failed", "stage": "uploading", "code": "UPLOAD_ERROR"}

The default level is read from the ``SCRAPSHARE_LOG_LEVEL`` environment
variable (``INFO`` when unset), so a host can turn on stage-by-stage DEBUG
tracing without code changes.

Usage::

    from scrapshare.observability import get_logger

    log = get_logger("scrapshare.pipeline")
    log.info("Share finished", extra={"extra_fields": {"outcome": "delivered"}})
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

from scrapshare.errors import ScrapshareError

LOG_LEVEL_ENV = "SCRAPSHARE_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "INFO"

_ROOT = "scrapshare"


def _component(logger_name: str) -> str:
    """``scrapshare.upload`` -> ``upload``; the root logger is ``core``."""
    if logger_name == _ROOT:
        return "core"
    prefix = _ROOT + "."
    return logger_name[len(prefix):] if logger_name.startswith(prefix) else logger_name


def _resolve_level(level: int | str | None) -> int:
    if level is None:
        level = os.environ.get(LOG_LEVEL_ENV) or DEFAULT_LOG_LEVEL
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    # getLevelName returns "Level X" for unknown names.
    return resolved if isinstance(resolved, int) else logging.INFO


class StructuredFormatter(logging.Formatter):
    """Format log records as single-line JSON objects.

    Guaranteed keys are ``ts`` (ISO-8601 UTC), ``level``, ``logger``,
    ``component`` and ``message``.  Fields passed via
    ``extra={"extra_fields": {...}}`` are merged into the top-level object.
    When the record carries a :class:`~scrapshare.errors.ScrapshareError`
    its ``code`` and ``context`` are added next to the formatted traceback.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "component": _component(record.name),
            "message": record.getMessage(),
        }

        extra_fields: dict[str, Any] | None = getattr(record, "extra_fields", None)
        if extra_fields is not None:
            log_entry.update(extra_fields)

        if record.exc_info and record.exc_info[1] is not None:
            exc = record.exc_info[1]
            log_entry["exception"] = self.formatException(record.exc_info)
            if isinstance(exc, ScrapshareError):
                log_entry.setdefault("code", getattr(exc.code, "value", exc.code))
                log_entry.setdefault("context", exc.context)

        if record.stack_info:
            log_entry["stack_info"] = self.formatStack(record.stack_info)

        return json.dumps(log_entry, default=str)


_configured_loggers: set[str] = set()


def get_logger(
    name: str = _ROOT,
    *,
    level: int | str | None = None,
    stream: Any | None = None,
) -> logging.Logger:
    """Get or create a structured JSON logger.

    Parameters
    ----------
    name:
        Logger name, conventionally ``scrapshare.<component>``.
    level:
        Minimum log level, as an ``int`` or a case-insensitive string.
        Defaults to ``$SCRAPSHARE_LOG_LEVEL``, then ``INFO``.  Unknown level
        names fall back to ``INFO``.
    stream:
        Output stream for the handler.  Defaults to ``sys.stderr``.

    Returns
    -------
    logging.Logger
        A logger with a :class:`StructuredFormatter` handler attached.
        Repeated calls with the same *name* return the same logger without
        adding handlers.
    """
    logger = logging.getLogger(name)

    if name not in _configured_loggers:
        logger.setLevel(_resolve_level(level))

        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(StructuredFormatter())
        logger.addHandler(handler)
        logger.propagate = False

        _configured_loggers.add(name)

    return logger
