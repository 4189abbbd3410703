"""
Structured JSON Logging.

Every record is written as one JSON object.  Workflow outcomes are tagged
with an ``event`` name and a few well-known context fields (``email``,
``user_id``, ``error_code``, ``method``, ``detail``); those are promoted to
top-level keys so log queries can filter on them directly.  Anything else
passed through ``extra`` lands under ``context``.

Credential-bearing fields are never written: a key naming a token or
password is replaced by ``"[redacted]"``.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING, Optional, TextIO

if TYPE_CHECKING:
    from admin_console.config import AppConfig

# Promoted to the top level of each JSON line, in this order.
CONTEXT_FIELDS: tuple[str, ...] = ("event", "email", "user_id", "error_code", "method", "detail")

REDACTED = "[redacted]"
_SECRET_MARKERS: tuple[str, ...] = ("token", "password", "secret")

_RECORD_ATTRS: frozenset[str] = frozenset(
    logging.LogRecord(
        name="", level=0, pathname="", lineno=0, msg="", args=(), exc_info=None
    ).__dict__.keys()
) | {"message", "asctime", "taskName"}


def _is_secret(key: str) -> bool:
    lowered = key.lower()
    return any(marker in lowered for marker in _SECRET_MARKERS)


def _scalar(value: object) -> object:
    if value is None or isinstance(value, (bool, int, float)):
        return value
    return str(value)


class JSONFormatter(logging.Formatter):
    """One JSON object per record.

    Keys: ``timestamp``, ``level``, ``logger``, ``message``, then any
    present :data:`CONTEXT_FIELDS`, then ``context`` and ``exception``
    when there is something to put in them.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        supplied = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        }
        for key in CONTEXT_FIELDS:
            if key in supplied:
                value = supplied.pop(key)
                entry[key] = REDACTED if _is_secret(key) else _scalar(value)

        context = {
            key: REDACTED if _is_secret(key) else _scalar(value)
            for key, value in supplied.items()
        }
        if context:
            entry["context"] = context

        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            entry["exception"] = record.exc_text

        return json.dumps(entry, ensure_ascii=False)


class StructuredLogger:
    """Injectable wrapper around a named ``logging.Logger``.

    Handlers (stdout plus a rotating file) are attached once per logger
    name.  If the log file cannot be opened, output goes to the stream
    only.

    Usage::

        log = StructuredLogger(name="admin_console.auth")
        log.event("LOGIN_FAILED", "Sign-in failed for %s", email,
                  level=logging.WARNING, email=email, error_code=code)
    """

    def __init__(
        self,
        name: str = "admin_console",
        level: int = logging.INFO,
        stream: Optional[TextIO] = None,
        config: Optional["AppConfig"] = None,
    ) -> None:
        self._logger: logging.Logger = logging.getLogger(name)
        self._logger.setLevel(level)

        if not self._logger.handlers:
            if config is None:
                # Deferred: config imports the package version at module level.
                from admin_console.config import get_config

                config = get_config()
            self._attach_handlers(level, stream or sys.stdout, config)

    def _attach_handlers(self, level: int, stream: TextIO, config: "AppConfig") -> None:
        formatter = JSONFormatter()

        stream_handler = logging.StreamHandler(stream)
        stream_handler.setLevel(level)
        stream_handler.setFormatter(formatter)
        self._logger.addHandler(stream_handler)

        try:
            log_path = Path(config.LOG_FILE)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                filename=str(log_path),
                maxBytes=config.LOG_MAX_BYTES,
                backupCount=config.LOG_BACKUP_COUNT,
                encoding="utf-8",
            )
        except OSError as exc:
            self._logger.warning(
                "Could not open log file '%s'; logging to stream only: %s",
                config.LOG_FILE,
                exc,
            )
            return
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        self._logger.addHandler(file_handler)

    @property
    def logger(self) -> logging.Logger:
        """The underlying ``logging.Logger``."""
        return self._logger

    def event(
        self,
        event: str,
        message: str,
        *args: object,
        level: int = logging.INFO,
        **fields: object,
    ) -> None:
        """Log *message* tagged with *event* and the non-``None`` *fields*.

        Field names must not collide with ``logging.LogRecord`` attributes.
        """
        extra: dict[str, object] = {"event": event}
        extra.update({key: value for key, value in fields.items() if value is not None})
        self._logger.log(level, message, *args, extra=extra)

    def debug(self, msg: str, *args: object, **kwargs: object) -> None:
        self._logger.debug(msg, *args, **kwargs)

    def info(self, msg: str, *args: object, **kwargs: object) -> None:
        self._logger.info(msg, *args, **kwargs)

    def warning(self, msg: str, *args: object, **kwargs: object) -> None:
        self._logger.warning(msg, *args, **kwargs)

    def error(self, msg: str, *args: object, **kwargs: object) -> None:
        self._logger.error(msg, *args, **kwargs)


def get_logger(name: str = "admin_console") -> StructuredLogger:
    """Shorthand for ``StructuredLogger(name=name)``."""
    return StructuredLogger(name=name)
