"""
JSON logging for the login app.

Every line written by a :class:`StructuredLogger` is one JSON object, so the
console output and the rotating log file can both be read back as the
login audit trail.  Handler settings come from :class:`AppConfig`
(``LOG_LEVEL``, ``LOG_FILE``, ``LOG_MAX_BYTES``, ``LOG_BACKUP_COUNT``) unless
the caller overrides them.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, TextIO, Union

from flight_login.config import get_config

JSONScalar = Union[str, int, float, bool, None]


class JSONFormatter(logging.Formatter):
    """Render a record as ``{timestamp, level, logger_name, message}``.

    Fields passed through ``extra=`` land under ``"extra"``; scalars keep
    their JSON type and anything else is stringified.  Exception text goes
    under ``"exception"``.
    """

    _RECORD_ATTRS: frozenset[str] = frozenset(
        logging.LogRecord(
            name="", level=0, pathname="", lineno=0, msg="", args=(), exc_info=None
        ).__dict__.keys()
    ) | {"message", "asctime", "taskName"}

    @staticmethod
    def _json_value(value: object) -> JSONScalar:
        if value is None or isinstance(value, (str, int, float, bool)):
            return value
        return str(value)

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger_name": record.name,
            "message": record.getMessage(),
        }

        extra = {
            key: self._json_value(value)
            for key, value in record.__dict__.items()
            if key not in self._RECORD_ATTRS
        }
        if extra:
            entry["extra"] = extra

        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            entry["exception"] = record.exc_text

        return json.dumps(entry, ensure_ascii=False)


def _resolve_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    return logging.getLevelNamesMapping().get(level.upper(), logging.INFO)


def _rotating_file_handler(
    log_file: str,
    max_bytes: int,
    backup_count: int,
) -> RotatingFileHandler:
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    return RotatingFileHandler(
        filename=str(log_path),
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )


class StructuredLogger:
    """A named ``logging.Logger`` wired with :class:`JSONFormatter`.

    Services receive one of these in their constructor rather than calling
    ``logging.getLogger`` themselves::

        log = StructuredLogger(name="login")
        log.info("Login attempt for %s.", "admin", extra={"event": "LOGIN_ATTEMPT"})

    Handlers are attached once per logger name.  ``log_file=""`` keeps the
    logger console-only.
    """

    def __init__(
        self,
        name: str = "flight_login",
        level: Union[int, str, None] = None,
        stream: Optional[TextIO] = None,
        log_file: Optional[str] = None,
        max_bytes: Optional[int] = None,
        backup_count: Optional[int] = None,
    ) -> None:
        cfg = get_config()
        resolved_level = _resolve_level(level if level is not None else cfg.LOG_LEVEL)

        self._logger: logging.Logger = logging.getLogger(name)
        self._logger.setLevel(resolved_level)

        if self._logger.handlers:
            return

        formatter = JSONFormatter()
        console = logging.StreamHandler(stream or sys.stdout)
        console.setFormatter(formatter)
        self._logger.addHandler(console)

        target = log_file if log_file is not None else cfg.LOG_FILE
        if not target:
            return
        try:
            file_handler = _rotating_file_handler(
                target,
                max_bytes if max_bytes is not None else cfg.LOG_MAX_BYTES,
                backup_count if backup_count is not None else cfg.LOG_BACKUP_COUNT,
            )
        except OSError as exc:
            self._logger.warning(
                "Log file %s unavailable (%s); logging to console only.",
                target,
                exc,
            )
            return
        file_handler.setFormatter(formatter)
        self._logger.addHandler(file_handler)

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def debug(self, msg: str, *args: object, **kwargs: object) -> None:
        self._logger.debug(msg, *args, **kwargs)

    def info(self, msg: str, *args: object, **kwargs: object) -> None:
        self._logger.info(msg, *args, **kwargs)

    def warning(self, msg: str, *args: object, **kwargs: object) -> None:
        self._logger.warning(msg, *args, **kwargs)

    def error(self, msg: str, *args: object, **kwargs: object) -> None:
        self._logger.error(msg, *args, **kwargs)


def get_logger(name: str = "flight_login") -> StructuredLogger:
    """Return a config-driven :class:`StructuredLogger` called *name*."""
    return StructuredLogger(name=name)
