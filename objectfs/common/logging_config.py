"""
Logging setup for objectfs.

Records are rendered as JSON lines (or plain text) on stderr. Tree
operations on a storage adapter run under an operation id, carried in a
context variable, so every record they emit can be correlated.
"""

import json
import logging
import time
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Iterator, Optional

from objectfs.config.settings import Settings, get_settings

# Name of the handler setup_logging installs on the root logger
HANDLER_NAME = "objectfs"

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

operation_id_ctx: ContextVar[Optional[str]] = ContextVar(
    "operation_id", default=None)


class StructuredFormatter(logging.Formatter):
    """One JSON object per record, with the current operation id if any."""

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry = {
            "timestamp": created.isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "source": f"{record.module}.{record.funcName}:{record.lineno}",
        }

        operation_id = operation_id_ctx.get()
        if operation_id:
            entry["operation_id"] = operation_id

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        # Fields attached with extra={"extra_fields": {...}}
        entry.update(getattr(record, "extra_fields", {}))

        return json.dumps(entry, default=str)


class PerformanceTracker:
    """
    Time a block and log how it ended.

    A DEBUG record is written on entry. On exit a record carrying
    ``duration_ms`` is written at ``log_level``, or at ERROR with the
    exception type and message if the block raised. Exceptions propagate.

    Usage:
        with PerformanceTracker("storage.copy", logger, src=src, dst=dst):
            fileops.copy(...)
    """

    def __init__(
        self,
        operation: str,
        logger: logging.Logger,
        log_level: int = logging.INFO,
        **extra_fields,
    ):
        self.operation = operation
        self.logger = logger
        self.log_level = log_level
        self.extra_fields = extra_fields
        self.duration_ms: Optional[float] = None
        self._started: Optional[float] = None

    def _fields(self, **more) -> dict:
        fields = {"operation": self.operation, **self.extra_fields, **more}
        operation_id = operation_id_ctx.get()
        if operation_id:
            fields["operation_id"] = operation_id
        return {"extra_fields": fields}

    def __enter__(self):
        self._started = time.perf_counter()
        self.logger.debug(
            "Starting operation: %s", self.operation, extra=self._fields())
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration_ms = round((time.perf_counter() - self._started) * 1000, 2)

        if exc_type is None:
            self.logger.log(
                self.log_level,
                "Operation completed: %s",
                self.operation,
                extra=self._fields(duration_ms=self.duration_ms),
            )
        else:
            self.logger.error(
                "Operation failed: %s",
                self.operation,
                extra=self._fields(
                    duration_ms=self.duration_ms,
                    error=str(exc_val),
                    error_type=exc_type.__name__,
                ),
            )
        return False


def _parse_level(log_level: str) -> int:
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level!r}")
    return level


def setup_logging(log_level: str = "INFO", json_format: bool = True) -> logging.Handler:
    """
    Install the objectfs stderr handler on the root logger.

    Calling this again replaces the handler installed by the previous call.
    Handlers added by anything else are left alone.

    Args:
        log_level: Level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Emit JSON lines if True, plain text otherwise

    Returns:
        The installed handler

    Raises:
        ValueError: If log_level is not a known level name
    """
    level = _parse_level(log_level)
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        if handler.get_name() == HANDLER_NAME:
            root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.set_name(HANDLER_NAME)
    handler.setLevel(level)
    handler.setFormatter(
        StructuredFormatter() if json_format else logging.Formatter(TEXT_FORMAT))

    root_logger.addHandler(handler)
    root_logger.setLevel(level)
    return handler


def configure_logging(settings: Optional[Settings] = None) -> logging.Handler:
    """Apply the log_level and log_json settings to the root logger."""
    settings = settings or get_settings()
    return setup_logging(settings.log_level, settings.log_json)


def set_operation_id(operation_id: Optional[str] = None) -> str:
    """Set the operation id for the current context, generating one if omitted."""
    if operation_id is None:
        operation_id = uuid.uuid4().hex
    operation_id_ctx.set(operation_id)
    return operation_id


def get_operation_id() -> Optional[str]:
    return operation_id_ctx.get()


def clear_operation_id() -> None:
    operation_id_ctx.set(None)


@contextmanager
def operation_scope(operation_id: Optional[str] = None) -> Iterator[str]:
    """
    Run a block under an operation id.

    An id already set by the caller is reused unless one is passed in.
    The previous value is restored on exit.
    """
    current = operation_id_ctx.get()
    if operation_id is None and current is not None:
        yield current
        return

    token = operation_id_ctx.set(operation_id or uuid.uuid4().hex)
    try:
        yield operation_id_ctx.get()
    finally:
        operation_id_ctx.reset(token)
