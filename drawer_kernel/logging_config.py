"""
Structured JSON logging for the drawer kernel.

Every kernel log line is one JSON object: the envelope (ts, level, logger,
message), the drawer context bound by the caller (which session, which
operator, which terminal), then the ``extra`` fields of the call.  The
message is the event name (``session_opened``, ``variance_detected``...).

Context is held in a single ContextVar so a bind inside a thread or task
never leaks into another one.
"""

__all__ = [
    "CONTEXT_FIELDS",
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any
from uuid import UUID

CONTEXT_FIELDS: tuple[str, ...] = (
    "correlation_id",
    "session_id",
    "actor_id",
    "terminal_id",
)

_context: ContextVar[dict[str, str]] = ContextVar("drawer_log_context", default={})


def _checked(fields: dict[str, Any]) -> dict[str, str]:
    unknown = set(fields) - set(CONTEXT_FIELDS)
    if unknown:
        raise ValueError(f"Unknown log context field(s): {', '.join(sorted(unknown))}")
    return {k: str(v) for k, v in fields.items() if v is not None}


class LogContext:
    """Drawer fields stamped on every log line of the current context."""

    @staticmethod
    def set(**fields: Any) -> None:
        """Merge fields into the current context. None values are ignored."""
        _context.set({**_context.get(), **_checked(fields)})

    @staticmethod
    def get_all() -> dict[str, str]:
        return dict(_context.get())

    @staticmethod
    def clear() -> None:
        _context.set({})

    @staticmethod
    @contextmanager
    def bind(**fields: Any) -> Iterator[None]:
        """Set fields for the duration of the block, then restore."""
        token = _context.set({**_context.get(), **_checked(fields)})
        try:
            yield
        finally:
            _context.reset(token)


# ---------------------------------------------------------------------------
# JSON Formatter
# ---------------------------------------------------------------------------

_RESERVED: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


class _JSONEncoder(json.JSONEncoder):
    """Money as its exact string, ids as str, timestamps as ISO 8601."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, (Decimal, UUID)):
            return str(obj)
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        return str(obj)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    # Typed kernel errors carry their data as public attributes
    for key, val in vars(exc).items():
        if not key.startswith("_"):
            fields[f"exc_{key}"] = val
    return fields


class StructuredFormatter(logging.Formatter):
    """Formats each log record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(_context.get())
        payload.update(
            (key, val)
            for key, val in vars(record).items()
            if key not in _RESERVED and key not in payload
        )

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, cls=_JSONEncoder)


# ---------------------------------------------------------------------------
# Logger factory and setup
# ---------------------------------------------------------------------------

_ROOT = "drawer_kernel"

_configured = False
_lock = threading.Lock()


def get_logger(name: str) -> logging.Logger:
    """Logger under the drawer_kernel namespace."""
    return logging.getLogger(f"{_ROOT}.{name}")


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """Attach one JSON handler to the drawer_kernel logger. Idempotent."""
    global _configured
    with _lock:
        if _configured:
            return
        _configured = True

        root = logging.getLogger(_ROOT)
        root.setLevel(level.upper() if isinstance(level, str) else level)
        root.propagate = False

        h = handler if handler is not None else logging.StreamHandler(stream or sys.stderr)
        h.setFormatter(StructuredFormatter())
        root.addHandler(h)


def reset_logging() -> None:
    """Drop the handler installed by configure_logging. Tests only."""
    global _configured
    with _lock:
        _configured = False
        root = logging.getLogger(_ROOT)
        root.handlers.clear()
        root.setLevel(logging.WARNING)
        root.propagate = True
