"""
Structured JSON logging for the dividend kernel.

Every kernel module logs through ``get_logger(<module path>)`` under the
``dividend_kernel`` namespace.  Records are rendered as one JSON object
per line, carrying the call-scoped fields held in ``LogContext`` (which
ledger, which caller, which operation) plus whatever ``extra`` the call
site supplied.  Share and payout amounts are arbitrary-precision ints and
are written as JSON integers without loss.
"""

__all__ = [
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
from contextvars import ContextVar, Token
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

# ---------------------------------------------------------------------------
# Context propagation
# ---------------------------------------------------------------------------

_CONTEXT_VARS: dict[str, ContextVar[str | None]] = {
    name: ContextVar(f"dividend_log_{name}", default=None)
    for name in ("correlation_id", "ledger_id", "actor", "operation")
}


class LogContext:
    """
    Call-scoped log fields, safe across threads and asyncio tasks.

    ``LedgerService`` binds ``ledger_id``, ``actor`` and ``operation`` for
    the duration of each public operation; hosts may add a
    ``correlation_id`` to tie several operations together.
    """

    FIELDS = tuple(_CONTEXT_VARS)

    @classmethod
    def set(cls, **fields: str | None) -> None:
        """Set context fields. None values are ignored."""
        for name, value in fields.items():
            if value is not None:
                _field(name).set(value)

    @classmethod
    def get_all(cls) -> dict[str, str]:
        """Return the fields currently set, in declaration order."""
        return {
            name: var.get()
            for name, var in _CONTEXT_VARS.items()
            if var.get() is not None
        }

    @classmethod
    def clear(cls) -> None:
        for var in _CONTEXT_VARS.values():
            var.set(None)

    @classmethod
    def bind(cls, **fields: str | None) -> "_BoundContext":
        """Context manager that sets fields on entry and restores on exit."""
        return _BoundContext(fields)


def _field(name: str) -> ContextVar[str | None]:
    try:
        return _CONTEXT_VARS[name]
    except KeyError:
        raise TypeError(f"Unknown log context field: {name!r}") from None


class _BoundContext:
    def __init__(self, fields: dict[str, str | None]):
        self._fields = fields
        self._tokens: list[tuple[ContextVar[str | None], Token]] = []

    def __enter__(self) -> type[LogContext]:
        for name, value in self._fields.items():
            if value is not None:
                var = _field(name)
                self._tokens.append((var, var.set(value)))
        return LogContext

    def __exit__(self, *exc: Any) -> None:
        while self._tokens:
            var, token = self._tokens.pop()
            var.reset(token)


# ---------------------------------------------------------------------------
# JSON formatter
# ---------------------------------------------------------------------------

_RESERVED_RECORD_KEYS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _json_default(obj: Any) -> Any:
    if isinstance(obj, (UUID, Decimal)):
        return str(obj)
    if isinstance(obj, datetime):
        return obj.isoformat()
    return repr(obj)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    """``exc_*`` fields for an exception, including a ledger error's code."""
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    for key, value in vars(exc).items():
        if not key.startswith("_"):
            fields[f"exc_{key}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """One JSON object per record: envelope, context, extras, exception."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(LogContext.get_all())
        payload.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _RESERVED_RECORD_KEYS and key not in payload
        )

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_json_default)


# ---------------------------------------------------------------------------
# Logger factory and setup
# ---------------------------------------------------------------------------

ROOT_LOGGER_NAME = "dividend_kernel"

_configured = False
_lock = threading.Lock()


def get_logger(name: str) -> logging.Logger:
    """Return ``dividend_kernel.<name>``."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Attach a JSON handler to the ``dividend_kernel`` logger.

    Idempotent: only the first call has an effect until reset_logging().
    ``level`` may be a logging constant or a level name such as "DEBUG",
    which is how it arrives from the YAML settings.
    """
    global _configured
    with _lock:
        if _configured:
            return
        _configured = True

    kernel_logger = logging.getLogger(ROOT_LOGGER_NAME)
    kernel_logger.setLevel(level.upper() if isinstance(level, str) else level)
    kernel_logger.propagate = False

    if handler is None:
        handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(StructuredFormatter())
    kernel_logger.addHandler(handler)


def reset_logging() -> None:
    """Remove handlers and forget configuration. For tests."""
    global _configured
    with _lock:
        _configured = False
    kernel_logger = logging.getLogger(ROOT_LOGGER_NAME)
    kernel_logger.handlers.clear()
    kernel_logger.setLevel(logging.WARNING)
