"""
Structured JSON logging for the cooperative ledger kernel.

Every record is one JSON line.  Fields bound through ``LogContext`` (the
loan being written, the period being reconciled, the member or operator
acting) are merged into each record emitted inside the binding, so
service code logs only what is specific to the event.

Values in ``extra`` may be domain objects: UUIDs, dates, Decimals and
enums get a fixed JSON rendering; anything else (Money, Period) is
rendered with ``str``.
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
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Context propagation
# ---------------------------------------------------------------------------

_CONTEXT_FIELDS: dict[str, ContextVar[str | None]] = {
    name: ContextVar(f"coop_log_{name}", default=None)
    for name in ("correlation_id", "actor_id", "member_id", "loan_id", "period")
}


def _context_var(name: str) -> ContextVar[str | None]:
    try:
        return _CONTEXT_FIELDS[name]
    except KeyError:
        raise TypeError(
            f"unknown log context field {name!r}; "
            f"expected one of {', '.join(_CONTEXT_FIELDS)}"
        ) from None


class LogContext:
    """
    Context-local log fields, safe across threads and asyncio tasks.

    ``loan_id`` is bound by LoanService around every loan write and
    ``period`` by ReportingService around a reconciliation.  Values are
    stored as strings; a UUID or Period may be passed directly.
    """

    FIELDS = tuple(_CONTEXT_FIELDS)

    @classmethod
    def set(cls, **fields: object) -> None:
        """Set fields for the rest of the current context. None values are skipped."""
        for name, value in fields.items():
            var = _context_var(name)
            if value is not None:
                var.set(str(value))

    @classmethod
    def get_all(cls) -> dict[str, str]:
        """The fields currently set, in declaration order."""
        return {
            name: value
            for name, var in _CONTEXT_FIELDS.items()
            if (value := var.get()) is not None
        }

    @classmethod
    def clear(cls) -> None:
        for var in _CONTEXT_FIELDS.values():
            var.set(None)

    @staticmethod
    @contextmanager
    def bind(**fields: object) -> Iterator[type["LogContext"]]:
        """Set fields for the duration of a ``with`` block, then restore them."""
        tokens = []
        for name, value in fields.items():
            var = _context_var(name)
            if value is not None:
                tokens.append((var, var.set(str(value))))
        try:
            yield LogContext
        finally:
            for var, token in reversed(tokens):
                var.reset(token)


# ---------------------------------------------------------------------------
# JSON Formatter
# ---------------------------------------------------------------------------

_RESERVED_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "asctime", "taskName"}


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    # UUID, Decimal, Money, Period
    return str(obj)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    """Type, message, code and public attributes of a ledger exception."""
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    for name, value in vars(exc).items():
        if not name.startswith("_") and name != "code":
            fields[f"exc_{name}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """One JSON object per record: ts, level, logger, message, context, extras."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }
        payload.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _RESERVED_ATTRS and key not in payload
        )

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_json_default)


# ---------------------------------------------------------------------------
# Logger factory and initialization
# ---------------------------------------------------------------------------

_ROOT_LOGGER = "coop_kernel"

_configured = False
_configure_lock = threading.Lock()


def get_logger(name: str) -> logging.Logger:
    """A logger under ``coop_kernel``, e.g. get_logger("services.loan")."""
    return logging.getLogger(f"{_ROOT_LOGGER}.{name}")


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Attach one JSON handler to the ``coop_kernel`` logger.

    Only the first call has an effect until ``reset_logging``; the engine
    calls this on initialization, so an application that configured
    logging earlier keeps its handler.
    """
    global _configured
    with _configure_lock:
        if _configured:
            return
        _configured = True

    root = logging.getLogger(_ROOT_LOGGER)
    root.setLevel(level)
    root.propagate = False

    target = handler if handler is not None else logging.StreamHandler(stream or sys.stderr)
    target.setFormatter(StructuredFormatter())
    root.addHandler(target)


def reset_logging() -> None:
    """Drop the handler so the next configure_logging call takes effect. Tests only."""
    global _configured
    with _configure_lock:
        _configured = False
    root = logging.getLogger(_ROOT_LOGGER)
    root.handlers.clear()
    root.setLevel(logging.WARNING)
