"""Structured logging for goalsync.

One process-wide ``StructuredLogger`` (``get_logger``) writes either plain
lines or one JSON object per record to stderr. Keyword arguments passed to
the helpers become top-level JSON fields.
"""

from __future__ import annotations

import json
import logging
import sys
import time
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any

PLAIN_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

# Fields that always come first, in this order, when present on a record.
_LEADING_FIELDS = (
    "operation",
    "action",
    "issue_number",
    "timeframe",
    "pass_number",
    "duration_ms",
    "commit",
    "error",
)

# Attributes every LogRecord carries; anything else arrived through ``extra``.
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName"}


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for attr in _LEADING_FIELDS:
            if hasattr(record, attr):
                entry[attr] = getattr(record, attr)
        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRS or key.startswith("_") or key in entry:
                continue
            entry[key] = value
        return json.dumps(entry, default=str)


class StructuredLogger:
    def __init__(
        self, name: str = "goalsync", json_logging: bool = False, level: str = "INFO"
    ) -> None:
        self._logger = logging.getLogger(name)
        self._logger.setLevel(getattr(logging, level.upper(), logging.INFO))
        for h in list(self._logger.handlers):
            self._logger.removeHandler(h)
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(JSONFormatter() if json_logging else logging.Formatter(PLAIN_FORMAT))
        self._logger.addHandler(handler)
        self._logger.propagate = False
        # JSON consumers get each distinct record once in a row
        self._dedupe = json_logging
        self._last: tuple[int, str, tuple[tuple[str, str], ...]] | None = None

    def _emit(self, level: int, message: str, extra: dict[str, Any]) -> None:
        if self._dedupe:
            signature = (level, message, tuple(sorted((k, repr(v)) for k, v in extra.items())))
            if signature == self._last:
                return
            self._last = signature
        self._logger.log(level, message, extra=extra)

    def log_operation(self, operation: str, **kw: Any) -> None:
        self._emit(logging.INFO, f"Operation: {operation}", {"operation": operation, **kw})

    def log_pass(self, pass_number: int, *, documents: int, actions: int, **kw: Any) -> None:
        """One line per convergence pass once its actions are planned."""
        extra = {
            "operation": "pass_planned",
            "pass_number": pass_number,
            "documents": documents,
            "actions": actions,
            **kw,
        }
        self._emit(
            logging.INFO,
            f"Pass {pass_number}: {actions} action(s) for {documents} document(s)",
            extra,
        )

    def log_action(
        self,
        action: str,
        description: str,
        issue_number: int | None = None,
        commit: bool = True,
        **kw: Any,
    ) -> None:
        extra: dict[str, Any] = {
            "operation": f"action_{action}",
            "action": action,
            "commit": commit,
            **kw,
        }
        if issue_number:
            extra["issue_number"] = issue_number
        suffix = "" if commit else " [DRY]"
        self._emit(logging.INFO, f"{action}: {description}{suffix}", extra)

    def log_performance(self, operation: str, duration_ms: float, **kw: Any) -> None:
        self._emit(
            logging.INFO,
            f"Performance: {operation} completed in {duration_ms:.2f}ms",
            {"operation": operation, "duration_ms": round(duration_ms, 2), **kw},
        )

    def log_error(self, message: str, error: str | None = None, **kw: Any) -> None:
        extra = dict(kw)
        if error:
            extra["error"] = error
        self._logger.error(message, extra=extra)

    def debug(self, message: str, **kw: Any) -> None:
        self._logger.debug(message, extra=kw)

    def info(self, message: str, **kw: Any) -> None:
        self._logger.info(message, extra=kw)

    def warning(self, message: str, **kw: Any) -> None:
        self._logger.warning(message, extra=kw)

    @contextmanager
    def timed_operation(self, operation: str, **kw: Any) -> Iterator[None]:  # noqa: D401
        """Log ``<operation>_start``, then the duration or the failure."""
        start = time.perf_counter()
        self.log_operation(f"{operation}_start", **kw)
        try:
            yield
        except Exception as exc:
            self.log_error(f"operation {operation} failed", error=str(exc), **kw)
            raise
        self.log_performance(operation, (time.perf_counter() - start) * 1000, **kw)


_GLOBAL: StructuredLogger | None = None


def get_logger() -> StructuredLogger:
    global _GLOBAL  # noqa: PLW0603
    if _GLOBAL is None:
        _GLOBAL = StructuredLogger()
    return _GLOBAL


def configure_logging(json_logging: bool = False, level: str = "INFO") -> StructuredLogger:
    global _GLOBAL  # noqa: PLW0603
    _GLOBAL = StructuredLogger(json_logging=json_logging, level=level)
    return _GLOBAL


__all__ = ["JSONFormatter", "StructuredLogger", "configure_logging", "get_logger"]
