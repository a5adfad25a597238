"""Centralized retry / backoff helpers.

Provides ``run_with_retries`` which encapsulates exponential backoff with
jitter for transient GitHub failures: rate limiting (HTTP 429, or 403 with a
rate-limit / abuse message), 5xx gateway hiccups and dropped connections.

Environment overrides:
  GOALSYNC_RETRY_ATTEMPTS (default 3)
  GOALSYNC_RETRY_BASE (seconds base, default 0.5)
  GOALSYNC_RETRY_MAX_SLEEP (cap in seconds, optional)

The caller supplies a thunk returning the desired result or raising. Only
transient failures trigger a retry; everything else propagates immediately.
Callers sending non-idempotent requests pass ``rate_limit_only=True``.
"""

from __future__ import annotations

import os
import random
import re
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TypeVar

import requests

from .logging import get_logger

T = TypeVar("T")

TRANSIENT_TOKENS = (
    "rate limit",
    "abuse detection",
    "secondary rate",
)

RETRY_STATUSES = frozenset({403, 429, 502, 503, 504})
# statuses that prove the request was refused before it took effect
RATE_LIMIT_STATUSES = frozenset({403, 429})

_RE_RETRY_AFTER = re.compile(r"retry[-\s]after:?\s*(\d+)", re.IGNORECASE)
_RE_SECONDS_HINT = re.compile(r"wait\s*(\d+)\s*seconds", re.IGNORECASE)
_JITTER = random.SystemRandom()


def _extract_explicit_backoff(text: str) -> float | None:
    """Extract an explicit backoff (seconds) from error output.

    Supports patterns like:
      Retry-After: 12
      retry after 12
      wait 30 seconds
    Returns None if no valid positive value found.
    """
    if not text:
        return None
    for pattern in (_RE_RETRY_AFTER, _RE_SECONDS_HINT):
        m = pattern.search(text)
        if m:
            val = float(m.group(1))
            return val if val > 0 else None
    return None


def _env_int(name: str, default: int) -> int:
    return int(os.environ.get(name, str(default)))


def _env_float(name: str, default: float) -> float:
    return float(os.environ.get(name, str(default)))


@dataclass
class RetryConfig:
    attempts: int = field(default_factory=lambda: _env_int("GOALSYNC_RETRY_ATTEMPTS", 3))
    base_sleep: float = field(default_factory=lambda: _env_float("GOALSYNC_RETRY_BASE", 0.5))


def is_transient(output: str) -> bool:
    out_lower = output.lower()
    return any(tok in out_lower for tok in TRANSIENT_TOKENS)


def transient_output(exc: BaseException, *, rate_limit_only: bool = False) -> str | None:
    """Return the text to inspect for backoff hints if ``exc`` is worth retrying.

    With ``rate_limit_only`` only rate limiting counts: a 5xx, a timeout or a
    dropped connection may hide a request that already landed.
    """
    if isinstance(exc, (requests.ConnectionError, requests.Timeout)):
        return None if rate_limit_only else (str(exc) or exc.__class__.__name__)
    status = getattr(exc, "status", None)
    if status not in (RATE_LIMIT_STATUSES if rate_limit_only else RETRY_STATUSES):
        return None
    text = f"{exc} {getattr(exc, 'response_text', None) or ''}"
    retry_after = getattr(exc, "retry_after", None)
    if retry_after:
        text += f" retry-after: {retry_after}"
    if status == 403 and not is_transient(text):  # noqa: PLR2004 - plain permission error
        return None
    return text


def _compute_sleep(attempt: int, cfg: RetryConfig, out: str) -> float:
    explicit = _extract_explicit_backoff(out)
    backoff = cfg.base_sleep * (2 ** (attempt - 1)) + _JITTER.uniform(0, 0.25)
    sleep_for: float = explicit if explicit is not None else backoff
    max_cap_env = os.environ.get("GOALSYNC_RETRY_MAX_SLEEP")
    if max_cap_env:
        try:
            cap = float(max_cap_env)
        except ValueError:
            return sleep_for
        if cap >= 0:
            sleep_for = min(sleep_for, cap)
    return sleep_for


def run_with_retries(
    fn: Callable[[], T],
    *,
    cfg: RetryConfig | None = None,
    sleep: Callable[[float], None] = time.sleep,
    rate_limit_only: bool = False,
) -> T:
    cfg = cfg or RetryConfig()
    attempts = max(1, cfg.attempts)
    for attempt in range(1, attempts + 1):
        try:
            return fn()
        except Exception as exc:
            out = transient_output(exc, rate_limit_only=rate_limit_only)
            if out is None or attempt >= attempts:
                raise
            sleep_for = _compute_sleep(attempt, cfg, out)
            get_logger().warning(
                f"[retry] transient error, attempt {attempt}/{attempts}, sleeping {sleep_for:.2f}s",
                error=str(exc),
            )
            sleep(sleep_for)
    raise RuntimeError("retry logic exited unexpectedly")  # pragma: no cover


__all__ = [
    "RATE_LIMIT_STATUSES",
    "RetryConfig",
    "is_transient",
    "run_with_retries",
    "transient_output",
]
