"""Centralized retry / backoff helpers.

Provides a single small function ``run_with_retries`` that encapsulates
exponential backoff with jitter and simple classification of transient
GitHub API failure modes (connection drops, timeouts, 429/5xx gateway
responses, rate limit / abuse messages).

Environment overrides:
  ISSUESYNC_RETRY_ATTEMPTS (default 3)
  ISSUESYNC_RETRY_BASE (seconds base, default 0.5)
  ISSUESYNC_RETRY_MAX_SLEEP (optional cap per sleep)

Only idempotent reads go through this helper; the REST client never
retries POST/PATCH so a slow create can't be issued twice.
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

from .errors import redact
from .logging import get_logger

T = TypeVar("T")

TRANSIENT_TOKENS = (
    "rate limit",
    "abuse detection",
    "secondary rate",
)
TRANSIENT_STATUSES = frozenset({429, 502, 503, 504})

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
    attempts: int = field(default_factory=lambda: _env_int("ISSUESYNC_RETRY_ATTEMPTS", 3))
    base_sleep: float = field(default_factory=lambda: _env_float("ISSUESYNC_RETRY_BASE", 0.5))


def is_transient(output: str) -> bool:
    out_lower = output.lower()
    return any(tok in out_lower for tok in TRANSIENT_TOKENS)


def _error_text(exc: BaseException) -> str:
    text = str(exc)
    response_text = getattr(exc, "response_text", None)
    if isinstance(response_text, str) and response_text:
        text = f"{text}\n{response_text}"
    retry_after = getattr(exc, "retry_after", None)
    if retry_after:
        text = f"{text}\nRetry-After: {retry_after}"
    return text


def is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, (requests.ConnectionError, requests.Timeout)):
        return True
    status = getattr(exc, "status", None)
    if isinstance(status, int) and status in TRANSIENT_STATUSES:
        return True
    if isinstance(status, int) and status == 403:
        # GitHub reports secondary rate limits as 403 with an explanatory body
        return is_transient(_error_text(exc))
    return False


def _compute_sleep(attempt: int, cfg: RetryConfig, out: str) -> float:
    explicit = _extract_explicit_backoff(out)
    backoff = cfg.base_sleep * (2 ** (attempt - 1)) + _JITTER.uniform(0, 0.25)
    sleep_for: float = explicit if explicit is not None else backoff
    max_cap_env = os.environ.get("ISSUESYNC_RETRY_MAX_SLEEP")
    if max_cap_env:
        try:
            cap = float(max_cap_env)
        except ValueError:
            return sleep_for
        if cap >= 0:
            sleep_for = min(sleep_for, cap)
    return sleep_for


def run_with_retries(fn: Callable[[], T], *, cfg: RetryConfig | None = None) -> T:
    cfg = cfg or RetryConfig()
    attempts = max(1, cfg.attempts)
    for attempt in range(1, attempts + 1):
        try:
            return fn()
        except Exception as exc:
            if attempt >= attempts or not is_retryable(exc):
                raise
            sleep_for = _compute_sleep(attempt, cfg, _error_text(exc))
            get_logger().warning(
                f"[retry] transient error, attempt {attempt}/{attempts}, sleeping {sleep_for:.2f}s",
                operation="retry",
                error=redact(str(exc)),
            )
            time.sleep(sleep_for)
    raise RuntimeError("retry logic exited unexpectedly")  # pragma: no cover


__all__ = ["RetryConfig", "run_with_retries", "is_transient", "is_retryable"]
