"""Error taxonomy & redaction helpers.

Every per-file failure the reconciler catches is passed through
``classify_error`` before it is logged, so tokens echoed back by the API or
embedded in exception text never reach CI output.

Public API:
- classify_error(exc) -> ErrorInfo
- redact(text) -> str
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

import requests

# Simple token patterns; can be expanded (e.g., GitHub token, private key markers)
_SENSITIVE_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"ghp_[A-Za-z0-9]{20,40}"),  # GitHub classic tokens
    re.compile(r"ghs_[A-Za-z0-9]{20,40}"),  # Actions installation tokens
    re.compile(r"github_pat_\w{20,}"),  # GitHub fine-grained tokens
    re.compile(r"(?i)bearer\s+[A-Za-z0-9_\-\.]{8,}"),
]

_REDACTION_PLACEHOLDER = "<redacted>"

_TRANSIENT_STATUSES = frozenset({429, 502, 503, 504})


class ConfigError(RuntimeError):
    """Fatal startup problem (missing token, repository or workspace)."""


@dataclass
class ErrorInfo:
    category: str
    message: str
    original_type: str
    transient: bool = False
    details: dict[str, Any] | None = None


def redact(text: str) -> str:
    """Redact sensitive tokens in arbitrary text."""
    if not text:
        return text
    redacted = text
    for pat in _SENSITIVE_PATTERNS:
        redacted = pat.sub(_REDACTION_PLACEHOLDER, redacted)
    return redacted


def classify_error(exc: BaseException) -> ErrorInfo:
    """Best-effort classification of an exception.

    Strategy:
    - HTTP status carried on the exception wins (401/403 auth, 404/410 missing,
      429/5xx transient)
    - requests connection errors / timeouts -> 'network', transient
    - rate limit / abuse wording -> 'github.rate_limit' / 'github.abuse'
    - filesystem errors -> 'filesystem'
    - Fallback -> 'generic'
    """
    msg = str(exc) if exc else ""
    low = msg.lower()
    kind = exc.__class__.__name__
    status = getattr(exc, "status", None)

    if "rate limit" in low or "secondary rate" in low:
        return ErrorInfo("github.rate_limit", redact(msg), kind, transient=True)
    if "abuse" in low:
        return ErrorInfo("github.abuse", redact(msg), kind, transient=True)
    if isinstance(status, int):
        details = {"status": status}
        if status in (401, 403):
            return ErrorInfo("github.auth", redact(msg), kind, details=details)
        if status in (404, 410):
            return ErrorInfo("github.missing", redact(msg), kind, details=details)
        if status in _TRANSIENT_STATUSES:
            return ErrorInfo("github.unavailable", redact(msg), kind, transient=True, details=details)
        return ErrorInfo("github.http", redact(msg), kind, details=details)
    if isinstance(exc, (requests.ConnectionError, requests.Timeout)):
        return ErrorInfo("network", redact(msg), kind, transient=True)
    if any(k in low for k in ("timeout", "connection reset", "temporarily unavailable")):
        return ErrorInfo("network", redact(msg), kind, transient=True)
    if isinstance(exc, OSError):
        return ErrorInfo("filesystem", redact(msg), kind)
    return ErrorInfo("generic", redact(msg), kind)


__all__ = ["ConfigError", "ErrorInfo", "classify_error", "redact"]
