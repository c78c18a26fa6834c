"""CI trigger payload access.

GitHub Actions exposes the triggering event through two environment
variables: ``GITHUB_EVENT_NAME`` and ``GITHUB_EVENT_PATH`` (a JSON file with
the webhook payload). Push payloads carry a ``commits`` list whose entries
have ``added`` / ``modified`` / ``removed`` path lists; only the first two
matter here since deleted files never produce Issue mutations.
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .errors import ConfigError

PUSH_EVENTS = frozenset({"push"})


@dataclass
class EventContext:
    name: str | None = None
    payload: dict[str, Any] = field(default_factory=dict)

    @property
    def is_push(self) -> bool:
        return (self.name or "") in PUSH_EVENTS

    def changed_paths(self) -> list[str] | None:
        """Added + modified paths across all commits, in payload order.

        Returns None for events without a change list (manual dispatch,
        schedules, ...), which sends discovery straight to a full scan.
        """
        if not self.is_push:
            return None
        commits = self.payload.get("commits")
        if not isinstance(commits, list):
            return []
        paths: list[str] = []
        for commit in commits:
            if not isinstance(commit, dict):
                continue
            for key in ("added", "modified"):
                entries = commit.get(key)
                if isinstance(entries, list):
                    paths.extend(str(p) for p in entries if isinstance(p, str))
        return paths


def load_event(
    name: str | None = None,
    path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> EventContext:
    """Build the event context from explicit values or the Actions environment."""
    env = os.environ if environ is None else environ
    event_name = name or env.get("GITHUB_EVENT_NAME") or None
    event_path = path or env.get("GITHUB_EVENT_PATH") or None
    payload: dict[str, Any] = {}
    if event_path:
        p = Path(event_path)
        if p.is_file():
            try:
                loaded = json.loads(p.read_text(encoding="utf-8"))
            except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
                raise ConfigError(f"Cannot read event payload {p}: {exc}") from exc
            if isinstance(loaded, dict):
                payload = loaded
    return EventContext(name=event_name, payload=payload)


__all__ = ["EventContext", "load_event"]
