from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union


@dataclass
class IssueFile:
    """One Markdown file under the issues directory, parsed for a single run.

    ``content`` is the raw text read from disk; ``body`` is what gets sent to
    GitHub (the same text minus any drift banner written by a previous run).
    """

    path: str
    file_name: str
    file_number: int
    number_width: int
    slug: str
    content: str
    derived_title: str
    embedded_number: int | None = None
    drift_marker: int | None = None
    body: str = ""

    @property
    def target_number(self) -> int:
        """Issue number to probe: the recorded mapping if flagged, else the prefix."""
        return self.drift_marker if self.drift_marker is not None else self.file_number


@dataclass
class RemoteIssue:
    number: int
    state: str
    title: str
    body: str = ""
    is_pull_request: bool = False
    html_url: str | None = None

    @property
    def is_open(self) -> bool:
        return self.state.lower() == "open"

    @classmethod
    def from_api(cls, entry: dict[str, Any]) -> RemoteIssue:
        return cls(
            number=int(entry["number"]),
            state=str(entry.get("state") or "open").lower(),
            title=str(entry.get("title") or ""),
            body=str(entry.get("body") or ""),
            is_pull_request=bool(entry.get("pull_request")),
            html_url=entry.get("html_url") if isinstance(entry.get("html_url"), str) else None,
        )


# --- probe results ---------------------------------------------------------


@dataclass(frozen=True)
class Found:
    issue: RemoteIssue


@dataclass(frozen=True)
class NotFound:
    number: int


@dataclass(frozen=True)
class Gone:
    number: int


@dataclass(frozen=True)
class TransportError:
    number: int
    detail: str
    status: int | None = None


ProbeResult = Union[Found, NotFound, Gone, TransportError]


# --- outcomes --------------------------------------------------------------


class OutcomeKind(str, Enum):
    UPDATED = "updated"
    CREATED = "created"
    SKIPPED = "skipped"
    DRIFTED = "drifted"  # created under a different number; file renamed or flagged
    FAILED = "failed"


SUCCESS_KINDS = frozenset({OutcomeKind.UPDATED, OutcomeKind.CREATED, OutcomeKind.DRIFTED})


@dataclass
class Outcome:
    path: str
    kind: OutcomeKind
    number: int | None = None
    previous_number: int | None = None
    reason: str | None = None
    dry_run: bool = False
    new_path: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.kind in SUCCESS_KINDS

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"path": self.path, "outcome": self.kind.value}
        if self.number is not None:
            data["number"] = self.number
        if self.previous_number is not None:
            data["previous_number"] = self.previous_number
        if self.reason:
            data["reason"] = self.reason
        if self.new_path:
            data["new_path"] = self.new_path
        if self.dry_run:
            data["dry_run"] = True
        return data


@dataclass
class SyncSummary:
    outcomes: list[Outcome] = field(default_factory=list)
    rejected: list[str] = field(default_factory=list)
    discovery_mode: str = "scan"
    dry_run: bool = False

    def count(self, kind: OutcomeKind) -> int:
        return sum(1 for o in self.outcomes if o.kind is kind)

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.succeeded)

    @property
    def failed(self) -> int:
        return self.count(OutcomeKind.FAILED)

    def totals(self) -> dict[str, int]:
        totals = {"total": self.total, "succeeded": self.succeeded, "failed": self.failed}
        for kind in OutcomeKind:
            if kind is not OutcomeKind.FAILED:
                totals[kind.value] = self.count(kind)
        return totals

    def to_dict(self) -> dict[str, Any]:
        return {
            "totals": self.totals(),
            "dry_run": self.dry_run,
            "discovery_mode": self.discovery_mode,
            "rejected": list(self.rejected),
            "outcomes": [o.to_dict() for o in self.outcomes],
        }


__all__ = [
    "IssueFile",
    "RemoteIssue",
    "Found",
    "NotFound",
    "Gone",
    "TransportError",
    "ProbeResult",
    "OutcomeKind",
    "Outcome",
    "SyncSummary",
]
