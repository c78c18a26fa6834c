"""Pytest configuration for issuesync tests.

Ensures the in-repo `src` directory is on `sys.path` so the package can be
imported without an editable install (`pip install -e .`), and provides
in-memory stand-ins for GitHub and the workspace so no test touches the
network.
"""

from __future__ import annotations

import sys
from collections.abc import Iterable
from pathlib import Path, PurePosixPath

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from issuesync import logging as issuesync_logging  # noqa: E402
from issuesync.models import Found, Gone, NotFound, ProbeResult, RemoteIssue, TransportError  # noqa: E402

_CLEARED_ENV = (
    "GITHUB_TOKEN",
    "GH_TOKEN",
    "GITHUB_ACCESS_TOKEN",
    "GITHUB_PAT",
    "INPUT_REPO-TOKEN",
    "INPUT_REPO_TOKEN",
    "GITHUB_REPOSITORY",
    "GITHUB_WORKSPACE",
    "GITHUB_EVENT_NAME",
    "GITHUB_EVENT_PATH",
    "GITHUB_ACTIONS",
    "CI",
    "ISSUESYNC_QUIET",
    "ISSUESYNC_GITHUB_API",
    "ISSUESYNC_RETRY_ATTEMPTS",
    "ISSUESYNC_RETRY_BASE",
)


@pytest.fixture(autouse=True)
def _hermetic_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for var in _CLEARED_ENV:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("ISSUESYNC_RETRY_MAX_SLEEP", "0")
    monkeypatch.setenv("NO_COLOR", "1")
    # Fresh logger per test, created lazily so it binds to the captured stdout
    monkeypatch.setattr(issuesync_logging, "_GLOBAL", None)


class FakeGateway:
    """In-memory ``IssueGateway`` recording every call."""

    def __init__(
        self,
        issues: Iterable[RemoteIssue] = (),
        *,
        next_number: int | None = None,
        gone: Iterable[int] = (),
        broken: Iterable[int] = (),
        dry_run: bool = False,
    ) -> None:
        self.issues: dict[int, RemoteIssue] = {i.number: i for i in issues}
        self.next_number = next_number
        self.gone = set(gone)
        self.broken = set(broken)
        self.dry_run = dry_run
        self.calls: list[tuple] = []

    @property
    def mutations(self) -> list[tuple]:
        return [c for c in self.calls if c[0] in ("create", "update")]

    def get_issue(self, number: int) -> ProbeResult:
        self.calls.append(("get", number))
        if number in self.broken:
            return TransportError(number, "boom", 500)
        if number in self.gone:
            return Gone(number)
        if number in self.issues:
            return Found(self.issues[number])
        return NotFound(number)

    def update_issue(self, number: int, body: str, state: str | None = None) -> RemoteIssue | None:
        self.calls.append(("update", number, body, state))
        if self.dry_run:
            return None
        issue = self.issues[number]
        issue.body = body
        if state:
            issue.state = state
        return issue

    def create_issue(self, title: str, body: str, labels: Iterable[str]) -> RemoteIssue | None:
        self.calls.append(("create", title, body, list(labels)))
        if self.dry_run:
            return None
        taken = set(self.issues) | self.gone
        if self.next_number is not None:
            number = self.next_number
            self.next_number = None
        else:
            number = max(taken, default=0) + 1
        issue = RemoteIssue(number=number, state="open", title=title, body=body)
        self.issues[number] = issue
        return issue

    def list_issues(self, state: str, page: int, per_page: int) -> list[RemoteIssue]:
        self.calls.append(("list", state, page, per_page))
        ordered = sorted(self.issues.values(), key=lambda i: i.number, reverse=True)
        start = (page - 1) * per_page
        return ordered[start : start + per_page]


class MemoryFileStore:
    """``FileStore`` over a dict of workspace-relative paths."""

    def __init__(self, files: dict[str, str] | None = None) -> None:
        self.files: dict[str, str] = dict(files or {})
        self.writes: list[str] = []
        self.deletes: list[str] = []

    def list_files(self, directory: str) -> list[str]:
        base = PurePosixPath(directory)
        return sorted(PurePosixPath(p).name for p in self.files if PurePosixPath(p).parent == base)

    def exists(self, path: str) -> bool:
        return path in self.files

    def read_file(self, path: str) -> str:
        try:
            return self.files[path]
        except KeyError:
            raise FileNotFoundError(path) from None

    def write_file(self, path: str, content: str) -> None:
        self.writes.append(path)
        self.files[path] = content

    def delete_file(self, path: str) -> None:
        self.deletes.append(path)
        del self.files[path]


@pytest.fixture
def make_gateway():
    return FakeGateway


@pytest.fixture
def make_store():
    return MemoryFileStore
