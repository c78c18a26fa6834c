"""Filename / Issue-number reconciliation.

For every discovered file, in order and one at a time, the reconciler
decides which single remote mutation (if any) the file maps to:

* probe the Issue at the file's number (or at the number recorded by an
  earlier drift banner)
* ``Found`` pull request  -> skip, that number can never host an Issue
* ``Found`` closed Issue  -> skip (unless ``allow_reopen``), a numeric
  coincidence must not reopen work someone closed
* ``Found`` open Issue    -> update the body, force ``state=open``
* ``NotFound`` / ``Gone`` -> look for an Issue with the same title across
  every page of ``state=all``; update it when found (flagging the file
  with the matched number), otherwise create one
* transport failure       -> ``failed``, the batch moves on

A create that comes back with a number other than the file's prefix is
*drift*. Depending on ``drift_policy`` the file is either flagged in place
(a banner recording the real number is prepended) or renamed to the new
number. Both are idempotent: a flagged file probes the recorded number on
the next run and a renamed file probes its new prefix, so neither can cause
a second create.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import PurePosixPath

import requests

from .errors import classify_error
from .filestore import FileStore
from .github_issues import IssueGateway
from .github_rest import GitHubAPIError
from .logging import get_logger
from .models import (
    Found,
    Gone,
    IssueFile,
    NotFound,
    Outcome,
    OutcomeKind,
    RemoteIssue,
    TransportError,
)
from .parser import (
    EmptyContentError,
    ParseError,
    flag_content,
    parse_issue_file,
    renumbered_name,
    rewrite_header_number,
)

DEFAULT_LABELS = ("auto-created", "from-markdown")
DEFAULT_PAGE_SIZE = 100

DRIFT_FLAG = "flag"
DRIFT_RENAME = "rename"
DRIFT_POLICIES = (DRIFT_FLAG, DRIFT_RENAME)

SKIP_PULL_REQUEST = "pull_request"
SKIP_CLOSED = "closed"
SKIP_MISSING = "missing"
SKIP_EMPTY = "empty"
SKIP_INVALID_NAME = "invalid_name"


class Reconciler:
    def __init__(
        self,
        gateway: IssueGateway,
        store: FileStore,
        *,
        labels: Iterable[str] = DEFAULT_LABELS,
        drift_policy: str = DRIFT_FLAG,
        allow_reopen: bool = False,
        page_size: int = DEFAULT_PAGE_SIZE,
        dry_run: bool = False,
    ) -> None:
        if drift_policy not in DRIFT_POLICIES:
            raise ValueError(f"Unknown drift policy {drift_policy!r} (expected one of {DRIFT_POLICIES})")
        if page_size < 1:
            raise ValueError("page_size must be positive")
        self.gateway = gateway
        self.store = store
        self.labels = list(labels)
        self.drift_policy = drift_policy
        self.allow_reopen = allow_reopen
        self.page_size = page_size
        self.dry_run = dry_run
        self._visited: set[str] = set()
        self._logger = get_logger()

    # --- batch ------------------------------------------------------------
    def run(self, paths: Iterable[str]) -> list[Outcome]:
        outcomes: list[Outcome] = []
        for path in paths:
            if path in self._visited:
                self._logger.info(f"[reconcile] {path} already handled in this run", path=path)
                continue
            self._visited.add(path)
            outcomes.append(self.process_path(path))
        return outcomes

    def process_path(self, path: str) -> Outcome:
        """Read, parse and reconcile one file; never raises for per-file problems."""
        self._logger.info(f"[reconcile] processing {path}", path=path)
        if not self.store.exists(path):
            self._logger.warning(f"[reconcile] skip {path}: file not found", path=path)
            return Outcome(path, OutcomeKind.SKIPPED, reason=SKIP_MISSING)
        try:
            content = self.store.read_file(path)
        except (OSError, UnicodeDecodeError) as exc:
            return self._failed(path, exc, None)
        try:
            issue_file = parse_issue_file(path, content)
        except EmptyContentError as exc:
            self._logger.warning(f"[reconcile] skip {path}: {exc}", path=path)
            return Outcome(path, OutcomeKind.SKIPPED, reason=SKIP_EMPTY)
        except ParseError as exc:
            self._logger.warning(f"[reconcile] skip {path}: {exc}", path=path)
            return Outcome(path, OutcomeKind.SKIPPED, reason=SKIP_INVALID_NAME)
        try:
            return self.reconcile(issue_file)
        except (GitHubAPIError, requests.RequestException, OSError) as exc:
            return self._failed(path, exc, issue_file.target_number)

    # --- state machine ----------------------------------------------------
    def reconcile(self, issue_file: IssueFile) -> Outcome:
        if (
            issue_file.embedded_number is not None
            and issue_file.embedded_number != issue_file.file_number
        ):
            self._logger.warning(
                f"[reconcile] {issue_file.path}: header says #{issue_file.embedded_number} "
                f"but the file name says #{issue_file.file_number}",
                path=issue_file.path,
            )
        target = issue_file.target_number
        self._logger.debug(
            f"[reconcile] probe #{target} title={issue_file.derived_title!r}",
            path=issue_file.path,
        )
        probe = self.gateway.get_issue(target)
        if isinstance(probe, Found):
            return self._on_found(issue_file, probe.issue)
        if isinstance(probe, (NotFound, Gone)):
            return self._on_available(issue_file)
        if isinstance(probe, TransportError):
            self._logger.log_error(
                f"[reconcile] could not fetch #{probe.number} for {issue_file.path}",
                error=probe.detail,
                path=issue_file.path,
                status=probe.status,
            )
            return Outcome(
                issue_file.path,
                OutcomeKind.FAILED,
                number=probe.number,
                reason=f"probe failed ({probe.status or 'transport'})",
            )
        raise TypeError(f"Unexpected probe result {probe!r}")

    def _on_found(self, issue_file: IssueFile, issue: RemoteIssue) -> Outcome:
        if issue.is_pull_request:
            self._logger.info(
                f"[reconcile] skip {issue_file.path}: #{issue.number} is a pull request",
                path=issue_file.path,
            )
            return Outcome(issue_file.path, OutcomeKind.SKIPPED, number=issue.number, reason=SKIP_PULL_REQUEST)
        if not issue.is_open:
            if not self.allow_reopen:
                self._logger.info(
                    f"[reconcile] skip {issue_file.path}: #{issue.number} is closed",
                    path=issue_file.path,
                )
                return Outcome(issue_file.path, OutcomeKind.SKIPPED, number=issue.number, reason=SKIP_CLOSED)
            return self._update(issue_file, issue, reason="reopened")
        return self._update(issue_file, issue)

    def _on_available(self, issue_file: IssueFile) -> Outcome:
        match = self.find_by_title(issue_file.derived_title)
        if match is not None:
            self._logger.info(
                f"[reconcile] {issue_file.path}: #{issue_file.target_number} is free but "
                f"#{match.number} already carries the title {issue_file.derived_title!r}",
                path=issue_file.path,
            )
            outcome = self._update(issue_file, match, reason="matched_title")
            outcome.previous_number = issue_file.target_number
            if self.dry_run:
                return outcome
            # record the mapping so the next run probes the matched number directly
            if match.number == issue_file.file_number:
                if issue_file.drift_marker is None:
                    return outcome
                content = issue_file.body
            else:
                suggested = renumbered_name(issue_file.file_name, match.number, issue_file.number_width)
                content = flag_content(issue_file.content, issue_file.file_number, match.number, suggested)
            try:
                self.store.write_file(issue_file.path, content)
            except OSError as exc:
                failed = self._failed(issue_file.path, exc, match.number)
                failed.reason = f"updated #{match.number} but could not update the file"
                return failed
            return outcome
        return self._create(issue_file)

    def find_by_title(self, title: str) -> RemoteIssue | None:
        """Scan every page of issues (open and closed) for an exact title match.

        Stops at the first page shorter than ``page_size``.
        """
        page = 1
        while True:
            issues = self.gateway.list_issues("all", page, self.page_size)
            for issue in issues:
                if not issue.is_pull_request and issue.title == title:
                    return issue
            if len(issues) < self.page_size:
                return None
            page += 1

    # --- mutations --------------------------------------------------------
    def _update(self, issue_file: IssueFile, issue: RemoteIssue, reason: str | None = None) -> Outcome:
        self._logger.log_issue_action(
            "update", issue_file.path, issue.number, dry_run=self.dry_run
        )
        self.gateway.update_issue(issue.number, issue_file.body, state="open")
        return Outcome(
            issue_file.path,
            OutcomeKind.UPDATED,
            number=issue.number,
            reason=reason,
            dry_run=self.dry_run,
        )

    def _create(self, issue_file: IssueFile) -> Outcome:
        self._logger.log_issue_action("create", issue_file.path, dry_run=self.dry_run)
        created = self.gateway.create_issue(issue_file.derived_title, issue_file.body, self.labels)
        if created is None:
            return Outcome(issue_file.path, OutcomeKind.CREATED, dry_run=True)
        self._logger.info(
            f"[reconcile] created #{created.number} {issue_file.derived_title!r}"
            + (f" {created.html_url}" if created.html_url else ""),
            path=issue_file.path,
            issue_number=created.number,
        )
        try:
            if created.number == issue_file.file_number:
                if issue_file.drift_marker is not None:
                    # earlier banner is obsolete now that the numbers agree
                    self.store.write_file(issue_file.path, issue_file.body)
                return Outcome(issue_file.path, OutcomeKind.CREATED, number=created.number)
            return self._handle_drift(issue_file, created.number)
        except OSError as exc:
            outcome = self._failed(issue_file.path, exc, created.number)
            outcome.reason = f"created #{created.number} but could not update the file"
            return outcome

    def _handle_drift(self, issue_file: IssueFile, number: int) -> Outcome:
        suggested = renumbered_name(issue_file.file_name, number, issue_file.number_width)
        self._logger.warning(
            f"[reconcile] number drift: {issue_file.file_name} expects "
            f"#{issue_file.file_number}, GitHub assigned #{number}",
            path=issue_file.path,
            issue_number=number,
        )
        if self.drift_policy == DRIFT_RENAME:
            new_path = (PurePosixPath(issue_file.path).parent / suggested).as_posix()
            if not self.store.exists(new_path):
                content = rewrite_header_number(issue_file.content, number)
                self.store.write_file(new_path, content)
                self.store.delete_file(issue_file.path)
                self._visited.add(new_path)
                self._logger.info(f"[reconcile] renamed {issue_file.path} -> {new_path}", path=issue_file.path)
                return Outcome(
                    issue_file.path,
                    OutcomeKind.DRIFTED,
                    number=number,
                    previous_number=issue_file.file_number,
                    reason="renamed",
                    new_path=new_path,
                )
            self._logger.warning(
                f"[reconcile] cannot rename to {new_path}: file exists; flagging instead",
                path=issue_file.path,
            )
        flagged = flag_content(issue_file.content, issue_file.file_number, number, suggested)
        self.store.write_file(issue_file.path, flagged)
        return Outcome(
            issue_file.path,
            OutcomeKind.DRIFTED,
            number=number,
            previous_number=issue_file.file_number,
            reason="flagged",
        )

    def _failed(self, path: str, exc: BaseException, number: int | None) -> Outcome:
        info = classify_error(exc)
        self._logger.log_error(
            f"[reconcile] failed on {path}",
            error=info.message,
            path=path,
            category=info.category,
        )
        return Outcome(path, OutcomeKind.FAILED, number=number, reason=info.category)


__all__ = [
    "Reconciler",
    "DEFAULT_LABELS",
    "DEFAULT_PAGE_SIZE",
    "DRIFT_FLAG",
    "DRIFT_RENAME",
    "DRIFT_POLICIES",
]
