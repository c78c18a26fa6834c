"""GitHub Issues gateway.

The reconciler depends on the four operations of ``IssueGateway`` only.
``IssuesClient`` implements them on top of :class:`GitHubRestClient`:

 - ``get_issue`` never raises; it folds HTTP outcomes into the probe
   variants (``Found`` / ``NotFound`` / ``Gone`` / ``TransportError``) so
   "404 means the number is free" can't be confused with a real failure
 - ``create_issue`` / ``update_issue`` / ``list_issues`` raise
   ``GitHubAPIError`` (or a ``requests`` exception) on failure
 - dry-run mode performs reads but turns writes into ``DRY-RUN`` log lines
   and returns None
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol

import requests

from .errors import redact
from .github_rest import GitHubAPIError, GitHubRestClient
from .logging import get_logger
from .models import Found, Gone, NotFound, ProbeResult, RemoteIssue, TransportError

HTTP_NOT_FOUND = 404
HTTP_GONE = 410


class IssueGateway(Protocol):
    def get_issue(self, number: int) -> ProbeResult: ...

    def update_issue(
        self, number: int, body: str, state: str | None = None
    ) -> RemoteIssue | None: ...

    def create_issue(
        self, title: str, body: str, labels: Iterable[str]
    ) -> RemoteIssue | None: ...

    def list_issues(self, state: str, page: int, per_page: int) -> list[RemoteIssue]: ...


@dataclass
class IssuesClientConfig:
    repo: str
    dry_run: bool = False


class IssuesClient:
    """``IssueGateway`` backed by the GitHub REST API."""

    def __init__(self, cfg: IssuesClientConfig, rest_client: GitHubRestClient):
        self.cfg = cfg
        self._rest = rest_client
        self._logger = get_logger()

    def get_issue(self, number: int) -> ProbeResult:
        try:
            data = self._rest.get_issue(number)
        except GitHubAPIError as exc:
            if exc.status == HTTP_NOT_FOUND:
                return NotFound(number)
            if exc.status == HTTP_GONE:
                return Gone(number)
            return TransportError(number, redact(str(exc)), exc.status)
        except requests.RequestException as exc:
            return TransportError(number, redact(str(exc)))
        return Found(RemoteIssue.from_api(data))

    def update_issue(
        self, number: int, body: str, state: str | None = None
    ) -> RemoteIssue | None:
        if self.cfg.dry_run:
            suffix = f" state={state}" if state else ""
            self._logger.info(f"DRY-RUN REST PATCH /issues/{number}{suffix}", dry_run=True)
            return None
        data = self._rest.update_issue(number=number, body=body, state=state)
        return RemoteIssue.from_api(data)

    def create_issue(
        self, title: str, body: str, labels: Iterable[str]
    ) -> RemoteIssue | None:
        label_list = list(labels)
        if self.cfg.dry_run:
            self._logger.info(
                f"DRY-RUN REST POST /issues {title!r} labels={','.join(label_list)}",
                dry_run=True,
            )
            return None
        data = self._rest.create_issue(title=title, body=body, labels=label_list)
        return RemoteIssue.from_api(data)

    def list_issues(self, state: str, page: int, per_page: int) -> list[RemoteIssue]:
        entries = self._rest.list_issues(state=state, page=page, per_page=per_page)
        return [RemoteIssue.from_api(e) for e in entries]


__all__ = ["IssueGateway", "IssuesClient", "IssuesClientConfig"]
