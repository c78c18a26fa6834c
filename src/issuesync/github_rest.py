from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

import requests

from .retry import RetryConfig, run_with_retries

DEFAULT_API_URL = "https://api.github.com"
USER_AGENT = "issuesync-rest/0.2.0"
HTTP_ERROR_STATUS = 400
REQUEST_TIMEOUT = 30


class GitHubAPIError(RuntimeError):
    """Raised when the GitHub REST API returns an error."""

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        response_text: str | None = None,
        retry_after: str | None = None,
    ):
        super().__init__(message)
        self.status = status
        self.response_text = response_text
        self.retry_after = retry_after


@dataclass
class GitHubRestClient:
    """Lightweight REST client for the GitHub Issues endpoints."""

    token: str
    repo: str
    base_url: str = DEFAULT_API_URL
    session: requests.Session | None = None
    retry: RetryConfig | None = None
    _session: requests.Session = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._session = self.session or requests.Session()
        self._session.headers.setdefault("Authorization", f"Bearer {self.token}")
        self._session.headers.setdefault("Accept", "application/vnd.github+json")
        self._session.headers.setdefault("X-GitHub-Api-Version", "2022-11-28")
        self._session.headers.setdefault("User-Agent", USER_AGENT)

    # ---- REST helpers -------------------------------------------------
    def _url(self, path: str) -> str:
        if path.startswith("http"):
            return path
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

    def _send(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None,
        json_body: Any | None,
    ) -> requests.Response:
        response = self._session.request(
            method,
            url,
            params=params,
            json=json_body,
            headers=self._session.headers,
            timeout=REQUEST_TIMEOUT,
        )
        if response.status_code >= HTTP_ERROR_STATUS:
            headers = getattr(response, "headers", None) or {}
            raise GitHubAPIError(
                f"GitHub API {method} {url} failed with {response.status_code}",
                status=response.status_code,
                response_text=response.text,
                retry_after=headers.get("Retry-After"),
            )
        return response

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: Any | None = None,
    ) -> Any:
        url = self._url(path)

        def _run() -> requests.Response:
            return self._send(method, url, params=params, json_body=json_body)

        # Only reads are retried; replaying a POST could create a second issue.
        response = run_with_retries(_run, cfg=self.retry) if method == "GET" else _run()
        if response.text:
            try:
                return response.json()
            except ValueError:
                return response.text
        return None

    # ---- Issue operations --------------------------------------------
    def get_issue(self, number: int) -> dict[str, Any]:
        data = self._request("GET", f"/repos/{self.repo}/issues/{number}")
        if not isinstance(data, dict):
            raise GitHubAPIError(f"Unexpected payload for issue #{number}")
        return data

    def create_issue(
        self,
        *,
        title: str,
        body: str,
        labels: Iterable[str] | None = None,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {"title": title, "body": body}
        if labels:
            payload["labels"] = list(labels)
        data = self._request("POST", f"/repos/{self.repo}/issues", json_body=payload)
        if not isinstance(data, dict) or not isinstance(data.get("number"), int):
            raise GitHubAPIError("GitHub did not return the created issue number")
        return data

    def update_issue(
        self,
        *,
        number: int,
        body: str | None = None,
        state: str | None = None,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if body is not None:
            payload["body"] = body
        if state is not None:
            payload["state"] = state
        data = self._request(
            "PATCH", f"/repos/{self.repo}/issues/{number}", json_body=payload
        )
        if not isinstance(data, dict):
            raise GitHubAPIError(f"Unexpected payload updating issue #{number}")
        return data

    def list_issues(
        self, *, state: str = "all", page: int = 1, per_page: int = 100
    ) -> list[dict[str, Any]]:
        """Fetch a single page; callers drive pagination."""
        params = {"state": state, "per_page": per_page, "page": page}
        data = self._request("GET", f"/repos/{self.repo}/issues", params=params)
        if not isinstance(data, list):
            return []
        return [entry for entry in data if isinstance(entry, dict)]

    def get_repository(self) -> dict[str, Any]:
        data = self._request("GET", f"/repos/{self.repo}")
        if not isinstance(data, dict):
            raise GitHubAPIError(f"Unexpected payload for repository {self.repo}")
        return data


__all__ = ["GitHubAPIError", "GitHubRestClient", "DEFAULT_API_URL"]
