from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

import requests

from .errors import TrackerError
from .retry import run_with_retries

DEFAULT_API_URL = "https://api.github.com"
USER_AGENT = "goalsync-rest/0.1.0"
HTTP_ERROR_STATUS = 400
REQUEST_TIMEOUT = 30


class GitHubAPIError(TrackerError):
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
    """Lightweight REST client for the GitHub issue endpoints goalsync needs."""

    token: str
    repo: str
    base_url: str = DEFAULT_API_URL
    session: requests.Session | None = None
    _session: requests.Session = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._session = self.session or requests.Session()
        self._session.headers.setdefault("Authorization", f"Bearer {self.token}")
        self._session.headers.setdefault("Accept", "application/vnd.github+json")
        self._session.headers.setdefault("X-GitHub-Api-Version", "2022-11-28")
        self._session.headers.setdefault("User-Agent", USER_AGENT)

    # ---- REST helpers -------------------------------------------------
    def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: Any | None = None,
    ) -> Any:
        url = (
            path
            if path.startswith("http")
            else f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"
        )

        def _run() -> Any:
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

        # a POST that may have landed is left to the next convergence pass
        response = run_with_retries(_run, rate_limit_only=method == "POST")
        if response.text:
            try:
                return response.json()
            except ValueError:
                return response.text
        return None

    def _paginate(self, path: str, *, params: dict[str, Any] | None = None) -> list[Any]:
        params = dict(params or {})
        per_page = params.setdefault("per_page", 100)
        params.setdefault("page", 1)
        results: list[Any] = []
        while True:
            data = self._request("GET", path, params=params)
            if not isinstance(data, list):
                break
            results.extend(data)
            if len(data) < per_page:
                break
            params["page"] = params.get("page", 1) + 1
        return results

    @staticmethod
    def _dicts(data: Iterable[Any]) -> list[dict[str, Any]]:
        return [entry for entry in data if isinstance(entry, dict)]

    # ---- Labels ---------------------------------------------------------
    def list_labels(self) -> list[dict[str, Any]]:
        return self._dicts(self._paginate(f"/repos/{self.repo}/labels"))

    def create_label(self, *, name: str, color: str) -> None:
        self._request(
            "POST", f"/repos/{self.repo}/labels", json_body={"name": name, "color": color}
        )

    # ---- Milestones -----------------------------------------------------
    def find_milestone(self, title: str) -> int | None:
        milestones = self._paginate(f"/repos/{self.repo}/milestones", params={"state": "all"})
        for entry in self._dicts(milestones):
            if entry.get("title") == title and isinstance(entry.get("number"), int):
                return int(entry["number"])
        return None

    def create_milestone(self, title: str) -> int:
        data = self._request("POST", f"/repos/{self.repo}/milestones", json_body={"title": title})
        if isinstance(data, dict) and isinstance(data.get("number"), int):
            return int(data["number"])
        raise GitHubAPIError(f"Milestone `{title}` creation returned no number")

    # ---- Issues ---------------------------------------------------------
    def list_issues(self, *, milestone: int, state: str = "all") -> list[dict[str, Any]]:
        params = {"milestone": milestone, "state": state, "per_page": 100, "page": 1}
        data = self._paginate(f"/repos/{self.repo}/issues", params=params)
        # the issues endpoint also returns pull requests
        return [entry for entry in self._dicts(data) if "pull_request" not in entry]

    def get_issue(self, number: int) -> dict[str, Any]:
        data = self._request("GET", f"/repos/{self.repo}/issues/{number}")
        if not isinstance(data, dict):
            raise GitHubAPIError(f"Issue #{number} returned an unexpected payload")
        return data

    def create_issue(
        self,
        *,
        title: str,
        body: str,
        labels: Iterable[str] = (),
        assignees: Iterable[str] = (),
        milestone: int | None = None,
    ) -> int | None:
        payload: dict[str, Any] = {"title": title, "body": body}
        label_list = list(labels)
        if label_list:
            payload["labels"] = label_list
        assignee_list = list(assignees)
        if assignee_list:
            payload["assignees"] = assignee_list
        if milestone is not None:
            payload["milestone"] = milestone
        data = self._request("POST", f"/repos/{self.repo}/issues", json_body=payload)
        if isinstance(data, dict):
            number = data.get("number")
            if isinstance(number, int):
                return number
        return None

    def update_issue(
        self,
        *,
        number: int,
        title: str | None = None,
        body: str | None = None,
        milestone: int | None = None,
    ) -> None:
        payload: dict[str, Any] = {}
        if title is not None:
            payload["title"] = title
        if body is not None:
            payload["body"] = body
        if milestone is not None:
            payload["milestone"] = milestone
        if payload:
            self._request("PATCH", f"/repos/{self.repo}/issues/{number}", json_body=payload)

    def create_comment(self, *, number: int, body: str) -> None:
        self._request(
            "POST", f"/repos/{self.repo}/issues/{number}/comments", json_body={"body": body}
        )

    def add_assignees(self, *, number: int, assignees: Iterable[str]) -> None:
        self._request(
            "POST",
            f"/repos/{self.repo}/issues/{number}/assignees",
            json_body={"assignees": list(assignees)},
        )

    def remove_assignees(self, *, number: int, assignees: Iterable[str]) -> None:
        self._request(
            "DELETE",
            f"/repos/{self.repo}/issues/{number}/assignees",
            json_body={"assignees": list(assignees)},
        )

    def lock_issue(self, *, number: int) -> None:
        self._request("PUT", f"/repos/{self.repo}/issues/{number}/lock")


__all__ = ["DEFAULT_API_URL", "GitHubAPIError", "GitHubRestClient"]
