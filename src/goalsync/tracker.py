"""Tracker contract and its GitHub implementation.

The diff engine only ever reads through ``IssueFetcher`` (point lookups);
the convergence loop reads labels and milestone issues; the executor uses the
mutating half. ``GitHubTracker`` backs all of it with ``GitHubRestClient``.
"""

from __future__ import annotations

import os
from collections.abc import Iterable
from typing import Any, Protocol

from .errors import PreconditionError
from .github_rest import DEFAULT_API_URL, GitHubAPIError, GitHubRestClient
from .logging import get_logger
from .models import ExistingIssue, Label

TOKEN_ENV_VARS = ("GOALSYNC_GITHUB_TOKEN", "GITHUB_TOKEN", "GH_TOKEN")

# Per-user assignee failures (user unknown, not an org member) come back as these.
USER_ERROR_STATUSES = frozenset({404, 422})


class IssueFetcher(Protocol):
    def fetch_issue(self, number: int) -> ExistingIssue: ...  # pragma: no cover


class Tracker(IssueFetcher, Protocol):
    repository: str

    def list_labels(self) -> list[Label]: ...  # pragma: no cover

    def create_label(self, label: Label) -> None: ...  # pragma: no cover

    def list_issues_in_milestone(self, timeframe: str) -> list[ExistingIssue]: ...

    def create_issue(
        self,
        *,
        title: str,
        body: str,
        labels: Iterable[str],
        assignees: Iterable[str],
        timeframe: str,
    ) -> int | None: ...  # pragma: no cover

    def change_title(self, number: int, title: str) -> None: ...  # pragma: no cover

    def change_milestone(self, number: int, timeframe: str) -> None: ...  # pragma: no cover

    def create_comment(self, number: int, body: str) -> None: ...  # pragma: no cover

    def update_issue_body(self, number: int, body: str) -> None: ...  # pragma: no cover

    def sync_assignees(
        self, number: int, remove: Iterable[str], add: Iterable[str]
    ) -> None: ...  # pragma: no cover

    def lock_issue(self, number: int) -> None: ...  # pragma: no cover


def existing_issue_from_payload(entry: dict[str, Any]) -> ExistingIssue:
    assignees: set[str] = set()
    for user in entry.get("assignees") or []:
        if isinstance(user, dict) and isinstance(user.get("login"), str):
            assignees.add(user["login"])
        elif isinstance(user, str):
            assignees.add(user)
    milestone = entry.get("milestone")
    milestone_title: str | None = None
    if isinstance(milestone, dict) and isinstance(milestone.get("title"), str):
        milestone_title = milestone["title"]
    elif isinstance(milestone, str):
        milestone_title = milestone
    return ExistingIssue(
        number=int(entry["number"]),
        title=str(entry.get("title") or ""),
        assignees=frozenset(assignees),
        milestone=milestone_title,
        body=str(entry.get("body") or ""),
        locked=bool(entry.get("locked", False)),
    )


class GitHubTracker:
    def __init__(self, client: GitHubRestClient):
        self.client = client
        self.repository = client.repo
        self._milestones: dict[str, int] = {}
        self._logger = get_logger()

    # --- milestones -----------------------------------------------------
    def _milestone_number(self, timeframe: str, *, create: bool) -> int | None:
        if timeframe in self._milestones:
            return self._milestones[timeframe]
        number = self.client.find_milestone(timeframe)
        if number is None and create:
            self._logger.log_operation("milestone_create", timeframe=timeframe)
            number = self.client.create_milestone(timeframe)
        if number is not None:
            self._milestones[timeframe] = number
        return number

    # --- reads ----------------------------------------------------------
    def list_labels(self) -> list[Label]:
        return [
            Label(name=str(entry["name"]), color=str(entry.get("color") or ""))
            for entry in self.client.list_labels()
            if isinstance(entry.get("name"), str)
        ]

    def list_issues_in_milestone(self, timeframe: str) -> list[ExistingIssue]:
        number = self._milestone_number(timeframe, create=False)
        if number is None:
            return []
        return [
            existing_issue_from_payload(entry)
            for entry in self.client.list_issues(milestone=number)
        ]

    def fetch_issue(self, number: int) -> ExistingIssue:
        return existing_issue_from_payload(self.client.get_issue(number))

    # --- writes ---------------------------------------------------------
    def create_label(self, label: Label) -> None:
        self.client.create_label(name=label.name, color=label.color)

    def create_issue(
        self,
        *,
        title: str,
        body: str,
        labels: Iterable[str],
        assignees: Iterable[str],
        timeframe: str,
    ) -> int | None:
        return self.client.create_issue(
            title=title,
            body=body,
            labels=labels,
            assignees=sorted(assignees),
            milestone=self._milestone_number(timeframe, create=True),
        )

    def change_title(self, number: int, title: str) -> None:
        self.client.update_issue(number=number, title=title)

    def change_milestone(self, number: int, timeframe: str) -> None:
        self.client.update_issue(
            number=number, milestone=self._milestone_number(timeframe, create=True)
        )

    def create_comment(self, number: int, body: str) -> None:
        self.client.create_comment(number=number, body=body)

    def update_issue_body(self, number: int, body: str) -> None:
        self.client.update_issue(number=number, body=body)

    def sync_assignees(self, number: int, remove: Iterable[str], add: Iterable[str]) -> None:
        """Sync one user at a time; a user GitHub refuses is logged and skipped."""
        for user in sorted(remove):
            self._each_assignee(self.client.remove_assignees, number, user, "remove")
        for user in sorted(add):
            self._each_assignee(self.client.add_assignees, number, user, "add")

    def _each_assignee(self, call: Any, number: int, user: str, verb: str) -> None:
        try:
            call(number=number, assignees=[user])
        except GitHubAPIError as exc:
            if exc.status not in USER_ERROR_STATUSES:
                raise
            self._logger.warning(
                f"could not {verb} assignee {user} on issue #{number}",
                issue_number=number,
                error=str(exc),
            )

    def lock_issue(self, number: int) -> None:
        self.client.lock_issue(number=number)


def select_token() -> str | None:
    for name in TOKEN_ENV_VARS:
        raw = os.environ.get(name)
        if raw is None:
            continue
        token = raw.strip()
        if token:
            return token
    return None


def build_github_tracker(repository: str | None, *, api_url: str | None = None) -> GitHubTracker:
    """Construct the tracker or fail before any pass runs."""
    repo = (repository or "").strip()
    if not repo or "/" not in repo:
        raise PreconditionError("a target repository (owner/name) is required")
    token = select_token()
    if not token:
        raise PreconditionError(
            "no GitHub token found; set one of " + ", ".join(TOKEN_ENV_VARS)
        )
    return GitHubTracker(
        GitHubRestClient(token=token, repo=repo, base_url=api_url or DEFAULT_API_URL)
    )


__all__ = [
    "GitHubTracker",
    "IssueFetcher",
    "Tracker",
    "build_github_tracker",
    "existing_issue_from_payload",
    "select_token",
]
