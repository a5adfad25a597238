"""Pytest configuration for goalsync tests.

Ensures the in-repo `src` directory is on `sys.path` so the package can be
imported without an editable install, and provides in-memory stand-ins for
the tracker and the goal document corpus.
"""

from __future__ import annotations

import dataclasses
import sys
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from goalsync import logging as goalsync_logging  # noqa: E402
from goalsync.directory import Directory  # noqa: E402
from goalsync.errors import TrackerError  # noqa: E402
from goalsync.models import (  # noqa: E402
    ExistingIssue,
    GoalDocument,
    GoalPlan,
    IssueId,
    Label,
    PlanItem,
    TeamAsk,
)

REPO = "rust-lang/rust-project-goals"
TIMEFRAME = "2025h1"


class FakeTracker:
    """Tracker kept entirely in memory; mutations land immediately."""

    def __init__(self, repository: str = REPO):
        self.repository = repository
        self.labels: list[Label] = []
        self.issues: dict[int, ExistingIssue] = {}
        self.issue_labels: dict[int, tuple[str, ...]] = {}
        self.comments: list[tuple[int, str]] = []
        self.calls: list[tuple[str, Any]] = []
        self.fetched: list[int] = []
        self.next_number = 1
        self.fail_on: set[str] = set()

    def add_issue(self, issue: ExistingIssue) -> ExistingIssue:
        self.issues[issue.number] = issue
        self.next_number = max(self.next_number, issue.number + 1)
        return issue

    def _record(self, name: str, payload: Any) -> None:
        self.calls.append((name, payload))
        if name in self.fail_on or "*" in self.fail_on:
            raise TrackerError(f"{name} refused")

    def _replace(self, number: int, **changes: Any) -> None:
        self.issues[number] = dataclasses.replace(self.issues[number], **changes)

    # reads
    def list_labels(self) -> list[Label]:
        return list(self.labels)

    def list_issues_in_milestone(self, timeframe: str) -> list[ExistingIssue]:
        return [i for _, i in sorted(self.issues.items()) if i.milestone == timeframe]

    def fetch_issue(self, number: int) -> ExistingIssue:
        self.fetched.append(number)
        try:
            return self.issues[number]
        except KeyError:
            raise TrackerError(f"issue #{number} not found") from None

    # writes
    def create_label(self, label: Label) -> None:
        self._record("create_label", label)
        self.labels.append(label)

    def create_issue(
        self,
        *,
        title: str,
        body: str,
        labels: Iterable[str],
        assignees: Iterable[str],
        timeframe: str,
    ) -> int:
        self._record("create_issue", title)
        number = self.next_number
        self.add_issue(
            ExistingIssue(
                number=number,
                title=title,
                assignees=frozenset(assignees),
                milestone=timeframe,
                body=body,
            )
        )
        self.issue_labels[number] = tuple(labels)
        return number

    def change_title(self, number: int, title: str) -> None:
        self._record("change_title", number)
        self._replace(number, title=title)

    def change_milestone(self, number: int, timeframe: str) -> None:
        self._record("change_milestone", number)
        self._replace(number, milestone=timeframe)

    def create_comment(self, number: int, body: str) -> None:
        self._record("create_comment", number)
        self.comments.append((number, body))

    def update_issue_body(self, number: int, body: str) -> None:
        self._record("update_issue_body", number)
        self._replace(number, body=body)

    def sync_assignees(self, number: int, remove: Iterable[str], add: Iterable[str]) -> None:
        self._record("sync_assignees", number)
        current = self.issues[number].assignees
        self._replace(number, assignees=(current - frozenset(remove)) | frozenset(add))

    def lock_issue(self, number: int) -> None:
        self._record("lock_issue", number)
        self._replace(number, locked=True)


class FakeCorpus:
    """Goal documents held in memory; linking rewrites the stored document."""

    def __init__(self, documents: Iterable[GoalDocument] = ()):
        self.documents = list(documents)
        self.links: list[tuple[Path, IssueId]] = []
        self.loads = 0

    def load(self) -> list[GoalDocument]:
        self.loads += 1
        return list(self.documents)

    def link_issue(self, path: Path, issue_id: IssueId) -> None:
        self.links.append((path, issue_id))
        self.documents = [
            dataclasses.replace(doc, tracking_issue=issue_id) if doc.path == path else doc
            for doc in self.documents
        ]


@pytest.fixture(autouse=True)
def _fresh_logger(monkeypatch: pytest.MonkeyPatch) -> None:
    # the global logger binds sys.stderr when first built; rebuild it per test
    monkeypatch.setattr(goalsync_logging, "_GLOBAL", None)


@pytest.fixture
def tracker() -> FakeTracker:
    return FakeTracker()


@pytest.fixture
def fake_corpus() -> Callable[..., FakeCorpus]:
    return FakeCorpus


@pytest.fixture
def directory() -> Directory:
    return Directory.from_mapping(
        {
            "people": {
                "alice": {"github": "alice-gh", "name": "Alice"},
                "bob": "bob-gh",
                "carol": {"github": "carol-gh"},
            },
            "teams": {
                "lang": {
                    "members": [
                        {"github": "niko", "lead": True},
                        {"github": "tmandry", "lead": True},
                        {"github": "josh"},
                    ]
                },
                "compiler": {
                    "display_name": "Compiler",
                    "members": [{"github": "wesley", "lead": True}, {"github": "oli"}],
                },
            },
        }
    )


def _document(
    title: str,
    stem: str,
    *,
    owners: tuple[str, ...] = ("@alice",),
    status: str = "Accepted",
    tracking_issue: IssueId | None = None,
    plans: tuple[GoalPlan, ...] = (),
    summary: str = "Make things better.",
) -> GoalDocument:
    asks = tuple(
        TeamAsk(teams=item.teams, ask=item.text, subgoal=plan.subgoal)
        for plan in plans
        for item in plan.plan_items
        if item.teams
    )
    return GoalDocument(
        path=Path("src") / TIMEFRAME / f"{stem}.md",
        link_path=Path(TIMEFRAME) / f"{stem}.md",
        title=title,
        summary=summary,
        owners=owners,
        status=status,
        tracking_issue=tracking_issue,
        team_asks=asks,
        goal_plans=plans,
    )


@pytest.fixture
def make_document() -> Callable[..., GoalDocument]:
    return _document


@pytest.fixture
def lang_plan() -> tuple[GoalPlan, ...]:
    return (
        GoalPlan(
            subgoal=None,
            plan_items=(PlanItem(text="Implement it", usernames=("@alice",)),),
        ),
        GoalPlan(
            subgoal="Stabilize",
            plan_items=(
                PlanItem(text="Write the RFC", complete=True),
                PlanItem(text="RFC decision", teams=("lang",)),
            ),
        ),
    )
