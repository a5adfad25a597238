"""Value types shared by the builder, diff engine, executor and tracker.

Everything here is frozen: a pass builds these fresh and never mutates them.
Sets are ``frozenset`` so instances stay hashable (actions embed them and
the action set deduplicates by structural equality).
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path

_ISSUE_ID_RE = re.compile(r"^\s*([A-Za-z0-9_.-]+)/([A-Za-z0-9_.-]+)#(\d+)\s*$")

NOT_ACCEPTED = "Not accepted"
FLAGSHIP = "Flagship"


@dataclass(frozen=True)
class IssueId:
    repository: str  # owner/name
    number: int

    @classmethod
    def parse(cls, text: str) -> IssueId:
        match = _ISSUE_ID_RE.match(text)
        if not match:
            raise ValueError(f"expected an issue id like `owner/repo#123`, got `{text}`")
        return cls(f"{match.group(1)}/{match.group(2)}", int(match.group(3)))

    @property
    def url(self) -> str:
        return f"https://github.com/{self.repository}/issues/{self.number}"

    def __str__(self) -> str:
        return f"{self.repository}#{self.number}"


@dataclass(frozen=True)
class Person:
    username: str
    github: str
    name: str | None = None


@dataclass(frozen=True)
class TeamMember:
    github: str
    is_lead: bool = False


@dataclass(frozen=True)
class Team:
    name: str
    display_name: str
    label: str
    url: str
    members: tuple[TeamMember, ...] = ()

    def name_and_link(self) -> str:
        return f"[{self.display_name}]({self.url})"


@dataclass(frozen=True)
class PlanItem:
    text: str
    complete: bool = False
    # Exactly one of these is non-empty when the item has an owner annotation.
    teams: tuple[str, ...] = ()
    usernames: tuple[str, ...] = ()


@dataclass(frozen=True)
class GoalPlan:
    subgoal: str | None
    plan_items: tuple[PlanItem, ...] = ()


@dataclass(frozen=True)
class TeamAsk:
    teams: tuple[str, ...]
    ask: str
    subgoal: str | None = None


@dataclass(frozen=True)
class GoalDocument:
    path: Path
    link_path: Path
    title: str
    summary: str
    owners: tuple[str, ...] = ()
    status: str = "Proposed"
    tracking_issue: IssueId | None = None
    team_asks: tuple[TeamAsk, ...] = ()
    goal_plans: tuple[GoalPlan, ...] = ()

    @property
    def is_flagship(self) -> bool:
        return self.status.strip().lower() == FLAGSHIP.lower()

    @property
    def is_accepted(self) -> bool:
        return self.status.strip().lower() != NOT_ACCEPTED.lower()

    def owner_usernames(self) -> list[str]:
        return [o for o in self.owners if o.startswith("@")]

    def teams_with_asks(self) -> list[str]:
        seen: dict[str, None] = {}
        for ask in self.team_asks:
            for team in ask.teams:
                seen.setdefault(team, None)
        return sorted(seen)


@dataclass(frozen=True, order=True)
class Label:
    name: str
    color: str


@dataclass(frozen=True)
class DesiredIssue:
    title: str
    assignees: frozenset[str]
    body: str
    labels: tuple[str, ...]
    tracking_issue: IssueId | None
    document_index: int  # position in the pass's document list


@dataclass(frozen=True)
class ExistingIssue:
    number: int
    title: str
    assignees: frozenset[str] = field(default_factory=frozenset)
    milestone: str | None = None
    body: str = ""
    locked: bool = False


__all__ = [
    "DesiredIssue",
    "ExistingIssue",
    "GoalDocument",
    "GoalPlan",
    "IssueId",
    "Label",
    "Person",
    "PlanItem",
    "Team",
    "TeamAsk",
    "TeamMember",
]
