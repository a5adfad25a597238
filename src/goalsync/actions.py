"""Corrective actions against the tracker.

``Action`` is a closed union of frozen dataclasses. Instances are plain
values: two actions with the same variant and fields are equal and hash the
same, which is what lets ``ActionSet`` collapse duplicates. The set iterates
in a total order (variant rank, then field values) so identical inputs
always produce the identical action list.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, fields, is_dataclass
from pathlib import Path
from typing import Any, Union

from .models import DesiredIssue, IssueId, Label

CONTINUING_GOAL_PREFIX = (
    "This is a continuing project goal, and the updates below this comment "
    "will be for the new period"
)

LOCK_TEXT = (
    "This issue is intended for status updates only.\n\n"
    "For general questions or comments, please contact the owner(s) directly."
)


@dataclass(frozen=True)
class CreateLabel:
    label: Label


@dataclass(frozen=True)
class CreateIssue:
    issue: DesiredIssue


@dataclass(frozen=True)
class ChangeTitle:
    number: int
    title: str


@dataclass(frozen=True)
class ChangeMilestone:
    number: int
    milestone: str


@dataclass(frozen=True)
class Comment:
    number: int
    body: str


@dataclass(frozen=True)
class UpdateIssueBody:
    number: int
    body: str


@dataclass(frozen=True)
class SyncAssignees:
    number: int
    remove_owners: frozenset[str]
    add_owners: frozenset[str]


@dataclass(frozen=True)
class LockIssue:
    number: int


@dataclass(frozen=True)
class LinkToTrackingIssue:
    document_path: Path
    issue_id: IssueId


Action = Union[
    CreateLabel,
    CreateIssue,
    ChangeTitle,
    ChangeMilestone,
    Comment,
    UpdateIssueBody,
    SyncAssignees,
    LockIssue,
    LinkToTrackingIssue,
]

VARIANTS: tuple[type, ...] = (
    CreateLabel,
    CreateIssue,
    ChangeTitle,
    ChangeMilestone,
    Comment,
    UpdateIssueBody,
    SyncAssignees,
    LockIssue,
    LinkToTrackingIssue,
)


def _sortable(value: Any) -> tuple[Any, ...]:
    # None sorts before any value; sets sort by their sorted members.
    if value is None:
        return (0,)
    if is_dataclass(value) and not isinstance(value, type):
        return (1, tuple(_sortable(getattr(value, f.name)) for f in fields(value)))
    if isinstance(value, (frozenset, set)):
        return (1, tuple(_sortable(v) for v in sorted(value)))
    if isinstance(value, (tuple, list)):
        return (1, tuple(_sortable(v) for v in value))
    if isinstance(value, Path):
        return (1, value.as_posix())
    return (1, value)


def sort_key(action: Action) -> tuple[Any, ...]:
    return (VARIANTS.index(type(action)), _sortable(action))


def describe(action: Action) -> str:
    """One-line human description, used for dry runs and status lines."""
    match action:
        case CreateLabel(label=label):
            return f"create label `{label.name}` with color `{label.color}`"
        case CreateIssue(issue=issue):
            return f'create issue "{issue.title}"'
        case ChangeTitle(number=number, title=title):
            return f'update issue #{number} title to "{title}"'
        case ChangeMilestone(number=number, milestone=milestone):
            return f'update issue #{number} milestone to "{milestone}"'
        case Comment(number=number, body=body):
            return f'post comment on issue #{number}: "{body}"'
        case UpdateIssueBody(number=number):
            return f"update the body on issue #{number} for new milestone"
        case SyncAssignees(number=number, remove_owners=remove, add_owners=add):
            changes = [f"-{u}" for u in sorted(remove)] + [f"+{u}" for u in sorted(add)]
            return f"sync issue #{number} ({', '.join(changes)})"
        case LockIssue(number=number):
            return f"lock issue #{number}"
        case LinkToTrackingIssue(document_path=path, issue_id=issue_id):
            return f"link issue {issue_id} to the markdown document at {path}"
    raise TypeError(f"unknown action {action!r}")


def action_kind(action: Action) -> str:
    """Snake-case variant name (``create_issue``), used in structured logs."""
    name = type(action).__name__
    return "".join(f"_{c.lower()}" if c.isupper() else c for c in name).lstrip("_")


class ActionSet:
    """Deduplicated actions iterated in deterministic order."""

    def __init__(self, actions: Iterable[Action] = ()):
        self._actions: set[Action] = set(actions)

    def add(self, action: Action) -> None:
        self._actions.add(action)

    def update(self, actions: Iterable[Action]) -> None:
        self._actions.update(actions)

    def ordered(self) -> list[Action]:
        return sorted(self._actions, key=sort_key)

    def __iter__(self) -> Iterator[Action]:
        return iter(self.ordered())

    def __len__(self) -> int:
        return len(self._actions)

    def __bool__(self) -> bool:
        return bool(self._actions)

    def __contains__(self, action: object) -> bool:
        return action in self._actions

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ActionSet):
            return NotImplemented
        return self._actions == other._actions

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"ActionSet({self.ordered()!r})"


__all__ = [
    "Action",
    "ActionSet",
    "ChangeMilestone",
    "ChangeTitle",
    "Comment",
    "CreateIssue",
    "CreateLabel",
    "LinkToTrackingIssue",
    "LockIssue",
    "SyncAssignees",
    "UpdateIssueBody",
    "CONTINUING_GOAL_PREFIX",
    "LOCK_TEXT",
    "action_kind",
    "describe",
    "sort_key",
]
