"""Apply an action set to the tracker, one action at a time."""

from __future__ import annotations

import sys
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import TextIO

from .actions import (
    Action,
    ChangeMilestone,
    ChangeTitle,
    Comment,
    CreateIssue,
    CreateLabel,
    LinkToTrackingIssue,
    LockIssue,
    SyncAssignees,
    UpdateIssueBody,
    action_kind,
    describe,
)
from .documents import GoalCorpus
from .errors import ErrorInfo, classify_error
from .logging import get_logger
from .tracker import Tracker
from .ux import print_operation_status


@dataclass
class ActionFailure:
    action: Action
    error: ErrorInfo


@dataclass
class ExecutionReport:
    attempted: int = 0
    successes: int = 0
    failures: list[ActionFailure] = field(default_factory=list)

    @property
    def all_failed(self) -> bool:
        return self.attempted > 0 and self.successes == 0


def apply_action(action: Action, tracker: Tracker, corpus: GoalCorpus, timeframe: str) -> None:
    match action:
        case CreateLabel(label=label):
            tracker.create_label(label)
        case CreateIssue(issue=issue):
            # The new issue is neither locked nor linked yet; the next pass does that.
            tracker.create_issue(
                title=issue.title,
                body=issue.body,
                labels=issue.labels,
                assignees=issue.assignees,
                timeframe=timeframe,
            )
        case ChangeTitle(number=number, title=title):
            tracker.change_title(number, title)
        case ChangeMilestone(number=number, milestone=milestone):
            tracker.change_milestone(number, milestone)
        case Comment(number=number, body=body):
            tracker.create_comment(number, body)
        case UpdateIssueBody(number=number, body=body):
            tracker.update_issue_body(number, body)
        case SyncAssignees(number=number, remove_owners=remove, add_owners=add):
            tracker.sync_assignees(number, remove, add)
        case LockIssue(number=number):
            tracker.lock_issue(number)
        case LinkToTrackingIssue(document_path=path, issue_id=issue_id):
            corpus.link_issue(path, issue_id)
        case _:
            raise TypeError(f"unknown action {action!r}")


def execute_actions(
    actions: Iterable[Action],
    tracker: Tracker,
    corpus: GoalCorpus,
    timeframe: str,
    *,
    delay_ms: int = 0,
    sleep: Callable[[float], None] = time.sleep,
    stream: TextIO | None = None,
) -> ExecutionReport:
    """Run every action in order; a failing action is reported and skipped."""
    stream = stream or sys.stderr
    logger = get_logger()
    report = ExecutionReport()
    ordered = list(actions)
    total = len(ordered)
    for position, action in enumerate(ordered, start=1):
        description = describe(action)
        kind = action_kind(action)
        number = getattr(action, "number", None)
        report.attempted += 1
        try:
            apply_action(action, tracker, corpus, timeframe)
        except Exception as exc:
            info = classify_error(exc)
            report.failures.append(ActionFailure(action=action, error=info))
            print_operation_status(
                f"[{position}/{total}] {description}", "failed", info.message, stream=stream
            )
            logger.log_error(
                "action_failed",
                error=info.message,
                action=kind,
                category=info.category,
                transient=info.transient,
                original_type=info.original_type,
            )
        else:
            report.successes += 1
            print_operation_status(f"[{position}/{total}] {description}", "ok", stream=stream)
            logger.log_action(kind, description, issue_number=number)
        if delay_ms > 0:
            sleep(delay_ms / 1000)
    return report


__all__ = ["ActionFailure", "ExecutionReport", "apply_action", "execute_actions"]
