"""Diff engine: desired state vs. tracker state -> corrective actions.

Labels are compared by name only; an existing label with another color is
left alone. Each desired issue is matched against at most one existing issue:

1. a declared tracking issue wins, looked up in the milestone listing and
   point-fetched from the tracker when it lives elsewhere;
2. otherwise the first milestone issue with exactly the same title;
3. otherwise the issue does not exist yet and gets a single CreateIssue.

Matched issues go through every check below on every pass; none of them
short-circuits another. The milestone and lock checks always emit their
action together with the explaining comment.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from .actions import (
    CONTINUING_GOAL_PREFIX,
    LOCK_TEXT,
    Action,
    ActionSet,
    ChangeMilestone,
    ChangeTitle,
    Comment,
    CreateIssue,
    CreateLabel,
    LinkToTrackingIssue,
    LockIssue,
    SyncAssignees,
    UpdateIssueBody,
)
from .desired import DEFAULT_SITE_URL, goal_document_link
from .models import DesiredIssue, ExistingIssue, GoalDocument, IssueId, Label
from .tracker import IssueFetcher

BODY_UPDATE_NOTICE = (
    "Note: we have updated the body to match the {timeframe} goal. "
    "Your original text is preserved below."
)


def diff_labels(desired: Iterable[Label], existing: Iterable[Label]) -> ActionSet:
    existing_names = {label.name for label in existing}
    return ActionSet(
        CreateLabel(label=label) for label in desired if label.name not in existing_names
    )


def match_existing(
    desired: DesiredIssue,
    milestone_issues: Sequence[ExistingIssue],
    tracker: IssueFetcher,
) -> ExistingIssue | None:
    if desired.tracking_issue is not None:
        number = desired.tracking_issue.number
        for issue in milestone_issues:
            if issue.number == number:
                return issue
        return tracker.fetch_issue(number)
    for issue in milestone_issues:
        if issue.title == desired.title:
            return issue
    return None


def preserved_body(timeframe: str, desired_body: str, existing_body: str) -> str:
    """New body for an issue carried over from another timeframe.

    The previous text is kept verbatim inside a collapsed ``<details>``.
    """
    notice = BODY_UPDATE_NOTICE.format(timeframe=timeframe)
    return f"{desired_body}\n---\n{notice} <details>\n{existing_body}\n</details>"


def diff_issue(
    desired: DesiredIssue,
    existing: ExistingIssue,
    *,
    document: GoalDocument,
    repository: str,
    timeframe: str,
    site_url: str = DEFAULT_SITE_URL,
) -> list[Action]:
    number = existing.number
    actions: list[Action] = []

    if existing.assignees != desired.assignees:
        actions.append(
            SyncAssignees(
                number=number,
                remove_owners=existing.assignees - desired.assignees,
                add_owners=desired.assignees - existing.assignees,
            )
        )

    if existing.title != desired.title:
        actions.append(ChangeTitle(number=number, title=desired.title))

    if existing.milestone != timeframe:
        actions.append(ChangeMilestone(number=number, milestone=timeframe))
        actions.append(Comment(number=number, body=f"{CONTINUING_GOAL_PREFIX} {timeframe}"))

    if not existing.locked:
        actions.append(LockIssue(number=number))
        actions.append(Comment(number=number, body=LOCK_TEXT))

    link_text = goal_document_link(timeframe, document, site_url)
    if link_text not in existing.body:
        actions.append(
            UpdateIssueBody(
                number=number,
                body=preserved_body(timeframe, desired.body, existing.body),
            )
        )

    issue_id = IssueId(repository, number)
    if desired.tracking_issue != issue_id:
        actions.append(LinkToTrackingIssue(document_path=document.path, issue_id=issue_id))

    return actions


def diff_issues(
    desired_issues: Sequence[DesiredIssue],
    documents: Sequence[GoalDocument],
    milestone_issues: Sequence[ExistingIssue],
    tracker: IssueFetcher,
    *,
    repository: str,
    timeframe: str,
    site_url: str = DEFAULT_SITE_URL,
) -> ActionSet:
    actions = ActionSet()
    for desired in desired_issues:
        existing = match_existing(desired, milestone_issues, tracker)
        if existing is None:
            actions.add(CreateIssue(issue=desired))
            continue
        actions.update(
            diff_issue(
                desired,
                existing,
                document=documents[desired.document_index],
                repository=repository,
                timeframe=timeframe,
                site_url=site_url,
            )
        )
    return actions


__all__ = [
    "diff_issue",
    "diff_issues",
    "diff_labels",
    "match_existing",
    "preserved_body",
]
