"""Desired state: the tracking issues and labels the goal documents call for."""

from __future__ import annotations

from collections.abc import Sequence

from .directory import Directory
from .models import DesiredIssue, GoalDocument, GoalPlan, Label

TRACKING_ISSUE_LABEL = "C-tracking-issue"
FLAGSHIP_LABEL = "Flagship Goal"

TEAM_LABEL_COLOR = "bfd4f2"
TRACKING_ISSUE_LABEL_COLOR = "f5f1fd"
FLAGSHIP_LABEL_COLOR = "5319E7"

DEFAULT_SITE_URL = "https://rust-lang.github.io/rust-project-goals"

TEAM_BADGE = "![Team][]"

ISSUE_TEMPLATE = """
| Metadata         | |
| --------         | --- |
| Point of contact | {poc} |
| Team(s)          | {teams} |
| Goal document    | {goal_document} |

## Summary

{summary}

## Tasks and status

{tasks}

[Team]: https://img.shields.io/badge/Team%20ask-red
"""


def teams_with_asks(documents: Sequence[GoalDocument]) -> list[str]:
    """Every team named by any document's asks, sorted."""
    return sorted({team for doc in documents for ask in doc.team_asks for team in ask.teams})


def goal_document_link(
    timeframe: str, document: GoalDocument, site_url: str = DEFAULT_SITE_URL
) -> str:
    """Markdown link to the rendered goal page.

    The diff engine uses this string as the marker telling whether an issue
    body was generated for the current timeframe.
    """
    stem = document.link_path.stem
    base = site_url.rstrip("/")
    return f"[{timeframe}/{stem}]({base}/{timeframe}/{stem}.html)"


def task_items(plan: GoalPlan, directory: Directory) -> list[str]:
    tasks: list[str] = []
    if plan.subgoal:
        tasks.append(f"### {plan.subgoal}")
    for item in plan.plan_items:
        box = "[x]" if item.complete else "[ ]"
        line = f"* {box} {item.text}"
        if item.teams:
            links = ", ".join(directory.team(name).name_and_link() for name in item.teams)
            line += f" ({links} {TEAM_BADGE})"
        elif item.usernames:
            line += f" ({', '.join(item.usernames)})"
        tasks.append(line)
    return tasks


def issue_text(
    timeframe: str,
    document: GoalDocument,
    directory: Directory,
    site_url: str = DEFAULT_SITE_URL,
) -> str:
    tasks: list[str] = []
    for plan in document.goal_plans:
        tasks.extend(task_items(plan, directory))
    teams = [directory.team(name).name_and_link() for name in document.teams_with_asks()]
    return ISSUE_TEMPLATE.format(
        poc=", ".join(document.owner_usernames()),
        teams=", ".join(teams),
        goal_document=goal_document_link(timeframe, document, site_url),
        summary=document.summary,
        tasks="\n".join(tasks),
    )


def desired_issue(
    timeframe: str,
    document: GoalDocument,
    index: int,
    directory: Directory,
    site_url: str = DEFAULT_SITE_URL,
) -> DesiredIssue:
    assignees: set[str] = set()
    for username in document.owner_usernames():
        person = directory.person(username)
        if person is not None:
            assignees.add(person.github)

    labels = [TRACKING_ISSUE_LABEL]
    if document.is_flagship:
        labels.append(FLAGSHIP_LABEL)
    labels.extend(directory.team(name).label for name in document.teams_with_asks())

    return DesiredIssue(
        title=document.title,
        assignees=frozenset(assignees),
        body=issue_text(timeframe, document, directory, site_url),
        labels=tuple(labels),
        tracking_issue=document.tracking_issue,
        document_index=index,
    )


def desired_issues(
    timeframe: str,
    documents: Sequence[GoalDocument],
    directory: Directory,
    site_url: str = DEFAULT_SITE_URL,
) -> list[DesiredIssue]:
    """One desired issue per document, in document order."""
    return [
        desired_issue(timeframe, doc, idx, directory, site_url)
        for idx, doc in enumerate(documents)
    ]


def desired_labels(team_names: Sequence[str], directory: Directory) -> set[Label]:
    labels = {Label(directory.team(name).label, TEAM_LABEL_COLOR) for name in team_names}
    labels.add(Label(TRACKING_ISSUE_LABEL, TRACKING_ISSUE_LABEL_COLOR))
    labels.add(Label(FLAGSHIP_LABEL, FLAGSHIP_LABEL_COLOR))
    return labels


__all__ = [
    "FLAGSHIP_LABEL",
    "TRACKING_ISSUE_LABEL",
    "desired_issue",
    "desired_issues",
    "desired_labels",
    "goal_document_link",
    "issue_text",
    "task_items",
    "teams_with_asks",
]
