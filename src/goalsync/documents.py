"""Goal document corpus backed by a directory of markdown files.

One timeframe lives in one directory (``src/2025h1``); every markdown file in
it is a goal document shaped like::

    # Goal title

    ```yaml
    point_of_contact: "@alice"
    status: Accepted            # Proposed | Accepted | Flagship | Not accepted
    tracking_issue: "rust-lang/rust-project-goals#42"   # optional
    plan:
      - subgoal: Stabilize the thing   # optional
        items:
          - text: Write the RFC
            complete: true
            owners: "@alice"
          - text: Discussion and moral support
            teams: [lang]
    ```

    ## Summary

    Free text up to the next `##` heading.

The engine only relies on the ``GoalCorpus`` contract
(``load`` + ``link_issue``).
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Protocol, cast

import yaml

from .errors import DocumentError, PreconditionError
from .models import GoalDocument, GoalPlan, IssueId, PlanItem, TeamAsk

SKIPPED_FILES = frozenset({"README.md", "TEMPLATE.md", "index.md", "SUMMARY.md"})

_FENCE_OPEN = "```yaml"
_FENCE_CLOSE = "```"
_TRACKING_LINE_RE = re.compile(r"^tracking_issue\s*:")


class GoalCorpus(Protocol):
    def load(self) -> list[GoalDocument]: ...  # pragma: no cover - structural only

    def link_issue(self, path: Path, issue_id: IssueId) -> None: ...  # pragma: no cover


def timeframe_from_path(path: Path) -> str:
    """Validate a timeframe directory argument and return its last component."""
    if not path.is_dir():
        raise PreconditionError("goal path should be a directory like src/2025h1")
    if path.is_absolute():
        raise PreconditionError("goal path should be relative")
    timeframe = path.name
    if not timeframe or timeframe in {".", ".."}:
        raise PreconditionError(f"invalid path `{path}`")
    return timeframe


def _as_list(value: Any, *, field: str, where: Path) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return tuple(p.strip() for p in value.split(",") if p.strip())
    if isinstance(value, list):
        return tuple(str(p).strip() for p in value if str(p).strip())
    raise DocumentError(f"{where}: `{field}` must be a string or a list")


def _metadata_bounds(lines: list[str], where: Path) -> tuple[int, int]:
    """Return (open fence index, close fence index) of the metadata block."""
    start: int | None = None
    for idx, line in enumerate(lines):
        stripped = line.strip()
        if start is None:
            if stripped == _FENCE_OPEN:
                start = idx
        elif stripped == _FENCE_CLOSE:
            return start, idx
    if start is None:
        raise DocumentError(f"{where}: missing ```yaml metadata block")
    raise DocumentError(f"{where}: unterminated ```yaml metadata block")


def _title(lines: list[str], where: Path) -> str:
    for line in lines:
        if line.startswith("# "):
            title = line[2:].strip()
            if title:
                return title
    raise DocumentError(f"{where}: missing `# Title` heading")


def _summary(lines: list[str]) -> str:
    collected: list[str] = []
    inside = False
    for line in lines:
        if line.startswith("## ") or line.startswith("# "):
            if inside:
                break
            inside = line.lstrip("#").strip().lower() == "summary"
            continue
        if inside:
            collected.append(line)
    return "\n".join(collected).strip()


def _plan_item(raw: Any, where: Path) -> PlanItem:
    if isinstance(raw, str):
        return PlanItem(text=raw.strip())
    if not isinstance(raw, dict):
        raise DocumentError(f"{where}: plan items must be mappings or strings")
    text = raw.get("text")
    if not isinstance(text, str) or not text.strip():
        raise DocumentError(f"{where}: plan item without `text`")
    teams = _as_list(raw.get("teams"), field="teams", where=where)
    usernames = _as_list(raw.get("owners"), field="owners", where=where)
    if teams and usernames:
        raise DocumentError(
            f"{where}: plan item `{text.strip()}` names both teams and owners"
        )
    return PlanItem(
        text=text.strip(),
        complete=bool(raw.get("complete", False)),
        teams=teams,
        usernames=usernames,
    )


def _goal_plans(raw: Any, where: Path) -> tuple[GoalPlan, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise DocumentError(f"{where}: `plan` must be a list")
    plans: list[GoalPlan] = []
    for entry in raw:
        if not isinstance(entry, dict):
            raise DocumentError(f"{where}: each plan entry must be a mapping")
        subgoal = entry.get("subgoal")
        items = entry.get("items") or []
        if not isinstance(items, list):
            raise DocumentError(f"{where}: plan `items` must be a list")
        plans.append(
            GoalPlan(
                subgoal=str(subgoal).strip() if subgoal else None,
                plan_items=tuple(_plan_item(item, where) for item in items),
            )
        )
    return tuple(plans)


def _team_asks(plans: tuple[GoalPlan, ...]) -> tuple[TeamAsk, ...]:
    return tuple(
        TeamAsk(teams=item.teams, ask=item.text, subgoal=plan.subgoal)
        for plan in plans
        for item in plan.plan_items
        if item.teams
    )


def parse_goal_document(path: Path, text: str, link_path: Path) -> GoalDocument:
    lines = text.splitlines()
    start, end = _metadata_bounds(lines, path)
    try:
        meta_any = yaml.safe_load("\n".join(lines[start + 1 : end])) or {}
    except yaml.YAMLError as exc:
        raise DocumentError(f"{path}: invalid YAML metadata: {exc}") from exc
    if not isinstance(meta_any, dict):
        raise DocumentError(f"{path}: metadata block must be a mapping")
    meta = cast(dict[str, Any], meta_any)

    tracking_raw = meta.get("tracking_issue")
    tracking_issue: IssueId | None = None
    if tracking_raw:
        try:
            tracking_issue = IssueId.parse(str(tracking_raw))
        except ValueError as exc:
            raise DocumentError(f"{path}: {exc}") from exc

    plans = _goal_plans(meta.get("plan"), path)
    return GoalDocument(
        path=path,
        link_path=link_path,
        title=_title(lines[:start] + lines[end + 1 :], path),
        summary=_summary(lines[:start] + lines[end + 1 :]),
        owners=_as_list(meta.get("point_of_contact"), field="point_of_contact", where=path),
        status=str(meta.get("status", "Proposed")).strip(),
        tracking_issue=tracking_issue,
        team_asks=_team_asks(plans),
        goal_plans=plans,
    )


class MarkdownGoalCorpus:
    """All goal documents of one timeframe directory."""

    def __init__(self, directory: Path):
        self.directory = directory

    def _document_paths(self) -> list[Path]:
        return sorted(
            p
            for p in self.directory.glob("*.md")
            if p.is_file() and p.name not in SKIPPED_FILES and not p.name.startswith("_")
        )

    def load(self) -> list[GoalDocument]:
        documents: list[GoalDocument] = []
        for path in self._document_paths():
            link_path = Path(self.directory.name) / path.name
            text = path.read_text(encoding="utf-8")
            documents.append(parse_goal_document(path, text, link_path))
        return documents

    def link_issue(self, path: Path, issue_id: IssueId) -> None:
        """Record ``issue_id`` as the tracking issue in the document's metadata."""
        text = path.read_bytes().decode("utf-8")
        lines = text.splitlines(keepends=True)
        start, end = _metadata_bounds([line.rstrip("\r\n") for line in lines], path)
        newline = "\r\n" if lines[start].endswith("\r\n") else "\n"
        entry = f'tracking_issue: "{issue_id}"{newline}'
        for idx in range(start + 1, end):
            if _TRACKING_LINE_RE.match(lines[idx]):
                lines[idx] = entry
                break
        else:
            lines.insert(start + 1, entry)
        path.write_bytes("".join(lines).encode("utf-8"))


__all__ = [
    "GoalCorpus",
    "MarkdownGoalCorpus",
    "parse_goal_document",
    "timeframe_from_path",
]
