"""Sign-off checklist for every team the goals ask something of.

Meant to be pasted into the RFC thread: leads are pinged and required,
other members are listed without a ping.
"""

from __future__ import annotations

from collections.abc import Sequence

from .desired import teams_with_asks
from .directory import Directory
from .models import GoalDocument


def team_checklist(documents: Sequence[GoalDocument], directory: Directory) -> str:
    lines: list[str] = []
    for name in teams_with_asks(documents):
        team = directory.team(name)
        lines.append(f"\n## {team.display_name}\n")
        leads = [m for m in team.members if m.is_lead]
        members = [m for m in team.members if not m.is_lead]
        lines.extend(f"* [ ] @{lead.github} (required, lead)" for lead in leads)
        lines.extend(f"* [ ] {member.github} (optional)" for member in members)
    return "\n".join(lines)


__all__ = ["team_checklist"]
