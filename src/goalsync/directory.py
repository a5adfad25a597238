"""Person directory and team registry.

Both are static data loaded from one YAML file::

    people:
      nikomatsakis: {github: nikomatsakis, name: Niko Matsakis}
    teams:
      lang:
        display_name: lang        # optional
        label: T-lang             # optional, defaults to T-<name>
        url: https://...          # optional
        members:
          - {github: nikomatsakis, lead: true}
          - {github: tmandry}

Usernames may be written with or without the leading ``@``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, cast

import yaml

from .errors import ConfigError
from .models import Person, Team, TeamMember

TEAM_URL_TEMPLATE = "https://www.rust-lang.org/governance/teams/{name}"


def _strip_at(username: str) -> str:
    return username[1:] if username.startswith("@") else username


@dataclass
class Directory:
    people: dict[str, Person] = field(default_factory=dict)
    teams: dict[str, Team] = field(default_factory=dict)

    def person(self, username: str) -> Person | None:
        """Look up a person; ``None`` when the directory has no entry."""
        return self.people.get(_strip_at(username))

    def team(self, name: str) -> Team:
        try:
            return self.teams[name]
        except KeyError:
            raise ConfigError(f"unknown team `{name}` (not in the team registry)") from None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> Directory:
        people_raw = cast(dict[str, Any], raw.get("people", {}) or {})
        teams_raw = cast(dict[str, Any], raw.get("teams", {}) or {})
        people: dict[str, Person] = {}
        for username, entry in people_raw.items():
            key = _strip_at(str(username))
            if isinstance(entry, str):
                people[key] = Person(username=key, github=_strip_at(entry))
                continue
            if not isinstance(entry, dict):
                raise ConfigError(f"person `{key}` must be a mapping or a github handle")
            github = entry.get("github")
            if not isinstance(github, str) or not github.strip():
                raise ConfigError(f"person `{key}` is missing a github handle")
            people[key] = Person(
                username=key, github=_strip_at(github.strip()), name=entry.get("name")
            )
        teams: dict[str, Team] = {}
        for name, entry in teams_raw.items():
            name = str(name)
            entry = entry or {}
            if not isinstance(entry, dict):
                raise ConfigError(f"team `{name}` must be a mapping")
            members = tuple(
                TeamMember(github=_strip_at(str(m["github"])), is_lead=bool(m.get("lead", False)))
                for m in entry.get("members", []) or []
                if isinstance(m, dict) and m.get("github")
            )
            teams[name] = Team(
                name=name,
                display_name=str(entry.get("display_name", name)),
                label=str(entry.get("label", f"T-{name}")),
                url=str(entry.get("url", TEAM_URL_TEMPLATE.format(name=name))),
                members=members,
            )
        return cls(people=people, teams=teams)


def load_directory(path: str | Path) -> Directory:
    p = Path(path)
    if not p.exists():
        raise ConfigError(f"Directory file not found: {p}")
    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in directory file {p}: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigError(f"Directory file {p} must contain a mapping")
    return Directory.from_mapping(raw)


__all__ = ["Directory", "load_directory"]
