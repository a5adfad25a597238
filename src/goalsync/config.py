from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, cast

import yaml

from .desired import DEFAULT_SITE_URL
from .errors import ConfigError

CONFIG_DEFAULT = "goalsync.config.yaml"
DIRECTORY_DEFAULT = "directory.yaml"
DEFAULT_ACTION_DELAY_MS = 1000


@dataclass
class SyncConfig:
    github_repo: str | None
    api_url: str | None
    directory_file: Path
    site_url: str
    action_delay_ms: int
    max_passes: int | None
    # Logging configuration
    logging_json_enabled: bool
    logging_level: str


def _resolve_env_var(value: Any) -> Any:
    """Resolve environment variable if value starts with $."""
    if isinstance(value, str) and value.startswith("$"):
        return os.getenv(value[1:], value)  # Fallback to original if not found
    return value


def _section(raw: dict[str, Any], name: str) -> dict[str, Any]:
    value = raw.get(name, {}) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"`{name}` must be a mapping")
    return cast(dict[str, Any], value)


def _optional_int(value: Any, name: str) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"`{name}` must be an integer") from exc


def load_config(path: str | Path | None = None) -> SyncConfig:
    """Load configuration; a missing default file means all defaults apply.

    An explicitly named file that does not exist is an error.
    """
    p = Path(path) if path is not None else Path(CONFIG_DEFAULT)
    if p.exists():
        try:
            raw_any = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {p}: {exc}") from exc
        if not isinstance(raw_any, dict):
            raise ConfigError(f"Configuration file {p} must contain a mapping")
        raw = cast(dict[str, Any], raw_any)
    elif path is not None:
        raise ConfigError(f"Configuration file not found: {p}")
    else:
        raw = {}

    gh = _section(raw, "github")
    directory = _section(raw, "directory")
    site = _section(raw, "site")
    behavior = _section(raw, "behavior")
    logging_config = _section(raw, "logging")

    max_passes = _optional_int(_resolve_env_var(behavior.get("max_passes")), "behavior.max_passes")
    if max_passes is not None and max_passes < 1:
        raise ConfigError("`behavior.max_passes` must be at least 1")
    delay = _optional_int(
        _resolve_env_var(behavior.get("action_delay_ms", DEFAULT_ACTION_DELAY_MS)),
        "behavior.action_delay_ms",
    )

    return SyncConfig(
        github_repo=_resolve_env_var(gh.get("repo")),
        api_url=_resolve_env_var(gh.get("api_url")),
        directory_file=p.parent / str(directory.get("file", DIRECTORY_DEFAULT)),
        site_url=str(site.get("url", DEFAULT_SITE_URL)),
        action_delay_ms=max(0, delay or 0),
        max_passes=max_passes,
        logging_json_enabled=bool(logging_config.get("json_enabled", False)),
        logging_level=str(logging_config.get("level", "INFO")),
    )


__all__ = ["CONFIG_DEFAULT", "SyncConfig", "load_config"]
