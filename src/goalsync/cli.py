"""goalsync CLI.

Subcommands:
  sync       -> converge GitHub tracking issues with a timeframe's goal documents
                (dry run unless --commit)
  checklist  -> print the team sign-off checklist for the timeframe's asks
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from typing import Any

import requests

from goalsync.checklist import team_checklist
from goalsync.config import SyncConfig, load_config
from goalsync.directory import load_directory
from goalsync.documents import MarkdownGoalCorpus, timeframe_from_path
from goalsync.errors import GoalSyncError, redact
from goalsync.logging import configure_logging
from goalsync.orchestrator import Outcome, accepted_documents, converge
from goalsync.tracker import build_github_tracker
from goalsync.ux import print_error, print_success, print_summary_box

REPO_HELP = "Override target repository (owner/repo)"
_MAX_HELP_WIDTH = 100


class _HelpFormatter(argparse.HelpFormatter):
    def __init__(self, prog: str) -> None:
        super().__init__(prog, max_help_position=30, width=_MAX_HELP_WIDTH)


class _FormatterArgumentParser(argparse.ArgumentParser):
    def __init__(self, *args: Any, **kwargs: Any) -> None:
        kwargs.setdefault("formatter_class", _HelpFormatter)
        super().__init__(*args, **kwargs)


def _positive_int(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {text!r}") from None
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {value}")
    return value


def _build_parser() -> argparse.ArgumentParser:
    p = _FormatterArgumentParser(
        prog="goalsync", description="Keep goal documents and their GitHub tracking issues in sync"
    )
    p.add_argument(
        "--quiet",
        action="store_true",
        help="Only log warnings and errors (env: GOALSYNC_QUIET=1)",
    )
    sub = p.add_subparsers(
        dest="cmd",
        required=True,
        parser_class=_FormatterArgumentParser,
        metavar="<command>",
    )

    ps = sub.add_parser("sync", help="Create and update tracking issues for a timeframe")
    ps.add_argument("path", type=Path, help="Timeframe directory, e.g. src/2025h1")
    ps.add_argument("--config", help="Config file (default: goalsync.config.yaml if present)")
    ps.add_argument("--repo", help=REPO_HELP)
    ps.add_argument("--commit", action="store_true", help="Execute the actions (default: dry run)")
    ps.add_argument("--sleep", type=int, help="Delay between actions in milliseconds")
    ps.add_argument(
        "--max-passes", type=_positive_int, help="Give up after this many committed passes"
    )

    pc = sub.add_parser("checklist", help="Print the sign-off checklist of asked teams")
    pc.add_argument("path", type=Path, help="Timeframe directory, e.g. src/2025h1")
    pc.add_argument("--config", help="Config file (default: goalsync.config.yaml if present)")
    return p


def _cmd_sync(cfg: SyncConfig, args: argparse.Namespace) -> int:
    timeframe = timeframe_from_path(args.path)
    directory = load_directory(cfg.directory_file)
    tracker = build_github_tracker(args.repo or cfg.github_repo, api_url=cfg.api_url)
    delay_ms = args.sleep if args.sleep is not None else cfg.action_delay_ms
    max_passes = args.max_passes if args.max_passes is not None else cfg.max_passes

    report = converge(
        MarkdownGoalCorpus(args.path),
        directory,
        tracker,
        timeframe=timeframe,
        commit=args.commit,
        delay_ms=delay_ms,
        max_passes=max_passes,
        site_url=cfg.site_url,
    )
    if report.outcome is Outcome.FIXPOINT:
        if args.commit:
            print_summary_box(
                "Sync Summary",
                [
                    ("Passes", report.passes),
                    ("Succeeded", report.successes),
                    ("Failed", report.failures),
                ],
            )
        print_success(f"{timeframe} is in sync")
    return 0


def _cmd_checklist(cfg: SyncConfig, args: argparse.Namespace) -> int:
    timeframe_from_path(args.path)
    directory = load_directory(cfg.directory_file)
    documents = accepted_documents(MarkdownGoalCorpus(args.path))
    print(team_checklist(documents, directory))
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if not args.quiet and os.environ.get("GOALSYNC_QUIET") == "1":
        args.quiet = True
    handlers = {"sync": _cmd_sync, "checklist": _cmd_checklist}
    try:
        cfg = load_config(args.config)
        configure_logging(
            json_logging=cfg.logging_json_enabled,
            level="WARNING" if args.quiet else cfg.logging_level,
        )
        return handlers[args.cmd](cfg, args)
    except GoalSyncError as exc:
        print_error(redact(str(exc)))
        return 1
    except requests.RequestException as exc:
        print_error(f"GitHub is unreachable: {redact(str(exc))}")
        return 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
