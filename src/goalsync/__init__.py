"""goalsync - keep goal documents and their GitHub tracking issues in sync.

High-level public API:

from pathlib import Path
from goalsync import MarkdownGoalCorpus, build_github_tracker, converge, describe, load_directory

report = converge(
    MarkdownGoalCorpus(Path('src/2025h1')),
    load_directory('directory.yaml'),
    build_github_tracker('rust-lang/rust-project-goals'),
    timeframe='2025h1',
    commit=False,
)
print(report.outcome, [describe(a) for a in report.pending])

The CLI (``goalsync sync src/2025h1 --commit``) is a thin layer over this.
"""

from __future__ import annotations

from .actions import Action, ActionSet, describe
from .config import SyncConfig, load_config
from .directory import Directory, load_directory
from .documents import MarkdownGoalCorpus
from .orchestrator import ConvergenceReport, Outcome, converge, plan_pass
from .tracker import GitHubTracker, Tracker, build_github_tracker

__version__ = "0.1.0"

__all__ = [
    "Action",
    "ActionSet",
    "ConvergenceReport",
    "Directory",
    "GitHubTracker",
    "MarkdownGoalCorpus",
    "Outcome",
    "SyncConfig",
    "Tracker",
    "build_github_tracker",
    "converge",
    "describe",
    "load_config",
    "load_directory",
    "plan_pass",
    "__version__",
]
