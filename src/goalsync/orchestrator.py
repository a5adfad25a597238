"""Convergence loop: plan, (execute), re-plan until nothing is left to do.

Every pass starts from scratch: documents are reloaded (a previous pass may
have written tracking issues into them), desired state is rebuilt and the
tracker is queried again. Some corrections only become reachable after an
earlier one lands (a new issue needs a number before it can be locked and
linked), which is why one pass is not enough.

Exits:
- fixpoint: a pass produced no actions;
- dry run: actions were found but ``commit`` is off; they are printed;
- fatal: every action of a committed batch failed (``BatchFailedError``) or
  ``max_passes`` committed passes did not reach a fixpoint
  (``ConvergenceError``).
"""

from __future__ import annotations

import sys
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import TextIO

from .actions import Action, ActionSet, describe
from .desired import DEFAULT_SITE_URL, desired_issues, desired_labels, teams_with_asks
from .diffing import diff_issues, diff_labels
from .directory import Directory
from .documents import GoalCorpus
from .errors import BatchFailedError, ConvergenceError
from .executor import execute_actions
from .logging import get_logger
from .models import GoalDocument
from .tracker import Tracker


class Outcome(str, Enum):
    FIXPOINT = "fixpoint"
    DRY_RUN = "dry_run"


@dataclass
class ConvergenceReport:
    outcome: Outcome
    passes: int
    pending: list[Action] = field(default_factory=list)
    successes: int = 0
    failures: int = 0


def accepted_documents(corpus: GoalCorpus) -> list[GoalDocument]:
    return [doc for doc in corpus.load() if doc.is_accepted]


def plan_pass(
    documents: list[GoalDocument],
    directory: Directory,
    tracker: Tracker,
    *,
    timeframe: str,
    site_url: str = DEFAULT_SITE_URL,
) -> ActionSet:
    """Diff one freshly built desired state against a fresh tracker snapshot."""
    labels = desired_labels(teams_with_asks(documents), directory)
    actions = diff_labels(labels, tracker.list_labels())
    issues = desired_issues(timeframe, documents, directory, site_url)
    actions.update(
        diff_issues(
            issues,
            documents,
            tracker.list_issues_in_milestone(timeframe),
            tracker,
            repository=tracker.repository,
            timeframe=timeframe,
            site_url=site_url,
        )
    )
    return actions


def print_pending(actions: list[Action], stream: TextIO) -> None:
    print("Actions to be executed:", file=stream)
    for action in actions:
        print(f"* {describe(action)}", file=stream)
    print("", file=stream)
    print("Use `--commit` to execute the actions.", file=stream)


def converge(
    corpus: GoalCorpus,
    directory: Directory,
    tracker: Tracker,
    *,
    timeframe: str,
    commit: bool = False,
    delay_ms: int = 0,
    max_passes: int | None = None,
    site_url: str = DEFAULT_SITE_URL,
    sleep: Callable[[float], None] = time.sleep,
    stream: TextIO | None = None,
) -> ConvergenceReport:
    if max_passes is not None and max_passes < 1:
        raise ValueError(f"max_passes must be at least 1, got {max_passes}")
    stream = stream or sys.stderr
    logger = get_logger()
    passes = 0
    successes = 0
    failures = 0
    while True:
        passes += 1
        with logger.timed_operation("pass", timeframe=timeframe, commit=commit, pass_number=passes):
            documents = accepted_documents(corpus)
            pending = plan_pass(
                documents, directory, tracker, timeframe=timeframe, site_url=site_url
            ).ordered()
        logger.log_pass(passes, documents=len(documents), actions=len(pending), timeframe=timeframe)

        if not pending:
            logger.log_operation("fixpoint", passes=passes)
            return ConvergenceReport(Outcome.FIXPOINT, passes, [], successes, failures)

        if not commit:
            print_pending(pending, stream)
            return ConvergenceReport(Outcome.DRY_RUN, passes, pending, successes, failures)

        if max_passes is not None and passes > max_passes:
            raise ConvergenceError(passes - 1, len(pending))

        report = execute_actions(
            pending, tracker, corpus, timeframe, delay_ms=delay_ms, sleep=sleep, stream=stream
        )
        successes += report.successes
        failures += len(report.failures)
        if report.all_failed:
            logger.log_error("batch_failed", pass_number=passes, attempted=report.attempted)
            raise BatchFailedError(report.attempted)


__all__ = [
    "ConvergenceReport",
    "Outcome",
    "accepted_documents",
    "converge",
    "plan_pass",
    "print_pending",
]
