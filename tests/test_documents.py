from __future__ import annotations

from pathlib import Path

import pytest

from goalsync.documents import MarkdownGoalCorpus, parse_goal_document, timeframe_from_path
from goalsync.errors import DocumentError, PreconditionError
from goalsync.models import IssueId

GOAL = """\
# Faster builds

```yaml
# metadata
point_of_contact: "@alice, @bob"
status: Flagship
plan:
  - items:
      - text: Profile the compiler
        owners: "@alice"
  - subgoal: Ship it
    items:
      - text: Write the RFC
        complete: true
      - text: RFC decision
        teams: [lang, compiler]
```

## Summary

Builds should be faster.
Much faster.

## Motivation

Nobody likes waiting.
"""


def _write_goal(root: Path, name: str = "faster-builds.md", text: str = GOAL) -> Path:
    tf = root / "2025h1"
    tf.mkdir(exist_ok=True)
    path = tf / name
    path.write_text(text, encoding="utf-8")
    return path


def test_summary_under_top_level_heading():
    text = GOAL.replace("## Summary", "# Summary")
    doc = parse_goal_document(Path("src/2025h1/x.md"), text, Path("2025h1/x.md"))
    assert doc.summary == "Builds should be faster.\nMuch faster."


def test_parse_goal_document_fields():
    doc = parse_goal_document(Path("src/2025h1/x.md"), GOAL, Path("2025h1/x.md"))
    assert doc.title == "Faster builds"
    assert doc.summary == "Builds should be faster.\nMuch faster."
    assert doc.owners == ("@alice", "@bob")
    assert doc.is_flagship
    assert doc.tracking_issue is None
    assert [p.subgoal for p in doc.goal_plans] == [None, "Ship it"]
    first = doc.goal_plans[0].plan_items[0]
    assert first.usernames == ("@alice",)
    assert not first.complete
    assert doc.goal_plans[1].plan_items[0].complete
    assert doc.teams_with_asks() == ["compiler", "lang"]
    assert doc.team_asks[0].subgoal == "Ship it"


def test_parse_reads_tracking_issue():
    text = GOAL.replace("status: Flagship", 'status: Accepted\ntracking_issue: "o/r#12"')
    doc = parse_goal_document(Path("x.md"), text, Path("x.md"))
    assert doc.tracking_issue == IssueId("o/r", 12)
    assert not doc.is_flagship


def test_plan_item_with_teams_and_owners_is_rejected():
    text = GOAL.replace("teams: [lang, compiler]", "teams: [lang]\n        owners: '@bob'")
    with pytest.raises(DocumentError, match="both teams and owners"):
        parse_goal_document(Path("x.md"), text, Path("x.md"))


def test_bad_tracking_issue_is_a_document_error():
    text = GOAL.replace("status: Flagship", "tracking_issue: 42")
    with pytest.raises(DocumentError, match="owner/repo#123"):
        parse_goal_document(Path("x.md"), text, Path("x.md"))


def test_missing_metadata_block():
    with pytest.raises(DocumentError, match="metadata"):
        parse_goal_document(Path("x.md"), "# Title\n\nNo metadata.\n", Path("x.md"))


def test_corpus_loads_sorted_and_skips_non_goals(tmp_path):
    _write_goal(tmp_path, "b.md")
    _write_goal(tmp_path, "a.md")
    _write_goal(tmp_path, "README.md", "# Readme\n")
    _write_goal(tmp_path, "_template.md", "# Template\n")
    docs = MarkdownGoalCorpus(tmp_path / "2025h1").load()
    assert [d.path.name for d in docs] == ["a.md", "b.md"]
    assert docs[0].link_path == Path("2025h1/a.md")


def test_link_issue_inserts_tracking_line(tmp_path):
    path = _write_goal(tmp_path)
    corpus = MarkdownGoalCorpus(path.parent)

    corpus.link_issue(path, IssueId("o/r", 42))

    lines = path.read_text(encoding="utf-8").splitlines()
    assert lines[2:4] == ["```yaml", 'tracking_issue: "o/r#42"']
    assert corpus.load()[0].tracking_issue == IssueId("o/r", 42)


def test_link_issue_replaces_existing_line(tmp_path):
    text = GOAL.replace("status: Flagship", 'status: Flagship\ntracking_issue: "o/r#1"')
    path = _write_goal(tmp_path, text=text)

    MarkdownGoalCorpus(path.parent).link_issue(path, IssueId("o/r", 2))

    updated = path.read_text(encoding="utf-8")
    assert updated.count("tracking_issue:") == 1
    assert 'tracking_issue: "o/r#2"' in updated
    assert updated == text.replace('"o/r#1"', '"o/r#2"')


def test_link_issue_keeps_crlf_newlines(tmp_path):
    path = tmp_path / "goal.md"
    path.write_bytes(GOAL.replace("\n", "\r\n").encode("utf-8"))

    MarkdownGoalCorpus(tmp_path).link_issue(path, IssueId("o/r", 5))

    raw = path.read_bytes()
    assert b'```yaml\r\ntracking_issue: "o/r#5"\r\n' in raw
    assert b"\n" not in raw.replace(b"\r\n", b"")


def test_timeframe_from_path(tmp_path, monkeypatch):
    (tmp_path / "src" / "2025h1").mkdir(parents=True)
    monkeypatch.chdir(tmp_path)
    assert timeframe_from_path(Path("src/2025h1")) == "2025h1"
    with pytest.raises(PreconditionError, match="relative"):
        timeframe_from_path(tmp_path / "src" / "2025h1")
    with pytest.raises(PreconditionError, match="directory"):
        timeframe_from_path(Path("src/2099h1"))
