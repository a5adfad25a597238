from __future__ import annotations

from pathlib import Path

import pytest

from goalsync import cli

GOAL = """\
# Faster builds

```yaml
point_of_contact: "@alice"
status: Accepted
plan:
  - items:
      - text: Profile the compiler
        owners: "@alice"
      - text: RFC decision
        teams: [lang]
```

## Summary

Builds should be faster.
"""

DIRECTORY = """\
people:
  alice: {github: alice-gh}
teams:
  lang:
    members:
      - {github: niko, lead: true}
      - {github: josh}
"""


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    goals = tmp_path / "src" / "2025h1"
    goals.mkdir(parents=True)
    (goals / "faster-builds.md").write_text(GOAL, encoding="utf-8")
    (goals / "README.md").write_text("# Goals\n", encoding="utf-8")
    (tmp_path / "directory.yaml").write_text(DIRECTORY, encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("GOALSYNC_QUIET", raising=False)
    return tmp_path


@pytest.fixture
def patched_tracker(monkeypatch, tracker):
    seen: dict[str, object] = {}

    def _build(repository, *, api_url=None):
        seen["repository"] = repository
        return tracker

    monkeypatch.setattr(cli, "build_github_tracker", _build)
    tracker.seen = seen
    return tracker


def test_checklist_prints_to_stdout(workspace, capsys):
    assert cli.main(["checklist", "src/2025h1"]) == 0
    out = capsys.readouterr().out
    assert "## lang" in out
    assert "* [ ] @niko (required, lead)" in out
    assert "* [ ] josh (optional)" in out


def test_sync_requires_token(workspace, capsys, monkeypatch):
    for name in ("GOALSYNC_GITHUB_TOKEN", "GITHUB_TOKEN", "GH_TOKEN"):
        monkeypatch.delenv(name, raising=False)
    assert cli.main(["sync", "src/2025h1", "--repo", "acme/goals"]) == 1
    assert "no GitHub token found" in capsys.readouterr().err


def test_sync_rejects_absolute_path(workspace, capsys, patched_tracker):
    assert cli.main(["sync", str(workspace / "src" / "2025h1"), "--repo", "acme/goals"]) == 1
    assert "relative" in capsys.readouterr().err


def test_sync_dry_run_lists_actions(workspace, capsys, patched_tracker):
    assert cli.main(["sync", "src/2025h1", "--repo", "acme/goals"]) == 0
    err = capsys.readouterr().err
    assert "Actions to be executed:" in err
    assert '* create issue "Faster builds"' in err
    assert "* create label `T-lang` with color `bfd4f2`" in err
    assert "Use `--commit` to execute the actions." in err
    assert patched_tracker.calls == []
    assert patched_tracker.seen["repository"] == "acme/goals"


def test_sync_commit_links_document(workspace, capsys, patched_tracker):
    argv = ["--quiet", "sync", "src/2025h1", "--repo", "acme/goals", "--commit", "--sleep", "0"]
    assert cli.main(argv) == 0
    err = capsys.readouterr().err
    assert "2025h1 is in sync" in err
    assert "Sync Summary" in err
    text = Path("src/2025h1/faster-builds.md").read_text(encoding="utf-8")
    assert 'tracking_issue: "rust-lang/rust-project-goals#1"' in text
    assert patched_tracker.issues[1].locked


def test_sync_uses_config_file(workspace, capsys, patched_tracker):
    Path("goalsync.config.yaml").write_text(
        "github:\n  repo: acme/from-config\nbehavior:\n  max_passes: 1\n", encoding="utf-8"
    )
    # one committed pass is allowed; the second still has lock and link work left
    assert cli.main(["sync", "src/2025h1", "--commit", "--sleep", "0"]) == 1
    assert "no fixpoint after 1 pass(es)" in capsys.readouterr().err
    assert patched_tracker.seen["repository"] == "acme/from-config"


def test_missing_explicit_config_is_reported(workspace, capsys):
    assert cli.main(["checklist", "src/2025h1", "--config", "nope.yaml"]) == 1
    assert "Configuration file not found" in capsys.readouterr().err


@pytest.mark.parametrize("value", ["0", "-3"])
def test_sync_rejects_max_passes_below_one(value, workspace, capsys, patched_tracker):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["sync", "src/2025h1", "--commit", "--max-passes", value])
    assert excinfo.value.code == 2
    assert "must be at least 1" in capsys.readouterr().err
    assert patched_tracker.calls == []
