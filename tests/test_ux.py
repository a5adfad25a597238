"""Tests for UX helpers module."""

from __future__ import annotations

import io

import pytest

from goalsync.ux import (
    Colors,
    colorize,
    print_error,
    print_operation_status,
    print_success,
    print_summary_box,
)


def test_colorize_with_tty_support(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test colorize adds colors when TTY is supported."""
    monkeypatch.delenv("NO_COLOR", raising=False)
    monkeypatch.setenv("TERM", "xterm-256color")

    stream = io.StringIO()
    # Make it look like a TTY
    stream.isatty = lambda: True  # type: ignore[method-assign]

    result = colorize("test", Colors.RED, bold=True, stream=stream)
    assert Colors.RED in result
    assert Colors.BOLD in result
    assert Colors.RESET in result
    assert "test" in result


def test_colorize_respects_no_color(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test colorize respects NO_COLOR environment variable."""
    monkeypatch.setenv("NO_COLOR", "1")

    stream = io.StringIO()
    stream.isatty = lambda: True  # type: ignore[method-assign]
    assert colorize("test", Colors.RED, bold=True, stream=stream) == "test"


def test_colorize_dumb_terminal(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("NO_COLOR", raising=False)
    monkeypatch.setenv("TERM", "dumb")
    stream = io.StringIO()
    stream.isatty = lambda: True  # type: ignore[method-assign]
    assert colorize("test", Colors.GREEN, stream=stream) == "test"


def test_print_success_and_error() -> None:
    stream = io.StringIO()
    print_success("all good", stream=stream)
    print_error("broken", stream=stream)
    assert stream.getvalue() == "✓ all good\n✗ broken\n"


def test_print_operation_status_variants() -> None:
    stream = io.StringIO()
    print_operation_status("[1/2] lock issue #4", "ok", stream=stream)
    print_operation_status("[2/2] lock issue #5", "failed", "boom", stream=stream)
    print_operation_status("scan", "pending", stream=stream)
    print_operation_status("scan", "odd", stream=stream)
    assert stream.getvalue().splitlines() == [
        "✓ [1/2] lock issue #4: ok",
        "✗ [2/2] lock issue #5: failed (boom)",
        "○ scan: pending",
        "• scan: odd",
    ]


def test_print_summary_box_aligns_keys() -> None:
    stream = io.StringIO()
    print_summary_box("Sync Summary", [("Passes", 3), ("Failed", 0)], stream=stream)
    lines = stream.getvalue().splitlines()
    assert lines[1] == "Sync Summary"
    assert "  Passes  3" in lines
    assert "  Failed  0" in lines
