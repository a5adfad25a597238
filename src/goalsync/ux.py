"""Terminal output for sync runs: per-action status lines and summaries.

Everything is written to stderr by default so stdout stays clean for command
output such as the team checklist.
"""

from __future__ import annotations

import os
import sys
from collections.abc import Sequence
from typing import TextIO


class Colors:
    """ANSI color codes for terminal output."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    CYAN = "\033[36m"


RULE_WIDTH = 60

# status word -> (icon, color, bold status word)
_STATUS_STYLES: dict[str, tuple[str, str, bool]] = {
    "ok": ("✓", Colors.GREEN, False),
    "success": ("✓", Colors.GREEN, False),
    "done": ("✓", Colors.GREEN, False),
    "failed": ("✗", Colors.RED, True),
    "error": ("✗", Colors.RED, True),
    "pending": ("○", Colors.YELLOW, False),
    "dry-run": ("○", Colors.YELLOW, False),
}


def _supports_color(stream: TextIO | None = None) -> bool:
    """Colors only on a real TTY, and never when NO_COLOR is set or TERM is dumb."""
    stream = stream or sys.stderr
    if os.environ.get("NO_COLOR"):
        return False
    if not hasattr(stream, "isatty") or not stream.isatty():
        return False
    return os.environ.get("TERM") != "dumb"


def colorize(text: str, color: str, bold: bool = False, stream: TextIO | None = None) -> str:
    """Apply color to text if terminal supports it."""
    if not _supports_color(stream):
        return text
    prefix = (Colors.BOLD if bold else "") + color
    return f"{prefix}{text}{Colors.RESET}"


def _marked(icon: str, color: str, message: str, stream: TextIO | None) -> None:
    out = stream or sys.stderr
    print(f"{colorize(icon, color, bold=True, stream=out)} {message}", file=out)


def print_success(message: str, stream: TextIO | None = None) -> None:
    _marked("✓", Colors.GREEN, message, stream)


def print_error(message: str, stream: TextIO | None = None) -> None:
    _marked("✗", Colors.RED, message, stream)


def print_summary_box(
    title: str, items: Sequence[tuple[str, str | int]], stream: TextIO | None = None
) -> None:
    """Print a titled block of aligned key/value rows between two rules."""
    out = stream or sys.stderr
    width = max((len(k) for k, _ in items), default=0)
    rule = colorize("─" * RULE_WIDTH, Colors.DIM, stream=out)

    print(colorize(f"\n{title}", Colors.CYAN, bold=True, stream=out), file=out)
    print(rule, file=out)
    for key, value in items:
        shown = str(value)
        if isinstance(value, int) and value > 0:
            shown = colorize(shown, Colors.GREEN, bold=True, stream=out)
        print(f"  {key.ljust(width)}  {shown}", file=out)
    print(rule, file=out)


def print_operation_status(
    operation: str, status: str, details: str = "", stream: TextIO | None = None
) -> None:
    """Print ``<icon> <operation>: <status> (<details>)``.

    Known statuses (ok, failed, pending and their synonyms) get an icon and a
    color; anything else is printed plain with a bullet.
    """
    out = stream or sys.stderr
    style = _STATUS_STYLES.get(status.lower())
    if style is None:
        icon, word = colorize("•", Colors.BLUE, stream=out), status
    else:
        symbol, color, bold = style
        icon = colorize(symbol, color, bold=color != Colors.YELLOW, stream=out)
        word = colorize(status, color, bold=bold, stream=out)

    line = f"{icon} {operation}: {word}"
    if details:
        line += " " + colorize(f"({details})", Colors.DIM, stream=out)
    print(line, file=out)


__all__ = [
    "Colors",
    "colorize",
    "print_error",
    "print_operation_status",
    "print_success",
    "print_summary_box",
]
