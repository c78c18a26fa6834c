"""Simple UX helpers for CLI output - no external dependencies."""

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


def _supports_color(stream: TextIO | None = None) -> bool:
    """Check if terminal supports color output.

    Actions logs render ANSI colors even though stdout is not a TTY.
    """
    stream = stream or sys.stdout
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("GITHUB_ACTIONS") == "true":
        return True
    if not hasattr(stream, "isatty") or not stream.isatty():
        return False
    return os.environ.get("TERM") != "dumb"


def colorize(text: str, color: str, bold: bool = False, stream: TextIO | None = None) -> str:
    """Apply color to text if terminal supports it."""
    if not _supports_color(stream):
        return text
    prefix = (Colors.BOLD if bold else "") + color
    return f"{prefix}{text}{Colors.RESET}"


def print_success(message: str, stream: TextIO | None = None) -> None:
    stream = stream or sys.stdout
    print(colorize("✓", Colors.GREEN, bold=True, stream=stream) + " " + message, file=stream)


def print_error(message: str, stream: TextIO | None = None) -> None:
    stream = stream or sys.stderr
    print(colorize("✗", Colors.RED, bold=True, stream=stream) + " " + message, file=stream)


def print_warning(message: str, stream: TextIO | None = None) -> None:
    stream = stream or sys.stdout
    print(colorize("⚠", Colors.YELLOW, bold=True, stream=stream) + " " + message, file=stream)


def print_header(message: str, stream: TextIO | None = None) -> None:
    stream = stream or sys.stdout
    print(colorize(message, Colors.CYAN, bold=True, stream=stream), file=stream)


def print_summary_box(
    title: str, items: Sequence[tuple[str, str | int]], stream: TextIO | None = None
) -> None:
    """Print a formatted summary box with key-value pairs."""
    stream = stream or sys.stdout
    max_key_len = max((len(k) for k, _ in items), default=0)

    print(colorize(f"\n{title}", Colors.CYAN, bold=True, stream=stream), file=stream)
    print(colorize("─" * 50, Colors.DIM, stream=stream), file=stream)
    for key, value in items:
        value_str = str(value)
        if key.lower() == "failed" and isinstance(value, int) and value > 0:
            value_colored = colorize(value_str, Colors.RED, bold=True, stream=stream)
        elif isinstance(value, int) and value > 0:
            value_colored = colorize(value_str, Colors.GREEN, bold=True, stream=stream)
        else:
            value_colored = colorize(value_str, Colors.DIM, stream=stream)
        print(f"  {key.ljust(max_key_len)}  {value_colored}", file=stream)
    print(colorize("─" * 50, Colors.DIM, stream=stream), file=stream)


def print_operation_status(
    operation: str, status: str, details: str = "", stream: TextIO | None = None
) -> None:
    """Print operation status with appropriate coloring.

    Args:
        operation: Operation name (e.g., "sync", "validate")
        status: Status (e.g., "completed", "failed", "skipped")
        details: Optional additional details
        stream: Output stream
    """
    stream = stream or sys.stdout
    status_lower = status.lower()
    if status_lower in ("success", "ok", "completed"):
        icon = colorize("✓", Colors.GREEN, bold=True, stream=stream)
    elif status_lower in ("failed", "error"):
        icon = colorize("✗", Colors.RED, bold=True, stream=stream)
    elif status_lower in ("skipped", "partial"):
        icon = colorize("○", Colors.YELLOW, stream=stream)
    else:
        icon = colorize("•", Colors.BLUE, stream=stream)
    message = f"{icon} {colorize(operation, Colors.BOLD, stream=stream)}: {status}"
    if details:
        message += f" {colorize(f'({details})', Colors.DIM, stream=stream)}"
    print(message, file=stream)


__all__ = [
    "Colors",
    "colorize",
    "print_success",
    "print_error",
    "print_warning",
    "print_header",
    "print_summary_box",
    "print_operation_status",
]
