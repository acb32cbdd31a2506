"""Line-oriented I/O helpers for entry points running in a bootstrap script."""

from __future__ import annotations

from collections.abc import Iterator
import sys
from typing import Any


def _format(fmt: str, args: tuple[Any, ...]) -> str:
    return fmt % args if args else str(fmt)


def message(fmt: str, *args: Any) -> None:
    """Write a %-formatted line to standard error."""
    sys.stderr.write(_format(fmt, args) + "\n")
    sys.stderr.flush()


def print_line(fmt: str, *args: Any) -> None:
    """Write a %-formatted line to standard output.

    The newline is written separately; ``write`` adds none of its own.
    """
    sys.stdout.write(_format(fmt, args))
    sys.stdout.write("\n")
    sys.stdout.flush()


def read_line() -> str | None:
    """Read one line from standard input without its terminator.

    Returns ``None`` at end of input. A failed read counts as end of input.
    Both LF and CRLF terminators are removed.
    """
    try:
        line = sys.stdin.readline()
    except (OSError, ValueError, EOFError):
        return None
    if not line:
        return None
    if line.endswith("\r\n"):
        return line[:-2]
    return line.removesuffix("\n")


def read_lines() -> Iterator[str]:
    """Yield standard input lines until ``read_line`` reports end of input."""
    while (line := read_line()) is not None:
        yield line
