"""Built-in entry points for bootstrap scripts.

Each function takes no arguments, reads its arguments from ``sys.argv``
(already stripped of the script name) and returns the process exit code.
They are registered by name in ``syntax_harness.process``.
"""

from __future__ import annotations

import sys

from syntax_harness.batch import message, print_line, read_lines
from syntax_harness.fixtures import BufferRegistry, load
from syntax_harness.verify import attribute_runs


def echo_args() -> int:
    """Print each forwarded argument on its own line; exit with their count."""
    for arg in sys.argv:
        print_line("%s", arg)
    return len(sys.argv)


def exit_code() -> int | str | None:
    """Return ``sys.argv[0]`` converted to a number, or the raw value.

    ``"none"`` returns ``None``; anything that is not a number is returned
    as a string, which the bootstrap script maps to exit code 0.
    """
    if not sys.argv or sys.argv[0] == "none":
        return None
    raw = sys.argv[0]
    try:
        return int(raw)
    except ValueError:
        return raw


def fontify_stdin() -> int:
    """Fontify standard input line by line and print its attribute runs.

    ``sys.argv[0]`` names the mode (default ``fundamental``). Each run is
    printed as ``beg<TAB>end<TAB>class<TAB>face<TAB>text`` with the text
    ``repr``-quoted.
    """
    mode = sys.argv[0] if sys.argv else "fundamental"
    try:
        buffer = BufferRegistry().acquire("*stdin*", mode)
    except KeyError as exc:
        message("fontify-stdin: %s", exc.args[0])
        return 2
    load(buffer, list(read_lines()))
    for run in attribute_runs(buffer):
        print_line(
            "%d\t%d\t%s\t%s\t%r",
            run.beg,
            run.end,
            run.syntax_class,
            run.face or "-",
            run.text,
        )
    return 0
