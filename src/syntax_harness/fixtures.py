"""Buffer fixture management and content loading.

``BufferRegistry`` hands out named, ephemeral buffers: acquiring a name
kills any live buffer of that name first, so every test starts from an
empty buffer. Buffers are deliberately left alive when the test ends so a
failing test can be inspected afterwards; the next acquire of the same
name cleans up.

``load`` fills a buffer either as one block, fontified once over the
whole buffer, or line by line, fontifying each appended line as a live
edit would.
"""

from __future__ import annotations

from collections.abc import Sequence
import logging
from pathlib import Path

from syntax_harness.buffer import Buffer
from syntax_harness.models import HarnessConfig
from syntax_harness.modes import Mode
from syntax_harness.protocols import TextHost

logger = logging.getLogger(__name__)

ContentSpec = str | Sequence[str]


class BufferRegistry:
    """Mapping from buffer name to the single live buffer of that name."""

    def __init__(self, config: HarnessConfig | None = None) -> None:
        self.config = config or HarnessConfig()
        self._buffers: dict[str, Buffer] = {}
        self._current: Buffer | None = None

    def __contains__(self, name: object) -> bool:
        return name in self._buffers

    def __len__(self) -> int:
        return len(self._buffers)

    @property
    def current(self) -> Buffer | None:
        """Most recently acquired buffer, if it is still registered."""
        return self._current

    def names(self) -> list[str]:
        return sorted(self._buffers)

    def get(self, name: str) -> Buffer | None:
        return self._buffers.get(name)

    def acquire(self, name: str | None = None, mode: Mode | str | None = None) -> Buffer:
        """Return a fresh, empty buffer called *name* in *mode*.

        Any existing buffer of that name is killed first. The new buffer
        becomes ``current``.

        Args:
            name: Buffer name; defaults to ``config.fixture_name``.
            mode: Mode or mode name; defaults to ``config.default_mode``.

        Returns:
            The newly created buffer.
        """
        name = name or self.config.fixture_name
        previous = self._buffers.pop(name, None)
        if previous is not None:
            previous.kill()
        buffer = Buffer(name, mode or self.config.default_mode)
        self._buffers[name] = buffer
        self._current = buffer
        logger.debug("Acquired buffer %r in %s mode", name, buffer.mode.name)
        return buffer

    def release(self, name: str) -> bool:
        """Kill and forget the buffer called *name*.

        Returns:
            Whether a buffer of that name existed.
        """
        buffer = self._buffers.pop(name, None)
        if buffer is None:
            return False
        buffer.kill()
        if self._current is buffer:
            self._current = None
        return True

    def clear(self) -> None:
        """Kill every registered buffer."""
        for name in list(self._buffers):
            self.release(name)


_default_registry = BufferRegistry()


def default_registry() -> BufferRegistry:
    """Return the process-wide registry used by module-level helpers."""
    return _default_registry


def acquire(name: str | None = None, mode: Mode | str | None = None) -> Buffer:
    """Acquire a fresh buffer from the process-wide registry."""
    return _default_registry.acquire(name, mode)


def load(buffer: TextHost, content: ContentSpec) -> None:
    """Append *content* to *buffer* and fontify it, then move point to 0.

    A string is appended verbatim and the whole buffer is fontified once.
    A sequence of strings is appended one line at a time, each followed by
    a newline, and only the freshly appended line is fontified after each
    insertion. Fontification errors propagate unchanged.

    Args:
        buffer: Target buffer.
        content: A block of text or an ordered sequence of lines.
    """
    buffer.goto(len(buffer))
    if isinstance(content, str):
        buffer.insert(content)
        buffer.fontify_whole()
        logger.debug("Loaded %d chars as a block", len(content))
    else:
        for line in content:
            beg = buffer.point
            buffer.insert(line + "\n")
            buffer.fontify_range(beg, buffer.point)
        logger.debug("Loaded %d lines incrementally", len(content))
    buffer.goto(0)


def load_file(buffer: TextHost, path: str | Path, *, incremental: bool = False) -> None:
    """Load a UTF-8 file into *buffer*, as a block or line by line.

    With *incremental*, the file's lines (terminators stripped) are loaded
    as a line sequence; a missing final newline is therefore added.
    """
    text = Path(path).read_text(encoding="utf-8")
    load(buffer, text.splitlines() if incremental else text)


def fixture_buffer(
    content: ContentSpec,
    *,
    mode: Mode | str | None = None,
    name: str | None = None,
    registry: BufferRegistry | None = None,
) -> Buffer:
    """Acquire a fresh buffer and load *content* into it."""
    target = registry if registry is not None else _default_registry
    buffer = target.acquire(name, mode)
    load(buffer, content)
    return buffer
