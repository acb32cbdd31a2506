"""Reference text host: an in-memory buffer with syntax classes and faces.

A ``Buffer`` stores text, a read position (``point``) and one face slot per
character. Classification is computed on demand from the active mode's
syntax table; faces are only ever written by fontification, so freshly
inserted text carries no face until a ``fontify_*`` call covers it.
"""

from __future__ import annotations

import logging

from syntax_harness.models import Face, SyntaxClass
from syntax_harness.modes import Mode, get_mode

logger = logging.getLogger(__name__)


class SearchFailedError(LookupError):
    """A forward literal search found no match after point."""

    def __init__(self, literal: str, start: int) -> None:
        super().__init__(f"Search failed: {literal!r} not found after offset {start}")
        self.literal = literal
        self.start = start


class Buffer:
    """Named text container implementing ``TextHost``.

    Attributes:
        name: Buffer name, unique within its registry.
        mode: Active content-analysis mode.
        live: ``False`` once the buffer has been killed.
    """

    def __init__(self, name: str, mode: Mode | str = "fundamental") -> None:
        self.name = name
        self.mode = get_mode(mode)
        self.live = True
        self._text = ""
        self._faces: list[Face | None] = []
        self._point = 0

    def __repr__(self) -> str:
        state = "live" if self.live else "killed"
        return f"<Buffer {self.name!r} {self.mode.name} {state} size={len(self)}>"

    def __len__(self) -> int:
        return len(self._text)

    @property
    def text(self) -> str:
        return self._text

    @property
    def point(self) -> int:
        return self._point

    def goto(self, pos: int) -> None:
        self._check_live()
        if not 0 <= pos <= len(self._text):
            msg = f"Position {pos} outside buffer of size {len(self._text)}"
            raise ValueError(msg)
        self._point = pos

    def set_mode(self, mode: Mode | str) -> None:
        """Switch modes; existing faces are discarded until refontified."""
        self._check_live()
        self.mode = get_mode(mode)
        self._faces = [None] * len(self._text)

    def insert(self, text: str) -> None:
        self._check_live()
        pos = self._point
        self._text = self._text[:pos] + text + self._text[pos:]
        self._faces[pos:pos] = [None] * len(text)
        self._point = pos + len(text)

    def erase(self) -> None:
        """Delete all text and faces and reset point."""
        self._check_live()
        self._text = ""
        self._faces = []
        self._point = 0

    def kill(self) -> None:
        """Destroy the buffer; further operations raise ``RuntimeError``."""
        if self.live:
            logger.debug("Killing buffer %r", self.name)
        self._text = ""
        self._faces = []
        self._point = 0
        self.live = False

    def search_forward(self, literal: str) -> tuple[int, int]:
        self._check_live()
        beg = self._text.find(literal, self._point)
        if beg < 0:
            raise SearchFailedError(literal, self._point)
        end = beg + len(literal)
        self._point = end
        return beg, end

    def substring(self, beg: int, end: int) -> str:
        self._check_range(beg, end)
        return self._text[beg:end]

    def syntax_class_at(self, offset: int) -> SyntaxClass:
        self._check_offset(offset)
        return self.mode.classify(self._text[offset])

    def face_at(self, offset: int) -> Face | None:
        self._check_offset(offset)
        return self._faces[offset]

    def line_bounds(self, beg: int, end: int) -> tuple[int, int]:
        """Widen ``[beg, end)`` to whole lines, terminators included."""
        self._check_range(beg, end)
        line_beg = self._text.rfind("\n", 0, beg) + 1
        if end > beg and self._text[end - 1] == "\n":
            return line_beg, end
        newline = self._text.find("\n", end)
        line_end = len(self._text) if newline < 0 else newline + 1
        return line_beg, line_end

    def fontify_range(self, beg: int, end: int) -> None:
        """Relex the lines covering ``[beg, end)`` and store their faces.

        The region is lexed on its own, starting from the lexer's root
        state, so constructs opened before *beg* are not seen.
        """
        beg, end = self.line_bounds(beg, end)
        if beg == end:
            return
        self._faces[beg:end] = [None] * (end - beg)
        for start, stop, face in self.mode.fontify(self._text[beg:end]):
            if face is not None:
                self._faces[beg + start : beg + stop] = [face] * (stop - start)

    def fontify_whole(self) -> None:
        self._check_live()
        self.fontify_range(0, len(self._text))

    def _check_live(self) -> None:
        if not self.live:
            msg = f"Buffer {self.name!r} has been killed"
            raise RuntimeError(msg)

    def _check_offset(self, offset: int) -> None:
        self._check_live()
        if not 0 <= offset < len(self._text):
            msg = f"Offset {offset} outside buffer of size {len(self._text)}"
            raise IndexError(msg)

    def _check_range(self, beg: int, end: int) -> None:
        self._check_live()
        if not 0 <= beg <= end <= len(self._text):
            msg = f"Invalid range [{beg}, {end}) for buffer of size {len(self._text)}"
            raise ValueError(msg)
