"""Interface the verifier and the content loader consume from a text host.

``syntax_harness.buffer.Buffer`` is the reference implementation; any
object exposing the same operations can be verified.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from syntax_harness.models import Face, SyntaxClass
    from syntax_harness.modes import Mode


@runtime_checkable
class TextHost(Protocol):
    """Text container with per-character classification and faces.

    Offsets are zero-based; ranges are half-open ``[beg, end)``.
    """

    def __len__(self) -> int:
        """Number of characters held."""
        ...

    @property
    def point(self) -> int:
        """Current read position."""
        ...

    def goto(self, pos: int) -> None:
        """Move the read position to *pos*."""
        ...

    def set_mode(self, mode: Mode | str) -> None:
        """Switch the container into a content-analysis mode."""
        ...

    def insert(self, text: str) -> None:
        """Insert *text* at point, leaving point after it."""
        ...

    def search_forward(self, literal: str) -> tuple[int, int]:
        """Find *literal* at or after point and move point past the match.

        Raises:
            SearchFailedError: If *literal* does not occur after point.
        """
        ...

    def substring(self, beg: int, end: int) -> str:
        """Return the text in ``[beg, end)``."""
        ...

    def syntax_class_at(self, offset: int) -> SyntaxClass:
        """Return the lexical classification of the character at *offset*."""
        ...

    def face_at(self, offset: int) -> Face | None:
        """Return the display attribute of the character at *offset*."""
        ...

    def fontify_range(self, beg: int, end: int) -> None:
        """Recompute display attributes over ``[beg, end)``."""
        ...

    def fontify_whole(self) -> None:
        """Recompute display attributes over the whole content."""
        ...
