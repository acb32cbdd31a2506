"""Attribute range verification.

Checks that a span of text carries an expected set of syntax classes and a
single expected face. Rather than sampling one character, the verifier
collects the classes and faces of every character in ``[beg, end)`` and
compares the collected sets, so a boundary that is off by one character
shows up as an extra member of the observed set.

Both comparisons are made on ``(text, sorted values)`` pairs, which puts
the spanned text into every failure message.
"""

from __future__ import annotations

from collections.abc import Iterable
import logging
from typing import Any

from syntax_harness.buffer import Buffer
from syntax_harness.fixtures import BufferRegistry, ContentSpec, default_registry, load
from syntax_harness.models import (
    ANY,
    AttributeExpectation,
    AttributeRun,
    CharAttribute,
    Face,
    SyntaxClass,
    Wildcard,
    normalize_classes,
    normalize_face,
)
from syntax_harness.modes import Mode
from syntax_harness.protocols import TextHost

logger = logging.getLogger(__name__)

Observation = tuple[str, tuple[Any, ...]]


class AttributeMismatchError(AssertionError):
    """Observed classes or faces over a range differ from the expected set.

    Attributes:
        dimension: ``"syntax class"`` or ``"face"``.
        beg: Start offset of the verified range.
        end: End offset (exclusive) of the verified range.
        expected: ``(text, sorted expected values)``.
        observed: ``(text, sorted observed values)``.
    """

    def __init__(
        self,
        dimension: str,
        beg: int,
        end: int,
        expected: Observation,
        observed: Observation,
    ) -> None:
        super().__init__(
            f"{dimension} mismatch over [{beg}, {end}) {expected[0]!r}: "
            f"expected {_show(expected[1])}, observed {_show(observed[1])}"
        )
        self.dimension = dimension
        self.beg = beg
        self.end = end
        self.expected = expected
        self.observed = observed


def _show(values: tuple[Any, ...]) -> str:
    return "{" + ", ".join("nil" if v is None else str(v) for v in values) + "}"


def _sorted(values: Iterable[Any]) -> tuple[Any, ...]:
    # None sorts first; it is the only non-string value a face can take.
    return tuple(sorted(set(values), key=lambda v: (v is not None, str(v or ""))))


def collect_attributes(
    host: TextHost, beg: int, end: int
) -> tuple[set[SyntaxClass], set[Face | None]]:
    """Return the distinct classes and faces found in ``[beg, end)``."""
    classes: set[SyntaxClass] = set()
    faces: set[Face | None] = set()
    for offset in range(beg, end):
        classes.add(host.syntax_class_at(offset))
        faces.add(host.face_at(offset))
    return classes, faces


def verify_range(
    host: TextHost,
    beg: int,
    end: int,
    classes: Iterable[SyntaxClass | str] | SyntaxClass | str | Wildcard = ANY,
    face: Face | str | Wildcard | None = ANY,
) -> None:
    """Assert that ``[beg, end)`` carries exactly *classes* and *face*.

    Args:
        host: Buffer to inspect.
        beg: Start offset.
        end: End offset (exclusive).
        classes: Expected set of syntax classes, or ``ANY`` to skip.
        face: Expected single face (``None`` for none), or ``ANY`` to skip.

    Raises:
        AttributeMismatchError: If either checked dimension differs.
        ValueError: If the range is invalid for *host*.
    """
    expected_classes = normalize_classes(classes)
    expected_face = normalize_face(face)
    text = host.substring(beg, end)
    if beg == end:
        return

    observed_classes, observed_faces = collect_attributes(host, beg, end)
    logger.debug(
        "Verifying %r [%d, %d): classes=%s faces=%s",
        text,
        beg,
        end,
        _show(_sorted(observed_classes)),
        _show(_sorted(observed_faces)),
    )

    if expected_classes is not ANY:
        expected = (text, _sorted(expected_classes))
        observed = (text, _sorted(observed_classes))
        if expected != observed:
            raise AttributeMismatchError("syntax class", beg, end, expected, observed)

    if expected_face is not ANY:
        expected = (text, (expected_face,))
        observed = (text, _sorted(observed_faces))
        if expected != observed:
            raise AttributeMismatchError("face", beg, end, expected, observed)


def verify_search(
    host: TextHost,
    literal: str,
    classes: Iterable[SyntaxClass | str] | SyntaxClass | str | Wildcard = ANY,
    face: Face | str | Wildcard | None = ANY,
) -> tuple[int, int]:
    """Find *literal* after point and verify the matched span.

    Point is left after the match, so successive calls walk the buffer
    left to right.

    Returns:
        The ``(beg, end)`` span that was verified.

    Raises:
        SearchFailedError: If *literal* does not occur after point.
        AttributeMismatchError: If the match has the wrong classes or face.
    """
    beg, end = host.search_forward(literal)
    verify_range(host, beg, end, classes, face)
    return beg, end


def check_all(
    content: ContentSpec,
    expectations: Iterable[AttributeExpectation | tuple[Any, ...] | dict[str, Any]],
    *,
    mode: Mode | str | None = None,
    name: str | None = None,
    registry: BufferRegistry | None = None,
) -> Buffer:
    """Load *content* into a fresh buffer and verify expectations in order.

    Each expectation's literal is searched from the end of the previous
    match, so expectations must be listed in the order their literals
    occur in the content.

    Returns:
        The loaded buffer, left alive for inspection.

    Raises:
        SearchFailedError: At the first literal not found in order.
        AttributeMismatchError: At the first failing expectation.
    """
    target = registry if registry is not None else default_registry()
    buffer = target.acquire(name, mode)
    load(buffer, content)
    for item in expectations:
        expectation = AttributeExpectation.coerce(item)
        verify_search(buffer, expectation.literal, expectation.classes, expectation.face)
    return buffer


def char_attributes(host: TextHost, beg: int, end: int) -> list[CharAttribute]:
    """Return the classification and face of every character in ``[beg, end)``."""
    text = host.substring(beg, end)
    return [
        CharAttribute(
            offset=offset,
            char=char,
            syntax_class=host.syntax_class_at(offset),
            face=host.face_at(offset),
        )
        for offset, char in enumerate(text, start=beg)
    ]


def attribute_runs(host: Buffer, beg: int = 0, end: int | None = None) -> list[AttributeRun]:
    """Group ``[beg, end)`` into maximal runs of equal class and face."""
    end = len(host) if end is None else end
    runs: list[AttributeRun] = []
    run_beg = beg
    chars = char_attributes(host, beg, end)
    for index, attr in enumerate(chars):
        following = chars[index + 1] if index + 1 < len(chars) else None
        if following is not None and (following.syntax_class, following.face) == (
            attr.syntax_class,
            attr.face,
        ):
            continue
        stop = attr.offset + 1
        runs.append(
            AttributeRun(
                beg=run_beg,
                end=stop,
                text=host.substring(run_beg, stop),
                syntax_class=attr.syntax_class,
                face=attr.face,
            )
        )
        run_beg = stop
    return runs
