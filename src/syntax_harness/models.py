"""Core data models for the syntax harness.

Defines the shared Pydantic models, enums, and configuration types used by
the reference host, the fixture manager, the attribute verifier, and the
isolated process harness. Every record is frozen; buffers are the only
mutable state in the package and live in ``syntax_harness.buffer``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
import enum
from enum import StrEnum
import logging
from pathlib import Path
import sys
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class SyntaxClass(StrEnum):
    """Lexical classification of a single character.

    The alphabet is fixed: every character in a buffer maps to exactly one
    of these tags through the active mode's syntax table.
    """

    WHITESPACE = "whitespace"
    PUNCTUATION = "punctuation"
    WORD = "word"
    SYMBOL = "symbol"
    OPEN = "open"
    CLOSE = "close"
    EXPRESSION_PREFIX = "expression-prefix"
    STRING_QUOTE = "string-quote"
    PAIRED_DELIMITER = "paired-delimiter"
    ESCAPE = "escape"
    CHARACTER_QUOTE = "character-quote"
    COMMENT_START = "comment-start"
    COMMENT_END = "comment-end"
    INHERIT = "inherit"
    COMMENT_FENCE = "comment-fence"
    STRING_FENCE = "string-fence"


class Face(StrEnum):
    """Named display attribute assigned by fontification."""

    KEYWORD = "keyword-face"
    BUILTIN = "builtin-face"
    CONSTANT = "constant-face"
    TYPE = "type-face"
    FUNCTION_NAME = "function-name-face"
    VARIABLE_NAME = "variable-name-face"
    STRING = "string-face"
    ESCAPE = "escape-face"
    DOC = "doc-face"
    COMMENT = "comment-face"
    NUMBER = "number-face"
    PREPROCESSOR = "preprocessor-face"
    ERROR = "error-face"


class Wildcard(enum.Enum):
    """Sentinel type for "don't check this dimension"."""

    ANY = "*"

    def __repr__(self) -> str:
        return "ANY"


ANY = Wildcard.ANY


def normalize_classes(
    classes: Iterable[SyntaxClass | str] | SyntaxClass | str | Wildcard,
) -> frozenset[SyntaxClass] | Wildcard:
    """Coerce an expected-class argument into a frozenset or ``ANY``.

    A bare class (or class name) is wrapped into a one-element set; any
    other iterable is collapsed into a set, so order and duplicates do
    not matter.

    Raises:
        ValueError: If a member is not a known ``SyntaxClass`` value.
    """
    if classes is ANY or classes == ANY.value:
        return ANY
    if isinstance(classes, str):
        return frozenset({SyntaxClass(classes)})
    return frozenset(SyntaxClass(c) for c in classes)


def normalize_face(face: Face | str | Wildcard | None) -> Face | Wildcard | None:
    """Coerce an expected-face argument into a ``Face``, ``None`` or ``ANY``."""
    if face is ANY or face == ANY.value:
        return ANY
    if face is None:
        return None
    return Face(face)


class AttributeExpectation(BaseModel):
    """Expected classification and face for one searched literal.

    Attributes:
        literal: Text searched forward (case-sensitively) in the buffer.
        classes: Exact set of syntax classes the match must carry, or ``ANY``.
        face: Single face every matched character must carry, ``None`` for
            "no face", or ``ANY``.
    """

    model_config = ConfigDict(frozen=True)

    literal: str = Field(min_length=1)
    classes: frozenset[SyntaxClass] | Wildcard = ANY
    face: Face | None | Wildcard = ANY

    @field_validator("classes", mode="before")
    @classmethod
    def _coerce_classes(cls, value: Any) -> Any:
        return normalize_classes(value)

    @field_validator("face", mode="before")
    @classmethod
    def _coerce_face(cls, value: Any) -> Any:
        return normalize_face(value)

    @classmethod
    def coerce(cls, value: Any) -> AttributeExpectation:
        """Build an expectation from a model, a 1-3 tuple, or a mapping.

        Raises:
            TypeError: If *value* has none of the supported shapes.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, Mapping):
            return cls(**value)
        if isinstance(value, tuple | list) and 1 <= len(value) <= 3:
            names = ("literal", "classes", "face")
            return cls(**dict(zip(names, value, strict=False)))
        msg = f"Cannot build an AttributeExpectation from {value!r}"
        raise TypeError(msg)


class CharAttribute(BaseModel):
    """Classification and face observed at one buffer offset."""

    model_config = ConfigDict(frozen=True)

    offset: int = Field(ge=0)
    char: str
    syntax_class: SyntaxClass
    face: Face | None = None


class AttributeRun(BaseModel):
    """Maximal span of consecutive characters sharing class and face."""

    model_config = ConfigDict(frozen=True)

    beg: int = Field(ge=0)
    end: int = Field(ge=0)
    text: str
    syntax_class: SyntaxClass
    face: Face | None = None

    @model_validator(mode="after")
    def _check_bounds(self) -> AttributeRun:
        """Validate that the run is non-empty and matches its text."""
        if self.end - self.beg != len(self.text) or self.end <= self.beg:
            msg = f"Run [{self.beg}, {self.end}) does not match text {self.text!r}"
            raise ValueError(msg)
        return self


class EntryPoint(BaseModel):
    """Statically registered function a spawned process loads and calls.

    Attributes:
        name: Identifier used to select the entry point.
        path: Source file defining the function; loaded by path in the child.
        function: Name of a zero-argument callable defined in *path*.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    path: Path
    function: str

    @field_validator("function")
    @classmethod
    def _check_identifier(cls, value: str) -> str:
        if not value.isidentifier():
            msg = f"Entry point function must be an identifier, got {value!r}"
            raise ValueError(msg)
        return value

    @field_validator("path")
    @classmethod
    def _absolute_path(cls, value: Path) -> Path:
        return value.resolve()


class ScriptFixture(BaseModel):
    """Temporary bootstrap script handed to the body of ``isolated_process``.

    Attributes:
        path: Location of the executable script file.
        command: Argument-vector prefix that executes the script.
        entry_point: Entry point the script invokes.
    """

    model_config = ConfigDict(frozen=True)

    path: Path
    command: tuple[str, ...]
    entry_point: EntryPoint

    def argv(self, *args: str) -> list[str]:
        """Return the full argument vector for running the script with *args*."""
        return [*self.command, *args]


class ScriptResult(BaseModel):
    """Raw output captured from one run of a bootstrap script.

    Attributes:
        stdout: Full standard output from the subprocess.
        stderr: Full standard error from the subprocess.
        exit_code: Process exit code (-1 = timeout).
        duration_seconds: Wall-clock execution time in seconds.
        timed_out: Whether execution was killed due to timeout.
    """

    model_config = ConfigDict(frozen=True)

    stdout: str
    stderr: str
    exit_code: int
    duration_seconds: float
    timed_out: bool = False


_LOG_LEVELS = frozenset(logging.getLevelNamesMapping())


class HarnessConfig(BaseModel):
    """Harness-wide settings.

    Attributes:
        fixture_name: Default name of the buffer acquired by fixtures.
        default_mode: Mode name used when ``acquire`` gets no mode.
        interpreter: Interpreter the bootstrap script re-executes.
        interpreter_flags: Flags passed to the interpreter before the script.
        script_prefix: File-name prefix of generated bootstrap scripts.
        script_dir: Directory for bootstrap scripts (``None`` = system temp).
        run_timeout_seconds: Default timeout of the run helpers.
        log_level: Logging level name for ``configure_logging``.
        log_file: Optional log file path.
    """

    model_config = ConfigDict(frozen=True)

    fixture_name: str = Field(default="*syntax-test*", min_length=1)
    default_mode: str = "fundamental"
    interpreter: str = Field(default_factory=lambda: sys.executable)
    interpreter_flags: tuple[str, ...] = ("-s", "-B")
    script_prefix: str = "syntax-harness-"
    script_dir: str | None = None
    run_timeout_seconds: float = 60.0
    log_level: str = "INFO"
    log_file: str | None = None

    @field_validator("run_timeout_seconds")
    @classmethod
    def _positive_timeout(cls, value: float) -> float:
        if value <= 0:
            msg = f"run_timeout_seconds must be positive, got {value}"
            raise ValueError(msg)
        return value

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        if value.upper() not in _LOG_LEVELS:
            msg = f"Unknown log level: {value!r}"
            raise ValueError(msg)
        return value.upper()
