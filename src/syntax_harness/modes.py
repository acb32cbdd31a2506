"""Content-analysis modes for the reference host.

A ``Mode`` pairs a Pygments lexer, which drives fontification, with a
``SyntaxTable``, which assigns each character its ``SyntaxClass``. Modes
are resolved by name through ``get_mode``; the built-in names are
``fundamental``, ``ocaml`` and ``python`` and any other Pygments lexer
alias falls back to the standard syntax table.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
import logging

from pygments.lexer import Lexer
from pygments.lexers import get_lexer_by_name
from pygments.lexers.ml import OcamlLexer
from pygments.lexers.python import PythonLexer
from pygments.lexers.special import TextLexer
from pygments.token import (
    Comment,
    Error,
    Keyword,
    Name,
    Number,
    Operator,
    String,
    _TokenType,
)
from pygments.util import ClassNotFound

from syntax_harness.models import Face, SyntaxClass

logger = logging.getLogger(__name__)

# Most specific token types first: the first containing type wins.
_TOKEN_FACES: tuple[tuple[_TokenType, Face], ...] = (
    (Comment.Preproc, Face.PREPROCESSOR),
    (Comment, Face.COMMENT),
    (String.Doc, Face.DOC),
    (String.Escape, Face.ESCAPE),
    (String, Face.STRING),
    (Number, Face.NUMBER),
    (Keyword.Constant, Face.CONSTANT),
    (Keyword.Type, Face.TYPE),
    (Keyword, Face.KEYWORD),
    (Operator.Word, Face.KEYWORD),
    (Name.Builtin.Pseudo, Face.CONSTANT),
    (Name.Builtin, Face.BUILTIN),
    (Name.Exception, Face.TYPE),
    (Name.Class, Face.TYPE),
    (Name.Function, Face.FUNCTION_NAME),
    (Name.Variable, Face.VARIABLE_NAME),
    (Name.Decorator, Face.PREPROCESSOR),
    (Error, Face.ERROR),
)


def face_for_token(ttype: _TokenType) -> Face | None:
    """Map a Pygments token type to the face it is displayed with.

    Token types without a mapping (plain names, operators, whitespace)
    carry no face.
    """
    for parent, face in _TOKEN_FACES:
        if ttype in parent:
            return face
    return None


class SyntaxTable:
    """Character-to-``SyntaxClass`` table with optional parent chaining.

    Characters without an entry are looked up in the parent table; the
    root falls back to Unicode categories: whitespace, alphanumerics as
    word constituents, everything else as punctuation.
    """

    def __init__(
        self,
        entries: Mapping[str, SyntaxClass] | None = None,
        parent: SyntaxTable | None = None,
    ) -> None:
        self._entries: dict[str, SyntaxClass] = {}
        self.parent = parent
        for char, syntax_class in (entries or {}).items():
            self.modify(char, syntax_class)

    def modify(self, char: str, syntax_class: SyntaxClass) -> None:
        """Set the class of a single character in this table.

        Raises:
            ValueError: If *char* is not exactly one character.
        """
        if len(char) != 1:
            msg = f"Syntax entries are per character, got {char!r}"
            raise ValueError(msg)
        self._entries[char] = SyntaxClass(syntax_class)

    def classify(self, char: str) -> SyntaxClass:
        if char in self._entries:
            return self._entries[char]
        if self.parent is not None:
            return self.parent.classify(char)
        if char.isspace():
            return SyntaxClass.WHITESPACE
        if char.isalnum():
            return SyntaxClass.WORD
        return SyntaxClass.PUNCTUATION

    def copy(self) -> SyntaxTable:
        """Return a child table inheriting from this one."""
        return SyntaxTable(parent=self)


STANDARD_SYNTAX_TABLE = SyntaxTable(
    {
        "(": SyntaxClass.OPEN,
        "[": SyntaxClass.OPEN,
        "{": SyntaxClass.OPEN,
        ")": SyntaxClass.CLOSE,
        "]": SyntaxClass.CLOSE,
        "}": SyntaxClass.CLOSE,
        '"': SyntaxClass.STRING_QUOTE,
        "\\": SyntaxClass.ESCAPE,
        "_": SyntaxClass.SYMBOL,
        "$": SyntaxClass.SYMBOL,
    }
)


class Mode:
    """A named content-analysis mode.

    Attributes:
        name: Mode name as accepted by ``get_mode``.
        lexer: Pygments lexer driving fontification.
        syntax_table: Table classifying individual characters.
    """

    def __init__(
        self,
        name: str,
        lexer: Lexer,
        syntax_table: SyntaxTable | None = None,
    ) -> None:
        self.name = name
        self.lexer = lexer
        self.syntax_table = syntax_table or STANDARD_SYNTAX_TABLE

    def __repr__(self) -> str:
        return f"Mode({self.name!r})"

    def classify(self, char: str) -> SyntaxClass:
        return self.syntax_table.classify(char)

    def fontify(self, text: str) -> Iterator[tuple[int, int, Face | None]]:
        """Lex *text* from the lexer's root state and yield face spans.

        Offsets are relative to the start of *text*. Uses the unprocessed
        token stream so no newline stripping or tab expansion shifts them.
        """
        for index, ttype, value in self.lexer.get_tokens_unprocessed(text):
            if value:
                yield index, index + len(value), face_for_token(ttype)


def _fundamental_mode() -> Mode:
    return Mode("fundamental", TextLexer())


def _ocaml_mode() -> Mode:
    table = STANDARD_SYNTAX_TABLE.copy()
    table.modify("_", SyntaxClass.WORD)
    table.modify("'", SyntaxClass.WORD)
    return Mode("ocaml", OcamlLexer(), table)


def _python_mode() -> Mode:
    table = STANDARD_SYNTAX_TABLE.copy()
    table.modify("'", SyntaxClass.STRING_QUOTE)
    table.modify("#", SyntaxClass.COMMENT_START)
    table.modify("\n", SyntaxClass.COMMENT_END)
    table.modify("@", SyntaxClass.EXPRESSION_PREFIX)
    return Mode("python", PythonLexer(), table)


_MODES: dict[str, Callable[[], Mode]] = {
    "fundamental": _fundamental_mode,
    "ocaml": _ocaml_mode,
    "python": _python_mode,
}


def mode_names() -> list[str]:
    """Return the built-in mode names."""
    return sorted(_MODES)


def get_mode(name: str | Mode) -> Mode:
    """Resolve *name* to a fresh ``Mode`` instance.

    Built-in modes carry their own syntax tables; any other name is looked
    up as a Pygments lexer alias and paired with the standard table.

    Raises:
        KeyError: If *name* is neither a built-in mode nor a lexer alias.
    """
    if isinstance(name, Mode):
        return name
    factory = _MODES.get(name)
    if factory is not None:
        return factory()
    try:
        lexer = get_lexer_by_name(name)
    except ClassNotFound as exc:
        msg = f"Unknown mode: {name!r}"
        raise KeyError(msg) from exc
    logger.debug("Mode %r resolved through Pygments lexer %s", name, lexer.name)
    return Mode(name, lexer)
