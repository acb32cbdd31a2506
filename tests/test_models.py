"""Tests for the core data models in ``syntax_harness.models``.

Covers the ``SyntaxClass`` and ``Face`` alphabets, the ``ANY`` wildcard,
coercion of expectations from tuples and mappings, and validation of
``HarnessConfig``, ``EntryPoint`` and ``AttributeRun``.
"""

from __future__ import annotations

from pathlib import Path

from hypothesis import given, settings, strategies as st
from pydantic import ValidationError
import pytest
from syntax_harness.models import (
    ANY,
    AttributeExpectation,
    AttributeRun,
    EntryPoint,
    Face,
    HarnessConfig,
    ScriptFixture,
    SyntaxClass,
    normalize_classes,
    normalize_face,
)

from tests.conftest import make_config, make_expectation

# ===========================================================================
# Wildcard and normalization
# ===========================================================================


@pytest.mark.unit
class TestNormalization:
    """normalize_classes / normalize_face coerce user input."""

    def test_any_passes_through(self) -> None:
        assert normalize_classes(ANY) is ANY
        assert normalize_face(ANY) is ANY

    def test_star_string_is_wildcard(self) -> None:
        assert normalize_classes("*") is ANY
        assert normalize_face("*") is ANY

    def test_single_class_is_wrapped(self) -> None:
        assert normalize_classes(SyntaxClass.WORD) == frozenset({SyntaxClass.WORD})

    def test_class_name_is_wrapped(self) -> None:
        assert normalize_classes("whitespace") == frozenset({SyntaxClass.WHITESPACE})

    def test_duplicates_collapse(self) -> None:
        result = normalize_classes(["word", SyntaxClass.WORD, "word"])
        assert result == frozenset({SyntaxClass.WORD})

    def test_none_face_stays_none(self) -> None:
        assert normalize_face(None) is None

    def test_face_name_becomes_face(self) -> None:
        assert normalize_face("number-face") is Face.NUMBER

    def test_unknown_class_raises(self) -> None:
        with pytest.raises(ValueError):
            normalize_classes(["keyword"])

    def test_any_repr(self) -> None:
        assert repr(ANY) == "ANY"

    @given(classes=st.lists(st.sampled_from(list(SyntaxClass)), max_size=10))
    @settings(max_examples=50)
    def test_order_is_irrelevant(self, classes: list[SyntaxClass]) -> None:
        """Property: any permutation normalizes to the same set."""
        assert normalize_classes(classes) == normalize_classes(list(reversed(classes)))


# ===========================================================================
# AttributeExpectation
# ===========================================================================


@pytest.mark.unit
class TestAttributeExpectation:
    """AttributeExpectation validation and coercion."""

    def test_defaults_are_wildcards(self) -> None:
        expectation = AttributeExpectation(literal="x")
        assert expectation.classes is ANY
        assert expectation.face is ANY

    def test_classes_become_frozenset(self) -> None:
        expectation = make_expectation(classes=["word", "word"])
        assert expectation.classes == frozenset({SyntaxClass.WORD})

    def test_face_is_coerced(self) -> None:
        assert make_expectation().face is Face.KEYWORD

    def test_none_face_allowed(self) -> None:
        assert make_expectation(face=None).face is None

    def test_empty_literal_rejected(self) -> None:
        with pytest.raises(ValidationError):
            make_expectation(literal="")

    def test_is_frozen(self) -> None:
        expectation = make_expectation()
        with pytest.raises(ValidationError):
            expectation.literal = "other"  # type: ignore[misc]

    def test_coerce_tuple(self) -> None:
        expectation = AttributeExpectation.coerce(("1", ["word"], "number-face"))
        assert expectation.literal == "1"
        assert expectation.classes == frozenset({SyntaxClass.WORD})
        assert expectation.face is Face.NUMBER

    def test_coerce_short_tuple(self) -> None:
        expectation = AttributeExpectation.coerce(("1",))
        assert expectation.classes is ANY
        assert expectation.face is ANY

    def test_coerce_mapping(self) -> None:
        expectation = AttributeExpectation.coerce({"literal": "in", "classes": "*"})
        assert expectation.classes is ANY

    def test_coerce_model_is_identity(self) -> None:
        expectation = make_expectation()
        assert AttributeExpectation.coerce(expectation) is expectation

    def test_coerce_rejects_other_shapes(self) -> None:
        with pytest.raises(TypeError):
            AttributeExpectation.coerce(42)


# ===========================================================================
# AttributeRun
# ===========================================================================


@pytest.mark.unit
class TestAttributeRun:
    """AttributeRun bounds must agree with its text."""

    def test_valid_run(self) -> None:
        run = AttributeRun(beg=2, end=5, text="abc", syntax_class=SyntaxClass.WORD)
        assert run.face is None

    def test_length_mismatch_rejected(self) -> None:
        with pytest.raises(ValidationError):
            AttributeRun(beg=0, end=5, text="abc", syntax_class=SyntaxClass.WORD)

    def test_empty_run_rejected(self) -> None:
        with pytest.raises(ValidationError):
            AttributeRun(beg=3, end=3, text="", syntax_class=SyntaxClass.WORD)


# ===========================================================================
# EntryPoint / ScriptFixture
# ===========================================================================


@pytest.mark.unit
class TestEntryPoint:
    """EntryPoint validation."""

    def test_path_is_resolved(self, tmp_path: Path) -> None:
        entry = EntryPoint(name="e", path=tmp_path / "a" / ".." / "m.py", function="main")
        assert entry.path == (tmp_path / "m.py").resolve()

    def test_function_must_be_identifier(self, tmp_path: Path) -> None:
        with pytest.raises(ValidationError):
            EntryPoint(name="e", path=tmp_path / "m.py", function="not-valid")

    def test_script_fixture_argv(self, tmp_path: Path) -> None:
        entry = EntryPoint(name="e", path=tmp_path / "m.py", function="main")
        fixture = ScriptFixture(path=tmp_path / "s.py", command=("/tmp/s.py",), entry_point=entry)
        assert fixture.argv("a", "b") == ["/tmp/s.py", "a", "b"]


# ===========================================================================
# HarnessConfig
# ===========================================================================


@pytest.mark.unit
class TestHarnessConfig:
    """HarnessConfig defaults and validation."""

    def test_defaults(self) -> None:
        config = make_config()
        assert config.fixture_name == "*syntax-test*"
        assert config.default_mode == "fundamental"
        assert config.interpreter_flags == ("-s", "-B")
        assert config.script_dir is None

    def test_interpreter_defaults_to_current(self) -> None:
        import sys

        assert make_config().interpreter == sys.executable

    def test_log_level_is_uppercased(self) -> None:
        assert make_config(log_level="debug").log_level == "DEBUG"

    def test_unknown_log_level_rejected(self) -> None:
        with pytest.raises(ValidationError):
            make_config(log_level="chatty")

    @pytest.mark.parametrize("timeout", [0, -1.5])
    def test_non_positive_timeout_rejected(self, timeout: float) -> None:
        with pytest.raises(ValidationError):
            make_config(run_timeout_seconds=timeout)

    def test_flags_from_list(self) -> None:
        assert make_config(interpreter_flags=["-I"]).interpreter_flags == ("-I",)

    def test_is_frozen(self) -> None:
        config = HarnessConfig()
        with pytest.raises(ValidationError):
            config.fixture_name = "other"  # type: ignore[misc]
