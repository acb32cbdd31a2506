"""Shared fixtures for the syntax_harness test suite."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
from syntax_harness.fixtures import BufferRegistry
from syntax_harness.models import AttributeExpectation, HarnessConfig
from syntax_harness.plugin import buffer_registry, syntax_buffer  # noqa: F401

# ---------------------------------------------------------------------------
# Factory functions (plain functions, importable from conftest)
# ---------------------------------------------------------------------------

OCAML_LINES = ["let x = 1", "  in x"]
OCAML_BLOCK = "let x = 1\n  in x\n"

ENTRIES_FILE = Path(__file__).with_name("entries.py")


def make_config(**overrides: Any) -> HarnessConfig:
    """Build a valid HarnessConfig with sensible defaults.

    Args:
        **overrides: Field values to override.

    Returns:
        A fully constructed HarnessConfig instance.
    """
    defaults: dict[str, Any] = {}
    defaults.update(overrides)
    return HarnessConfig(**defaults)


def make_expectation(**overrides: Any) -> AttributeExpectation:
    """Build a valid AttributeExpectation with sensible defaults.

    Args:
        **overrides: Field values to override.

    Returns:
        A fully constructed AttributeExpectation instance.
    """
    defaults: dict[str, Any] = {
        "literal": "let",
        "classes": ["word"],
        "face": "keyword-face",
    }
    defaults.update(overrides)
    return AttributeExpectation(**defaults)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def registry() -> BufferRegistry:
    """Return a registry private to one test."""
    return BufferRegistry(make_config())


@pytest.fixture()
def script_config(tmp_path: Path) -> HarnessConfig:
    """Return a config that writes bootstrap scripts under ``tmp_path``."""
    script_dir = tmp_path / "scripts"
    script_dir.mkdir()
    return make_config(script_dir=str(script_dir))
