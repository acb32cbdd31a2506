"""pytest fixtures for syntax verification tests.

Import the fixtures into a ``conftest.py``::

    from syntax_harness.plugin import buffer_registry, syntax_buffer  # noqa: F401

``syntax_buffer`` hands each test a fresh buffer from a session-wide
registry. The buffer is not killed after the test, so it can still be
inspected when the test fails; the next test's acquire cleans it up.
"""

from __future__ import annotations

import pytest

from syntax_harness.buffer import Buffer
from syntax_harness.fixtures import BufferRegistry
from syntax_harness.models import HarnessConfig


@pytest.fixture(scope="session")
def buffer_registry() -> BufferRegistry:
    """Session-wide registry of named test buffers."""
    return BufferRegistry(HarnessConfig())


@pytest.fixture()
def syntax_buffer(request: pytest.FixtureRequest, buffer_registry: BufferRegistry) -> Buffer:
    """Return a fresh buffer named after the registry's default fixture name.

    A ``@pytest.mark.syntax_mode("ocaml")`` marker selects the mode.
    """
    marker = request.node.get_closest_marker("syntax_mode")
    mode = marker.args[0] if marker is not None else None
    return buffer_registry.acquire(mode=mode)
