"""Isolated process harness: bootstrap scripts and script execution.

``isolated_process`` writes a throwaway executable script that restarts
the interpreter from scratch, loads the file defining a registered entry
point, and calls it; the entry point's numeric return value becomes the
process exit code. The script exists only for the duration of the
``with`` block and is removed on every exit path.

The harness never starts the process itself. ``run_script`` and
``run_script_async`` are helpers for the body of the ``with`` block;
the async variant runs the script in its own session and escalates from
SIGTERM to SIGKILL on timeout.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterator, Mapping
import contextlib
import logging
import os
from pathlib import Path
import signal
import subprocess
import tempfile
import time

from syntax_harness.models import EntryPoint, HarnessConfig, ScriptFixture, ScriptResult

logger = logging.getLogger(__name__)

_PACKAGE_DIR = Path(__file__).resolve().parent
_PACKAGE_ROOT = _PACKAGE_DIR.parent
_BUILTIN_ENTRY_FILE = _PACKAGE_DIR / "entry_points.py"

_ENTRY_POINTS: dict[str, EntryPoint] = {
    "echo-args": EntryPoint(name="echo-args", path=_BUILTIN_ENTRY_FILE, function="echo_args"),
    "exit-code": EntryPoint(name="exit-code", path=_BUILTIN_ENTRY_FILE, function="exit_code"),
    "fontify-stdin": EntryPoint(
        name="fontify-stdin", path=_BUILTIN_ENTRY_FILE, function="fontify_stdin"
    ),
}


# ---------------------------------------------------------------------------
# Entry point registry
# ---------------------------------------------------------------------------


def register_entry_point(name: str, path: str | Path, function: str) -> EntryPoint:
    """Register *function* in the source file *path* under *name*.

    Re-registering a name replaces the previous target.

    Returns:
        The registered entry point.
    """
    entry = EntryPoint(name=name, path=Path(path), function=function)
    previous = _ENTRY_POINTS.get(name)
    if previous is not None and previous != entry:
        logger.warning(
            "Entry point %r re-registered: %s:%s -> %s:%s",
            name,
            previous.path,
            previous.function,
            entry.path,
            entry.function,
        )
    _ENTRY_POINTS[name] = entry
    return entry


def get_entry_point(name: str) -> EntryPoint:
    """Return the entry point registered under *name*.

    Raises:
        KeyError: If no entry point has that name.
    """
    try:
        return _ENTRY_POINTS[name]
    except KeyError:
        msg = f"Unknown entry point: {name!r}"
        raise KeyError(msg) from None


def entry_points() -> dict[str, EntryPoint]:
    """Return a copy of the entry point registry."""
    return dict(_ENTRY_POINTS)


# ---------------------------------------------------------------------------
# Bootstrap script
# ---------------------------------------------------------------------------

_SH_UNSAFE = ('"', "\\", "$", "`", "\n")

_BOOTSTRAP_TEMPLATE = """\
#!/bin/sh
{exec_line}
import importlib.util
import sys

sys.argv[:] = sys.argv[1:]
sys.path[:0] = {search_path!r}
_spec = importlib.util.spec_from_file_location({module_name!r}, {entry_path!r})
_module = importlib.util.module_from_spec(_spec)
sys.modules[{module_name!r}] = _module
_spec.loader.exec_module(_module)
_result = _module.{function}()
if isinstance(_result, bool) or not isinstance(_result, (int, float)):
    _result = 0
sys.exit(int(_result))
"""


def _sh_word(value: str) -> str:
    """Double-quote *value* so it reads the same in ``sh`` and Python.

    Raises:
        ValueError: If *value* contains characters either language would
            interpret inside double quotes.
    """
    for char in _SH_UNSAFE:
        if char in value:
            msg = f"Cannot embed {value!r} in a bootstrap script: contains {char!r}"
            raise ValueError(msg)
    return f'"{value}"'


def render_bootstrap_script(entry: EntryPoint, config: HarnessConfig | None = None) -> str:
    """Return the source of a bootstrap script for *entry*.

    The script is valid both as ``sh`` and as Python. Run directly, ``sh``
    re-executes it under the configured interpreter; the second line is a
    string-literal statement to Python. Python then drops the script name
    from ``sys.argv``, loads the entry file by path, calls the entry
    function with no arguments and exits with its numeric result (bools
    and non-numbers exit 0).

    Raises:
        ValueError: If the interpreter or its flags cannot be embedded.
    """
    config = config or HarnessConfig()
    words = [config.interpreter, *config.interpreter_flags]
    exec_line = " ".join([_sh_word("exec"), *(_sh_word(w) for w in words), '"$0"', '"$@"'])
    search_path = [str(_PACKAGE_ROOT)]
    if not entry.path.is_relative_to(_PACKAGE_DIR):
        search_path.insert(0, str(entry.path.parent))
    return _BOOTSTRAP_TEMPLATE.format(
        exec_line=exec_line,
        search_path=search_path,
        module_name=f"_isolated_{entry.function}",
        entry_path=str(entry.path),
        function=entry.function,
    )


@contextlib.contextmanager
def isolated_process(
    entry_point: str | EntryPoint,
    *,
    config: HarnessConfig | None = None,
) -> Iterator[ScriptFixture]:
    """Provide an executable bootstrap script for *entry_point*.

    Creates a uniquely named temporary file with mode ``0o700``, writes the
    bootstrap script into it and yields a ``ScriptFixture``. The file is
    deleted when the block exits, whether normally or by an exception.
    Errors creating or deleting the file propagate.

    Args:
        entry_point: Registered entry point name, or an ``EntryPoint``.
        config: Harness configuration; defaults to ``HarnessConfig()``.

    Yields:
        The script fixture to run from the body.
    """
    config = config or HarnessConfig()
    entry = entry_point if isinstance(entry_point, EntryPoint) else get_entry_point(entry_point)
    source = render_bootstrap_script(entry, config)

    fd, name = tempfile.mkstemp(prefix=config.script_prefix, suffix=".py", dir=config.script_dir)
    path = Path(name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(source)
        path.chmod(0o700)
        logger.debug("Created bootstrap script %s for %r", path, entry.name)
        yield ScriptFixture(path=path, command=(str(path),), entry_point=entry)
    finally:
        path.unlink(missing_ok=True)
        logger.debug("Removed bootstrap script %s", path)


# ---------------------------------------------------------------------------
# Running scripts
# ---------------------------------------------------------------------------

_SIGKILL_GRACE_SECONDS = 5


def build_execution_env(extra: Mapping[str, str] | None = None) -> dict[str, str]:
    """Build environment variables for running a bootstrap script.

    Returns a copy of the current environment with ``PYTHONUNBUFFERED=1``
    and ``PYTHONHASHSEED=0`` set, updated with *extra*.
    """
    env = dict(os.environ)
    env["PYTHONUNBUFFERED"] = "1"
    env["PYTHONHASHSEED"] = "0"
    if extra:
        env.update(extra)
    return env


def run_script(
    script: ScriptFixture,
    *args: str,
    input: str | None = None,
    timeout: float | None = None,
    env: Mapping[str, str] | None = None,
) -> ScriptResult:
    """Run *script* with *args* and wait for it to finish.

    Args:
        script: Fixture yielded by ``isolated_process``.
        *args: Arguments forwarded to the entry point via ``sys.argv``.
        input: Text fed to the script's standard input.
        timeout: Seconds before the script is killed, or ``None`` to wait.
        env: Environment; defaults to ``build_execution_env()``.

    Returns:
        Captured output, exit code and timing. A timeout yields exit code
        -1 with whatever output was produced.
    """
    start = time.monotonic()
    try:
        completed = subprocess.run(
            script.argv(*args),
            input=input,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
            env=dict(env) if env is not None else build_execution_env(),
        )
    except subprocess.TimeoutExpired as exc:
        return ScriptResult(
            stdout=_decode(exc.stdout),
            stderr=_decode(exc.stderr),
            exit_code=-1,
            duration_seconds=time.monotonic() - start,
            timed_out=True,
        )
    return ScriptResult(
        stdout=completed.stdout,
        stderr=completed.stderr,
        exit_code=completed.returncode,
        duration_seconds=time.monotonic() - start,
    )


def _decode(data: str | bytes | None) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data


async def _terminate_session(proc: asyncio.subprocess.Process) -> None:
    """Stop every process in *proc*'s session: SIGTERM, then SIGKILL after a grace period."""
    try:
        pgid = os.getpgid(proc.pid)
        os.killpg(pgid, signal.SIGTERM)
    except OSError:
        return

    with contextlib.suppress(TimeoutError):
        await asyncio.wait_for(proc.wait(), timeout=_SIGKILL_GRACE_SECONDS)
        return
    logger.warning("Script session %d ignored SIGTERM; sending SIGKILL", pgid)
    with contextlib.suppress(ProcessLookupError):
        os.killpg(pgid, signal.SIGKILL)
    await proc.wait()


async def run_script_async(
    script: ScriptFixture,
    *args: str,
    input: str | None = None,
    timeout: float | None = None,
    env: Mapping[str, str] | None = None,
) -> ScriptResult:
    """Run *script* as an asyncio subprocess in its own session.

    On timeout the whole session is terminated and the output captured
    so far is still returned, with exit code -1.
    """
    start = time.monotonic()
    feeds_stdin = input is not None
    proc = await asyncio.create_subprocess_exec(
        *script.argv(*args),
        stdin=asyncio.subprocess.PIPE if feeds_stdin else asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        env=dict(env) if env is not None else build_execution_env(),
        start_new_session=True,
    )

    # Shielded so the pipes are still drained after a timeout kill.
    output = asyncio.ensure_future(
        proc.communicate(input.encode("utf-8") if feeds_stdin else None)
    )
    timed_out = False
    try:
        await asyncio.wait_for(asyncio.shield(output), timeout=timeout)
    except TimeoutError:
        timed_out = True
        logger.debug("Script %s timed out after %ss", script.path, timeout)
        await _terminate_session(proc)
    stdout, stderr = await output

    exit_code = -1 if timed_out or proc.returncode is None else proc.returncode
    return ScriptResult(
        stdout=_decode(stdout),
        stderr=_decode(stderr),
        exit_code=exit_code,
        duration_seconds=time.monotonic() - start,
        timed_out=timed_out,
    )
