"""CLI entry point for the syntax harness.

Provides ``main()`` as the console-script entry point registered in
``pyproject.toml`` as ``syntax-harness = "syntax_harness.cli:main"``.

Subcommands:
    dump   Print the attribute runs of a fontified file.
    check  Verify a file against a YAML list of expectations.
    run    Run a registered entry point in an isolated process.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys
from typing import Any

from pydantic import ValidationError
import yaml

from syntax_harness.buffer import SearchFailedError
from syntax_harness.fixtures import BufferRegistry, load_file
from syntax_harness.models import AttributeExpectation, HarnessConfig
from syntax_harness.process import isolated_process, run_script
from syntax_harness.verify import AttributeMismatchError, attribute_runs, verify_search

logger = logging.getLogger(__name__)

_LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def _has_handler(
    target: logging.Logger, kind: type[logging.Handler], filename: str | None
) -> bool:
    for handler in target.handlers:
        # FileHandler subclasses StreamHandler, so match the exact type.
        if type(handler) is not kind:
            continue
        if filename is None or getattr(handler, "baseFilename", None) == filename:
            return True
    return False


def configure_logging(config: HarnessConfig) -> None:
    """Attach console and optional file handlers to the ``syntax_harness`` logger.

    Safe to call repeatedly: a handler is only added when no handler of
    the same type (and, for files, the same path) is attached yet.

    Args:
        config: Configuration providing ``log_level`` and optional ``log_file``.
    """
    harness_logger = logging.getLogger("syntax_harness")
    harness_logger.setLevel(config.log_level)

    wanted: list[tuple[type[logging.Handler], str | None]] = [(logging.StreamHandler, None)]
    if config.log_file is not None:
        wanted.append((logging.FileHandler, str(Path(config.log_file).resolve())))

    formatter = logging.Formatter(_LOG_FORMAT)
    for kind, filename in wanted:
        if _has_handler(harness_logger, kind, filename):
            continue
        handler = logging.StreamHandler() if filename is None else logging.FileHandler(filename)
        handler.setFormatter(formatter)
        harness_logger.addHandler(handler)


def _load_yaml(path: str, label: str) -> Any:
    """Load a YAML file.

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    file_path = Path(path)
    if not file_path.exists():
        msg = f"{label} file not found: {path}"
        raise FileNotFoundError(msg)

    with open(file_path, encoding="utf-8") as f:
        return yaml.safe_load(f)


def load_config(path: str) -> HarnessConfig:
    """Load a ``HarnessConfig`` from a YAML mapping.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file does not contain a mapping.
    """
    data = _load_yaml(path, "config")
    if data is None:
        return HarnessConfig()
    if not isinstance(data, dict):
        msg = f"config file must contain a YAML mapping, got {type(data).__name__}"
        raise ValueError(msg)
    return HarnessConfig(**data)


def load_expectations(path: str) -> list[AttributeExpectation]:
    """Load expectations from a YAML list of ``{literal, classes, face}`` mappings.

    ``"*"`` selects the wildcard for ``classes`` or ``face``; omitted keys
    are wildcards as well.

    Raises:
        ValueError: If the file does not contain a list.
    """
    data = _load_yaml(path, "expectations")
    if not isinstance(data, list):
        msg = f"expectations file must contain a YAML list, got {type(data).__name__}"
        raise ValueError(msg)
    return [AttributeExpectation.coerce(item) for item in data]


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="syntax-harness",
        description="Verify syntax classes and faces, and run isolated entry points.",
    )
    parser.add_argument("--config", default=None, help="Path to a HarnessConfig YAML file.")
    parser.add_argument("--log-level", default=None, help="Override the configured log level.")
    sub = parser.add_subparsers(dest="command", required=True)

    dump = sub.add_parser("dump", help="Print the attribute runs of a file.")
    dump.add_argument("file", help="File to fontify.")
    dump.add_argument("--mode", default=None, help="Mode name (default from config).")
    dump.add_argument("--lines", action="store_true", help="Load and fontify line by line.")

    check = sub.add_parser("check", help="Verify a file against expectations.")
    check.add_argument("file", help="File to fontify.")
    check.add_argument("--expect", required=True, help="YAML list of expectations.")
    check.add_argument("--mode", default=None, help="Mode name (default from config).")
    check.add_argument("--lines", action="store_true", help="Load and fontify line by line.")

    run = sub.add_parser("run", help="Run an entry point in an isolated process.")
    run.add_argument("entry", help="Registered entry point name.")
    run.add_argument("args", nargs=argparse.REMAINDER, help="Arguments for the entry point.")
    return parser


def _cmd_dump(args: argparse.Namespace, config: HarnessConfig) -> int:
    buffer = BufferRegistry(config).acquire(mode=args.mode)
    load_file(buffer, args.file, incremental=args.lines)
    for run in attribute_runs(buffer):
        face = run.face or "-"
        print(f"{run.beg}\t{run.end}\t{run.syntax_class}\t{face}\t{run.text!r}")
    return 0


def _cmd_check(args: argparse.Namespace, config: HarnessConfig) -> int:
    expectations = load_expectations(args.expect)
    buffer = BufferRegistry(config).acquire(mode=args.mode)
    load_file(buffer, args.file, incremental=args.lines)
    try:
        for expectation in expectations:
            verify_search(buffer, expectation.literal, expectation.classes, expectation.face)
    except (AttributeMismatchError, SearchFailedError) as exc:
        print(f"FAIL: {exc}", file=sys.stderr)
        return 1
    print(f"OK: {len(expectations)} expectations verified in {args.file}")
    return 0


def _cmd_run(args: argparse.Namespace, config: HarnessConfig) -> int:
    with isolated_process(args.entry, config=config) as script:
        result = run_script(script, *args.args, timeout=config.run_timeout_seconds)
    sys.stdout.write(result.stdout)
    sys.stderr.write(result.stderr)
    if result.timed_out:
        print(f"Timed out after {config.run_timeout_seconds}s", file=sys.stderr)
    return result.exit_code if result.exit_code >= 0 else 1


_COMMANDS = {"dump": _cmd_dump, "check": _cmd_check, "run": _cmd_run}


def main(argv: list[str] | None = None) -> int:
    """Entry point for the syntax-harness CLI application.

    Returns:
        Exit code: the command's own code, or 1 on error.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config) if args.config else HarnessConfig()
        if args.log_level:
            config = HarnessConfig.model_validate(
                {**config.model_dump(), "log_level": args.log_level}
            )
        configure_logging(config)
        return _COMMANDS[args.command](args, config)
    except (OSError, ValueError, KeyError, ValidationError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
