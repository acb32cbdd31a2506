"""In-process tests for the built-in entry points."""

from __future__ import annotations

import io

import pytest
from syntax_harness.entry_points import echo_args, exit_code, fontify_stdin


@pytest.mark.unit
class TestEchoArgs:
    def test_prints_and_counts(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        monkeypatch.setattr("sys.argv", ["a", "b"])
        assert echo_args() == 2
        assert capsys.readouterr().out == "a\nb\n"

    def test_no_arguments(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        monkeypatch.setattr("sys.argv", [])
        assert echo_args() == 0
        assert capsys.readouterr().out == ""


@pytest.mark.unit
class TestExitCode:
    @pytest.mark.parametrize(
        ("argv", "expected"),
        [([], None), (["none"], None), (["3"], 3), (["-2"], -2), (["abc"], "abc")],
    )
    def test_conversion(
        self, monkeypatch: pytest.MonkeyPatch, argv: list[str], expected: object
    ) -> None:
        monkeypatch.setattr("sys.argv", argv)
        assert exit_code() == expected


@pytest.mark.unit
class TestFontifyStdin:
    def test_prints_runs(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        monkeypatch.setattr("sys.argv", ["ocaml"])
        monkeypatch.setattr("sys.stdin", io.StringIO("let x = 1\n"))
        assert fontify_stdin() == 0
        lines = capsys.readouterr().out.splitlines()
        assert lines[0] == "0\t3\tword\tkeyword-face\t'let'"
        assert lines[-1] == "9\t10\twhitespace\t-\t'\\n'"

    def test_default_mode(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        monkeypatch.setattr("sys.argv", [])
        monkeypatch.setattr("sys.stdin", io.StringIO("let\n"))
        assert fontify_stdin() == 0
        assert capsys.readouterr().out.splitlines()[0] == "0\t3\tword\t-\t'let'"

    def test_unknown_mode(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        monkeypatch.setattr("sys.argv", ["no-such-mode"])
        monkeypatch.setattr("sys.stdin", io.StringIO(""))
        assert fontify_stdin() == 2
        assert "no-such-mode" in capsys.readouterr().err
