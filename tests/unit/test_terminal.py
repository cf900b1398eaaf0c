"""Tests for console output and prompts."""

from __future__ import annotations

import io

import pytest
from rich.console import Console

from upkeep import terminal
from upkeep.terminal import Terminal


def _terminal() -> tuple[Terminal, io.StringIO]:
    buffer = io.StringIO()
    return Terminal(Console(file=buffer, width=120, color_system=None, highlight=False)), buffer


def test_separator_includes_time_and_title() -> None:
    term, buffer = _terminal()

    term.print_separator("Git repositories")

    output = buffer.getvalue()
    assert "Git repositories" in output
    assert " - Git repositories" in output


def test_separator_prefix_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("UPKEEP_PREFIX", "box")
    term, buffer = _terminal()

    term.print_separator("Shell")

    assert "(box) " in buffer.getvalue()


def test_print_result() -> None:
    term, buffer = _terminal()

    term.print_result("Shell", True)
    term.print_result("Pkg", False)

    assert buffer.getvalue().splitlines() == ["Shell: OK", "Pkg: FAILED"]


def test_should_retry_declines_without_terminal(monkeypatch: pytest.MonkeyPatch) -> None:
    def no_getchar():
        raise AssertionError("must not read a key without a terminal")

    monkeypatch.setattr(terminal.click, "getchar", no_getchar)
    term, _ = _terminal()

    assert term.should_retry(True, "Shell") is False


@pytest.mark.parametrize(("keys", "expected"), [("y", True), ("Y", True), ("xn", False), ("\r", False)])
def test_should_retry_reads_keys(monkeypatch: pytest.MonkeyPatch, keys: str, expected: bool) -> None:
    pressed = iter(keys)
    monkeypatch.setenv("TERM", "xterm")
    monkeypatch.setattr(terminal.click, "getchar", lambda: next(pressed))
    buffer = io.StringIO()
    term = Terminal(Console(file=buffer, width=120, color_system=None, force_terminal=True))

    assert term.should_retry(True, "Shell") is expected
    assert "Press Ctrl+C again to stop" in buffer.getvalue()


def test_should_retry_shell_runs_shell_then_retries(monkeypatch: pytest.MonkeyPatch) -> None:
    shells: list[int] = []
    monkeypatch.setenv("TERM", "xterm")
    monkeypatch.setattr(terminal.click, "getchar", lambda: "s")
    monkeypatch.setattr(terminal, "run_shell", lambda: shells.append(1))
    term = Terminal(Console(file=io.StringIO(), width=120, color_system=None, force_terminal=True))

    assert term.should_retry(False, "Shell") is True
    assert shells == [1]


def test_module_helpers_use_current_terminal(console_output) -> None:
    terminal.print_warning("careful")
    terminal.print_info("note")

    assert console_output.getvalue().splitlines() == ["careful", "note"]
