"""Pytest configuration and fixtures for upkeep tests."""
from __future__ import annotations

import io
from pathlib import Path

import pytest
from rich.console import Console

from upkeep import terminal


def pytest_sessionfinish(session, exitstatus):
    """Check that coverage data was collected if --cov was requested.

    This prevents silent "no data collected" scenarios that produce 0% coverage
    without failing the test run.
    """
    cov_enabled = any("--cov" in str(arg) for arg in session.config.args)

    if not cov_enabled:
        return

    coverage_files = list(Path.cwd().glob(".coverage*"))

    if not coverage_files:
        pytest.exit(
            "Coverage was enabled but no data was collected. "
            "Check that tests import from 'upkeep' (the package) not 'src/upkeep' (filesystem path).",
            returncode=1,
        )


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point HOME and XDG_CONFIG_HOME at empty temporary locations."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.setenv("SHELL", "sh")
    monkeypatch.delenv("UPKEEP_PREFIX", raising=False)
    return home


@pytest.fixture(autouse=True)
def console_output(monkeypatch: pytest.MonkeyPatch) -> io.StringIO:
    """Capture everything printed through the shared terminal."""
    buffer = io.StringIO()
    console = Console(file=buffer, width=200, color_system=None, highlight=False)
    monkeypatch.setattr("upkeep.terminal.TERMINAL", terminal.Terminal(console))
    return buffer
