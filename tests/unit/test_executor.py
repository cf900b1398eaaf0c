"""Tests for command execution helpers."""

from __future__ import annotations

import subprocess
from pathlib import Path

import pytest

from upkeep.errors import ProcessFailed
from upkeep.executor import ExecError, RunType, run_command


def test_run_command_captures_output(tmp_path: Path) -> None:
    result = run_command(["sh", "-c", "pwd; echo oops >&2"], cwd=tmp_path)

    assert result.ok
    assert result.stdout.strip() == str(tmp_path.resolve())
    assert result.stderr.strip() == "oops"
    assert result.cwd == tmp_path.resolve()


def test_run_command_check_raises_exec_error() -> None:
    with pytest.raises(ExecError) as excinfo:
        run_command(["sh", "-c", "echo nope >&2; exit 3"])

    assert excinfo.value.result.returncode == 3
    assert "nope" in str(excinfo.value)


def test_run_command_without_check_returns_failure() -> None:
    result = run_command(["sh", "-c", "exit 2"], check=False)

    assert not result.ok
    assert result.returncode == 2


def test_dry_run_prints_instead_of_running(monkeypatch: pytest.MonkeyPatch, console_output) -> None:
    def fail_run(*args, **kwargs):
        raise AssertionError("subprocess.run must not be called in dry-run mode")

    monkeypatch.setattr(subprocess, "run", fail_run)

    RunType.DRY.execute(["apt", "upgrade"], cwd=Path("/srv"), sudo=Path("/usr/bin/sudo"))

    assert "Dry running: /usr/bin/sudo apt upgrade in /srv" in console_output.getvalue()


def test_wet_run_raises_on_nonzero_exit() -> None:
    with pytest.raises(ProcessFailed) as excinfo:
        RunType.WET.execute(["sh", "-c", "exit 4"])

    assert excinfo.value.returncode == 4
    assert excinfo.value.argv[0] == "sh"


def test_wet_run_succeeds_quietly() -> None:
    RunType.WET.execute(["true"])


def test_missing_binary_is_an_os_error() -> None:
    with pytest.raises(OSError):
        RunType.WET.execute(["upkeep-test-no-such-binary"])


def test_from_dry_run() -> None:
    assert RunType.from_dry_run(True) is RunType.DRY
    assert RunType.from_dry_run(False) is RunType.WET
    assert RunType.DRY.dry and not RunType.WET.dry
