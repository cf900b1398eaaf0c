"""Tests for custom commands, repository collection and the execution context."""

from __future__ import annotations

import subprocess
from pathlib import Path

import pytest

from upkeep.config import RunSpec
from upkeep.errors import PrivilegeRequired, ProcessFailed
from upkeep.execution_context import ExecutionContext
from upkeep.executor import RunType
from upkeep.git import Git
from upkeep.steps.custom import run_custom_command
from upkeep.steps.git_repos import collect_repositories, predefined_candidates


def _init_repo(path: Path) -> Path:
    path.mkdir(parents=True)
    subprocess.run(["git", "init"], cwd=path, check=True, capture_output=True)
    return path.resolve()


def test_custom_command_runs_through_shell(tmp_path: Path, console_output) -> None:
    marker = tmp_path / "marker"
    ctx = ExecutionContext(config=RunSpec(), git=Git())

    run_custom_command("Touch", f"touch {marker}", ctx)

    assert marker.exists()
    assert "Touch" in console_output.getvalue()


def test_custom_command_failure_raises(tmp_path: Path) -> None:
    ctx = ExecutionContext(config=RunSpec(), git=Git())

    with pytest.raises(ProcessFailed):
        run_custom_command("Broken", "exit 1", ctx)


def test_custom_command_dry_run(tmp_path: Path, console_output) -> None:
    marker = tmp_path / "marker"
    ctx = ExecutionContext(config=RunSpec(run_type=RunType.DRY), git=Git())

    run_custom_command("Touch", f"touch {marker}", ctx)

    assert not marker.exists()
    assert "Dry running: sh -c" in console_output.getvalue()


def test_require_sudo() -> None:
    ctx = ExecutionContext(config=RunSpec(), git=Git())
    with pytest.raises(PrivilegeRequired):
        ctx.require_sudo("system update")

    elevated = ExecutionContext(config=RunSpec(), git=Git(), sudo=Path("/usr/bin/doas"))
    assert elevated.require_sudo("system update") == Path("/usr/bin/doas")


def test_predefined_candidates_cover_home_and_config(tmp_path: Path) -> None:
    candidates = predefined_candidates(tmp_path / "h", tmp_path / "c")

    assert tmp_path / "h" / ".vim" in candidates
    assert tmp_path / "c" / "nvim" in candidates


def test_collect_predefined_and_patterns(isolated_home: Path, tmp_path: Path) -> None:
    vim = _init_repo(isolated_home / ".vim")
    project = _init_repo(tmp_path / "src" / "project")
    ctx = ExecutionContext(config=RunSpec(git_repos=(str(tmp_path / "src" / "*"),)), git=Git())

    repositories = collect_repositories(ctx)

    assert repositories.roots() == sorted([str(vim), str(project)])


def test_collect_without_predefined(isolated_home: Path) -> None:
    _init_repo(isolated_home / ".vim")
    ctx = ExecutionContext(config=RunSpec(pull_predefined=False), git=Git())

    assert len(collect_repositories(ctx)) == 0


def test_collect_without_git_is_empty(isolated_home: Path) -> None:
    _init_repo(isolated_home / ".vim")
    git = Git()
    git.path = None
    ctx = ExecutionContext(config=RunSpec(), git=git)

    assert len(collect_repositories(ctx)) == 0
