"""Command runners shared by every action.

``run_command`` captures output and is what the git synchronizer uses.
``RunType.execute`` is what user-facing actions use: it streams output to the
terminal, and in dry-run mode only prints what would have been run.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from upkeep.errors import ProcessFailed
from upkeep.terminal import print_dry_run

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExecResult:
    """Result envelope for subprocess execution."""

    argv: tuple[str, ...]
    cwd: Path | None
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class ExecError(RuntimeError):
    """Raised when a command returns non-zero in check mode."""

    def __init__(self, result: ExecResult):
        rendered = " ".join(result.argv)
        detail = (result.stderr or result.stdout).strip()
        super().__init__(f"command failed ({result.returncode}): {rendered}\n{detail}")
        self.result = result


def run_command(
    argv: Sequence[str],
    *,
    cwd: Path | None = None,
    check: bool = True,
    env: Mapping[str, str] | None = None,
) -> ExecResult:
    """Run command and return structured result."""
    logger.debug("Running %s in %s", shlex.join(argv), cwd or ".")
    completed = subprocess.run(
        list(argv),
        cwd=cwd,
        capture_output=True,
        text=True,
        check=False,
        env=dict(env) if env is not None else None,
    )
    result = ExecResult(
        argv=tuple(argv),
        cwd=cwd.resolve() if cwd is not None else None,
        returncode=completed.returncode,
        stdout=completed.stdout,
        stderr=completed.stderr,
    )
    if check and result.returncode != 0:
        raise ExecError(result)
    return result


class RunType(str, Enum):
    """Whether commands are really executed or only printed."""

    DRY = "dry"
    WET = "wet"

    @classmethod
    def from_dry_run(cls, dry_run: bool) -> RunType:
        return cls.DRY if dry_run else cls.WET

    @property
    def dry(self) -> bool:
        return self is RunType.DRY

    def execute(
        self,
        argv: Sequence[str],
        *,
        cwd: Path | None = None,
        sudo: Path | None = None,
    ) -> None:
        """Run ``argv`` with inherited stdio, or print it when dry running.

        Raises:
            ProcessFailed: the command exited non-zero.
            OSError: the command could not be spawned.
        """
        full = [str(sudo), *argv] if sudo is not None else list(argv)
        if self.dry:
            print_dry_run(shlex.join(full), cwd)
            return

        logger.debug("Executing %s in %s", shlex.join(full), cwd or ".")
        completed = subprocess.run(full, cwd=cwd, check=False)
        if completed.returncode != 0:
            raise ProcessFailed(full, completed.returncode)
