"""Everything an action needs to know about the current run."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from upkeep.errors import PrivilegeRequired

if TYPE_CHECKING:
    from upkeep.config import RunSpec
    from upkeep.executor import RunType
    from upkeep.git import Git


@dataclass(frozen=True)
class ExecutionContext:
    """Run type, resolved tools and configuration, shared read-only by all actions."""

    config: RunSpec
    git: Git
    sudo: Path | None = None

    @property
    def run_type(self) -> RunType:
        return self.config.run_type

    def require_sudo(self, what: str) -> Path:
        if self.sudo is None:
            raise PrivilegeRequired(what)
        return self.sudo
