"""Collect the repositories the ``git_repos`` step pulls."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from upkeep.config import config_directory
from upkeep.git import Repositories

if TYPE_CHECKING:
    from upkeep.execution_context import ExecutionContext

logger = logging.getLogger(__name__)

# Relative to the home directory.
HOME_CANDIDATES: tuple[str, ...] = (
    ".emacs.d",
    ".doom.d",
    ".vim",
    ".ideavimrc",
    ".intellimacs",
    ".zshrc",
    ".tmux",
)

# Relative to the config directory.
CONFIG_CANDIDATES: tuple[str, ...] = (
    "nvim",
    "fish",
    "openbox",
    "bspwm",
    "i3",
    "sway",
)


def predefined_candidates(home: Path, config_dir: Path) -> list[Path]:
    """Well-known dotfile locations that are often git checkouts."""
    return [home / name for name in HOME_CANDIDATES] + [config_dir / name for name in CONFIG_CANDIDATES]


def collect_repositories(ctx: ExecutionContext, *, home: Path | None = None) -> Repositories:
    """Build the repository set from predefined locations and ``git.repos`` patterns."""
    repositories = Repositories(ctx.git)
    if not ctx.git.available:
        logger.debug("git is not installed, no repositories collected")
        return repositories

    if ctx.config.pull_predefined:
        for candidate in predefined_candidates(home or Path.home(), config_directory()):
            repositories.insert_if_repo(candidate)

    for pattern in ctx.config.git_repos:
        repositories.glob_insert(pattern)

    logger.debug("Collected %d repositories", len(repositories))
    return repositories
