"""Binary lookup and small path helpers."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from upkeep.errors import SkipStep

logger = logging.getLogger(__name__)

SUDO_CANDIDATES: tuple[str, ...] = ("doas", "sudo", "gsudo", "pkexec")


def which(binary_name: str) -> Path | None:
    found = shutil.which(binary_name)
    if found is None:
        logger.debug("Cannot find %s", binary_name)
        return None
    logger.debug("Detected %s as %s", found, binary_name)
    return Path(found)


def require(binary_name: str) -> Path:
    """Return the path of ``binary_name`` or skip the current step."""
    path = which(binary_name)
    if path is None:
        raise SkipStep(f"Cannot find {binary_name} in PATH")
    return path


def sudo() -> Path | None:
    """Return the first available privilege-elevation tool."""
    for candidate in SUDO_CANDIDATES:
        path = which(candidate)
        if path is not None:
            return path
    return None


def is_descendant_of(path: str | Path, ancestor: str | Path) -> bool:
    """Tell whether ``path`` equals or lies beneath ``ancestor``, component-wise."""
    path_parts = Path(path).parts
    ancestor_parts = Path(ancestor).parts
    return path_parts[: len(ancestor_parts)] == ancestor_parts


def humanize_path(path: str | Path) -> str:
    """Show ``path`` with the home directory abbreviated to ``~``."""
    home = Path.home()
    candidate = Path(path)
    if is_descendant_of(candidate, home) and candidate != home:
        return str(Path("~") / candidate.relative_to(home))
    return str(candidate)
