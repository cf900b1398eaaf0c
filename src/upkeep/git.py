"""Git repository discovery and concurrent pulling.

Discovery canonicalizes every candidate path to its repository root before
inserting it, so a set never holds two entries for the same working copy.
Pulling fans out over a thread pool: each repository is independent, and
the optional ``git.max_concurrency`` bounds how many ``git`` processes run at
once.
"""

from __future__ import annotations

import glob
import logging
import os
import shlex
from collections.abc import Iterable, Iterator, Sequence
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from rich.text import Text

from upkeep import terminal
from upkeep.errors import SkipStep, SyncError
from upkeep.executor import ExecError, ExecResult, run_command
from upkeep.steps import GIT_REPOS_ACTION
from upkeep.utils import humanize_path, is_descendant_of, which

if TYPE_CHECKING:
    from upkeep.execution_context import ExecutionContext

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PullOutcome:
    """Result of pulling one repository."""

    repo: str
    before_revision: str | None
    after_revision: str | None
    failed: bool
    changelog: str = ""
    error: str = ""

    @property
    def changed(self) -> bool:
        return (
            not self.failed
            and self.before_revision is not None
            and self.after_revision is not None
            and self.before_revision != self.after_revision
        )


class Git:
    """The git executable, resolved once per run."""

    def __init__(self, path: Path | None = None):
        self.path = path if path is not None else which("git")

    @property
    def available(self) -> bool:
        return self.path is not None

    def _run(self, args: Sequence[str], *, repo: str | Path, check: bool = True) -> ExecResult:
        if self.path is None:
            raise SkipStep("Cannot find git in PATH")
        return run_command([str(self.path), *args], cwd=Path(repo), check=check)

    def get_repo_root(self, path: str | Path) -> str | None:
        """Return the top level of the working copy containing ``path``, if any."""
        candidate = Path(path).expanduser()
        try:
            resolved = candidate.resolve(strict=True)
        except FileNotFoundError:
            logger.debug("%s does not exist", candidate)
            return None
        except OSError as exc:
            logger.error("Error looking for %s: %s", candidate, exc)
            return None

        if resolved.is_file():
            logger.debug("%s is a file. Checking %s", resolved, resolved.parent)
            resolved = resolved.parent

        if self.path is None:
            return None

        logger.debug("Checking if %s is a git repository", resolved)
        try:
            result = self._run(["rev-parse", "--show-toplevel"], repo=resolved, check=False)
        except OSError as exc:
            logger.error("Error running git in %s: %s", resolved, exc)
            return None
        if not result.ok:
            return None
        root = result.stdout.strip()
        return root or None

    def has_remotes(self, repo: str) -> bool:
        result = self._run(["remote", "show"], repo=repo, check=False)
        return result.ok and bool(result.stdout.strip())

    def head_revision(self, repo: str) -> str | None:
        """Return HEAD's commit id, or None when it cannot be read."""
        try:
            result = self._run(["rev-parse", "HEAD"], repo=repo, check=False)
        except OSError as exc:
            logger.debug("Cannot read HEAD of %s: %s", repo, exc)
            return None
        if not result.ok:
            logger.debug("Cannot read HEAD of %s: %s", repo, result.stderr.strip())
            return None
        return result.stdout.strip() or None

    def pull_repo(self, repo: str, *, extra_args: Sequence[str] = ()) -> PullOutcome:
        """Fast-forward ``repo`` and update its submodules.

        Runs on a worker thread. Command failures are captured in the outcome;
        anything else propagates to the caller through the future.
        """
        logger.debug("Pulling %s", repo)
        before = self.head_revision(repo)

        try:
            self._run(["pull", "--ff-only", *extra_args], repo=repo)
            self._run(["submodule", "update", "--recursive"], repo=repo)
        except ExecError as exc:
            detail = (exc.result.stderr or exc.result.stdout).strip()
            return PullOutcome(
                repo=repo,
                before_revision=before,
                after_revision=self.head_revision(repo),
                failed=True,
                error=detail,
            )

        after = self.head_revision(repo)
        changelog = ""
        if before is not None and after is not None and before != after:
            log = self._run(
                ["log", "--no-decorate", "--oneline", f"{before}..{after}"],
                repo=repo,
                check=False,
            )
            changelog = log.stdout.strip()

        return PullOutcome(
            repo=repo,
            before_revision=before,
            after_revision=after,
            failed=False,
            changelog=changelog,
        )

    def multi_pull(self, repositories: Iterable[str], ctx: ExecutionContext) -> list[PullOutcome]:
        """Pull every repository, at most ``git_concurrency_limit`` at a time.

        Outcomes are printed as they complete, so their order is arbitrary.
        A failed pull is printed, not raised: only a task that could not be
        scheduled or that crashed raises SyncError.
        """
        repos = list(repositories)

        if ctx.run_type.dry:
            for repo in repos:
                terminal.print_info(f"Would pull {humanize_path(repo)}")
            return []

        qualifying: list[str] = []
        for repo in repos:
            if self.has_remotes(repo):
                qualifying.append(repo)
            else:
                terminal.print_warning(f"{humanize_path(repo)} has no remotes, skipping")

        if not qualifying:
            return []

        extra_args = shlex.split(ctx.config.git_arguments or "")
        max_workers = ctx.config.git_concurrency_limit or len(qualifying)
        logger.debug("Pulling %d repositories with %d workers", len(qualifying), max_workers)

        outcomes: list[PullOutcome] = []
        crashed: list[str] = []
        with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="upkeep-git") as executor:
            futures: dict[Future[PullOutcome], str] = {}
            for repo in qualifying:
                try:
                    futures[executor.submit(self.pull_repo, repo, extra_args=extra_args)] = repo
                except RuntimeError as exc:
                    raise SyncError(f"Cannot schedule a pull for {repo}: {exc}") from exc

            for future in as_completed(futures):
                repo = futures[future]
                try:
                    outcome = future.result()
                except Exception as exc:
                    logger.error("Pulling %s crashed: %s", repo, exc)
                    crashed.append(repo)
                    continue
                print_outcome(outcome)
                outcomes.append(outcome)

        if crashed:
            raise SyncError(f"Pulling {len(crashed)} repositories crashed: {', '.join(sorted(crashed))}")
        return outcomes

    def multi_pull_step(self, repositories: Repositories, ctx: ExecutionContext) -> None:
        """Runner action for the ``git_repos`` step."""
        if not self.available:
            raise SkipStep("Cannot find git in PATH")
        if not repositories:
            raise SkipStep("No repositories to pull")

        terminal.print_separator(GIT_REPOS_ACTION)
        self.multi_pull(repositories.roots(), ctx)


def print_outcome(outcome: PullOutcome) -> None:
    console = terminal.TERMINAL.console
    shown = humanize_path(outcome.repo)
    if outcome.failed:
        console.print(Text(f"Failed {shown}", style="bold red"))
        if outcome.error:
            console.print(outcome.error, markup=False, highlight=False)
    elif outcome.changed:
        console.print(Text(f"Changed {shown}:", style="bold yellow"))
        for line in outcome.changelog.splitlines():
            console.print(f"    {line}", markup=False, highlight=False)
    else:
        console.print(Text(f"Up-to-date {shown}", style="bold green"))


class Repositories:
    """Deduplicated set of repository roots."""

    def __init__(self, git: Git):
        self.git = git
        self._roots: set[str] = set()

    def insert_if_repo(self, path: str | Path) -> bool:
        """Add the repository containing ``path``. Return whether it was new."""
        root = self.git.get_repo_root(path)
        if root is None:
            return False
        if root in self._roots:
            return False
        self._roots.add(root)
        return True

    def glob_insert(self, pattern: str) -> None:
        """Insert every repository matched by ``pattern``.

        A match inside the most recently found repository is skipped without
        asking git, since it would resolve to that same root.
        """
        expanded = os.path.expanduser(pattern)
        last_root: str | None = None
        matched = False

        for match in glob.iglob(expanded, recursive=True):
            matched = True
            if last_root is not None and is_descendant_of(Path(match).resolve(), last_root):
                logger.debug("Skipping %s: inside %s", match, last_root)
                continue

            root = self.git.get_repo_root(match)
            if root is None:
                continue
            last_root = root
            self._roots.add(root)

        if not matched:
            logger.debug("Pattern %s matched nothing", pattern)

    def roots(self) -> list[str]:
        return sorted(self._roots)

    def __iter__(self) -> Iterator[str]:
        return iter(self.roots())

    def __len__(self) -> int:
        return len(self._roots)

    def __contains__(self, root: object) -> bool:
        return root in self._roots
