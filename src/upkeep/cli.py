"""upkeep CLI - run every enabled maintenance step, then print a summary."""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from functools import partial
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

from upkeep import __version__, terminal
from upkeep.config import EXAMPLE_CONFIG, CommandLineArgs, RunSpec, load_config_file
from upkeep.ctrlc import INTERRUPTED, install_handler
from upkeep.errors import ConfigError, StepFailed, UpkeepError
from upkeep.execution_context import ExecutionContext
from upkeep.git import Git, Repositories
from upkeep.report import Report
from upkeep.runner import Action, Runner
from upkeep.steps import ACTIONABLE_STEPS, GIT_REPOS_ACTION, RESERVED_ACTION_NAMES, Step
from upkeep.steps.custom import run_custom_command
from upkeep.steps.git_repos import collect_repositories
from upkeep.utils import sudo

logger = logging.getLogger("upkeep")

cli = typer.Typer(
    name="upkeep",
    help="upkeep - keep the machine and its git repositories up to date",
    add_completion=False,
)


def _version_option_callback(value: bool) -> None:
    """Handle eager --version option."""
    if value:
        typer.echo(__version__)
        raise typer.Exit()


def _config_reference_callback(value: bool) -> None:
    if value:
        typer.echo(EXAMPLE_CONFIG, nl=False)
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=verbose)],
        force=True,
    )


def build_actions(ctx: ExecutionContext, repositories: Repositories) -> list[tuple[Step | None, str, Action]]:
    """Ordered list of the actions the runner executes."""
    actions: list[tuple[Step | None, str, Action]] = [
        (Step.GIT_REPOS, GIT_REPOS_ACTION, partial(ctx.git.multi_pull_step, repositories, ctx)),
    ]
    for name, command in ctx.config.commands.items():
        actions.append((Step.CUSTOM_COMMANDS, name, partial(run_custom_command, name, command, ctx)))
    return actions


def print_summary(report: Report) -> None:
    if not report:
        return
    terminal.print_separator("Summary")
    for name, succeeded in report:
        terminal.print_result(name, succeeded)


def run_commands_best_effort(commands: dict[str, str], ctx: ExecutionContext) -> bool:
    """Run post-commands. Return True when all of them succeeded."""
    all_ok = True
    for name, command in commands.items():
        try:
            run_custom_command(name, command, ctx)
        except (UpkeepError, OSError) as exc:
            terminal.print_warning(f"{name} failed: {exc}")
            all_ok = False
    return all_ok


def run_upkeep(
    config: RunSpec,
    *,
    git: Git | None = None,
    ask_retry: Callable[[bool, str], bool] | None = None,
) -> Report:
    """Run pre-commands, all actions, the summary and post-commands.

    Raises:
        StepFailed: a step or a post-command failed.
        ConfigError: a custom command reuses a built-in step name.
        UpkeepError, OSError: a pre-command failed.
    """
    clashing = sorted(RESERVED_ACTION_NAMES.intersection(config.commands))
    if clashing:
        raise ConfigError(f"Custom command name clashes with a built-in step: {', '.join(clashing)}")

    ctx = ExecutionContext(config=config, git=git or Git(), sudo=sudo())
    logger.debug("Version: %s", __version__)
    logger.debug("Arguments: %s", sys.argv)

    for name, command in config.pre_commands.items():
        run_custom_command(name, command, ctx)

    repositories = (
        collect_repositories(ctx) if config.should_run(Step.GIT_REPOS) else Repositories(ctx.git)
    )

    if not config.allowed_steps & ACTIONABLE_STEPS:
        enabled = ", ".join(sorted(step.value for step in config.allowed_steps)) or "none"
        terminal.print_warning(f"Nothing to run: no action is registered for the enabled steps ({enabled})")

    runner = Runner(config, signal=INTERRUPTED, ask_retry=ask_retry)
    report = runner.run(build_actions(ctx, repositories))

    print_summary(report)
    post_commands_ok = run_commands_best_effort(config.post_commands, ctx)

    if config.keep_at_end and terminal.TERMINAL.interactive:
        terminal.keep_at_end_prompt()

    if report.failed or not post_commands_ok:
        raise StepFailed()
    return report


@cli.command()
def main(
    dry_run: bool = typer.Option(False, "--dry-run", "-n", help="Print what would be done."),
    no_retry: bool = typer.Option(False, "--no-retry", help="Do not ask to retry failed steps."),
    disable: list[Step] | None = typer.Option(
        None,
        "--disable",
        help="Do not perform upgrades for the given steps.",
    ),
    only: list[Step] | None = typer.Option(
        None,
        "--only",
        help="Perform only the specified steps.",
    ),
    config: Path | None = typer.Option(None, "--config", help="Alternative configuration file."),
    disable_predefined_git_repos: bool = typer.Option(
        False,
        "--disable-predefined-git-repos",
        help="Don't pull the predefined git repos.",
    ),
    show_skipped: bool = typer.Option(False, "--show-skipped", help="Show the reason for skipped steps."),
    keep: bool = typer.Option(False, "--keep", "-k", help="Prompt for a key before exiting."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Output logs."),
    config_reference: bool = typer.Option(
        False,
        "--config-reference",
        help="Show the example configuration and exit.",
        is_eager=True,
        callback=_config_reference_callback,
    ),
    version: bool = typer.Option(
        False,
        "--version",
        help="Show upkeep version and exit.",
        is_eager=True,
        callback=_version_option_callback,
    ),
) -> None:
    """Run every enabled maintenance step."""
    _ = (config_reference, version)
    _configure_logging(verbose)
    install_handler(INTERRUPTED)

    opt = CommandLineArgs(
        dry_run=dry_run,
        no_retry=no_retry,
        disable=tuple(disable or ()),
        only=tuple(only or ()),
        keep_at_end=keep,
        verbose=verbose,
        show_skipped=show_skipped,
        disable_predefined_git_repos=disable_predefined_git_repos,
        config=config,
    )
    run_spec = RunSpec.resolve(opt, load_config_file(config))

    try:
        run_upkeep(run_spec)
    except StepFailed as exc:
        raise typer.Exit(1) from exc
    except (UpkeepError, OSError) as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1) from exc


def run() -> None:
    """Console-script entry point."""
    cli()
