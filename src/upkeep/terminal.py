"""Console output and interactive prompts."""

from __future__ import annotations

import logging
import os
import subprocess
from datetime import datetime
from pathlib import Path

import click
from rich.console import Console
from rich.text import Text

logger = logging.getLogger(__name__)

PREFIX_ENV = "UPKEEP_PREFIX"


def shell() -> str:
    """Return the user's interactive shell."""
    return os.environ.get("SHELL", "sh")


def run_shell() -> None:
    subprocess.run([shell()], check=False)


class Terminal:
    """Shared console used by the runner, the summary and the git synchronizer."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console(highlight=False)
        prefix = os.environ.get(PREFIX_ENV)
        self.prefix = f"({prefix}) " if prefix else ""

    @property
    def interactive(self) -> bool:
        return self.console.is_terminal and not self.console.is_dumb_terminal

    def print_separator(self, message: str) -> None:
        stamp = datetime.now().strftime("%H:%M:%S")
        title = f"{self.prefix}{stamp} - {message}"
        if self.interactive:
            self.console.print()
            self.console.rule(Text(title, style="bold"), align="left", characters="―")
        else:
            self.console.print(f"―― {title} ――")

    def print_warning(self, message: str) -> None:
        self.console.print(Text(message, style="bold yellow"))

    def print_info(self, message: str) -> None:
        self.console.print(Text(message, style="bold blue"))

    def print_result(self, key: str, succeeded: bool) -> None:
        line = Text(f"{key}: ")
        if succeeded:
            line.append("OK", style="bold green")
        else:
            line.append("FAILED", style="bold red")
        self.console.print(line)

    def print_dry_run(self, command: str, cwd: Path | None) -> None:
        suffix = f" in {cwd}" if cwd is not None else ""
        self.console.print(Text(f"Dry running: {command}{suffix}", style="dim"))

    def should_retry(self, interrupted: bool, step_name: str) -> bool:
        """Ask whether ``step_name`` should be retried.

        Returns False without asking when there is no interactive terminal.
        """
        if not self.interactive:
            logger.debug("Not asking to retry %s: terminal is not interactive", step_name)
            return False

        hint = "(Press Ctrl+C again to stop) " if interrupted else ""
        self.console.print()
        self.console.print(
            Text(f"{self.prefix}Retry? (y)es/(N)o/(s)hell {hint}", style="bold yellow"),
            end="",
        )

        while True:
            key = click.getchar()
            if key in ("y", "Y"):
                answer = True
                break
            if key in ("s", "S"):
                self.console.print(
                    "\n\nDropping you to shell. Fix what you need and then exit the shell.\n"
                )
                run_shell()
                answer = True
                break
            if key in ("n", "N", "\r", "\n"):
                answer = False
                break

        self.console.print()
        return answer

    def keep_at_end_prompt(self) -> None:
        self.print_info("\n(S)hell\n(Q)uit")
        while True:
            key = click.getchar()
            if key in ("s", "S"):
                run_shell()
                return
            if key in ("q", "Q", "\r", "\n"):
                return


TERMINAL = Terminal()


def print_separator(message: str) -> None:
    TERMINAL.print_separator(message)


def print_warning(message: str) -> None:
    TERMINAL.print_warning(message)


def print_info(message: str) -> None:
    TERMINAL.print_info(message)


def print_result(key: str, succeeded: bool) -> None:
    TERMINAL.print_result(key, succeeded)


def print_dry_run(command: str, cwd: Path | None = None) -> None:
    TERMINAL.print_dry_run(command, cwd)


def should_retry(interrupted: bool, step_name: str) -> bool:
    return TERMINAL.should_retry(interrupted, step_name)


def keep_at_end_prompt() -> None:
    TERMINAL.keep_at_end_prompt()
