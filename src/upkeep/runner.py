"""Sequential step runner with interactive retry.

Actions run one at a time in the order given. A failing action may be retried
as many times as the operator asks; Ctrl+C never kills the current action, it
only makes sure the operator is asked before the next attempt.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING

from upkeep import terminal
from upkeep.ctrlc import INTERRUPTED, CancellationSignal
from upkeep.errors import SkipStep
from upkeep.report import Report

if TYPE_CHECKING:
    from upkeep.config import RunSpec
    from upkeep.steps import Step

logger = logging.getLogger(__name__)

Action = Callable[[], object]
RetryPrompt = Callable[[bool, str], bool]


class Runner:
    """Run actions and accumulate their outcomes in a Report."""

    def __init__(
        self,
        config: RunSpec,
        *,
        signal: CancellationSignal = INTERRUPTED,
        ask_retry: RetryPrompt | None = None,
    ):
        self.config = config
        self.signal = signal
        self.ask_retry = ask_retry or terminal.should_retry
        self.report = Report()

    def execute(self, step: Step | None, name: str, func: Action) -> None:
        """Run ``func`` under ``name``, retrying on failure while the operator agrees.

        ``step`` of None means the action cannot be disabled.
        """
        logger.debug("Step %r", name)

        if step is not None and not self.config.should_run(step):
            logger.debug("Step %r disabled (%s)", name, step.value)
            return

        while True:
            try:
                func()
            except SkipStep as skip:
                logger.debug("Skipped %r: %s", name, skip.reason)
                if self.config.show_skipped:
                    terminal.print_info(f"Skipped {name}: {skip.reason}")
                return
            except Exception as exc:
                logger.debug("Step %r failed: %s", name, exc, exc_info=True)
                interrupted = self.signal.test_and_clear()
                should_ask = interrupted or not self.config.no_retry
                if not should_ask or not self.ask_retry(interrupted, name):
                    self.report.push(name, False)
                    return
                logger.debug("Retrying %r", name)
                continue

            self.report.push(name, True)
            return

    def run(self, actions: Iterable[tuple[Step | None, str, Action]]) -> Report:
        """Execute ``actions`` in order and return the report."""
        for step, name, func in actions:
            self.execute(step, name, func)
        return self.report
