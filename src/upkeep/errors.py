"""Error taxonomy shared by the runner, the executor and the git synchronizer."""

from __future__ import annotations

from collections.abc import Sequence


class UpkeepError(RuntimeError):
    """Base class for all upkeep errors."""


class SkipStep(UpkeepError):
    """Raised by an action that does not apply on this machine.

    Not a failure: the runner neither retries nor reports it.
    """

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class ProcessFailed(UpkeepError):
    """Raised when a spawned command exits non-zero."""

    def __init__(self, argv: Sequence[str], returncode: int):
        self.argv = tuple(argv)
        self.returncode = returncode
        super().__init__(f"command failed ({returncode}): {' '.join(self.argv)}")


class ProcessFailedWithOutput(ProcessFailed):
    """Same as ProcessFailed, carrying captured stderr."""

    def __init__(self, argv: Sequence[str], returncode: int, stderr: str):
        super().__init__(argv, returncode)
        self.stderr = stderr

    def __str__(self) -> str:
        base = super().__str__()
        detail = self.stderr.strip()
        return f"{base}\n{detail}" if detail else base


class PrivilegeRequired(UpkeepError):
    """Raised when an action needs sudo but no elevation tool was found."""

    def __init__(self, what: str):
        super().__init__(f"{what} requires sudo, but no sudo, doas, gsudo or pkexec was found")


class SyncError(UpkeepError):
    """Raised when the git fan-out cannot schedule or await a pull task."""


class ConfigError(UpkeepError):
    """Raised for invalid configuration values."""


class StepFailed(UpkeepError):
    """Raised by the CLI when at least one step failed."""

    def __init__(self) -> None:
        super().__init__("a step failed")
