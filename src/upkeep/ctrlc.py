"""Process-wide interrupt flag and the SIGINT handler that sets it.

The handler only stores a boolean. Python runs signal handlers on the main
thread between bytecodes, so anything that takes a lock (``threading.Event``
included) could deadlock against the code it interrupted.
"""

from __future__ import annotations

import logging
import signal as _signal
from types import FrameType

logger = logging.getLogger(__name__)


class CancellationSignal:
    """A single boolean telling whether the user pressed Ctrl+C."""

    __slots__ = ("_flag",)

    def __init__(self) -> None:
        self._flag = False

    def set(self) -> None:
        self._flag = True

    def is_set(self) -> bool:
        return self._flag

    def clear(self) -> None:
        self._flag = False

    def test_and_clear(self) -> bool:
        """Return the flag and reset it.

        A ``set()`` landing between the read and the reset is lost, which
        costs at most one extra retry prompt.
        """
        interrupted = self._flag
        if interrupted:
            self._flag = False
        return interrupted

    def __repr__(self) -> str:
        return f"CancellationSignal(set={self._flag})"


INTERRUPTED = CancellationSignal()


def install_handler(signal: CancellationSignal = INTERRUPTED) -> None:
    """Route SIGINT (and SIGBREAK on Windows) into ``signal``."""

    def _handle(_signum: int, _frame: FrameType | None) -> None:
        signal.set()

    _signal.signal(_signal.SIGINT, _handle)
    sigbreak = getattr(_signal, "SIGBREAK", None)
    if sigbreak is not None:
        try:
            _signal.signal(sigbreak, _handle)
        except (OSError, ValueError) as exc:
            logger.error("Cannot set a Ctrl+Break handler: %s", exc)
