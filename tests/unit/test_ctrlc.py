"""Tests for the process-wide interrupt flag."""

from __future__ import annotations

import signal

from upkeep.ctrlc import INTERRUPTED, CancellationSignal, install_handler


def test_flag_starts_clear_and_can_be_set_repeatedly() -> None:
    flag = CancellationSignal()
    assert not flag.is_set()

    flag.set()
    flag.set()
    assert flag.is_set()


def test_test_and_clear_resets_the_flag() -> None:
    flag = CancellationSignal()
    assert flag.test_and_clear() is False

    flag.set()
    assert flag.test_and_clear() is True
    assert flag.test_and_clear() is False
    assert not flag.is_set()


def test_module_instance_is_a_single_shared_signal() -> None:
    from upkeep import ctrlc

    assert ctrlc.INTERRUPTED is INTERRUPTED


def test_sigint_handler_only_sets_the_flag() -> None:
    flag = CancellationSignal()
    previous = signal.getsignal(signal.SIGINT)
    try:
        install_handler(flag)
        signal.raise_signal(signal.SIGINT)
        assert flag.is_set()
    finally:
        signal.signal(signal.SIGINT, previous)
