"""Tests for the ordered step report."""

from __future__ import annotations

import pytest

from upkeep.report import Report


def test_report_preserves_insertion_order() -> None:
    report = Report()
    report.push("Shell", True)
    report.push("Pkg", False)
    report.push("Git repositories", True)

    assert report.names() == ["Shell", "Pkg", "Git repositories"]
    assert report.data == [("Shell", True), ("Pkg", False), ("Git repositories", True)]


def test_report_failed_iff_any_outcome_is_false() -> None:
    report = Report()
    assert not report.failed
    assert not report

    report.push("a", True)
    assert not report.failed

    report.push("b", False)
    assert report.failed
    assert len(report) == 2


def test_report_refuses_duplicate_names() -> None:
    report = Report()
    report.push("a", True)

    with pytest.raises(ValueError, match="already reported"):
        report.push("a", False)
