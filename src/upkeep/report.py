"""Ordered record of step outcomes, used for the summary and the exit status."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field


@dataclass
class Report:
    """Insertion-ordered ``(name, succeeded)`` pairs.

    Skipped actions never reach the report.
    """

    _data: list[tuple[str, bool]] = field(default_factory=list)

    def push(self, name: str, succeeded: bool) -> None:
        if any(existing == name for existing, _ in self._data):
            raise ValueError(f"{name} already reported")
        self._data.append((name, succeeded))

    @property
    def data(self) -> list[tuple[str, bool]]:
        return list(self._data)

    @property
    def failed(self) -> bool:
        return any(not succeeded for _, succeeded in self._data)

    def names(self) -> list[str]:
        return [name for name, _ in self._data]

    def __iter__(self) -> Iterator[tuple[str, bool]]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __bool__(self) -> bool:
        return bool(self._data)
