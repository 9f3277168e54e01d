"""ProgressObserver protocol - best-effort progress reporting."""

from __future__ import annotations

from typing import Protocol


class ProgressObserver(Protocol):
    """Notified after each unit of derivation or submission completes."""

    def advance(self, completed: int, total: int) -> None:
        ...
