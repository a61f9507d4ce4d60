"""Errors raised by history trackers."""

from __future__ import annotations


class AlreadyDisposedError(RuntimeError):
    """Raised when a disposed tracker is asked to undo, redo or record."""

    def __init__(self, tracker: str, operation: str) -> None:
        super().__init__(f"History tracker '{tracker}' already disposed ({operation})")
        self.tracker = tracker
        self.operation = operation
