"""Linear snapshot history with a reactive cursor."""

from __future__ import annotations

from typing import Generic, List, Optional, Tuple, TypeVar

from reactive_undo.reactive import Computed, Observable, batch

T = TypeVar("T")


class HistoryTimeline(Generic[T]):
    """Ordered snapshots plus the index of the one currently applied.

    The timeline is never empty and ``0 <= cursor < len(timeline)`` always
    holds. Cursor and length are observables, so ``can_undo``/``can_redo``
    notify their readers whenever availability changes.
    """

    def __init__(
        self, initial: T, *, limit: Optional[int] = None, name: str = "history"
    ) -> None:
        self.name = name
        self._entries: List[T] = [initial]
        self._limit = limit
        self._cursor = Observable(0, name=f"{name}.cursor")
        self._size = Observable(1, name=f"{name}.size")
        self._version = Observable(0, name=f"{name}.version")
        self.can_undo: Computed[bool] = Computed(
            lambda: self._cursor.get() > 0, name=f"{name}.can_undo"
        )
        self.can_redo: Computed[bool] = Computed(
            lambda: self._cursor.get() < self._size.get() - 1,
            name=f"{name}.can_redo",
        )

    @property
    def cursor(self) -> int:
        return self._cursor.get()

    @property
    def entries(self) -> Tuple[T, ...]:
        self._version.get()
        return tuple(self._entries)

    @property
    def current(self) -> T:
        self._version.get()
        return self._entries[self._cursor.get()]

    @property
    def limit(self) -> Optional[int]:
        return self._limit

    def __len__(self) -> int:
        return self._size.get()

    def record(self, value: T) -> int:
        """Drop entries after the cursor, append ``value`` and point at it."""

        with batch():
            index = self._cursor.peek() + 1
            del self._entries[index:]
            self._entries.append(value)
            if self._limit is not None and len(self._entries) > self._limit:
                overflow = len(self._entries) - self._limit
                del self._entries[:overflow]
                index -= overflow
            self._cursor.set(index)
            self._size.set(len(self._entries))
            self._version.set(self._version.peek() + 1)
        return index

    def seek(self, index: int) -> T:
        """Move the cursor to ``index`` and return the entry found there."""

        if index < 0 or index >= len(self._entries):
            raise IndexError(
                f"History index {index} out of range for {len(self._entries)} entries"
            )
        self._cursor.set(index)
        return self._entries[index]
