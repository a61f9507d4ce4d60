"""Undo/redo controller attached to one externally owned reactive value."""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Callable, Generic, Optional, Tuple, TypeVar

from reactive_undo.reactive import Computed, batch, reaction, untracked
from reactive_undo.reactive.core import default_equals
from reactive_undo.runtime import telemetry

from .errors import AlreadyDisposedError
from .options import TrackerOptions
from .sync import Cancel, Subscribe
from .timeline import HistoryTimeline

T = TypeVar("T")


class HistoryTracker(AbstractContextManager["HistoryTracker[T]"], Generic[T]):
    """Records every change of ``reader()`` and replays snapshots via ``writer``.

    External changes reach the tracker through ``subscribe(reader, callback)``
    and are appended to the timeline. ``undo``/``redo`` move the cursor and
    write the stored snapshot back. While the tracker writes, its own
    subscription is cancelled so the write is not recorded again; other
    observers of the value still see it. The subscription is re-established
    right after the write and starts from the post-write value.
    """

    def __init__(
        self,
        reader: Callable[[], T],
        writer: Callable[[T], None],
        *,
        subscribe: Optional[Subscribe] = None,
        options: Optional[TrackerOptions] = None,
    ) -> None:
        self.options = options or TrackerOptions.from_env()
        self.name = self.options.name
        self._reader = reader
        self._writer = writer
        self._subscribe_fn: Subscribe = subscribe or reaction
        self._cancel: Optional[Cancel] = None
        self._disposed = False
        self._timeline: HistoryTimeline[T] = HistoryTimeline(
            untracked(reader), limit=self.options.limit, name=self.name
        )
        self._subscribe()
        telemetry.record_event(
            "history.created",
            level="debug",
            data={"tracker": self.name, "limit": self.options.limit},
        )

    # -- derived state -----------------------------------------------------

    @property
    def has_undo(self) -> bool:
        return self._timeline.can_undo.get()

    @property
    def has_redo(self) -> bool:
        return self._timeline.can_redo.get()

    @property
    def has_undo_computed(self) -> Computed[bool]:
        return self._timeline.can_undo

    @property
    def has_redo_computed(self) -> Computed[bool]:
        return self._timeline.can_redo

    @property
    def history(self) -> Tuple[T, ...]:
        return self._timeline.entries

    @property
    def cursor(self) -> int:
        return self._timeline.cursor

    @property
    def timeline(self) -> HistoryTimeline[T]:
        return self._timeline

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def tracking(self) -> bool:
        """Whether a change subscription is currently active."""

        return self._cancel is not None

    # -- operations --------------------------------------------------------

    def undo(self) -> None:
        """Step back one entry; does nothing when already at the oldest."""

        self._ensure_live("undo")
        untracked(lambda: self._step(-1, "undo"))

    def redo(self) -> None:
        """Step forward one entry; does nothing when already at the newest."""

        self._ensure_live("redo")
        untracked(lambda: self._step(1, "redo"))

    def dispose(self) -> None:
        """Stop tracking for good. Calling it again has no effect."""

        if self._disposed:
            return
        self._unsubscribe()
        self._disposed = True
        telemetry.record_event(
            "history.disposed",
            level="debug",
            data={"tracker": self.name, "entries": untracked(lambda: len(self._timeline))},
        )

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.dispose()
        return False

    # -- internals ---------------------------------------------------------

    def _ensure_live(self, operation: str) -> None:
        if self._disposed:
            raise AlreadyDisposedError(self.name, operation)

    def _step(self, delta: int, operation: str) -> None:
        available = self._timeline.can_undo if delta < 0 else self._timeline.can_redo
        if not available.get():
            return

        previous = self._timeline.cursor
        target = previous + delta
        with telemetry.span(
            f"history::{operation}",
            component="history",
            metadata={"tracker": self.name, "from": previous, "to": target},
        ):
            with batch():
                value = self._timeline.seek(target)
                self._unsubscribe()
                try:
                    self._writer(value)
                except Exception as exc:
                    if self.options.rollback_on_error:
                        self._reconcile(previous, target, operation, exc)
                    raise
                finally:
                    self._subscribe()

    def _reconcile(
        self, previous: int, target: int, operation: str, exc: Exception
    ) -> None:
        """Point the cursor at whatever the failed writer left behind.

        The writer may have left the old value in place, applied the target
        entry before raising, or produced something else entirely; the last
        case is recorded as a new entry. The cursor is back on ``previous``
        before the reader runs, so a failing reader leaves it there.
        """

        kept = self._timeline.seek(previous)
        actual = untracked(self._reader)
        if default_equals(actual, kept):
            outcome = "rolled_back"
        elif default_equals(actual, untracked(lambda: self._timeline.entries)[target]):
            self._timeline.seek(target)
            outcome = "applied"
        else:
            self._timeline.record(actual)
            outcome = "recorded"
        telemetry.record_event(
            "history.rollback",
            level="warning",
            data={
                "tracker": self.name,
                "operation": operation,
                "outcome": outcome,
                "cursor": untracked(lambda: self._timeline.cursor),
                "error": repr(exc),
            },
        )

    def _subscribe(self) -> None:
        if self._cancel is not None:
            raise RuntimeError(f"History tracker '{self.name}' is already subscribed")
        self._cancel = self._subscribe_fn(self._reader, self._on_change)

    def _unsubscribe(self) -> None:
        cancel, self._cancel = self._cancel, None
        if cancel is not None:
            cancel()

    def _on_change(self, value: T) -> None:
        if self._disposed:
            raise AlreadyDisposedError(self.name, "record")
        index = self._timeline.record(value)
        telemetry.record_event(
            "history.recorded",
            level="debug",
            data={"tracker": self.name, "cursor": index},
        )


def track_undo(
    reader: Callable[[], T],
    writer: Callable[[T], None],
    *,
    subscribe: Optional[Subscribe] = None,
    options: Optional[TrackerOptions] = None,
) -> HistoryTracker[T]:
    """Start recording the history of the value exposed by ``reader``.

    ``subscribe`` defaults to ``reactive_undo.reactive.reaction``; any
    callable with the same ``(reader, on_change) -> cancel`` contract works.

        box = Observable(123)
        tracker = track_undo(box.get, box.set)
        box.set(456)
        tracker.undo()  # box.get() == 123
    """

    return HistoryTracker(reader, writer, subscribe=subscribe, options=options)
