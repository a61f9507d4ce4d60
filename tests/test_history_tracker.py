from __future__ import annotations

from typing import Any, Callable, List

import pytest

from reactive_undo.history import AlreadyDisposedError, HistoryTracker, TrackerOptions, track_undo
from reactive_undo.reactive import Observable, batch, reaction


def make_tracker(
    initial: Any = 123, **options: Any
) -> tuple[Observable[Any], HistoryTracker[Any]]:
    box: Observable[Any] = Observable(initial, name="value")
    tracker = track_undo(box.get, box.set, options=TrackerOptions(**options))
    return box, tracker


def watch(fn: Callable[[], Any]) -> List[Any]:
    seen: List[Any] = []
    reaction(fn, seen.append)
    return seen


def test_undo_initial_change() -> None:
    box, tracker = make_tracker()

    box.set(456)
    assert box.get() == 456

    tracker.undo()
    assert box.get() == 123


def test_repeated_undo_walks_back_to_start() -> None:
    box, tracker = make_tracker()
    box.set(456)
    box.set(789)

    tracker.undo()
    assert box.get() == 456
    assert tracker.has_undo is True
    assert tracker.has_redo is True

    tracker.undo()
    assert box.get() == 123
    assert tracker.has_undo is False
    assert tracker.has_redo is True


def test_flags_after_each_external_change() -> None:
    box, tracker = make_tracker(0)
    assert tracker.has_undo is False
    assert tracker.has_redo is False

    for value in range(1, 8):
        box.set(value)
        assert tracker.has_undo is True
        assert tracker.has_redo is False

    for _ in range(7):
        tracker.undo()
    assert box.get() == 0
    assert tracker.cursor == 0


def test_redo_restores_value_before_undo() -> None:
    box, tracker = make_tracker()
    box.set(456)
    box.set(789)

    tracker.undo()
    tracker.undo()
    tracker.redo()
    assert box.get() == 456

    tracker.redo()
    assert box.get() == 789
    assert tracker.has_redo is False


def test_new_change_after_undo_discards_redo_entries() -> None:
    box, tracker = make_tracker()
    box.set(456)
    box.set(789)

    tracker.undo()
    tracker.undo()
    tracker.redo()
    assert box.get() == 456

    box.set(0)
    assert tracker.has_redo is False
    assert tracker.history == (123, 456, 0)

    tracker.redo()
    assert box.get() == 0
    assert tracker.has_redo is False

    tracker.undo()
    assert box.get() == 456
    assert tracker.has_redo is True


def test_undo_and_redo_at_the_edges_are_noops() -> None:
    box, tracker = make_tracker()

    tracker.undo()
    assert box.get() == 123
    assert tracker.cursor == 0
    assert (tracker.has_undo, tracker.has_redo) == (False, False)

    box.set(456)
    tracker.redo()
    assert box.get() == 456
    assert tracker.cursor == 1
    assert (tracker.has_undo, tracker.has_redo) == (True, False)


def test_own_writes_are_not_recorded_but_are_observed() -> None:
    box, tracker = make_tracker()
    box.set(456)
    transitions = watch(box.get)

    tracker.undo()
    tracker.redo()

    assert transitions == [123, 456]
    assert tracker.history == (123, 456)


def test_two_undos_in_one_batch_make_one_transition() -> None:
    box, tracker = make_tracker()
    box.set(456)
    box.set(789)
    transitions = watch(box.get)

    with batch():
        tracker.undo()
        tracker.undo()

    assert box.get() == 123
    assert transitions == [123]
    assert tracker.has_undo is False
    assert tracker.has_redo is True
    assert tracker.history == (123, 456, 789)


def test_changes_inside_a_batch_are_recorded_once() -> None:
    box, tracker = make_tracker()

    with batch():
        box.set(1)
        box.set(2)

    assert tracker.history == (123, 2)


def test_availability_flags_notify_observers() -> None:
    box, tracker = make_tracker()
    undo_flags = watch(lambda: tracker.has_undo)
    redo_flags = watch(lambda: tracker.has_redo)

    box.set(456)
    box.set(789)
    tracker.undo()
    tracker.undo()
    tracker.redo()
    tracker.redo()

    assert undo_flags == [True, False, True]
    assert redo_flags == [True, False]


def test_equal_values_are_not_recorded() -> None:
    box, tracker = make_tracker()

    box.set(123)

    assert tracker.history == (123,)
    assert tracker.has_undo is False


def test_dispose_stops_observing() -> None:
    box, tracker = make_tracker()
    assert len(box.observers) == 1

    tracker.dispose()

    assert box.observers == ()
    assert tracker.tracking is False
    box.set(456)
    assert tracker.history == (123,)


def test_undo_redo_after_dispose_raise() -> None:
    box, tracker = make_tracker()
    box.set(456)
    tracker.dispose()

    with pytest.raises(AlreadyDisposedError) as exc_info:
        tracker.undo()
    assert exc_info.value.operation == "undo"

    with pytest.raises(AlreadyDisposedError):
        tracker.redo()
    assert box.get() == 456


def test_dispose_twice_is_allowed() -> None:
    _, tracker = make_tracker()

    tracker.dispose()
    tracker.dispose()

    assert tracker.disposed is True


def test_context_manager_disposes_on_exit() -> None:
    box: Observable[int] = Observable(1)

    with track_undo(box.get, box.set, options=TrackerOptions()) as tracker:
        box.set(2)
        assert tracker.history == (1, 2)

    assert tracker.disposed is True
    assert box.observers == ()


def test_writer_failure_rolls_back_cursor() -> None:
    box: Observable[int] = Observable(1)
    failing = {"on": False}

    def writer(value: int) -> None:
        if failing["on"]:
            raise RuntimeError("store offline")
        box.set(value)

    tracker = track_undo(box.get, writer, options=TrackerOptions())
    box.set(2)
    failing["on"] = True

    with pytest.raises(RuntimeError, match="store offline"):
        tracker.undo()

    assert tracker.cursor == 1
    assert box.get() == 2
    assert tracker.tracking is True

    failing["on"] = False
    box.set(3)
    assert tracker.history == (1, 2, 3)


def test_writer_failure_without_rollback_keeps_cursor_moved() -> None:
    box: Observable[int] = Observable(1)

    def writer(value: int) -> None:
        raise RuntimeError("read only")

    tracker = track_undo(
        box.get, writer, options=TrackerOptions(rollback_on_error=False)
    )
    box.set(2)

    with pytest.raises(RuntimeError):
        tracker.undo()

    assert tracker.cursor == 0
    assert tracker.has_redo is True
    assert tracker.tracking is True
    assert len(box.observers) == 1


def test_history_limit_drops_oldest_entries() -> None:
    box, tracker = make_tracker(1, limit=3)
    for value in (2, 3, 4):
        box.set(value)

    assert tracker.history == (2, 3, 4)
    assert tracker.cursor == 2

    tracker.undo()
    tracker.undo()
    assert box.get() == 2
    assert tracker.has_undo is False


class ManualSubscriptions:
    """Poll-driven subscribe implementation used to check the contract."""

    def __init__(self) -> None:
        self.active: list[list[Any]] = []

    def __call__(self, reader: Callable[[], Any], on_change: Callable[[Any], None]):
        entry = [reader, on_change, reader()]
        self.active.append(entry)

        def cancel() -> None:
            self.active.remove(entry)

        return cancel

    def poll(self) -> None:
        for entry in list(self.active):
            reader, on_change, last = entry
            value = reader()
            if value != last:
                entry[2] = value
                on_change(value)


def test_custom_subscribe_keeps_single_subscription() -> None:
    state = {"value": "a"}
    subscriptions = ManualSubscriptions()

    def write(value: str) -> None:
        state["value"] = value

    tracker = HistoryTracker(
        lambda: state["value"],
        write,
        subscribe=subscriptions,
        options=TrackerOptions(name="manual"),
    )
    state["value"] = "b"
    subscriptions.poll()
    assert tracker.history == ("a", "b")

    tracker.undo()
    assert state["value"] == "a"
    assert len(subscriptions.active) == 1

    subscriptions.poll()
    assert tracker.history == ("a", "b")

    tracker.dispose()
    assert subscriptions.active == []


def test_history_observers_see_same_length_rewrites() -> None:
    box, tracker = make_tracker()
    box.set(456)
    box.set(789)
    snapshots = watch(lambda: tracker.history)

    tracker.undo()
    box.set(0)

    assert snapshots == [(123, 456, 0)]


def test_current_entry_observers_see_records_at_full_limit() -> None:
    box, tracker = make_tracker(1, limit=2)
    box.set(2)
    currents = watch(lambda: tracker.timeline.current)

    box.set(3)

    assert tracker.cursor == 1
    assert currents == [3]


def test_writer_applying_value_then_failing_keeps_cursor_on_it() -> None:
    box: Observable[int] = Observable(1)
    failing = {"on": False}

    def writer(value: int) -> None:
        box.set(value)
        if failing["on"]:
            failing["on"] = False
            raise RuntimeError("ack lost")

    tracker = track_undo(box.get, writer, options=TrackerOptions())
    box.set(2)
    failing["on"] = True

    with pytest.raises(RuntimeError, match="ack lost"):
        tracker.undo()

    assert box.get() == 1
    assert tracker.cursor == 0
    assert tracker.history[tracker.cursor] == box.get()

    tracker.redo()
    assert box.get() == 2
    assert tracker.history == (1, 2)


def test_writer_leaving_other_value_records_it() -> None:
    box: Observable[int] = Observable(1)

    def writer(value: int) -> None:
        box.set(99)
        raise RuntimeError("partial write")

    tracker = track_undo(box.get, writer, options=TrackerOptions())
    box.set(2)
    box.set(3)

    with pytest.raises(RuntimeError, match="partial write"):
        tracker.undo()

    assert tracker.history == (1, 2, 3, 99)
    assert tracker.cursor == 3
    assert tracker.has_redo is False


def test_reader_failing_on_resubscribe_surfaces_with_writer_error() -> None:
    box: Observable[int] = Observable(1)
    broken = {"reader": False}

    def reader() -> int:
        if broken["reader"]:
            raise LookupError("value gone")
        return box.get()

    def writer(value: int) -> None:
        broken["reader"] = True
        raise RuntimeError("write refused")

    tracker = track_undo(reader, writer, options=TrackerOptions())
    box.set(2)

    with pytest.raises(LookupError) as exc_info:
        tracker.undo()

    causes = []
    error: BaseException | None = exc_info.value
    while error is not None:
        causes.append(type(error))
        error = error.__context__
    assert RuntimeError in causes
    assert tracker.tracking is False
    assert tracker.cursor == 1


class LeakySubscriptions(ManualSubscriptions):
    """Subscriptions whose cancel handle does nothing."""

    def __call__(self, reader: Callable[[], Any], on_change: Callable[[Any], None]):
        super().__call__(reader, on_change)
        return lambda: None


def test_change_delivered_after_dispose_raises() -> None:
    state = {"value": 1}
    subscriptions = LeakySubscriptions()
    tracker = HistoryTracker(
        lambda: state["value"],
        lambda value: state.update(value=value),
        subscribe=subscriptions,
        options=TrackerOptions(name="leaky"),
    )
    tracker.dispose()
    state["value"] = 2

    with pytest.raises(AlreadyDisposedError) as exc_info:
        subscriptions.poll()

    assert exc_info.value.operation == "record"
    assert exc_info.value.tracker == "leaky"
    assert tracker.history == (1,)
