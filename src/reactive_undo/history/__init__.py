"""Undo/redo history for a single reactive value."""

from .errors import AlreadyDisposedError
from .options import TrackerOptions
from .sync import Cancel, Reader, Subscribe, Writer
from .timeline import HistoryTimeline
from .tracker import HistoryTracker, track_undo

__all__ = [
    "AlreadyDisposedError",
    "Cancel",
    "HistoryTimeline",
    "HistoryTracker",
    "Reader",
    "Subscribe",
    "TrackerOptions",
    "Writer",
    "track_undo",
]
