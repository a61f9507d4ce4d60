"""Undo/redo history tracking for reactive values."""

from .history import (
    AlreadyDisposedError,
    HistoryTimeline,
    HistoryTracker,
    TrackerOptions,
    track_undo,
)
from .reactive import Computed, Observable, action, autorun, batch, reaction

__all__ = [
    "history",
    "reactive",
    "runtime",
    "AlreadyDisposedError",
    "HistoryTimeline",
    "HistoryTracker",
    "TrackerOptions",
    "track_undo",
    "Computed",
    "Observable",
    "action",
    "autorun",
    "batch",
    "reaction",
]

__version__ = "0.1.0"
