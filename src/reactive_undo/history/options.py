"""Per-tracker configuration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from reactive_undo.runtime.telemetry import env, env_flag


@dataclass(frozen=True, slots=True)
class TrackerOptions:
    """Knobs for a ``HistoryTracker``.

    ``limit`` caps the number of stored snapshots; the oldest entries are
    dropped once it is exceeded, so the earliest undos become unavailable.
    ``None`` keeps every entry. ``rollback_on_error`` restores the cursor when
    the writer raises during undo/redo.
    """

    name: str = "history"
    limit: Optional[int] = None
    rollback_on_error: bool = True

    def __post_init__(self) -> None:
        if self.limit is not None and self.limit < 1:
            raise ValueError(f"limit must be at least 1, got {self.limit}")

    @classmethod
    def from_env(cls, *, name: str = "history") -> "TrackerOptions":
        raw_limit = env("HISTORY_LIMIT")
        limit = int(raw_limit) if raw_limit else None
        return cls(
            name=name,
            limit=limit,
            rollback_on_error=env_flag("ROLLBACK_ON_ERROR", True),
        )
