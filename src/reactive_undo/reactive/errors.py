"""Errors raised by the reactive layer."""

from __future__ import annotations

from typing import Sequence


class ReactiveError(RuntimeError):
    """Base class for reactive layer failures."""


class ReactionLoopError(ReactiveError):
    """Raised when reactions keep rescheduling each other without settling."""

    def __init__(self, rounds: int, reactions: Sequence[str]) -> None:
        names = ", ".join(reactions) or "<unknown>"
        super().__init__(
            f"Reactions did not converge after {rounds} rounds; still pending: {names}"
        )
        self.rounds = rounds
        self.reactions = tuple(reactions)
