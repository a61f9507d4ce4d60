"""Minimal synchronous reactive primitives: observables, computeds, reactions."""

from .batch import action, batch, in_batch
from .core import Atom, Derivation, untracked
from .errors import ReactionLoopError, ReactiveError
from .observable import Computed, Observable
from .reaction import Disposer, Reaction, autorun, reaction

__all__ = [
    "Atom",
    "Derivation",
    "Observable",
    "Computed",
    "Reaction",
    "Disposer",
    "reaction",
    "autorun",
    "batch",
    "action",
    "in_batch",
    "untracked",
    "ReactiveError",
    "ReactionLoopError",
]
