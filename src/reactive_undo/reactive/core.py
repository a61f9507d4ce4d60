"""Dependency tracking and batched scheduling shared by every reactive type.

An ``Atom`` is something that can be observed. A ``Derivation`` is something
that observes: while it runs, every atom it reads registers it as an
observer. When an atom changes, its observers are told they are stale;
reactions queue themselves and run once the outermost batch closes.
"""

from __future__ import annotations

from itertools import count
from typing import Callable, Dict, List, Optional, Tuple, TypeVar

from .errors import ReactionLoopError

T = TypeVar("T")

MAX_REACTION_ROUNDS = 100

_ids = count(1)
_MISSING = object()


def _default_name(kind: str) -> str:
    return f"{kind}@{next(_ids)}"


def default_equals(old: object, new: object) -> bool:
    return old is new or old == new


class Atom:
    """Observable node; knows which derivations currently depend on it."""

    def __init__(
        self,
        name: Optional[str] = None,
        *,
        on_unobserved: Optional[Callable[[], None]] = None,
    ) -> None:
        self.name = name or _default_name("Atom")
        self._observers: Dict["Derivation", None] = {}
        self._on_unobserved = on_unobserved

    @property
    def observers(self) -> Tuple["Derivation", ...]:
        return tuple(self._observers)

    def add_observer(self, derivation: "Derivation") -> None:
        self._observers[derivation] = None

    def remove_observer(self, derivation: "Derivation") -> None:
        if self._observers.pop(derivation, _MISSING) is _MISSING:
            return
        if not self._observers and self._on_unobserved is not None:
            self._on_unobserved()

    def report_observed(self) -> None:
        derivation = STATE.tracking
        if derivation is not None:
            derivation.observe(self)

    def report_changed(self) -> None:
        STATE.start_batch()
        try:
            for derivation in list(self._observers):
                derivation.on_stale()
        finally:
            STATE.end_batch()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class Derivation:
    """Base for anything that re-runs when the atoms it read change."""

    def __init__(self, name: Optional[str] = None) -> None:
        self.name = name or _default_name(type(self).__name__)
        self._dependencies: Dict[Atom, None] = {}
        self._collecting: Optional[Dict[Atom, None]] = None

    @property
    def dependencies(self) -> Tuple[Atom, ...]:
        return tuple(self._dependencies)

    def observe(self, atom: Atom) -> None:
        if self._collecting is not None:
            self._collecting[atom] = None

    def track(self, fn: Callable[[], T]) -> T:
        """Run ``fn`` and make its reads the new dependency set."""

        previous = STATE.tracking
        outer = self._collecting
        self._collecting = {}
        STATE.tracking = self
        try:
            return fn()
        finally:
            STATE.tracking = previous
            collected, self._collecting = self._collecting, outer
            self._bind(collected)

    def _bind(self, atoms: Dict[Atom, None]) -> None:
        for atom in self._dependencies:
            if atom not in atoms:
                atom.remove_observer(self)
        for atom in atoms:
            if atom not in self._dependencies:
                atom.add_observer(self)
        self._dependencies = atoms

    def clear_dependencies(self) -> None:
        for atom in self._dependencies:
            atom.remove_observer(self)
        self._dependencies = {}

    def on_stale(self) -> None:  # pragma: no cover - abstract override
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class _ReactiveState:
    """Process-wide bookkeeping: who is tracking, batch depth, pending work."""

    def __init__(self) -> None:
        self.tracking: Optional[Derivation] = None
        self.batch_depth = 0
        self.pending: List["Schedulable"] = []
        self.flushing = False

    def start_batch(self) -> None:
        self.batch_depth += 1

    def end_batch(self) -> None:
        self.batch_depth -= 1
        if self.batch_depth == 0 and not self.flushing:
            self.flush()

    def schedule(self, reaction: "Schedulable") -> None:
        self.pending.append(reaction)
        if self.batch_depth == 0 and not self.flushing:
            self.flush()

    def flush(self) -> None:
        self.flushing = True
        try:
            rounds = 0
            while self.pending:
                rounds += 1
                if rounds > MAX_REACTION_ROUNDS:
                    stuck = [reaction.name for reaction in self.pending]
                    for reaction in self.pending:
                        reaction.unschedule()
                    self.pending = []
                    raise ReactionLoopError(MAX_REACTION_ROUNDS, stuck)
                queue, self.pending = self.pending, []
                for index, reaction in enumerate(queue):
                    try:
                        reaction.run()
                    except BaseException:
                        # Keep the rest queued for the next flush.
                        self.pending[:0] = queue[index + 1 :]
                        raise
        finally:
            self.flushing = False


class Schedulable(Derivation):
    """Derivation that can sit in the pending queue."""

    def run(self) -> None:  # pragma: no cover - abstract override
        raise NotImplementedError

    def unschedule(self) -> None:  # pragma: no cover - abstract override
        raise NotImplementedError


STATE = _ReactiveState()


def untracked(fn: Callable[[], T]) -> T:
    """Evaluate ``fn`` without registering any dependency."""

    previous = STATE.tracking
    STATE.tracking = None
    try:
        return fn()
    finally:
        STATE.tracking = previous
