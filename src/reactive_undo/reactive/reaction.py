"""Side effects driven by tracked expressions."""

from __future__ import annotations

from typing import Callable, Generic, Optional, TypeVar

from .batch import batch
from .core import STATE, Schedulable, default_equals, untracked
from .observable import Equals

T = TypeVar("T")

_UNSET = object()


class Reaction(Schedulable, Generic[T]):
    """Re-runs ``expression`` whenever something it read changes.

    ``effect`` receives the new result only when it differs from the previous
    run (per ``equals``). Without an effect the reaction behaves like an
    autorun: re-running the expression is the side effect.
    """

    def __init__(
        self,
        expression: Callable[[], T],
        effect: Optional[Callable[[T], None]] = None,
        *,
        equals: Optional[Equals] = None,
        name: Optional[str] = None,
    ) -> None:
        super().__init__(name)
        self._expression = expression
        self._effect = effect
        self._equals = equals or default_equals
        self._value: object = _UNSET
        self._scheduled = False
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def start(self, *, fire_immediately: bool = False) -> None:
        self._value = self.track(self._expression)
        if fire_immediately:
            self._fire(self._value)  # type: ignore[arg-type]

    def on_stale(self) -> None:
        if self._scheduled or self._disposed:
            return
        self._scheduled = True
        STATE.schedule(self)

    def unschedule(self) -> None:
        self._scheduled = False

    def run(self) -> None:
        self._scheduled = False
        if self._disposed:
            return
        value = self.track(self._expression)
        previous, self._value = self._value, value
        if self._effect is not None and not self._equals(previous, value):
            self._fire(value)

    def _fire(self, value: T) -> None:
        if self._effect is None:
            return
        effect = self._effect
        with batch():
            untracked(lambda: effect(value))

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        self.clear_dependencies()


class Disposer:
    """Callable handle cancelling a reaction; safe to call more than once."""

    __slots__ = ("reaction",)

    def __init__(self, reaction: Reaction) -> None:
        self.reaction = reaction

    @property
    def disposed(self) -> bool:
        return self.reaction.disposed

    def dispose(self) -> None:
        self.reaction.dispose()

    def __call__(self) -> None:
        self.reaction.dispose()

    def __repr__(self) -> str:
        return f"<Disposer {self.reaction.name} disposed={self.disposed}>"


def reaction(
    expression: Callable[[], T],
    effect: Callable[[T], None],
    *,
    equals: Optional[Equals] = None,
    fire_immediately: bool = False,
    name: Optional[str] = None,
) -> Disposer:
    """Call ``effect(value)`` each time ``expression()`` yields a new value.

    The first evaluation only records the baseline unless
    ``fire_immediately`` is set. Returns a ``Disposer``; once called, the
    effect never runs again.
    """

    subscription = Reaction(expression, effect, equals=equals, name=name)
    subscription.start(fire_immediately=fire_immediately)
    return Disposer(subscription)


def autorun(fn: Callable[[], object], *, name: Optional[str] = None) -> Disposer:
    """Run ``fn`` now and again whenever anything it read changes."""

    subscription: Reaction[object] = Reaction(fn, name=name)
    subscription.start()
    return Disposer(subscription)
