"""Boxed observable values and cached derived values."""

from __future__ import annotations

from typing import Callable, Generic, Optional, Tuple, TypeVar

from .core import STATE, Atom, Derivation, default_equals

T = TypeVar("T")

Equals = Callable[[object, object], bool]


class Observable(Generic[T]):
    """Single mutable value whose reads are tracked and writes are broadcast."""

    def __init__(
        self,
        value: T,
        *,
        name: Optional[str] = None,
        equals: Optional[Equals] = None,
    ) -> None:
        self._atom = Atom(name)
        self._value = value
        self._equals = equals or default_equals

    @property
    def name(self) -> str:
        return self._atom.name

    @property
    def observers(self) -> Tuple[Derivation, ...]:
        return self._atom.observers

    def get(self) -> T:
        self._atom.report_observed()
        return self._value

    def set(self, value: T) -> None:
        if self._equals(self._value, value):
            return
        self._value = value
        self._atom.report_changed()

    def peek(self) -> T:
        """Current value without registering a dependency."""

        return self._value

    def __repr__(self) -> str:
        return f"Observable({self._value!r}, name={self.name!r})"


class Computed(Derivation, Generic[T]):
    """Value derived from other observables, recomputed only when they change.

    Readers of a computed depend on the computed itself, so a reaction over
    ``Computed(lambda: cursor.get() > 0)`` re-runs when the cursor moves and
    fires only when the boolean flips.

    A computed only stays subscribed to its inputs while something observes
    it. Reads outside any derivation evaluate ``fn`` afresh and leave no
    subscriptions behind.
    """

    def __init__(
        self,
        fn: Callable[[], T],
        *,
        name: Optional[str] = None,
    ) -> None:
        super().__init__(name)
        self._fn = fn
        self._atom = Atom(self.name, on_unobserved=self._suspend)
        self._stale = True
        self._value: Optional[T] = None

    @property
    def observers(self) -> Tuple[Derivation, ...]:
        return self._atom.observers

    def get(self) -> T:
        if STATE.tracking is None and not self._atom.observers:
            return self._fn()
        self._atom.report_observed()
        if self._stale:
            self._value = self.track(self._fn)
            self._stale = False
        return self._value  # type: ignore[return-value]

    def _suspend(self) -> None:
        self.clear_dependencies()
        self._stale = True
        self._value = None

    def on_stale(self) -> None:
        if self._stale:
            return
        self._stale = True
        self._atom.report_changed()

    def __repr__(self) -> str:
        state = "stale" if self._stale else repr(self._value)
        return f"Computed({state}, name={self.name!r})"
