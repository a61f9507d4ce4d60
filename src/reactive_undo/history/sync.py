"""Contracts between a tracker and the value it watches."""

from __future__ import annotations

from typing import Callable, Protocol, TypeVar

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)
T_contra = TypeVar("T_contra", contravariant=True)


class Reader(Protocol[T_co]):
    """Returns the live value of the tracked quantity."""

    def __call__(self) -> T_co:
        ...


class Writer(Protocol[T_contra]):
    """Applies a value to the tracked quantity.

    Called while the tracker's own subscription is suspended, so it must not
    rely on being observed by that tracker.
    """

    def __call__(self, value: T_contra) -> None:
        ...


class Cancel(Protocol):
    """Stops a subscription; the callback is never invoked afterwards."""

    def __call__(self) -> None:
        ...


class Subscribe(Protocol):
    """Invoke ``on_change`` with each new value ``reader`` produces.

    Must support being called again after a previous subscription was
    cancelled, and must start observing from the value current at
    subscription time.
    """

    def __call__(
        self, reader: Callable[[], T], on_change: Callable[[T], None]
    ) -> Cancel:
        ...
