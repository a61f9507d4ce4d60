"""Grouping several mutations into one observable transition."""

from __future__ import annotations

import functools
from contextlib import contextmanager
from typing import Any, Callable, Iterator, TypeVar

from .core import STATE

F = TypeVar("F", bound=Callable[..., Any])


@contextmanager
def batch() -> Iterator[None]:
    """Defer reactions until the outermost ``batch`` block exits.

    Observers see the net result of everything set inside the block, even
    when the block raises.
    """

    STATE.start_batch()
    try:
        yield
    finally:
        STATE.end_batch()


def action(fn: F) -> F:
    """Decorator running ``fn`` inside ``batch()``."""

    @functools.wraps(fn)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        with batch():
            return fn(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def in_batch() -> bool:
    return STATE.batch_depth > 0
