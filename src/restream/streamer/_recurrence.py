"""
Streams generated by repeatedly applying a function to a cursor value.

The generating loops here are plain ``while`` loops over a local cursor
inside a single async generator. A stream of a million elements costs
a million loop iterations, not a million nested calls.
"""

from __future__ import annotations

import inspect
import math
from collections.abc import AsyncIterable, Callable
from typing import Any, Optional, TypeVar

from .._common import ABSENT
from ._streamer import Stream, _check_callable

T = TypeVar('T')
S = TypeVar('S')


class Recurrence(AsyncIterable):
    def __init__(self, step: Callable[[T], Any], initial, /):
        self._step = step
        self._initial = initial

    async def __aiter__(self):
        cursor = self._initial
        if cursor is ABSENT:
            return
        step = self._step
        while True:
            yield cursor
            # Not only `async def`: partials and callable objects may return awaitables.
            cursor = step(cursor)
            if inspect.isawaitable(cursor):
                cursor = await cursor
            if cursor is ABSENT:
                return


class Unfolder(AsyncIterable):
    def __init__(self, seed, func: Callable[[S], Any], /):
        self._seed = seed
        self._func = func

    async def __aiter__(self):
        func = self._func
        state = self._seed
        while True:
            z = func(state)
            if inspect.isawaitable(z):
                z = await z
            if z is ABSENT:
                return
            x, state = z
            yield x


def from_recurrence(step: Callable[[T], Any], initial, /) -> Stream:
    """
    Make a stream that starts with ``initial`` and continues with
    ``step(initial)``, ``step(step(initial))``, ..., stopping as soon as
    ``step`` returns :data:`~restream.streamer.ABSENT`.

    If ``initial`` is ``ABSENT``, the stream is empty and ``step`` is never called.
    If ``step`` never returns ``ABSENT``, the stream is unlimited;
    use :meth:`~Stream.take` or similar to stop consumption.

    ``step`` can be sync or async (any callable whose result may be awaitable). It is called lazily, once for each element after the first
    that the consumer pulls.

    Examples
    --------
    >>> import asyncio
    >>> s = from_recurrence(lambda x: x + 1, 0)
    >>> asyncio.run(s.take(5).collect())
    [0, 1, 2, 3, 4]
    """
    _check_callable(step, 'step')
    return Stream(Recurrence(step, initial))


def unfold(seed, func: Callable[[S], Any], /) -> Stream:
    """
    ``func(seed)`` returns either ``ABSENT`` (the end) or a pair
    ``(element, next_seed)``.

    Examples
    --------
    >>> import asyncio
    >>> f = lambda n: ABSENT if n <= 0 else (n * 2, n - 1)
    >>> asyncio.run(unfold(5, f).collect())
    [10, 8, 6, 4, 2]
    """
    _check_callable(func, 'func')
    return Stream(Unfolder(seed, func))


def from_range(start: int, end: Optional[int] = None) -> Stream:
    """
    Consecutive integers from ``start`` (inclusive) to ``end`` (exclusive).
    With ``end=None`` the stream is unlimited.
    """
    if end is None:
        return from_recurrence(lambda r: r + 1, start)

    def step(r):
        r += 1
        return r if r < end else ABSENT

    return from_recurrence(step, start if start < end else ABSENT)


def make_by(n: int | float, func: Callable[[int], T], /) -> Stream:
    """
    A stream of length ``n`` whose element ``i`` is ``func(i)``.

    ``n`` is normalized to a non-negative integer (rounded down).
    """
    _check_callable(func, 'func')
    n = max(0, math.floor(n))
    return from_range(0, n).map(func)


def replicate(n: int | float, value, /) -> Stream:
    return make_by(n, lambda _: value)
