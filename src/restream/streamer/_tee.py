from __future__ import annotations

import asyncio
import inspect
import logging
from collections import deque
from collections.abc import AsyncIterable, Callable
from typing import TypeVar

from .._common import ABSENT, StreamConsumedError, StreamError
from ._streamer import Stream, _aclose, _check_callable, zero

logger = logging.getLogger(__name__)

Elem = TypeVar('Elem')

_END = object()


class BroadcastSession:
    """
    One live iteration of ``instream`` shared by ``n`` single-use forks.

    Every fork yields all the elements of ``instream`` in order.
    A fork that is ahead of the others pulls ``instream`` directly and
    leaves a copy of each element in the pending queue of every other fork;
    a fork that is behind first works off its own queue.
    Hence the queue of a fork is exactly as long as the other forks are ahead of it
    (see :meth:`backlog`), and stays empty if the forks are consumed in lock-step.

    The underlying iteration is started by the first pull of any fork, not before.
    Pulls of the underlying iterator are serialized by an ``asyncio.Lock``,
    so the forks can be consumed by concurrent tasks.

    If ``instream`` raises an exception, the fork that triggered the pull gets it;
    every other fork gets the same exception after delivering the elements
    already queued for it.

    A fork that is closed early (its consumer stopped and the async generator
    was closed) is detached: nothing more is queued for it. So is a fork that
    is garbage-collected without ever being iterated.
    Once every fork has finished or detached, the underlying iterator is closed.
    Call :meth:`aclose` to tear the session down explicitly.
    """

    def __init__(self, instream, n: int = 2, /):
        if isinstance(n, bool) or not isinstance(n, int):
            raise TypeError(f"`n` must be an int; got {type(n).__name__}")
        if n < 1:
            raise ValueError(f"`n` must be at least 1; got {n}")
        self._instream = Stream(instream)
        self._n = n
        self._iterator = None
        self._lock = asyncio.Lock()
        self._queues = [deque() for _ in range(n)]
        self._opened = [False] * n
        self._retired = [False] * n
        self._exhausted = False
        self._error: BaseException | None = None
        self._closed = False
        self._forks_taken = False

    @property
    def forks(self) -> tuple[Stream, ...]:
        """
        The ``n`` fork streams. They are handed out only once; the session
        does not keep references to them, so that a fork that is dropped
        unopened can be detached.
        """
        if self._forks_taken:
            raise StreamConsumedError('the forks of this broadcast session have already been taken')
        self._forks_taken = True
        return tuple(Stream(Fork(self, i)) for i in range(self._n))

    def backlog(self, idx: int) -> int:
        """Number of elements waiting in the queue of fork ``idx``."""
        return len(self._queues[idx])

    @property
    def closed(self) -> bool:
        return self._closed

    def _open(self, idx: int):
        if self._opened[idx]:
            raise StreamConsumedError(f"broadcast fork {idx} has already been consumed")
        self._opened[idx] = True
        return self._iterate(idx)

    async def _iterate(self, idx: int):
        try:
            while True:
                x = await self._pull(idx)
                if x is _END:
                    return
                yield x
        finally:
            await self._retire(idx)

    async def _pull(self, idx: int):
        queue = self._queues[idx]
        if queue:
            return queue.popleft()
        async with self._lock:
            # While waiting on the lock, another fork may have
            # pulled elements for this one.
            if queue:
                return queue.popleft()
            if self._error is not None:
                raise self._error
            if self._exhausted:
                return _END
            if self._closed:
                raise StreamError('the broadcast session has been closed')
            if self._iterator is None:
                logger.debug('broadcast session %#x: starting source with %d forks', id(self), self._n)
                self._iterator = aiter(self._instream)
            try:
                x = await anext(self._iterator)
            except StopAsyncIteration:
                logger.debug('broadcast session %#x: source exhausted', id(self))
                self._exhausted = True
                return _END
            except Exception as e:
                logger.debug('broadcast session %#x: source failed with %r', id(self), e)
                self._error = e
                raise
            # Stage before releasing the lock.
            for i, q in enumerate(self._queues):
                if i != idx and not self._retired[i]:
                    q.append(x)
            return x

    def _drop(self, idx: int):
        if self._opened[idx] or self._retired[idx]:
            return
        self._retired[idx] = True
        self._queues[idx].clear()
        logger.debug('broadcast session %#x: fork %d dropped unopened', id(self), idx)

    async def _retire(self, idx: int):
        self._retired[idx] = True
        self._queues[idx].clear()
        if not (self._exhausted or self._error is not None):
            logger.debug('broadcast session %#x: fork %d detached', id(self), idx)
        if all(self._retired):
            await self.aclose()

    async def aclose(self):
        """
        Close the underlying iteration. Elements already queued for a fork
        are still delivered; after that, a fork raises :class:`~restream.StreamError`
        unless the source had been exhausted.
        """
        if self._closed:
            return
        async with self._lock:
            if self._closed:
                return
            self._closed = True
            it, self._iterator = self._iterator, None
            if it is not None:
                await _aclose(it)
        logger.debug('broadcast session %#x: closed', id(self))


class Fork(AsyncIterable):
    def __init__(self, session: BroadcastSession, idx: int):
        self._session = session
        self._idx = idx

    def __aiter__(self):
        return self._session._open(self._idx)

    def __del__(self):
        self._session._drop(self._idx)


def tee(instream, n: int = 2, /) -> tuple[Stream, ...]:
    """
    ``tee`` produces multiple (default 2) "copies" of the input data stream,
    to be used in different ways, while ``instream`` is iterated only once.

    Suppose we have a data stream, on which we want to apply two different lines of operations,
    and walking the data stream twice is expensive or impossible (say it reads
    from a socket). Then::

        stream_1, stream_2 = tee(data)
        s1 = stream_1.map(...).chunks_of(...)
        s2 = stream_2.filter(...).map(...)

    The forks are :class:`Stream` objects and can be given operators freely,
    but each can be iterated **only once**; a second iteration raises
    :class:`~restream.StreamConsumedError`.
    They can be consumed one after another, interleaved, or concurrently
    in different tasks::

        n, output = await asyncio.gather(s1.drain(), s2.collect())

    Elements pulled by a faster fork are held for the slower forks,
    hence memory use grows with how far apart the forks are.
    Consuming one fork completely before starting another holds the entire
    stream in memory.

    See :class:`BroadcastSession` for details.
    """
    return BroadcastSession(instream, n).forks


def broadcast(instream) -> tuple[Stream, Stream]:
    """
    Split ``instream`` into two single-use streams, ``left`` and ``right``,
    each yielding all the elements of ``instream``, which is iterated only once.

    Examples
    --------
    >>> import asyncio
    >>> left, right = broadcast([1, 2, 3])
    >>> async def main():
    ...     return await asyncio.gather(left.collect(), right.collect())
    >>> asyncio.run(main())
    [[1, 2, 3], [1, 2, 3]]
    """
    left, right = tee(instream, 2)
    return left, right


def span_left(instream, func: Callable[[Elem], bool], /) -> tuple[Stream, Stream]:
    """
    Split ``instream`` into

    1. the longest prefix whose elements all satisfy ``func``, and
    2. the remaining elements.

    Both returned streams are single-use.

    Examples
    --------
    >>> import asyncio
    >>> init, rest = span_left([1, 3, 2, 4, 5], lambda x: x % 2 == 1)
    >>> async def main():
    ...     return await init.collect(), await rest.collect()
    >>> asyncio.run(main())
    ([1, 3], [2, 4, 5])
    """
    _check_callable(func, 'func')
    left, right = broadcast(instream)
    return left.take_while(func), right.drop_while(func)


def split_at(instream, n: int, /) -> tuple[Stream, Stream]:
    """
    Split ``instream`` into its first ``n`` elements and the rest.
    Both returned streams are single-use.
    """
    if n <= 0:
        return zero(), Stream(instream)
    left, right = broadcast(instream)
    return left.take(n), right.drop(n)


def _first(pair):
    return pair[0]


def _second(pair):
    return pair[1]


def separate(instream) -> tuple[Stream, Stream]:
    """
    ``instream`` is a stream of pairs ``(left, right)`` in which (usually)
    exactly one member is :data:`~restream.streamer.ABSENT`.
    Return the stream of the present ``left`` members and the stream of the
    present ``right`` members. Both are single-use.
    """
    left, right = broadcast(instream)
    return left.filter_map(_first), right.filter_map(_second)


def partition_map(instream, func: Callable[[Elem], tuple], /) -> tuple[Stream, Stream]:
    """
    ``func`` maps an element to a pair ``(left, right)``, one of which
    is :data:`~restream.streamer.ABSENT`; the elements are routed to the
    two returned streams accordingly.

    Examples
    --------
    >>> import asyncio
    >>> def upper_if_str(x):
    ...     return (ABSENT, x.upper()) if isinstance(x, str) else (x, ABSENT)
    >>> others, strings = partition_map([-2, 'hello', 6, 7, 'world'], upper_if_str)
    >>> async def main():
    ...     return await others.collect(), await strings.collect()
    >>> asyncio.run(main())
    ([-2, 6, 7], ['HELLO', 'WORLD'])
    """
    _check_callable(func, 'func')
    return separate(Stream(instream).map(func))


def partition(instream, func: Callable[[Elem], bool], /) -> tuple[Stream, Stream]:
    """
    Split ``instream`` into the elements for which ``func`` (sync or async) is false
    and the elements for which it is true, in this order. Both are single-use.
    """
    _check_callable(func, 'func')
    left, right = broadcast(instream)
    return left.filter(_negate(func)), right.filter(func)


def _negate(func):
    if inspect.iscoroutinefunction(func):

        async def f(x):
            return not await func(x)

    else:

        def f(x):
            return not func(x)

    return f


def unzip(instream) -> tuple[Stream, Stream]:
    """
    Turn a stream of pairs into the stream of the first members
    and the stream of the second members. Both are single-use.
    """
    left, right = broadcast(instream)
    return left.map(_first), right.map(_second)
