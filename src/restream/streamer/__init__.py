"""
The module ``restream.streamer`` provides a lazy, restartable stream abstraction
over async (or sync) data sources, and operators on it.

A :class:`Stream` describes *how* to produce a sequence of elements; it does not hold
a live iteration. Each time it is iterated (``async for``, :meth:`~Stream.collect`,
:meth:`~Stream.execute`, ...), a fresh iteration starts from the source:

>>> import asyncio
>>> from restream.streamer import Stream
>>> s = Stream(range(10)).filter(lambda x: x % 2 == 0).map(lambda x: x * 10)
>>> asyncio.run(s.collect())
[0, 20, 40, 60, 80]
>>> asyncio.run(s.collect())
[0, 20, 40, 60, 80]

Operators return new ``Stream`` objects and never start pulling their input
before the returned stream is itself iterated.

Terminal operations are all folds through :meth:`Stream.execute`:

>>> asyncio.run(s.execute(lambda acc, x: acc + x, 0))
200

Unlimited streams are made with :func:`from_recurrence` (or :func:`from_range`,
:func:`unfold`) and cut with :meth:`~Stream.take`; generating a million elements
does not deepen the call stack:

>>> asyncio.run(from_recurrence(lambda x: x + 1, 0).take(5).collect())
[0, 1, 2, 3, 4]

:func:`broadcast` (or :func:`tee`) lets two consumers share one pass over a source
that can not, or should not, be iterated twice. The resulting streams are single-use.

:meth:`Stream.chunks_of` groups elements into fixed-size lists, and
:meth:`Stream.chop` is the general "consume a prefix, continue with the rest" loop.
"""

from .._common import ABSENT, StreamConsumedError, StreamError
from ._recurrence import from_range, from_recurrence, make_by, replicate, unfold
from ._streamer import (
    Stream,
    execute,
    from_awaitable,
    from_iterable,
    of,
    zero,
)
from ._tee import (
    BroadcastSession,
    broadcast,
    partition,
    partition_map,
    separate,
    span_left,
    split_at,
    tee,
    unzip,
)

__all__ = [
    'ABSENT',
    'BroadcastSession',
    'Stream',
    'StreamConsumedError',
    'StreamError',
    'broadcast',
    'execute',
    'from_awaitable',
    'from_iterable',
    'from_range',
    'from_recurrence',
    'make_by',
    'of',
    'partition',
    'partition_map',
    'replicate',
    'separate',
    'span_left',
    'split_at',
    'tee',
    'unfold',
    'unzip',
    'zero',
]
