"""
The "chop" loop.

``step`` gets the unconsumed part of the stream and returns a value together
with the part it did not consume. That remainder is nearly always derived
from the one ``step`` was given, through ``split_at``, ``span_left``,
``broadcast``, ``drop`` or ``drop_while``. Taken literally, each step would
then wrap the live iterator in a few more generators, and after some hundred
steps a single pull would exceed the recursion limit.

Instead, ``Chopper`` owns one live iterator with a push-back buffer (a ``Cursor``).
After each step it inspects the returned remainder. If the remainder is

    (elements already pulled off the cursor) + (the rest of the cursor),

followed by nothing but prefix-dropping operators, the pulled elements are
pushed back, the dropping is done in place, and the broadcast sessions involved
are closed. The next step starts from the same flat cursor.
A remainder of any other shape is iterated as given, one level deeper.
"""

from __future__ import annotations

import inspect
import logging
from collections import deque
from collections.abc import AsyncIterable, AsyncIterator, Callable
from typing import Any, Optional

from .._common import StreamConsumedError
from ._streamer import Dropper, PrefixDropper, Stream, _aclose
from ._tee import BroadcastSession, Fork

logger = logging.getLogger(__name__)

_SKIPPERS = (Dropper, PrefixDropper)


class Cursor:
    """A live iterator with a push-back buffer in front of it."""

    def __init__(self, iterator: AsyncIterator, /):
        self.iterator = iterator
        self.buffer = deque()

    async def pull(self):
        if self.buffer:
            return self.buffer.popleft()
        return await anext(self.iterator)

    async def skip(self, op: Dropper | PrefixDropper):
        # Does what the streamlet `op` would do to the head of the cursor.
        if isinstance(op, Dropper):
            for _ in range(op.n):
                await self.pull()
            return
        func = op.func
        while True:
            x = await self.pull()
            z = func(x)
            if inspect.isawaitable(z):
                z = await z
            if not z:
                self.buffer.appendleft(x)
                return


class Remainder(AsyncIterable):
    """
    The single-use stream that ``step`` receives: the rest of a ``Cursor``.
    """

    def __init__(self, cursor: Cursor, /):
        self._cursor = cursor
        self.opened = False

    def __aiter__(self):
        if self.opened:
            raise StreamConsumedError('the remainder stream has already been consumed')
        self.opened = True
        return self._run()

    async def _run(self):
        cursor = self._cursor
        while True:
            try:
                x = await cursor.pull()
            except StopAsyncIteration:
                return
            yield x


def _unwind_chain(streamlets: list, remainder: Remainder, sessions: list) -> Optional[tuple[list, list]]:
    """
    If a fresh iteration of ``streamlets`` would yield the same as applying
    some prefix-dropping streamlets to "some pending elements, then whatever
    ``remainder`` has not yet pulled off its cursor", return
    ``(pending, skippers)``; otherwise return ``None``.
    """
    base, *ops = streamlets
    if not all(isinstance(op, _SKIPPERS) for op in ops):
        return None
    if base is remainder:
        if remainder.opened:
            return None
        return [], ops
    if isinstance(base, Fork):
        session, idx = base._session, base._idx
        if session._opened[idx]:
            return None
        z = _unwind_fork(session, idx, remainder, sessions)
        if z is None:
            return None
        pending, skippers = z
        return pending, skippers + ops
    return None


def _unwind_fork(
    session: BroadcastSession, idx: int, remainder: Remainder, sessions: list
) -> Optional[tuple[list, list]]:
    # Like `_unwind_chain`, for what fork `idx` has yet to yield.
    if session._error is not None:
        return None
    if not all(r for i, r in enumerate(session._retired) if i != idx):
        # Another fork may still need the elements.
        return None
    chain = session._instream.streamlets
    if session._iterator is None and not session._exhausted:
        if session._closed:
            return None
        z = _unwind_chain(chain, remainder, sessions)
        if z is not None:
            sessions.append(session)
        return z

    # The source of the session is live, or finished. Its streamlets must not
    # carry per-iteration state, hence only a bare base is accepted.
    if session._closed and not session._exhausted:
        return None
    if len(chain) != 1:
        return None
    pending = list(session._queues[idx])
    base = chain[0]
    if base is remainder:
        sessions.append(session)
        return pending, []
    if isinstance(base, Fork):
        z = _unwind_fork(base._session, base._idx, remainder, sessions)
        if z is None or z[1]:
            return None
        sessions.append(session)
        return pending + z[0], []
    return None


class Chopper(AsyncIterable):
    def __init__(self, instream: AsyncIterable, /, step: Callable[[Stream], Any]):
        self._instream = instream
        self._step = step

    async def __aiter__(self):
        step = self._step
        cursor = Cursor(aiter(self._instream))
        cursors = [cursor]
        skippers = []
        try:
            while True:
                # Peek one element; an empty remainder ends the loop.
                try:
                    for op in skippers:
                        await cursor.skip(op)
                    x = await cursor.pull()
                except StopAsyncIteration:
                    return
                cursor.buffer.appendleft(x)

                remainder = Remainder(cursor)
                z = step(Stream(remainder))
                if inspect.isawaitable(z):
                    z = await z
                if not isinstance(z, tuple) or len(z) != 2:
                    raise TypeError(
                        f"`step` must return a pair (value, rest); got {type(z).__name__}"
                    )
                value, rest = z
                rest = Stream(rest)

                sessions = []
                unwound = _unwind_chain(rest.streamlets, remainder, sessions)
                if unwound is None:
                    # `rest` may still read from `cursor`; it is kept open.
                    cursor = Cursor(aiter(rest))
                    cursors.append(cursor)
                    skippers = []
                    logger.debug('chop: nesting remainder, depth %d', len(cursors))
                else:
                    pending, skippers = unwound
                    remainder.opened = True
                    for session in reversed(sessions):
                        await session.aclose()
                    cursor.buffer.extendleft(reversed(pending))
                yield value
        finally:
            for c in reversed(cursors):
                await _aclose(c.iterator)
