# Iterable vs iterator, async flavor
#
# A ``Stream`` is an async *iterable*: every ``aiter(stream)`` call
# produces a brand new async *iterator* (an "iteration process").
# Each streamlet below implements ``__aiter__`` as an async generator
# function, hence calling it twice gives two independent runs.
#
# The live iterator is owned by whoever called ``aiter``; nothing
# in a ``Stream`` object itself tracks progress.

from __future__ import annotations

import functools
import inspect
import logging
from collections.abc import (
    AsyncIterable,
    AsyncIterator,
    Awaitable,
    Callable,
    Iterable,
)
from random import random
from typing import (
    Any,
    Optional,
    TypeVar,
)

import asyncstdlib
from typing_extensions import Self  # In 3.11, import this from `typing`

from .._common import ABSENT

logger = logging.getLogger(__name__)


T = TypeVar('T')  # indicates input data element
TT = TypeVar('TT')  # indicates output after an op on `T`
Elem = TypeVar('Elem')
Acc = TypeVar('Acc')


def _identity(x):
    return x


def _append(acc, x):
    acc.append(x)
    return acc


def _count(n, _):
    return n + 1


def _keep_last(_, x):
    return x


def _is_nonempty(acc, _):
    return False


async def _aclose(iterator):
    # Async generators have ``aclose``; plain async iterators may not.
    aclose = getattr(iterator, 'aclose', None)
    if aclose is not None:
        await aclose()


def _check_callable(func, name):
    if not callable(func):
        raise TypeError(f"`{name}` must be callable; got {type(func).__name__}")


class Stream(AsyncIterable[Elem]):
    """
    The class ``Stream`` is the "entry-point" for the "streamer" utilities.

    A ``Stream`` is a lazy, restartable description of an async sequence.
    Nothing runs until the stream is iterated, and every iteration
    (``async for``, :meth:`collect`, :meth:`execute`, ...) starts from scratch::

        s = Stream(range(10)).map(double).filter(is_even).chunks_of(3)
        await s.collect()
        await s.collect()  # same result again

    The methods never modify the object; each operator returns a new ``Stream``
    that extends the chain of "streamlets" of the original, so one stream can
    feed several derived streams::

        base = Stream(data)
        evens = base.filter(is_even)
        firsts = base.take(3)
    """

    def __init__(self, instream, /):
        """
        Parameters
        ----------
        instream
            The source of elements, possibly unlimited. One of

            - another ``Stream``, which is used as is;
            - an `AsyncIterable`_;
            - an `Iterable`_, such as a list or a range;
            - a zero-argument callable (e.g. an async generator function) that
              returns an async iterable or an iterable. It is called once per
              iteration of the stream.

            The stream can be iterated repeatedly as long as ``instream`` can.
            A one-shot iterator (e.g. a generator object) gives a stream that
            is exhausted after the first iteration.
        """
        if isinstance(instream, Stream):
            self.streamlets: list[AsyncIterable] = list(instream.streamlets)
        elif isinstance(instream, AsyncIterable):
            self.streamlets = [instream]
        elif isinstance(instream, Iterable):
            self.streamlets = [IterableSource(instream)]
        elif callable(instream):
            self.streamlets = [FactorySource(instream)]
        else:
            raise TypeError(
                f"can not make a Stream out of an object of type {type(instream).__name__}"
            )

    def __aiter__(self) -> AsyncIterator[Elem]:
        return self.streamlets[-1].__aiter__()

    def _extend(self, streamlet: AsyncIterable) -> Stream:
        s = Stream.__new__(Stream)
        s.streamlets = [*self.streamlets, streamlet]
        return s

    # Terminal operations. Most of them are a fold via `execute`.

    async def execute(
        self,
        combine: Callable[[Acc, Elem], Acc] | Callable[[Acc, Elem], Awaitable[Acc]],
        seed: Acc,
    ) -> Acc:
        """
        Pull every element of one fresh iteration of the stream and
        left-fold them into an accumulator.

        ``combine(acc, x)`` is called exactly once per element, in order,
        starting with ``acc = seed``; its return value is the new accumulator.
        It can be a sync or async function.

        If the stream never ends, this never returns.

        Examples
        --------
        >>> import asyncio
        >>> asyncio.run(Stream(range(5)).execute(lambda acc, x: acc + x, 100))
        110
        """
        acc = seed
        if inspect.iscoroutinefunction(combine):
            async for x in self:
                acc = await combine(acc, x)
        else:
            async for x in self:
                acc = combine(acc, x)
        return acc

    async def collect(self) -> list[Elem]:
        """
        Return all the elements in a list.

        .. warning:: Do not call this method on "big data".
        """
        return await self.execute(_append, [])

    async def drain(self) -> int:
        """
        Drain off the stream and return the number of elements processed.

        This method is for the side effect of the operators in the stream.
        """
        return await self.execute(_count, 0)

    async def length(self) -> int:
        return await self.execute(_count, 0)

    async def is_empty(self) -> bool:
        # At most one element is pulled.
        return await self.take(1).execute(_is_nonempty, True)

    async def last(self, default=None):
        """
        Return the last element, or ``default`` if the stream is empty.
        The entire stream is consumed.
        """
        return await self.execute(_keep_last, default)

    async def first(self, default=None):
        return await self.take(1).last(default)

    async def nth(self, idx: int, default=None):
        """
        Return the element at the 0-based position ``idx``,
        or ``default`` if the stream is shorter than that.
        """
        if idx < 0:
            raise ValueError(f"`idx` must be non-negative; got {idx}")
        return await self.drop(idx).first(default)

    async def find_first(self, func: Callable[[T], bool], /, default=None):
        return await self.filter(func).first(default)

    async def find_index(self, func: Callable[[T], bool], /) -> int:
        """
        Return the position of the first element for which ``func``
        (sync or async) is true, or -1 if there is none.
        """
        idx = 0
        it = aiter(self)
        try:
            async for x in it:
                z = func(x)
                if inspect.isawaitable(z):
                    z = await z
                if z:
                    return idx
                idx += 1
        finally:
            await _aclose(it)
        return -1

    async def contains(self, value) -> bool:
        return await self.find_index(lambda x: x == value) >= 0

    async def find_last(self, func: Callable[[T], bool], /, default=None):
        """
        Return the last element for which ``func`` is true, or ``default``.
        The entire stream is consumed.
        """
        return await self.filter(func).last(default)

    async def find_last_index(self, func: Callable[[T], bool], /) -> int:
        idx = -1
        async for i, x in asyncstdlib.enumerate(self):
            z = func(x)
            if inspect.isawaitable(z):
                z = await z
            if z:
                idx = i
        return idx

    # Operators. Each returns a new `Stream`.

    def map(self, func: Callable[[T], Any], /, **kwargs) -> Self:
        """
        Perform a simple transformation on each data element.

        This is a 1-to-1 transform from the input stream to the output stream.

        Parameters
        ----------
        func
            A sync or async function that takes a data element and returns a new value.
        *kwargs
            Additional keyword arguments to ``func``, after the first argument, which
            is the data element.
        """
        _check_callable(func, 'func')
        return self._extend(Mapper(self.streamlets[-1], func, **kwargs))

    def map_with_index(self, func: Callable[[int, T], Any], /) -> Self:
        """
        Like :meth:`map`, but ``func`` takes the 0-based index and the element.
        """
        _check_callable(func, 'func')
        return self._extend(IndexedMapper(self.streamlets[-1], func))

    def filter(self, func: Callable[[T], bool], /, **kwargs) -> Self:
        """
        Keep the elements for which ``func`` (sync or async) returns true.
        """
        _check_callable(func, 'func')
        return self._extend(Filter(self.streamlets[-1], func, **kwargs))

    def filter_map(self, func: Callable[[T], Any], /) -> Self:
        """
        Map each element by ``func`` (sync or async), dropping the results that are
        :data:`~restream.streamer.ABSENT`.
        """
        _check_callable(func, 'func')
        return self._extend(FilterMapper(self.streamlets[-1], func))

    def take(self, n: int) -> Self:
        """
        Take the first ``n`` elements and ignore the rest.
        If the entire stream has less than ``n`` elements, just take all of them.

        A non-positive ``n`` gives an empty stream.
        Exactly ``n`` elements are pulled from upstream, no look-ahead.
        """
        return self._extend(Header(self.streamlets[-1], n))

    def take_while(self, func: Callable[[T], bool], /) -> Self:
        """
        Take the longest prefix whose elements all satisfy ``func`` (sync or async).
        """
        _check_callable(func, 'func')
        return self._extend(PrefixTaker(self.streamlets[-1], func))

    def drop(self, n: int) -> Self:
        """
        Skip the first ``n`` elements. A non-positive ``n`` skips nothing.
        """
        return self._extend(Dropper(self.streamlets[-1], n))

    def drop_while(self, func: Callable[[T], bool], /) -> Self:
        _check_callable(func, 'func')
        return self._extend(PrefixDropper(self.streamlets[-1], func))

    def init(self) -> Self:
        """
        All but the last element.
        """
        return self._extend(Initer(self.streamlets[-1]))

    def uniq(self, key: Optional[Callable[[T], Any]] = None) -> Self:
        """
        Drop elements whose key (the element itself by default) equals that of
        an earlier element.

        .. note:: The keys seen so far are kept in a list and compared by ``==``,
            so they do not need to be hashable, but the cost is quadratic.
        """
        return self._extend(Uniquer(self.streamlets[-1], key or _identity))

    def prepend(self, value) -> Self:
        return self._extend(Prepender(self.streamlets[-1], value))

    def append(self, value) -> Self:
        return self._extend(Appender(self.streamlets[-1], value))

    def concat(self, *others) -> Self:
        """
        This stream followed by each of ``others`` (anything :class:`Stream` accepts).
        """
        return self._extend(Concatenator(self.streamlets[-1], [Stream(o) for o in others]))

    def flat_map(self, func: Callable[[T], Any], /) -> Self:
        """
        ``func`` (sync or async) turns each element into a stream
        (anything :class:`Stream` accepts); the results are concatenated.
        """
        _check_callable(func, 'func')
        return self._extend(FlatMapper(self.streamlets[-1], func))

    def flatten(self) -> Self:
        """
        Turn a stream of streams (or lists, or any iterables) into a stream
        of individual elements.
        """
        return self._extend(FlatMapper(self.streamlets[-1], Stream))

    def zip(self, other) -> Self:
        """
        Pair up elements of this stream and ``other`` positionally,
        stopping at the end of the shorter one.
        """
        return self._extend(Zipper(self.streamlets[-1], Stream(other)))

    def intersperse(self, separator) -> Self:
        return self._extend(Interspersor(self.streamlets[-1], separator))

    def zip_with(self, other, func: Callable[[T, Any], Any], /) -> Self:
        """
        ``func(x, y)`` for pairs of elements of this stream and ``other``
        at the same position, stopping at the end of the shorter one.
        """
        _check_callable(func, 'func')
        return self.zip(other).map(lambda p: func(*p))

    def rotate(self, n: int) -> Self:
        """
        Move the first ``n`` elements to the end.
        These ``n`` elements are held in memory until the input is exhausted.
        If the stream has no more than ``n`` elements, it is unchanged.

        Examples
        --------
        >>> import asyncio
        >>> asyncio.run(Stream([1, 2, 3, 4, 5]).rotate(2).collect())
        [3, 4, 5, 1, 2]
        """
        return self._extend(Rotator(self.streamlets[-1], n))

    def insert_at(self, idx: int, value) -> Self:
        """
        Insert ``value`` so that it becomes the element at position ``idx``.
        If the stream is shorter than ``idx``, nothing is inserted.
        """
        if idx < 0:
            raise ValueError(f"`idx` must be non-negative; got {idx}")
        return self._extend(Inserter(self.streamlets[-1], idx, value))

    def modify_at(self, idx: int, func: Callable[[T], Any], /) -> Self:
        """
        Replace the element ``x`` at position ``idx`` by ``func(x)``.
        If the stream is shorter than that, it is unchanged.
        """
        if idx < 0:
            raise ValueError(f"`idx` must be non-negative; got {idx}")
        _check_callable(func, 'func')
        return self._extend(Modifier(self.streamlets[-1], idx, func))

    def update_at(self, idx: int, value) -> Self:
        return self.modify_at(idx, lambda _: value)

    def accumulate(
        self, func: Callable[[Any, T], Any], initializer: Any = ABSENT, **kwargs
    ) -> Self:
        """
        This method is like "cumulative sum", but the operation is specified by ``func``, hence
        does not need to be "sum". If the last element in the output stream is ``x``
        and the upcoming element in the input stream is ``y``, then the next element in the output
        stream is

        ::

            func(x, y, **kwargs)

        If ``initializer`` is not provided, then the first element is output as is, and "accumulation" begins
        with the second element. If ``initializer`` is provided (any user-provided value, including ``None``),
        then the first element of the output stream is ``func(initializer, x0, **kwargs)``.

        .. note:: Unlike :meth:`execute`, this returns a value for each element in the stream.

        Examples
        --------
        >>> import asyncio
        >>> asyncio.run(Stream(range(7)).accumulate(lambda x, y: x + y, 3).collect())
        [3, 4, 6, 9, 13, 18, 24]
        """
        _check_callable(func, 'func')
        return self._extend(Accumulator(self.streamlets[-1], func, initializer, **kwargs))

    def peek(
        self,
        *,
        print_func: Optional[Callable[[str], None]] = None,
        interval: int | float = 1,
        prefix: str = '',
        suffix: str = '',
    ) -> Self:
        """Take a peek at the data element *before* it continues in the stream.

        Parameters
        ----------
        print_func
            A function that will be used to print messages.
            This should take a str and return nothing.

            The default is the built-in ``print``. It's often useful
            to pass in logging function such as ``logger.info``.
        interval
            Print out the data element at this interval. The default is 1,
            that is, print every element.

            If it is a float, then it must be between 0 and 1 open-open.
            This will be take as the (target) fraction of elements that are printed.
        """
        if isinstance(interval, float):
            if not 0 < interval < 1:
                raise ValueError(f"a float `interval` must be in (0, 1); got {interval}")
        elif not isinstance(interval, int) or interval < 1:
            raise ValueError(f"`interval` must be a positive int or a float in (0, 1); got {interval!r}")
        if prefix:
            if not prefix.endswith(' ') and not prefix.endswith('\n'):
                prefix = prefix + ' '
        if suffix:
            if not suffix.startswith(' ') and not suffix.startswith('\n'):
                suffix = ' ' + suffix
        return self._extend(
            Peeker(
                self.streamlets[-1],
                print_func=print if print_func is None else print_func,
                interval=interval,
                prefix=prefix,
                suffix=suffix,
            )
        )

    def chunks_of(self, size: int) -> Self:
        """
        Split the stream into lists of length ``size``.
        The last list is shorter if ``size`` does not evenly divide the length
        of the stream.

        An empty stream gives no chunk at all (not one empty chunk). Consequently,
        if ``size`` divides ``len(xs)``, chunking ``xs`` then ``ys`` gives the same
        lists as chunking ``xs`` followed by ``ys``.

        Examples
        --------
        >>> import asyncio
        >>> asyncio.run(Stream([1, 2, 3, 4, 5]).chunks_of(2).collect())
        [[1, 2], [3, 4], [5]]
        """
        if isinstance(size, bool) or not isinstance(size, int):
            raise TypeError(f"`size` must be an int; got {type(size).__name__}")
        if size <= 0:
            raise ValueError(f"`size` must be positive; got {size}")
        return self._extend(Chunker(self.streamlets[-1], size))

    def chop(self, step: Callable[[Stream[T]], Any], /) -> Stream:
        """
        Repeatedly consume a prefix of the stream to produce one output element,
        continuing with the remainder, until the remainder is empty.

        ``step`` (sync or async) receives a single-use ``Stream`` of everything
        not yet consumed, which is known to be non-empty. It returns a pair
        ``(value, rest)``, where ``rest`` is the strict remainder, typically
        obtained via :meth:`split_at`, :meth:`span_left`, :meth:`broadcast`,
        :meth:`drop` or :meth:`drop_while`, so that the consumed prefix is not
        read twice. A remainder obtained this way costs nothing extra per step,
        hence ``chop`` can run for any number of steps.

        Examples
        --------
        >>> import asyncio
        >>> async def pairs(s):
        ...     head, rest = s.split_at(2)
        ...     return await head.collect(), rest
        >>> asyncio.run(Stream(range(5)).chop(pairs).collect())
        [[0, 1], [2, 3], [4]]
        """
        from ._chop import Chopper

        _check_callable(step, 'step')
        return self._extend(Chopper(self.streamlets[-1], step))

    def groupby(self, key: Optional[Callable[[T], Any]] = None, /) -> Self:
        """
        **Consecutive** elements that have the same ``key`` value
        (the element itself by default) are grouped into a list.

        .. note:: A group is kept in memory until it is concluded (i.e. the next element
            starts a new group).

        Examples
        --------
        >>> import asyncio
        >>> data = ['atlas', 'apple', 'bee', 'block', 'away']
        >>> asyncio.run(Stream(data).groupby(lambda x: x[0]).collect())
        [['atlas', 'apple'], ['bee', 'block'], ['away']]
        """
        return self._extend(Grouper(self.streamlets[-1], key or _identity))

    def broadcast(self) -> tuple[Stream, Stream]:
        """
        Split the stream into two single-use streams that share one
        iteration of this stream. See :func:`~restream.streamer.broadcast`.
        """
        from ._tee import broadcast

        return broadcast(self)

    def tee(self, n: int = 2) -> tuple[Stream, ...]:
        from ._tee import tee

        return tee(self, n)

    def span_left(self, func: Callable[[T], bool], /) -> tuple[Stream, Stream]:
        """
        Split into the longest prefix whose elements satisfy ``func``
        and the remaining elements. Both are single-use.
        """
        from ._tee import span_left

        return span_left(self, func)

    def split_at(self, n: int) -> tuple[Stream, Stream]:
        """
        Split into the first ``n`` elements and the remaining elements.
        Both are single-use.
        """
        from ._tee import split_at

        return split_at(self, n)

    def partition(self, func: Callable[[T], bool], /) -> tuple[Stream, Stream]:
        """
        Split into the elements for which ``func`` is false and those
        for which it is true. Both are single-use.
        See :func:`~restream.streamer.partition`.
        """
        from ._tee import partition

        return partition(self, func)

    def partition_map(self, func: Callable[[T], tuple], /) -> tuple[Stream, Stream]:
        from ._tee import partition_map

        return partition_map(self, func)

    def separate(self) -> tuple[Stream, Stream]:
        from ._tee import separate

        return separate(self)

    def unzip(self) -> tuple[Stream, Stream]:
        """
        Turn a stream of pairs into a stream of the first members and
        a stream of the second members. Both are single-use.
        """
        from ._tee import unzip

        return unzip(self)


async def execute(instream, combine, seed):
    """
    Functional form of :meth:`Stream.execute`; ``instream`` is anything
    :class:`Stream` accepts.
    """
    return await Stream(instream).execute(combine, seed)


def of(value) -> Stream:
    """A stream of the single element ``value``."""
    return Stream((value,))


def zero() -> Stream:
    """An empty stream."""
    return Stream(())


def from_iterable(data: Iterable | AsyncIterable) -> Stream:
    return Stream(data)


def from_awaitable(func: Callable[[], Any]) -> Stream:
    """
    A stream of one element: the result of calling ``func``.

    ``func`` takes no argument and is sync or async; it is called (and awaited)
    once per iteration of the stream. Pass the function, not a coroutine object,
    because a coroutine can be awaited only once.
    """
    if inspect.iscoroutine(func) or inspect.isawaitable(func):
        raise TypeError(
            "pass a zero-argument function that returns the awaitable, not the awaitable itself"
        )
    _check_callable(func, 'func')
    return Stream(AwaitableSource(func))


# Sources


class IterableSource(AsyncIterable):
    def __init__(self, instream: Iterable, /):
        self._instream = instream

    async def __aiter__(self):
        for x in self._instream:
            yield x


class FactorySource(AsyncIterable):
    def __init__(self, func: Callable[[], Any], /):
        self._func = func

    async def __aiter__(self):
        source = self._func()
        if inspect.isawaitable(source):
            source = await source
        if isinstance(source, AsyncIterable):
            # The source was created here, hence is closed here.
            it = aiter(source)
            try:
                async for x in it:
                    yield x
            finally:
                await _aclose(it)
        else:
            for x in source:
                yield x


class AwaitableSource(AsyncIterable):
    def __init__(self, func: Callable[[], Any], /):
        self._func = func

    async def __aiter__(self):
        z = self._func()
        if inspect.isawaitable(z):
            z = await z
        yield z


# Operators


class Mapper(AsyncIterable):
    def __init__(
        self,
        instream: AsyncIterable,
        func: Callable[[T], Any] | Callable[[T], Awaitable[Any]],
        **kwargs,
    ):
        self._instream = instream
        self._is_async = inspect.iscoroutinefunction(func)
        self.func = functools.partial(func, **kwargs) if kwargs else func

    async def __aiter__(self):
        func = self.func
        if self._is_async:
            async for v in self._instream:
                yield await func(v)
        else:
            async for v in self._instream:
                yield func(v)


class IndexedMapper(AsyncIterable):
    def __init__(self, instream: AsyncIterable, func: Callable[[int, T], Any]):
        self._instream = instream
        self._is_async = inspect.iscoroutinefunction(func)
        self.func = func

    async def __aiter__(self):
        func = self.func
        if self._is_async:
            async for i, v in asyncstdlib.enumerate(self._instream):
                yield await func(i, v)
        else:
            async for i, v in asyncstdlib.enumerate(self._instream):
                yield func(i, v)

class Filter(AsyncIterable):
    def __init__(
        self,
        instream: AsyncIterable,
        func: Callable[[T], bool] | Callable[[T], Awaitable[bool]],
        **kwargs,
    ):
        self._instream = instream
        self._is_async = inspect.iscoroutinefunction(func)
        self.func = functools.partial(func, **kwargs) if kwargs else func

    async def __aiter__(self):
        func = self.func
        if self._is_async:
            async for v in self._instream:
                if await func(v):
                    yield v
        else:
            async for v in self._instream:
                if func(v):
                    yield v


class FilterMapper(AsyncIterable):
    def __init__(self, instream: AsyncIterable, func: Callable[[T], Any]):
        self._instream = instream
        self._is_async = inspect.iscoroutinefunction(func)
        self.func = func

    async def __aiter__(self):
        func = self.func
        is_async = self._is_async
        async for v in self._instream:
            z = func(v)
            if is_async:
                z = await z
            if z is not ABSENT:
                yield z

class Header(AsyncIterable):
    def __init__(self, instream: AsyncIterable, /, n: int):
        """
        Keeps the first ``n`` elements and ignores all the rest.
        """
        self._instream = instream
        self.n = n

    async def __aiter__(self):
        nn = self.n
        if nn <= 0:
            return
        n = 0
        it = aiter(self._instream)
        try:
            async for v in it:
                yield v
                n += 1
                if n >= nn:
                    break
        finally:
            await _aclose(it)


class PrefixTaker(AsyncIterable):
    def __init__(self, instream: AsyncIterable, /, func: Callable[[T], bool]):
        self._instream = instream
        self._is_async = inspect.iscoroutinefunction(func)
        self.func = func

    async def __aiter__(self):
        func = self.func
        is_async = self._is_async
        it = aiter(self._instream)
        try:
            async for v in it:
                z = func(v)
                if is_async:
                    z = await z
                if not z:
                    break
                yield v
        finally:
            await _aclose(it)

class Dropper(AsyncIterable):
    def __init__(self, instream: AsyncIterable, /, n: int):
        self._instream = instream
        self.n = n

    async def __aiter__(self):
        nn = self.n
        n = 0
        async for v in self._instream:
            if n >= nn:
                yield v
            else:
                n += 1


class PrefixDropper(AsyncIterable):
    def __init__(self, instream: AsyncIterable, /, func: Callable[[T], bool]):
        self._instream = instream
        self._is_async = inspect.iscoroutinefunction(func)
        self.func = func

    async def __aiter__(self):
        func = self.func
        is_async = self._is_async
        dropping = True
        async for v in self._instream:
            if dropping:
                z = func(v)
                if is_async:
                    z = await z
                if z:
                    continue
                dropping = False
            yield v

class Initer(AsyncIterable):
    def __init__(self, instream: AsyncIterable, /):
        self._instream = instream

    async def __aiter__(self):
        prev = ABSENT
        async for v in self._instream:
            if prev is not ABSENT:
                yield prev
            prev = v


class Uniquer(AsyncIterable):
    def __init__(self, instream: AsyncIterable, /, key: Callable[[T], Any]):
        self._instream = instream
        self._is_async = inspect.iscoroutinefunction(key)
        self.key = key

    async def __aiter__(self):
        key = self.key
        is_async = self._is_async
        seen = []
        async for v in self._instream:
            k = key(v)
            if is_async:
                k = await k
            if k not in seen:
                seen.append(k)
                yield v

class Prepender(AsyncIterable):
    def __init__(self, instream: AsyncIterable, /, value):
        self._instream = instream
        self.value = value

    async def __aiter__(self):
        yield self.value
        async for v in self._instream:
            yield v


class Appender(AsyncIterable):
    def __init__(self, instream: AsyncIterable, /, value):
        self._instream = instream
        self.value = value

    async def __aiter__(self):
        async for v in self._instream:
            yield v
        yield self.value


class Concatenator(AsyncIterable):
    def __init__(self, instream: AsyncIterable, /, others: list[Stream]):
        self._instream = instream
        self._others = others

    async def __aiter__(self):
        async for v in self._instream:
            yield v
        for other in self._others:
            async for v in other:
                yield v


class FlatMapper(AsyncIterable):
    def __init__(self, instream: AsyncIterable, /, func: Callable[[T], Any]):
        self._instream = instream
        self._is_async = inspect.iscoroutinefunction(func)
        self.func = func

    async def __aiter__(self):
        func = self.func
        async for v in self._instream:
            z = func(v)
            if self._is_async:
                z = await z
            async for y in Stream(z):
                yield y


class Zipper(AsyncIterable):
    def __init__(self, instream: AsyncIterable, /, other: Stream):
        self._instream = instream
        self._other = other

    async def __aiter__(self):
        async for pair in asyncstdlib.zip(self._instream, self._other):
            yield pair


class Interspersor(AsyncIterable):
    def __init__(self, instream: AsyncIterable, /, separator):
        self._instream = instream
        self.separator = separator

    async def __aiter__(self):
        sep = self.separator
        started = False
        async for v in self._instream:
            if started:
                yield sep
            started = True
            yield v


class Accumulator(AsyncIterable):
    def __init__(self, instream: AsyncIterable, /, func, initializer, **kwargs):
        self._instream = instream
        self._func = functools.partial(func, **kwargs) if kwargs else func
        self._initializer = initializer

    async def __aiter__(self):
        # State lives in the iteration, not the object, so that
        # the stream can be iterated again from scratch.
        func = self._func
        z = self._initializer
        async for x in self._instream:
            if z is ABSENT:
                z = x
            else:
                z = func(z, x)
            yield z


class Peeker(AsyncIterable):
    def __init__(
        self,
        instream: AsyncIterable,
        /,
        *,
        print_func: Callable[[str], None],
        interval: int | float,
        prefix: str,
        suffix: str,
    ):
        self._instream = instream
        self._print_func = print_func
        self._interval = interval
        self._prefix = prefix
        self._suffix = suffix

    async def __aiter__(self):
        print_func = self._print_func
        interval = self._interval
        idx = 0
        async for x in self._instream:
            idx += 1
            if interval >= 1:
                should_print = idx % interval == 0
            else:
                should_print = random() < interval
            if should_print:
                print_func(f"{self._prefix}#{idx}:")
                print_func(f"{x}{self._suffix}")
            yield x


class Chunker(AsyncIterable):
    def __init__(self, instream: AsyncIterable, /, size: int):
        self._instream = instream
        self._size = size

    async def __aiter__(self):
        size = self._size
        chunk = []
        async for x in self._instream:
            chunk.append(x)
            if len(chunk) == size:
                yield chunk
                chunk = []
        if chunk:
            yield chunk


class Grouper(AsyncIterable):
    def __init__(self, instream: AsyncIterable, /, key: Callable[[T], Any]):
        self._instream = instream
        self._is_async = inspect.iscoroutinefunction(key)
        self.key = key

    async def __aiter__(self):
        _z = object()
        group = None
        key = self.key
        is_async = self._is_async
        async for x in self._instream:
            z = key(x)
            if is_async:
                z = await z
            if z == _z:
                group.append(x)
            else:
                if group is not None:
                    yield group
                group = [x]
                _z = z
        if group:
            yield group


class Rotator(AsyncIterable):
    def __init__(self, instream: AsyncIterable, /, n: int):
        self._instream = instream
        self.n = n

    async def __aiter__(self):
        n = self.n
        head = []
        async for v in self._instream:
            if len(head) < n:
                head.append(v)
            else:
                yield v
        for v in head:
            yield v


class Inserter(AsyncIterable):
    def __init__(self, instream: AsyncIterable, /, idx: int, value):
        self._instream = instream
        self.idx = idx
        self.value = value

    async def __aiter__(self):
        idx = self.idx
        if idx == 0:
            yield self.value
        n = 0
        async for v in self._instream:
            yield v
            n += 1
            if n == idx:
                yield self.value


class Modifier(AsyncIterable):
    def __init__(self, instream: AsyncIterable, /, idx: int, func: Callable[[T], Any]):
        self._instream = instream
        self.idx = idx
        self.func = func

    async def __aiter__(self):
        idx = self.idx
        func = self.func
        async for i, v in asyncstdlib.enumerate(self._instream):
            if i == idx:
                z = func(v)
                if inspect.isawaitable(z):
                    z = await z
                yield z
            else:
                yield v
