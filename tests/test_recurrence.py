import asyncio
import functools

import pytest

from restream.streamer import (
    ABSENT,
    from_range,
    from_recurrence,
    make_by,
    replicate,
    unfold,
)


class CountingStep:
    def __init__(self, func):
        self.func = func
        self.calls = 0

    def __call__(self, x):
        self.calls += 1
        return self.func(x)


@pytest.mark.asyncio
async def test_from_recurrence():
    s = from_recurrence(lambda x: x + 1, 0)
    assert await s.take(5).collect() == [0, 1, 2, 3, 4]

    s = from_recurrence(lambda x: x * 2 if x < 100 else ABSENT, 1)
    assert await s.collect() == [1, 2, 4, 8, 16, 32, 64, 128]
    assert await s.collect() == [1, 2, 4, 8, 16, 32, 64, 128]

    assert await from_recurrence(lambda x: ABSENT, 'a').collect() == ['a']
    assert await from_recurrence(lambda x: x, ABSENT).collect() == []
    assert await from_recurrence(lambda x: None if x else ABSENT, 1).collect() == [1, None]


@pytest.mark.asyncio
async def test_from_recurrence_async_step():
    async def step(x):
        await asyncio.sleep(0)
        return x - 1 if x > 0 else ABSENT

    assert await from_recurrence(step, 3).collect() == [3, 2, 1, 0]


@pytest.mark.asyncio
async def test_from_recurrence_lazy():
    step = CountingStep(lambda x: x + 1)
    s = from_recurrence(step, 0)
    s2 = s.map(lambda x: x * 2).chunks_of(2)
    assert step.calls == 0

    assert await s.take(5).collect() == [0, 1, 2, 3, 4]
    assert step.calls <= 5

    step.calls = 0
    assert await s2.take(2).collect() == [[0, 2], [4, 6]]
    assert step.calls <= 4


def test_from_recurrence_bad_step():
    with pytest.raises(TypeError):
        from_recurrence(3, 0)


@pytest.mark.asyncio
async def test_from_recurrence_stack_safe():
    n = 1_000_000
    s = from_recurrence(lambda x: x + 1 if x < n else ABSENT, 1)
    assert await s.length() == n
    assert await s.execute(lambda acc, x: acc + x, 0) == n * (n + 1) // 2


@pytest.mark.asyncio
async def test_unfold():
    f = lambda n: ABSENT if n <= 0 else (n * 2, n - 1)  # noqa: E731
    assert await unfold(5, f).collect() == [10, 8, 6, 4, 2]
    assert await unfold(0, f).collect() == []

    fib = unfold((0, 1), lambda ab: (ab[0], (ab[1], ab[0] + ab[1])))
    assert await fib.take(8).collect() == [0, 1, 1, 2, 3, 5, 8, 13]


@pytest.mark.asyncio
async def test_from_range():
    assert await from_range(0, 5).collect() == [0, 1, 2, 3, 4]
    assert await from_range(3, 4).collect() == [3]
    assert await from_range(3, 3).collect() == []
    assert await from_range(5, 1).collect() == []
    assert await from_range(7).take(3).collect() == [7, 8, 9]


@pytest.mark.asyncio
async def test_make_by():
    double = lambda i: i * 2  # noqa: E731
    assert await make_by(5, double).collect() == [0, 2, 4, 6, 8]
    assert await make_by(-3, double).collect() == []
    assert await make_by(4.32164, double).collect() == [0, 2, 4, 6]
    assert await replicate(3, 'a').collect() == ['a', 'a', 'a']
    assert await replicate(0, 'a').collect() == []


@pytest.mark.asyncio
async def test_from_recurrence_awaitable_results():
    async def add(x, k):
        return x + k if x < 6 else ABSENT

    assert await from_recurrence(functools.partial(add, k=2), 0).collect() == [0, 2, 4, 6]

    class Halver:
        async def __call__(self, x):
            return x // 2 if x > 1 else ABSENT

    assert await from_recurrence(Halver(), 16).collect() == [16, 8, 4, 2, 1]

    async def countdown(n):
        return ABSENT if n == 0 else (n, n - 1)

    assert await unfold(3, countdown).collect() == [3, 2, 1]
