from __future__ import annotations

from decision_router.core import first_value, iterate, settle


def test_first_value_passes_plain_values_through() -> None:
    assert _run(first_value("hi")) == "hi"
    assert _run(first_value(None, default="fallback")) is None


def test_first_value_awaits_coroutines() -> None:
    async def produce() -> str:
        return "later"

    assert _run(first_value(produce())) == "later"


def test_first_value_takes_first_item_and_closes_stream() -> None:
    closed: list[bool] = []
    produced: list[int] = []

    async def stream():
        try:
            for i in range(3):
                produced.append(i)
                yield i
        finally:
            closed.append(True)

    assert _run(first_value(stream())) == 0
    assert produced == [0]
    assert closed == [True]


def test_first_value_of_empty_stream_is_default() -> None:
    async def empty():
        return
        yield  # pragma: no cover

    assert _run(first_value(empty(), default="nothing")) == "nothing"


def test_settle_drains_streams_and_coroutines() -> None:
    async def stream():
        yield 1
        yield 2

    async def wrapped():
        return stream()

    assert _run(settle(stream())) == [1, 2]
    assert _run(settle(wrapped())) == [1, 2]
    assert _run(settle(3)) == [3]


def test_iterate_yields_single_value_once() -> None:
    async def collect() -> list:
        return [item async for item in iterate("once")]

    assert _run(collect()) == ["once"]


def _run(coro):
    import asyncio

    return asyncio.run(coro)
