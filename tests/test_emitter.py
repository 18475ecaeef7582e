"""Tests for conveyor.emitter."""

from __future__ import annotations

import asyncio
import logging

import pytest

from conveyor.emitter import DEFAULT_PRIORITY, Emitter


def test_emit_blocking_without_handlers_resolves() -> None:
    emitter = Emitter()

    assert asyncio.run(emitter.emit_blocking("nothing.here", 1, 2)) is None


def test_emit_blocking_orders_by_priority_then_registration() -> None:
    emitter = Emitter()
    calls: list[str] = []

    def _handler(tag: str):
        async def _run(*_: object) -> None:
            calls.append(f"start:{tag}")
            await asyncio.sleep(0)
            calls.append(f"end:{tag}")

        return _run

    emitter.on_blocking("evt", _handler("p2"), 2)
    emitter.on_blocking("evt", _handler("p1-first"), 1)
    emitter.on_blocking("evt", _handler("p1-second"), 1)
    emitter.on_blocking("evt", _handler("p3"), 3)

    asyncio.run(emitter.emit_blocking("evt"))

    assert calls == [
        "start:p1-first",
        "end:p1-first",
        "start:p1-second",
        "end:p1-second",
        "start:p2",
        "end:p2",
        "start:p3",
        "end:p3",
    ]


def test_emit_blocking_stops_on_first_failure() -> None:
    emitter = Emitter()
    calls: list[str] = []

    async def _first(value: int) -> None:
        calls.append(f"first:{value}")

    async def _failing(value: int) -> None:
        calls.append("failing")
        raise RuntimeError("handler failed")

    def _never(value: int) -> None:
        calls.append("never")

    emitter.on_blocking("evt", _first)
    emitter.on_blocking("evt", _failing)
    emitter.on_blocking("evt", _never)

    with pytest.raises(RuntimeError, match="handler failed") as excinfo:
        asyncio.run(emitter.emit_blocking("evt", 7))

    assert calls == ["first:7", "failing"]
    assert str(excinfo.value) == "handler failed"


def test_emit_blocking_includes_non_blocking_handlers() -> None:
    emitter = Emitter()
    calls: list[str] = []

    emitter.on("evt", lambda: calls.append("plain"), DEFAULT_PRIORITY + 1)
    emitter.on_blocking("evt", lambda: calls.append("blocking"))

    asyncio.run(emitter.emit_blocking("evt"))

    assert calls == ["blocking", "plain"]


def test_emit_skips_blocking_handlers_and_swallows_errors(caplog) -> None:
    emitter = Emitter()
    calls: list[str] = []

    def _broken(value: str) -> None:
        raise ValueError("sync failure")

    emitter.on("evt", _broken, 1)
    emitter.on("evt", lambda value: calls.append(f"plain:{value}"), 2)
    emitter.on_blocking("evt", lambda value: calls.append("blocking"))

    with caplog.at_level(logging.ERROR, logger="conveyor"):
        emitter.emit("evt", "x")

    assert calls == ["plain:x"]
    assert "sync failure" in caplog.text


def test_emit_does_not_await_async_handlers(caplog) -> None:
    emitter = Emitter()
    calls: list[str] = []
    release = None

    async def _slow() -> None:
        calls.append("slow:start")
        await release.wait()
        calls.append("slow:end")

    async def _failing() -> None:
        raise RuntimeError("async failure")

    emitter.on("evt", _slow)
    emitter.on("evt", _failing)

    async def _scenario() -> None:
        nonlocal release
        release = asyncio.Event()
        emitter.emit("evt")
        calls.append("after-emit")
        await asyncio.sleep(0)
        release.set()
        await emitter.wait_pending()

    with caplog.at_level(logging.ERROR, logger="conveyor"):
        asyncio.run(_scenario())

    assert calls == ["after-emit", "slow:start", "slow:end"]
    assert "async failure" in caplog.text


def test_off_removes_handler() -> None:
    emitter = Emitter()
    calls: list[str] = []

    def _handler() -> None:
        calls.append("called")

    emitter.on_blocking("evt", _handler)
    emitter.off("evt", _handler)

    asyncio.run(emitter.emit_blocking("evt"))

    assert calls == []
    assert emitter.listeners("evt") == []


def test_barrier_runs_after_already_scheduled_tasks() -> None:
    emitter = Emitter()
    order: list[str] = []

    async def _waiter() -> None:
        order.append("waiter:before")
        await emitter.barrier()
        order.append("waiter:after")

    async def _registrar() -> None:
        order.append("registrar")

    async def _scenario() -> None:
        first = asyncio.create_task(_waiter())
        second = asyncio.create_task(_registrar())
        await asyncio.gather(first, second)

    asyncio.run(_scenario())

    assert order == ["waiter:before", "registrar", "waiter:after"]


def test_defer_runs_callbacks_in_fifo_order() -> None:
    emitter = Emitter()
    order: list[int] = []

    async def _scenario() -> None:
        emitter.defer(order.append, 1)
        emitter.defer(order.append, 2)
        order.append(0)
        await emitter.barrier()

    asyncio.run(_scenario())

    assert order == [0, 1, 2]
