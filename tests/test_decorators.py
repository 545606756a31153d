"""
Tests for @auto_run and the decorator entry points.

@cancellable is covered in test_cancellable.py and @take_latest in
test_supervisor.py.
"""

import asyncio
import inspect

import pytest
from helpers import add_three_later

from pytakelatest import auto_run, take_latest
from pytakelatest.executor import TakeLatest, delay


@pytest.mark.asyncio
async def test_auto_run_returns_workflow_result():
    run = auto_run(add_three_later)

    assert inspect.iscoroutinefunction(run)
    assert await run() == 8


@pytest.mark.asyncio
async def test_auto_run_calls_run_independently():
    @auto_run
    def label(name, pause):
        value = yield delay(pause, name)
        return value.upper()

    results = await asyncio.gather(label("slow", 0.02), label("fast", 0.01))

    assert results == ["SLOW", "FAST"]


@pytest.mark.asyncio
async def test_auto_run_propagates_failure():
    @auto_run
    def broken():
        yield delay(0)
        raise ConnectionError("offline")

    with pytest.raises(ConnectionError):
        await broken()


def test_auto_run_keeps_metadata():
    @auto_run
    def documented():
        """Documented workflow."""
        yield 1

    assert documented.__name__ == "documented"
    assert documented.__doc__ == "Documented workflow."


def test_take_latest_with_and_without_arguments():
    def workflow():
        yield 1

    bare = take_latest(workflow)
    named = take_latest(name="custom")(workflow)

    assert isinstance(bare, TakeLatest)
    assert isinstance(named, TakeLatest)
    assert named.name == "custom"
    assert bare.name == workflow.__qualname__
