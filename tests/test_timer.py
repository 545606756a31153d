"""Tests for cancellable timers."""

import asyncio

import pytest

from pytakelatest.core import AbortedError, AbortReason, CancellableFuture
from pytakelatest.executor import TimerError, delay, race_with_cancel


@pytest.mark.asyncio
async def test_delay_resolves_to_result():
    timer = delay(0.01, "ready")

    assert isinstance(timer, CancellableFuture)
    assert await timer == "ready"


@pytest.mark.asyncio
async def test_delay_defaults_to_none():
    assert await delay(0) is None


@pytest.mark.asyncio
async def test_delay_starts_counting_at_creation():
    loop = asyncio.get_running_loop()
    timer = delay(0.05, "x")
    await asyncio.sleep(0.05)

    started = loop.time()
    assert await timer == "x"
    assert loop.time() - started < 0.04


@pytest.mark.asyncio
async def test_aborted_delay_raises():
    timer = delay(60)
    timer.abort(AbortReason.CANCEL)

    with pytest.raises(AbortedError) as excinfo:
        await asyncio.wait_for(timer, timeout=1)
    assert excinfo.value.is_cancel


@pytest.mark.asyncio
async def test_negative_duration_is_rejected():
    with pytest.raises(TimerError):
        delay(-1)


@pytest.mark.slow
@pytest.mark.asyncio
async def test_timer_loses_race_against_faster_timer():
    slow = delay(0.2, "slow")

    assert await race_with_cancel([slow, delay(0.01, "fast")]) == "fast"
    assert not slow.done()

    slow.abort()
