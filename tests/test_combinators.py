"""
Tests for the future combinators and their abort fan-out.
"""

import asyncio

import pytest
from helpers import RecordingFuture, fail_after

from pytakelatest.core import AbortedError, AbortReason, CancellableFuture
from pytakelatest.executor import (
    CANCELLED,
    AllFailedError,
    CombinePolicy,
    SettledResult,
    all_settled_with_cancel,
    all_with_cancel,
    any_with_cancel,
    combine,
    delay,
    race_with_cancel,
    start_driver,
)

# =============================================================================
# Completion policies
# =============================================================================


@pytest.mark.asyncio
async def test_all_resolves_in_input_order():
    combined = all_with_cancel([delay(0.02, "slow"), delay(0.01, "fast"), "plain", asyncio.sleep(0, "coro")])

    assert await combined == ["slow", "fast", "plain", "coro"]


@pytest.mark.asyncio
async def test_all_of_nothing_is_empty_list():
    assert await all_with_cancel([]) == []


@pytest.mark.asyncio
async def test_all_fails_fast_on_first_failure():
    error = ValueError("first failure")
    combined = all_with_cancel([delay(60), CancellableFuture(fail_after(0.01, error))])

    with pytest.raises(ValueError) as excinfo:
        await asyncio.wait_for(combined, timeout=1)
    assert excinfo.value is error


@pytest.mark.asyncio
async def test_race_settles_like_first_constituent():
    assert await race_with_cancel([delay(60, "slow"), delay(0.01, "fast")]) == "fast"


@pytest.mark.asyncio
async def test_race_propagates_first_failure():
    error = RuntimeError("lost the race")

    with pytest.raises(RuntimeError) as excinfo:
        await race_with_cancel([delay(60), CancellableFuture(fail_after(0.01, error))])
    assert excinfo.value is error


def test_race_of_nothing_is_rejected():
    with pytest.raises(ValueError):
        race_with_cancel([])


@pytest.mark.asyncio
async def test_any_ignores_failures_until_success():
    combined = any_with_cancel([
        CancellableFuture(fail_after(0, ValueError("a"))),
        delay(0.02, "winner"),
        CancellableFuture(fail_after(0.01, ValueError("b"))),
    ])

    assert await combined == "winner"


@pytest.mark.asyncio
async def test_any_reports_every_failure_in_input_order():
    first = ValueError("first")
    second = KeyError("second")

    with pytest.raises(AllFailedError) as excinfo:
        await any_with_cancel([
            CancellableFuture(fail_after(0.02, first)),
            CancellableFuture(fail_after(0.01, second)),
        ])

    assert excinfo.value.errors == [first, second]


@pytest.mark.asyncio
async def test_any_of_nothing_fails():
    with pytest.raises(AllFailedError) as excinfo:
        await any_with_cancel([])
    assert excinfo.value.errors == []


@pytest.mark.asyncio
async def test_all_settled_reports_each_outcome():
    error = ValueError("rejected")

    settled = await all_settled_with_cancel([
        delay(0.01, 1),
        CancellableFuture(fail_after(0, error)),
        "plain",
    ])

    assert settled == [
        SettledResult(status="fulfilled", value=1),
        SettledResult(status="rejected", reason=error),
        SettledResult(status="fulfilled", value="plain"),
    ]
    assert settled[0].is_fulfilled
    assert settled[1].is_rejected


@pytest.mark.asyncio
async def test_combine_accepts_policy_tags():
    settled = await combine([delay(0, "x")], "allSettled")

    assert settled == [SettledResult(status="fulfilled", value="x")]
    assert str(CombinePolicy.ALL_SETTLED) == "allSettled"


def test_combine_rejects_unknown_policy():
    with pytest.raises(ValueError):
        combine([], "first")


# =============================================================================
# Abort fan-out
# =============================================================================


@pytest.mark.asyncio
async def test_abort_fans_out_to_abortable_constituents():
    recorders = [RecordingFuture(f"r{i}") for i in range(3)]
    combined = all_with_cancel(recorders)
    await asyncio.sleep(0)

    combined.abort(AbortReason.CANCEL)

    for recorder in recorders:
        assert recorder.abort_calls == [AbortReason.CANCEL]
    with pytest.raises(AbortedError) as excinfo:
        await combined
    assert excinfo.value.reason == AbortReason.CANCEL


@pytest.mark.asyncio
async def test_abort_skips_constituents_without_abort(recording_future):
    plain = asyncio.get_running_loop().create_future()
    combined = race_with_cancel([recording_future, plain])
    await asyncio.sleep(0)

    combined.abort("timeout")

    assert recording_future.abort_calls == ["timeout"]
    assert not plain.cancelled()

    with pytest.raises(AbortedError):
        await combined

    plain.set_result("still usable")
    assert await plain == "still usable"


@pytest.mark.asyncio
async def test_abort_after_race_settled_reaches_loser(recording_future):
    """A timeout race won by the timer can still stop the slow request."""
    combined = race_with_cancel([recording_future, delay(0.01, "timeout")])
    assert await combined == "timeout"

    combined.abort(AbortReason.CANCEL)

    assert recording_future.abort_calls == [AbortReason.CANCEL]
    assert recording_future.abort_reason == AbortReason.CANCEL
    assert combined.abort_reason is None
    assert combined.result() == "timeout"


@pytest.mark.asyncio
async def test_abort_after_fail_fast_reaches_running_sibling():
    error = ValueError("first failure")
    sibling = delay(60)
    combined = all_with_cancel([sibling, CancellableFuture(fail_after(0, error))])

    with pytest.raises(ValueError):
        await combined
    assert not sibling.done()

    combined.abort()

    assert sibling.abort_reason == AbortReason.ABORTED
    with pytest.raises(AbortedError):
        await sibling


@pytest.mark.asyncio
async def test_abort_of_settled_combination_skips_settled_members(recording_future):
    recording_future.resolve("done")
    combined = all_with_cancel([recording_future])
    assert await combined == ["done"]

    combined.abort(AbortReason.CANCEL)

    assert recording_future.abort_reason is None
    assert combined.result() == ["done"]


@pytest.mark.asyncio
async def test_plain_constituents_start_on_creation():
    started = []

    async def plain():
        started.append("plain")
        return "plain"

    combined = all_with_cancel([plain()])
    combined.abort()

    with pytest.raises(AbortedError):
        await combined
    await asyncio.sleep(0)

    assert started == ["plain"]


@pytest.mark.asyncio
async def test_driver_cancellation_reaches_every_constituent():
    recorders = [RecordingFuture(f"r{i}") for i in range(2)]
    timer = delay(60)

    def dashboard():
        results = yield all_with_cancel([*recorders, timer])
        return results

    driver = start_driver(dashboard)
    task = asyncio.create_task(driver.run())
    await asyncio.sleep(0)

    driver.cancel()

    assert await asyncio.wait_for(task, timeout=1) is CANCELLED
    for recorder in recorders:
        assert recorder.abort_calls == [AbortReason.CANCEL]
    assert timer.abort_reason == AbortReason.CANCEL


@pytest.mark.asyncio
async def test_timeout_as_race_against_timer():
    def with_timeout():
        outcome = yield race_with_cancel([delay(60, "response"), delay(0.01, "timed out")])
        return outcome

    assert await start_driver(with_timeout).run() == "timed out"
