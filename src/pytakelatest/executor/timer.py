"""
Cancellable timers.

delay() is the simplest producer of a cancellable future: it resolves
after a duration, and aborting it cancels the pending timer. Besides
pausing a workflow, it is the building block for timeouts, which are
expressed as a race between the real operation and a timer:

    response = yield race_with_cancel([fetch_with_cancel(client, "GET", url), delay(5.0)])

There is no timeout mechanism in the Driver itself.
"""

import asyncio
from typing import TypeVar

from pytakelatest.core import CancellableFuture

__all__ = ["delay", "TimerError"]

T = TypeVar("T")


def delay(seconds: float, result: T | None = None) -> CancellableFuture[T | None]:
    """
    Create a timer resolving to result after seconds.

    The timer starts immediately. Aborting it before it fires cancels the
    underlying sleep and makes awaiting it raise AbortedError.

    Args:
        seconds: Timer duration in seconds
        result: Value the timer resolves to (default None)

    Returns:
        CancellableFuture resolving to result

    Raises:
        TimerError: If seconds is negative

    Example:
        def poll_status(job_id):
            while True:
                status = yield fetch_with_cancel(client, "GET", f"/jobs/{job_id}")
                if status.json()["done"]:
                    return status.json()
                yield delay(1.0)
    """
    if seconds < 0:
        raise TimerError(f"delay() needs a non-negative duration, got {seconds}")

    return CancellableFuture(asyncio.sleep(seconds, result), name=f"delay({seconds})")


class TimerError(Exception):
    """
    Timer could not be created.

    Custom exception with context, not generic Exception.
    """

    pass
