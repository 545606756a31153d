"""
Shared test doubles and sample workflows.
"""

import asyncio

from hypothesis import strategies as st

from pytakelatest.core import AbortedError, AbortReason
from pytakelatest.executor.timer import delay


class RecordingFuture:
    """
    Abortable awaitable settled by hand, recording every abort() call.

    Follows the producer contract: abort() is a no-op once settled or
    already aborted, and an effective abort makes awaiting raise
    AbortedError with the recorded reason.
    """

    def __init__(self, name: str = "recording"):
        self.name = name
        self.abort_reason = None
        self.abort_calls: list = []
        self._future = asyncio.get_running_loop().create_future()

    def resolve(self, value) -> None:
        self._future.set_result(value)

    def fail(self, error: BaseException) -> None:
        self._future.set_exception(error)

    def abort(self, reason=AbortReason.ABORTED) -> None:
        self.abort_calls.append(reason)
        if self.abort_reason is not None or self._future.done():
            return
        self.abort_reason = reason
        self._future.set_exception(AbortedError(reason))

    def done(self) -> bool:
        return self._future.done()

    def __await__(self):
        return self._future.__await__()

    def __repr__(self) -> str:
        return f"RecordingFuture({self.name!r})"


async def fail_after(seconds: float, error: BaseException):
    """Coroutine raising error after seconds."""
    await asyncio.sleep(seconds)
    raise error


# Sample workflows


def add_three_later():
    """Wait for 5, then for 5 + 3."""
    first = yield delay(0.01, 5)
    second = yield delay(0.01, first + 3)
    return second


def echo_values(values):
    """Yield plain values and collect what comes back."""
    received = []
    for value in values:
        received.append((yield value))
    return received


def wait_forever(cleanup: list):
    """Suspend on a long timer, recording the unwind in cleanup."""
    try:
        yield delay(60)
        cleanup.append("resumed")
    finally:
        cleanup.append("finally")


# Hypothesis strategies

plain_values = st.one_of(
    st.none(),
    st.integers(),
    st.text(max_size=20),
    st.lists(st.integers(), max_size=5),
)
