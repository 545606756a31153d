"""
Cancellable futures: awaitables augmented with an abort operation.

A suspension point yielded by a workflow is either a plain awaitable (no
cancel semantics) or an awaitable that also exposes abort(reason) and an
abort_reason slot. This module defines that capability and the standard
implementation of it.

Design: Protocol-based (PEP 544) capability check
The Driver never asks "is this a CancellableFuture?". It asks "does this
value implement Abortable?". Producers can satisfy the contract with their
own classes; no inheritance required.

Contract for producers:
- the underlying operation starts as soon as the future is created
- abort() is idempotent and a no-op once the future has settled
- abort() before settlement makes awaiting the future raise AbortedError
  carrying the recorded reason

Example:
    ```python
    async def load(url):
        async with httpx.AsyncClient() as client:
            return (await client.get(url)).json()

    future = CancellableFuture(load("https://example.org/data.json"))
    future.abort(AbortReason.CANCEL)

    try:
        await future
    except AbortedError as e:
        assert e.reason == AbortReason.CANCEL
    ```
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Generator
from typing import Any, Generic, Protocol, TypeVar, runtime_checkable

from pytakelatest.core.abort_reason import AbortReason
from pytakelatest.core.aborted_error import AbortedError

logger = logging.getLogger(__name__)

__all__ = [
    "Abortable",
    "AbortHook",
    "CancellableFuture",
    "is_abortable",
]

T = TypeVar("T")

AbortHook = Callable[[AbortReason | str], None]


@runtime_checkable
class Abortable(Protocol):
    """
    Capability of a suspension point that can be aborted.

    Any object with an abort(reason) method and an abort_reason attribute
    qualifies. The Driver binds its cancel operation to abort() when the
    awaited value has this capability, and drops cancellation requests
    for values that don't.
    """

    abort_reason: AbortReason | str | None

    def abort(self, reason: AbortReason | str = AbortReason.ABORTED) -> None:
        """Abort the operation, recording reason. Idempotent."""
        ...


def is_abortable(value: Any) -> bool:
    """
    Check whether a value exposes the Abortable capability.

    Args:
        value: Any value yielded by a workflow

    Returns:
        True if value has a callable abort() and an abort_reason slot
    """
    return isinstance(value, Abortable) and callable(getattr(value, "abort", None))


class CancellableFuture(Generic[T]):
    """
    An in-flight asynchronous operation that can be aborted.

    Wraps an awaitable in an asyncio.Task that starts running immediately.
    Awaiting the CancellableFuture yields the task's result, or raises
    AbortedError if abort() was called before the task settled.

    Attributes:
        name: Label used in logs and repr

    Example:
        ```python
        future = CancellableFuture(asyncio.sleep(10, "late"))
        future.abort()
        assert future.abort_reason == AbortReason.ABORTED
        ```
    """

    def __init__(
        self,
        awaitable: Awaitable[T],
        *,
        on_abort: AbortHook | None = None,
        name: str | None = None,
    ):
        """
        Start the operation.

        Must be called with a running event loop.

        Args:
            awaitable: Coroutine or future performing the operation
            on_abort: Optional hook invoked with the reason on first abort,
                      before the underlying task is cancelled
            name: Optional label (defaults to the awaitable's qualified name)
        """
        self.name = name or getattr(awaitable, "__qualname__", type(awaitable).__name__)
        self._task: asyncio.Future[T] = asyncio.ensure_future(awaitable)
        self._on_abort = on_abort
        self._abort_reason: AbortReason | str | None = None

    @property
    def abort_reason(self) -> AbortReason | str | None:
        """Reason recorded by the first effective abort(), None if never aborted."""
        return self._abort_reason

    @property
    def task(self) -> "asyncio.Future[T]":
        """Underlying task (for inspection)."""
        return self._task

    def abort(self, reason: AbortReason | str = AbortReason.ABORTED) -> None:
        """
        Abort the operation.

        The first call before settlement records reason, runs the on_abort
        hook and cancels the underlying task. Later calls, and calls after
        the operation settled, do nothing.

        Args:
            reason: Why the operation is being aborted
        """
        if self._abort_reason is not None or self._task.done():
            return

        self._abort_reason = reason if reason is not None else AbortReason.ABORTED
        logger.debug(f"Aborting {self.name}: reason={self._abort_reason}")

        if self._on_abort is not None:
            try:
                self._on_abort(self._abort_reason)
            except Exception as e:
                logger.warning(f"on_abort hook for {self.name} raised: {e}")

        self._task.cancel()

    def done(self) -> bool:
        """Return True if the underlying operation has settled."""
        return self._task.done()

    def result(self) -> T:
        """
        Return the settled result without awaiting.

        Raises:
            asyncio.InvalidStateError: If the operation has not settled
            AbortedError: If the operation was aborted
            Exception: The operation's own failure
        """
        if not self._task.done():
            raise asyncio.InvalidStateError(f"{self.name} has not settled")
        if self._abort_reason is not None:
            raise AbortedError(self._abort_reason)
        return self._task.result()

    def __await__(self) -> Generator[Any, None, T]:
        return self._settle().__await__()

    async def _settle(self) -> T:
        try:
            result = await self._task
        except asyncio.CancelledError:
            # Only our own abort turns cancellation into AbortedError;
            # cancellation of the awaiting task must keep propagating.
            current = asyncio.current_task()
            if self._abort_reason is None or (current is not None and current.cancelling()):
                raise
            raise AbortedError(self._abort_reason) from None

        if self._abort_reason is not None:
            # The operation swallowed its cancellation and returned anyway
            raise AbortedError(self._abort_reason)
        return result

    def __repr__(self) -> str:
        if self._abort_reason is not None:
            state = f"aborted={self._abort_reason!r}"
        elif self._task.done():
            state = "settled"
        else:
            state = "pending"
        return f"CancellableFuture({self.name!r}, {state})"
