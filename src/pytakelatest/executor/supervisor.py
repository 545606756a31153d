"""
Take-latest supervision of a workflow function.

TakeLatest wraps a generator function so that at most one run of it is
conceptually active. Each call cancels the previous run (if it is still in
flight) and starts a new one, synchronously, before returning.

Design: cancel-before-start, not await-cancel-then-start
A user re-triggering a workflow (repeated clicks, fast typing) must see
the new run begin immediately. The previous run's unwind (aborting its
in-flight request, running its finally blocks) happens on its own task
and is never waited on; its task resolves to CANCELLED and can simply be
discarded by the caller.

The only shared mutable state is the slot holding the latest Driver. It is
only touched from the event loop thread, so no locking is needed.

Example:
    ```python
    @take_latest
    def search(client, query):
        response = yield fetch_with_cancel(client, "GET", "/search", params={"q": query})
        return response.json()

    first = search(client, "py")
    second = search(client, "python")   # aborts the first request

    assert await first is CANCELLED
    results = await second
    ```
"""

import asyncio
import functools
import logging
from typing import Any, Generic, TypeVar

from pytakelatest.executor.driver import Driver, WorkflowFunction

logger = logging.getLogger(__name__)

__all__ = ["TakeLatest"]

R = TypeVar("R")


class TakeLatest(Generic[R]):
    """
    Supervisor enforcing at most one active run of a workflow function.

    Calling the supervisor returns an asyncio.Task for the new run's
    result. Calls must happen while an event loop is running.

    Used as a method decorator, every instance gets its own slot, so two
    objects never cancel each other's runs.

    Attributes:
        name: Label used in logs and task names

    Usage:
        search = TakeLatest(search_workflow)
        task = search("query")
        ...
        search.cancel()   # teardown: cancel whatever is still running
    """

    def __init__(self, coroutine_fn: WorkflowFunction[R], *, name: str | None = None):
        """
        Wrap a workflow function.

        Args:
            coroutine_fn: Generator function to supervise
            name: Optional label (defaults to coroutine_fn's qualified name)
        """
        functools.update_wrapper(self, coroutine_fn)
        self._coroutine_fn = coroutine_fn
        self.name = name or getattr(coroutine_fn, "__qualname__", repr(coroutine_fn))
        self._latest: Driver[R] | None = None
        self._attr_name: str | None = None

    def __call__(self, *args: Any, **kwargs: Any) -> "asyncio.Task[R]":
        """
        Cancel the previous run and start a new one.

        Returns:
            Task resolving to the run's result, or CANCELLED if a later call
            (or cancel()) supersedes it
        """
        # Fail before touching the slot when called outside an event loop
        asyncio.get_running_loop()

        previous = self._latest
        if previous is not None and not previous.status.is_terminal:
            logger.debug(f"TakeLatest {self.name}: superseding run {previous.run_id}")
            previous.cancel()

        driver = Driver.start(self._coroutine_fn, args, kwargs, name=self.name)
        self._latest = driver

        return driver.spawn(label="take-latest")

    @property
    def latest(self) -> Driver[R] | None:
        """Driver of the most recent call, None if never called."""
        return self._latest

    def is_running(self) -> bool:
        """Return True if the most recent run has not terminated."""
        return self._latest is not None and not self._latest.status.is_terminal

    def cancel(self) -> None:
        """
        Cancel the most recent run, if still in flight.

        This is the supervisor's teardown action. The supervisor remains
        usable afterwards.
        """
        if self._latest is not None:
            self._latest.cancel()

    def with_name(self, name: str) -> "TakeLatest[R]":
        """
        Return a new supervisor over the same function with a different name.

        The new supervisor has its own, empty slot.
        """
        return TakeLatest(self._coroutine_fn, name=name)

    # -------------------------------------------------------------------------
    # Descriptor protocol: one slot per instance when used on methods
    # -------------------------------------------------------------------------

    def __set_name__(self, owner: type, name: str) -> None:
        self._attr_name = name

    def __get__(self, instance: Any, owner: type | None = None) -> "TakeLatest[Any]":
        if instance is None or self._attr_name is None:
            return self

        bound = TakeLatest(
            functools.partial(self._coroutine_fn, instance),
            name=f"{self.name}@{id(instance):x}",
        )
        # Cached in the instance dict so later lookups bypass this descriptor
        instance.__dict__[self._attr_name] = bound
        return bound

    def __repr__(self) -> str:
        return f"TakeLatest(name={self.name!r}, latest={self._latest!r})"
