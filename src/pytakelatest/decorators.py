"""
Decorators for cancellable workflows.

This module provides the three ways of turning plain functions into parts
of a cancellable workflow:

- @cancellable: async def → function returning a CancellableFuture
- @take_latest: generator function → TakeLatest supervisor
- @auto_run:    generator function → ordinary async function

Example:
    ```python
    @cancellable
    async def fetch_user(client, user_id):
        return (await client.get(f"/users/{user_id}")).json()

    @take_latest
    def show_user(client, user_id):
        user = yield fetch_user(client, user_id)
        return user["name"]

    @auto_run
    def load_once(client, user_id):
        user = yield fetch_user(client, user_id)
        return user
    ```
"""

import functools
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from pytakelatest.core import CancellableFuture
from pytakelatest.executor.driver import WorkflowFunction, start_driver
from pytakelatest.executor.supervisor import TakeLatest

__all__ = ["cancellable", "take_latest", "auto_run"]

T = TypeVar("T")
R = TypeVar("R")


def cancellable(func: Callable[..., Awaitable[T]]) -> Callable[..., CancellableFuture[T]]:
    """
    Make an async function return a CancellableFuture per call.

    The operation starts as soon as the decorated function is called (not
    when the result is awaited), and aborting the future cancels it.

    Args:
        func: The async function to decorate

    Example:
        ```python
        @cancellable
        async def slow_square(x):
            await asyncio.sleep(1)
            return x * x

        future = slow_square(3)
        future.abort()
        ```
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> CancellableFuture[T]:
        return CancellableFuture(func(*args, **kwargs), name=func.__qualname__)

    return wrapper


def take_latest(
    func: WorkflowFunction[R] | None = None, *, name: str | None = None
) -> TakeLatest[R] | Callable[[WorkflowFunction[R]], TakeLatest[R]]:
    """
    Wrap a generator function in a take-latest supervisor.

    Each call cancels the previous still-running call and returns an
    asyncio.Task for the new run. Works on plain functions and methods
    (one slot per instance).

    Args:
        func: The generator function to decorate
        name: Optional label used in logs

    Example:
        ```python
        @take_latest(name="autocomplete")
        def suggest(client, prefix):
            response = yield fetch_with_cancel(client, "GET", "/suggest", params={"q": prefix})
            return response.json()
        ```
    """

    def decorator(f: WorkflowFunction[R]) -> TakeLatest[R]:
        return TakeLatest(f, name=name)

    if func is None:
        return decorator
    return decorator(func)


def auto_run(func: WorkflowFunction[R]) -> Callable[..., Awaitable[R]]:
    """
    Turn a generator function into an async function.

    Every call drives one run to completion. No cancel operation is
    exposed and no earlier run is cancelled, so this behaves exactly like
    an async def written with the generator's steps.

    Args:
        func: The generator function to decorate
    """

    @functools.wraps(func)
    async def runner(*args: Any, **kwargs: Any) -> R:
        return await start_driver(func, *args, **kwargs).run()

    return runner
