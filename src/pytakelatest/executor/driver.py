"""
Driver - steps a generator-based workflow to completion.

A workflow is a generator function that yields the operations it waits on:

    def load_profile(user_id):
        response = yield fetch_with_cancel(client, "GET", f"/users/{user_id}")
        avatar = yield fetch_with_cancel(client, "GET", response.json()["avatar"])
        return response.json(), avatar.content

The Driver resumes the generator with the result of each yielded future,
and keeps exactly one "current" suspension point. Cancelling the Driver
forwards the cancellation into that suspension point (when it can be
aborted) and forces the generator to return early the next time the
Driver checks.

Design: Cancellation vs. failure
A suspension point that fails because *this* Driver aborted it is expected
and swallowed. Any other failure is thrown back into the generator at its
current yield, so the workflow's own try/except runs; if the workflow does
not handle it, the failure becomes the run's failure. Without this
asymmetry every cancellation would look like a network error, and every
network error would silently vanish.

A plain future cancelled by a third party counts as "any other failure":
its CancelledError is thrown into the generator. Only cancellation of the
task running the Driver itself terminates the run as cancelled.

Yielded values are dispatched on shape:
- generator object: driven to completion by a child Driver (nested workflow)
- awaitable: awaited; its abort() is bound as the cancel operation if it
  is Abortable, otherwise cancellation for this step is deferred
- anything else: fed straight back into the generator

`yield from sub_workflow(...)` also works: the generator protocol forwards
every send/throw/close to the innermost generator on its own.
"""

import asyncio
import functools
import inspect
import logging
from collections.abc import Callable, Generator
from typing import Any, Generic, TypeVar

from uuid_extensions import uuid7

from pytakelatest.core import (
    CURRENT_DRIVER,
    AbortReason,
    DriverStatus,
    is_abortable,
)
from pytakelatest.executor.outcome import CANCELLED, Cancelled, Completed, RunOutcome

logger = logging.getLogger(__name__)

__all__ = [
    "Driver",
    "DriverError",
    "Workflow",
    "WorkflowFunction",
    "start_driver",
]

R = TypeVar("R")

Workflow = Generator[Any, Any, R]
WorkflowFunction = Callable[..., Generator[Any, Any, R]]

# Tasks created by Driver.spawn(), held until done
_background_runs: set[asyncio.Task[Any]] = set()


class Driver(Generic[R]):
    """
    Runs one Coroutine Instance and makes it cancellable.

    A Driver is single-use: run() may be awaited once. cancel() may be
    called at any time, from any code running on the same event loop.

    Attributes:
        name: Label used in logs (defaults to the generator's qualified name)
        run_id: Time-ordered unique id for this run

    Usage:
        driver = start_driver(load_profile, "user-42")
        task = asyncio.create_task(driver.run())
        ...
        driver.cancel()      # aborts the request currently in flight
        await task           # returns CANCELLED
    """

    def __init__(self, coroutine: Workflow[R], *, name: str | None = None):
        """
        Bind a Driver to a generator object.

        Args:
            coroutine: Generator created by calling a workflow function
            name: Optional label for logs

        Raises:
            TypeError: If coroutine is not a generator
        """
        if not inspect.isgenerator(coroutine):
            raise TypeError(f"Driver expects a generator, got {type(coroutine).__name__}")

        self.name = name or coroutine.__qualname__
        self.run_id = str(uuid7())
        self._coroutine = coroutine
        self._status = DriverStatus.CREATED
        self._cancelled = False

        # Current suspension point and the operation that aborts it.
        # Both are None while the generator is executing.
        self._suspension: Any = None
        self._cancel_suspension: Callable[[], None] | None = None

        self._last_value: Any = None

    @classmethod
    def start(
        cls,
        coroutine_fn: WorkflowFunction[R],
        args: tuple = (),
        kwargs: dict[str, Any] | None = None,
        *,
        name: str | None = None,
    ) -> "Driver[R]":
        """
        Create a Driver for coroutine_fn(*args, **kwargs).

        The generator body does not start executing until run() is awaited.

        Raises:
            TypeError: If coroutine_fn does not return a generator
        """
        coroutine = coroutine_fn(*args, **(kwargs or {}))

        if not inspect.isgenerator(coroutine):
            if inspect.iscoroutine(coroutine):
                # Avoid a "never awaited" warning for async def functions
                coroutine.close()
            fn_name = getattr(coroutine_fn, "__qualname__", repr(coroutine_fn))
            raise TypeError(
                f"{fn_name} must be a generator function, got {type(coroutine).__name__}"
            )

        return cls(coroutine, name=name or getattr(coroutine_fn, "__qualname__", None))

    @property
    def status(self) -> DriverStatus:
        return self._status

    @property
    def is_cancelled(self) -> bool:
        """True once cancel() has been called (or the run task was cancelled)."""
        return self._cancelled

    @property
    def suspension(self) -> Any:
        """The future (or nested generator) currently awaited, None if not suspended."""
        return self._suspension

    @property
    def last_value(self) -> Any:
        """The last value fed back into the generator."""
        return self._last_value

    def cancel(self) -> None:
        """
        Request cancellation of this run.

        If the Driver is suspended on an Abortable future (or on a nested
        Driver), the cancellation is forwarded immediately, in the caller's
        turn. Otherwise it takes effect the next time run() checks, before
        resuming the generator.

        Calling cancel() twice, or after the run terminated, does nothing.
        """
        if self._cancelled or self._status.is_terminal:
            return

        self._cancelled = True
        logger.debug(f"Driver {self.name} ({self.run_id}) cancel requested: status={self._status}")

        if self._cancel_suspension is not None:
            self._cancel_suspension()

    async def run(self) -> R:
        """
        Drive the generator to completion.

        Returns:
            The generator's return value, or CANCELLED if the run was
            cancelled before the generator returned

        Raises:
            DriverError: If run() was already started
            asyncio.CancelledError: If the task running the Driver is cancelled,
                or a plain future was cancelled by someone else and the
                workflow did not handle it
            Exception: The workflow's unrecovered failure, unchanged
        """
        if self._status is not DriverStatus.CREATED:
            raise DriverError(f"run() called twice for {self.name} ({self.run_id})")

        self._status = DriverStatus.RUNNING
        token = CURRENT_DRIVER.set(self)
        logger.debug(f"Driver {self.name} ({self.run_id}) started")

        failure: BaseException | None = None
        try:
            while True:
                if self._cancelled:
                    return self._terminate()

                try:
                    if failure is not None:
                        yielded = self._coroutine.throw(failure)
                    else:
                        yielded = self._coroutine.send(self._last_value)
                except StopIteration as stop:
                    self._status = DriverStatus.COMPLETED
                    logger.debug(f"Driver {self.name} ({self.run_id}) completed")
                    return stop.value

                failure = await self._resolve(yielded)

        except asyncio.CancelledError as e:
            if not _task_is_cancelling():
                # Injected foreign cancellation the workflow did not handle
                self._status = DriverStatus.FAILED
                logger.debug(f"Driver {self.name} ({self.run_id}) failed: {type(e).__name__}")
                raise

            # The task running this Driver was cancelled from outside
            self._cancelled = True
            self._status = DriverStatus.CANCELLED
            self._coroutine.close()
            logger.debug(f"Driver {self.name} ({self.run_id}) task cancelled")
            raise

        except Exception as e:
            self._status = DriverStatus.FAILED
            logger.debug(f"Driver {self.name} ({self.run_id}) failed: {type(e).__name__}: {e}")
            raise

        finally:
            CURRENT_DRIVER.reset(token)

    def spawn(self, *, label: str = "run") -> "asyncio.Task[R]":
        """
        Schedule run() as a task on the running loop and return the task.

        The task is referenced until it finishes, so fire-and-forget runs
        are not garbage collected mid-flight.

        Args:
            label: Prefix of the task name
        """
        task = asyncio.get_running_loop().create_task(
            self.run(), name=f"{label}:{self.name}:{self.run_id}"
        )
        _background_runs.add(task)
        task.add_done_callback(_background_runs.discard)
        return task

    async def execute(self) -> RunOutcome[R]:
        """
        Run and fold the result into a RunOutcome.

        Unrecovered failures become Completed(exception) instead of raising.

        Example:
            ```python
            outcome = await start_driver(load_profile, "user-42").execute()
            if is_cancelled(outcome):
                return
            ```
        """
        try:
            result = await self.run()
        except asyncio.CancelledError as e:
            if _task_is_cancelling():
                raise
            return Completed(result=e)
        except Exception as e:
            return Completed(result=e)

        if self._status is DriverStatus.CANCELLED:
            return Cancelled(reason=AbortReason.CANCEL)
        return Completed(result=result)

    async def _resolve(self, yielded: Any) -> BaseException | None:
        """
        Resolve one yielded value into the next value to send.

        Stores the resolved value in _last_value.

        Returns:
            A failure to throw into the generator, or None
        """
        if inspect.isgenerator(yielded):
            child: Driver[Any] = Driver(yielded, name=f"{self.name}/{yielded.__qualname__}")
            awaitable = child.run()
            cancel_op: Callable[[], None] | None = child.cancel
        elif inspect.isawaitable(yielded):
            awaitable = yielded
            if is_abortable(yielded):
                cancel_op = functools.partial(yielded.abort, AbortReason.CANCEL)
            else:
                cancel_op = None
        else:
            self._last_value = yielded
            return None

        self._suspension = yielded
        self._cancel_suspension = cancel_op
        self._status = DriverStatus.SUSPENDED

        if self._cancelled and cancel_op is not None:
            # cancel() arrived while the generator was executing
            cancel_op()

        try:
            self._last_value = await awaitable
            return None
        except asyncio.CancelledError as e:
            if _task_is_cancelling():
                raise
            # A plain future cancelled by someone else: a failure like any other
            logger.debug(
                f"Driver {self.name} ({self.run_id}) injecting foreign cancellation of {yielded!r}"
            )
            return e
        except Exception as e:
            if self._is_own_abort(yielded):
                logger.debug(f"Driver {self.name} ({self.run_id}) swallowed abort of {yielded!r}")
                return None
            logger.debug(
                f"Driver {self.name} ({self.run_id}) injecting {type(e).__name__} into workflow"
            )
            return e
        finally:
            self._suspension = None
            self._cancel_suspension = None
            self._status = DriverStatus.RUNNING

    def _is_own_abort(self, yielded: Any) -> bool:
        """Check if a failure of yielded was caused by this Driver's cancel()."""
        return (
            self._cancelled
            and is_abortable(yielded)
            and yielded.abort_reason == AbortReason.CANCEL
        )

    def _terminate(self) -> Any:
        """Force the generator to return early. Runs its finally blocks."""
        self._coroutine.close()
        self._status = DriverStatus.CANCELLED
        logger.debug(f"Driver {self.name} ({self.run_id}) cancelled")
        return CANCELLED

    def __repr__(self) -> str:
        return f"Driver(name={self.name!r}, run_id={self.run_id!r}, status={self._status})"


def start_driver(coroutine_fn: WorkflowFunction[R], *args: Any, **kwargs: Any) -> Driver[R]:
    """
    Start a Driver for coroutine_fn(*args, **kwargs).

    Returns a Driver exposing run() and cancel(). Nothing executes until
    run() is awaited; cancel() may be called before that.

    Args:
        coroutine_fn: Generator function implementing the workflow
        *args: Positional arguments for coroutine_fn
        **kwargs: Keyword arguments for coroutine_fn

    Returns:
        A fresh, single-use Driver

    Raises:
        TypeError: If coroutine_fn is not a generator function

    Example:
        ```python
        def add_later(a, b):
            x = yield delay(0.1, a)
            return x + b

        driver = start_driver(add_later, 5, 3)
        assert await driver.run() == 8
        ```
    """
    return Driver.start(coroutine_fn, args, kwargs)


class DriverError(Exception):
    """
    Driver used incorrectly (e.g. run() awaited twice).

    Custom exception with context, not generic Exception.
    """

    pass


def _task_is_cancelling() -> bool:
    """Check if cancellation was requested for the task running this code."""
    current = asyncio.current_task()
    return current is not None and current.cancelling() > 0
