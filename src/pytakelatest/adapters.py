"""Lifecycle adapters binding take-latest runs to scope teardown.

UI frameworks call user code at lifecycle moments (a watched value
changed, dependencies changed, a component unmounted) and give it a way to
register teardown. These adapters are the glue between those moments and
the Driver:

- before a new run starts for a new value or dependency set, the previous
  run's cancel operation is invoked
- every run registers its cancel operation as the scope's teardown, so
  disposing the scope always cancels whatever is still running

Callback shapes follow the common reactive APIs:
    watch_callback(fn)         -> callback(value, old_value, on_cleanup)
    watch_effect_callback(fn)  -> callback(on_cleanup)

LifecycleScope, Watch and Effect are minimal hosts for those callbacks,
usable directly in Python applications (or as a reference for wiring the
callbacks into another framework's lifecycle).
"""

import logging
from collections.abc import Callable
from typing import Any, Generic, TypeVar

from pytakelatest.executor.driver import Driver, WorkflowFunction

logger = logging.getLogger(__name__)

__all__ = [
    "Cleanup",
    "OnCleanup",
    "LifecycleScope",
    "watch_callback",
    "watch_effect_callback",
    "Watch",
    "Effect",
]

R = TypeVar("R")
T = TypeVar("T")

Cleanup = Callable[[], None]
OnCleanup = Callable[[Cleanup], None]

_UNSET: Any = object()


class LifecycleScope:
    """Registry of teardown actions for one lifecycle scope.

    run_cleanups() runs and forgets the registered actions (the scope
    stays usable, e.g. between two watcher invocations). dispose() does
    the same and closes the scope: actions registered afterwards run
    immediately.

    Example:
        ```python
        scope = LifecycleScope()
        task = watch_effect_callback(poll_inbox)(scope.on_cleanup)
        ...
        scope.dispose()   # cancels poll_inbox if still running
        ```
    """

    def __init__(self):
        self._cleanups: list[Cleanup] = []
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def on_cleanup(self, cleanup: Cleanup) -> None:
        """Register a teardown action."""
        if self._disposed:
            cleanup()
            return
        self._cleanups.append(cleanup)

    def run_cleanups(self) -> None:
        """Run registered teardown actions in registration order, once each.

        A failing action is logged and does not stop the ones after it.
        """
        cleanups, self._cleanups = self._cleanups, []
        for cleanup in cleanups:
            try:
                cleanup()
            except Exception as e:
                logger.warning(f"Cleanup {cleanup!r} raised: {e}")

    def dispose(self) -> None:
        """Run teardown actions and close the scope. Idempotent."""
        if self._disposed:
            return
        self._disposed = True
        self.run_cleanups()


def watch_callback(
    coroutine_fn: WorkflowFunction[R],
) -> Callable[[Any, Any, OnCleanup], Any]:
    """Adapt a workflow to a watcher callback (value, old_value, on_cleanup).

    Each invocation starts a Driver with (value, old_value), registers its
    cancel operation through on_cleanup and schedules the run. The host
    calls the registered cleanup before the next invocation and on
    disposal, which gives take-latest behaviour per watcher.

    Returns:
        Callback returning the asyncio.Task of the started run
    """

    def callback(value: Any, old_value: Any, on_cleanup: OnCleanup) -> Any:
        driver = Driver.start(coroutine_fn, (value, old_value))
        on_cleanup(driver.cancel)
        return driver.spawn(label="watch")

    return callback


def watch_effect_callback(coroutine_fn: WorkflowFunction[R]) -> Callable[[OnCleanup], Any]:
    """Adapt a no-argument workflow to an effect callback (on_cleanup).

    Returns:
        Callback returning the asyncio.Task of the started run
    """

    def callback(on_cleanup: OnCleanup) -> Any:
        driver = Driver.start(coroutine_fn)
        on_cleanup(driver.cancel)
        return driver.spawn(label="watch-effect")

    return callback


class Watch(Generic[T]):
    """Observable value invoking a watcher callback on change.

    Pairs with watch_callback(): setting a different value first runs the
    cleanups registered by the previous invocation (cancelling its run),
    then invokes the callback with (new, old, on_cleanup).

    Usage:
        query = Watch(watch_callback(search), initial="")
        query.set("py")       # starts a search
        query.set("python")   # cancels it, starts another
        query.stop()          # cancels whatever is running
    """

    def __init__(self, callback: Callable[[T, T | None, OnCleanup], Any], initial: T | None = None):
        self._callback = callback
        self._value = initial
        self._scope = LifecycleScope()

    @property
    def value(self) -> T | None:
        return self._value

    def set(self, value: T) -> Any:
        """Update the value.

        Returns:
            The callback's return value, or None if the value is unchanged
            or the watcher was stopped
        """
        if self._scope.disposed or value == self._value:
            return None

        old_value, self._value = self._value, value
        self._scope.run_cleanups()
        return self._callback(value, old_value, self._scope.on_cleanup)

    def stop(self) -> None:
        """Stop watching and run pending cleanups."""
        self._scope.dispose()


class Effect(Generic[R]):
    """Dependency-keyed take-latest effect.

    update(*deps) starts a run of coroutine_fn(*deps) the first time and
    whenever the dependencies differ from the previous call, cancelling
    the previous run first. With no dependencies the effect runs once.
    dispose() is the unmount: it cancels the run still in flight.

    Usage:
        effect = Effect(load_page)
        effect.update(page_number)   # on every render
        ...
        effect.dispose()             # on unmount
    """

    def __init__(self, coroutine_fn: WorkflowFunction[R], *, name: str | None = None):
        self._coroutine_fn = coroutine_fn
        self.name = name or getattr(coroutine_fn, "__qualname__", repr(coroutine_fn))
        self._deps: Any = _UNSET
        self._scope = LifecycleScope()
        self._driver: Driver[R] | None = None
        self._task: Any = None

    @property
    def driver(self) -> Driver[R] | None:
        """Driver of the latest run, None before the first update()."""
        return self._driver

    @property
    def task(self) -> Any:
        """asyncio.Task of the latest run, None before the first update()."""
        return self._task

    def update(self, *deps: Any) -> Any:
        """Re-run the effect if the dependencies changed.

        Returns:
            The new run's asyncio.Task, or None if nothing was started
        """
        if self._scope.disposed:
            logger.debug(f"Effect {self.name}: update() after dispose ignored")
            return None
        if deps == self._deps:
            return None

        self._deps = deps
        self._scope.run_cleanups()

        driver = Driver.start(self._coroutine_fn, deps, name=self.name)
        self._scope.on_cleanup(driver.cancel)
        self._driver = driver
        self._task = driver.spawn(label="effect")
        return self._task

    def dispose(self) -> None:
        """Cancel the latest run and stop reacting to updates."""
        self._scope.dispose()
