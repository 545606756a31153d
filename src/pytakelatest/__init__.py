"""
pytakelatest: cancellable generator workflows with take-latest semantics.

Design Pattern: Façade Pattern
This module provides a simplified interface to the package, hiding the
details of driving generators, binding cancel operations and supervising
runs.

A workflow is a generator function that yields the operations it waits
on. Each yielded operation may be a CancellableFuture, which the Driver
aborts when the run is cancelled. Wrapping the workflow with
@take_latest makes every new call cancel the previous one, so only the
latest run ever completes.

Example:
    ```python
    import asyncio
    from pytakelatest import CANCELLED, CancellableClient, take_latest

    async def main():
        async with CancellableClient(base_url="https://api.example.org") as client:

            @take_latest
            def search(query):
                response = yield client.get("/search", params={"q": query})
                return response.json()

            stale = search("py")
            fresh = search("python")    # aborts the first request

            assert await stale is CANCELLED
            print(await fresh)

    asyncio.run(main())
    ```
"""

# Core types
from pytakelatest.core import (
    CURRENT_DRIVER,
    Abortable,
    AbortedError,
    AbortReason,
    CancellableFuture,
    DriverStatus,
    get_current_driver,
    is_abortable,
)

# Decorators
from pytakelatest.decorators import auto_run, cancellable, take_latest

# Execution
from pytakelatest.executor.driver import (
    Driver,
    DriverError,
    Workflow,
    WorkflowFunction,
    start_driver,
)
from pytakelatest.executor.outcome import (
    CANCELLED,
    Cancelled,
    Completed,
    RunOutcome,
    is_cancelled,
    is_completed,
)

# Combinators
from pytakelatest.executor.combinators import (
    AllFailedError,
    CombinedFuture,
    CombinePolicy,
    SettledResult,
    all_settled_with_cancel,
    all_with_cancel,
    any_with_cancel,
    combine,
    race_with_cancel,
)

# Supervision
from pytakelatest.executor.supervisor import TakeLatest

# Producers
from pytakelatest.executor.timer import TimerError, delay
from pytakelatest.http import CancellableClient, fetch_with_cancel

# Lifecycle adapters
from pytakelatest.adapters import (
    Effect,
    LifecycleScope,
    Watch,
    watch_callback,
    watch_effect_callback,
)

# Version
__version__ = "0.1.0"

__all__ = [
    # Core types
    "AbortReason",
    "AbortedError",
    "Abortable",
    "CancellableFuture",
    "is_abortable",
    "DriverStatus",
    "CURRENT_DRIVER",
    "get_current_driver",

    # Decorators
    "cancellable",
    "take_latest",
    "auto_run",

    # Execution
    "Driver",
    "DriverError",
    "Workflow",
    "WorkflowFunction",
    "start_driver",
    "CANCELLED",
    "Completed",
    "Cancelled",
    "RunOutcome",
    "is_completed",
    "is_cancelled",

    # Combinators
    "CombinePolicy",
    "CombinedFuture",
    "SettledResult",
    "AllFailedError",
    "combine",
    "all_with_cancel",
    "race_with_cancel",
    "any_with_cancel",
    "all_settled_with_cancel",

    # Supervision
    "TakeLatest",

    # Producers
    "delay",
    "TimerError",
    "fetch_with_cancel",
    "CancellableClient",

    # Lifecycle adapters
    "LifecycleScope",
    "Watch",
    "Effect",
    "watch_callback",
    "watch_effect_callback",

    # Metadata
    "__version__",
]
