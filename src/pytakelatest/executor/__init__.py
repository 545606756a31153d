"""
Executor module - runtime engine for cancellable workflows.

This module contains the execution components:
- driver: steps a generator-based workflow, forwarding cancellation
- outcome: RunOutcome state machine (Completed/Cancelled) and CANCELLED
- combinators: all/race/any/allSettled over cancellable futures
- supervisor: take-latest supervision (TakeLatest)
- timer: cancellable delay() producer
"""

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
from pytakelatest.executor.supervisor import TakeLatest
from pytakelatest.executor.timer import TimerError, delay

__all__ = [
    # Driver
    "Driver",
    "DriverError",
    "Workflow",
    "WorkflowFunction",
    "start_driver",
    # RunOutcome state machine
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
    # Supervisor
    "TakeLatest",
    # Timers
    "delay",
    "TimerError",
]
