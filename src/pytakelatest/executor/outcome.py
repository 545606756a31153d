"""
Run outcomes and the cancellation sentinel.

This module defines the RunOutcome state machine for Driver results.

A Driver run ends in exactly one of three ways: the coroutine returns a
value, it raises an unrecovered failure, or it is forced to terminate by
cancellation. Driver.run() reports the first by returning the value, the
second by raising, and the third by returning the CANCELLED sentinel.
Driver.execute() folds all three into a RunOutcome so callers that prefer
values over exceptions can match on it.

Example:
    ```python
    outcome = await start_driver(load_profile, user_id).execute()

    match outcome:
        case Completed(result):
            print(f"Loaded: {result}")
        case Cancelled(reason):
            print(f"Superseded: {reason}")
    ```
"""

from dataclasses import dataclass
from typing import Generic, TypeVar

from pytakelatest.core.abort_reason import AbortReason

__all__ = [
    "CANCELLED",
    "Completed",
    "Cancelled",
    "RunOutcome",
    "is_completed",
    "is_cancelled",
]

# Type variable for run result type
R = TypeVar("R")


class _CancelledSentinel:
    """Type of the CANCELLED sentinel. Only one instance exists."""

    _instance: "_CancelledSentinel | None" = None

    def __new__(cls) -> "_CancelledSentinel":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "CANCELLED"


CANCELLED = _CancelledSentinel()
"""Value returned by Driver.run() when the run was cancelled.

Tested with identity (is), never equality. A run that was superseded never
resolves with a domain value; it resolves with this sentinel instead.
"""


@dataclass(frozen=True)
class Completed(Generic[R]):
    """
    Run completed (success or failure).

    The result can be the coroutine's return value or the exception it
    raised. Check which with is_success() / is_failure().

    Attributes:
        result: The coroutine's return value (success) or raised exception (failure)

    Example:
        ```python
        outcome = Completed(result=8)
        # or
        outcome = Completed(result=ValueError("bad response"))
        ```
    """

    result: R

    def is_success(self) -> bool:
        """Return True if result is not an exception."""
        return not isinstance(self.result, BaseException)

    def is_failure(self) -> bool:
        """Return True if result is an exception."""
        return isinstance(self.result, BaseException)

    def __str__(self) -> str:
        if self.is_success():
            return f"Completed(success={self.result!r})"
        else:
            return f"Completed(error={type(self.result).__name__}: {self.result})"


@dataclass(frozen=True)
class Cancelled:
    """
    Run was cancelled before the coroutine returned.

    Attributes:
        reason: Abort reason forwarded to the suspended future
    """

    reason: AbortReason | str = AbortReason.CANCEL

    def __str__(self) -> str:
        return f"Cancelled({self.reason})"


# RunOutcome is a Union type representing the result of one Driver run.
#
# Pattern matching:
#     match outcome:
#         case Completed(result):
#             handle_result(result)
#         case Cancelled(reason):
#             handle_cancel(reason)
#
RunOutcome = Completed[R] | Cancelled


def is_completed(outcome: RunOutcome[R]) -> bool:
    """
    Type guard to check if outcome is Completed.

    Args:
        outcome: Run outcome

    Returns:
        True if outcome is Completed, False if Cancelled
    """
    return isinstance(outcome, Completed)


def is_cancelled(outcome: RunOutcome[R]) -> bool:
    """Type guard to check if outcome is Cancelled."""
    return isinstance(outcome, Cancelled)
