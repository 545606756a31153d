"""
Status enum for Driver runs.

The default status represents the initial state: a Driver that has been
created but not yet run.
"""

from enum import Enum


class DriverStatus(Enum):
    """
    Status of one Coroutine Instance driven by a Driver.

    Lifecycle:
    CREATED → RUNNING ⇄ SUSPENDED → COMPLETED / FAILED / CANCELLED

    A Driver can be cancelled from CREATED (before run() starts), in which
    case run() terminates the coroutine without ever resuming it.
    """

    CREATED = "CREATED"
    """Coroutine instance exists, run() has not started."""

    RUNNING = "RUNNING"
    """Coroutine code is executing between two suspension points."""

    SUSPENDED = "SUSPENDED"
    """Driver is awaiting a yielded future (or a nested Driver)."""

    COMPLETED = "COMPLETED"
    """Coroutine returned a final value."""

    FAILED = "FAILED"
    """Coroutine raised an unrecovered failure."""

    CANCELLED = "CANCELLED"
    """Coroutine was forced to terminate by cancellation."""

    @property
    def is_terminal(self) -> bool:
        """Check if this status is terminal (no more steps will run)."""
        return self in (DriverStatus.COMPLETED, DriverStatus.FAILED, DriverStatus.CANCELLED)

    @property
    def is_active(self) -> bool:
        """Check if the run is in progress."""
        return self in (DriverStatus.RUNNING, DriverStatus.SUSPENDED)

    def __str__(self) -> str:
        return self.value
