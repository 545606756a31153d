"""Abort reasons recorded on cancellable futures.

A cancellable future remembers why it was aborted. The Driver aborts the
future it is suspended on with AbortReason.CANCEL, and later uses that
recorded reason to tell its own cancellations apart from genuine failures.
"""

from enum import Enum


class AbortReason(str, Enum):
    """Why a cancellable future was aborted.

    Mixes in str so that producers recording the plain string "cancel"
    still compare equal to AbortReason.CANCEL.

    Example:
        ```python
        from pytakelatest.core import AbortReason

        future.abort(AbortReason.CANCEL)
        assert future.abort_reason == "cancel"
        ```
    """

    CANCEL = "cancel"
    """Aborted by a Driver being cancelled (superseded or torn down).

    This is the cancellation sentinel: failures of a future carrying this
    reason are swallowed by the Driver that requested them.
    """

    ABORTED = "aborted"
    """Aborted directly by application code with no specific reason."""

    def __str__(self) -> str:
        """String representation for logging."""
        return self.value

    def __repr__(self) -> str:
        """Detailed representation for debugging."""
        return f"AbortReason.{self.name}"
