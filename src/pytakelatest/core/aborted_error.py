"""Exception raised when awaiting a future that was aborted before it settled."""

from pytakelatest.core.abort_reason import AbortReason

__all__ = ["AbortedError"]


class AbortedError(Exception):
    """A cancellable future was aborted before it settled.

    This is the recognizable "aborted" failure every producer must raise
    when abort() wins against natural completion. Domain failures never
    use this type, so callers can always tell the two apart.

    Example:
        ```python
        try:
            await fetch_with_cancel(client, "GET", url)
        except AbortedError as e:
            print(f"request aborted: {e.reason}")
        ```

    Attributes:
        reason: The reason passed to abort()
    """

    def __init__(self, reason: AbortReason | str = AbortReason.ABORTED):
        super().__init__(f"aborted: {reason}")
        self.reason = reason

    @property
    def is_cancel(self) -> bool:
        """Return True if the abort was requested by a cancelled Driver."""
        return self.reason == AbortReason.CANCEL

    def __repr__(self) -> str:
        return f"AbortedError(reason={self.reason!r})"
