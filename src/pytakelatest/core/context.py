"""Task-local access to the Driver currently running a workflow.

Uses contextvars so that coroutine code and producers can find the active
run without the Driver being threaded through every call. Each asyncio
task has its own value, so concurrent runs never see each other.
"""

from contextvars import ContextVar
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from pytakelatest.executor.driver import Driver

CURRENT_DRIVER: ContextVar[Optional["Driver"]] = ContextVar("current_driver", default=None)
"""Task-local Driver for the workflow being stepped.

Set by Driver.run() for the duration of the run; nested Drivers set and
reset it around their own run.

Usage:
    ```python
    def search(query):
        driver = get_current_driver()
        logger.debug(f"search run {driver.run_id}")
        response = yield fetch_with_cancel(client, "GET", f"/search?q={query}")
        return response.json()
    ```
"""


def get_current_driver() -> Optional["Driver"]:
    """Get the Driver running the current workflow, if any.

    Returns:
        The active Driver, or None when called outside a run
    """
    return CURRENT_DRIVER.get()
