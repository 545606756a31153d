"""
Future combinators with fan-out abort.

Combine several suspension points into one, under the four usual
completion policies, while keeping every constituent reachable by
cancellation:

- all:        results of every constituent, in order; fails fast on the first failure
- race:       outcome of the first constituent to settle
- any:        result of the first constituent to succeed
- allSettled: the outcome of every constituent, in order

The combined future is a CombinedFuture, a CancellableFuture whose
constituents start on creation. Aborting it aborts every constituent that
exposes abort() (with the same reason) and skips the rest, so a workflow
can yield a combination as a single suspension point and Driver
cancellation still reaches every request underneath. This holds after
the combination settled too: abort a timeout race to stop the request
that lost it.

These are ordinary functions; nothing global is patched.

Example:
    ```python
    def dashboard(client):
        profile, orders = yield all_with_cancel([
            fetch_with_cancel(client, "GET", "/profile"),
            fetch_with_cancel(client, "GET", "/orders"),
        ])
        return profile.json(), orders.json()

    def with_timeout(client):
        # A timeout is a race against a timer
        response = yield race_with_cancel([
            fetch_with_cancel(client, "GET", "/slow"),
            delay(5.0),
        ])
        return response
    ```
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

from pytakelatest.core import AbortReason, CancellableFuture, is_abortable

logger = logging.getLogger(__name__)

__all__ = [
    "CombinePolicy",
    "SettledResult",
    "AllFailedError",
    "CombinedFuture",
    "combine",
    "all_with_cancel",
    "race_with_cancel",
    "any_with_cancel",
    "all_settled_with_cancel",
]

T = TypeVar("T")


class CombinePolicy(str, Enum):
    """Completion policy of a combined future."""

    ALL = "all"
    RACE = "race"
    ANY = "any"
    ALL_SETTLED = "allSettled"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class SettledResult(Generic[T]):
    """
    Outcome of one constituent in an allSettled combination.

    Attributes:
        status: "fulfilled" or "rejected"
        value: The constituent's result when fulfilled
        reason: The constituent's exception when rejected
    """

    status: str
    value: T | None = None
    reason: BaseException | None = None

    @property
    def is_fulfilled(self) -> bool:
        return self.status == "fulfilled"

    @property
    def is_rejected(self) -> bool:
        return self.status == "rejected"


class AllFailedError(Exception):
    """
    Every constituent of an any combination failed.

    Attributes:
        errors: The constituents' exceptions, in input order
    """

    def __init__(self, errors: list[BaseException]):
        super().__init__(f"all {len(errors)} futures failed")
        self.errors = errors


class CombinedFuture(CancellableFuture[T]):
    """
    CancellableFuture over several constituents.

    Constituents are started when the combination is created. abort()
    calls abort(reason) on every constituent exposing it, and keeps doing
    so after the combination settled: a race won by a timer, or an all
    that failed fast, still has constituents running underneath. A
    settled combination keeps its outcome; only the constituents are
    reached.

    Attributes:
        members: The constituents, in input order
        policy: Completion policy
    """

    def __init__(self, members: list[Any], policy: CombinePolicy):
        self.members = members
        self.policy = policy
        futures = [_as_future(member) for member in members]
        super().__init__(
            _POLICIES[policy](futures),
            on_abort=self._fan_out,
            name=f"{policy}_with_cancel[{len(members)}]",
        )

    def abort(self, reason: AbortReason | str = AbortReason.ABORTED) -> None:
        if self.done():
            self._fan_out(reason)
            return
        super().abort(reason)

    def _fan_out(self, reason: AbortReason | str) -> None:
        aborted = 0
        for member in self.members:
            if is_abortable(member):
                member.abort(reason)
                aborted += 1
        logger.debug(f"{self.policy} combination aborted {aborted}/{len(self.members)} constituents")


def combine(futures: Iterable[Any], policy: CombinePolicy | str) -> CombinedFuture[Any]:
    """
    Combine futures under a completion policy.

    Args:
        futures: CancellableFutures, other awaitables, or plain values
                 (plain values count as already resolved)
        policy: CombinePolicy or its tag ("all", "race", "any", "allSettled")

    Returns:
        A CombinedFuture whose abort() fans out to every constituent

    Raises:
        ValueError: On an unknown policy, or race over no futures
    """
    members = list(futures)
    policy = CombinePolicy(policy)

    if policy is CombinePolicy.RACE and not members:
        raise ValueError("race_with_cancel() needs at least one future")

    return CombinedFuture(members, policy)


def all_with_cancel(futures: Iterable[Any]) -> CombinedFuture[list[Any]]:
    """Resolve to every result in order; fail on the first failure."""
    return combine(futures, CombinePolicy.ALL)


def race_with_cancel(futures: Iterable[Any]) -> CombinedFuture[Any]:
    """Settle like the first constituent to settle."""
    return combine(futures, CombinePolicy.RACE)


def any_with_cancel(futures: Iterable[Any]) -> CombinedFuture[Any]:
    """Resolve to the first success; fail with AllFailedError if none succeeds."""
    return combine(futures, CombinePolicy.ANY)


def all_settled_with_cancel(futures: Iterable[Any]) -> CombinedFuture[list[SettledResult]]:
    """Resolve to a SettledResult per constituent, in order."""
    return combine(futures, CombinePolicy.ALL_SETTLED)


# =============================================================================
# Policy implementations
# =============================================================================
#
# asyncio.wait() is used instead of asyncio.gather() because cancelling a
# gather cancels its children. Aborting the combined future must leave
# constituents without abort() running.


def _as_future(member: Any) -> "asyncio.Future[Any]":
    if isinstance(member, asyncio.Future):
        return member

    if isinstance(member, Awaitable):
        future = asyncio.ensure_future(member)
        future.add_done_callback(_retrieve_exception)
        return future

    future = asyncio.get_running_loop().create_future()
    future.set_result(member)
    return future


def _retrieve_exception(future: "asyncio.Future[Any]") -> None:
    # Wrapper tasks may settle after the combination no longer cares
    if not future.cancelled():
        future.exception()


async def _all(futures: list["asyncio.Future[Any]"]) -> list[Any]:
    pending = set(futures)
    while pending:
        done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_EXCEPTION)
        for future in futures:
            if future in done and (future.cancelled() or future.exception() is not None):
                return future.result()
    return [future.result() for future in futures]


async def _race(futures: list["asyncio.Future[Any]"]) -> Any:
    done, _ = await asyncio.wait(futures, return_when=asyncio.FIRST_COMPLETED)
    first = next(future for future in futures if future in done)
    return first.result()


async def _any(futures: list["asyncio.Future[Any]"]) -> Any:
    pending = set(futures)
    while pending:
        done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
        for future in futures:
            if future in done and not future.cancelled() and future.exception() is None:
                return future.result()

    errors: list[BaseException] = []
    for future in futures:
        if future.cancelled():
            errors.append(asyncio.CancelledError())
        else:
            errors.append(future.exception())
    raise AllFailedError(errors)


async def _all_settled(futures: list["asyncio.Future[Any]"]) -> list[SettledResult]:
    if futures:
        await asyncio.wait(futures)

    settled: list[SettledResult] = []
    for future in futures:
        if future.cancelled():
            settled.append(SettledResult(status="rejected", reason=asyncio.CancelledError()))
        elif future.exception() is not None:
            settled.append(SettledResult(status="rejected", reason=future.exception()))
        else:
            settled.append(SettledResult(status="fulfilled", value=future.result()))
    return settled


_POLICIES: dict[CombinePolicy, Callable[[list["asyncio.Future[Any]"]], Awaitable[Any]]] = {
    CombinePolicy.ALL: _all,
    CombinePolicy.RACE: _race,
    CombinePolicy.ANY: _any,
    CombinePolicy.ALL_SETTLED: _all_settled,
}
