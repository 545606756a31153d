"""
Dashboard Effect

A dashboard loads two panels in parallel with all_with_cancel() and guards
the whole load with a timeout expressed as race_with_cancel() against a
timer. The load runs as an Effect keyed by the selected account: switching
accounts cancels the load in flight, and dispose() (the unmount) cancels
whatever is left.

## Run with
```bash
PYTHONPATH=src python3 examples/dashboard_effect.py
```
"""

import asyncio
import logging

from pytakelatest import Effect, all_with_cancel, cancellable, delay, race_with_cancel

logging.basicConfig(level=logging.CRITICAL)

TIMED_OUT = "timed out"


@cancellable
async def load_panel(account: str, panel: str, latency: float) -> str:
    try:
        await asyncio.sleep(latency)
    except asyncio.CancelledError:
        print(f"  [{account}] {panel} request aborted")
        raise
    return f"{panel} for {account}"


def load_dashboard(account):
    print(f"loading dashboard for {account}")
    try:
        panels = yield race_with_cancel([
            all_with_cancel([
                load_panel(account, "profile", 0.1),
                load_panel(account, "orders", 0.3),
            ]),
            delay(1.0, TIMED_OUT),
        ])
    finally:
        print(f"  [{account}] load finished or unwound")

    print(f"  [{account}] panels: {panels}")
    return panels


async def main():
    effect = Effect(load_dashboard, name="dashboard")

    effect.update("alice")
    await asyncio.sleep(0.15)

    # Switching accounts aborts alice's orders request
    latest = effect.update("bob")
    await latest

    effect.update("carol")
    await asyncio.sleep(0.05)
    effect.dispose()
    await effect.task

    print(f"last run status: {effect.driver.status}")


if __name__ == "__main__":
    asyncio.run(main())
