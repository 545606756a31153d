"""
Simple Workflow

A generator workflow waits on two timers and is driven to completion,
then a second run of the same workflow is cancelled while suspended.

## Run with
```bash
PYTHONPATH=src python3 examples/simple_workflow.py
```
"""

import asyncio
import logging

from pytakelatest import CANCELLED, delay, start_driver

logging.basicConfig(level=logging.CRITICAL)


def add_later(a, b):
    try:
        x = yield delay(0.1, a)
        print(f"  received {x}")
        total = yield delay(0.1, x + b)
        print(f"  received {total}")
        return total
    finally:
        print("  workflow unwound")


async def main():
    print("Run to completion:")
    result = await start_driver(add_later, 5, 3).run()
    print(f"Result: {result}")

    print("Cancel while suspended:")
    driver = start_driver(add_later, 5, 3)
    task = asyncio.create_task(driver.run())
    await asyncio.sleep(0.15)
    driver.cancel()

    result = await task
    print(f"Result is CANCELLED: {result is CANCELLED} (status={driver.status})")


if __name__ == "__main__":
    asyncio.run(main())
