"""
Autocomplete Search

Simulates a user typing into a search box. Every keystroke calls a
@take_latest workflow, so each new query aborts the request still in
flight and only the last query's results are shown.

The HTTP backend is an httpx.MockTransport whose latency grows with the
query length, so stale requests would otherwise arrive late.

## Run with
```bash
PYTHONPATH=src python3 examples/autocomplete_search.py
```
"""

import asyncio
import logging

import httpx

from pytakelatest import CANCELLED, CancellableClient, take_latest

logging.basicConfig(level=logging.CRITICAL)

WORDS = ["pydantic", "pytest", "python", "pytorch", "pyyaml"]

# Counts requests the backend actually finished
COMPLETED_REQUESTS = 0


async def search_backend(request: httpx.Request) -> httpx.Response:
    global COMPLETED_REQUESTS
    query = request.url.params["q"]
    await asyncio.sleep(0.05 * len(query))
    COMPLETED_REQUESTS += 1
    return httpx.Response(200, json=[word for word in WORDS if word.startswith(query)])


async def main():
    transport = httpx.MockTransport(search_backend)

    async with CancellableClient(transport=transport, base_url="https://search.local") as client:

        @take_latest(name="autocomplete")
        def suggest(query):
            response = yield client.get("/suggest", params={"q": query})
            response.raise_for_status()
            return response.json()

        tasks = {}
        for query in ["p", "py", "pyt", "pyth"]:
            print(f"typed: {query!r}")
            tasks[query] = suggest(query)
            await asyncio.sleep(0.03)

        for query, task in tasks.items():
            result = await task
            if result is CANCELLED:
                print(f"  {query!r}: cancelled")
            else:
                print(f"  {query!r}: {result}")

    print(f"Requests completed by backend: {COMPLETED_REQUESTS}")


if __name__ == "__main__":
    asyncio.run(main())
