"""
Tests for HTTP requests as cancellable futures.

Requests go through httpx.MockTransport, so no network is involved.
"""

import asyncio

import httpx
import pytest

from pytakelatest import (
    CANCELLED,
    AbortedError,
    AbortReason,
    CancellableClient,
    CancellableFuture,
    fetch_with_cancel,
    take_latest,
)


def _slow_for(slow_queries: set[str], started: list[str]):
    """Handler that stalls on the given queries and echoes the rest."""

    async def handler(request: httpx.Request) -> httpx.Response:
        query = request.url.params.get("q", "")
        started.append(query)
        if query in slow_queries:
            await asyncio.sleep(60)
        return httpx.Response(200, json={"q": query})

    return handler


# =============================================================================
# fetch_with_cancel
# =============================================================================


@pytest.mark.asyncio
async def test_fetch_resolves_to_response(mock_client):
    future = fetch_with_cancel(mock_client, "get", "/search", params={"q": "python"})

    assert isinstance(future, CancellableFuture)
    assert future.name == "GET /search"

    response = await future
    assert response.status_code == 200
    assert response.json() == {"q": "python", "path": "/search"}


@pytest.mark.asyncio
async def test_abort_cancels_request_in_flight():
    started: list[str] = []
    transport = httpx.MockTransport(_slow_for({"slow"}, started))

    async with httpx.AsyncClient(transport=transport, base_url="https://api.test") as client:
        future = fetch_with_cancel(client, "GET", "/search", params={"q": "slow"})
        await asyncio.sleep(0.01)
        assert started == ["slow"]

        future.abort(AbortReason.CANCEL)

        with pytest.raises(AbortedError) as excinfo:
            await asyncio.wait_for(future, timeout=1)
        assert excinfo.value.is_cancel


@pytest.mark.asyncio
async def test_http_errors_are_domain_failures():
    transport = httpx.MockTransport(lambda request: httpx.Response(503))

    async with httpx.AsyncClient(transport=transport, base_url="https://api.test") as client:

        @take_latest
        def load():
            response = yield fetch_with_cancel(client, "GET", "/status")
            response.raise_for_status()
            return response

        with pytest.raises(httpx.HTTPStatusError) as excinfo:
            await load()
        assert excinfo.value.response.status_code == 503


# =============================================================================
# CancellableClient
# =============================================================================


@pytest.mark.asyncio
async def test_client_methods_return_cancellable_futures(mock_client):
    client = CancellableClient(mock_client)

    for method in (client.get, client.post, client.put, client.patch, client.delete):
        future = method("/items")
        assert isinstance(future, CancellableFuture)
        response = await future
        assert response.json()["path"] == "/items"


@pytest.mark.asyncio
async def test_shared_client_is_not_closed(mock_client):
    async with CancellableClient(mock_client) as client:
        assert client.client is mock_client

    assert not mock_client.is_closed


@pytest.mark.asyncio
async def test_owned_client_is_closed():
    async with CancellableClient(base_url="https://api.test") as client:
        inner = client.client
        assert inner.base_url.host == "api.test"

    assert inner.is_closed


def test_client_and_options_are_exclusive():
    with pytest.raises(ValueError):
        CancellableClient(httpx.AsyncClient(), timeout=5.0)


@pytest.mark.concurrency
@pytest.mark.asyncio
async def test_take_latest_search_aborts_stale_request():
    started: list[str] = []
    transport = httpx.MockTransport(_slow_for({"py"}, started))

    async with CancellableClient(transport=transport, base_url="https://api.test") as client:

        @take_latest
        def search(query):
            response = yield client.get("/search", params={"q": query})
            return response.json()

        stale = search("py")
        await asyncio.sleep(0.01)
        fresh = search("python")

        assert await asyncio.wait_for(stale, timeout=1) is CANCELLED
        assert await fresh == {"q": "python"}
        assert started == ["py", "python"]
