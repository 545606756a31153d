"""HTTP requests as cancellable futures.

Thin adapters over httpx.AsyncClient: every request starts immediately and
is returned as a CancellableFuture, so a workflow can yield it and a
cancelled Driver aborts the request in flight. Aborting cancels the task
awaiting httpx, which closes the underlying connection attempt.

Example:
    ```python
    async with CancellableClient(base_url="https://api.example.org") as client:

        @take_latest
        def search(query):
            response = yield client.get("/search", params={"q": query})
            response.raise_for_status()
            return response.json()

        results = await search("python")
    ```
"""

import logging
from typing import Any

import httpx

from pytakelatest.core import CancellableFuture

logger = logging.getLogger(__name__)

__all__ = ["fetch_with_cancel", "CancellableClient"]


def fetch_with_cancel(
    client: httpx.AsyncClient, method: str, url: httpx.URL | str, **kwargs: Any
) -> CancellableFuture[httpx.Response]:
    """Send a request and return it as a CancellableFuture.

    Args:
        client: Client used to send the request
        method: HTTP method
        url: Request URL (relative URLs resolve against the client's base_url)
        **kwargs: Passed through to httpx.AsyncClient.request()

    Returns:
        CancellableFuture resolving to the httpx.Response
    """
    return CancellableFuture(
        client.request(method, url, **kwargs),
        name=f"{method.upper()} {url}",
    )


class CancellableClient:
    """httpx client whose request methods return CancellableFutures.

    Composition - CancellableClient HAS-A httpx.AsyncClient. Pass an
    existing client to share its connection pool (the caller keeps
    ownership), or pass httpx.AsyncClient keyword arguments to have one
    created and closed by this object.

    Usage:
        async with CancellableClient(timeout=10.0) as client:
            future = client.get("https://example.org")
            response = await future
    """

    def __init__(self, client: httpx.AsyncClient | None = None, **client_kwargs: Any):
        if client is not None and client_kwargs:
            raise ValueError("pass either an existing client or client options, not both")

        self._owns_client = client is None
        self._client = client if client is not None else httpx.AsyncClient(**client_kwargs)

    @property
    def client(self) -> httpx.AsyncClient:
        """The wrapped httpx client."""
        return self._client

    def request(
        self, method: str, url: httpx.URL | str, **kwargs: Any
    ) -> CancellableFuture[httpx.Response]:
        return fetch_with_cancel(self._client, method, url, **kwargs)

    def get(self, url: httpx.URL | str, **kwargs: Any) -> CancellableFuture[httpx.Response]:
        return self.request("GET", url, **kwargs)

    def post(self, url: httpx.URL | str, **kwargs: Any) -> CancellableFuture[httpx.Response]:
        return self.request("POST", url, **kwargs)

    def put(self, url: httpx.URL | str, **kwargs: Any) -> CancellableFuture[httpx.Response]:
        return self.request("PUT", url, **kwargs)

    def patch(self, url: httpx.URL | str, **kwargs: Any) -> CancellableFuture[httpx.Response]:
        return self.request("PATCH", url, **kwargs)

    def delete(self, url: httpx.URL | str, **kwargs: Any) -> CancellableFuture[httpx.Response]:
        return self.request("DELETE", url, **kwargs)

    async def aclose(self) -> None:
        """Close the wrapped client if this object created it."""
        if self._owns_client:
            await self._client.aclose()
            logger.debug("CancellableClient closed its httpx client")

    async def __aenter__(self) -> "CancellableClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
