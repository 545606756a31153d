"""
Pytest configuration and fixtures for pytakelatest tests.

Provides a recording Abortable and an httpx client backed by a mock
transport. Test doubles and sample workflows live in helpers.py.
"""

from collections.abc import AsyncGenerator

import httpx
import pytest
from helpers import RecordingFuture


@pytest.fixture
async def recording_future() -> RecordingFuture:
    """A fresh RecordingFuture bound to the running loop."""
    return RecordingFuture()


@pytest.fixture
def cleanup_log() -> list:
    """List collecting unwind markers from workflows."""
    return []


def _echo_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"q": request.url.params.get("q", ""), "path": request.url.path})


@pytest.fixture
async def mock_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    """AsyncClient answering every request with its query and path as JSON."""
    client = httpx.AsyncClient(
        transport=httpx.MockTransport(_echo_handler), base_url="https://api.test"
    )
    yield client
    await client.aclose()
