"""Shared httpx client handling."""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import httpx


def make_timeout(seconds: float) -> httpx.Timeout:
    """Bounded timeout for a single API call."""
    return httpx.Timeout(seconds, connect=min(seconds, 10.0), pool=5.0)


@asynccontextmanager
async def client_session(
    client: Optional[httpx.AsyncClient], timeout: float
) -> AsyncIterator[httpx.AsyncClient]:
    """
    Yield the injected client, or a short-lived one when none was given.

    An injected client is never closed here; its owner closes it.
    """
    if client is not None:
        yield client
        return

    async with httpx.AsyncClient(timeout=make_timeout(timeout)) as session:
        yield session
