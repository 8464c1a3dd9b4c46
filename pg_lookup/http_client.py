from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import httpx

from .config import Settings


def build_client(settings: Settings) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=settings.request_timeout_seconds)


@asynccontextmanager
async def client_scope(
    client: Optional[httpx.AsyncClient], settings: Settings
) -> AsyncIterator[httpx.AsyncClient]:
    """Yield the caller's client, or a short-lived one closed on exit."""
    if client is not None:
        yield client
        return

    async with build_client(settings) as own_client:
        yield own_client
