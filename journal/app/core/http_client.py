"""Shared HTTP client management for connection pooling.

The client is initialized on application startup and shared by the
inference provider for connection reuse.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import httpx

from journal.app.core.config import settings


_shared_http_client: httpx.AsyncClient | None = None


def get_http_client() -> httpx.AsyncClient:
    """Get the shared HTTP client instance.

    Raises:
        RuntimeError: If the HTTP client has not been initialized.
    """
    if _shared_http_client is None:
        raise RuntimeError(
            "HTTP client not initialized. Ensure lifespan context is active."
        )
    return _shared_http_client


def _build_timeout() -> httpx.Timeout:
    # Inference completions are slow to start; read gets the long budget.
    return httpx.Timeout(
        connect=settings.httpx_connect_timeout,
        read=settings.httpx_read_timeout,
        write=settings.httpx_write_timeout,
        pool=settings.httpx_pool_timeout,
    )


def _build_limits() -> httpx.Limits:
    return httpx.Limits(
        max_connections=settings.httpx_max_connections,
        max_keepalive_connections=settings.httpx_max_keepalive_connections,
        keepalive_expiry=settings.httpx_keepalive_expiry,
    )


@asynccontextmanager
async def init_http_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    """Initialize and yield the shared HTTP client.

    Used in the FastAPI lifespan:

        @asynccontextmanager
        async def lifespan(app: FastAPI):
            async with init_http_client():
                yield
    """
    global _shared_http_client

    _shared_http_client = httpx.AsyncClient(
        timeout=_build_timeout(), limits=_build_limits()
    )

    try:
        yield _shared_http_client
    finally:
        if _shared_http_client is not None:
            await _shared_http_client.aclose()
            _shared_http_client = None
