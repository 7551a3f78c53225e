"""
Shared HTTP client utilities for calls to the backend validator.

Calls are made exactly once: transport errors surface to the protocol
operation, which decides how to report them.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx

from eark_validator.core.config import settings

logger = logging.getLogger(__name__)


def get_async_client(timeout: Optional[float] = None) -> httpx.AsyncClient:
    """Create a configured AsyncClient with shared limits/timeouts."""
    return httpx.AsyncClient(
        timeout=timeout or settings.HTTP_CLIENT_TIMEOUT,
        limits=httpx.Limits(
            max_keepalive_connections=settings.HTTP_MAX_KEEPALIVE_CONNECTIONS,
            max_connections=settings.HTTP_MAX_CONNECTIONS,
        ),
    )


@asynccontextmanager
async def get_managed_client(
    persistent_client: Optional[httpx.AsyncClient] = None,
    timeout: Optional[float] = None
):
    """
    Context manager for HTTP client lifecycle.

    Reuses the persistent client if provided, otherwise creates a temporary
    one and closes it on exit.

    Args:
        persistent_client: Optional persistent client to reuse
        timeout: Optional timeout override

    Yields:
        httpx.AsyncClient instance

    Example:
        async with get_managed_client(self._client, self.timeout) as client:
            response = await client.post(url, ...)
    """
    should_close = persistent_client is None
    client = persistent_client or get_async_client(timeout=timeout)
    try:
        yield client
    finally:
        if should_close:
            await client.aclose()
            logger.debug("Closed temporary HTTP client")
