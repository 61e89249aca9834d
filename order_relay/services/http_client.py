"""
Shared HTTP Client

One httpx.AsyncClient for every partner call, with a bounded timeout.
"""

from typing import Optional

import httpx

from order_relay.config import settings
from order_relay.utils.logging_config import get_logger

logger = get_logger(__name__)

_http_client: Optional[httpx.AsyncClient] = None


def get_http_client() -> httpx.AsyncClient:
    """
    Get or create the shared AsyncClient instance.

    Returns:
        AsyncClient configured with the upstream timeout
    """
    global _http_client
    if _http_client is None or _http_client.is_closed:
        _http_client = httpx.AsyncClient(
            timeout=httpx.Timeout(settings.upstream_timeout_seconds)
        )
        logger.debug(
            "Created shared HTTP client",
            extra={"timeout_seconds": settings.upstream_timeout_seconds},
        )
    return _http_client


async def close_http_client() -> None:
    """Close the shared client, if one was created"""
    global _http_client
    if _http_client is not None:
        await _http_client.aclose()
        _http_client = None
