"""
Shared HTTP client singleton.
Used for the Outbound Call Service and the Interview Metadata Provider.
"""

import httpx
from typing import Optional

from .config import settings

# Singleton client instance
_client: Optional[httpx.AsyncClient] = None


def _build_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=httpx.Timeout(
            settings.http_timeout_seconds,
            connect=settings.http_connect_timeout_seconds,
        ),
        limits=httpx.Limits(max_connections=50, max_keepalive_connections=10),
        headers={"Accept": "application/json"},
        follow_redirects=True,
    )


async def get_http_client() -> httpx.AsyncClient:
    """
    Get the shared httpx AsyncClient.
    A closed client is replaced transparently.
    """
    global _client
    if _client is None or _client.is_closed:
        _client = _build_client()
    return _client


async def close_http_client() -> None:
    """Close the shared HTTP client."""
    global _client
    if _client is not None and not _client.is_closed:
        await _client.aclose()
    _client = None

