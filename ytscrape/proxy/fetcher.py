"""Small httpx helpers used by the proxy providers and the liveness validator."""

from __future__ import annotations

from typing import Any

import httpx

DEFAULT_TIMEOUT_SECONDS = 10.0


async def fetch_response(
    url: str,
    *,
    proxy: str | None = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> httpx.Response:
    """GET *url*, optionally through *proxy*, with a hard per-request timeout."""
    async with httpx.AsyncClient(
        proxy=proxy,
        timeout=httpx.Timeout(timeout),
        follow_redirects=True,
    ) as client:
        return await client.get(url)


async def fetch_text(url: str, *, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> str:
    """GET *url* and return the body.

    Raises
    ------
    httpx.HTTPStatusError
        If the response status is not 2xx.
    """
    response = await fetch_response(url, timeout=timeout)
    response.raise_for_status()
    return response.text


async def fetch_json(url: str, *, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> Any:
    response = await fetch_response(url, timeout=timeout)
    response.raise_for_status()
    return response.json()
