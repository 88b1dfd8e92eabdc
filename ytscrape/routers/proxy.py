"""Proxy pool operator endpoints.

- GET|POST /api/v1/proxy/warm: refresh the pool (sharing any in-flight
  refresh) and optionally export it as a proxy list file.

Protected by BearerTokenAuthMiddleware when a warm secret is configured.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import APIRouter, Query

from ytscrape.middleware.error_handler import NoProxyAvailable
from ytscrape.models.responses import ApiResponse

if TYPE_CHECKING:
    from ytscrape.config.settings import ServiceSettings
    from ytscrape.proxy.manager import ProxyPool

logger = logging.getLogger(__name__)

WARM_PATH = "/api/v1/proxy/warm"

_TRUTHY = {"1", "true", "yes"}


def create_proxy_router(
    *,
    pool: ProxyPool | None,
    settings: ServiceSettings,
) -> APIRouter:
    """Factory that creates the proxy router with injected dependencies."""
    proxy_router = APIRouter(tags=["proxy"])

    @proxy_router.api_route(WARM_PATH, methods=["GET", "POST"])
    async def warm(write_list: str | None = Query(None, alias="writeList")) -> dict:
        """Warm the proxy cache; ``writeList=1`` also exports the pool when enabled."""
        if pool is None:
            raise NoProxyAvailable("Proxy pool is disabled")

        await pool.ensure_refreshed()

        list_written = False
        if (write_list or "").lower() in _TRUTHY and settings.proxy_list_write_enabled:
            await pool.export_list(settings.proxy_list_export_path)
            list_written = True

        return ApiResponse(
            success=True,
            data={
                "message": "Proxy cache warmed.",
                "proxies": len(pool),
                "cache_expiry": pool.cache_expiry.isoformat() if pool.cache_expiry else None,
                "list_written": list_written,
            },
        ).model_dump()

    return proxy_router
