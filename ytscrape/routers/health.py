"""Health and readiness endpoints.

- GET /health: service status + proxy pool stats
- GET /readiness: 200 only when the proxy pool holds at least one proxy
  (always ready when the pool is disabled)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Response

from ytscrape.models.responses import ApiResponse

if TYPE_CHECKING:
    from ytscrape.proxy.manager import ProxyPool


def create_health_router(*, proxy_pool: ProxyPool | None = None) -> APIRouter:
    """Factory that creates the health router with injected dependencies."""

    health_router = APIRouter(tags=["health"])

    @health_router.get("/health")
    async def health() -> dict:
        """Service health check with pool statistics."""
        proxy_stats = proxy_pool.get_stats() if proxy_pool is not None else {"enabled": False}

        return ApiResponse(
            success=True,
            data={
                "status": "healthy",
                "proxy_pool": proxy_stats,
            },
        ).model_dump()

    @health_router.get("/readiness")
    async def readiness(response: Response) -> dict:
        """Readiness probe, 200 iff the pool is disabled or has a proxy."""
        proxy_count = len(proxy_pool) if proxy_pool is not None else 0
        is_ready = proxy_pool is None or proxy_count > 0

        if not is_ready:
            response.status_code = 503

        return ApiResponse(
            success=is_ready,
            data={
                "ready": is_ready,
                "proxy_count": proxy_count,
            },
            error=None if is_ready else "Service not ready",
        ).model_dump()

    return health_router
