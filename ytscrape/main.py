"""FastAPI application entry point with lifespan management.

Startup: configure logging, warm the proxy pool in the background (static
list, cache file, or provider sweep).
Shutdown: cancel a still-running warm-up.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI

from ytscrape.config.settings import ServiceSettings
from ytscrape.logging_config import configure_logging
from ytscrape.middleware.auth import BearerTokenAuthMiddleware
from ytscrape.middleware.error_handler import register_error_handlers
from ytscrape.middleware.request_id import RequestIdMiddleware
from ytscrape.proxy.codec import read_proxy_list_file
from ytscrape.proxy.manager import ProxyPool
from ytscrape.proxy.types import Proxy
from ytscrape.routers.health import create_health_router
from ytscrape.routers.proxy import WARM_PATH, create_proxy_router
from ytscrape.routers.transcripts import create_transcripts_router
from ytscrape.transcripts.api import TranscriptApi
from ytscrape.transcripts.proxies import (
    ProxyConfig,
    RotatingPoolProxyConfig,
    WebshareProxyConfig,
)

logger = logging.getLogger(__name__)


def _load_static_list(path: str | None) -> list[Proxy]:
    if not path:
        return []
    if not Path(path).is_file():
        logger.warning("Proxy list file %s not found, ignoring", path)
        return []
    try:
        return read_proxy_list_file(path)
    except ValueError as exc:
        logger.warning("Proxy list file %s is not valid JSON: %s", path, exc)
        return []


def build_proxy_pool(settings: ServiceSettings) -> ProxyPool | None:
    """Build the proxy pool described by *settings*, or None when disabled."""
    if not settings.proxy_enabled:
        return None
    return ProxyPool(
        countries=settings.proxy_countries,
        protocol=settings.proxy_protocol,
        selected_providers=settings.proxy_selected_providers,
        proxy_list=_load_static_list(settings.proxy_list_path),
        max_proxies=settings.proxy_max_proxies,
        auto_rotate=settings.proxy_auto_rotate,
        auto_update=settings.proxy_auto_update,
        cache_period=settings.proxy_cache_period_minutes,
        cache_folder=settings.proxy_cache_dir,
    )


def build_proxy_config(
    settings: ServiceSettings, pool: ProxyPool | None
) -> ProxyConfig | None:
    """Residential credentials win over the free pool; neither means direct."""
    if settings.webshare_enabled:
        return WebshareProxyConfig(
            username=settings.webshare_username,  # type: ignore[arg-type]
            password=settings.webshare_password,  # type: ignore[arg-type]
            filter_ip_locations=settings.proxy_countries,
            retries_when_blocked=settings.transcript_retries_when_blocked,
        )
    if pool is not None:
        return RotatingPoolProxyConfig(
            pool, retries_when_blocked=settings.transcript_retries_when_blocked
        )
    return None


def _log_warm_failure(task: asyncio.Task[None]) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Startup proxy warm-up failed: %s", exc)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown logic."""
    settings: ServiceSettings = app.state.settings
    pool: ProxyPool | None = app.state.proxy_pool

    configure_logging(settings.log_level, settings.log_file)
    logger.info("Starting transcript service on port %d", settings.port)

    warm_task: asyncio.Task[None] | None = None
    if pool is not None and not settings.webshare_enabled:
        warm_task = asyncio.create_task(pool.ensure_refreshed())
        warm_task.add_done_callback(_log_warm_failure)

    yield

    logger.info("Shutting down transcript service…")
    if warm_task is not None and not warm_task.done():
        warm_task.cancel()
        try:
            await warm_task
        except asyncio.CancelledError:
            pass
    logger.info("Transcript service shut down")


def create_app(
    settings: ServiceSettings | None = None,
    *,
    proxy_pool: ProxyPool | None = None,
    transcript_api: TranscriptApi | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Components are built from ``settings`` unless injected.
    """
    settings = settings or ServiceSettings()
    pool = proxy_pool if proxy_pool is not None else build_proxy_pool(settings)
    api = transcript_api or TranscriptApi(
        build_proxy_config(settings, pool),
        timeout=settings.transcript_request_timeout_seconds,
    )

    app = FastAPI(
        title="ytscrape transcript service",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.proxy_pool = pool
    app.state.transcript_api = api

    # Register error handlers
    register_error_handlers(app)

    # Middleware (order: request_id → auth)
    # Note: Starlette middleware is applied in reverse order of add_middleware calls
    app.add_middleware(
        BearerTokenAuthMiddleware,
        secret=settings.proxy_warm_secret,
        protected_paths=[WARM_PATH],
    )
    app.add_middleware(RequestIdMiddleware)

    # Mount routers
    app.include_router(create_health_router(proxy_pool=pool))
    app.include_router(
        create_transcripts_router(
            transcript_api=api,
            default_languages=settings.transcript_default_languages,
        )
    )
    app.include_router(create_proxy_router(pool=pool, settings=settings))

    return app
