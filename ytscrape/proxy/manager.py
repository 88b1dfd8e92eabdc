"""Self-maintained proxy pool with a file cache and random rotation.

A pool is populated, in priority order, from a static proxy list, from a
cache file written by an earlier refresh with the same configuration, or by
sweeping the eligible public providers until ``max_proxies`` candidates have
been collected. Refreshes are serialised through a single in-flight task so
concurrent warmers share one sweep.
"""

from __future__ import annotations

import asyncio
import logging
import os
import random
import sys
import tempfile
import time
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path

from ytscrape.middleware.error_handler import (
    NoProxiesFound,
    NoProxyAvailable,
    UnsupportedProxyProtocol,
)
from ytscrape.proxy.codec import (
    deduplicate_proxies,
    get_expiry,
    is_expired,
    normalize_countries,
    normalize_proxy_list,
    read_cache_file,
    write_cache_file,
    write_proxy_list_file,
)
from ytscrape.proxy.providers import DEFAULT_PROVIDERS, ProviderSet
from ytscrape.proxy.types import SUPPORTED_PROTOCOLS, Proxy, ProxyCacheRecord

logger = logging.getLogger(__name__)

CACHE_FILENAME = "ytscrape.cache.json"
APP_DIR_NAME = "ytscrape"


def default_cache_folder() -> Path:
    """Pick a writable per-user cache directory for the current platform."""
    override = os.environ.get("YTSCRAPE_CACHE_DIR")
    if override:
        return Path(override).resolve()
    if os.environ.get("AWS_LAMBDA_FUNCTION_NAME") or os.environ.get("NETLIFY"):
        return Path(tempfile.gettempdir()) / APP_DIR_NAME
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Caches" / APP_DIR_NAME
    if sys.platform == "win32":
        base = os.environ.get("LOCALAPPDATA")
        return (Path(base) if base else Path.home() / "AppData" / "Local") / APP_DIR_NAME
    xdg = os.environ.get("XDG_CACHE_HOME")
    return (Path(xdg) if xdg else Path.home() / ".cache") / APP_DIR_NAME


class ProxyPool:
    """One rotation context: a bounded set of same-protocol proxies."""

    def __init__(
        self,
        *,
        countries: Iterable[str] = (),
        protocol: str = "http",
        providers: ProviderSet = DEFAULT_PROVIDERS,
        selected_providers: Iterable[str] = (),
        proxy_list: Iterable[Proxy | dict] | None = None,
        max_proxies: int = 10,
        auto_rotate: bool = False,
        auto_update: bool = True,
        cache_period: float = 10,
        cache_folder: str | Path | None = None,
    ) -> None:
        if protocol not in SUPPORTED_PROTOCOLS:
            raise UnsupportedProxyProtocol(protocol)

        selected = list(selected_providers)
        self.protocol = protocol
        self.countries = normalize_countries(countries)
        self.providers = providers.select(selected) if selected else providers
        self.max_proxies = max_proxies
        self.auto_rotate = auto_rotate
        self.auto_update = auto_update
        self.cache_period = cache_period
        self.config_string = f"{max_proxies}{protocol}{''.join(sorted(self.countries))}"

        self._static_list = normalize_proxy_list(proxy_list or [])
        self._proxies: list[Proxy] = []
        self.current: Proxy | None = None
        self.cache_expiry: datetime | None = None

        folder = Path(cache_folder).resolve() if cache_folder else default_cache_folder()
        folder.mkdir(parents=True, exist_ok=True)
        self.cache_file = folder / CACHE_FILENAME

        self._refresh_task: asyncio.Task[None] | None = None
        self._refreshed = False

        if self.auto_update:
            try:
                asyncio.get_running_loop()
            except RuntimeError:
                # No loop yet; the first acquire() starts the refresh.
                pass
            else:
                self._start_refresh().add_done_callback(self._log_background_failure)

    @property
    def proxies(self) -> list[Proxy]:
        return list(self._proxies)

    def __len__(self) -> int:
        return len(self._proxies)

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    def _start_refresh(self) -> asyncio.Task[None]:
        task = asyncio.ensure_future(self.refresh())
        self._refresh_task = task
        task.add_done_callback(self._clear_refresh_task)
        return task

    def _clear_refresh_task(self, task: asyncio.Task[None]) -> None:
        if self._refresh_task is task:
            self._refresh_task = None

    @staticmethod
    def _log_background_failure(task: asyncio.Task[None]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Background proxy refresh failed: %s", exc)

    async def ensure_refreshed(self) -> None:
        """Start a refresh unless one is running, then wait for it."""
        task = self._refresh_task or self._start_refresh()
        await task

    async def refresh(self) -> None:
        """(Re)populate the pool from the static list, the cache, or the providers.

        Raises
        ------
        NoProxiesFound
            If every eligible provider came back empty.
        """
        started = time.perf_counter()

        if self._static_list:
            matching = [p for p in self._static_list if p.protocol == self.protocol]
            if matching:
                self._install(deduplicate_proxies(matching), expiry=None)
                logger.info(
                    "Loaded %d proxies from static list",
                    len(self._proxies),
                    extra={"proxy_count": len(self._proxies)},
                )
                return

        if self._load_cache():
            return

        collected: list[Proxy] = []
        for provider in self.providers.eligible(self.protocol, self.countries):
            try:
                found = await provider.fetch(self.countries, self.protocol)
            except Exception as exc:  # noqa: BLE001
                logger.warning(
                    "Provider %s failed: %s",
                    provider.name,
                    exc,
                    extra={"provider": provider.name},
                )
                continue
            logger.debug(
                "%d proxies from %s",
                len(found),
                provider.name,
                extra={"provider": provider.name, "proxy_count": len(found)},
            )
            collected.extend(found)
            if len(collected) >= self.max_proxies:
                break

        if not collected:
            raise NoProxiesFound(self.protocol)

        expiry = get_expiry(self.cache_period)
        self._install(deduplicate_proxies(collected), expiry=expiry)
        write_cache_file(
            self.cache_file,
            ProxyCacheRecord(
                expiry_in=expiry,
                config_string=self.config_string,
                proxies=self._proxies,
            ),
        )
        logger.info(
            "Refreshed proxy pool with %d proxies",
            len(self._proxies),
            extra={
                "proxy_count": len(self._proxies),
                "duration_ms": round((time.perf_counter() - started) * 1000, 1),
            },
        )

    def _load_cache(self) -> bool:
        try:
            record = read_cache_file(self.cache_file)
        except FileNotFoundError:
            logger.info("No proxy cache found, will be created after refresh")
            return False
        except ValueError as exc:
            logger.debug("Proxy cache unreadable: %s", exc)
            return False

        if record.config_string != self.config_string:
            logger.info("Proxy cache invalid due to configuration changes")
            return False
        if is_expired(record.expiry_in):
            logger.info("Proxy cache expired")
            return False

        proxies = [p for p in record.proxies if p.protocol == self.protocol]
        if not proxies:
            return False
        self._install(proxies, expiry=record.expiry_in)
        logger.info(
            "Loaded %d proxies from cache",
            len(self._proxies),
            extra={"proxy_count": len(self._proxies)},
        )
        return True

    def _install(self, proxies: list[Proxy], *, expiry: datetime | None) -> None:
        self._proxies = proxies[: self.max_proxies]
        self.current = self._proxies[0] if self._proxies else None
        self.cache_expiry = expiry
        self._refreshed = True

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    async def rotate(self, validate_cache: bool = False) -> Proxy:
        """Pick a new current proxy uniformly at random.

        With ``validate_cache`` an expired pool is refreshed first.
        """
        if validate_cache:
            if self.cache_expiry is not None:
                if is_expired(self.cache_expiry):
                    logger.debug("Proxy cache expired on rotate, refreshing")
                    await self.ensure_refreshed()
            elif not self._proxies:
                raise NoProxyAvailable("No cache available but validate_cache is true")

        if not self._proxies:
            raise NoProxyAvailable("No proxies available to rotate")
        self.current = random.choice(self._proxies)
        return self.current

    async def acquire(self) -> Proxy:
        """Return a usable proxy, rotating first when ``auto_rotate`` is set."""
        if self._refresh_task is not None:
            await self._refresh_task
        elif self.auto_update and not self._refreshed:
            await self.ensure_refreshed()

        if self.auto_rotate:
            return await self.rotate(validate_cache=self.auto_update)

        if self.current is None:
            raise NoProxyAvailable("No proxy available, the pool is empty")
        return self.current

    # ------------------------------------------------------------------
    # Export / stats
    # ------------------------------------------------------------------

    async def export_list(self, path: str | Path) -> None:
        if not self._proxies:
            await self.ensure_refreshed()
        if not self._proxies:
            raise NoProxyAvailable("No proxies available to export")
        write_proxy_list_file(path, self._proxies, self.protocol)  # type: ignore[arg-type]
        logger.info("Exported %d proxies to %s", len(self._proxies), path)

    def get_stats(self) -> dict:
        return {
            "proxy_count": len(self._proxies),
            "protocol": self.protocol,
            "countries": list(self.countries),
            "providers": list(self.providers.names()),
            "current": self.current.address if self.current else None,
            "cache_expiry": self.cache_expiry.isoformat() if self.cache_expiry else None,
            "refreshing": self._refresh_task is not None,
        }
