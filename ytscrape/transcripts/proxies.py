"""Proxy configurations the transcript pipeline can route through.

A config answers two questions per attempt: which proxy options to use first
(``initial_options``) and which to use after a block (``rotated_options``).
Options are a ``{"http": url, "https": url}`` mapping or ``None`` for a
direct connection.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from ytscrape.transcripts.errors import InvalidProxyConfig

if TYPE_CHECKING:
    from ytscrape.proxy.manager import ProxyPool
    from ytscrape.proxy.types import Proxy

ProxyOptions = dict[str, str]


class ProxyConfig:
    """Base config: direct connection, no retries."""

    kind = "none"

    def to_proxy_options(self) -> ProxyOptions | None:
        return None

    @property
    def prevent_keeping_connections_alive(self) -> bool:
        return False

    @property
    def retries_when_blocked(self) -> int:
        return 0

    async def initial_options(self) -> ProxyOptions | None:
        return self.to_proxy_options()

    async def rotated_options(self) -> ProxyOptions | None:
        return self.to_proxy_options()


class GenericProxyConfig(ProxyConfig):
    """Fixed HTTP/HTTPS proxy URLs; a missing scheme falls back to the other."""

    kind = "generic"

    def __init__(self, http_url: str | None = None, https_url: str | None = None) -> None:
        if not http_url and not https_url:
            raise InvalidProxyConfig(
                "GenericProxyConfig requires you to define at least one of the two: "
                "http or https"
            )
        self.http_url = http_url
        self.https_url = https_url

    def to_proxy_options(self) -> ProxyOptions:
        return {
            "http": self.http_url or self.https_url,  # type: ignore[dict-item]
            "https": self.https_url or self.http_url,  # type: ignore[dict-item]
        }


class WebshareProxyConfig(ProxyConfig):
    """Webshare rotating residential endpoint.

    Every new connection gets a fresh exit IP, so keep-alive is disabled to
    force one.
    """

    kind = "webshare"
    DEFAULT_DOMAIN_NAME = "p.webshare.io"
    DEFAULT_PORT = 80

    def __init__(
        self,
        username: str,
        password: str,
        filter_ip_locations: Iterable[str] = (),
        retries_when_blocked: int = 10,
        domain_name: str = DEFAULT_DOMAIN_NAME,
        proxy_port: int = DEFAULT_PORT,
    ) -> None:
        self.username = username
        self.password = password
        self.filter_ip_locations = [code.upper() for code in filter_ip_locations]
        self._retries_when_blocked = retries_when_blocked
        self.domain_name = domain_name
        self.proxy_port = proxy_port

    @property
    def url(self) -> str:
        locations = "".join(f"-{code}" for code in self.filter_ip_locations)
        return (
            f"http://{self.username}{locations}-rotate:{self.password}"
            f"@{self.domain_name}:{self.proxy_port}/"
        )

    def to_proxy_options(self) -> ProxyOptions:
        return {"http": self.url, "https": self.url}

    @property
    def prevent_keeping_connections_alive(self) -> bool:
        return True

    @property
    def retries_when_blocked(self) -> int:
        return self._retries_when_blocked


class RotatingPoolProxyConfig(ProxyConfig):
    """Routes each attempt through the current member of a ``ProxyPool``."""

    kind = "rotating"

    def __init__(self, pool: ProxyPool, retries_when_blocked: int = 5) -> None:
        self.pool = pool
        self._retries_when_blocked = retries_when_blocked

    @property
    def retries_when_blocked(self) -> int:
        return self._retries_when_blocked

    @staticmethod
    def _options_for(proxy: Proxy) -> ProxyOptions:
        # Free proxies are plain HTTP forwarders; https traffic tunnels through them too.
        return {"http": proxy.as_url(), "https": proxy.as_url()}

    def to_proxy_options(self) -> ProxyOptions | None:
        current = self.pool.current
        if current is None:
            return None
        return self._options_for(current)

    async def initial_options(self) -> ProxyOptions | None:
        return self._options_for(await self.pool.acquire())

    async def rotated_options(self) -> ProxyOptions | None:
        return self._options_for(await self.pool.rotate(validate_cache=True))
