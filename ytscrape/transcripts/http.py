"""HTTP channel to YouTube: persistent headers, a tiny cookie jar, and proxy routing."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlsplit

import httpx

from ytscrape.transcripts.errors import IpBlocked, YouTubeRequestFailed
from ytscrape.transcripts.proxies import ProxyConfig, ProxyOptions

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 15.0


def raise_http_errors(response: httpx.Response, video_id: str) -> httpx.Response:
    """Map rate limiting to ``IpBlocked`` and any other non-2xx to ``YouTubeRequestFailed``."""
    if response.status_code == 429:
        raise IpBlocked(video_id)
    if not response.is_success:
        logger.debug(
            "YouTube request failed: %s %s",
            response.status_code,
            response.reason_phrase,
            extra={"video_id": video_id},
        )
        raise YouTubeRequestFailed(video_id, f"{response.status_code} {response.reason_phrase}")
    return response


class CookieJar:
    """Name/value/domain triples matched against request hosts.

    A cookie applies when the host equals its domain, or when the host is the
    domain (minus any leading dot) or one of its subdomains.
    """

    def __init__(self) -> None:
        self._cookies: list[tuple[str, str, str]] = []

    def __len__(self) -> int:
        return len(self._cookies)

    def set(self, name: str, value: str, domain: str) -> None:
        self._cookies = [c for c in self._cookies if (c[0], c[2]) != (name, domain)]
        self._cookies.append((name, value, domain))

    @staticmethod
    def _matches(host: str, domain: str) -> bool:
        if not domain:
            return False
        if host == domain:
            return True
        bare = domain[1:] if domain.startswith(".") else domain
        return host == bare or host.endswith("." + bare)

    def header_for(self, url: str) -> str:
        host = urlsplit(url).hostname or ""
        if not host:
            return ""
        return "; ".join(
            f"{name}={value}"
            for name, value, domain in self._cookies
            if self._matches(host, domain)
        )


class HttpClient:
    """Thin wrapper over ``httpx.AsyncClient``.

    A fresh client is opened per request so a proxy switch between attempts
    takes effect immediately. Passing ``transport`` replaces the network (and
    any proxy routing) entirely.
    """

    def __init__(
        self,
        headers: dict[str, str] | None = None,
        cookie_jar: CookieJar | None = None,
        proxy_config: ProxyConfig | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._headers: dict[str, str] = dict(headers or {})
        self.cookie_jar = cookie_jar or CookieJar()
        self.proxy_config = proxy_config
        self._proxy_options: ProxyOptions | None = None
        self._timeout = timeout
        self._transport = transport

    @property
    def headers(self) -> dict[str, str]:
        return dict(self._headers)

    @property
    def proxy_options(self) -> ProxyOptions | None:
        return self._proxy_options

    def set_header(self, name: str, value: str) -> None:
        self._headers[name] = value

    def set_cookie(self, name: str, value: str, domain: str) -> None:
        self.cookie_jar.set(name, value, domain)

    def set_proxy_options(self, options: ProxyOptions | None) -> None:
        self._proxy_options = options

    def build_headers(self, url: str, headers: dict[str, str] | None = None) -> dict[str, str]:
        merged = {**self._headers, **(headers or {})}
        cookie = self.cookie_jar.header_for(url)
        if cookie:
            merged["Cookie"] = cookie
        if self.proxy_config is not None and self.proxy_config.prevent_keeping_connections_alive:
            merged["Connection"] = "close"
        return merged

    def _client(self) -> httpx.AsyncClient:
        if self._transport is not None:
            return httpx.AsyncClient(
                transport=self._transport,
                timeout=httpx.Timeout(self._timeout),
                follow_redirects=True,
            )
        mounts: dict[str, httpx.AsyncBaseTransport] = {}
        for scheme, proxy_url in (self._proxy_options or {}).items():
            if proxy_url:
                mounts[f"{scheme}://"] = httpx.AsyncHTTPTransport(proxy=proxy_url)
        return httpx.AsyncClient(
            mounts=mounts,
            timeout=httpx.Timeout(self._timeout),
            follow_redirects=True,
        )

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        async with self._client() as client:
            return await client.request(
                method, url, headers=self.build_headers(url, headers), **kwargs
            )

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("POST", url, **kwargs)
