"""Proxy liveness validation.

A candidate survives when a short-timeout request through it to a "what is
my IP" endpoint succeeds and reports an egress address different from our
own. Candidates are spread round-robin over a list of independent checker
endpoints and probed through a fixed-width worker pool.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence

from ytscrape.proxy.concurrency import run_bounded
from ytscrape.proxy.fetcher import fetch_response
from ytscrape.proxy.types import Proxy

logger = logging.getLogger(__name__)

IPV4_PATTERN = re.compile(
    r"\b((25[0-5]|2[0-4][0-9]|1[0-9]{2}|[1-9]?[0-9])\.){3}"
    r"(25[0-5]|2[0-4][0-9]|1[0-9]{2}|[1-9]?[0-9])\b"
)

CHECKERS: tuple[str, ...] = (
    "checkip.amazonaws.com",
    "ipinfo.io/ip",
    "api.ipify.org/",
    "whatsmyip.dev/api/ip",
    "ip4.anysrc.net/banner",
    "api4.my-ip.io/v2/ip.txt",
    "api.myip.la",
    "api.seeip.org",
    "ips.im/api",
    "ifconfig.me/ip",
    "myip.expert/api/",
    "checkip.info/ip",
    "api.myip.com",
)

HOST_IP_URL = "http://checkip.amazonaws.com"
PROBE_TIMEOUT_SECONDS = 5.0
DEFAULT_CONCURRENCY = 100


def find_ipv4_in_string(text: str) -> str | None:
    match = IPV4_PATTERN.search(text)
    return match.group(0) if match else None


async def get_host_ip() -> str | None:
    """Our own public address, or None when it cannot be determined."""
    try:
        response = await fetch_response(HOST_IP_URL, timeout=PROBE_TIMEOUT_SECONDS)
        return find_ipv4_in_string(response.text)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Could not resolve host IP, egress check disabled: %s", exc)
        return None


async def check_proxy(proxy: Proxy, timeout: float = 2.0) -> bool:
    """Quick single-proxy check: does the proxy return a dotted quad at all?"""
    try:
        response = await fetch_response(HOST_IP_URL, proxy=proxy.as_url(), timeout=timeout)
    except Exception:  # noqa: BLE001
        return False
    return response.text.strip().count(".") == 3


async def _probe(proxy: Proxy, checker: str) -> str:
    response = await fetch_response(
        f"{proxy.protocol}://{checker}",
        proxy=proxy.as_url(),
        timeout=PROBE_TIMEOUT_SECONDS,
    )
    return response.text


async def validate_proxies(
    proxies: Sequence[Proxy],
    *,
    concurrency: int = DEFAULT_CONCURRENCY,
) -> list[Proxy]:
    """Return the subset of *proxies* that actually forward traffic.

    Output order is not guaranteed to follow input order.
    """
    if not proxies:
        return []

    host_ip = await get_host_ip()

    async def _check(proxy: Proxy, index: int) -> Proxy | None:
        checker = CHECKERS[index % len(CHECKERS)]
        try:
            text = await _probe(proxy, checker)
        except Exception as exc:  # noqa: BLE001
            logger.debug("Probe failed for %s via %s: %s", proxy.address, checker, exc)
            return None
        egress_ip = find_ipv4_in_string(text)
        if egress_ip and egress_ip != host_ip:
            return proxy
        return None

    results = await run_bounded(list(proxies), concurrency, _check)
    alive = [proxy for proxy in results if proxy is not None]
    logger.info(
        "Validated %d/%d proxies",
        len(alive),
        len(proxies),
        extra={"proxy_count": len(alive)},
    )
    return alive
