"""Public proxy feed providers.

Each provider fetches one external feed, turns it into ``Proxy`` candidates
and (for every feed except proxydb) runs them through the liveness
validator. Providers are described by a ``Provider`` record carrying the
protocols they can serve and whether they honour a country filter; the pool
consults only the providers eligible for its configuration.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Awaitable, Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass

from ytscrape.proxy.codec import normalize_countries
from ytscrape.proxy.concurrency import run_bounded
from ytscrape.proxy.fetcher import fetch_json, fetch_text
from ytscrape.proxy.types import Proxy, ProxyProtocol
from ytscrape.proxy.validator import validate_proxies

logger = logging.getLogger(__name__)

ProviderFunction = Callable[[list[str], ProxyProtocol], Awaitable[list[Proxy]]]


# ---------------------------------------------------------------------------
# Provider records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Provider:
    name: str
    fetch: ProviderFunction
    protocols: tuple[str, ...]
    country_filter: bool

    def supports(self, protocol: str, countries: Sequence[str]) -> bool:
        """True when this provider may be asked for *protocol* with *countries*."""
        if protocol not in self.protocols:
            return False
        if countries and not self.country_filter:
            return False
        return True


class ProviderSet:
    """Immutable, ordered collection of providers.

    Iteration order is registration order, which is also the order the pool
    sweeps them in.
    """

    def __init__(self, providers: Iterable[Provider]) -> None:
        self._providers: tuple[Provider, ...] = tuple(providers)
        names = [provider.name for provider in self._providers]
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate provider names: {names}")

    def __iter__(self) -> Iterator[Provider]:
        return iter(self._providers)

    def __len__(self) -> int:
        return len(self._providers)

    def __repr__(self) -> str:
        return f"ProviderSet({list(self.names())!r})"

    def names(self) -> tuple[str, ...]:
        return tuple(provider.name for provider in self._providers)

    def select(self, names: Iterable[str]) -> ProviderSet:
        """Restrict to *names*, preserving registration order.

        Raises ``ValueError`` for a name that is not registered.
        """
        wanted = [name.lower() for name in names]
        known = set(self.names())
        unknown = [name for name in wanted if name not in known]
        if unknown:
            raise ValueError(
                f"Unknown proxy provider(s): {', '.join(unknown)}. "
                f"Available: {', '.join(self.names())}"
            )
        return ProviderSet(p for p in self._providers if p.name in wanted)

    def eligible(self, protocol: str, countries: Sequence[str]) -> list[Provider]:
        return [p for p in self._providers if p.supports(protocol, countries)]


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------


def _parse_host_port(entry: str, protocol: ProxyProtocol) -> Proxy | None:
    ip, _, port = entry.partition(":")
    if not ip or not port:
        return None
    try:
        return Proxy(ip=ip, port=int(port), protocol=protocol)
    except ValueError:
        return None


def plaintext_to_proxies(text: str, protocol: ProxyProtocol) -> list[Proxy]:
    """Parse one ``ip:port`` per line; blank and malformed lines are skipped."""
    proxies: list[Proxy] = []
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        proxy = _parse_host_port(line, protocol)
        if proxy is not None:
            proxies.append(proxy)
    return proxies


async def generic_plaintext_provider(
    url: str, protocol: ProxyProtocol = "http"
) -> list[Proxy]:
    raw = await fetch_text(url)
    return await validate_proxies(plaintext_to_proxies(raw, protocol))


_PROXYDB_TOTAL = re.compile(
    r"Showing\s+\d+\s+to\s+\d+\s+of\s+(\d+)\s+total proxies", re.IGNORECASE
)
_PROXYDB_ROW = re.compile(r"<tr[\s\S]*?</tr>")
_PROXYDB_ADDRESS = re.compile(r'href="/([0-9.]+)/(\d+)#(?:http|https)"')
_PROXYDB_COUNTRY = re.compile(r"<abbr[^>]*>([A-Z]{2})</abbr>")

PROXYDB_PAGE_SIZE = 30
PROXYDB_CONCURRENCY = 5
PROXYDB_TIMEOUT_SECONDS = 15.0


def parse_proxydb_total(html: str) -> int:
    match = _PROXYDB_TOTAL.search(html)
    return int(match.group(1)) if match else 0


def parse_proxydb_rows(
    html: str, countries: Sequence[str], protocol: ProxyProtocol
) -> list[Proxy]:
    """Extract proxies from one proxydb result page.

    Rows without a country tag are dropped when a country filter is active.
    """
    proxies: list[Proxy] = []
    for row in _PROXYDB_ROW.findall(html):
        address = _PROXYDB_ADDRESS.search(row)
        if not address:
            continue
        if countries:
            country = _PROXYDB_COUNTRY.search(row)
            if not country or country.group(1) not in countries:
                continue
        try:
            proxies.append(
                Proxy(ip=address.group(1), port=int(address.group(2)), protocol=protocol)
            )
        except ValueError:
            continue
    return proxies


# ---------------------------------------------------------------------------
# Feeds
# ---------------------------------------------------------------------------

PROXYSCRAPE_URL = (
    "https://api.proxyscrape.com/v3/free-proxy-list/get"
    "?request=displayproxies&protocol=http&proxy_format=ipport&format=json"
)
MONOSANS_URL = "https://raw.githubusercontent.com/monosans/proxy-list/main/proxies.json"
THESPEEDX_URL = "https://raw.githubusercontent.com/TheSpeedX/PROXY-List/master/http.txt"
GOODPROXY_URL = (
    "https://raw.githubusercontent.com/yuceltoluyag/GoodProxy/refs/heads/main/GoodProxy.txt"
)
OPENPROXYLIST_URL = (
    "https://raw.githubusercontent.com/roosterkid/openproxylist/refs/heads/main/HTTPS_RAW.txt"
)
MURONGPIG_URL = (
    "https://raw.githubusercontent.com/MuRongPIG/Proxy-Master/refs/heads/main/http_checked.txt"
)
MMPX12_URL = "https://github.com/mmpx12/proxy-list/raw/refs/heads/master/{protocol}.txt"
ANONYM0USWORK1221_URL = (
    "https://github.com/Anonym0usWork1221/Free-Proxies/raw/refs/heads/main/"
    "proxy_files/{protocol}_proxies.txt"
)
PROXYDB_URL = (
    "https://www.proxydb.net/?protocol={protocol}"
    "&sort_column_id=uptime&sort_order_desc=true"
)


async def proxyscrape(countries: list[str], protocol: ProxyProtocol = "http") -> list[Proxy]:
    country = ",".join(normalize_countries(countries)) if countries else "all"
    data = await fetch_json(f"{PROXYSCRAPE_URL}&country={country}")
    candidates: list[Proxy] = []
    for entry in data.get("proxies", []):
        try:
            candidates.append(Proxy(ip=entry["ip"], port=int(entry["port"]), protocol="http"))
        except (KeyError, TypeError, ValueError):
            continue
    return await validate_proxies(candidates)


async def monosans(countries: list[str], protocol: ProxyProtocol = "http") -> list[Proxy]:
    entries = await fetch_json(MONOSANS_URL)
    candidates: list[Proxy] = []
    for entry in entries:
        if entry.get("protocol") != protocol:
            continue
        if countries:
            country = ((entry.get("geolocation") or {}).get("country") or {}).get("iso_code")
            if not country or country not in countries:
                continue
        try:
            candidates.append(Proxy(ip=entry["host"], port=int(entry["port"]), protocol=protocol))
        except (KeyError, TypeError, ValueError):
            continue
    return await validate_proxies(candidates)


async def murongpig(countries: list[str], protocol: ProxyProtocol = "http") -> list[Proxy]:
    return await generic_plaintext_provider(MURONGPIG_URL, "http")


async def thespeedx(countries: list[str], protocol: ProxyProtocol = "http") -> list[Proxy]:
    return await generic_plaintext_provider(THESPEEDX_URL, protocol)


async def anonym0uswork1221(
    countries: list[str], protocol: ProxyProtocol = "http"
) -> list[Proxy]:
    return await generic_plaintext_provider(
        ANONYM0USWORK1221_URL.format(protocol=protocol), protocol
    )


async def mmpx12(countries: list[str], protocol: ProxyProtocol = "http") -> list[Proxy]:
    return await generic_plaintext_provider(MMPX12_URL.format(protocol=protocol), protocol)


async def goodproxy(countries: list[str], protocol: ProxyProtocol = "http") -> list[Proxy]:
    # Lines look like ``ip:port|extra|fields``
    raw = await fetch_text(GOODPROXY_URL)
    candidates: list[Proxy] = []
    for line in raw.splitlines():
        line = line.strip()
        if not line:
            continue
        proxy = _parse_host_port(line.split("|", 1)[0], "http")
        if proxy is not None:
            candidates.append(proxy)
    return await validate_proxies(candidates)


async def openproxylist(countries: list[str], protocol: ProxyProtocol = "http") -> list[Proxy]:
    return await generic_plaintext_provider(OPENPROXYLIST_URL, "http")


async def proxydb(countries: list[str], protocol: ProxyProtocol = "http") -> list[Proxy]:
    """Scrape every proxydb result page.

    The listing is already uptime-sorted, so results are returned without
    going through the liveness validator.
    """
    base_url = PROXYDB_URL.format(protocol=protocol)
    first_page = await fetch_text(base_url, timeout=PROXYDB_TIMEOUT_SECONDS)
    total = parse_proxydb_total(first_page)
    proxies = parse_proxydb_rows(first_page, countries, protocol)
    if total == 0:
        return proxies

    offsets = list(range(PROXYDB_PAGE_SIZE, total, PROXYDB_PAGE_SIZE))

    async def _page(offset: int, _index: int) -> list[Proxy]:
        html = await fetch_text(f"{base_url}&offset={offset}", timeout=PROXYDB_TIMEOUT_SECONDS)
        return parse_proxydb_rows(html, countries, protocol)

    pages = await run_bounded(offsets, PROXYDB_CONCURRENCY, _page)
    for page in pages:
        if page:
            proxies.extend(page)
    return proxies


DEFAULT_PROVIDERS = ProviderSet(
    [
        Provider("proxyscrape", proxyscrape, ("http",), True),
        Provider("monosans", monosans, ("http",), True),
        Provider("murongpig", murongpig, ("http",), False),
        Provider("thespeedx", thespeedx, ("http",), False),
        Provider("anonym0uswork1221", anonym0uswork1221, ("http", "https"), False),
        Provider("mmpx12", mmpx12, ("http", "https"), False),
        Provider("goodproxy", goodproxy, ("http",), False),
        Provider("openproxylist", openproxylist, ("http",), False),
        Provider("proxydb", proxydb, ("http", "https"), True),
    ]
)


async def quick_proxy(
    countries: Iterable[str] = (),
    protocol: ProxyProtocol = "http",
    providers: ProviderSet = DEFAULT_PROVIDERS,
) -> Proxy | None:
    """First proxy from the first eligible provider that yields one, else None."""
    wanted = normalize_countries(countries)
    for provider in providers.eligible(protocol, wanted):
        try:
            proxies = await provider.fetch(wanted, protocol)
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Provider %s failed: %s", provider.name, exc, extra={"provider": provider.name}
            )
            continue
        if proxies:
            return proxies[0]
    return None
