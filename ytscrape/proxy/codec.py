"""JSON (de)serialization for proxy list files and the pool cache file.

List files come in two shapes: a bare array of ``{ip, port, protocol}``
records, or the wrapped ``{generatedAt, protocol, proxies}`` form. The writer
always emits the wrapped form. Cache files are ``{expiryIn, configString,
proxies}``.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from datetime import datetime, timedelta, timezone
from pathlib import Path

from pydantic import ValidationError

from ytscrape.proxy.types import Proxy, ProxyCacheRecord, ProxyListFile, ProxyProtocol

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Expiry helpers
# ---------------------------------------------------------------------------


def get_expiry(time_to_live_minutes: float, now: datetime | None = None) -> datetime:
    """Return the UTC instant ``time_to_live_minutes`` from *now*."""
    now = now or datetime.now(timezone.utc)
    return now + timedelta(minutes=time_to_live_minutes)


def is_expired(expiry: datetime, now: datetime | None = None) -> bool:
    """A record is stale once ``now >= expiry``."""
    now = now or datetime.now(timezone.utc)
    if expiry.tzinfo is None:
        expiry = expiry.replace(tzinfo=timezone.utc)
    return now >= expiry


def _isoformat(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


# ---------------------------------------------------------------------------
# Proxy lists
# ---------------------------------------------------------------------------


def normalize_countries(countries: Iterable[str]) -> list[str]:
    return [country.upper() for country in countries]


def deduplicate_proxies(proxies: Iterable[Proxy]) -> list[Proxy]:
    """Drop repeated addresses, keeping the first occurrence and input order."""
    seen: set[str] = set()
    final: list[Proxy] = []
    for proxy in proxies:
        if proxy.address in seen:
            continue
        seen.add(proxy.address)
        final.append(proxy)
    return final


def normalize_proxy_list(entries: Iterable[Proxy | dict]) -> list[Proxy]:
    """Coerce a mixed list of Proxy objects and raw records, dropping invalid ones."""
    proxies: list[Proxy] = []
    for entry in entries:
        if isinstance(entry, Proxy):
            proxies.append(entry)
            continue
        try:
            proxies.append(Proxy.model_validate(entry))
        except ValidationError:
            logger.debug("Skipping invalid proxy record: %r", entry)
    return proxies


def parse_proxy_list_data(data: object) -> list[Proxy]:
    """Accept either a bare record array or the wrapped list-file object."""
    if isinstance(data, list):
        return normalize_proxy_list(data)
    if isinstance(data, dict) and isinstance(data.get("proxies"), list):
        return normalize_proxy_list(data["proxies"])
    return []


def read_proxy_list_file(path: str | Path) -> list[Proxy]:
    raw = Path(path).read_text(encoding="utf-8")
    return parse_proxy_list_data(json.loads(raw))


def write_proxy_list_file(
    path: str | Path,
    proxies: Iterable[Proxy],
    protocol: ProxyProtocol,
) -> None:
    """Write the wrapped list form with a fresh ``generatedAt`` timestamp."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    payload = ProxyListFile(
        generated_at=datetime.now(timezone.utc),
        protocol=protocol,
        proxies=list(proxies),
    )
    content = {
        "generatedAt": _isoformat(payload.generated_at),
        "protocol": payload.protocol,
        "proxies": [proxy.to_record() for proxy in payload.proxies],
    }
    target.write_text(json.dumps(content, indent=2) + "\n", encoding="utf-8")


# ---------------------------------------------------------------------------
# Cache file
# ---------------------------------------------------------------------------


def read_cache_file(path: str | Path) -> ProxyCacheRecord:
    """Load a cache record.

    Raises
    ------
    FileNotFoundError
        If no cache file exists yet.
    ValueError
        If the file is not valid JSON or does not match the cache schema.
    """
    raw = Path(path).read_text(encoding="utf-8")
    try:
        return ProxyCacheRecord.model_validate_json(raw)
    except ValidationError as exc:
        raise ValueError(f"Invalid proxy cache file {path}: {exc}") from exc


def write_cache_file(path: str | Path, record: ProxyCacheRecord) -> None:
    content = {
        "expiryIn": _isoformat(record.expiry_in),
        "configString": record.config_string,
        "proxies": [proxy.to_record() for proxy in record.proxies],
    }
    Path(path).write_text(json.dumps(content), encoding="utf-8")
