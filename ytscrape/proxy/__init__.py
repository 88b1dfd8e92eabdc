"""Proxy pool package: public feed providers, liveness validation, and rotation."""

from ytscrape.proxy.manager import ProxyPool, default_cache_folder
from ytscrape.proxy.providers import DEFAULT_PROVIDERS, Provider, ProviderSet, quick_proxy
from ytscrape.proxy.types import Proxy, ProxyCacheRecord, ProxyListFile
from ytscrape.proxy.validator import check_proxy, validate_proxies

__all__ = [
    "DEFAULT_PROVIDERS",
    "Provider",
    "ProviderSet",
    "Proxy",
    "ProxyCacheRecord",
    "ProxyListFile",
    "ProxyPool",
    "check_proxy",
    "default_cache_folder",
    "quick_proxy",
    "validate_proxies",
]
