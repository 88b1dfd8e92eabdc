"""Middleware package: error hierarchy, auth, and request ID."""

from ytscrape.middleware.auth import BearerTokenAuthMiddleware
from ytscrape.middleware.error_handler import (
    AuthenticationError,
    InvalidVideoReference,
    NoProxiesFound,
    NoProxyAvailable,
    ScraperError,
    UnsupportedProxyProtocol,
    ValidationError,
    register_error_handlers,
)
from ytscrape.middleware.request_id import RequestIdMiddleware

__all__ = [
    "AuthenticationError",
    "BearerTokenAuthMiddleware",
    "InvalidVideoReference",
    "NoProxiesFound",
    "NoProxyAvailable",
    "RequestIdMiddleware",
    "ScraperError",
    "UnsupportedProxyProtocol",
    "ValidationError",
    "register_error_handlers",
]
