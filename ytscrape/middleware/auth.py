"""Bearer-token authentication for operator endpoints.

Only the paths listed in ``protected_paths`` are checked; everything else
(health probes, transcript lookups) passes straight through. When no secret
is configured the protected paths are open.

Uses ``hmac.compare_digest`` for constant-time comparison of the token.
"""

from __future__ import annotations

import hmac
import logging
from collections.abc import Iterable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from ytscrape.middleware.error_handler import AuthenticationError, _envelope

logger = logging.getLogger(__name__)

_BEARER_PREFIX = "bearer "


def _extract_bearer(header: str | None) -> str | None:
    if not header or not header.lower().startswith(_BEARER_PREFIX):
        return None
    return header[len(_BEARER_PREFIX):].strip() or None


class BearerTokenAuthMiddleware(BaseHTTPMiddleware):
    """Starlette middleware that enforces ``Authorization: Bearer <secret>``
    on a fixed set of paths.
    """

    def __init__(  # noqa: ANN001
        self, app, secret: str | None, protected_paths: Iterable[str]
    ) -> None:
        super().__init__(app)
        self._secret = secret
        self._protected_paths = set(protected_paths)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if not self._secret or request.url.path not in self._protected_paths:
            return await call_next(request)

        provided = _extract_bearer(request.headers.get("authorization"))
        source_ip = request.client.host if request.client else "unknown"

        if provided is None or not hmac.compare_digest(provided, self._secret):
            logger.warning(
                "Rejected request to protected path",
                extra={
                    "event": "auth_failure",
                    "reason": "missing_token" if provided is None else "invalid_token",
                    "source_ip": source_ip,
                    "path": request.url.path,
                },
            )
            return _envelope(
                status_code=AuthenticationError.status_code,
                error=AuthenticationError.message,
            )

        return await call_next(request)
