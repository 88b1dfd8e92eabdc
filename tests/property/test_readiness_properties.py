"""Property tests for the readiness endpoint.

Readiness is 200 iff the proxy pool is disabled or holds at least one proxy.
"""

from __future__ import annotations

from unittest.mock import MagicMock

from fastapi import FastAPI
from fastapi.testclient import TestClient
from hypothesis import given, settings, strategies as st

from ytscrape.routers.health import create_health_router


def _make_app(proxy_count: int | None) -> FastAPI:
    """Minimal app; ``None`` means the pool is disabled."""
    pool = None
    if proxy_count is not None:
        pool = MagicMock()
        pool.__len__.return_value = proxy_count
        pool.get_stats.return_value = {"proxy_count": proxy_count}

    app = FastAPI()
    app.include_router(create_health_router(proxy_pool=pool))
    return app


@settings(max_examples=100)
@given(proxy_count=st.one_of(st.none(), st.integers(min_value=0, max_value=50)))
def test_readiness_reflects_pool_state(proxy_count: int | None) -> None:
    client = TestClient(_make_app(proxy_count))

    response = client.get("/readiness")
    expected_ready = proxy_count is None or proxy_count > 0
    body = response.json()

    assert response.status_code == (200 if expected_ready else 503)
    assert body["success"] is expected_ready
    assert body["data"]["ready"] is expected_ready
    assert body["data"]["proxy_count"] == (proxy_count or 0)
