"""Property tests for bearer-token protection of operator endpoints.

Only the configured paths are guarded; the exact secret is accepted and any
other token is rejected with a 401 envelope.
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from fastapi.testclient import TestClient
from hypothesis import assume, given, settings
from hypothesis import strategies as st

from ytscrape.middleware.auth import BearerTokenAuthMiddleware, _extract_bearer
from ytscrape.middleware.error_handler import register_error_handlers

_SECRET = "warm-secret-abc123"
_PROTECTED = "/api/v1/proxy/warm"
_OK = {"success": True, "data": "ok", "error": None, "meta": None}


def _create_test_app(secret: str | None = _SECRET) -> FastAPI:
    app = FastAPI()
    register_error_handlers(app)

    @app.post(_PROTECTED)
    async def warm() -> JSONResponse:
        return JSONResponse(status_code=200, content=_OK)

    @app.get("/open")
    async def open_endpoint() -> JSONResponse:
        return JSONResponse(status_code=200, content=_OK)

    app.add_middleware(BearerTokenAuthMiddleware, secret=secret, protected_paths=[_PROTECTED])
    return app


_client = TestClient(_create_test_app(), raise_server_exceptions=False)
_open_client = TestClient(_create_test_app(secret=None), raise_server_exceptions=False)

random_tokens = st.text(
    min_size=1, max_size=100, alphabet=st.characters(codec="ascii", categories=("L", "N"))
)


def test_correct_token_is_accepted() -> None:
    resp = _client.post(_PROTECTED, headers={"Authorization": f"Bearer {_SECRET}"})
    assert resp.status_code == 200


@settings(max_examples=100)
@given(token=random_tokens)
def test_wrong_token_is_rejected(token: str) -> None:
    assume(token != _SECRET)
    resp = _client.post(_PROTECTED, headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401
    body = resp.json()
    assert body["success"] is False
    assert body["error"] == "Unauthorized"


@settings(max_examples=50)
@given(token=random_tokens)
def test_unprotected_paths_ignore_tokens(token: str) -> None:
    resp = _client.get("/open", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 200


@settings(max_examples=50)
@given(token=random_tokens)
def test_no_secret_means_open(token: str) -> None:
    resp = _open_client.post(_PROTECTED, headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 200


@settings(max_examples=100)
@given(token=random_tokens, scheme=st.sampled_from(["Bearer", "bearer", "BEARER"]))
def test_bearer_scheme_is_case_insensitive(token: str, scheme: str) -> None:
    assert _extract_bearer(f"{scheme} {token}") == token
    assert _extract_bearer(f"Basic {token}") is None


def test_missing_header_rejected() -> None:
    assert _client.post(_PROTECTED).status_code == 401
