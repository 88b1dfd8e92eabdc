"""Unit tests for the error hierarchy and FastAPI exception handlers."""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

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
from ytscrape.transcripts.errors import (
    AgeRestricted,
    CouldNotRetrieveTranscript,
    IpBlocked,
    NoTranscriptFound,
    RequestBlocked,
    VideoUnavailable,
)


# ---------------------------------------------------------------------------
# Test app fixture
# ---------------------------------------------------------------------------


def _make_app() -> FastAPI:
    """Build a minimal FastAPI app with error handlers registered."""
    app = FastAPI()
    register_error_handlers(app)

    @app.get("/raise-scraper")
    async def _raise_scraper():
        raise ScraperError()

    @app.get("/raise-auth")
    async def _raise_auth():
        raise AuthenticationError()

    @app.get("/raise-video-reference")
    async def _raise_video_reference():
        raise InvalidVideoReference(video="not a video")

    @app.get("/raise-protocol")
    async def _raise_protocol():
        raise UnsupportedProxyProtocol("socks5")

    @app.get("/raise-no-proxies")
    async def _raise_no_proxies():
        raise NoProxiesFound()

    @app.get("/raise-no-proxy")
    async def _raise_no_proxy():
        raise NoProxyAvailable()

    @app.get("/raise-blocked")
    async def _raise_blocked():
        raise RequestBlocked("abc123def45")

    @app.get("/raise-unavailable")
    async def _raise_unavailable():
        raise VideoUnavailable("abc123def45")

    @app.get("/raise-validation")
    async def _raise_validation():
        raise ValidationError("Bad field", fields=["name"])

    @app.get("/raise-unhandled")
    async def _raise_unhandled():
        raise RuntimeError("something unexpected")

    from pydantic import BaseModel

    class Payload(BaseModel):
        name: str
        age: int

    @app.post("/validate")
    async def _validate(payload: Payload):
        return {"ok": True}

    return app


@pytest.fixture()
def client():
    return TestClient(_make_app(), raise_server_exceptions=False)


# ---------------------------------------------------------------------------
# Error hierarchy tests
# ---------------------------------------------------------------------------


class TestErrorHierarchy:
    """All custom errors are subclasses of ScraperError."""

    def test_all_subclass_scraper_error(self):
        for cls in (
            ValidationError,
            AuthenticationError,
            InvalidVideoReference,
            UnsupportedProxyProtocol,
            NoProxiesFound,
            NoProxyAvailable,
            CouldNotRetrieveTranscript,
        ):
            assert issubclass(cls, ScraperError)

    def test_ip_blocked_is_request_blocked(self):
        assert issubclass(IpBlocked, RequestBlocked)
        assert IpBlocked("x").retryable is True
        assert AgeRestricted("x").retryable is False

    def test_default_messages(self):
        assert ScraperError().message == "Internal server error"
        assert AuthenticationError().message == "Unauthorized"
        assert NoProxyAvailable().message == "No proxy available"
        assert ValidationError().message == "Validation error"

    def test_no_proxies_found_https_tip(self):
        assert "Tip" not in NoProxiesFound("http").message
        assert "recommend setting protocol to http" in NoProxiesFound("https").message

    def test_unsupported_protocol_message(self):
        err = UnsupportedProxyProtocol("socks5")
        assert err.message == "Protocol socks5 is not supported, please choose between http or https"
        assert err.details == {"protocol": "socks5"}

    def test_details_kwargs(self):
        err = ValidationError("Bad input", fields=["name", "age"])
        assert err.details == {"fields": ["name", "age"]}

    def test_transcript_error_details(self):
        err = NoTranscriptFound("abc123def45", ["en"], "catalog")
        assert err.details == {"video_id": "abc123def45", "kind": "no_transcript_found"}
        assert str(err) == err.message


# ---------------------------------------------------------------------------
# Exception handler tests
# ---------------------------------------------------------------------------


class TestExceptionHandlers:
    """FastAPI exception handlers return correct envelope and status codes."""

    @pytest.mark.parametrize(
        "path,expected_status",
        [
            ("/raise-scraper", 500),
            ("/raise-auth", 401),
            ("/raise-video-reference", 400),
            ("/raise-protocol", 400),
            ("/raise-no-proxies", 503),
            ("/raise-no-proxy", 503),
            ("/raise-blocked", 429),
            ("/raise-unavailable", 404),
        ],
    )
    def test_scraper_error_envelope(self, client, path, expected_status):
        resp = client.get(path)
        assert resp.status_code == expected_status
        body = resp.json()
        assert body["success"] is False
        assert body["data"] is None
        assert body["error"]

    def test_transcript_error_meta(self, client):
        body = client.get("/raise-unavailable").json()
        assert body["meta"] == {"video_id": "abc123def45", "kind": "video_unavailable"}
        assert "The video is no longer available" in body["error"]

    def test_validation_error_with_details(self, client):
        resp = client.get("/raise-validation")
        assert resp.status_code == 422
        body = resp.json()
        assert body["success"] is False
        assert body["error"] == "Bad field"
        assert body["meta"] == {"fields": ["name"]}

    def test_pydantic_request_validation_error(self, client):
        resp = client.post("/validate", json={"name": 123})
        assert resp.status_code == 422
        body = resp.json()
        assert body["success"] is False
        assert body["error"] == "Validation error"
        assert "fields" in body["meta"]
        assert len(body["meta"]["fields"]) > 0

    def test_unhandled_exception_returns_500(self, client):
        resp = client.get("/raise-unhandled")
        assert resp.status_code == 500
        body = resp.json()
        assert body["success"] is False
        assert body["error"] == "Internal server error"
        assert body["data"] is None
