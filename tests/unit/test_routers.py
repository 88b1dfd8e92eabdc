"""Unit tests for the HTTP surface: transcripts, proxy warm-up, health."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from fakes import VIDEO_ID, make_proxies
from ytscrape.main import create_app
from ytscrape.proxy.manager import ProxyPool
from ytscrape.transcripts.errors import NoTranscriptFound, RequestBlocked, VideoUnavailable
from ytscrape.transcripts.models import (
    FetchedTranscript,
    FetchedTranscriptSnippet,
    TranscriptList,
)

FETCHED = FetchedTranscript(
    snippets=[
        FetchedTranscriptSnippet("Hey there", 0.0, 1.54),
        FetchedTranscriptSnippet("how are you", 1.54, 4.16),
    ],
    video_id=VIDEO_ID,
    language="English",
    language_code="en",
    is_generated=False,
)


@pytest.fixture
def transcript_api() -> MagicMock:
    api = MagicMock()
    api.fetch = AsyncMock(return_value=FETCHED)
    api.list = AsyncMock(return_value=TranscriptList(video_id=VIDEO_ID))
    return api


@pytest.fixture
def pool(cache_dir) -> ProxyPool:
    return ProxyPool(proxy_list=make_proxies(3), auto_update=False, cache_folder=cache_dir)


@pytest.fixture
def client(settings, pool, transcript_api) -> TestClient:
    app = create_app(settings, proxy_pool=pool, transcript_api=transcript_api)
    return TestClient(app, raise_server_exceptions=False)


# ---------------------------------------------------------------------------
# Transcripts
# ---------------------------------------------------------------------------


class TestTranscriptEndpoint:
    def test_fetch_by_url(self, client, transcript_api):
        resp = client.get(
            "/api/v1/transcripts",
            params={"video": f"https://youtu.be/{VIDEO_ID}", "languages": "de, en"},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["data"]["video_id"] == VIDEO_ID
        assert body["data"]["snippets"][0] == {"text": "Hey there", "start": 0.0, "duration": 1.54}
        assert json.loads(body["data"]["formatted"]) == body["data"]["snippets"]

        transcript_api.fetch.assert_awaited_once_with(
            VIDEO_ID, languages=["de", "en"], preserve_formatting=False
        )

    def test_default_languages_from_settings(self, client, transcript_api):
        client.get("/api/v1/transcripts", params={"video": VIDEO_ID})
        assert transcript_api.fetch.call_args.kwargs["languages"] == ["en"]

    def test_srt_format(self, client):
        resp = client.get("/api/v1/transcripts", params={"video": VIDEO_ID, "format": "srt"})
        assert resp.json()["data"]["formatted"].startswith("1\n00:00:00,000 --> 00:00:01,540\n")

    def test_unknown_format(self, client, transcript_api):
        resp = client.get("/api/v1/transcripts", params={"video": VIDEO_ID, "format": "xml"})
        assert resp.status_code == 422
        assert resp.json()["meta"] == {"format": "xml"}
        transcript_api.fetch.assert_not_called()

    def test_invalid_video(self, client, transcript_api):
        resp = client.get("/api/v1/transcripts", params={"video": "https://example.com/x"})
        assert resp.status_code == 400
        assert resp.json()["success"] is False
        transcript_api.fetch.assert_not_called()

    def test_missing_video_param(self, client):
        resp = client.get("/api/v1/transcripts")
        assert resp.status_code == 422
        assert resp.json()["error"] == "Validation error"

    @pytest.mark.parametrize(
        "error,status",
        [
            (VideoUnavailable(VIDEO_ID), 404),
            (RequestBlocked(VIDEO_ID), 429),
            (NoTranscriptFound(VIDEO_ID, ["fr"], "catalog"), 404),
        ],
    )
    def test_transcript_errors_map_to_status(self, client, transcript_api, error, status):
        transcript_api.fetch.side_effect = error
        resp = client.get("/api/v1/transcripts", params={"video": VIDEO_ID})
        assert resp.status_code == status
        body = resp.json()
        assert body["success"] is False
        assert body["meta"]["video_id"] == VIDEO_ID
        assert body["meta"]["kind"] == error.kind.value

    def test_list(self, client, transcript_api):
        resp = client.get("/api/v1/transcripts/list", params={"video": VIDEO_ID})
        assert resp.status_code == 200
        assert resp.json()["data"] == {
            "video_id": VIDEO_ID,
            "manually_created": [],
            "generated": [],
            "translation_languages": [],
        }
        transcript_api.list.assert_awaited_once_with(VIDEO_ID)


# ---------------------------------------------------------------------------
# Proxy warm-up
# ---------------------------------------------------------------------------


class TestWarmEndpoint:
    def test_warm_populates_pool(self, client, pool):
        resp = client.post("/api/v1/proxy/warm")
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["message"] == "Proxy cache warmed."
        assert data["proxies"] == 3
        assert data["cache_expiry"] is None
        assert data["list_written"] is False
        assert len(pool) == 3

    def test_get_also_allowed(self, client):
        assert client.get("/api/v1/proxy/warm").status_code == 200

    def test_write_list_requires_flag(self, settings, pool, transcript_api):
        settings.proxy_list_write_enabled = True
        client = TestClient(create_app(settings, proxy_pool=pool, transcript_api=transcript_api))

        resp = client.post("/api/v1/proxy/warm", params={"writeList": "1"})
        assert resp.json()["data"]["list_written"] is True
        written = json.loads(Path(settings.proxy_list_export_path).read_text(encoding="utf-8"))
        assert len(written["proxies"]) == 3

    def test_write_list_ignored_when_disabled(self, client, settings):
        resp = client.post("/api/v1/proxy/warm", params={"writeList": "true"})
        assert resp.json()["data"]["list_written"] is False

    def test_secret_required(self, settings, pool, transcript_api):
        settings.proxy_warm_secret = "s3cret"
        client = TestClient(create_app(settings, proxy_pool=pool, transcript_api=transcript_api))

        assert client.post("/api/v1/proxy/warm").status_code == 401
        wrong = client.post("/api/v1/proxy/warm", headers={"Authorization": "Bearer nope"})
        assert wrong.status_code == 401
        assert wrong.json() == {"success": False, "data": None, "error": "Unauthorized", "meta": None}

        ok = client.post("/api/v1/proxy/warm", headers={"Authorization": "Bearer s3cret"})
        assert ok.status_code == 200

        # Other paths stay open
        assert client.get("/health").status_code == 200

    def test_pool_disabled(self, settings, transcript_api):
        settings.proxy_enabled = False
        client = TestClient(
            create_app(settings, transcript_api=transcript_api), raise_server_exceptions=False
        )
        resp = client.post("/api/v1/proxy/warm")
        assert resp.status_code == 503
        assert resp.json()["error"] == "Proxy pool is disabled"


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class TestHealth:
    def test_health_reports_pool_stats(self, client):
        body = client.get("/health").json()
        assert body["data"]["status"] == "healthy"
        assert body["data"]["proxy_pool"]["proxy_count"] == 0
        assert body["data"]["proxy_pool"]["protocol"] == "http"

    def test_readiness_follows_pool(self, client):
        resp = client.get("/readiness")
        assert resp.status_code == 503
        assert resp.json()["error"] == "Service not ready"

        client.post("/api/v1/proxy/warm")
        resp = client.get("/readiness")
        assert resp.status_code == 200
        assert resp.json()["data"] == {"ready": True, "proxy_count": 3}

    def test_ready_without_pool(self, settings, transcript_api):
        settings.proxy_enabled = False
        client = TestClient(create_app(settings, transcript_api=transcript_api))
        assert client.get("/readiness").status_code == 200
        assert client.get("/health").json()["data"]["proxy_pool"] == {"enabled": False}

    def test_request_id_header(self, client):
        resp = client.get("/health", headers={"X-Request-ID": "abc-123"})
        assert resp.headers["X-Request-ID"] == "abc-123"
