"""Caption catalog retrieval: watch page, consent, innertube player API.

One attempt walks the watch page (accepting the cookie consent wall once if
it is shown), extracts the innertube API key, asks the player endpoint for
the caption catalog and checks the playability verdict. Only block signals
are retried, each retry on a freshly rotated proxy.
"""

from __future__ import annotations

import logging
import re
import time
from typing import Any

import httpx

from ytscrape.transcripts.errors import (
    AgeRestricted,
    FailedToCreateConsentCookie,
    InvalidVideoId,
    IpBlocked,
    RequestBlocked,
    TranscriptsDisabled,
    VideoUnavailable,
    VideoUnplayable,
    WATCH_URL,
    YouTubeDataUnparsable,
    YouTubeRequestFailed,
)
from ytscrape.transcripts.http import HttpClient, raise_http_errors
from ytscrape.transcripts.models import TranscriptList
from ytscrape.transcripts.parser import decode_html
from ytscrape.transcripts.proxies import ProxyConfig

logger = logging.getLogger(__name__)

INNERTUBE_API_URL = "https://www.youtube.com/youtubei/v1/player?key={api_key}"
INNERTUBE_CONTEXT = {"client": {"clientName": "ANDROID", "clientVersion": "20.10.38"}}

CONSENT_FORM_MARKER = 'action="https://consent.youtube.com/s"'
CAPTCHA_MARKER = 'class="g-recaptcha"'

_API_KEY = re.compile(r'"INNERTUBE_API_KEY":\s*"([a-zA-Z0-9_-]+)"')
_CONSENT_VALUE = re.compile(r'name="v" value="(.*?)"')


class PlayabilityStatus:
    OK = "OK"
    ERROR = "ERROR"
    LOGIN_REQUIRED = "LOGIN_REQUIRED"


class PlayabilityFailedReason:
    BOT_DETECTED = "Sign in to confirm you're not a bot"
    AGE_RESTRICTED = "This video may be inappropriate for some users."
    VIDEO_UNAVAILABLE = "This video is unavailable"


class TranscriptListFetcher:
    """Fetches the caption catalog for a video, retrying blocked attempts."""

    def __init__(self, http_client: HttpClient, proxy_config: ProxyConfig | None = None) -> None:
        self._http_client = http_client
        self._proxy_config = proxy_config

    @property
    def max_attempts(self) -> int:
        if self._proxy_config is None:
            return 1
        return max(self._proxy_config.retries_when_blocked, 1)

    async def fetch(self, video_id: str) -> TranscriptList:
        captions = await self._fetch_captions_json(video_id)
        return TranscriptList.build(self._http_client, video_id, captions)

    # ------------------------------------------------------------------
    # Retry loop
    # ------------------------------------------------------------------

    async def _fetch_captions_json(self, video_id: str) -> dict:
        last_error: RequestBlocked | None = None

        for attempt in range(1, self.max_attempts + 1):
            if self._proxy_config is not None:
                if attempt == 1:
                    options = await self._proxy_config.initial_options()
                else:
                    options = await self._proxy_config.rotated_options()
                self._http_client.set_proxy_options(options)

            started = time.perf_counter()
            try:
                return await self._scrape_captions_json(video_id)
            except RequestBlocked as exc:
                last_error = exc
                logger.warning(
                    "Attempt %d/%d for %s blocked (%s)",
                    attempt,
                    self.max_attempts,
                    video_id,
                    exc.kind.value,
                    extra={
                        "video_id": video_id,
                        "attempt": attempt,
                        "proxy_used": self._proxy_label(),
                        "error_reason": exc.kind.value,
                        "duration_ms": round((time.perf_counter() - started) * 1000, 1),
                    },
                )

        assert last_error is not None
        proxy_kind = self._proxy_config.kind if self._proxy_config is not None else "none"
        raise last_error.with_proxy_config_kind(proxy_kind)

    def _proxy_label(self) -> str | None:
        options = self._http_client.proxy_options or {}
        url = options.get("https") or options.get("http")
        if not url:
            return None
        # Drop credentials from the logged URL.
        return url.rsplit("@", 1)[-1]

    # ------------------------------------------------------------------
    # One attempt
    # ------------------------------------------------------------------

    async def _scrape_captions_json(self, video_id: str) -> dict:
        html = await self._fetch_video_html(video_id)
        api_key = self._extract_innertube_api_key(html, video_id)
        data = await self._fetch_innertube_data(video_id, api_key)
        return self._extract_captions_json(data, video_id)

    async def _send(self, method: str, url: str, video_id: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._http_client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise YouTubeRequestFailed(video_id, str(exc) or type(exc).__name__) from exc
        return raise_http_errors(response, video_id)

    async def _fetch_html(self, video_id: str) -> str:
        response = await self._send("GET", WATCH_URL.format(video_id=video_id), video_id)
        return decode_html(response.text)

    async def _fetch_video_html(self, video_id: str) -> str:
        html = await self._fetch_html(video_id)
        if CONSENT_FORM_MARKER in html:
            self._create_consent_cookie(html, video_id)
            html = await self._fetch_html(video_id)
            if CONSENT_FORM_MARKER in html:
                raise FailedToCreateConsentCookie(video_id)
        return html

    def _create_consent_cookie(self, html: str, video_id: str) -> None:
        match = _CONSENT_VALUE.search(html)
        if match is None:
            raise FailedToCreateConsentCookie(video_id)
        self._http_client.set_cookie("CONSENT", f"YES+{match.group(1)}", ".youtube.com")

    @staticmethod
    def _extract_innertube_api_key(html: str, video_id: str) -> str:
        match = _API_KEY.search(html)
        if match:
            return match.group(1)
        if CAPTCHA_MARKER in html:
            raise IpBlocked(video_id)
        raise YouTubeDataUnparsable(video_id)

    async def _fetch_innertube_data(self, video_id: str, api_key: str) -> dict:
        response = await self._send(
            "POST",
            INNERTUBE_API_URL.format(api_key=api_key),
            video_id,
            json={"context": INNERTUBE_CONTEXT, "videoId": video_id},
        )
        try:
            data = response.json()
        except ValueError as exc:
            raise YouTubeDataUnparsable(video_id) from exc
        if not isinstance(data, dict):
            raise YouTubeDataUnparsable(video_id)
        return data

    def _extract_captions_json(self, data: dict, video_id: str) -> dict:
        self._assert_playability(data.get("playabilityStatus") or {}, video_id)
        captions = (data.get("captions") or {}).get("playerCaptionsTracklistRenderer")
        if not captions or not captions.get("captionTracks"):
            raise TranscriptsDisabled(video_id)
        return captions

    @staticmethod
    def _assert_playability(status_data: dict, video_id: str) -> None:
        status = status_data.get("status")
        if not status or status == PlayabilityStatus.OK:
            return

        reason = status_data.get("reason")
        if status == PlayabilityStatus.LOGIN_REQUIRED:
            if reason == PlayabilityFailedReason.BOT_DETECTED:
                raise RequestBlocked(video_id)
            if reason == PlayabilityFailedReason.AGE_RESTRICTED:
                raise AgeRestricted(video_id)
        if status == PlayabilityStatus.ERROR and reason == PlayabilityFailedReason.VIDEO_UNAVAILABLE:
            if video_id.startswith(("http://", "https://")):
                raise InvalidVideoId(video_id)
            raise VideoUnavailable(video_id)

        renderer = (status_data.get("errorScreen") or {}).get("playerErrorMessageRenderer") or {}
        runs = (renderer.get("subreason") or {}).get("runs") or []
        raise VideoUnplayable(video_id, reason, [run.get("text", "") for run in runs])
