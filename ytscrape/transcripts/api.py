"""Public entry point for transcript retrieval."""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable

import httpx

from ytscrape.transcripts.fetcher import TranscriptListFetcher
from ytscrape.transcripts.http import DEFAULT_TIMEOUT_SECONDS, HttpClient
from ytscrape.transcripts.models import FetchedTranscript, TranscriptList
from ytscrape.transcripts.proxies import ProxyConfig

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {"Accept-Language": "en-US"}


class TranscriptApi:
    """Lists and fetches caption tracks for a video.

    Each ``list()`` call runs on its own ``HttpClient`` (cookies and proxy
    selection are per run), so one instance is safe to share between
    concurrent requests.
    """

    def __init__(
        self,
        proxy_config: ProxyConfig | None = None,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.proxy_config = proxy_config
        self._timeout = timeout
        self._transport = transport

    def _new_http_client(self) -> HttpClient:
        return HttpClient(
            headers=DEFAULT_HEADERS,
            proxy_config=self.proxy_config,
            timeout=self._timeout,
            transport=self._transport,
        )

    async def list(self, video_id: str) -> TranscriptList:
        fetcher = TranscriptListFetcher(self._new_http_client(), self.proxy_config)
        return await fetcher.fetch(video_id)

    async def fetch(
        self,
        video_id: str,
        languages: Iterable[str] = ("en",),
        preserve_formatting: bool = False,
    ) -> FetchedTranscript:
        """Fetch the best transcript for *video_id* in the first available language."""
        started = time.perf_counter()
        transcript_list = await self.list(video_id)
        transcript = transcript_list.find_transcript(languages)
        fetched = await transcript.fetch(preserve_formatting=preserve_formatting)
        logger.info(
            "Fetched %d snippets (%s) for %s",
            len(fetched),
            fetched.language_code,
            video_id,
            extra={
                "video_id": video_id,
                "duration_ms": round((time.perf_counter() - started) * 1000, 1),
            },
        )
        return fetched
