"""Transcript endpoints.

- GET /api/v1/transcripts: fetch one transcript (id or URL), optionally formatted
- GET /api/v1/transcripts/list: list the caption tracks available for a video
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from fastapi import APIRouter, Query

from ytscrape.middleware.error_handler import InvalidVideoReference, ValidationError
from ytscrape.models.responses import ApiResponse
from ytscrape.transcripts.formatters import FormatterLoader, UnknownFormatterType
from ytscrape.validators.video_id import extract_video_id

if TYPE_CHECKING:
    from ytscrape.transcripts.api import TranscriptApi

logger = logging.getLogger(__name__)


def _resolve_video_id(video: str) -> str:
    video_id = extract_video_id(video)
    if video_id is None:
        raise InvalidVideoReference(video=video)
    return video_id


def _parse_languages(raw: str | None, default: Sequence[str]) -> list[str]:
    if not raw:
        return list(default)
    languages = [code.strip() for code in raw.split(",") if code.strip()]
    return languages or list(default)


def create_transcripts_router(
    *,
    transcript_api: TranscriptApi,
    default_languages: Sequence[str] = ("en",),
) -> APIRouter:
    """Factory that creates the transcripts router with injected dependencies."""
    transcripts_router = APIRouter(prefix="/api/v1/transcripts", tags=["transcripts"])
    loader = FormatterLoader()

    @transcripts_router.get("")
    async def get_transcript(
        video: str = Query(..., min_length=1, description="Video id or YouTube URL"),
        languages: str | None = Query(None, description="Comma-separated, in priority order"),
        output_format: str = Query("json", alias="format"),
        preserve_formatting: bool = False,
    ) -> dict:
        """Fetch the first available transcript among ``languages``."""
        video_id = _resolve_video_id(video)
        try:
            formatter = loader.load(output_format)
        except UnknownFormatterType as exc:
            raise ValidationError(str(exc), format=output_format) from exc

        fetched = await transcript_api.fetch(
            video_id,
            languages=_parse_languages(languages, default_languages),
            preserve_formatting=preserve_formatting,
        )

        return ApiResponse(
            success=True,
            data={
                "video_id": fetched.video_id,
                "language": fetched.language,
                "language_code": fetched.language_code,
                "is_generated": fetched.is_generated,
                "snippets": fetched.to_raw_data(),
                "formatted": formatter.format_transcript(fetched),
            },
        ).model_dump()

    @transcripts_router.get("/list")
    async def list_transcripts(video: str = Query(..., min_length=1)) -> dict:
        """List manual, generated and translation languages for a video."""
        transcript_list = await transcript_api.list(_resolve_video_id(video))
        return ApiResponse(success=True, data=transcript_list.to_dict()).model_dump()

    return transcripts_router
