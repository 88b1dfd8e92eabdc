"""Caption catalog and fetched transcript value types."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

import httpx

from ytscrape.transcripts.errors import (
    NoTranscriptFound,
    NotTranslatable,
    PoTokenRequired,
    TranscriptsDisabled,
    TranslationLanguageNotAvailable,
    YouTubeRequestFailed,
)
from ytscrape.transcripts.http import HttpClient, raise_http_errors
from ytscrape.transcripts.parser import parse_transcript_xml


@dataclass(frozen=True)
class FetchedTranscriptSnippet:
    text: str
    start: float
    duration: float


@dataclass(frozen=True)
class FetchedTranscript:
    """Snippets of one caption track plus the track's language metadata."""

    snippets: list[FetchedTranscriptSnippet]
    video_id: str
    language: str
    language_code: str
    is_generated: bool

    def __iter__(self) -> Iterator[FetchedTranscriptSnippet]:
        return iter(self.snippets)

    def __len__(self) -> int:
        return len(self.snippets)

    def __getitem__(self, index: int) -> FetchedTranscriptSnippet:
        return self.snippets[index]

    def to_raw_data(self) -> list[dict]:
        return [
            {"text": s.text, "start": s.start, "duration": s.duration} for s in self.snippets
        ]


@dataclass(frozen=True)
class TranslationLanguage:
    language: str
    language_code: str


def _language_name(name: dict | None, fallback: str) -> str:
    name = name or {}
    runs = name.get("runs") or []
    if runs and runs[0].get("text"):
        return runs[0]["text"]
    return name.get("simpleText") or fallback


class Transcript:
    """One caption track. ``fetch()`` downloads and parses it."""

    def __init__(
        self,
        http_client: HttpClient,
        video_id: str,
        url: str,
        language: str,
        language_code: str,
        is_generated: bool,
        translation_languages: list[TranslationLanguage],
    ) -> None:
        self._http_client = http_client
        self.video_id = video_id
        self.url = url
        self.language = language
        self.language_code = language_code
        self.is_generated = is_generated
        self.translation_languages = translation_languages
        self._translation_map = {t.language_code: t.language for t in translation_languages}

    def __str__(self) -> str:
        suffix = "[TRANSLATABLE]" if self.is_translatable else ""
        return f'{self.language_code} ("{self.language}"){suffix}'

    def __repr__(self) -> str:
        return f"Transcript({self.video_id!r}, {self.language_code!r}, generated={self.is_generated})"

    @property
    def is_translatable(self) -> bool:
        return bool(self.translation_languages)

    async def fetch(self, preserve_formatting: bool = False) -> FetchedTranscript:
        if "&exp=xpe" in self.url:
            raise PoTokenRequired(self.video_id)
        try:
            response = await self._http_client.get(self.url)
        except httpx.HTTPError as exc:
            raise YouTubeRequestFailed(self.video_id, str(exc) or type(exc).__name__) from exc
        raise_http_errors(response, self.video_id)
        records = parse_transcript_xml(response.text, preserve_formatting)
        return FetchedTranscript(
            snippets=[FetchedTranscriptSnippet(**record) for record in records],
            video_id=self.video_id,
            language=self.language,
            language_code=self.language_code,
            is_generated=self.is_generated,
        )

    def translate(self, language_code: str) -> Transcript:
        if not self.is_translatable:
            raise NotTranslatable(self.video_id)
        if language_code not in self._translation_map:
            raise TranslationLanguageNotAvailable(self.video_id)
        return Transcript(
            self._http_client,
            self.video_id,
            f"{self.url}&tlang={language_code}",
            self._translation_map[language_code],
            language_code,
            True,
            [],
        )

    def to_dict(self) -> dict:
        return {
            "language": self.language,
            "language_code": self.language_code,
            "is_generated": self.is_generated,
            "is_translatable": self.is_translatable,
        }


@dataclass
class TranscriptList:
    """Every caption track available for one video."""

    video_id: str
    manually_created: dict[str, Transcript] = field(default_factory=dict)
    generated: dict[str, Transcript] = field(default_factory=dict)
    translation_languages: list[TranslationLanguage] = field(default_factory=list)

    @classmethod
    def build(cls, http_client: HttpClient, video_id: str, captions: dict) -> TranscriptList:
        """Build the catalog from ``playerCaptionsTracklistRenderer`` JSON.

        Raises ``TranscriptsDisabled`` when the video has no caption tracks.
        """
        translation_languages = [
            TranslationLanguage(
                language=_language_name(
                    item.get("languageName"), item.get("languageCode") or "Unknown"
                ),
                language_code=item.get("languageCode") or "unknown",
            )
            for item in captions.get("translationLanguages") or []
        ]

        tracks = captions.get("captionTracks") or []
        if not tracks:
            raise TranscriptsDisabled(video_id)

        catalog = cls(video_id=video_id, translation_languages=translation_languages)
        for track in tracks:
            is_generated = track.get("kind") == "asr"
            code = track.get("languageCode") or "unknown"
            target = catalog.generated if is_generated else catalog.manually_created
            target[code] = Transcript(
                http_client,
                video_id,
                str(track.get("baseUrl") or "").replace("&fmt=srv3", ""),
                _language_name(track.get("name"), code),
                code,
                is_generated,
                translation_languages if track.get("isTranslatable") else [],
            )
        return catalog

    def __iter__(self) -> Iterator[Transcript]:
        yield from self.manually_created.values()
        yield from self.generated.values()

    def find_transcript(self, language_codes: Iterable[str]) -> Transcript:
        """First match in caller order, manual tracks preferred per language."""
        return self._find(language_codes, (self.manually_created, self.generated))

    def find_manually_created_transcript(self, language_codes: Iterable[str]) -> Transcript:
        return self._find(language_codes, (self.manually_created,))

    def find_generated_transcript(self, language_codes: Iterable[str]) -> Transcript:
        return self._find(language_codes, (self.generated,))

    def _find(
        self, language_codes: Iterable[str], maps: tuple[dict[str, Transcript], ...]
    ) -> Transcript:
        codes = list(language_codes)
        for code in codes:
            for tracks in maps:
                if code in tracks:
                    return tracks[code]
        raise NoTranscriptFound(self.video_id, codes, str(self))

    def __str__(self) -> str:
        def describe(items: list[str]) -> str:
            return "\n".join(f" - {item}" for item in items) or "None"

        return (
            f"For this video ({self.video_id}) transcripts are available in the "
            "following languages:\n\n"
            f"(MANUALLY CREATED)\n{describe([str(t) for t in self.manually_created.values()])}\n\n"
            f"(GENERATED)\n{describe([str(t) for t in self.generated.values()])}\n\n"
            "(TRANSLATION LANGUAGES)\n"
            + describe([f'{t.language_code} ("{t.language}")' for t in self.translation_languages])
        )

    def to_dict(self) -> dict:
        return {
            "video_id": self.video_id,
            "manually_created": [t.to_dict() for t in self.manually_created.values()],
            "generated": [t.to_dict() for t in self.generated.values()],
            "translation_languages": [
                {"language": t.language, "language_code": t.language_code}
                for t in self.translation_languages
            ],
        }
