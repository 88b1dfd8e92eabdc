"""Render fetched transcripts as JSON, plain text, SRT or WebVTT."""

from __future__ import annotations

import json
from collections.abc import Sequence

from ytscrape.transcripts.models import FetchedTranscript, FetchedTranscriptSnippet


class UnknownFormatterType(ValueError):
    def __init__(self, formatter_type: str) -> None:
        super().__init__(
            f"The format '{formatter_type}' is not supported. Choose one of the "
            f"following formats: {', '.join(FormatterLoader.TYPES)}"
        )
        self.formatter_type = formatter_type


class Formatter:
    """Base formatter. Subclasses render one or many transcripts to a string."""

    def format_transcript(self, transcript: FetchedTranscript, **kwargs: object) -> str:
        raise NotImplementedError

    def format_transcripts(
        self, transcripts: Sequence[FetchedTranscript], **kwargs: object
    ) -> str:
        raise NotImplementedError


class PrettyPrintFormatter(Formatter):
    def format_transcript(self, transcript: FetchedTranscript, indent: int = 2, **kwargs: object) -> str:
        return json.dumps(transcript.to_raw_data(), indent=indent, ensure_ascii=False)

    def format_transcripts(
        self, transcripts: Sequence[FetchedTranscript], indent: int = 2, **kwargs: object
    ) -> str:
        return json.dumps(
            [t.to_raw_data() for t in transcripts], indent=indent, ensure_ascii=False
        )


class JSONFormatter(Formatter):
    def format_transcript(self, transcript: FetchedTranscript, **kwargs: object) -> str:
        return json.dumps(transcript.to_raw_data(), ensure_ascii=False, **kwargs)  # type: ignore[arg-type]

    def format_transcripts(
        self, transcripts: Sequence[FetchedTranscript], **kwargs: object
    ) -> str:
        return json.dumps(
            [t.to_raw_data() for t in transcripts], ensure_ascii=False, **kwargs  # type: ignore[arg-type]
        )


class TextFormatter(Formatter):
    def format_transcript(self, transcript: FetchedTranscript, **kwargs: object) -> str:
        return "\n".join(snippet.text for snippet in transcript)

    def format_transcripts(
        self, transcripts: Sequence[FetchedTranscript], **kwargs: object
    ) -> str:
        return "\n\n\n".join(self.format_transcript(t) for t in transcripts)


class _TextBasedFormatter(TextFormatter):
    """Cue-based subtitle formats.

    A cue ends where the next one starts if they overlap, otherwise at
    ``start + duration``.
    """

    separator = ","

    def _format_timestamp(self, seconds: float) -> str:
        total_ms = round(seconds * 1000)
        hours, rest = divmod(total_ms, 3_600_000)
        mins, rest = divmod(rest, 60_000)
        secs, ms = divmod(rest, 1000)
        return f"{hours:02d}:{mins:02d}:{secs:02d}{self.separator}{ms:03d}"

    def _format_cue(self, index: int, time_text: str, snippet: FetchedTranscriptSnippet) -> str:
        raise NotImplementedError

    def _format_document(self, cues: list[str]) -> str:
        raise NotImplementedError

    def format_transcript(self, transcript: FetchedTranscript, **kwargs: object) -> str:
        snippets = transcript.snippets
        cues: list[str] = []
        for i, snippet in enumerate(snippets):
            end = snippet.start + snippet.duration
            if i + 1 < len(snippets) and snippets[i + 1].start < end:
                end = snippets[i + 1].start
            time_text = f"{self._format_timestamp(snippet.start)} --> {self._format_timestamp(end)}"
            cues.append(self._format_cue(i, time_text, snippet))
        return self._format_document(cues)


class SRTFormatter(_TextBasedFormatter):
    separator = ","

    def _format_cue(self, index: int, time_text: str, snippet: FetchedTranscriptSnippet) -> str:
        return f"{index + 1}\n{time_text}\n{snippet.text}"

    def _format_document(self, cues: list[str]) -> str:
        return "\n\n".join(cues) + "\n"


class WebVTTFormatter(_TextBasedFormatter):
    separator = "."

    def _format_cue(self, index: int, time_text: str, snippet: FetchedTranscriptSnippet) -> str:
        return f"{time_text}\n{snippet.text}"

    def _format_document(self, cues: list[str]) -> str:
        return "WEBVTT\n\n" + "\n\n".join(cues) + "\n"


class FormatterLoader:
    TYPES: dict[str, type[Formatter]] = {
        "json": JSONFormatter,
        "pretty": PrettyPrintFormatter,
        "text": TextFormatter,
        "webvtt": WebVTTFormatter,
        "srt": SRTFormatter,
    }

    def load(self, formatter_type: str = "pretty") -> Formatter:
        if formatter_type not in self.TYPES:
            raise UnknownFormatterType(formatter_type)
        return self.TYPES[formatter_type]()
