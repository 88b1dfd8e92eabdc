"""YouTube caption retrieval: catalog scraping, track selection, and formatting."""

from ytscrape.transcripts.api import TranscriptApi
from ytscrape.transcripts.errors import (
    AgeRestricted,
    CouldNotRetrieveTranscript,
    FailedToCreateConsentCookie,
    InvalidProxyConfig,
    InvalidVideoId,
    IpBlocked,
    NoTranscriptFound,
    NotTranslatable,
    PoTokenRequired,
    RequestBlocked,
    TranscriptErrorKind,
    TranscriptsDisabled,
    TranslationLanguageNotAvailable,
    VideoUnavailable,
    VideoUnplayable,
    YouTubeDataUnparsable,
    YouTubeRequestFailed,
)
from ytscrape.transcripts.formatters import FormatterLoader
from ytscrape.transcripts.models import (
    FetchedTranscript,
    FetchedTranscriptSnippet,
    Transcript,
    TranscriptList,
    TranslationLanguage,
)
from ytscrape.transcripts.proxies import (
    GenericProxyConfig,
    ProxyConfig,
    RotatingPoolProxyConfig,
    WebshareProxyConfig,
)

__all__ = [
    "AgeRestricted",
    "CouldNotRetrieveTranscript",
    "FailedToCreateConsentCookie",
    "FetchedTranscript",
    "FetchedTranscriptSnippet",
    "FormatterLoader",
    "GenericProxyConfig",
    "InvalidProxyConfig",
    "InvalidVideoId",
    "IpBlocked",
    "NoTranscriptFound",
    "NotTranslatable",
    "PoTokenRequired",
    "ProxyConfig",
    "RequestBlocked",
    "RotatingPoolProxyConfig",
    "Transcript",
    "TranscriptApi",
    "TranscriptErrorKind",
    "TranscriptList",
    "TranscriptsDisabled",
    "TranslationLanguage",
    "TranslationLanguageNotAvailable",
    "VideoUnavailable",
    "VideoUnplayable",
    "WebshareProxyConfig",
    "YouTubeDataUnparsable",
    "YouTubeRequestFailed",
]
