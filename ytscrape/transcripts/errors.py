"""Transcript retrieval failures.

Every failure is a ``CouldNotRetrieveTranscript`` tagged with a
``TranscriptErrorKind`` and a small payload. The human-readable message is
derived from those fields by ``render_message``; the per-kind subclasses
exist so callers can catch a single case (``except RequestBlocked``).
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum

from ytscrape.middleware.error_handler import ScraperError

WATCH_URL = "https://www.youtube.com/watch?v={video_id}"


class InvalidProxyConfig(ValueError):
    """A proxy configuration that cannot produce any proxy URL."""


class TranscriptErrorKind(str, Enum):
    REQUEST_BLOCKED = "request_blocked"
    IP_BLOCKED = "ip_blocked"
    VIDEO_UNAVAILABLE = "video_unavailable"
    INVALID_VIDEO_ID = "invalid_video_id"
    AGE_RESTRICTED = "age_restricted"
    TRANSCRIPTS_DISABLED = "transcripts_disabled"
    VIDEO_UNPLAYABLE = "video_unplayable"
    NO_TRANSCRIPT_FOUND = "no_transcript_found"
    NOT_TRANSLATABLE = "not_translatable"
    TRANSLATION_LANGUAGE_NOT_AVAILABLE = "translation_language_not_available"
    PO_TOKEN_REQUIRED = "po_token_required"
    DATA_UNPARSABLE = "data_unparsable"
    REQUEST_FAILED = "request_failed"
    FAILED_TO_CREATE_CONSENT_COOKIE = "failed_to_create_consent_cookie"


# ---------------------------------------------------------------------------
# Message rendering
# ---------------------------------------------------------------------------

_BLOCKED_BASE = (
    "YouTube is blocking requests from your IP. This usually is due to one of the "
    "following reasons:\n"
    "- You have done too many requests and your IP has been blocked by YouTube\n"
    "- You are doing requests from an IP belonging to a cloud provider (like AWS, "
    "Google Cloud Platform, Azure, etc.). Unfortunately, most IPs from cloud "
    "providers are blocked by YouTube.\n\n"
)

_BLOCKED_HINTS = {
    "none": (
        "Route requests through a proxy to hide your IP address. Enable the "
        "built-in proxy pool (YTSCRAPE_PROXY_ENABLED=true) or configure "
        "residential proxy credentials."
    ),
    "generic": (
        "YouTube is blocking your requests, despite you using proxies. A proxy only "
        "hides your real IP behind the IP of that proxy, but there is no guarantee "
        "that the IP of that proxy won't be blocked as well.\n\n"
        "The only truly reliable way to prevent IP blocks is rotating through a large "
        "pool of residential IPs."
    ),
    "rotating": (
        "YouTube is blocking your requests, despite rotating through the free proxy "
        "pool. Free proxies are frequently blocked; warm the pool again to fetch a "
        "fresh set, or configure residential proxy credentials."
    ),
    "webshare": (
        "YouTube is blocking your requests, despite you using Webshare proxies. "
        'Please make sure that you have purchased "Residential" proxies and NOT '
        '"Proxy Server" or "Static Residential", as those won\'t work as reliably! '
        'The free tier also uses "Proxy Server" and will NOT work!'
    ),
}

_IP_BLOCKED_HINT = (
    "Route requests through a proxy or wait before retrying; captcha pages are "
    "served until the block is lifted."
)

_CAUSES: dict[TranscriptErrorKind, str] = {
    TranscriptErrorKind.VIDEO_UNAVAILABLE: "The video is no longer available",
    TranscriptErrorKind.INVALID_VIDEO_ID: (
        "You provided an invalid video id. Make sure you are using the video id "
        "and NOT the url!"
    ),
    TranscriptErrorKind.AGE_RESTRICTED: (
        "This video is age-restricted. Therefore, you are unable to retrieve "
        "transcripts for it without authenticating yourself."
    ),
    TranscriptErrorKind.TRANSCRIPTS_DISABLED: "Subtitles are disabled for this video",
    TranscriptErrorKind.NOT_TRANSLATABLE: "The requested language is not translatable",
    TranscriptErrorKind.TRANSLATION_LANGUAGE_NOT_AVAILABLE: (
        "The requested translation language is not available"
    ),
    TranscriptErrorKind.PO_TOKEN_REQUIRED: (
        "The requested video cannot be retrieved without a PO Token."
    ),
    TranscriptErrorKind.DATA_UNPARSABLE: (
        "The data required to fetch the transcript is not parsable. This should "
        "not happen, please report it together with the video ID!"
    ),
    TranscriptErrorKind.FAILED_TO_CREATE_CONSENT_COOKIE: (
        "Failed to automatically give consent to saving cookies"
    ),
}


def _cause(error: CouldNotRetrieveTranscript) -> str:
    kind = error.kind
    if kind in (TranscriptErrorKind.REQUEST_BLOCKED, TranscriptErrorKind.IP_BLOCKED):
        proxy_kind = error.proxy_config_kind or "none"
        if kind is TranscriptErrorKind.IP_BLOCKED and proxy_kind == "none":
            return _BLOCKED_BASE + _IP_BLOCKED_HINT
        hint = _BLOCKED_HINTS.get(proxy_kind, _BLOCKED_HINTS["none"])
        return hint if proxy_kind != "none" else _BLOCKED_BASE + hint
    if kind is TranscriptErrorKind.REQUEST_FAILED:
        return f"Request to YouTube failed: {error.reason}"
    if kind is TranscriptErrorKind.VIDEO_UNPLAYABLE:
        reason = error.reason if error.reason is not None else "No reason specified!"
        if error.sub_reasons:
            details = "\n".join(f" - {item}" for item in error.sub_reasons)
            reason = f"{reason}\n\nAdditional Details:\n{details}"
        return f"The video is unplayable for the following reason: {reason}"
    if kind is TranscriptErrorKind.NO_TRANSCRIPT_FOUND:
        return (
            "No transcripts were found for any of the requested language codes: "
            f"{list(error.requested_language_codes)}\n\n{error.transcript_data or ''}"
        )
    return _CAUSES.get(kind, "")


def render_message(error: CouldNotRetrieveTranscript) -> str:
    """Build the full message for *error* from its kind and payload."""
    message = (
        "\nCould not retrieve a transcript for the video "
        f"{WATCH_URL.format(video_id=error.video_id)}!"
    )
    cause = _cause(error)
    if cause:
        message += f" This is most likely caused by:\n\n{cause}"
    return message


# ---------------------------------------------------------------------------
# Error types
# ---------------------------------------------------------------------------


class CouldNotRetrieveTranscript(ScraperError):
    """Base for every transcript retrieval failure."""

    kind: TranscriptErrorKind = TranscriptErrorKind.DATA_UNPARSABLE
    status_code = 502
    retryable = False

    def __init__(
        self,
        video_id: str,
        *,
        reason: str | None = None,
        sub_reasons: Iterable[str] = (),
        requested_language_codes: Iterable[str] = (),
        transcript_data: str | None = None,
        proxy_config_kind: str | None = None,
    ) -> None:
        self.video_id = video_id
        self.reason = reason
        self.sub_reasons = list(sub_reasons)
        self.requested_language_codes = list(requested_language_codes)
        self.transcript_data = transcript_data
        self.proxy_config_kind = proxy_config_kind
        super().__init__(render_message(self), video_id=video_id, kind=self.kind.value)

    def with_proxy_config_kind(self, proxy_config_kind: str) -> CouldNotRetrieveTranscript:
        """Record which proxy setup was in use and re-render the message."""
        self.proxy_config_kind = proxy_config_kind
        self.message = render_message(self)
        self.args = (self.message,)
        self.details["proxy_config"] = proxy_config_kind
        return self

    def __str__(self) -> str:
        return self.message


class RequestBlocked(CouldNotRetrieveTranscript):
    kind = TranscriptErrorKind.REQUEST_BLOCKED
    status_code = 429
    retryable = True


class IpBlocked(RequestBlocked):
    kind = TranscriptErrorKind.IP_BLOCKED


class VideoUnavailable(CouldNotRetrieveTranscript):
    kind = TranscriptErrorKind.VIDEO_UNAVAILABLE
    status_code = 404


class InvalidVideoId(CouldNotRetrieveTranscript):
    kind = TranscriptErrorKind.INVALID_VIDEO_ID
    status_code = 400


class AgeRestricted(CouldNotRetrieveTranscript):
    kind = TranscriptErrorKind.AGE_RESTRICTED
    status_code = 403


class TranscriptsDisabled(CouldNotRetrieveTranscript):
    kind = TranscriptErrorKind.TRANSCRIPTS_DISABLED
    status_code = 404


class VideoUnplayable(CouldNotRetrieveTranscript):
    kind = TranscriptErrorKind.VIDEO_UNPLAYABLE
    status_code = 422

    def __init__(
        self, video_id: str, reason: str | None, sub_reasons: Iterable[str] = ()
    ) -> None:
        super().__init__(video_id, reason=reason, sub_reasons=sub_reasons)


class NoTranscriptFound(CouldNotRetrieveTranscript):
    kind = TranscriptErrorKind.NO_TRANSCRIPT_FOUND
    status_code = 404

    def __init__(
        self,
        video_id: str,
        requested_language_codes: Iterable[str],
        transcript_data: str,
    ) -> None:
        super().__init__(
            video_id,
            requested_language_codes=requested_language_codes,
            transcript_data=transcript_data,
        )


class NotTranslatable(CouldNotRetrieveTranscript):
    kind = TranscriptErrorKind.NOT_TRANSLATABLE
    status_code = 400


class TranslationLanguageNotAvailable(CouldNotRetrieveTranscript):
    kind = TranscriptErrorKind.TRANSLATION_LANGUAGE_NOT_AVAILABLE
    status_code = 400


class PoTokenRequired(CouldNotRetrieveTranscript):
    kind = TranscriptErrorKind.PO_TOKEN_REQUIRED


class YouTubeDataUnparsable(CouldNotRetrieveTranscript):
    kind = TranscriptErrorKind.DATA_UNPARSABLE


class YouTubeRequestFailed(CouldNotRetrieveTranscript):
    kind = TranscriptErrorKind.REQUEST_FAILED

    def __init__(self, video_id: str, reason: str) -> None:
        super().__init__(video_id, reason=str(reason))


class FailedToCreateConsentCookie(CouldNotRetrieveTranscript):
    kind = TranscriptErrorKind.FAILED_TO_CREATE_CONSENT_COOKIE
