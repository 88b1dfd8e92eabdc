"""Extract a YouTube video id from a bare id or a watch/share URL."""

from __future__ import annotations

import re
from urllib.parse import parse_qs, urlsplit

YOUTUBE_HOSTS = frozenset(
    {"youtube.com", "www.youtube.com", "m.youtube.com", "youtu.be", "www.youtu.be"}
)
SHORT_LINK_HOSTS = frozenset({"youtu.be", "www.youtu.be"})

VIDEO_ID_PATTERN = re.compile(r"[A-Za-z0-9_-]{11}")
_PATH_ID = re.compile(r"/(?:shorts|embed|live)/([^/?]+)")


def is_video_id(value: str) -> bool:
    return bool(VIDEO_ID_PATTERN.fullmatch(value))


def extract_video_id(text: str) -> str | None:
    """Return the 11-character video id referenced by *text*, or None.

    Accepts a bare id, ``youtu.be/<id>`` short links, ``watch?v=<id>`` URLs,
    and ``/shorts/``, ``/embed/`` or ``/live/`` paths on the YouTube hosts.
    """
    candidate = text.strip()
    if not candidate:
        return None
    if is_video_id(candidate):
        return candidate

    try:
        parts = urlsplit(candidate)
        host = (parts.hostname or "").lower()
    except ValueError:
        return None
    if parts.scheme not in ("http", "https") or host not in YOUTUBE_HOSTS:
        return None

    if host in SHORT_LINK_HOSTS:
        segments = [segment for segment in parts.path.split("/") if segment]
        if segments and is_video_id(segments[0]):
            return segments[0]
        return None

    for value in parse_qs(parts.query).get("v", [])[:1]:
        if is_video_id(value):
            return value

    match = _PATH_ID.search(parts.path)
    if match and is_video_id(match.group(1)):
        return match.group(1)
    return None
