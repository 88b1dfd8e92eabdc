"""Caption XML text utilities."""

from __future__ import annotations

import re
from collections.abc import Callable

_NAMED_ENTITIES = {
    "amp": "&",
    "lt": "<",
    "gt": ">",
    "quot": '"',
    "apos": "'",
    "nbsp": " ",
}

_HEX_ENTITY = re.compile(r"&#x([0-9a-fA-F]+);")
_DEC_ENTITY = re.compile(r"&#(\d+);")
_NAMED_ENTITY = re.compile(r"&([a-zA-Z]+);")

_TEXT_ELEMENT = re.compile(r"<text\b([^>]*)>([\s\S]*?)</text>", re.IGNORECASE)
_START_ATTR = re.compile(r'start="([^"]+)"')
_DUR_ATTR = re.compile(r'dur="([^"]+)"')

FORMATTING_TAGS = ("strong", "em", "b", "i", "mark", "small", "del", "ins", "sub", "sup")

_ALL_TAGS = re.compile(r"<[^>]*>", re.IGNORECASE)
_NON_FORMATTING_TAGS = re.compile(
    r"</?(?!/?(" + "|".join(FORMATTING_TAGS) + r")\b).*?\b>", re.IGNORECASE
)


def _code_point(match: re.Match[str], base: int) -> str:
    try:
        return chr(int(match.group(1), base))
    except (ValueError, OverflowError):
        return match.group(0)


def decode_html(text: str) -> str:
    """Decode numeric (hex and decimal) and a handful of named entities.

    Unknown named entities are left untouched.
    """
    if not text:
        return ""
    text = _HEX_ENTITY.sub(lambda m: _code_point(m, 16), text)
    text = _DEC_ENTITY.sub(lambda m: _code_point(m, 10), text)
    return _NAMED_ENTITY.sub(lambda m: _NAMED_ENTITIES.get(m.group(1), m.group(0)), text)


def build_html_stripper(preserve_formatting: bool = False) -> Callable[[str], str]:
    pattern = _NON_FORMATTING_TAGS if preserve_formatting else _ALL_TAGS
    return lambda text: pattern.sub("", text)


def _float_attr(pattern: re.Pattern[str], attributes: str) -> float:
    match = pattern.search(attributes)
    if not match:
        return 0.0
    try:
        return float(match.group(1))
    except ValueError:
        return 0.0


def parse_transcript_xml(raw: str, preserve_formatting: bool = False) -> list[dict]:
    """Turn a timedtext document into ``{text, start, duration}`` records, in order."""
    strip = build_html_stripper(preserve_formatting)
    snippets: list[dict] = []
    for attributes, content in _TEXT_ELEMENT.findall(raw):
        snippets.append(
            {
                "text": strip(decode_html(content)),
                "start": _float_attr(_START_ATTR, attributes),
                "duration": _float_attr(_DUR_ATTR, attributes),
            }
        )
    return snippets
