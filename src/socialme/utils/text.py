"""Text normalization helpers."""

from __future__ import annotations

import re
import unicodedata

_WHITESPACE_RE = re.compile(r"\s+")


def strip_accents(value: str) -> str:
    """Return ``value`` without combining diacritical marks."""
    decomposed = unicodedata.normalize("NFD", value)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def slugify(value: str) -> str:
    """Return the lowercase, hyphen-separated, accent-free form of ``value``.

    >>> slugify("  Running  Club Málaga ")
    'running-club-malaga'
    """
    words = _WHITESPACE_RE.split(value.strip())
    return strip_accents("-".join(word for word in words if word)).lower()
