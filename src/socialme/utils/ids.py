# src/socialme/utils/ids.py
"""Identifier helpers."""

from __future__ import annotations

import re
import secrets

OBJECT_ID_LENGTH = 24
_OBJECT_ID_RE = re.compile(r"^[0-9a-f]{24}$")


def new_object_id() -> str:
    """Return a fresh 24-character hexadecimal document identifier."""
    return secrets.token_hex(OBJECT_ID_LENGTH // 2)


def is_object_id(value: object) -> bool:
    """Return True if ``value`` is a well-formed document identifier."""
    return isinstance(value, str) and bool(_OBJECT_ID_RE.match(value))
