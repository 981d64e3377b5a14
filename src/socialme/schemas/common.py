"""Shared Pydantic schemas and validators."""
from __future__ import annotations

from pydantic import BaseModel, Field

MAX_INTEREST_LENGTH = 25


def clean_interests(values: list[str] | None) -> list[str] | None:
    """Trim interest tags; each must be one comma-free word of at most 25 characters."""
    if values is None:
        return None
    cleaned: list[str] = []
    for value in values:
        tag = value.strip()
        if len(tag) > MAX_INTEREST_LENGTH:
            raise ValueError(f"Interests cannot exceed {MAX_INTEREST_LENGTH} characters")
        if " " in tag:
            raise ValueError("Interests cannot contain spaces")
        if "," in tag:
            raise ValueError("Interests cannot contain commas")
        if tag:
            cleaned.append(tag)
    return cleaned


class CountResponse(BaseModel):
    """Numeric answer to a counting query."""

    count: int = Field(..., ge=0)


class FlagResponse(BaseModel):
    """Boolean answer to a membership query."""

    value: bool


class ErrorResponse(BaseModel):
    """Body returned for domain errors."""

    detail: str
    pending_collections: list[str] | None = None
