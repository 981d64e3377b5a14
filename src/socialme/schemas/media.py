"""Media-related Pydantic schemas."""

from pydantic import BaseModel, Field


class CarouselOrder(BaseModel):
    """Ids to keep in a carousel, in display order; others are released."""

    keep: list[str] = Field(default_factory=list)


class MediaIdsResponse(BaseModel):
    """Blob ids currently referenced by an entity."""

    profile_media_id: str | None = None
    carousel_media_ids: list[str] = Field(default_factory=list)
