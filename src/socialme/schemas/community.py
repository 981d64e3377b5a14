"""Community-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .common import clean_interests


class CommunityCreate(BaseModel):
    """Schema for creating a new community."""

    url: str = Field(..., min_length=1, max_length=128)
    nombre: str = Field(..., min_length=1)
    descripcion: str = ""
    intereses: list[str] = Field(default_factory=list)
    creador: str
    privada: bool = False
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)

    @field_validator("intereses")
    @classmethod
    def validate_interests(cls, v: list[str]) -> list[str]:
        return clean_interests(v) or []


class CommunityUpdate(BaseModel):
    """Partial update of a community; a new ``url`` triggers a rename cascade."""

    url: str | None = Field(None, min_length=1, max_length=128)
    nombre: str | None = Field(None, min_length=1)
    descripcion: str | None = None
    intereses: list[str] | None = None
    administradores: list[str] | None = None
    privada: bool | None = None
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)

    @field_validator("intereses")
    @classmethod
    def validate_interests(cls, v: list[str] | None) -> list[str] | None:
        return clean_interests(v)


class CreatorTransfer(BaseModel):
    """Hand-over of community creatorship."""

    current: str
    new: str


class CommunityResponse(BaseModel):
    """Community returned by the API."""

    id: str
    url: str
    nombre: str
    descripcion: str
    intereses: list[str]
    profile_media_id: str | None
    carousel_media_ids: list[str]
    creador: str
    administradores: list[str]
    privada: bool
    latitude: float | None
    longitude: float | None
    codigo_union: str | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
