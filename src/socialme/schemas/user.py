"""User-related Pydantic schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .common import clean_interests

USERNAME_PATTERN = r"^[A-Za-z0-9_.-]+$"


class UserCreate(BaseModel):
    """Schema for registering a user."""

    username: str = Field(..., min_length=1, max_length=64, pattern=USERNAME_PATTERN)
    email: str = Field(..., min_length=3)
    nombre: str = ""
    apellidos: str = ""
    descripcion: str = ""
    intereses: list[str] = Field(default_factory=list)
    premium: bool = False
    role: Literal["USER", "ADMIN"] = "USER"

    @field_validator("intereses")
    @classmethod
    def validate_interests(cls, v: list[str]) -> list[str]:
        """Normalize interest tags."""
        return clean_interests(v) or []


class UserUpdate(BaseModel):
    """Partial update of a user; ``username`` triggers a rename cascade."""

    username: str | None = Field(None, min_length=1, max_length=64, pattern=USERNAME_PATTERN)
    email: str | None = None
    nombre: str | None = None
    apellidos: str | None = None
    descripcion: str | None = None
    intereses: list[str] | None = None
    premium: bool | None = None

    @field_validator("intereses")
    @classmethod
    def validate_interests(cls, v: list[str] | None) -> list[str] | None:
        return clean_interests(v)


class UserResponse(BaseModel):
    """User returned by the API."""

    id: str
    username: str
    email: str
    nombre: str
    apellidos: str
    descripcion: str
    intereses: list[str]
    profile_media_id: str | None
    premium: bool
    role: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
