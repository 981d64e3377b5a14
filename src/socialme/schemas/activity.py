"""Activity-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ActivityCreate(BaseModel):
    """Schema for scheduling an activity inside a community."""

    nombre: str = Field(..., min_length=1)
    descripcion: str = ""
    comunidad: str
    creador: str
    fecha_inicio: datetime
    fecha_finalizacion: datetime
    privada: bool = False
    lugar: str = ""
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)


class ActivityUpdate(BaseModel):
    """Partial update of an activity; a new ``nombre`` is copied to its dependents."""

    nombre: str | None = Field(None, min_length=1)
    descripcion: str | None = None
    fecha_inicio: datetime | None = None
    fecha_finalizacion: datetime | None = None
    privada: bool | None = None
    lugar: str | None = None
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)


class ActivityResponse(BaseModel):
    """Activity returned by the API."""

    id: str
    nombre: str
    descripcion: str
    carousel_media_ids: list[str]
    comunidad: str
    creador: str
    fecha_inicio: datetime
    fecha_finalizacion: datetime
    privada: bool
    lugar: str
    latitude: float | None
    longitude: float | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ActivityIndexEntry(BaseModel):
    """Entry of a community's activity listing."""

    comunidad: str
    actividad_id: str
    nombre_actividad: str

    model_config = ConfigDict(from_attributes=True)
