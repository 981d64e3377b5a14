"""Notification-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class NotificationResponse(BaseModel):
    """Notification returned by the API."""

    id: str
    tipo: str
    titulo: str
    mensaje: str
    usuario_destino: str
    entidad_id: str | None
    entidad_nombre: str | None
    created_at: datetime
    leida: bool

    model_config = ConfigDict(from_attributes=True)
