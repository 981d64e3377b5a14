"""SQLAlchemy models for activities and their community index."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Float, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from socialme.db.session import Base
from socialme.db.time import utcnow
from socialme.utils.ids import new_object_id


class Activity(Base):
    """A scheduled event owned by a community; its ``id`` never changes."""

    __tablename__ = "actividad"

    media_owner_type = "activity"

    id: Mapped[str] = mapped_column(String(24), primary_key=True, default=new_object_id)
    nombre: Mapped[str] = mapped_column(Text, nullable=False)
    descripcion: Mapped[str] = mapped_column(Text, nullable=False, default="")
    carousel_media_ids: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    # Copy of Community.url.
    comunidad: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    # Copy of User.username.
    creador: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    fecha_inicio: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    fecha_finalizacion: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    privada: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    lugar: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    @property
    def media_owner_key(self) -> str:
        """Return the key recorded in the owner tag of this activity's blobs."""
        return self.id


class ActivityCommunityIndex(Base):
    """Denormalized (community url, activity id, activity name) listing entry."""

    __tablename__ = "actividades_comunidad"

    id: Mapped[str] = mapped_column(String(24), primary_key=True, default=new_object_id)
    comunidad: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    actividad_id: Mapped[str] = mapped_column(String(24), nullable=False, index=True)
    nombre_actividad: Mapped[str] = mapped_column(Text, nullable=False)
