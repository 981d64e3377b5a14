"""SQLAlchemy model for communities."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Float, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from socialme.db.session import Base
from socialme.db.time import utcnow
from socialme.utils.ids import new_object_id


class Community(Base):
    """A group of users addressed by its human-chosen ``url`` slug.

    ``url`` is mutable and copied into membership edges, activities and the
    activity-to-community index.
    """

    __tablename__ = "comunidad"

    media_owner_type = "community"

    id: Mapped[str] = mapped_column(String(24), primary_key=True, default=new_object_id)
    url: Mapped[str] = mapped_column(String(128), unique=True, nullable=False, index=True)
    nombre: Mapped[str] = mapped_column(Text, nullable=False)
    descripcion: Mapped[str] = mapped_column(Text, nullable=False, default="")
    intereses: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    profile_media_id: Mapped[str | None] = mapped_column(String(24), nullable=True)
    # Display order is the order of this list, not the blob position tag.
    carousel_media_ids: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    creador: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    administradores: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    privada: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    codigo_union: Mapped[str | None] = mapped_column(String(16), nullable=True, unique=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    @property
    def media_owner_key(self) -> str:
        """Return the natural key recorded in the owner tag of this community's blobs."""
        return self.url

    def is_manager(self, username: str) -> bool:
        """Return True if ``username`` is the creator or an administrator."""
        return username == self.creador or username in (self.administradores or [])
