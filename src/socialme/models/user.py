# src/socialme/models/user.py
"""SQLAlchemy model for user accounts."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from socialme.db.session import Base
from socialme.db.time import utcnow
from socialme.utils.ids import new_object_id

ROLE_USER = "USER"
ROLE_ADMIN = "ADMIN"


class User(Base):
    """A person using the network, addressed everywhere by ``username``.

    ``username`` is mutable; copies of it live in membership edges, notification
    recipients, dispatch records and community creator/administrator fields.
    """

    __tablename__ = "usuario"

    media_owner_type = "user"

    id: Mapped[str] = mapped_column(String(24), primary_key=True, default=new_object_id)
    username: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    email: Mapped[str] = mapped_column(Text, nullable=False)
    nombre: Mapped[str] = mapped_column(Text, nullable=False, default="")
    apellidos: Mapped[str] = mapped_column(Text, nullable=False, default="")
    descripcion: Mapped[str] = mapped_column(Text, nullable=False, default="")
    intereses: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    profile_media_id: Mapped[str | None] = mapped_column(String(24), nullable=True)
    premium: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    role: Mapped[str] = mapped_column(String(16), nullable=False, default=ROLE_USER)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    @property
    def media_owner_key(self) -> str:
        """Return the natural key recorded in the owner tag of this user's blobs."""
        return self.username

    @property
    def is_admin(self) -> bool:
        """Return True for platform administrators."""
        return self.role == ROLE_ADMIN
