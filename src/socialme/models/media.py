"""SQLAlchemy model for stored media blobs."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Integer, LargeBinary, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from socialme.db.session import Base
from socialme.db.time import utcnow
from socialme.utils.ids import new_object_id

ROLE_PROFILE = "profile"
ROLE_CAROUSEL = "carousel"


class MediaBlob(Base):
    """Opaque binary content addressed by id.

    The owner tag (``owner_type``, ``owner_key``, ``role``, ``position``) is
    diagnostic; the entity field that holds the id is the source of truth.
    """

    __tablename__ = "media_blob"

    id: Mapped[str] = mapped_column(String(24), primary_key=True, default=new_object_id)
    content: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    content_type: Mapped[str] = mapped_column(String(128), nullable=False)
    filename: Mapped[str | None] = mapped_column(Text, nullable=True)
    owner_type: Mapped[str | None] = mapped_column(String(16), nullable=True, index=True)
    owner_key: Mapped[str | None] = mapped_column(String(128), nullable=True, index=True)
    role: Mapped[str | None] = mapped_column(String(16), nullable=True)
    position: Mapped[int | None] = mapped_column(Integer, nullable=True)
    content_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    # Named ``extra`` to avoid shadowing DeclarativeBase.metadata.
    extra: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
