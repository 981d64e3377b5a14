"""SQLAlchemy models for membership edges.

Edges store natural-key copies of both ends; there are no foreign keys, so a
rename of either end has to be cascaded by the service layer.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from socialme.db.session import Base
from socialme.db.time import utcnow
from socialme.utils.ids import new_object_id


class CommunityMembership(Base):
    """User <-> Community edge."""

    __tablename__ = "participantes_comunidad"
    __table_args__ = (UniqueConstraint("username", "comunidad", name="uq_participante_comunidad"),)

    id: Mapped[str] = mapped_column(String(24), primary_key=True, default=new_object_id)
    username: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    comunidad: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class ActivityParticipation(Base):
    """User <-> Activity edge; also carries a copy of the activity name."""

    __tablename__ = "participantes_actividad"
    __table_args__ = (UniqueConstraint("username", "actividad_id", name="uq_participante_actividad"),)

    id: Mapped[str] = mapped_column(String(24), primary_key=True, default=new_object_id)
    username: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    actividad_id: Mapped[str] = mapped_column(String(24), nullable=False, index=True)
    nombre_actividad: Mapped[str] = mapped_column(Text, nullable=False, default="")
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
