"""SQLAlchemy models for notifications and reminder dispatch bookkeeping."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from socialme.db.session import Base
from socialme.db.time import utcnow
from socialme.utils.ids import new_object_id


class Notification(Base):
    """A message addressed to a user by username."""

    __tablename__ = "notificacion"

    id: Mapped[str] = mapped_column(String(24), primary_key=True, default=new_object_id)
    tipo: Mapped[str] = mapped_column(String(64), nullable=False)
    titulo: Mapped[str] = mapped_column(Text, nullable=False)
    mensaje: Mapped[str] = mapped_column(Text, nullable=False)
    usuario_destino: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    entidad_id: Mapped[str | None] = mapped_column(String(24), nullable=True)
    entidad_nombre: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    leida: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class NotificationDispatch(Base):
    """Proof that a reminder threshold was dispatched to one recipient.

    ``trigger_at`` is the trigger instant the dispatch covered. The composite
    primary key makes a second dispatch of the same (activity, recipient,
    threshold, trigger) fail at the store. Records are never deleted while the
    activity exists.
    """

    __tablename__ = "notification_dispatch"

    actividad_id: Mapped[str] = mapped_column(String(24), primary_key=True)
    usuario_destino: Mapped[str] = mapped_column(String(64), primary_key=True)
    threshold: Mapped[str] = mapped_column(String(32), primary_key=True)
    trigger_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), primary_key=True)
    dispatched_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
