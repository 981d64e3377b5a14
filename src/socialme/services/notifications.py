"""Persisted user notifications and their live delivery."""
from __future__ import annotations

import logging
from collections.abc import Sequence

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from socialme.core.errors import NotFoundError, NotificationDeliveryError
from socialme.models.notification import Notification
from socialme.services.sinks import NotificationSink, get_notification_sink

__all__ = ["NotificationService", "deliver_quietly"]

logger = logging.getLogger(__name__)


def deliver_quietly(sink: NotificationSink, notification: Notification) -> bool:
    """Hand ``notification`` to ``sink``; log and return False on failure."""
    try:
        sink.deliver(notification)
    except (NotificationDeliveryError, OSError, ConnectionError, TimeoutError) as exc:
        logger.warning(
            "Delivery of notification %s to %s failed: %s",
            notification.id,
            notification.usuario_destino,
            exc,
        )
        return False
    return True


class NotificationService:
    """Create, list and acknowledge notifications."""

    def __init__(self, session: Session, sink: NotificationSink | None = None) -> None:
        self.session = session
        self.sink = sink or get_notification_sink()

    def create(
        self,
        *,
        tipo: str,
        titulo: str,
        mensaje: str,
        usuario_destino: str,
        entidad_id: str | None = None,
        entidad_nombre: str | None = None,
    ) -> Notification:
        """Persist a notification and push it to the recipient.

        Delivery is best-effort; the stored row is the durable record.
        """
        notification = Notification(
            tipo=tipo,
            titulo=titulo,
            mensaje=mensaje,
            usuario_destino=usuario_destino,
            entidad_id=entidad_id,
            entidad_nombre=entidad_nombre,
        )
        self.session.add(notification)
        try:
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise
        self.session.refresh(notification)
        deliver_quietly(self.sink, notification)
        return notification

    def list_for_user(self, username: str) -> Sequence[Notification]:
        """Return the user's notifications, newest first."""
        stmt = (
            select(Notification)
            .where(Notification.usuario_destino == username)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
        )
        return list(self.session.scalars(stmt))

    def mark_read(self, notification_id: str) -> Notification:
        notification = self.session.get(Notification, notification_id)
        if notification is None:
            raise NotFoundError(f"notification '{notification_id}' not found")
        if not notification.leida:
            notification.leida = True
            self.session.commit()
            self.session.refresh(notification)
        return notification

    def count_unread(self, username: str) -> int:
        stmt = select(func.count(Notification.id)).where(
            Notification.usuario_destino == username,
            Notification.leida.is_(False),
        )
        return int(self.session.scalar(stmt) or 0)
