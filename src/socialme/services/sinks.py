"""Real-time delivery channels for notifications."""
from __future__ import annotations

import json
import logging
from functools import lru_cache
from typing import Any, Protocol

import redis

from socialme.core.errors import NotificationDeliveryError
from socialme.core.settings import settings
from socialme.models.notification import Notification

__all__ = [
    "NotificationSink",
    "RedisNotificationSink",
    "LoggingNotificationSink",
    "notification_payload",
    "get_notification_sink",
]

logger = logging.getLogger(__name__)


def notification_payload(notification: Notification) -> dict[str, Any]:
    """Return the JSON-serializable message pushed to a user's queue."""
    created_at = notification.created_at
    return {
        "id": notification.id,
        "tipo": notification.tipo,
        "titulo": notification.titulo,
        "mensaje": notification.mensaje,
        "usuario_destino": notification.usuario_destino,
        "entidad_id": notification.entidad_id,
        "entidad_nombre": notification.entidad_nombre,
        "created_at": created_at.isoformat() if created_at else None,
        "leida": notification.leida,
    }


class NotificationSink(Protocol):
    """Pushes a stored notification to its recipient's live queue."""

    def deliver(self, notification: Notification) -> None: ...


class RedisNotificationSink:
    """Publishes notifications on ``{prefix}.{username}`` redis channels."""

    def __init__(self, client: redis.Redis | None = None, prefix: str | None = None) -> None:
        self._redis = client if client is not None else redis.from_url(settings.redis_url)
        self.prefix = prefix or settings.notifications_channel_prefix

    def channel_for(self, username: str) -> str:
        return f"{self.prefix}.{username}"

    def deliver(self, notification: Notification) -> None:
        channel = self.channel_for(notification.usuario_destino)
        try:
            self._redis.publish(channel, json.dumps(notification_payload(notification)))
        except redis.RedisError as exc:
            raise NotificationDeliveryError(f"publish to {channel} failed: {exc}") from exc
        logger.debug("Published notification %s on %s", notification.id, channel)


class LoggingNotificationSink:
    """Sink used when real-time delivery is disabled."""

    def deliver(self, notification: Notification) -> None:
        logger.info(
            "Notification %s (%s) for %s",
            notification.id,
            notification.tipo,
            notification.usuario_destino,
        )


@lru_cache(maxsize=1)
def get_notification_sink() -> NotificationSink:
    """Return the process-wide sink selected by configuration."""
    if settings.notifications_realtime_enabled:
        return RedisNotificationSink()
    return LoggingNotificationSink()
