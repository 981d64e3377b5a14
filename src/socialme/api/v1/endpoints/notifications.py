"""Notification endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from socialme.models import Notification
from socialme.schemas.notification import NotificationResponse

from ..dependencies import NotificationServiceDep

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.post("/{notification_id}/read", response_model=NotificationResponse)
def mark_notification_read(
    notification_id: str, notifications: NotificationServiceDep
) -> Notification:
    """Mark a notification as read."""
    return notifications.mark_read(notification_id)
