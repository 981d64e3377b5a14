# src/socialme/models/__init__.py
"""SQLAlchemy models for the SocialMe entity graph."""

from .activity import Activity, ActivityCommunityIndex
from .community import Community
from .media import MediaBlob
from .membership import ActivityParticipation, CommunityMembership
from .notification import Notification, NotificationDispatch
from .user import User

__all__ = [
    "Activity", "ActivityCommunityIndex",
    "Community",
    "MediaBlob",
    "ActivityParticipation", "CommunityMembership",
    "Notification", "NotificationDispatch",
    "User",
]
