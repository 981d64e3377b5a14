"""Bundle of the repositories used by the core services."""
from __future__ import annotations

from sqlalchemy.orm import Session

from socialme.models import (
    Activity,
    ActivityCommunityIndex,
    ActivityParticipation,
    Community,
    CommunityMembership,
    MediaBlob,
    Notification,
    NotificationDispatch,
    User,
)

from .base import DocumentRepository

__all__ = ["Repositories"]


class Repositories:
    """All collections of the entity graph, bound to one session."""

    def __init__(self, session: Session) -> None:
        self.session = session
        self.users = DocumentRepository(session, User, key_field="username")
        self.communities = DocumentRepository(session, Community, key_field="url")
        self.activities = DocumentRepository(session, Activity)
        self.community_members = DocumentRepository(session, CommunityMembership)
        self.activity_participants = DocumentRepository(session, ActivityParticipation)
        self.activity_index = DocumentRepository(session, ActivityCommunityIndex)
        self.notifications = DocumentRepository(session, Notification)
        self.dispatches = DocumentRepository(session, NotificationDispatch)
        self.blobs = DocumentRepository(session, MediaBlob)
