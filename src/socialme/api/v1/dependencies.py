"""Shared API dependencies wiring the services to the request session."""

from typing import Annotated

from fastapi import Body, Depends, Header, Query
from sqlalchemy.orm import Session

from socialme.db.session import get_db
from socialme.services.activities import ActivityService
from socialme.services.blob_store import SqlBlobStore
from socialme.services.communities import CommunityService
from socialme.services.core import CoreServices
from socialme.services.media import MediaUpload
from socialme.services.notifications import NotificationService
from socialme.services.sinks import NotificationSink, get_notification_sink
from socialme.services.users import UserService

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]
SinkDep = Annotated[NotificationSink, Depends(get_notification_sink)]


def get_core(db: SessionDep, sink: SinkDep) -> CoreServices:
    """Return the consistency engine bound to the request session."""
    return CoreServices(db, blob_store=SqlBlobStore(db), sink=sink)


CoreDep = Annotated[CoreServices, Depends(get_core)]


def get_user_service(core: CoreDep) -> UserService:
    return UserService(core)


def get_community_service(core: CoreDep) -> CommunityService:
    return CommunityService(core)


def get_activity_service(core: CoreDep) -> ActivityService:
    return ActivityService(core)


def get_notification_service(core: CoreDep) -> NotificationService:
    return core.notifications


UserServiceDep = Annotated[UserService, Depends(get_user_service)]
CommunityServiceDep = Annotated[CommunityService, Depends(get_community_service)]
ActivityServiceDep = Annotated[ActivityService, Depends(get_activity_service)]
NotificationServiceDep = Annotated[NotificationService, Depends(get_notification_service)]


def get_media_upload(
    content: Annotated[bytes, Body(media_type="application/octet-stream")],
    content_type: Annotated[str | None, Header()] = None,
    filename: Annotated[str | None, Query(max_length=255)] = None,
) -> MediaUpload:
    """Build an upload from a raw request body."""
    return MediaUpload(content=content, content_type=content_type, filename=filename)


UploadDep = Annotated[MediaUpload, Depends(get_media_upload)]
