"""User endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Query, Response, status

from socialme.models import Activity, Community, Notification, User
from socialme.schemas.activity import ActivityResponse
from socialme.schemas.common import CountResponse
from socialme.schemas.community import CommunityResponse
from socialme.schemas.media import MediaIdsResponse
from socialme.schemas.notification import NotificationResponse
from socialme.schemas.user import UserCreate, UserResponse, UserUpdate

from ..dependencies import (
    ActivityServiceDep,
    CommunityServiceDep,
    NotificationServiceDep,
    UploadDep,
    UserServiceDep,
)

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(data: UserCreate, users: UserServiceDep) -> User:
    """Register a new user."""
    return users.create(data)


@router.get("/{username}", response_model=UserResponse)
def get_user(username: str, users: UserServiceDep) -> User:
    return users.get(username)


@router.patch("/{username}", response_model=UserResponse)
def update_user(username: str, data: UserUpdate, users: UserServiceDep) -> User:
    """Update a user; changing ``username`` rewrites every copy of it."""
    return users.update(username, data)


@router.delete("/{username}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(username: str, users: UserServiceDep) -> Response:
    users.delete(username)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{username}/rename/resume", response_model=UserResponse)
def resume_user_rename(
    username: str,
    previous: Annotated[str, Query(min_length=1)],
    users: UserServiceDep,
) -> User:
    """Finish migrating references from ``previous`` to ``username``."""
    return users.core.cascade.resume_user_rename(previous, username)


@router.put("/{username}/profile-media", response_model=MediaIdsResponse)
def replace_profile_media(
    username: str, upload: UploadDep, users: UserServiceDep
) -> MediaIdsResponse:
    blob_id = users.replace_profile_media(username, upload)
    return MediaIdsResponse(profile_media_id=blob_id)


@router.get("/{username}/communities", response_model=list[CommunityResponse])
def list_user_communities(username: str, communities: CommunityServiceDep) -> list[Community]:
    return communities.list_for_user(username)


@router.get("/{username}/activities", response_model=list[ActivityResponse])
def list_user_activities(username: str, activities: ActivityServiceDep) -> list[Activity]:
    return activities.list_for_user(username)


@router.get("/{username}/notifications", response_model=list[NotificationResponse])
def list_notifications(
    username: str, notifications: NotificationServiceDep
) -> list[Notification]:
    """List a user's notifications, newest first."""
    return list(notifications.list_for_user(username))


@router.get("/{username}/notifications/unread-count", response_model=CountResponse)
def count_unread_notifications(
    username: str, notifications: NotificationServiceDep
) -> CountResponse:
    return CountResponse(count=notifications.count_unread(username))
