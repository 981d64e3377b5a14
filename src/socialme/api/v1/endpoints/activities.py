"""Activity endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Response, status

from socialme.models import Activity, ActivityParticipation
from socialme.schemas.activity import ActivityCreate, ActivityResponse, ActivityUpdate
from socialme.schemas.common import CountResponse, FlagResponse
from socialme.schemas.media import CarouselOrder, MediaIdsResponse
from socialme.schemas.membership import ActivityParticipationResponse, MembershipRequest

from ..dependencies import ActivityServiceDep, UploadDep

router = APIRouter(prefix="/activities", tags=["activities"])


@router.post("/", response_model=ActivityResponse, status_code=status.HTTP_201_CREATED)
def create_activity(data: ActivityCreate, activities: ActivityServiceDep) -> Activity:
    """Schedule an activity in a community."""
    return activities.create(data)


@router.get("/{activity_id}", response_model=ActivityResponse)
def get_activity(activity_id: str, activities: ActivityServiceDep) -> Activity:
    return activities.get(activity_id)


@router.patch("/{activity_id}", response_model=ActivityResponse)
def update_activity(
    activity_id: str, data: ActivityUpdate, activities: ActivityServiceDep
) -> Activity:
    return activities.update(activity_id, data)


@router.delete("/{activity_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_activity(activity_id: str, activities: ActivityServiceDep) -> Response:
    activities.delete(activity_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{activity_id}/carousel", response_model=MediaIdsResponse)
def append_carousel_media(
    activity_id: str, upload: UploadDep, activities: ActivityServiceDep
) -> MediaIdsResponse:
    activity = activities.get(activity_id)
    ids = activities.replace_carousel(activity_id, [*activity.carousel_media_ids, upload])
    return MediaIdsResponse(carousel_media_ids=ids)


@router.put("/{activity_id}/carousel", response_model=MediaIdsResponse)
def reorder_carousel(
    activity_id: str, order: CarouselOrder, activities: ActivityServiceDep
) -> MediaIdsResponse:
    return MediaIdsResponse(carousel_media_ids=activities.replace_carousel(activity_id, order.keep))


@router.get("/{activity_id}/participants", response_model=list[ActivityParticipationResponse])
def list_participants(
    activity_id: str, activities: ActivityServiceDep
) -> list[ActivityParticipation]:
    return activities.core.membership.activity_participants(activity_id)


@router.get("/{activity_id}/participants/count", response_model=CountResponse)
def count_participants(activity_id: str, activities: ActivityServiceDep) -> CountResponse:
    return CountResponse(count=activities.core.membership.count_activity_participants(activity_id))


@router.get("/{activity_id}/participants/{username}", response_model=FlagResponse)
def is_participant(
    activity_id: str, username: str, activities: ActivityServiceDep
) -> FlagResponse:
    membership = activities.core.membership
    return FlagResponse(value=membership.is_activity_participant(username, activity_id))


@router.post(
    "/{activity_id}/participants",
    response_model=ActivityParticipationResponse,
    status_code=status.HTTP_201_CREATED,
)
def join_activity(
    activity_id: str, data: MembershipRequest, activities: ActivityServiceDep
) -> ActivityParticipation:
    return activities.core.membership.join_activity(data.username, activity_id)


@router.delete("/{activity_id}/participants/{username}", status_code=status.HTTP_204_NO_CONTENT)
def leave_activity(activity_id: str, username: str, activities: ActivityServiceDep) -> Response:
    activities.core.membership.leave_activity(username, activity_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
