"""Community endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Query, Response, status

from socialme.models import Activity, Community, CommunityMembership
from socialme.schemas.activity import ActivityResponse
from socialme.schemas.common import CountResponse, FlagResponse
from socialme.schemas.community import (
    CommunityCreate,
    CommunityResponse,
    CommunityUpdate,
    CreatorTransfer,
)
from socialme.schemas.media import CarouselOrder, MediaIdsResponse
from socialme.schemas.membership import (
    CodeJoinRequest,
    CommunityMembershipResponse,
    ExpelRequest,
    MembershipRequest,
)

from ..dependencies import ActivityServiceDep, CommunityServiceDep, UploadDep

router = APIRouter(prefix="/communities", tags=["communities"])


@router.post("/", response_model=CommunityResponse, status_code=status.HTTP_201_CREATED)
def create_community(data: CommunityCreate, communities: CommunityServiceDep) -> Community:
    """Create a new community; the creator joins it automatically."""
    return communities.create(data)


@router.get("/{url}", response_model=CommunityResponse)
def get_community(url: str, communities: CommunityServiceDep) -> Community:
    return communities.get(url)


@router.patch("/{url}", response_model=CommunityResponse)
def update_community(url: str, data: CommunityUpdate, communities: CommunityServiceDep) -> Community:
    """Update a community; a new ``url`` is cascaded to every dependent record."""
    return communities.update(url, data)


@router.delete("/{url}", status_code=status.HTTP_204_NO_CONTENT)
def delete_community(url: str, communities: CommunityServiceDep) -> Response:
    communities.delete(url)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{url}/rename/resume", response_model=CommunityResponse)
def resume_community_rename(
    url: str,
    previous: Annotated[str, Query(min_length=1)],
    communities: CommunityServiceDep,
) -> Community:
    """Finish migrating references from ``previous`` to ``url``."""
    return communities.core.cascade.resume_community_rename(previous, url)


@router.post("/{url}/transfer", response_model=CommunityResponse)
def transfer_creator(
    url: str, data: CreatorTransfer, communities: CommunityServiceDep
) -> Community:
    return communities.transfer_creator(url, data.current, data.new)


# -- media ----------------------------------------------------------------


@router.put("/{url}/profile-media", response_model=MediaIdsResponse)
def replace_profile_media(
    url: str, upload: UploadDep, communities: CommunityServiceDep
) -> MediaIdsResponse:
    blob_id = communities.replace_profile_media(url, upload)
    return MediaIdsResponse(profile_media_id=blob_id)


@router.post("/{url}/carousel", response_model=MediaIdsResponse)
def append_carousel_media(
    url: str, upload: UploadDep, communities: CommunityServiceDep
) -> MediaIdsResponse:
    """Append one uploaded item to the end of the carousel."""
    community = communities.get(url)
    ids = communities.replace_carousel(url, [*community.carousel_media_ids, upload])
    return MediaIdsResponse(profile_media_id=community.profile_media_id, carousel_media_ids=ids)


@router.put("/{url}/carousel", response_model=MediaIdsResponse)
def reorder_carousel(
    url: str, order: CarouselOrder, communities: CommunityServiceDep
) -> MediaIdsResponse:
    """Keep only the listed ids, in the listed order."""
    ids = communities.replace_carousel(url, order.keep)
    return MediaIdsResponse(
        profile_media_id=communities.get(url).profile_media_id, carousel_media_ids=ids
    )


# -- activities -----------------------------------------------------------


@router.get("/{url}/activities", response_model=list[ActivityResponse])
def list_community_activities(url: str, activities: ActivityServiceDep) -> list[Activity]:
    return activities.list_for_community(url)


# -- membership -----------------------------------------------------------


@router.get("/{url}/members", response_model=list[CommunityMembershipResponse])
def list_members(url: str, communities: CommunityServiceDep) -> list[CommunityMembership]:
    return communities.core.membership.community_members(url)


@router.get("/{url}/members/count", response_model=CountResponse)
def count_members(url: str, communities: CommunityServiceDep) -> CountResponse:
    return CountResponse(count=communities.core.membership.count_community_members(url))


@router.get("/{url}/members/{username}", response_model=FlagResponse)
def is_member(url: str, username: str, communities: CommunityServiceDep) -> FlagResponse:
    return FlagResponse(value=communities.core.membership.is_community_member(username, url))


@router.post(
    "/{url}/members",
    response_model=CommunityMembershipResponse,
    status_code=status.HTTP_201_CREATED,
)
def join_community(
    url: str, data: MembershipRequest, communities: CommunityServiceDep
) -> CommunityMembership:
    return communities.core.membership.join_community(data.username, url)


@router.post(
    "/{url}/members/code",
    response_model=CommunityMembershipResponse,
    status_code=status.HTTP_201_CREATED,
)
def join_community_with_code(
    url: str, data: CodeJoinRequest, communities: CommunityServiceDep
) -> CommunityMembership:
    """Join a private community with its join code."""
    return communities.core.membership.join_community_with_code(data.username, url, data.codigo)


@router.delete("/{url}/members/{username}", status_code=status.HTTP_204_NO_CONTENT)
def leave_community(url: str, username: str, communities: CommunityServiceDep) -> Response:
    communities.core.membership.leave_community(username, url)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{url}/expel", status_code=status.HTTP_204_NO_CONTENT)
def expel_member(url: str, data: ExpelRequest, communities: CommunityServiceDep) -> Response:
    communities.core.membership.expel_from_community(data.username, url, data.requested_by)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
