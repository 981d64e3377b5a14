"""Membership-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class MembershipRequest(BaseModel):
    """A user joining or leaving a group."""

    username: str


class CodeJoinRequest(BaseModel):
    """Join a private community with its code."""

    username: str
    codigo: str


class ExpelRequest(BaseModel):
    """Removal of a member by the creator or an administrator."""

    username: str
    requested_by: str


class CommunityMembershipResponse(BaseModel):
    username: str
    comunidad: str
    joined_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ActivityParticipationResponse(BaseModel):
    username: str
    actividad_id: str
    nombre_actividad: str
    joined_at: datetime

    model_config = ConfigDict(from_attributes=True)
