"""User membership in communities and activities.

Membership edges are stored in their own collections and keyed by natural-key
copies (username, community url, activity id). Uniqueness of an edge is
enforced both here and by a unique index, so a racing duplicate insert still
surfaces as :class:`ConflictError`.
"""
from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from socialme.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from socialme.models import (
    Activity,
    ActivityParticipation,
    Community,
    CommunityMembership,
    User,
)
from socialme.repositories import Repositories

__all__ = ["MembershipRegistry"]

logger = logging.getLogger(__name__)


class MembershipRegistry:
    """Join, leave and query operations over membership edges."""

    def __init__(self, repos: Repositories) -> None:
        self.repos = repos

    # -- lookups -------------------------------------------------------------

    def _user(self, username: str) -> User:
        user = self.repos.users.get_by_key(username)
        if user is None:
            raise NotFoundError(f"user '{username}' not found")
        return user

    def _community(self, url: str) -> Community:
        community = self.repos.communities.get_by_key(url)
        if community is None:
            raise NotFoundError(f"community '{url}' not found")
        return community

    def _activity(self, activity_id: str) -> Activity:
        activity = self.repos.activities.get_by_id(activity_id)
        if activity is None:
            raise NotFoundError(f"activity '{activity_id}' not found")
        return activity

    def _community_edge(self, username: str, url: str) -> CommunityMembership | None:
        return self.repos.community_members.find_one_where(username=username, comunidad=url)

    def _activity_edge(self, username: str, activity_id: str) -> ActivityParticipation | None:
        return self.repos.activity_participants.find_one_where(
            username=username, actividad_id=activity_id
        )

    # -- joins ---------------------------------------------------------------

    def join_community(self, username: str, url: str) -> CommunityMembership:
        """Create the (user, community) edge."""
        user = self._user(username)
        self._community(url)
        if user.is_admin:
            raise ForbiddenError("platform administrators cannot join communities")
        return self._insert_community_edge(username, url)

    def join_community_with_code(self, username: str, url: str, code: str) -> CommunityMembership:
        """Join a private community using its join code."""
        community = self._community(url)
        if community.codigo_union is None:
            raise ValidationError(f"community '{url}' is public")
        user = self._user(username)
        if user.is_admin:
            raise ForbiddenError("platform administrators cannot join communities")
        if self._community_edge(username, url) is not None:
            raise ConflictError(f"user '{username}' already belongs to '{url}'")
        if code != community.codigo_union:
            raise ForbiddenError("join code does not match")
        return self._insert_community_edge(username, url)

    def join_activity(self, username: str, activity_id: str) -> ActivityParticipation:
        """Create the (user, activity) edge, copying the activity name."""
        user = self._user(username)
        activity = self._activity(activity_id)
        if user.is_admin:
            raise ForbiddenError("platform administrators cannot join activities")
        edge = ActivityParticipation(
            username=username,
            actividad_id=activity.id,
            nombre_actividad=activity.nombre,
        )
        self._insert_edge(edge, f"user '{username}' already participates in '{activity_id}'")
        logger.info("User %s joined activity %s", username, activity_id)
        return edge

    def _insert_community_edge(self, username: str, url: str) -> CommunityMembership:
        edge = CommunityMembership(username=username, comunidad=url)
        self._insert_edge(edge, f"user '{username}' already belongs to '{url}'")
        logger.info("User %s joined community %s", username, url)
        return edge

    def _insert_edge(self, edge: CommunityMembership | ActivityParticipation, conflict: str) -> None:
        session = self.repos.session
        session.add(edge)
        try:
            session.commit()
        except IntegrityError as exc:
            session.rollback()
            raise ConflictError(conflict) from exc
        except SQLAlchemyError:
            session.rollback()
            raise
        session.refresh(edge)

    # -- leaves --------------------------------------------------------------

    def leave_community(self, username: str, url: str) -> CommunityMembership:
        """Remove the user's edge; the creator cannot leave.

        Participation in the community's private activities goes with it.
        """
        community = self._community(url)
        if community.creador == username:
            raise ForbiddenError("the creator cannot leave the community")
        edge = self._community_edge(username, url)
        if edge is None:
            raise NotFoundError(f"user '{username}' is not a member of '{url}'")

        self._drop_private_participations(username, url)
        self.repos.community_members.delete(edge)
        logger.info("User %s left community %s", username, url)
        return edge

    def leave_activity(self, username: str, activity_id: str) -> ActivityParticipation:
        activity = self.repos.activities.get_by_id(activity_id)
        if activity is not None and activity.creador == username:
            raise ForbiddenError("the creator cannot leave the activity")
        edge = self._activity_edge(username, activity_id)
        if edge is None:
            raise NotFoundError(f"user '{username}' does not participate in '{activity_id}'")
        self.repos.activity_participants.delete(edge)
        logger.info("User %s left activity %s", username, activity_id)
        return edge

    def expel_from_community(self, username: str, url: str, requested_by: str) -> CommunityMembership:
        """Remove another user's edge on behalf of the creator or an administrator.

        Administrators may not expel the creator or other administrators.
        """
        community = self._community(url)
        self._user(username)
        self._user(requested_by)
        edge = self._community_edge(username, url)
        if edge is None:
            raise NotFoundError(f"user '{username}' is not a member of '{url}'")

        requester_is_creator = community.creador == requested_by
        if not community.is_manager(requested_by):
            raise ForbiddenError("only the creator or an administrator can expel members")
        if username == community.creador:
            raise ForbiddenError("the creator cannot be expelled")
        if not requester_is_creator and username in (community.administradores or []):
            raise ForbiddenError("administrators cannot expel other administrators")

        self._drop_private_participations(username, url)
        if username in (community.administradores or []):
            community.administradores = [
                admin for admin in community.administradores if admin != username
            ]
            self.repos.communities.save(community)
        self.repos.community_members.delete(edge)
        logger.info("User %s expelled %s from community %s", requested_by, username, url)
        return edge

    def _drop_private_participations(self, username: str, url: str) -> int:
        removed = 0
        for entry in self.repos.activity_index.find_all_where(comunidad=url):
            activity = self.repos.activities.get_by_id(entry.actividad_id)
            if activity is None or not activity.privada:
                continue
            removed += self.repos.activity_participants.delete_where(
                username=username, actividad_id=activity.id
            )
        return removed

    # -- creatorship ---------------------------------------------------------

    def transfer_creator(self, url: str, current: str, new: str) -> Community:
        """Hand creatorship to another member; the old creator becomes an administrator."""
        community = self._community(url)
        if community.creador != current:
            raise ForbiddenError("only the current creator can transfer the community")
        self._user(new)
        if self._community_edge(new, url) is None:
            raise ValidationError(f"user '{new}' must be a member of '{url}'")
        if current == new:
            raise ValidationError("cannot transfer the community to its current creator")

        administrators = [admin for admin in (community.administradores or []) if admin != new]
        if current not in administrators:
            administrators.append(current)
        community.creador = new
        community.administradores = administrators
        return self.repos.communities.save(community)

    # -- reads ---------------------------------------------------------------

    def is_community_member(self, username: str, url: str) -> bool:
        self._community(url)
        self._user(username)
        return self._community_edge(username, url) is not None

    def is_activity_participant(self, username: str, activity_id: str) -> bool:
        self._activity(activity_id)
        self._user(username)
        return self._activity_edge(username, activity_id) is not None

    def count_community_members(self, url: str) -> int:
        self._community(url)
        return self.repos.community_members.count_where(comunidad=url)

    def count_activity_participants(self, activity_id: str) -> int:
        self._activity(activity_id)
        return self.repos.activity_participants.count_where(actividad_id=activity_id)

    def community_members(self, url: str) -> list[CommunityMembership]:
        self._community(url)
        return self.repos.community_members.find_all_where(comunidad=url)

    def activity_participants(self, activity_id: str) -> list[ActivityParticipation]:
        self._activity(activity_id)
        return self.repos.activity_participants.find_all_where(actividad_id=activity_id)
