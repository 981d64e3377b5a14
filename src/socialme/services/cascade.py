"""Propagation of key changes and deletions across the denormalized graph.

Usernames and community urls are copied into several collections, and the
store offers no transaction spanning them. Every operation here therefore
writes the primary record first and then migrates each dependent collection
with its own commit. Dependents are matched by the *old* key, so re-running a
step that already succeeded matches nothing and changes nothing.

A dependent step that fails does not stop the others. Once every step has been
attempted, the names of the failed collections are raised together in a
:class:`PartialCascadeFailure`; the matching ``resume_*`` method re-runs the
dependent steps only.
"""
from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from socialme.core.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    PartialCascadeFailure,
)
from socialme.models import Activity, Community, User
from socialme.repositories import Repositories
from socialme.services.blob_store import BlobStore
from socialme.services.media import MediaLifecycleManager

__all__ = ["RenameCascade", "CascadeStep"]

logger = logging.getLogger(__name__)

CascadeStep = tuple[str, Callable[[], object]]


class RenameCascade:
    """Rename and delete operations for users, communities and activities."""

    def __init__(
        self,
        repos: Repositories,
        media: MediaLifecycleManager,
        blob_store: BlobStore,
    ) -> None:
        self.repos = repos
        self.media = media
        self.blob_store = blob_store

    def _run_steps(
        self,
        operation: str,
        entity: str,
        old_key: str,
        new_key: str | None,
        steps: Sequence[CascadeStep],
    ) -> None:
        pending: list[str] = []
        for collection, step in steps:
            try:
                affected = step()
            except SQLAlchemyError as exc:
                self.repos.session.rollback()
                logger.error(
                    "%s of %s '%s': step on %s failed: %s",
                    operation, entity, old_key, collection, exc,
                    exc_info=True,
                )
                pending.append(collection)
                continue
            logger.debug(
                "%s of %s '%s': %s updated (%s)", operation, entity, old_key, collection, affected
            )

        if pending:
            raise PartialCascadeFailure(
                operation=operation,
                entity=entity,
                old_key=old_key,
                new_key=new_key,
                pending_collections=pending,
            )

    def _save_primary(self, entity: User | Community, conflict: str) -> None:
        session = self.repos.session
        session.add(entity)
        try:
            session.commit()
        except IntegrityError as exc:
            session.rollback()
            raise ConflictError(conflict) from exc
        except SQLAlchemyError:
            session.rollback()
            raise
        session.refresh(entity)

    # -- communities ---------------------------------------------------------

    def rename_community(self, old_url: str, new_url: str) -> Community:
        """Change a community's url and migrate every copy of it."""
        community = self.repos.communities.get_by_key(old_url)
        if community is None:
            raise NotFoundError(f"community '{old_url}' not found")
        if old_url == new_url:
            return community
        if self.repos.communities.exists_by_key(new_url):
            raise ConflictError(f"community '{new_url}' already exists")

        community.url = new_url
        self._save_primary(community, f"community '{new_url}' already exists")
        logger.info("Renamed community %s -> %s", old_url, new_url)

        self._run_steps(
            "rename", "community", old_url, new_url,
            self._community_rename_steps(old_url, new_url),
        )
        return community

    def resume_community_rename(self, old_url: str, new_url: str) -> Community:
        """Re-run the dependent steps of a rename whose primary write already happened."""
        community = self.repos.communities.get_by_key(new_url)
        if community is None:
            raise NotFoundError(f"community '{new_url}' not found")
        if old_url != new_url and self.repos.communities.exists_by_key(old_url):
            raise ConflictError(f"community '{old_url}' still exists; rename it first")

        self._run_steps(
            "rename", "community", old_url, new_url,
            self._community_rename_steps(old_url, new_url),
        )
        return community

    def _community_rename_steps(self, old_url: str, new_url: str) -> list[CascadeStep]:
        repos = self.repos
        return [
            (repos.community_members.collection,
             lambda: repos.community_members.update_where("comunidad", old_url, new_url)),
            (repos.activities.collection,
             lambda: repos.activities.update_where("comunidad", old_url, new_url)),
            (repos.activity_index.collection,
             lambda: repos.activity_index.update_where("comunidad", old_url, new_url)),
            (repos.blobs.collection,
             lambda: self.blob_store.retag_owner(Community.media_owner_type, old_url, new_url)),
        ]

    def cascade_community_name(self, community: Community) -> int:
        """Copy the community's current name into its notifications."""
        try:
            return self.repos.notifications.set_where(
                {"entidad_nombre": community.nombre}, entidad_id=community.id
            )
        except SQLAlchemyError as exc:
            raise PartialCascadeFailure(
                operation="rename",
                entity="community name",
                old_key=community.url,
                new_key=community.nombre,
                pending_collections=[self.repos.notifications.collection],
            ) from exc

    def delete_community(self, url: str) -> Community:
        """Delete a community with its edges, index entries and media.

        Activities of the community stay in place; only the participation
        edges of those activities are removed.
        """
        community = self.repos.communities.get_by_key(url)
        if community is None:
            raise NotFoundError(f"community '{url}' not found")

        blob_ids = self.media.referenced_ids(community)
        self.repos.communities.delete(community)
        logger.info("Deleted community %s", url)

        try:
            self._run_steps("delete", "community", url, None, self._community_delete_steps(url))
        finally:
            self.media.release_ids(blob_ids)
        return community

    def resume_community_delete(self, url: str) -> None:
        if self.repos.communities.exists_by_key(url):
            raise ConflictError(f"community '{url}' still exists; delete it first")
        self._run_steps("delete", "community", url, None, self._community_delete_steps(url))

    def _community_activity_ids(self, url: str) -> set[str]:
        ids = {entry.actividad_id for entry in self.repos.activity_index.find_all_where(comunidad=url)}
        ids.update(activity.id for activity in self.repos.activities.find_all_where(comunidad=url))
        return ids

    def _delete_participations_of(self, activity_ids: set[str]) -> int:
        return sum(
            self.repos.activity_participants.delete_where(actividad_id=activity_id)
            for activity_id in sorted(activity_ids)
        )

    def _community_delete_steps(self, url: str) -> list[CascadeStep]:
        repos = self.repos
        return [
            (repos.activity_participants.collection,
             lambda: self._delete_participations_of(self._community_activity_ids(url))),
            (repos.community_members.collection,
             lambda: repos.community_members.delete_where(comunidad=url)),
            (repos.activity_index.collection,
             lambda: repos.activity_index.delete_where(comunidad=url)),
        ]

    # -- users ---------------------------------------------------------------

    def rename_user(self, old_username: str, new_username: str) -> User:
        """Change a username and migrate every copy of it."""
        user = self.repos.users.get_by_key(old_username)
        if user is None:
            raise NotFoundError(f"user '{old_username}' not found")
        if old_username == new_username:
            return user
        if self.repos.users.exists_by_key(new_username):
            raise ConflictError(f"user '{new_username}' already exists")

        user.username = new_username
        self._save_primary(user, f"user '{new_username}' already exists")
        logger.info("Renamed user %s -> %s", old_username, new_username)

        self._run_steps(
            "rename", "user", old_username, new_username,
            self._user_rename_steps(old_username, new_username),
        )
        return user

    def resume_user_rename(self, old_username: str, new_username: str) -> User:
        user = self.repos.users.get_by_key(new_username)
        if user is None:
            raise NotFoundError(f"user '{new_username}' not found")
        if old_username != new_username and self.repos.users.exists_by_key(old_username):
            raise ConflictError(f"user '{old_username}' still exists; rename it first")

        self._run_steps(
            "rename", "user", old_username, new_username,
            self._user_rename_steps(old_username, new_username),
        )
        return user

    def _rewrite_community_roles(self, old_username: str, new_username: str | None) -> int:
        """Replace (or drop, when ``new_username`` is None) a user in creator and admin fields."""
        changed = 0
        if new_username is not None:
            changed += self.repos.communities.update_where("creador", old_username, new_username)
        for community in self.repos.communities.list_all():
            admins = list(community.administradores or [])
            if old_username not in admins:
                continue
            rewritten: list[str] = []
            for admin in admins:
                replacement = new_username if admin == old_username else admin
                if replacement is not None and replacement not in rewritten:
                    rewritten.append(replacement)
            community.administradores = rewritten
            self.repos.communities.save(community)
            changed += 1
        return changed

    def _user_rename_steps(self, old: str, new: str) -> list[CascadeStep]:
        repos = self.repos
        return [
            (repos.community_members.collection,
             lambda: repos.community_members.update_where("username", old, new)),
            (repos.activity_participants.collection,
             lambda: repos.activity_participants.update_where("username", old, new)),
            (repos.notifications.collection,
             lambda: repos.notifications.update_where("usuario_destino", old, new)),
            (repos.dispatches.collection,
             lambda: repos.dispatches.update_where("usuario_destino", old, new)),
            (repos.communities.collection,
             lambda: self._rewrite_community_roles(old, new)),
            (repos.activities.collection,
             lambda: repos.activities.update_where("creador", old, new)),
            (repos.blobs.collection,
             lambda: self.blob_store.retag_owner(User.media_owner_type, old, new)),
        ]

    def delete_user(self, username: str) -> User:
        """Delete a user with their edges, notifications and profile media.

        A user who still creates a community must transfer it first.
        """
        user = self.repos.users.get_by_key(username)
        if user is None:
            raise NotFoundError(f"user '{username}' not found")
        if self.repos.communities.count_where(creador=username):
            raise ForbiddenError(
                f"user '{username}' still creates a community; transfer it first"
            )

        blob_ids = self.media.referenced_ids(user)
        self.repos.users.delete(user)
        logger.info("Deleted user %s", username)

        try:
            self._run_steps("delete", "user", username, None, self._user_delete_steps(username))
        finally:
            self.media.release_ids(blob_ids)
        return user

    def resume_user_delete(self, username: str) -> None:
        if self.repos.users.exists_by_key(username):
            raise ConflictError(f"user '{username}' still exists; delete it first")
        self._run_steps("delete", "user", username, None, self._user_delete_steps(username))

    def _user_delete_steps(self, username: str) -> list[CascadeStep]:
        repos = self.repos
        return [
            (repos.community_members.collection,
             lambda: repos.community_members.delete_where(username=username)),
            (repos.activity_participants.collection,
             lambda: repos.activity_participants.delete_where(username=username)),
            (repos.notifications.collection,
             lambda: repos.notifications.delete_where(usuario_destino=username)),
            (repos.dispatches.collection,
             lambda: repos.dispatches.delete_where(usuario_destino=username)),
            (repos.communities.collection,
             lambda: self._rewrite_community_roles(username, None)),
        ]

    # -- activities ----------------------------------------------------------

    def cascade_activity_name(self, activity: Activity) -> None:
        """Copy the activity's current name into participations, the index and notifications."""
        repos = self.repos
        self._run_steps(
            "rename", "activity name", activity.id, activity.nombre,
            [
                (repos.activity_participants.collection,
                 lambda: repos.activity_participants.set_where(
                     {"nombre_actividad": activity.nombre}, actividad_id=activity.id
                 )),
                (repos.activity_index.collection,
                 lambda: repos.activity_index.set_where(
                     {"nombre_actividad": activity.nombre}, actividad_id=activity.id
                 )),
                (repos.notifications.collection,
                 lambda: repos.notifications.set_where(
                     {"entidad_nombre": activity.nombre}, entidad_id=activity.id
                 )),
            ],
        )

    def delete_activity(self, activity_id: str) -> Activity:
        """Delete an activity with its participations, index entry and carousel."""
        activity = self.repos.activities.get_by_id(activity_id)
        if activity is None:
            raise NotFoundError(f"activity '{activity_id}' not found")

        blob_ids = self.media.referenced_ids(activity)
        self.repos.activities.delete(activity)
        logger.info("Deleted activity %s", activity_id)

        try:
            self._run_steps(
                "delete", "activity", activity_id, None, self._activity_delete_steps(activity_id)
            )
        finally:
            self.media.release_ids(blob_ids)
        return activity

    def resume_activity_delete(self, activity_id: str) -> None:
        if self.repos.activities.get_by_id(activity_id) is not None:
            raise ConflictError(f"activity '{activity_id}' still exists; delete it first")
        self._run_steps(
            "delete", "activity", activity_id, None, self._activity_delete_steps(activity_id)
        )

    def _activity_delete_steps(self, activity_id: str) -> list[CascadeStep]:
        repos = self.repos
        return [
            (repos.activity_participants.collection,
             lambda: repos.activity_participants.delete_where(actividad_id=activity_id)),
            (repos.activity_index.collection,
             lambda: repos.activity_index.delete_where(actividad_id=activity_id)),
            (repos.dispatches.collection,
             lambda: repos.dispatches.delete_where(actividad_id=activity_id)),
        ]
