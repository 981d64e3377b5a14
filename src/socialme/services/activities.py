"""Write operations on activities."""
from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime

from socialme.core.errors import ForbiddenError, NotFoundError, ValidationError
from socialme.db.time import as_utc
from socialme.models import Activity, ActivityCommunityIndex, ActivityParticipation
from socialme.schemas.activity import ActivityCreate, ActivityUpdate
from socialme.services.core import CoreServices
from socialme.services.media import CarouselItem, MediaUpload

__all__ = ["ActivityService"]

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 25
MAX_DESCRIPTION_LENGTH = 2000


def _validate(
    nombre: str | None,
    descripcion: str | None,
    start: datetime,
    end: datetime,
) -> None:
    if nombre is not None and len(nombre) > MAX_NAME_LENGTH:
        raise ValidationError(f"activity name cannot exceed {MAX_NAME_LENGTH} characters")
    if descripcion is not None and len(descripcion) > MAX_DESCRIPTION_LENGTH:
        raise ValidationError(
            f"activity description cannot exceed {MAX_DESCRIPTION_LENGTH} characters"
        )
    if as_utc(start) > as_utc(end):
        raise ValidationError("activity start must not be after its end")


class ActivityService:
    """Create, update and delete activities and keep their index entry in step."""

    def __init__(self, core: CoreServices) -> None:
        self.core = core
        self.repos = core.repos

    def get(self, activity_id: str) -> Activity:
        activity = self.repos.activities.get_by_id(activity_id)
        if activity is None:
            raise NotFoundError(f"activity '{activity_id}' not found")
        return activity

    def create(self, data: ActivityCreate, carousel: Sequence[MediaUpload] = ()) -> Activity:
        """Schedule an activity; only the community's managers may do so.

        The creator is added as the first participant.
        """
        _validate(data.nombre, data.descripcion, data.fecha_inicio, data.fecha_finalizacion)
        creator = self.repos.users.get_by_key(data.creador)
        if creator is None:
            raise NotFoundError(f"user '{data.creador}' not found")
        if creator.is_admin:
            raise ForbiddenError("platform administrators cannot create activities")
        community = self.repos.communities.get_by_key(data.comunidad)
        if community is None:
            raise NotFoundError(f"community '{data.comunidad}' not found")
        if not community.is_manager(data.creador):
            raise ForbiddenError("only the community creator or an administrator can create activities")

        activity = Activity(
            nombre=data.nombre,
            descripcion=data.descripcion,
            carousel_media_ids=[],
            comunidad=community.url,
            creador=data.creador,
            fecha_inicio=as_utc(data.fecha_inicio),
            fecha_finalizacion=as_utc(data.fecha_finalizacion),
            privada=data.privada,
            lugar=data.lugar,
            latitude=data.latitude,
            longitude=data.longitude,
        )
        self.repos.activities.save(activity)
        self.repos.activity_index.save(
            ActivityCommunityIndex(
                comunidad=community.url,
                actividad_id=activity.id,
                nombre_actividad=activity.nombre,
            )
        )
        self.repos.activity_participants.save(
            ActivityParticipation(
                username=data.creador,
                actividad_id=activity.id,
                nombre_actividad=activity.nombre,
            )
        )
        if carousel:
            self.core.media.replace_carousel(activity, list(carousel))
        logger.info("Created activity %s in %s", activity.id, community.url)
        return activity

    def list_for_community(self, url: str) -> list[Activity]:
        """Return the community's activities, resolved through the index."""
        if not self.repos.communities.exists_by_key(url):
            raise NotFoundError(f"community '{url}' not found")
        activities: list[Activity] = []
        for entry in self.repos.activity_index.find_all_where(comunidad=url):
            activity = self.repos.activities.get_by_id(entry.actividad_id)
            if activity is not None:
                activities.append(activity)
        activities.sort(key=lambda a: as_utc(a.fecha_inicio))
        return activities

    def list_for_user(self, username: str) -> list[Activity]:
        if not self.repos.users.exists_by_key(username):
            raise NotFoundError(f"user '{username}' not found")
        activities: list[Activity] = []
        for edge in self.repos.activity_participants.find_all_where(username=username):
            activity = self.repos.activities.get_by_id(edge.actividad_id)
            if activity is not None:
                activities.append(activity)
        return activities

    def update(self, activity_id: str, data: ActivityUpdate) -> Activity:
        """Apply a partial update; a name change is copied to dependents."""
        activity = self.get(activity_id)
        changes = {
            key: value
            for key, value in data.model_dump(exclude_unset=True).items()
            if value is not None or key in ("latitude", "longitude")
        }
        start = changes.get("fecha_inicio", activity.fecha_inicio)
        end = changes.get("fecha_finalizacion", activity.fecha_finalizacion)
        _validate(changes.get("nombre"), changes.get("descripcion"), start, end)

        old_name = activity.nombre
        old_start = as_utc(activity.fecha_inicio)
        for key, value in changes.items():
            if key in ("fecha_inicio", "fecha_finalizacion"):
                value = as_utc(value)
            setattr(activity, key, value)
        self.repos.activities.save(activity)

        if as_utc(activity.fecha_inicio) != old_start:
            logger.info(
                "Rescheduled activity %s from %s to %s", activity.id, old_start, activity.fecha_inicio
            )
        if activity.nombre != old_name:
            self.core.cascade.cascade_activity_name(activity)
        return activity

    def replace_carousel(self, activity_id: str, items: Sequence[CarouselItem]) -> list[str]:
        return self.core.media.replace_carousel(self.get(activity_id), items)

    def delete(self, activity_id: str) -> Activity:
        return self.core.cascade.delete_activity(activity_id)
