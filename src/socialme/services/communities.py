"""Write operations on communities."""
from __future__ import annotations

import logging
import secrets
import string
from collections.abc import Sequence

from sqlalchemy.exc import IntegrityError

from socialme.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from socialme.models import ActivityCommunityIndex, Community, CommunityMembership
from socialme.schemas.community import CommunityCreate, CommunityUpdate
from socialme.services.core import CoreServices
from socialme.services.media import CarouselItem, MediaUpload
from socialme.utils.text import slugify

__all__ = ["CommunityService"]

logger = logging.getLogger(__name__)

MAX_COMMUNITIES_PER_CREATOR = 3
MAX_NAME_LENGTH = 40
MAX_DESCRIPTION_LENGTH = 5000
JOIN_CODE_LENGTH = 10
_JOIN_CODE_ALPHABET = string.ascii_letters + string.digits


def _validate_text(nombre: str | None, descripcion: str | None) -> None:
    if nombre is not None and len(nombre) > MAX_NAME_LENGTH:
        raise ValidationError(f"community name cannot exceed {MAX_NAME_LENGTH} characters")
    if descripcion is not None and len(descripcion) > MAX_DESCRIPTION_LENGTH:
        raise ValidationError(
            f"community description cannot exceed {MAX_DESCRIPTION_LENGTH} characters"
        )


class CommunityService:
    """Create, update and delete communities through the consistency engine."""

    def __init__(self, core: CoreServices) -> None:
        self.core = core
        self.repos = core.repos

    def get(self, url: str) -> Community:
        community = self.repos.communities.get_by_key(url)
        if community is None:
            raise NotFoundError(f"community '{url}' not found")
        return community

    def _new_join_code(self) -> str:
        while True:
            code = "".join(secrets.choice(_JOIN_CODE_ALPHABET) for _ in range(JOIN_CODE_LENGTH))
            if self.repos.communities.find_one_where(codigo_union=code) is None:
                return code

    def create(
        self,
        data: CommunityCreate,
        profile: MediaUpload | None = None,
        carousel: Sequence[MediaUpload] = (),
    ) -> Community:
        """Create a community; its creator becomes its first member."""
        url = slugify(data.url)
        if not url:
            raise ValidationError("community url cannot be empty")
        _validate_text(data.nombre, data.descripcion)
        if self.repos.users.get_by_key(data.creador) is None:
            raise NotFoundError(f"user '{data.creador}' not found")
        if self.repos.communities.exists_by_key(url):
            raise ConflictError(f"community '{url}' already exists")
        if self.repos.communities.count_where(creador=data.creador) >= MAX_COMMUNITIES_PER_CREATOR:
            raise ForbiddenError(
                f"a user can create at most {MAX_COMMUNITIES_PER_CREATOR} communities"
            )

        community = Community(
            url=url,
            nombre=data.nombre,
            descripcion=data.descripcion,
            intereses=list(data.intereses),
            creador=data.creador,
            administradores=[],
            carousel_media_ids=[],
            privada=data.privada,
            latitude=data.latitude,
            longitude=data.longitude,
            codigo_union=self._new_join_code() if data.privada else None,
        )
        try:
            self.repos.communities.save(community)
        except IntegrityError as exc:
            raise ConflictError(f"community '{url}' already exists") from exc

        self.repos.community_members.save(
            CommunityMembership(username=data.creador, comunidad=url)
        )
        self.core.media.attach_initial_media(community, profile, carousel)
        logger.info("Created community %s by %s", url, data.creador)
        return community

    def update(self, url: str, data: CommunityUpdate) -> Community:
        """Apply a partial update; url and name changes are cascaded."""
        community = self.get(url)
        changes = data.model_dump(exclude_unset=True)

        new_url = changes.pop("url", None)
        if new_url is not None:
            new_url = slugify(new_url)
            if not new_url:
                raise ValidationError("community url cannot be empty")
            if new_url != url and self.repos.communities.exists_by_key(new_url):
                raise ConflictError(f"community '{new_url}' already exists")
        _validate_text(changes.get("nombre"), changes.get("descripcion"))

        admins = changes.get("administradores")
        if admins is not None:
            for admin in admins:
                if not self.repos.users.exists_by_key(admin):
                    raise NotFoundError(f"administrator '{admin}' not found")
            changes["administradores"] = [
                admin for i, admin in enumerate(admins)
                if admin != community.creador and admin not in admins[:i]
            ]

        old_name = community.nombre
        for key, value in changes.items():
            if value is None and key not in ("latitude", "longitude"):
                continue
            setattr(community, key, value)
        if community.privada and community.codigo_union is None:
            community.codigo_union = self._new_join_code()
        elif not community.privada:
            community.codigo_union = None
        self.repos.communities.save(community)

        if new_url is not None and new_url != url:
            community = self.core.cascade.rename_community(url, new_url)
        if community.nombre != old_name:
            self.core.cascade.cascade_community_name(community)
        return community

    def replace_profile_media(self, url: str, upload: MediaUpload | None) -> str | None:
        return self.core.media.replace_profile_media(self.get(url), upload)

    def replace_carousel(self, url: str, items: Sequence[CarouselItem]) -> list[str]:
        return self.core.media.replace_carousel(self.get(url), items)

    def transfer_creator(self, url: str, current: str, new: str) -> Community:
        return self.core.membership.transfer_creator(url, current, new)

    def list_activities(self, url: str) -> list[ActivityCommunityIndex]:
        """Return the community's activity index entries."""
        self.get(url)
        return self.repos.activity_index.find_all_where(comunidad=url)

    def list_for_user(self, username: str) -> list[Community]:
        """Return the communities ``username`` belongs to."""
        if not self.repos.users.exists_by_key(username):
            raise NotFoundError(f"user '{username}' not found")
        communities: list[Community] = []
        for edge in self.repos.community_members.find_all_where(username=username):
            community = self.repos.communities.get_by_key(edge.comunidad)
            if community is not None:
                communities.append(community)
        return communities

    def delete(self, url: str) -> Community:
        return self.core.cascade.delete_community(url)
