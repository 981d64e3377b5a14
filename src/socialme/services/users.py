"""Write operations on user accounts."""
from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from socialme.core.errors import ConflictError, NotFoundError
from socialme.models import User
from socialme.schemas.user import UserCreate, UserUpdate
from socialme.services.core import CoreServices
from socialme.services.media import MediaUpload

__all__ = ["UserService"]

logger = logging.getLogger(__name__)


class UserService:
    """CRUD for users with username renames routed through the cascade."""

    def __init__(self, core: CoreServices) -> None:
        self.core = core
        self.repos = core.repos

    def get(self, username: str) -> User:
        user = self.repos.users.get_by_key(username)
        if user is None:
            raise NotFoundError(f"user '{username}' not found")
        return user

    def create(self, data: UserCreate, profile: MediaUpload | None = None) -> User:
        """Register a user."""
        if self.repos.users.exists_by_key(data.username):
            raise ConflictError(f"user '{data.username}' already exists")
        user = User(**data.model_dump())
        try:
            self.repos.users.save(user)
        except IntegrityError as exc:
            raise ConflictError(f"user '{data.username}' already exists") from exc
        self.core.media.attach_initial_media(user, profile)
        logger.info("Created user %s", user.username)
        return user

    def update(self, username: str, data: UserUpdate) -> User:
        """Apply a partial update; a username change is cascaded."""
        user = self.get(username)
        changes = data.model_dump(exclude_unset=True)
        new_username = changes.pop("username", None)
        if (
            new_username is not None
            and new_username != username
            and self.repos.users.exists_by_key(new_username)
        ):
            raise ConflictError(f"user '{new_username}' already exists")

        for key, value in changes.items():
            if value is not None:
                setattr(user, key, value)
        self.repos.users.save(user)

        if new_username is not None and new_username != username:
            user = self.core.cascade.rename_user(username, new_username)
        return user

    def replace_profile_media(self, username: str, upload: MediaUpload | None) -> str | None:
        return self.core.media.replace_profile_media(self.get(username), upload)

    def delete(self, username: str) -> User:
        return self.core.cascade.delete_user(username)
