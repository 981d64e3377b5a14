"""Lifecycle of the blobs referenced by users, communities and activities.

An entity owns a blob exactly while one of its media fields holds the blob id.
There is no reference counting: every replacement stores the new blob and
saves the entity before the old id is released, so the only failure mode left
is a leaked blob, never a dangling reference.
"""
from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from socialme.core.errors import ConflictError, MediaOperationWarning, ValidationError
from socialme.models.media import ROLE_CAROUSEL, ROLE_PROFILE
from socialme.services.blob_store import BlobStore

__all__ = ["MediaUpload", "CarouselItem", "MediaLifecycleManager"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MediaUpload:
    """New content to be stored as a blob."""

    content: bytes
    content_type: str | None = None
    filename: str | None = None


# A carousel slot is either an id already on the entity or new content.
CarouselItem = Union[str, MediaUpload]


class MediaOwner(Protocol):
    media_owner_type: str

    @property
    def media_owner_key(self) -> str: ...


class MediaLifecycleManager:
    """Store-then-reference-then-release coordinator for entity media."""

    def __init__(self, session: Session, blob_store: BlobStore) -> None:
        self.session = session
        self.blob_store = blob_store

    def replace_profile_media(self, entity: Any, upload: MediaUpload | None) -> str | None:
        """Point ``entity`` at a new profile blob and release the previous one.

        Without an upload the current id is returned untouched.
        """
        if upload is None:
            return entity.profile_media_id

        previous = entity.profile_media_id
        new_id = self._store(entity, upload, role=ROLE_PROFILE)
        entity.profile_media_id = new_id
        self._save_or_discard(entity, [new_id])

        if previous and previous != new_id:
            self._release(previous)
        return new_id

    def replace_carousel(self, entity: Any, items: Sequence[CarouselItem]) -> list[str]:
        """Replace the carousel of ``entity`` with ``items`` in display order.

        Kept ids must already be on the entity and may appear only once; this is
        checked before anything is stored.
        """
        current = list(entity.carousel_media_ids or [])
        current_set = set(current)
        seen: set[str] = set()
        for item in items:
            if isinstance(item, MediaUpload):
                continue
            if not isinstance(item, str):
                raise ValidationError("carousel items must be blob ids or uploads")
            if item not in current_set:
                raise ConflictError(f"blob '{item}' is not part of this carousel")
            if item in seen:
                raise ConflictError(f"blob '{item}' appears twice in the carousel")
            seen.add(item)

        new_ids: list[str] = []
        stored: list[str] = []
        for position, item in enumerate(items):
            if isinstance(item, MediaUpload):
                blob_id = self._store(entity, item, role=ROLE_CAROUSEL, position=position)
                stored.append(blob_id)
                new_ids.append(blob_id)
            else:
                new_ids.append(item)

        entity.carousel_media_ids = new_ids
        self._save_or_discard(entity, stored)

        for blob_id in current:
            if blob_id not in seen:
                self._release(blob_id)
        return new_ids

    def attach_initial_media(
        self,
        entity: Any,
        profile: MediaUpload | None = None,
        carousel: Sequence[MediaUpload] = (),
    ) -> None:
        """Store the media supplied when an entity is first created."""
        if profile is not None:
            self.replace_profile_media(entity, profile)
        if carousel:
            self.replace_carousel(entity, list(carousel))

    def release_all(self, entity: Any) -> list[MediaOperationWarning]:
        """Delete every blob referenced by ``entity``.

        Each delete is independent; failures are collected and returned.
        """
        return self.release_ids(self.referenced_ids(entity))

    @staticmethod
    def referenced_ids(entity: Any) -> list[str]:
        """Return the profile id followed by the carousel ids of ``entity``."""
        ids: list[str] = []
        profile_id = getattr(entity, "profile_media_id", None)
        if profile_id:
            ids.append(profile_id)
        ids.extend(getattr(entity, "carousel_media_ids", None) or [])
        return ids

    def release_ids(self, blob_ids: Sequence[str]) -> list[MediaOperationWarning]:
        warnings: list[MediaOperationWarning] = []
        for blob_id in blob_ids:
            warning = self._release(blob_id)
            if warning is not None:
                warnings.append(warning)
        return warnings

    def _store(
        self,
        entity: MediaOwner,
        upload: MediaUpload,
        *,
        role: str,
        position: int | None = None,
    ) -> str:
        return self.blob_store.put(
            upload.content,
            upload.content_type,
            filename=upload.filename,
            owner_type=entity.media_owner_type,
            owner_key=entity.media_owner_key,
            role=role,
            position=position,
        )

    def _save_or_discard(self, entity: Any, stored: list[str]) -> None:
        try:
            self.session.add(entity)
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            # The new blobs were never referenced.
            for blob_id in stored:
                self._release(blob_id)
            raise
        self.session.refresh(entity)

    def _release(self, blob_id: str) -> MediaOperationWarning | None:
        try:
            deleted = self.blob_store.delete(blob_id)
        except Exception as exc:  # any blob store failure leaves an orphan, never an error
            warning = MediaOperationWarning(blob_id, str(exc))
            logger.warning("%s", warning)
            return warning
        if not deleted:
            logger.info("Blob %s was already gone", blob_id)
        return None
