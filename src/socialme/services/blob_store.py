"""Blob storage for profile and carousel media."""
from __future__ import annotations

import logging
from typing import Any, Protocol

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from socialme.core.errors import NotFoundError
from socialme.core.settings import settings
from socialme.models.media import MediaBlob
from socialme.utils.hash import blake3_hexdigest
from socialme.utils.ids import is_object_id

__all__ = ["BlobStore", "SqlBlobStore"]

logger = logging.getLogger(__name__)


class BlobStore(Protocol):
    """Opaque content store addressed by id."""

    def put(
        self,
        content: bytes,
        content_type: str | None = None,
        *,
        filename: str | None = None,
        owner_type: str | None = None,
        owner_key: str | None = None,
        role: str | None = None,
        position: int | None = None,
        extra: dict[str, Any] | None = None,
    ) -> str: ...

    def get(self, blob_id: str) -> bytes: ...

    def delete(self, blob_id: str) -> bool: ...

    def retag_owner(self, owner_type: str, old_key: str, new_key: str) -> int: ...


class SqlBlobStore:
    """BlobStore backed by the ``media_blob`` table.

    The store never inspects who references a blob; ``delete`` removes by id
    without checks. Owner tags are only bookkeeping for offline sweeps.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def put(
        self,
        content: bytes,
        content_type: str | None = None,
        *,
        filename: str | None = None,
        owner_type: str | None = None,
        owner_key: str | None = None,
        role: str | None = None,
        position: int | None = None,
        extra: dict[str, Any] | None = None,
    ) -> str:
        """Store ``content`` and return the new blob id."""
        blob = MediaBlob(
            content=content,
            content_type=content_type or settings.media_default_content_type,
            filename=filename,
            owner_type=owner_type,
            owner_key=owner_key,
            role=role,
            position=position,
            content_hash=blake3_hexdigest(content),
            extra=dict(extra or {}),
        )
        self.session.add(blob)
        self._commit()
        logger.debug(
            "Stored blob %s (%d bytes) for %s:%s role=%s position=%s",
            blob.id, len(content), owner_type, owner_key, role, position,
        )
        return blob.id

    def get(self, blob_id: str) -> bytes:
        """Return the bytes of a blob or raise :class:`NotFoundError`."""
        blob = self._load(blob_id)
        if blob is None:
            raise NotFoundError(f"blob '{blob_id}' not found")
        return blob.content

    def describe(self, blob_id: str) -> MediaBlob:
        """Return the stored blob record, including its owner tag."""
        blob = self._load(blob_id)
        if blob is None:
            raise NotFoundError(f"blob '{blob_id}' not found")
        return blob

    def exists(self, blob_id: str) -> bool:
        return self._load(blob_id) is not None

    def delete(self, blob_id: str) -> bool:
        """Delete a blob by id.

        Returns False for malformed or unknown ids instead of raising. Backend
        failures still propagate so callers can decide how loud to be.
        """
        blob = self._load(blob_id)
        if blob is None:
            return False
        self.session.delete(blob)
        self._commit()
        logger.debug("Deleted blob %s", blob_id)
        return True

    def retag_owner(self, owner_type: str, old_key: str, new_key: str) -> int:
        """Rewrite the owner key recorded on every blob of one owner."""
        result = self.session.execute(
            update(MediaBlob)
            .where(MediaBlob.owner_type == owner_type, MediaBlob.owner_key == old_key)
            .values(owner_key=new_key)
            .execution_options(synchronize_session="fetch")
        )
        self._commit()
        return int(result.rowcount or 0)  # type: ignore[attr-defined]

    def _load(self, blob_id: Any) -> MediaBlob | None:
        if not is_object_id(blob_id):
            return None
        return self.session.get(MediaBlob, blob_id)

    def _commit(self) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise
