"""Media download endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Response

from socialme.services.blob_store import SqlBlobStore

from ..dependencies import SessionDep

router = APIRouter(prefix="/media", tags=["media"])


@router.get("/{blob_id}")
def download_media(blob_id: str, db: SessionDep) -> Response:
    """Return the raw bytes of a stored blob."""
    blob = SqlBlobStore(db).describe(blob_id)
    return Response(content=blob.content, media_type=blob.content_type)
