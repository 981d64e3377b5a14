"""Typed errors raised by the SocialMe core services.

Every error carries the HTTP status the API layer should answer with, so the
FastAPI exception handler in :mod:`socialme.main` can translate them without
knowing about individual operations.
"""

from __future__ import annotations

from collections.abc import Iterable

from fastapi import status

if hasattr(status, "HTTP_422_UNPROCESSABLE_CONTENT"):
    _HTTP_422 = status.HTTP_422_UNPROCESSABLE_CONTENT
else:  # pragma: no cover - older Starlette builds
    _HTTP_422 = status.HTTP_422_UNPROCESSABLE_ENTITY


class SocialMeError(Exception):
    """Base class for domain errors surfaced to callers."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    detail: str = "socialme_error"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.detail)
        if detail:
            self.detail = detail


class NotFoundError(SocialMeError):
    """A referenced entity or membership edge does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    detail = "not_found"


class ConflictError(SocialMeError):
    """Duplicate natural key or duplicate membership edge."""

    status_code = status.HTTP_409_CONFLICT
    detail = "conflict"


class ForbiddenError(SocialMeError):
    """A rule intrinsic to the core forbids the operation."""

    status_code = status.HTTP_403_FORBIDDEN
    detail = "forbidden"


class ValidationError(SocialMeError):
    """Input that passed schema validation but is semantically invalid."""

    status_code = _HTTP_422
    detail = "validation_error"


class PartialCascadeFailure(SocialMeError):
    """The primary record changed but one or more dependent collections did not.

    The cascade that raised this is safe to re-run: dependents are matched by
    their old key, so collections already migrated match zero rows.
    """

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail = "partial_cascade_failure"

    def __init__(
        self,
        *,
        operation: str,
        entity: str,
        old_key: str,
        new_key: str | None,
        pending_collections: Iterable[str],
    ) -> None:
        self.operation = operation
        self.entity = entity
        self.old_key = old_key
        self.new_key = new_key
        self.pending_collections = list(pending_collections)
        super().__init__(
            f"{operation} of {entity} '{old_key}' left stale references in: "
            + ", ".join(self.pending_collections)
        )


class NotificationDeliveryError(SocialMeError):
    """A notification sink could not hand the payload to the real-time channel."""

    status_code = status.HTTP_502_BAD_GATEWAY
    detail = "notification_delivery_failed"


class MediaOperationWarning(UserWarning):
    """A blob delete or fetch failed; logged by the media manager, never raised."""

    def __init__(self, blob_id: str | None, reason: str) -> None:
        super().__init__(f"media operation on blob {blob_id!r} failed: {reason}")
        self.blob_id = blob_id
        self.reason = reason
