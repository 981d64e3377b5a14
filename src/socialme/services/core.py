"""The consistency engine wired to one database session."""
from __future__ import annotations

from sqlalchemy.orm import Session

from socialme.repositories import Repositories
from socialme.services.blob_store import BlobStore, SqlBlobStore
from socialme.services.cascade import RenameCascade
from socialme.services.media import MediaLifecycleManager
from socialme.services.membership import MembershipRegistry
from socialme.services.notifications import NotificationService
from socialme.services.sinks import NotificationSink

__all__ = ["CoreServices"]


class CoreServices:
    """Repositories, blob store and the lifecycle components sharing a session."""

    def __init__(
        self,
        db: Session,
        *,
        blob_store: BlobStore | None = None,
        sink: NotificationSink | None = None,
    ) -> None:
        self.db = db
        self.repos = Repositories(db)
        self.blob_store = blob_store if blob_store is not None else SqlBlobStore(db)
        self.media = MediaLifecycleManager(db, self.blob_store)
        self.cascade = RenameCascade(self.repos, self.media, self.blob_store)
        self.membership = MembershipRegistry(self.repos)
        self.notifications = NotificationService(db, sink)
