"""Service layer: the consistency engine and the entity services built on it."""

from .activities import ActivityService
from .blob_store import BlobStore, SqlBlobStore
from .cascade import RenameCascade
from .communities import CommunityService
from .core import CoreServices
from .media import MediaLifecycleManager, MediaUpload
from .membership import MembershipRegistry
from .notifications import NotificationService
from .scheduler import (
    DispatchState,
    NotificationScheduler,
    NotificationSchedulerWorker,
    T_MINUS_65MIN,
    T_START,
)
from .sinks import LoggingNotificationSink, NotificationSink, RedisNotificationSink
from .users import UserService

__all__ = [
    "ActivityService",
    "BlobStore",
    "SqlBlobStore",
    "RenameCascade",
    "CommunityService",
    "CoreServices",
    "MediaLifecycleManager",
    "MediaUpload",
    "MembershipRegistry",
    "NotificationService",
    "DispatchState",
    "NotificationScheduler",
    "NotificationSchedulerWorker",
    "T_MINUS_65MIN",
    "T_START",
    "LoggingNotificationSink",
    "NotificationSink",
    "RedisNotificationSink",
    "UserService",
]
