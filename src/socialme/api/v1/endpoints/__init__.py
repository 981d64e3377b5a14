"""API endpoint modules for version 1."""

from .activities import router as activities_router
from .communities import router as communities_router
from .media import router as media_router
from .notifications import router as notifications_router
from .users import router as users_router

__all__ = [
    "activities_router",
    "communities_router",
    "media_router",
    "notifications_router",
    "users_router",
]
