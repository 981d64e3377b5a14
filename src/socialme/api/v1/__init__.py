"""Version 1 API endpoints."""

from .endpoints import (
    activities_router,
    communities_router,
    media_router,
    notifications_router,
    users_router,
)

__all__ = [
    "activities_router",
    "communities_router",
    "media_router",
    "notifications_router",
    "users_router",
]
