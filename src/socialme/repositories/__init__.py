"""Per-collection data access for the SocialMe entity graph."""

from .base import DocumentRepository
from .registry import Repositories

__all__ = ["DocumentRepository", "Repositories"]
