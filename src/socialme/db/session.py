"""Database session configuration.

Every logical collection is its own table and nothing spans them: there are
no foreign keys between collections, and repositories commit each write on
its own.
"""

from __future__ import annotations

from collections.abc import Generator
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from socialme.core.settings import settings


class Base(DeclarativeBase):
    """Declarative base shared by all collection models."""


# Ensure model modules are imported so that metadata is populated when create_all runs.
import socialme.models  # noqa: E402,F401


def build_engine(url: str | None = None) -> Engine:
    """Create the engine for ``url`` (the configured database by default)."""
    url = url or settings.effective_database_url
    kwargs: dict[str, Any] = {"pool_pre_ping": True, "echo": settings.sql_debug}
    if url.startswith("sqlite"):
        # Reminder ticks run in a worker thread.
        kwargs["connect_args"] = {"check_same_thread": False}
    return create_engine(url, **kwargs)


engine = build_engine()

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Yield a request-scoped session for dependency injection."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables() -> None:
    """Create every collection table."""
    Base.metadata.create_all(bind=engine)


def drop_tables() -> None:
    """Drop every collection table."""
    Base.metadata.drop_all(bind=engine)
