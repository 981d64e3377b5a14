# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["NOTIFICATIONS_REALTIME_ENABLED"] = "false"

from socialme.core.errors import NotificationDeliveryError
from socialme.db.session import Base
from socialme.db.session import get_db as app_get_session
from socialme.main import app as fastapi_app
from socialme.models import (
    Activity,
    ActivityCommunityIndex,
    ActivityParticipation,
    Community,
    CommunityMembership,
    Notification,
    User,
)
from socialme.services.core import CoreServices
from socialme.services.sinks import get_notification_sink

TEST_DB_URL = "sqlite://"

# Far enough in the past that every threshold of a test activity fires after it.
LONG_AGO = datetime(2024, 6, 1, tzinfo=UTC)


class RecordingSink:
    """Notification sink that keeps what it was handed."""

    def __init__(self) -> None:
        self.delivered: list[Notification] = []
        self.fail = False

    def deliver(self, notification: Notification) -> None:
        if self.fail:
            raise NotificationDeliveryError("sink unavailable")
        self.delivered.append(notification)

    @property
    def recipients(self) -> list[str]:
        return [n.usuario_destino for n in self.delivered]


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture()
def db_session(engine: Engine, session_factory: sessionmaker[Session]) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()

        # Ensure each test sees a clean database; every repository write commits.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture()
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture()
def core(db_session: Session, sink: RecordingSink) -> CoreServices:
    return CoreServices(db_session, sink=sink)


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_dependencies(app: FastAPI, db_session: Session, sink: RecordingSink) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    app.dependency_overrides[get_notification_sink] = lambda: sink
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)
        app.dependency_overrides.pop(get_notification_sink, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


# -- entity factories ---------------------------------------------------------


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., User]:
    def _make(username: str, **fields: Any) -> User:
        fields.setdefault("email", f"{username}@example.com")
        user = User(username=username, **fields)
        db_session.add(user)
        db_session.commit()
        return user

    return _make


@pytest.fixture()
def make_community(db_session: Session) -> Callable[..., Community]:
    """Insert a community row and its creator's membership edge."""

    def _make(url: str, creador: str, **fields: Any) -> Community:
        fields.setdefault("nombre", url.replace("-", " ").title())
        community = Community(url=url, creador=creador, **fields)
        db_session.add(community)
        db_session.add(CommunityMembership(username=creador, comunidad=url, joined_at=LONG_AGO))
        db_session.commit()
        return community

    return _make


@pytest.fixture()
def make_activity(db_session: Session) -> Callable[..., Activity]:
    """Insert an activity row with its index entry and the given participants."""

    def _make(
        comunidad: str,
        creador: str,
        start: datetime,
        participants: tuple[str, ...] = (),
        nombre: str = "Morning run",
        joined_at: datetime = LONG_AGO,
        **fields: Any,
    ) -> Activity:
        activity = Activity(
            nombre=nombre,
            comunidad=comunidad,
            creador=creador,
            fecha_inicio=start,
            fecha_finalizacion=start + timedelta(hours=2),
            **fields,
        )
        db_session.add(activity)
        db_session.flush()
        db_session.add(
            ActivityCommunityIndex(
                comunidad=comunidad, actividad_id=activity.id, nombre_actividad=nombre
            )
        )
        for username in participants:
            db_session.add(
                ActivityParticipation(
                    username=username,
                    actividad_id=activity.id,
                    nombre_actividad=nombre,
                    joined_at=joined_at,
                )
            )
        db_session.commit()
        return activity

    return _make


@pytest.fixture()
def alice(make_user: Callable[..., User]) -> User:
    return make_user("alice", nombre="Alice")


@pytest.fixture()
def bob(make_user: Callable[..., User]) -> User:
    return make_user("bob", nombre="Bob")


@pytest.fixture()
def carol(make_user: Callable[..., User]) -> User:
    return make_user("carol", nombre="Carol")


@pytest.fixture()
def running_club(make_community: Callable[..., Community], alice: User) -> Community:
    return make_community("running-club", alice.username, nombre="Running Club")
