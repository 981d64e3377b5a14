"""Tests for the user, community and activity services built on the core."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from socialme.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from socialme.models import NotificationDispatch
from socialme.schemas.activity import ActivityCreate, ActivityUpdate
from socialme.schemas.community import CommunityCreate, CommunityUpdate
from socialme.schemas.user import UserCreate, UserUpdate
from socialme.services import ActivityService, CommunityService, UserService
from socialme.services.media import MediaUpload
from socialme.utils.text import slugify

START = datetime(2025, 5, 10, 9, 0, tzinfo=UTC)


@pytest.fixture()
def users(core) -> UserService:
    return UserService(core)


@pytest.fixture()
def communities(core) -> CommunityService:
    return CommunityService(core)


@pytest.fixture()
def activities(core) -> ActivityService:
    return ActivityService(core)


def _activity_payload(**overrides) -> ActivityCreate:
    data = {
        "nombre": "Morning run",
        "comunidad": "running-club",
        "creador": "alice",
        "fecha_inicio": START,
        "fecha_finalizacion": START + timedelta(hours=1),
    }
    data.update(overrides)
    return ActivityCreate(**data)


def test_slugify_normalizes_urls() -> None:
    assert slugify("  Club de Montaña  Ávila ") == "club-de-montana-avila"


# -- users -------------------------------------------------------------------


def test_create_user_with_avatar(users, core) -> None:
    user = users.create(
        UserCreate(username="dana", email="dana@example.com"), MediaUpload(b"avatar")
    )

    assert user.profile_media_id is not None
    assert core.blob_store.describe(user.profile_media_id).owner_key == "dana"
    with pytest.raises(ConflictError):
        users.create(UserCreate(username="dana", email="other@example.com"))


def test_update_user_renames_through_cascade(users, core, running_club, bob) -> None:
    core.membership.join_community("bob", "running-club")

    user = users.update("bob", UserUpdate(username="roberto", nombre="Roberto"))

    assert user.username == "roberto"
    assert user.nombre == "Roberto"
    assert core.membership.is_community_member("roberto", "running-club")
    with pytest.raises(NotFoundError):
        users.get("bob")


def test_update_user_rename_conflict_changes_nothing(users, alice, bob) -> None:
    with pytest.raises(ConflictError):
        users.update("bob", UserUpdate(username="alice", nombre="Changed"))

    assert users.get("bob").nombre == "Bob"


# -- communities ---------------------------------------------------------------


def test_create_community(communities, core, alice) -> None:
    community = communities.create(
        CommunityCreate(url="Trail Runners", nombre="Trail", creador="alice", privada=True),
        profile=MediaUpload(b"logo"),
    )

    assert community.url == "trail-runners"
    assert len(community.codigo_union) == 10
    assert community.profile_media_id is not None
    assert core.membership.is_community_member("alice", "trail-runners")


def test_create_community_limits(communities, alice, running_club) -> None:
    with pytest.raises(ConflictError):
        communities.create(CommunityCreate(url="running-club", nombre="Dup", creador="alice"))
    with pytest.raises(NotFoundError):
        communities.create(CommunityCreate(url="x", nombre="X", creador="ghost"))
    with pytest.raises(ValidationError):
        communities.create(CommunityCreate(url="long", nombre="n" * 41, creador="alice"))

    communities.create(CommunityCreate(url="two", nombre="Two", creador="alice"))
    communities.create(CommunityCreate(url="three", nombre="Three", creador="alice"))
    with pytest.raises(ForbiddenError):
        communities.create(CommunityCreate(url="four", nombre="Four", creador="alice"))


def test_update_community_url_and_name(
    communities, core, running_club, bob, make_activity, db_session
) -> None:
    activity = make_activity("running-club", "alice", START, participants=("alice",))
    core.notifications.create(
        tipo="NUEVA_ACTIVIDAD", titulo="t", mensaje="m", usuario_destino="bob",
        entidad_id=running_club.id, entidad_nombre="Running Club",
    )

    community = communities.update(
        "running-club",
        CommunityUpdate(url="Running Club Madrid", nombre="Running Madrid", administradores=["bob", "alice", "bob"]),
    )

    assert community.url == "running-club-madrid"
    assert community.administradores == ["bob"]
    assert core.repos.activities.get_by_id(activity.id).comunidad == "running-club-madrid"
    notification = core.repos.notifications.find_one_where(usuario_destino="bob")
    assert notification.entidad_nombre == "Running Madrid"


def test_update_community_rejects_taken_url_first(communities, make_community, running_club, bob) -> None:
    make_community("cycling", "bob")

    with pytest.raises(ConflictError):
        communities.update("running-club", CommunityUpdate(url="cycling", nombre="Changed"))

    assert communities.get("running-club").nombre == "Running Club"


def test_update_community_toggles_join_code(communities, running_club) -> None:
    private = communities.update("running-club", CommunityUpdate(privada=True))
    assert private.codigo_union is not None

    public = communities.update("running-club", CommunityUpdate(privada=False))
    assert public.codigo_union is None


def test_list_for_user(communities, running_club, make_community, bob) -> None:
    make_community("cycling", "bob")

    assert [c.url for c in communities.list_for_user("alice")] == ["running-club"]
    with pytest.raises(NotFoundError):
        communities.list_for_user("ghost")


# -- activities ----------------------------------------------------------------


def test_create_activity_indexes_and_joins_creator(activities, core, running_club) -> None:
    activity = activities.create(_activity_payload(), carousel=[MediaUpload(b"1"), MediaUpload(b"2")])

    assert core.membership.is_activity_participant("alice", activity.id)
    assert [e.actividad_id for e in core.repos.activity_index.find_all_where(comunidad="running-club")] == [
        activity.id
    ]
    assert len(activity.carousel_media_ids) == 2
    assert [a.id for a in activities.list_for_community("running-club")] == [activity.id]


def test_only_managers_create_activities(activities, core, running_club, bob, make_user) -> None:
    core.membership.join_community("bob", "running-club")
    make_user("root", role="ADMIN")

    with pytest.raises(ForbiddenError):
        activities.create(_activity_payload(creador="bob"))
    with pytest.raises(ForbiddenError):
        activities.create(_activity_payload(creador="root"))

    running_club.administradores = ["bob"]
    core.repos.communities.save(running_club)
    assert activities.create(_activity_payload(creador="bob")).creador == "bob"


def test_activity_validation(activities, running_club) -> None:
    with pytest.raises(ValidationError):
        activities.create(_activity_payload(nombre="x" * 26))
    with pytest.raises(ValidationError):
        activities.create(_activity_payload(fecha_finalizacion=START - timedelta(minutes=1)))
    with pytest.raises(NotFoundError):
        activities.create(_activity_payload(comunidad="ghost"))


def test_reschedule_keeps_dispatch_records(activities, core, running_club, db_session) -> None:
    activity = activities.create(_activity_payload())
    db_session.add(
        NotificationDispatch(
            actividad_id=activity.id,
            usuario_destino="alice",
            threshold="T_START",
            trigger_at=START,
        )
    )
    db_session.commit()

    activities.update(
        activity.id,
        ActivityUpdate(fecha_inicio=START + timedelta(minutes=1), fecha_finalizacion=START + timedelta(hours=1)),
    )
    activities.update(
        activity.id,
        ActivityUpdate(fecha_inicio=START + timedelta(days=1), fecha_finalizacion=START + timedelta(days=1, hours=1)),
    )

    assert core.repos.dispatches.count_where(actividad_id=activity.id, usuario_destino="alice") == 1


def test_rename_activity_updates_copies(activities, core, running_club) -> None:
    activity = activities.create(_activity_payload())

    activities.update(activity.id, ActivityUpdate(nombre="Sunset run"))

    edge = core.repos.activity_participants.find_one_where(actividad_id=activity.id)
    entry = core.repos.activity_index.find_one_where(actividad_id=activity.id)
    assert (edge.nombre_actividad, entry.nombre_actividad) == ("Sunset run", "Sunset run")


def test_delete_activity_releases_carousel(activities, core, running_club) -> None:
    activity = activities.create(_activity_payload(), carousel=[MediaUpload(b"1")])
    (blob_id,) = activity.carousel_media_ids

    activities.delete(activity.id)

    assert core.blob_store.exists(blob_id) is False
    with pytest.raises(NotFoundError):
        activities.get(activity.id)
