# mypy: ignore-errors
"""Tests for community-related endpoints."""

from fastapi import status
from sqlalchemy.exc import OperationalError

from socialme.services.blob_store import SqlBlobStore


def test_create_community(client, alice) -> None:
    """Test creating a community; the url is slugified and the creator joins."""
    response = client.post(
        "/api/v1/communities/",
        json={"url": "Trail Runners", "nombre": "Trail Runners", "creador": "alice"},
    )
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["url"] == "trail-runners"
    assert data["codigo_union"] is None

    response = client.get("/api/v1/communities/trail-runners/members/alice")
    assert response.json() == {"value": True}


def test_create_duplicate_community(client, running_club) -> None:
    response = client.post(
        "/api/v1/communities/",
        json={"url": "running-club", "nombre": "Other", "creador": "alice"},
    )
    assert response.status_code == status.HTTP_409_CONFLICT


def test_create_community_rejects_bad_interests(client, alice) -> None:
    response = client.post(
        "/api/v1/communities/",
        json={"url": "x", "nombre": "X", "creador": "alice", "intereses": ["trail running"]},
    )
    assert response.status_code == 422


def test_get_nonexistent_community(client) -> None:
    response = client.get("/api/v1/communities/ghost")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert "ghost" in response.json()["detail"]


def test_rename_community_moves_members(client, running_club, bob) -> None:
    """Test renaming a community through PATCH."""
    client.post("/api/v1/communities/running-club/members", json={"username": "bob"})

    response = client.patch(
        "/api/v1/communities/running-club", json={"url": "running-club-madrid"}
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["url"] == "running-club-madrid"

    assert client.get("/api/v1/communities/running-club").status_code == status.HTTP_404_NOT_FOUND
    response = client.get("/api/v1/communities/running-club-madrid/members/count")
    assert response.json() == {"count": 2}


def test_partial_rename_reports_pending_collections(client, running_club, mocker) -> None:
    """A failing dependent step surfaces as 500 with the stale collections listed."""
    patched = mocker.patch.object(
        SqlBlobStore,
        "retag_owner",
        side_effect=OperationalError("UPDATE media_blob", {}, Exception("locked")),
    )

    response = client.patch(
        "/api/v1/communities/running-club", json={"url": "running-club-madrid"}
    )
    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json()["pending_collections"] == ["media_blob"]

    mocker.stop(patched)
    response = client.post(
        "/api/v1/communities/running-club-madrid/rename/resume",
        params={"previous": "running-club"},
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["url"] == "running-club-madrid"


def test_membership_endpoints(client, running_club, bob) -> None:
    response = client.post("/api/v1/communities/running-club/members", json={"username": "bob"})
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["comunidad"] == "running-club"

    response = client.post("/api/v1/communities/running-club/members", json={"username": "bob"})
    assert response.status_code == status.HTTP_409_CONFLICT

    members = client.get("/api/v1/communities/running-club/members").json()
    assert sorted(m["username"] for m in members) == ["alice", "bob"]

    response = client.delete("/api/v1/communities/running-club/members/bob")
    assert response.status_code == status.HTTP_204_NO_CONTENT
    response = client.delete("/api/v1/communities/running-club/members/alice")
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_join_private_community_with_code(client, alice, bob) -> None:
    created = client.post(
        "/api/v1/communities/",
        json={"url": "secret", "nombre": "Secret", "creador": "alice", "privada": True},
    ).json()

    response = client.post(
        "/api/v1/communities/secret/members/code",
        json={"username": "bob", "codigo": "wrong"},
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN

    response = client.post(
        "/api/v1/communities/secret/members/code",
        json={"username": "bob", "codigo": created["codigo_union"]},
    )
    assert response.status_code == status.HTTP_201_CREATED


def test_expel_and_transfer(client, running_club, bob, carol) -> None:
    for username in ("bob", "carol"):
        client.post("/api/v1/communities/running-club/members", json={"username": username})

    response = client.post(
        "/api/v1/communities/running-club/expel",
        json={"username": "carol", "requested_by": "bob"},
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN

    response = client.post(
        "/api/v1/communities/running-club/expel",
        json={"username": "carol", "requested_by": "alice"},
    )
    assert response.status_code == status.HTTP_204_NO_CONTENT

    response = client.post(
        "/api/v1/communities/running-club/transfer",
        json={"current": "alice", "new": "bob"},
    )
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["creador"] == "bob"
    assert data["administradores"] == ["alice"]


def test_profile_media_and_carousel(client, running_club) -> None:
    """Uploads are raw request bodies; reordering keeps only the listed ids."""
    response = client.put(
        "/api/v1/communities/running-club/profile-media",
        content=b"\x89PNG logo",
        headers={"content-type": "image/png"},
    )
    assert response.status_code == status.HTTP_200_OK
    profile_id = response.json()["profile_media_id"]

    media = client.get(f"/api/v1/media/{profile_id}")
    assert media.content == b"\x89PNG logo"
    assert media.headers["content-type"] == "image/png"

    first = client.post(
        "/api/v1/communities/running-club/carousel",
        content=b"one",
        headers={"content-type": "image/jpeg"},
    ).json()["carousel_media_ids"]
    both = client.post(
        "/api/v1/communities/running-club/carousel",
        content=b"two",
        headers={"content-type": "image/jpeg"},
    ).json()["carousel_media_ids"]
    assert both[0] == first[0] and len(both) == 2

    response = client.put(
        "/api/v1/communities/running-club/carousel", json={"keep": [both[1]]}
    )
    assert response.json()["carousel_media_ids"] == [both[1]]
    assert client.get(f"/api/v1/media/{both[0]}").status_code == status.HTTP_404_NOT_FOUND

    response = client.put(
        "/api/v1/communities/running-club/carousel", json={"keep": [first[0]]}
    )
    assert response.status_code == status.HTTP_409_CONFLICT


def test_delete_community(client, running_club, bob) -> None:
    client.post("/api/v1/communities/running-club/members", json={"username": "bob"})

    response = client.delete("/api/v1/communities/running-club")
    assert response.status_code == status.HTTP_204_NO_CONTENT

    assert client.get("/api/v1/users/bob/communities").json() == []
