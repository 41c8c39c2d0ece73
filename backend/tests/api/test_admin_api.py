"""Tests for admin endpoints."""
from typing import Any

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from core.storage import StorageError
from models.user import User
from tests.api.conftest import FAKE_UUID, audit_entries, create_collection, register_photo


async def test_admin_endpoints_reject_players(
    client: AsyncClient, player_headers: dict[str, str],
) -> None:
    """Test that every admin endpoint is closed to players."""
    for method, path in [
        ("GET", "/admin/audit-logs"),
        ("GET", "/admin/users"),
        ("GET", "/admin/stats"),
        ("GET", f"/admin/users/{FAKE_UUID}"),
        ("PATCH", f"/admin/users/{FAKE_UUID}"),
        ("GET", "/admin/photos"),
        ("GET", "/admin/storage"),
        ("POST", "/admin/storage"),
    ]:
        kwargs = {}
        if method == "PATCH":
            kwargs = {"json": {"role": "admin"}}
        elif method == "POST":
            kwargs = {"json": {"action": "test-connection"}}
        response = await client.request(method, path, headers=player_headers, **kwargs)
        assert response.status_code == 403, (method, path)

    response = await client.request(
        "DELETE", "/admin/photos", json={"photo_ids": [FAKE_UUID]}, headers=player_headers,
    )
    assert response.status_code == 403


async def test_audit_log_filters_and_pagination(
    client: AsyncClient,
    admin_headers: dict[str, str],
    player_headers: dict[str, str],
    player_user: User,
) -> None:
    """Test filtering by action, user and resource type, and the pagination block."""
    for i in range(3):
        await register_photo(client, player_headers, f"p{i}.jpg")

    response = await client.get(
        "/admin/audit-logs",
        params={"action": "PHOTO_UPLOAD", "limit": 2},
        headers=admin_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert len(data["entries"]) == 2
    assert data["pagination"] == {
        "page": 1, "limit": 2, "total": 3, "total_pages": 2, "totalPages": 2,
    }
    assert data["entries"][0]["details"]["original_name"] == "p2.jpg"

    page_two = await audit_entries(client, admin_headers, action="PHOTO_UPLOAD", limit=2, page=2)
    assert [e["details"]["original_name"] for e in page_two] == ["p0.jpg"]

    mine = await audit_entries(client, admin_headers, user_id=str(player_user.id))
    assert {e["action"] for e in mine} == {"PHOTO_UPLOAD"}
    assert all(e["user_name"] == "Pat Player" for e in mine)

    photo_entries = await audit_entries(client, admin_headers, resource_type="Photo")
    assert len(photo_entries) == 3


async def test_audit_log_date_filters(
    client: AsyncClient,
    admin_headers: dict[str, str],
    player_headers: dict[str, str],
) -> None:
    """Test that date ranges bound the results and malformed dates are rejected."""
    await register_photo(client, player_headers)

    assert await audit_entries(
        client, admin_headers, start_date="2000-01-01", end_date="2000-01-02",
    ) == []
    assert len(await audit_entries(client, admin_headers, start_date="2000-01-01")) == 1

    response = await client.get(
        "/admin/audit-logs", params={"start_date": "yesterday"}, headers=admin_headers,
    )
    assert response.status_code == 400


async def test_audit_log_rejects_unknown_action(
    client: AsyncClient, admin_headers: dict[str, str],
) -> None:
    """Test that the action filter only accepts known actions."""
    response = await client.get(
        "/admin/audit-logs", params={"action": "NOT_AN_ACTION"}, headers=admin_headers,
    )
    assert response.status_code == 422


async def test_list_users(
    client: AsyncClient, admin_headers: dict[str, str], player_user: User,  # noqa: ARG001
) -> None:
    """Test listing accounts from the identity database."""
    response = await client.get("/admin/users", headers=admin_headers)

    assert response.status_code == 200
    users = response.json()
    assert [(u["name"], u["role"]) for u in users] == [
        ("Alice Admin", "admin"),
        ("Pat Player", "player"),
    ]
    assert "password_hash" not in users[0]


async def test_update_role_invalidates_cached_user(
    client: AsyncClient,
    admin_headers: dict[str, str],
    player_headers: dict[str, str],
    player_user: User,
    user_cache: Any,
) -> None:
    """Test promoting a user drops their cached record so listings show the new role."""
    await register_photo(client, player_headers)
    await client.get("/photos", headers=player_headers)
    assert player_user.id in user_cache

    response = await client.patch(
        f"/admin/users/{player_user.id}", json={"role": "admin"}, headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["role"] == "admin"
    assert player_user.id not in user_cache

    listed = (await client.get("/photos", headers=player_headers)).json()
    assert listed[0]["uploader"]["role"] == "admin"


async def test_update_role_errors(
    client: AsyncClient,
    admin_headers: dict[str, str],
    admin_user: User,
) -> None:
    """Test self-demotion and unknown users."""
    response = await client.patch(
        f"/admin/users/{admin_user.id}", json={"role": "player"}, headers=admin_headers,
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "You cannot remove your own admin role"

    response = await client.patch(
        f"/admin/users/{FAKE_UUID}", json={"role": "player"}, headers=admin_headers,
    )
    assert response.status_code == 404
    assert response.json()["detail"] == "User not found"


async def test_stats(
    client: AsyncClient,
    admin_headers: dict[str, str],
    player_headers: dict[str, str],
    roster: dict,
) -> None:
    """Test dashboard counts across both databases."""
    photo = await register_photo(client, player_headers, "goal.jpg")
    await client.post(
        "/tags",
        json={"photo_id": photo["id"], "player_id": roster["ann"]["id"]},
        headers=player_headers,
    )
    collection = await create_collection(client, player_headers)
    await client.post(f"/collections/{collection['id']}/share", headers=player_headers)

    response = await client.get("/admin/stats", headers=admin_headers)

    assert response.status_code == 200
    stats = response.json()
    assert stats["users"] == 2
    assert stats["photos"] == 1
    assert stats["teams"] == 1
    assert stats["players"] == 2
    assert stats["player_tags"] == 1
    assert stats["team_tags"] == 0
    assert stats["collections"] == 1
    assert stats["shared_collections"] == 1
    assert stats["total_storage_bytes"] == 1024
    assert stats["audit_entries"] > 0
    assert stats["recent_photos"][0]["original_name"] == "goal.jpg"
    assert stats["recent_photos"][0]["uploader_name"] == "Pat Player"


async def test_bulk_delete_photos(
    client: AsyncClient,
    admin_headers: dict[str, str],
    player_headers: dict[str, str],
    storage: Any,
) -> None:
    """Test that rows are removed even when some objects fail to delete."""
    photos = [await register_photo(client, player_headers, f"p{i}.jpg") for i in range(3)]
    storage.fail_deletes.add(photos[0]["storage_path"])
    photo_ids = [p["id"] for p in photos]

    response = await client.request(
        "DELETE",
        "/admin/photos",
        json={"photo_ids": [*photo_ids, FAKE_UUID]},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json() == {
        "message": "Deleted 3 photos",
        "deleted": 3,
        "storage_failures": 1,
    }
    for photo_id in photo_ids:
        assert (await client.get(f"/photos/{photo_id}", headers=player_headers)).status_code == 404

    entries = await audit_entries(client, admin_headers, action="PHOTO_BULK_DELETE")
    assert sorted(entries[0]["resource_ids"]) == sorted(photo_ids)
    assert entries[0]["details"]["count"] == 3
    assert entries[0]["details"]["storage_failures"] == 1
    assert sorted(entries[0]["details"]["file_names"]) == ["p0.jpg", "p1.jpg", "p2.jpg"]


async def test_bulk_delete_none_found_is_404(
    client: AsyncClient, admin_headers: dict[str, str],
) -> None:
    """Test that bulk delete fails when no ids match."""
    response = await client.request(
        "DELETE", "/admin/photos", json={"photo_ids": [FAKE_UUID]}, headers=admin_headers,
    )
    assert response.status_code == 404


async def test_bulk_delete_needs_ids(
    client: AsyncClient, admin_headers: dict[str, str],
) -> None:
    """Test that an empty id list is a validation error."""
    response = await client.request(
        "DELETE", "/admin/photos", json={"photo_ids": []}, headers=admin_headers,
    )
    assert response.status_code == 422


async def test_audit_log_accepts_camel_case_filters(
    client: AsyncClient,
    admin_headers: dict[str, str],
    player_headers: dict[str, str],
    player_user: User,
) -> None:
    """Test that resourceType, userId, startDate and endDate filter like their snake_case forms."""
    photo = await register_photo(client, player_headers)
    collection = await create_collection(client, player_headers)
    await client.post(
        f"/collections/{collection['id']}/photos",
        json={"photo_id": photo["id"]},
        headers=player_headers,
    )
    await client.post(f"/collections/{collection['id']}/share", headers=player_headers)

    collection_entries = await audit_entries(client, admin_headers, resourceType="Collection")
    assert [e["action"] for e in collection_entries] == ["COLLECTION_SHARE_CREATE"]

    membership = await audit_entries(client, admin_headers, resourceType="CollectionPhoto")
    assert [e["action"] for e in membership] == ["COLLECTION_PHOTO_ADD"]

    photo_entries = await audit_entries(client, admin_headers, resourceType="Photo")
    assert [e["action"] for e in photo_entries] == ["PHOTO_UPLOAD"]

    mine = await audit_entries(client, admin_headers, userId=str(player_user.id))
    assert len(mine) == 3
    assert await audit_entries(client, admin_headers, userId=FAKE_UUID) == []

    assert await audit_entries(
        client, admin_headers, startDate="2000-01-01", endDate="2000-01-02",
    ) == []
    assert len(await audit_entries(client, admin_headers, startDate="2000-01-01")) == 3

    response = await client.get(
        "/admin/audit-logs", params={"startDate": "yesterday"}, headers=admin_headers,
    )
    assert response.status_code == 400


async def test_get_user(
    client: AsyncClient, admin_headers: dict[str, str], player_user: User,
) -> None:
    """Test fetching one account with its timestamps, and 404 for unknown ids."""
    response = await client.get(f"/admin/users/{player_user.id}", headers=admin_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["email"] == "player@example.com"
    assert data["role"] == "player"
    assert data["last_login"] is None
    assert data["created_at"] is not None
    assert data["updated_at"] is not None
    assert "password_hash" not in data

    response = await client.get(f"/admin/users/{FAKE_UUID}", headers=admin_headers)
    assert response.status_code == 404
    assert response.json()["detail"] == "User not found"


async def test_update_role_commits_before_invalidating_cache(
    client: AsyncClient,
    admin_headers: dict[str, str],
    player_user: User,
    auth_session: AsyncSession,
    user_cache: Any,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Test that the cache entry is dropped only after the role change is committed."""
    open_transaction_at_invalidate: list[bool] = []
    real_invalidate = user_cache.invalidate

    def recording_invalidate(user_id: Any) -> None:
        open_transaction_at_invalidate.append(auth_session.in_transaction())
        real_invalidate(user_id)

    monkeypatch.setattr(user_cache, "invalidate", recording_invalidate)

    response = await client.patch(
        f"/admin/users/{player_user.id}", json={"role": "admin"}, headers=admin_headers,
    )

    assert response.status_code == 200
    assert open_transaction_at_invalidate == [False]


async def test_admin_photo_listing(
    client: AsyncClient,
    admin_headers: dict[str, str],
    player_headers: dict[str, str],
    admin_user: User,
    player_user: User,
) -> None:
    """Test paging, the uploader filter, uploader enrichment and collection counts."""
    first = await register_photo(client, player_headers, "first.jpg")
    second = await register_photo(client, player_headers, "second.jpg")
    await register_photo(client, admin_headers, "admin.jpg")
    for name in ("One", "Two"):
        collection = await create_collection(client, player_headers, name)
        await client.post(
            f"/collections/{collection['id']}/photos",
            json={"photo_id": first["id"]},
            headers=player_headers,
        )

    response = await client.get("/admin/photos", params={"limit": 2}, headers=admin_headers)
    assert response.status_code == 200
    data = response.json()
    assert [p["original_name"] for p in data["photos"]] == ["admin.jpg", "second.jpg"]
    assert data["photos"][0]["uploader"]["name"] == "Alice Admin"
    assert data["pagination"]["total"] == 3
    assert data["pagination"]["totalPages"] == 2

    by_player = (await client.get(
        "/admin/photos", params={"uploaderId": str(player_user.id)}, headers=admin_headers,
    )).json()
    counts = {p["id"]: p["collections_count"] for p in by_player["photos"]}
    assert counts == {first["id"]: 2, second["id"]: 0}
    assert {p["uploader"]["name"] for p in by_player["photos"]} == {"Pat Player"}

    by_admin = (await client.get(
        "/admin/photos", params={"uploader_id": str(admin_user.id)}, headers=admin_headers,
    )).json()
    assert [p["original_name"] for p in by_admin["photos"]] == ["admin.jpg"]


async def test_storage_overview(
    client: AsyncClient,
    admin_headers: dict[str, str],
    player_headers: dict[str, str],
) -> None:
    """Test the masked configuration and usage totals by MIME type."""
    await register_photo(client, player_headers, "a.jpg", file_size=3000)
    await register_photo(client, player_headers, "b.jpg", file_size=1000)
    await register_photo(client, player_headers, "c.mp4", file_size=6000, mime_type="video/mp4")

    response = await client.get("/admin/storage", headers=admin_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["config"]["bucket_name"] == "test-bucket"
    assert data["stats"] == {"photo_count": 3, "total_bytes": 10000, "average_file_size": 3333}
    assert data["type_distribution"] == [
        {"mime_type": "video/mp4", "count": 1, "total_bytes": 6000},
        {"mime_type": "image/jpeg", "count": 2, "total_bytes": 4000},
    ]


@pytest.mark.parametrize(
    ("action", "steps"),
    [
        ("test-connection", ["connect"]),
        ("test-upload", ["upload", "verify_exists", "delete"]),
        ("test-full", ["upload", "verify_exists", "download", "delete", "verify_deleted"]),
    ],
)
async def test_storage_checks_pass(
    client: AsyncClient,
    admin_headers: dict[str, str],
    storage: Any,
    action: str,
    steps: list[str],
) -> None:
    """Test that each check runs its steps against storage and leaves nothing behind."""
    response = await client.post("/admin/storage", json={"action": action}, headers=admin_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["action"] == action
    assert [s["name"] for s in data["steps"]] == steps
    assert all(s["success"] for s in data["steps"])
    assert storage.objects == {}
    if action != "test-connection":
        assert data["object_path"].startswith("_test/connectivity-test-")
        assert storage.deleted == [data["object_path"]]


async def test_storage_check_failure_is_500_with_steps(
    client: AsyncClient,
    admin_headers: dict[str, str],
    storage: Any,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Test that a failing download comparison reports the step and cleans up."""
    async def corrupted_get(path: str) -> bytes:  # noqa: ARG001
        return b"something else"

    monkeypatch.setattr(storage, "get", corrupted_get)

    response = await client.post(
        "/admin/storage", json={"action": "test-full"}, headers=admin_headers,
    )

    assert response.status_code == 500
    data = response.json()
    assert data["success"] is False
    assert data["error"] == "Downloaded content does not match what was uploaded"
    assert [(s["name"], s["success"]) for s in data["steps"]] == [
        ("upload", True),
        ("verify_exists", True),
        ("download", False),
    ]
    assert storage.objects == {}


async def test_storage_check_upload_error_is_500(
    client: AsyncClient,
    admin_headers: dict[str, str],
    storage: Any,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Test that a storage error on upload fails the check without raising."""
    async def failing_put(path: str, data: bytes, content_type: str) -> None:  # noqa: ARG001
        raise StorageError("put", path, RuntimeError("bucket unreachable"))

    monkeypatch.setattr(storage, "put", failing_put)

    response = await client.post(
        "/admin/storage", json={"action": "test-upload"}, headers=admin_headers,
    )

    assert response.status_code == 500
    data = response.json()
    assert "bucket unreachable" in data["error"]
    assert [(s["name"], s["success"]) for s in data["steps"]] == [("upload", False)]


async def test_storage_check_rejects_unknown_action(
    client: AsyncClient, admin_headers: dict[str, str],
) -> None:
    """Test that only the three known checks can be run."""
    response = await client.post(
        "/admin/storage", json={"action": "format-bucket"}, headers=admin_headers,
    )
    assert response.status_code == 422
