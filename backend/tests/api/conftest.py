"""Shared fixtures and helpers for API tests."""
from uuid import uuid4

import pytest
from httpx import AsyncClient

# Constant for non-existent entity ID
FAKE_UUID = "00000000-0000-0000-0000-000000000000"


async def register_photo(
    client: AsyncClient,
    headers: dict[str, str],
    name: str = "photo.jpg",
    **extra: object,
) -> dict:
    """Register a photo through the API as if its upload had just finished."""
    response = await client.post(
        "/photos",
        json={
            "storage_path": f"photos/{uuid4().hex}-{name}",
            "original_name": name,
            "file_size": 1024,
            "mime_type": "image/jpeg",
            **extra,
        },
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


async def create_collection(
    client: AsyncClient,
    headers: dict[str, str],
    name: str = "Season Highlights",
) -> dict:
    """Create a collection through the API."""
    response = await client.post("/collections", json={"name": name}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


async def audit_entries(
    client: AsyncClient,
    admin_headers: dict[str, str],
    **params: object,
) -> list[dict]:
    """Audit entries visible to an admin, newest first."""
    response = await client.get("/admin/audit-logs", params=params, headers=admin_headers)
    assert response.status_code == 200, response.text
    return response.json()["entries"]


@pytest.fixture
async def roster(client: AsyncClient, admin_headers: dict[str, str]) -> dict:
    """One team with two players, created through the API."""
    team = (await client.post("/teams", json={"name": "Eagles"}, headers=admin_headers)).json()
    ann = (await client.post(
        "/players",
        json={"name": "Ann", "jersey_number": 9, "team_id": team["id"]},
        headers=admin_headers,
    )).json()
    ben = (await client.post(
        "/players", json={"name": "Ben", "jersey_number": 4}, headers=admin_headers,
    )).json()
    return {"team": team, "ann": ann, "ben": ben}
