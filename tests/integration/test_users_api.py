import pytest
from httpx import AsyncClient

from backend.app.services import user_service
from tests.helpers import STRONG_PASSWORD, make_user, headers_for


@pytest.mark.asyncio
async def test_list_users(client: AsyncClient, admin, member, member_headers):
    resp = await client.get("/users?limit=1", headers=member_headers)
    assert resp.status_code == 200
    data = resp.json()
    assert data["total"] == 2
    assert len(data["items"]) == 1


@pytest.mark.asyncio
async def test_get_user(client: AsyncClient, admin, member_headers):
    resp = await client.get(f"/users/{admin.id}", headers=member_headers)
    assert resp.status_code == 200
    assert resp.json()["role"] == "Admin"

    resp = await client.get("/users/nope", headers=member_headers)
    assert resp.status_code == 404
    assert resp.json() == {"message": "User not found."}


@pytest.mark.asyncio
async def test_user_updates_own_profile(client: AsyncClient, member, member_headers):
    resp = await client.patch(
        f"/users/{member.id}",
        json={"full_name": "Member Person", "avatar_url": "https://cdn.example.com/me.png"},
        headers=member_headers,
    )
    assert resp.status_code == 200, resp.text
    assert resp.json()["full_name"] == "Member Person"


@pytest.mark.asyncio
async def test_member_cannot_edit_others_or_change_role(client: AsyncClient, db_session, admin, member, member_headers):
    resp = await client.patch(f"/users/{admin.id}", json={"full_name": "x"}, headers=member_headers)
    assert resp.status_code == 403

    resp = await client.patch(f"/users/{member.id}", json={"role": "Admin"}, headers=member_headers)
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_admin_changes_role(client: AsyncClient, admin_headers, member):
    resp = await client.patch(f"/users/{member.id}", json={"role": "Admin"}, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["role"] == "Admin"


@pytest.mark.asyncio
async def test_update_rejects_taken_username(client: AsyncClient, db_session, member, member_headers):
    other = await make_user(db_session, "other")
    resp = await client.patch(f"/users/{member.id}", json={"username": other.username}, headers=member_headers)
    assert resp.status_code == 400
    assert resp.json()["message"] == "Username already taken"


@pytest.mark.asyncio
async def test_soft_delete(client: AsyncClient, db_session, admin_headers):
    victim = await make_user(db_session, "victim")

    resp = await client.delete(f"/users/{victim.id}", headers=admin_headers)
    assert resp.status_code == 200
    data = resp.json()
    assert data["is_active"] is False
    assert data["deleted_at"] is not None

    # Row is kept but hidden from the default listing
    resp = await client.get(f"/users/{victim.id}", headers=admin_headers)
    assert resp.status_code == 200
    listing = await client.get("/users", headers=admin_headers)
    assert victim.id not in [u["id"] for u in listing.json()["items"]]

    resp = await client.delete(f"/users/{victim.id}", headers=admin_headers)
    assert resp.status_code == 400
    assert resp.json()["message"] == "User is already deactivated."

    # Deactivated accounts can no longer log in or use old tokens
    resp = await client.post("/auth/login", json={"username": "victim", "password": STRONG_PASSWORD})
    assert resp.status_code == 401
    resp = await client.get("/incidents", headers=headers_for(victim))
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_member_cannot_delete_others(client: AsyncClient, admin, member_headers):
    resp = await client.delete(f"/users/{admin.id}", headers=member_headers)
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_rename_racing_past_lookup_is_a_conflict(client: AsyncClient, db_session, member, member_headers, monkeypatch):
    other = await make_user(db_session, "other")

    async def no_precheck(*args, **kwargs):
        return None

    monkeypatch.setattr(user_service, "ensure_unique_identity", no_precheck)

    resp = await client.patch(f"/users/{member.id}", json={"username": other.username}, headers=member_headers)
    assert resp.status_code == 400
    assert resp.json() == {"message": "User already exists"}
