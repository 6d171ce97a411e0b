"""Integration tests for the profile self-service endpoints."""

import pytest
from httpx import AsyncClient

from account_api.models.user import User


def _auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class TestProfile:
    """Tests for GET/PUT /api/profile."""

    @pytest.mark.asyncio
    async def test_get_profile_full_projection(self, client: AsyncClient, regular_user: User, user_token: str) -> None:
        resp = await client.get("/api/profile", headers=_auth(user_token))

        assert resp.status_code == 200
        user = resp.json()["user"]
        assert user["id"] == str(regular_user.id)
        assert user["full_name"] == "Jane Doe"
        assert "account_age" in user
        assert user["last_active"] is None
        assert "password_hash" not in user

    @pytest.mark.asyncio
    async def test_update_profile(self, client: AsyncClient, user_token: str) -> None:
        resp = await client.put("/api/profile", json={"last_name": "Smith"}, headers=_auth(user_token))

        assert resp.status_code == 200
        data = resp.json()
        assert data["message"] == "Profile updated successfully"
        assert data["user"]["full_name"] == "Jane Smith"
        assert "account_age" not in data["user"]

    @pytest.mark.asyncio
    async def test_update_profile_wrong_current_password(self, client: AsyncClient, user_token: str) -> None:
        resp = await client.put(
            "/api/profile",
            json={"current_password": "nope", "new_password": "newpassword1"},
            headers=_auth(user_token),
        )

        assert resp.status_code == 422
        assert resp.json() == {"message": "Current password is incorrect"}


class TestChangePassword:
    """Tests for POST /api/change-password."""

    @pytest.mark.asyncio
    async def test_change_password_then_login(self, client: AsyncClient, regular_user: User, user_token: str) -> None:
        resp = await client.post(
            "/api/change-password",
            json={
                "current_password": "password123",
                "new_password": "brandnew99",
                "new_password_confirmation": "brandnew99",
            },
            headers=_auth(user_token),
        )
        assert resp.status_code == 200
        assert resp.json() == {"message": "Password changed successfully"}

        old = await client.post("/api/login", json={"email": regular_user.email, "password": "password123"})
        assert old.status_code == 401
        new = await client.post("/api/login", json={"email": regular_user.email, "password": "brandnew99"})
        assert new.status_code == 200

    @pytest.mark.asyncio
    async def test_short_new_password(self, client: AsyncClient, user_token: str) -> None:
        resp = await client.post(
            "/api/change-password",
            json={"current_password": "password123", "new_password": "short"},
            headers=_auth(user_token),
        )

        assert resp.status_code == 422
        assert "new_password" in resp.json()["errors"]
