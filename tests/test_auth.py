from uuid import UUID

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dojo.auth import services
from dojo.auth.models import User, UserRole


def _register_payload(email: str) -> dict:
    return {
        "full_name": "Jane Doe",
        "email": email,
        "password": "StrongPass123",
        "confirm_password": "StrongPass123",
    }


@pytest.mark.asyncio
async def test_first_user_becomes_admin(client: AsyncClient, db_session: AsyncSession) -> None:
    response = await client.post("/api/v1/auth/register", json=_register_payload("jane@example.com"))
    assert response.status_code == 201
    data = response.json()
    assert data["success"] is True
    assert data["roles"] == ["admin"]
    user_id = UUID(data["user_id"])

    roles = (
        await db_session.execute(select(UserRole.role).where(UserRole.user_id == user_id))
    ).scalars().all()
    assert roles == ["admin"]

    second = await client.post("/api/v1/auth/register", json=_register_payload("john@example.com"))
    assert second.status_code == 201
    assert second.json()["roles"] == ["viewer"]


@pytest.mark.asyncio
async def test_only_one_registration_claims_first_admin(
    client: AsyncClient, db_session: AsyncSession, monkeypatch: pytest.MonkeyPatch
) -> None:
    first = await client.post("/api/v1/auth/register", json=_register_payload("jane@example.com"))
    assert first.json()["roles"] == ["admin"]

    async def _stale_count(db: AsyncSession) -> int:
        return 0

    # Second registration read the user count before the first one committed
    monkeypatch.setattr(services, "_user_count", _stale_count)
    second = await client.post("/api/v1/auth/register", json=_register_payload("john@example.com"))
    assert second.status_code == 201
    assert second.json()["roles"] == ["viewer"]

    admins = (
        await db_session.execute(select(UserRole.user_id).where(UserRole.role == "admin"))
    ).scalars().all()
    assert admins == [UUID(first.json()["user_id"])]


@pytest.mark.asyncio
async def test_register_duplicate_email(client: AsyncClient, db_session: AsyncSession) -> None:
    payload = _register_payload("jane@example.com")
    first = await client.post("/api/v1/auth/register", json=payload)
    assert first.status_code == 201
    second = await client.post("/api/v1/auth/register", json=payload)
    assert second.status_code == 409
    assert second.json()["detail"] == "Email is already in use"


@pytest.mark.asyncio
async def test_register_password_mismatch(client: AsyncClient, db_session: AsyncSession) -> None:
    payload = {**_register_payload("jane@example.com"), "confirm_password": "Different123"}
    response = await client.post("/api/v1/auth/register", json=payload)
    assert response.status_code == 422

    users = (await db_session.execute(select(User))).scalars().all()
    assert users == []


@pytest.mark.asyncio
async def test_login_and_me(client: AsyncClient, db_session: AsyncSession) -> None:
    await client.post("/api/v1/auth/register", json=_register_payload("jane@example.com"))

    response = await client.post(
        "/api/v1/auth/login",
        json={"email": "jane@example.com", "password": "StrongPass123"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["user"]["is_admin"] is True

    me = await client.get(
        "/api/v1/auth/me",
        headers={"Authorization": f"Bearer {data['access_token']}"},
    )
    assert me.status_code == 200
    assert me.json()["email"] == "jane@example.com"
    assert me.json()["roles"] == ["admin"]


@pytest.mark.asyncio
async def test_login_wrong_password(client: AsyncClient, db_session: AsyncSession) -> None:
    await client.post("/api/v1/auth/register", json=_register_payload("jane@example.com"))
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": "jane@example.com", "password": "wrong-password"},
    )
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid credentials"


@pytest.mark.asyncio
async def test_login_oauth_form(client: AsyncClient, db_session: AsyncSession) -> None:
    await client.post("/api/v1/auth/register", json=_register_payload("jane@example.com"))
    response = await client.post(
        "/api/v1/auth/login-oauth",
        data={"username": "jane@example.com", "password": "StrongPass123"},
    )
    assert response.status_code == 200
    assert response.json()["token_type"] == "bearer"


@pytest.mark.asyncio
async def test_invalid_token_rejected(client: AsyncClient, db_session: AsyncSession) -> None:
    response = await client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401
