"""Unit tests for authentication service and endpoints."""

from datetime import timedelta
from uuid import uuid4

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import TEST_PASSWORD, headers_for, make_user
from teamdesk.models.user import User
from teamdesk.schemas.user import UserCreate
from teamdesk.services.auth_service import (
    authenticate_user,
    create_access_token,
    create_user,
    decode_access_token,
    get_user_by_email,
)
from teamdesk.utils.security import get_password_hash, password_policy_error, verify_password


class TestSecurityUtils:
    """Tests for security utility functions."""

    def test_password_hash_creates_different_hash(self):
        password = "TestPassword123!"
        hash1 = get_password_hash(password)
        hash2 = get_password_hash(password)

        assert hash1 != hash2  # bcrypt generates unique salts
        assert hash1 != password

    def test_verify_password_success(self):
        hashed = get_password_hash("TestPassword123!")
        assert verify_password("TestPassword123!", hashed) is True

    def test_verify_password_failure(self):
        hashed = get_password_hash("TestPassword123!")
        assert verify_password("WrongPassword456!", hashed) is False

    def test_verify_password_malformed_hash(self):
        assert verify_password("anything", "not-a-bcrypt-hash") is False

    def test_password_policy(self):
        assert password_policy_error("short1") is not None
        assert password_policy_error("allletters") is not None
        assert password_policy_error("12345678") is not None
        assert password_policy_error("letters123") is None


class TestTokenFunctions:
    """Tests for JWT token functions."""

    def test_decode_access_token_valid(self):
        user_id = str(uuid4())
        token = create_access_token({"sub": user_id, "email": "test@example.com"})

        token_data = decode_access_token(token)

        assert token_data is not None
        assert token_data.user_id == user_id
        assert token_data.email == "test@example.com"

    def test_decode_access_token_invalid(self):
        assert decode_access_token("invalid.token.here") is None

    def test_decode_access_token_missing_sub(self):
        token = create_access_token({"email": "test@example.com"})
        assert decode_access_token(token) is None

    def test_decode_access_token_expired(self):
        token = create_access_token({"sub": str(uuid4())}, expires_delta=timedelta(seconds=-1))
        assert decode_access_token(token) is None


@pytest.mark.asyncio
class TestAuthService:
    """Tests for the user lookups and account creation."""

    async def test_get_user_by_email_case_insensitive(self, db_session: AsyncSession, test_user: User):
        user = await get_user_by_email(db_session, "TEST@Example.com")
        assert user is not None
        assert user.id == test_user.id

    async def test_authenticate_user(self, db_session: AsyncSession, test_user: User):
        assert await authenticate_user(db_session, test_user.email, TEST_PASSWORD) is not None
        assert await authenticate_user(db_session, test_user.email, "wrong-pass1") is None
        assert await authenticate_user(db_session, "nobody@example.com", TEST_PASSWORD) is None

    async def test_create_user_defaults_to_user_role(self, db_session: AsyncSession):
        user = await create_user(
            db_session,
            UserCreate(email="New.Person@Example.com", password="Password123", name="New"),
        )
        assert user.role == "user"
        assert user.active is True
        assert user.email == "new.person@example.com"


@pytest.mark.asyncio
class TestRegister:
    """Tests for POST /auth/register."""

    async def test_register_success(self, client: AsyncClient):
        response = await client.post(
            "/auth/register",
            json={"email": "fresh@example.com", "password": "Password123", "name": "Fresh"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["email"] == "fresh@example.com"
        assert data["role"] == "user"
        assert "password_hash" not in data

    async def test_register_duplicate_email(self, client: AsyncClient, test_user: User):
        response = await client.post(
            "/auth/register",
            json={"email": "TEST@example.com", "password": "Password123"},
        )

        assert response.status_code == 400

    async def test_register_weak_password(self, client: AsyncClient):
        response = await client.post(
            "/auth/register",
            json={"email": "weak@example.com", "password": "password"},
        )

        assert response.status_code == 422

    async def test_register_invalid_email(self, client: AsyncClient):
        response = await client.post(
            "/auth/register",
            json={"email": "not-an-email", "password": "Password123"},
        )

        assert response.status_code == 422


@pytest.mark.asyncio
class TestLogin:
    """Tests for POST /auth/login."""

    async def test_login_success(self, client: AsyncClient, test_user: User):
        response = await client.post(
            "/auth/login",
            data={"username": test_user.email, "password": TEST_PASSWORD},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        assert decode_access_token(data["access_token"]).user_id == str(test_user.id)

    async def test_login_records_last_login(self, client: AsyncClient, test_user: User):
        assert test_user.last_login is None
        await client.post(
            "/auth/login",
            data={"username": test_user.email, "password": TEST_PASSWORD},
        )

        me = await client.get("/auth/me", headers=headers_for(test_user))
        assert me.json()["last_login"] is not None

    async def test_login_wrong_password(self, client: AsyncClient, test_user: User):
        response = await client.post(
            "/auth/login",
            data={"username": test_user.email, "password": "WrongPassword1"},
        )

        assert response.status_code == 401

    async def test_login_unknown_email(self, client: AsyncClient):
        response = await client.post(
            "/auth/login",
            data={"username": "ghost@example.com", "password": TEST_PASSWORD},
        )

        assert response.status_code == 401

    async def test_login_inactive_account(self, client: AsyncClient, db_session: AsyncSession):
        user = await make_user(db_session, "inactive@example.com", active=False)

        response = await client.post(
            "/auth/login",
            data={"username": user.email, "password": TEST_PASSWORD},
        )

        assert response.status_code == 403


@pytest.mark.asyncio
class TestCurrentUser:
    """Tests for /auth/me and /auth/logout."""

    async def test_me_includes_permissions(self, client: AsyncClient, auth_headers: dict, test_user: User):
        response = await client.get("/auth/me", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == str(test_user.id)
        assert "task_creation" in data["permissions"]
        assert "user_management" not in data["permissions"]

    async def test_me_unauthorized(self, client: AsyncClient):
        response = await client.get("/auth/me")
        assert response.status_code == 401

    async def test_me_invalid_token(self, client: AsyncClient):
        response = await client.get("/auth/me", headers={"Authorization": "Bearer garbage"})
        assert response.status_code == 401

    async def test_me_deleted_user(self, client: AsyncClient):
        token = create_access_token({"sub": str(uuid4())})
        response = await client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    async def test_me_inactive_user(self, client: AsyncClient, db_session: AsyncSession):
        user = await make_user(db_session, "off@example.com", active=False)
        response = await client.get("/auth/me", headers=headers_for(user))
        assert response.status_code == 403

    async def test_logout(self, client: AsyncClient, auth_headers: dict):
        response = await client.post("/auth/logout", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["message"] == "Successfully logged out"
