"""Users API tests — registration, login, logout, check-auth, profile.

Learn: Tests cover:
1. Registration + validation (email format, duplicates, password length)
2. Login → JWT in the body and an HttpOnly cookie
3. Logout clears the cookie
4. check-auth never rejects
5. Profile requires a valid bearer token and hides the password hash
"""

import uuid

import pytest
from sqlalchemy import func, select

from taskboard.db.models import Task, User

from helpers import AUTH_COOKIE, anon_headers, bearer, is_cleared, set_cookies


def _email(prefix: str = "user") -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}@example.com"


# ═══════════════════════════════════════════════════════════
# Registration
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_register_user(client, db_session):
    """Register a new user account."""
    email = _email()
    r = await client.post(
        "/api/users/register",
        json={"email": email, "password": "secure_password_123"},
    )
    assert r.status_code == 201
    assert r.json() == {"message": "User registered successfully"}

    user = (await db_session.execute(select(User).where(User.email == email))).scalar_one()
    assert user.password_hash.startswith("$2")
    assert user.password_hash != "secure_password_123"
    assert user.anonymous_identifier is None


@pytest.mark.asyncio
async def test_register_without_cookie_sets_no_cookie(client):
    r = await client.post(
        "/api/users/register",
        json={"email": _email(), "password": "password_123"},
    )
    assert r.status_code == 201
    assert r.headers.get_list("set-cookie") == []


@pytest.mark.asyncio
async def test_register_duplicate_email(client):
    """Can't register with the same email twice."""
    body = {"email": _email("dup"), "password": "password_123"}

    r1 = await client.post("/api/users/register", json=body)
    assert r1.status_code == 201

    r2 = await client.post("/api/users/register", json=body)
    assert r2.status_code == 400
    assert r2.json() == {"error": "Email is already in use"}


@pytest.mark.asyncio
@pytest.mark.parametrize("email", ["not-an-email", "missing@", "@example.com", ""])
async def test_register_invalid_email(client, email):
    r = await client.post(
        "/api/users/register",
        json={"email": email, "password": "password_123"},
    )
    assert r.status_code == 400
    assert r.json() == {"error": "Invalid email address"}


@pytest.mark.asyncio
async def test_register_short_password_has_no_side_effects(client, db_session):
    """A 7-character password is rejected before anything is written."""
    anon_id = str(uuid.uuid4())
    r = await client.post("/api/tasks", json={"title": "Draft"}, headers=anon_headers(anon_id))
    assert r.status_code == 201

    r = await client.post(
        "/api/users/register",
        json={"email": _email("short"), "password": "abcdefg"},
        headers=anon_headers(anon_id),
    )
    assert r.status_code == 400
    assert r.json() == {"error": "Password must be at least 8 characters"}
    assert r.headers.get_list("set-cookie") == []

    users = (await db_session.execute(select(func.count()).select_from(User))).scalar_one()
    assert users == 0

    task = (await db_session.execute(select(Task))).scalar_one()
    assert task.is_anonymous is True
    assert task.anonymous_identifier == anon_id
    assert task.owner_user_id is None


@pytest.mark.asyncio
async def test_register_missing_fields(client):
    r = await client.post("/api/users/register", json={"email": _email()})
    assert r.status_code == 400
    assert "password" in r.json()["error"]


# ═══════════════════════════════════════════════════════════
# Login
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_login_success(client, make_user):
    """Login with valid credentials returns a token and an HttpOnly cookie."""
    user = await make_user(login=False)

    r = await client.post(
        "/api/users/login",
        json={"email": user["email"], "password": user["password"]},
    )
    assert r.status_code == 200
    token = r.json()["token"]
    assert token

    [cookie] = set_cookies(r, AUTH_COOKIE)
    assert cookie.value == token
    assert cookie["httponly"] is True
    assert cookie["path"] == "/"


@pytest.mark.asyncio
async def test_login_wrong_password(client, make_user):
    """Login with wrong password returns 401."""
    user = await make_user(login=False)

    r = await client.post(
        "/api/users/login",
        json={"email": user["email"], "password": "wrong_password"},
    )
    assert r.status_code == 401
    assert r.json() == {"error": "That password was incorrect. Please try again."}
    assert set_cookies(r, AUTH_COOKIE) == []


@pytest.mark.asyncio
async def test_login_nonexistent_user(client):
    """Login with nonexistent email returns 401."""
    r = await client.post(
        "/api/users/login",
        json={"email": "nobody@example.com", "password": "whatever_123"},
    )
    assert r.status_code == 401
    assert r.json() == {
        "error": "Couldn't find an account associated with this email."
    }


# ═══════════════════════════════════════════════════════════
# Logout
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_logout_clears_auth_cookie(client):
    r = await client.post("/api/users/logout")
    assert r.status_code == 200
    assert r.json() == {"message": "Logged out successfully"}

    [cookie] = set_cookies(r, AUTH_COOKIE)
    assert is_cleared(cookie)


# ═══════════════════════════════════════════════════════════
# check-auth
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_check_auth_with_token(client, make_user):
    user = await make_user()
    r = await client.get("/api/users/check-auth", headers=bearer(user["token"]))
    assert r.status_code == 200
    assert r.json() == {"message": "Authenticated", "authenticated": True}


@pytest.mark.asyncio
@pytest.mark.parametrize("headers", [{}, {"Authorization": "Bearer invalid_token_here"}])
async def test_check_auth_never_rejects(client, headers):
    r = await client.get("/api/users/check-auth", headers=headers)
    assert r.status_code == 200
    assert r.json()["authenticated"] is False


# ═══════════════════════════════════════════════════════════
# Profile
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_profile_with_token(client, make_user):
    user = await make_user()
    r = await client.get("/api/users/profile", headers=bearer(user["token"]))
    assert r.status_code == 200
    profile = r.json()
    assert profile["email"] == user["email"]
    assert "id" in profile
    assert "createdAt" in profile
    assert "passwordHash" not in profile
    assert "password_hash" not in profile


@pytest.mark.asyncio
async def test_profile_without_token(client):
    r = await client.get("/api/users/profile")
    assert r.status_code == 401
    assert r.json() == {"error": "Authentication required"}


@pytest.mark.asyncio
async def test_profile_with_invalid_token(client):
    r = await client.get(
        "/api/users/profile",
        headers={"Authorization": "Bearer invalid_token_here"},
    )
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_auth_cookie_lives_as_long_as_token(client, make_user):
    user = await make_user(login=False)
    r = await client.post(
        "/api/users/login",
        json={"email": user["email"], "password": user["password"]},
    )
    [cookie] = set_cookies(r, AUTH_COOKIE)
    assert cookie["max-age"] == str(7 * 24 * 60 * 60)
