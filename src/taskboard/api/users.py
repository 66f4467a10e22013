"""Users API — registration, login, logout, auth status, profile.

Learn: Routes for the account lifecycle:
- POST /users/register → create an account, claim anonymous tasks
- POST /users/login → email/password → JWT (body + HttpOnly cookie)
- POST /users/logout → drop the auth cookie
- GET /users/check-auth → does the bearer token still verify?
- GET /users/profile → current user (bearer token required)

Register and login clear the anonymousIdentifier cookie, but only after
the service has committed the reconciliation. If the service raises, the
error handler builds a fresh response and the cookie is left alone.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.auth.anonymous import clear_anonymous_cookie
from taskboard.auth.identity import (
    Identity,
    anonymous_cookie,
    get_identity,
    require_authenticated,
)
from taskboard.auth.jwt import token_lifetime
from taskboard.config import settings
from taskboard.db.engine import get_db
from taskboard.schemas.user import (
    AuthStatus,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    TokenResponse,
    UserRead,
)
from taskboard.services.user_service import UserService

router = APIRouter(prefix="/users")


def _user_svc(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db)


# ─── Register ────────────────────────────────────────────


@router.post("/register", response_model=MessageResponse, status_code=201)
async def register(
    body: RegisterRequest,
    response: Response,
    anonymous_identifier: Optional[str] = Depends(anonymous_cookie),
    svc: UserService = Depends(_user_svc),
):
    """Create a new account. Anonymous tasks from this browser move over."""
    await svc.register(body.email, body.password, anonymous_identifier)
    if anonymous_identifier:
        clear_anonymous_cookie(response)
    return MessageResponse(message="User registered successfully")


# ─── Login ───────────────────────────────────────────────


@router.post("/login", response_model=TokenResponse)
async def login(
    body: LoginRequest,
    response: Response,
    anonymous_identifier: Optional[str] = Depends(anonymous_cookie),
    svc: UserService = Depends(_user_svc),
):
    """Login with email and password → JWT."""
    _, token, _ = await svc.login(body.email, body.password, anonymous_identifier)

    response.set_cookie(
        settings.auth_cookie_name,
        token,
        max_age=int(token_lifetime().total_seconds()),
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
    )
    if anonymous_identifier:
        clear_anonymous_cookie(response)
    return TokenResponse(token=token)


# ─── Logout ──────────────────────────────────────────────


@router.post("/logout", response_model=MessageResponse)
async def logout(response: Response):
    """Clear the auth cookie. Bearer tokens are stateless and simply expire."""
    response.delete_cookie(
        settings.auth_cookie_name,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
    )
    return MessageResponse(message="Logged out successfully")


# ─── Auth status ─────────────────────────────────────────


@router.get("/check-auth", response_model=AuthStatus)
async def check_auth(identity: Identity = Depends(get_identity)):
    """Report whether the bearer token verifies. Never rejects."""
    if identity.is_authenticated:
        return AuthStatus(message="Authenticated", authenticated=True)
    return AuthStatus(message="Not authenticated", authenticated=False)


# ─── Profile ─────────────────────────────────────────────


@router.get("/profile", response_model=UserRead)
async def get_profile(
    identity: Identity = Depends(require_authenticated),
    svc: UserService = Depends(_user_svc),
):
    """Get the current user's profile (no password hash)."""
    return await svc.get_profile(identity.user_id)
