"""JWT access tokens.

Learn: Logged-in callers send `Authorization: Bearer <token>`. The token
is stateless: the user id in the standard "sub" claim, a "type" marker,
and issue/expiry times. There are no refresh tokens; after a week the
user logs in again. The authToken cookie set at login lives exactly as
long as the token inside it (token_lifetime()).
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from taskboard.config import settings

ACCESS = "access"


class TokenError(Exception):
    """Raised when a token can't be verified."""


def token_lifetime() -> timedelta:
    return timedelta(days=settings.access_token_expire_days)


def create_access_token(user_id: str, expires_days: Optional[int] = None) -> str:
    """Sign an access token for `user_id`."""
    now = datetime.now(timezone.utc)
    lifetime = timedelta(days=expires_days) if expires_days is not None else token_lifetime()
    payload = {"sub": user_id, "type": ACCESS, "iat": now, "exp": now + lifetime}
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> dict:
    """Decode an access token. Raises TokenError for anything unusable."""
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        raise TokenError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise TokenError(f"Invalid token: {e}")

    if payload.get("type") != ACCESS:
        raise TokenError("Not an access token")
    try:
        uuid.UUID(str(payload["sub"]))
    except ValueError:
        raise TokenError("Token subject is not a user id")
    return payload
