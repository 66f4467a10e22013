"""Caller identity resolution.

Learn: Task routes serve logged-in and not-yet-registered users alike, so
resolution is permissive. A missing, expired or forged bearer token is not
an error here — the resolver just falls back to the anonymous cookie, and
then to "unknown". Routes that actually need a user depend on
require_authenticated instead.

Resolution order:
1. `Authorization: Bearer <jwt>` that verifies → authenticated
2. anonymousIdentifier cookie holding a UUID → anonymous
3. neither → unknown
"""

from typing import Mapping, Optional

import structlog
from fastapi import Depends, Request

from taskboard.auth.anonymous import parse_anonymous_identifier
from taskboard.auth.jwt import TokenError, verify_token
from taskboard.config import settings
from taskboard.errors import AuthenticationError

logger = structlog.get_logger()

AUTHENTICATED = "authenticated"
ANONYMOUS = "anonymous"
UNKNOWN = "unknown"


class Identity:
    """Who is making the request.

    Exactly one of user_id / anonymous_identifier is set for the
    authenticated and anonymous kinds; neither is set for unknown.
    """

    def __init__(
        self,
        kind: str,
        user_id: Optional[str] = None,
        anonymous_identifier: Optional[str] = None,
    ):
        self.kind = kind
        self.user_id = user_id
        self.anonymous_identifier = anonymous_identifier

    @classmethod
    def authenticated(cls, user_id: str) -> "Identity":
        return cls(AUTHENTICATED, user_id=user_id)

    @classmethod
    def anonymous(cls, identifier: str) -> "Identity":
        return cls(ANONYMOUS, anonymous_identifier=identifier)

    @classmethod
    def unknown(cls) -> "Identity":
        return cls(UNKNOWN)

    @property
    def is_authenticated(self) -> bool:
        return self.kind == AUTHENTICATED

    @property
    def is_anonymous(self) -> bool:
        return self.kind == ANONYMOUS

    @property
    def is_unknown(self) -> bool:
        return self.kind == UNKNOWN

    def __eq__(self, other) -> bool:
        if not isinstance(other, Identity):
            return NotImplemented
        return (self.kind, self.user_id, self.anonymous_identifier) == (
            other.kind,
            other.user_id,
            other.anonymous_identifier,
        )

    def __repr__(self) -> str:
        if self.is_authenticated:
            return f"Identity(authenticated, user_id={self.user_id!r})"
        if self.is_anonymous:
            return f"Identity(anonymous, identifier={self.anonymous_identifier!r})"
        return "Identity(unknown)"


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Extract the token from an `Authorization: Bearer ...` header value."""
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


def resolve_identity(
    authorization: Optional[str],
    cookies: Mapping[str, str],
) -> Identity:
    """Resolve the caller from the Authorization header and request cookies.

    Pure function of its inputs; never raises for bad tokens.
    """
    token = bearer_token(authorization)
    if token:
        try:
            payload = verify_token(token)
            return Identity.authenticated(payload["sub"])
        except TokenError as e:
            logger.debug("identity.token_rejected", reason=str(e))

    identifier = parse_anonymous_identifier(cookies.get(settings.anonymous_cookie_name))
    if identifier:
        return Identity.anonymous(identifier)

    return Identity.unknown()


def get_identity(request: Request) -> Identity:
    """FastAPI dependency — the resolved identity for this request."""
    return resolve_identity(request.headers.get("authorization"), request.cookies)


def require_authenticated(identity: Identity = Depends(get_identity)) -> Identity:
    """FastAPI dependency — 401 unless the caller has a valid bearer token."""
    if not identity.is_authenticated:
        raise AuthenticationError("Authentication required")
    return identity


def anonymous_cookie(request: Request) -> Optional[str]:
    """FastAPI dependency — the anonymous identifier cookie, if well-formed.

    Used by login/registration, which reconcile based on the cookie even
    when the caller also presents a bearer token.
    """
    return parse_anonymous_identifier(request.cookies.get(settings.anonymous_cookie_name))
