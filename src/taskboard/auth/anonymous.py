"""Anonymous identifier issuing.

Learn: A caller with no account gets a random UUID4 the first time it
creates a task. The identifier lives only in the caller's cookie jar and
on the tasks it created; there is no table of anonymous callers and no
uniqueness check (collisions of 122 random bits are not a practical
concern).

The cookie lasts a month. Reconciliation at login/registration clears it.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from starlette.responses import Response

from taskboard.config import settings


def new_anonymous_identifier() -> str:
    """Mint a new identifier: canonical 8-4-4-4-12 lowercase hex, version 4."""
    return str(uuid.uuid4())


def parse_anonymous_identifier(value: Optional[str]) -> Optional[str]:
    """Canonical form of a cookie value, or None unless it is a UUID.

    Anything else (blank, truncated, oversized, tampered) counts as no
    cookie at all, so it can never reach the 36-character columns.
    """
    if not value:
        return None
    try:
        return str(uuid.UUID(value.strip()))
    except ValueError:
        return None


def set_anonymous_cookie(
    response: Response,
    identifier: str,
    now: Optional[datetime] = None,
) -> datetime:
    """Tell the client to keep `identifier` for a month. Returns the expiry."""
    now = now or datetime.now(timezone.utc)
    lifetime = timedelta(days=settings.anonymous_cookie_days)
    expires = now + lifetime
    response.set_cookie(
        settings.anonymous_cookie_name,
        identifier,
        max_age=int(lifetime.total_seconds()),
        expires=expires,
        path="/",
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
    )
    return expires


def clear_anonymous_cookie(response: Response) -> None:
    """Tell the client to drop its anonymous identifier immediately."""
    response.delete_cookie(
        settings.anonymous_cookie_name,
        path="/",
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
    )
