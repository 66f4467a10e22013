"""Shared request helpers for the API tests."""

from http.cookies import SimpleCookie

ANON_COOKIE = "anonymousIdentifier"
AUTH_COOKIE = "authToken"


def anon_headers(identifier: str) -> dict:
    """Send an anonymous identifier the way a browser does: as a cookie."""
    return {"Cookie": f"{ANON_COOKIE}={identifier}"}


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def set_cookies(response, name: str) -> list:
    """Parsed Set-Cookie morsels for cookie `name`, in header order."""
    headers = response.headers
    if hasattr(headers, "get_list"):  # httpx
        values = headers.get_list("set-cookie")
    else:  # starlette
        values = headers.getlist("set-cookie")

    morsels = []
    for header in values:
        parsed = SimpleCookie()
        parsed.load(header)
        if name in parsed:
            morsels.append(parsed[name])
    return morsels


def is_cleared(morsel) -> bool:
    return morsel["max-age"] == "0" and morsel.value in ("", '""')
