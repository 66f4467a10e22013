"""Anonymous identifier issuing tests."""

import re
from datetime import datetime, timezone

import pytest
from starlette.responses import Response

from taskboard.auth.anonymous import (
    clear_anonymous_cookie,
    new_anonymous_identifier,
    parse_anonymous_identifier,
    set_anonymous_cookie,
)

from helpers import ANON_COOKIE, is_cleared, set_cookies

UUID4_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$"
)


def test_identifier_is_uuid4_shaped():
    """8-4-4-4-12 lowercase hex, version nibble 4, RFC-4122 variant (10xx)."""
    for _ in range(50):
        assert UUID4_RE.match(new_anonymous_identifier())


def test_identifiers_differ():
    ids = {new_anonymous_identifier() for _ in range(100)}
    assert len(ids) == 100


def test_cookie_lasts_a_month():
    response = Response()
    now = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)
    expires = set_anonymous_cookie(response, "abc", now=now)

    assert expires == datetime(2026, 2, 14, 12, 0, tzinfo=timezone.utc)
    [morsel] = set_cookies(response, ANON_COOKIE)
    assert morsel.value == "abc"
    assert morsel["max-age"] == str(30 * 24 * 60 * 60)
    assert morsel["path"] == "/"
    assert "14 Feb 2026" in morsel["expires"]


def test_clear_cookie_expires_immediately():
    response = Response()
    clear_anonymous_cookie(response)
    [morsel] = set_cookies(response, ANON_COOKIE)
    assert is_cleared(morsel)


def test_parse_accepts_minted_identifiers():
    identifier = new_anonymous_identifier()
    assert parse_anonymous_identifier(identifier) == identifier
    assert parse_anonymous_identifier(f"  {identifier.upper()} ") == identifier


@pytest.mark.parametrize(
    "value",
    [None, "", "   ", "x" * 37, "not-a-uuid", new_anonymous_identifier() + "abc"],
)
def test_parse_rejects_everything_else(value):
    assert parse_anonymous_identifier(value) is None
