"""Session Tokens — tests for expiry arithmetic.

Tests cover:
    - Issued expiry lies in the future, revoked expiry in the past
    - Naive timestamps read as UTC
    - Missing or garbage expiry counts as expired
"""

from datetime import datetime, timedelta, timezone

import pytest

from reapi.core.session_tokens import (
    is_session_expired,
    parse_expiry,
    revoked_expiry,
    token_expiry,
)


NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def test_issued_session_is_live_until_expiry():
    expiry = token_expiry(NOW, 480)
    assert parse_expiry(expiry) == NOW + timedelta(minutes=480)
    assert not is_session_expired(expiry, NOW)
    assert not is_session_expired(expiry, NOW + timedelta(minutes=479))
    assert is_session_expired(expiry, NOW + timedelta(minutes=481))


def test_revoked_session_is_expired():
    assert is_session_expired(revoked_expiry(NOW, 480), NOW)


def test_naive_timestamp_read_as_utc():
    assert parse_expiry("2026-10-19T13:00:00") == datetime(
        2026, 10, 19, 13, 0, tzinfo=timezone.utc,
    )
    assert not is_session_expired("2026-10-19T13:00:00", NOW)


@pytest.mark.parametrize("value", [None, "", "tomorrow", 12345])
def test_missing_or_unparseable_expiry_is_expired(value):
    assert parse_expiry(value) is None
    assert is_session_expired(value, NOW)
