"""Session Tokens — expiry arithmetic for the Users `token_disallow` field.

Invariants:
    - Expiry timestamps are stored as ISO-8601 strings in UTC
    - Naive timestamps are read as UTC
    - Missing or unparseable expiry means expired
"""

from datetime import datetime, timedelta, timezone
from typing import Any


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def token_expiry(now: datetime, lifetime_minutes: int) -> str:
    """Expiry for a session issued at `now`."""
    return (now + timedelta(minutes=lifetime_minutes)).isoformat()


def revoked_expiry(now: datetime, lifetime_minutes: int) -> str:
    """An expiry already in the past, written on logout."""
    return (now - timedelta(minutes=lifetime_minutes)).isoformat()


def parse_expiry(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def is_session_expired(token_disallow: Any, now: datetime) -> bool:
    expiry = parse_expiry(token_disallow)
    return expiry is None or expiry < now
