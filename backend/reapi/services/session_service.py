"""Session Service — login, logout and token verification against the Users collection.

Invariants:
    - Sessions live on the Users document itself (`token`, `token_disallow`)
    - Login issues a fresh random token valid for token_lifetime_minutes
    - Logout clears the token and moves token_disallow into the past
    - Unknown usernames are Malformed, wrong passwords are Denied
"""

import logging
from typing import Any

from reapi.core.domain_types import Document, USERS_COLLECTION
from reapi.core.engine_context import EngineContext
from reapi.core.errors import AccessDeniedError, ErrorContext, MalformedRequestError
from reapi.core.identifiers import generate_random_string
from reapi.core.session_tokens import is_session_expired, revoked_expiry, token_expiry
from reapi.services.request_authorizer import find_user

logger = logging.getLogger(__name__)

_CONTEXT = ErrorContext(collection=USERS_COLLECTION)


async def _find_by_username(ctx: EngineContext, username: str) -> Document | None:
    async for user in ctx.store.find(USERS_COLLECTION, {"username": username}):
        return user
    return None


def _require_strings(**values: Any) -> None:
    for name, value in values.items():
        if not isinstance(value, str):
            raise MalformedRequestError(f"{name} is required", _CONTEXT)


async def login(ctx: EngineContext, username: Any, password: Any) -> str:
    """Verify credentials and issue a session token."""
    _require_strings(username=username, password=password)
    user = await _find_by_username(ctx, username)
    if user is None:
        raise MalformedRequestError("unknown username", _CONTEXT)
    stored_hash = user.get("password_hash")
    if not isinstance(stored_hash, str) or not await ctx.identity.verify_password(
        password, stored_hash,
    ):
        logger.info("Failed login", extra={"username": username})
        raise AccessDeniedError(_CONTEXT)

    token = generate_random_string(ctx.token_length)
    await ctx.store.update(USERS_COLLECTION, {"username": username}, {
        "token": token,
        "token_disallow": token_expiry(ctx.clock(), ctx.token_lifetime_minutes),
    })
    logger.info("Session issued", extra={"username": username})
    return token


async def logout(ctx: EngineContext, username: Any, token: Any) -> None:
    _require_strings(username=username, token=token)
    if await find_user(ctx, username, token) is None:
        raise MalformedRequestError("unknown session", _CONTEXT)
    await ctx.store.update(USERS_COLLECTION, {"username": username}, {
        "token": "",
        "token_disallow": revoked_expiry(ctx.clock(), ctx.token_lifetime_minutes),
    })
    logger.info("Session revoked", extra={"username": username})


async def verify_token(ctx: EngineContext, username: Any, token: Any) -> None:
    """Raise unless (username, token) names a live session."""
    _require_strings(username=username, token=token)
    user = await find_user(ctx, username, token)
    if user is None or is_session_expired(user.get("token_disallow"), ctx.clock()):
        raise MalformedRequestError("invalid session", _CONTEXT)
