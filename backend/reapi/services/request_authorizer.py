"""Request Authorizer — resolve the caller, fetch candidates, filter by access rule.

States per request:
    Unauthenticated → Authenticating → Authorized(documents) | Denied | Malformed

Invariants:
    - Caller resolution runs first; an expired session is denied before any
      candidate fetch, for every operation kind
    - Without a caller only the Users collection's info/insert are evaluated
      (with user=None); every other request is denied
    - read/edit/delete need an equality filter; each candidate is judged
      independently and only the passing subset is returned
    - insert/info are judged once against (user, None)
    - An empty authorized set is returned as-is; the caller maps it to Denied
"""

import logging
from typing import Any

from reapi.core.access_expression import evaluate_access
from reapi.core.document_filter import is_equality_filter
from reapi.core.domain_types import AccessKind, Document, USERS_COLLECTION
from reapi.core.engine_context import EngineContext
from reapi.core.errors import (
    AccessDeniedError, ErrorContext, MalformedRequestError, SessionExpiredError,
)
from reapi.core.schema import CollectionSchema
from reapi.core.session_tokens import is_session_expired

logger = logging.getLogger(__name__)


async def find_user(
    ctx: EngineContext, username: Any, token: Any,
) -> Document | None:
    """Users document for (username, token), None when nothing matches."""
    if not isinstance(username, str) or not isinstance(token, str) or not token:
        return None
    async for user in ctx.store.find(
        USERS_COLLECTION, {"username": username, "token": token},
    ):
        return user
    return None


async def resolve_caller(
    ctx: EngineContext, username: Any, token: Any,
) -> Document | None:
    """Resolved caller identity. Raises SessionExpiredError for stale tokens."""
    user = await find_user(ctx, username, token)
    if user is None:
        return None
    if is_session_expired(user.get("token_disallow"), ctx.clock()):
        logger.info(
            "Rejected expired session", extra={"username": user.get("username")},
        )
        raise SessionExpiredError()
    return user


def require_caller(
    schema: CollectionSchema, kind: AccessKind, user: Document | None,
) -> None:
    """Deny anonymous callers outside Users info/insert."""
    if user is not None:
        return
    if schema.name == USERS_COLLECTION and kind in (AccessKind.INFO, AccessKind.INSERT):
        return
    raise AccessDeniedError(ErrorContext(collection=schema.name, operation=kind.value))


def require_filter(schema: CollectionSchema, query: Any) -> dict:
    if query is None:
        raise MalformedRequestError("query is required", ErrorContext(collection=schema.name))
    if not is_equality_filter(query):
        raise MalformedRequestError(
            "query must be an equality filter", ErrorContext(collection=schema.name),
        )
    return query


async def fetch_candidates(
    ctx: EngineContext, schema: CollectionSchema, query: dict,
) -> list[Document]:
    return [document async for document in ctx.store.find(schema.name, query)]


def filter_authorized(
    schema: CollectionSchema,
    kind: AccessKind,
    user: Document | None,
    candidates: list[Document],
) -> list[Document]:
    rule = schema.rule(kind)
    return [doc for doc in candidates if evaluate_access(rule, user, doc)]


async def authorize_documents(
    ctx: EngineContext,
    schema: CollectionSchema,
    kind: AccessKind,
    user: Document | None,
    query: Any,
) -> list[Document]:
    """Documents matching `query` that `user` may `kind` (read/edit/delete)."""
    require_caller(schema, kind, user)
    candidates = await fetch_candidates(ctx, schema, require_filter(schema, query))
    authorized = filter_authorized(schema, kind, user, candidates)
    logger.info(
        f"{kind.value} on {schema.name}: {len(authorized)}/{len(candidates)} authorized",
        extra={"collection": schema.name, "operation": kind.value},
    )
    return authorized


def authorize_collection(
    schema: CollectionSchema, kind: AccessKind, user: Document | None,
) -> bool:
    """Collection-scoped decision for insert/info."""
    require_caller(schema, kind, user)
    return evaluate_access(schema.rule(kind), user, None)
