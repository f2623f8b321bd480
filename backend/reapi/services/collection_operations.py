"""Collection Operations — query, edit, delete, insert and info for one collection.

Invariants:
    - Every operation resolves the caller before touching the target collection
    - Payload checks run in a fixed order: unknown/required/readonly → types →
      uniqueness → id generation; the first failure is a MalformedRequestError
    - An empty authorized set is always AccessDeniedError, never a partial result
    - Secret fields leave the engine as None
    - Mutations address documents by id, one call per authorized document

Design Decisions:
    - Insert validates the payload before evaluating the insert rule
    - Edit filters candidates by access in memory before the uniqueness pass:
      only authorized documents may keep their own unique values, and a
      unique value may target at most one document. Malformed still wins
      over Denied
"""

import logging
from dataclasses import dataclass
from typing import Any

from reapi.core.domain_types import AccessKind, Document, HookKind
from reapi.core.engine_context import EngineContext
from reapi.core.errors import AccessDeniedError, ErrorContext, MalformedRequestError
from reapi.core.field_hooks import apply_hooks
from reapi.core.field_policy import (
    find_unknown_fields, has_readonly_violation, has_required_fields,
)
from reapi.core.identifiers import generate_unique_id
from reapi.core.schema import CollectionSchema, describe_collection
from reapi.core.type_validator import validate_document
from reapi.core.uniqueness import check_unique, has_unique_values
from reapi.services.request_authorizer import (
    authorize_collection, authorize_documents, fetch_candidates, filter_authorized,
    require_caller, require_filter, resolve_caller,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CollectionRequest:
    """Already-parsed request fields handed over by the transport layer."""
    username: str | None = None
    user_token: str | None = None
    query: Any = None
    document_data: Any = None


def _malformed(schema: CollectionSchema, kind: AccessKind, reason: str) -> MalformedRequestError:
    logger.info(
        f"Malformed {kind.value} on {schema.name}: {reason}",
        extra={"collection": schema.name, "operation": kind.value},
    )
    return MalformedRequestError(
        reason, ErrorContext(collection=schema.name, operation=kind.value),
    )


def _denied(schema: CollectionSchema, kind: AccessKind) -> AccessDeniedError:
    return AccessDeniedError(ErrorContext(collection=schema.name, operation=kind.value))


def _require_payload(schema: CollectionSchema, kind: AccessKind, payload: Any) -> dict:
    if payload is None:
        raise _malformed(schema, kind, "document_data is required")
    if not isinstance(payload, dict):
        raise _malformed(schema, kind, "document_data must be an object")
    return payload


def _check_shape(
    schema: CollectionSchema, kind: AccessKind, payload: dict, *, require: bool,
) -> None:
    unknown = find_unknown_fields(payload, schema.fields)
    if unknown:
        raise _malformed(schema, kind, f"unknown fields {unknown}")
    if require and not has_required_fields(payload, schema.fields):
        raise _malformed(schema, kind, "required fields missing")
    if has_readonly_violation(payload, schema.fields):
        raise _malformed(schema, kind, "readonly fields present")
    if not validate_document(payload, schema.fields):
        raise _malformed(schema, kind, "field types do not match")


def redact(document: Document, schema: CollectionSchema) -> Document:
    """Null out secret fields."""
    result = dict(document)
    for name, descriptor in schema.fields.items():
        if descriptor.secret:
            result[name] = None
    return result


# ─── Operations ──────────────────────────────────────────────────

async def query_documents(
    ctx: EngineContext, schema: CollectionSchema, request: CollectionRequest,
) -> list[Document]:
    user = await resolve_caller(ctx, request.username, request.user_token)
    documents = await authorize_documents(
        ctx, schema, AccessKind.READ, user, request.query,
    )
    if not documents:
        raise _denied(schema, AccessKind.READ)
    results = []
    for document in documents:
        document = await apply_hooks(
            document, schema.fields, HookKind.PRE_READ, policy=ctx.hook_policy,
        )
        results.append(redact(document, schema))
    return results


async def edit_documents(
    ctx: EngineContext, schema: CollectionSchema, request: CollectionRequest,
) -> int:
    """Apply `document_data` to every authorized match. Returns the count."""
    kind = AccessKind.EDIT
    user = await resolve_caller(ctx, request.username, request.user_token)
    require_caller(schema, kind, user)
    query = require_filter(schema, request.query)
    patch = _require_payload(schema, kind, request.document_data)
    _check_shape(schema, kind, patch, require=False)

    candidates = await fetch_candidates(ctx, schema, query)
    documents = filter_authorized(schema, kind, user, candidates)
    if len(documents) > 1 and has_unique_values(patch, schema.fields):
        raise _malformed(schema, kind, "unique values cannot be set on several documents")
    if not await check_unique(
        patch, schema.fields, ctx.store, schema.name,
        exclude_ids=frozenset(doc["id"] for doc in documents),
    ):
        raise _malformed(schema, kind, "unique constraint violated")
    if not documents:
        raise _denied(schema, kind)

    patch = await apply_hooks(
        patch, schema.fields, HookKind.PRE_EDIT, user, ctx.hook_policy, only=list(patch),
    )
    for document in documents:
        await ctx.store.update(schema.name, {"id": document["id"]}, patch)
    logger.info(
        f"Edited {len(documents)} document(s) in {schema.name}",
        extra={"collection": schema.name, "operation": kind.value},
    )
    return len(documents)


async def delete_documents(
    ctx: EngineContext, schema: CollectionSchema, request: CollectionRequest,
) -> int:
    """Delete every authorized match. Returns the count."""
    kind = AccessKind.DELETE
    user = await resolve_caller(ctx, request.username, request.user_token)
    documents = await authorize_documents(ctx, schema, kind, user, request.query)
    if not documents:
        raise _denied(schema, kind)
    for document in documents:
        await apply_hooks(document, schema.fields, HookKind.PRE_DELETE, user, ctx.hook_policy)
        await ctx.store.delete(schema.name, {"id": document["id"]})
    logger.info(
        f"Deleted {len(documents)} document(s) from {schema.name}",
        extra={"collection": schema.name, "operation": kind.value},
    )
    return len(documents)


async def insert_document(
    ctx: EngineContext, schema: CollectionSchema, request: CollectionRequest,
) -> str:
    """Validate, authorize and store a new document. Returns its id."""
    kind = AccessKind.INSERT
    user = await resolve_caller(ctx, request.username, request.user_token)
    require_caller(schema, kind, user)
    payload = _require_payload(schema, kind, request.document_data)
    _check_shape(schema, kind, payload, require=True)

    document = {name: payload.get(name) for name in schema.fields}
    if not await check_unique(document, schema.fields, ctx.store, schema.name):
        raise _malformed(schema, kind, "unique constraint violated")
    document["id"] = await generate_unique_id(
        ctx.id_length, ctx.store, schema.name, max_attempts=ctx.id_max_attempts,
    )

    if not authorize_collection(schema, kind, user):
        raise _denied(schema, kind)

    document = await apply_hooks(
        document, schema.fields, HookKind.PRE_INSERT, user, ctx.hook_policy,
    )
    await ctx.store.insert(schema.name, document)
    logger.info(
        f"Inserted document into {schema.name}",
        extra={"collection": schema.name, "operation": kind.value},
    )
    return document["id"]


async def collection_info(
    ctx: EngineContext, schema: CollectionSchema, request: CollectionRequest,
) -> dict:
    kind = AccessKind.INFO
    user = await resolve_caller(ctx, request.username, request.user_token)
    if not authorize_collection(schema, kind, user):
        raise _denied(schema, kind)
    return {"name": schema.name, "description": describe_collection(schema)}
