"""Uniqueness Checker — confirms unique-constrained payload values are not taken.

Invariants:
    - Every non-null leaf whose descriptor is unique, or that sits anywhere
      below a unique container, is looked up by its dotted path
    - A stored match is a conflict unless its id is in `exclude_ids`
      (edit passes the ids of the documents it is authorized to change)
    - has_unique_values walks the same leaves without touching the store
    - Null leaves are never looked up: absent optional fields do not collide
    - Keys unknown to the schema are skipped (field_policy rejects them)
"""

import logging
from collections.abc import Mapping
from typing import Any

from reapi.core.field_types import FieldDescriptor, nested_fields, object_values
from reapi.core.repository_protocols import DocumentStore

logger = logging.getLogger(__name__)


async def check_unique(
    payload: Mapping[str, Any],
    fields: Mapping[str, FieldDescriptor],
    store: DocumentStore,
    collection: str,
    override: bool = False,
    *,
    exclude_ids: frozenset[str] = frozenset(),
    prefix: str = "",
) -> bool:
    """True when no unique value in `payload` collides with a stored document."""
    for name, value in payload.items():
        descriptor = fields.get(name)
        if descriptor is None:
            continue
        path = f"{prefix}{name}"
        unique = descriptor.unique or override

        children = nested_fields(descriptor.type)
        if children is not None:
            for nested in object_values(value, descriptor.type):
                if not await check_unique(
                    nested, children, store, collection, unique,
                    exclude_ids=exclude_ids, prefix=f"{path}.",
                ):
                    return False
            continue

        if not unique or value is None:
            continue
        if await _is_taken(store, collection, {path: value}, exclude_ids):
            logger.info(
                f"Unique value conflict on {collection}.{path}",
                extra={"collection": collection, "field": path},
            )
            return False
    return True


async def _is_taken(
    store: DocumentStore,
    collection: str,
    filter: dict[str, Any],
    exclude_ids: frozenset[str],
) -> bool:
    if not exclude_ids:
        return await store.count(collection, filter) != 0
    async for document in store.find(collection, filter):
        if document.get("id") not in exclude_ids:
            return True
    return False


def has_unique_values(
    payload: Mapping[str, Any],
    fields: Mapping[str, FieldDescriptor],
    override: bool = False,
) -> bool:
    """Whether `payload` sets any non-null unique (or override-unique) leaf."""
    for name, value in payload.items():
        descriptor = fields.get(name)
        if descriptor is None:
            continue
        unique = descriptor.unique or override
        children = nested_fields(descriptor.type)
        if children is not None:
            if any(
                has_unique_values(nested, children, unique)
                for nested in object_values(value, descriptor.type)
            ):
                return True
        elif unique and value is not None:
            return True
    return False
