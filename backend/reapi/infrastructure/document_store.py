"""SQL Document Store — DocumentStore protocol over the `documents` table.

Invariants:
    - Rows are narrowed in SQL by collection, by id, and by every top-level
      string entry through the JSON column; matches_filter is always the
      final pass, so the SQL narrowing may only over-select
    - A top-level string entry also keeps rows whose value is an array, since
      list membership is decided by matches_filter
    - find() yields copies; callers may mutate what they receive
    - update() merges the patch into the stored document's top level
    - Each call runs in its own session and commits before returning
"""

import copy
import logging
from collections.abc import AsyncIterator
from typing import Any

from sqlalchemy import or_, select

from reapi.core.document_filter import matches_filter
from reapi.core.domain_types import Document
from reapi.infrastructure.database import DatabaseSessionManager
from reapi.models.document import StoredDocument

logger = logging.getLogger(__name__)


class SqlDocumentStore:
    """Document persistence backed by SQLAlchemy async sessions."""

    def __init__(self, manager: DatabaseSessionManager):
        self._manager = manager

    @staticmethod
    def _select(collection: str, filter: dict[str, Any]):
        query = select(StoredDocument).where(StoredDocument.collection == collection)
        for key, value in filter.items():
            if not isinstance(value, str) or "." in key:
                continue
            if key == "id":
                query = query.where(StoredDocument.document_id == value)
                continue
            stored = StoredDocument.data[key].as_string()
            query = query.where(or_(stored == value, stored.like("[%")))
        return query.order_by(StoredDocument.created_at)

    async def _matching_rows(self, db, collection: str, filter: dict[str, Any]):
        result = await db.execute(self._select(collection, filter))
        return [row for row in result.scalars().all() if matches_filter(row.data, filter)]

    async def find(
        self, collection: str, filter: dict[str, Any],
    ) -> AsyncIterator[Document]:
        async with self._manager.session() as db:
            rows = await self._matching_rows(db, collection, filter)
        for row in rows:
            yield copy.deepcopy(row.data)

    async def count(self, collection: str, filter: dict[str, Any]) -> int:
        async with self._manager.session() as db:
            return len(await self._matching_rows(db, collection, filter))

    async def insert(self, collection: str, document: Document) -> None:
        async with self._manager.session() as db:
            db.add(StoredDocument(
                collection=collection,
                document_id=document["id"],
                data=copy.deepcopy(document),
            ))
            await db.commit()

    async def update(
        self, collection: str, filter: dict[str, Any], patch: dict[str, Any],
    ) -> None:
        async with self._manager.session() as db:
            for row in await self._matching_rows(db, collection, filter):
                # reassign so the JSON column is flagged dirty
                row.data = {**row.data, **copy.deepcopy(patch)}
            await db.commit()

    async def delete(self, collection: str, filter: dict[str, Any]) -> None:
        async with self._manager.session() as db:
            for row in await self._matching_rows(db, collection, filter):
                await db.delete(row)
            await db.commit()
