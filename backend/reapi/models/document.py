"""Stored Document ORM — one row per document, payload kept as JSON.

Invariants:
    - (collection, document_id) is the primary key; document_id mirrors data["id"]
    - data holds the full document, including id

Design Decisions:
    - Single table for every collection: schemas are registered at runtime,
      so per-collection tables would need runtime DDL
"""

from datetime import datetime, timezone

from sqlalchemy import String, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column

from reapi.db.base import Base


class StoredDocument(Base):
    __tablename__ = "documents"

    collection: Mapped[str] = mapped_column(String(100), primary_key=True)
    document_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    data: Mapped[dict] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
