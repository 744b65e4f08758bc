"""
MET API — Document Table (SQLAlchemy ORM)
===========================================

What:  One row per entity for every database-backed collection.
How:   The entity's full JSON lives in `data`; the columns next to it are
       denormalized copies of what queries need:

    collection   which repository owns the row ("deposits", "posts", ...)
    sort_key     Entity.sort_value(), ordered lexicographically
    unique_key   Entity.unique_value() or NULL (unique per collection)
    date_key     fixed-width UTC form of the entity's date field or NULL

Indexes:
    (collection, sort_key)   paginated listing
    (collection, date_key)   start/end date windows
"""

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, DateTime, Index, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from met_api.database import Base


class Document(Base):
    __tablename__ = "documents"

    collection: Mapped[str] = mapped_column(String(64), primary_key=True)
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    sort_key: Mapped[str] = mapped_column(String(512), nullable=False)
    unique_key: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    date_key: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    data: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("collection", "unique_key", name="uq_documents_collection_unique_key"),
        Index("ix_documents_collection_sort_key", "collection", "sort_key"),
        Index("ix_documents_collection_date_key", "collection", "date_key"),
    )

    def __repr__(self) -> str:
        return f"<Document {self.collection}/{self.id}>"
