"""
Collection snapshot model - one row per stored collection.
"""
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from shopdesk.core.database import Base


class CollectionSnapshot(Base):
    """Whole-collection JSON snapshot; every write replaces the previous one."""

    __tablename__ = "collection_snapshots"

    # Collection name, e.g. "orders" or the "settings" document
    name: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
    )

    # List of records, or a single object for documents
    documents: Mapped[Any] = mapped_column(
        JSON,
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self) -> str:
        return f"<CollectionSnapshot {self.name}>"
