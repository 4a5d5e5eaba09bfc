"""Tag revision model (append-only edit history)."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, new_id, utc_now


class TagRevision(Base):
    """
    Full snapshot of a tag right after one of its writes.

    tag_id is not a foreign key, so revisions remain after the tag is deleted.
    """

    __tablename__ = "tag_revisions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    tag_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    revision_number: Mapped[int] = mapped_column(Integer, nullable=False)

    # Snapshot of the tag
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    meta: Mapped[dict[str, Any]] = mapped_column("metadata", JSON, default=dict, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)
    created_by: Mapped[str] = mapped_column(String(255), nullable=False)

    __table_args__ = (
        UniqueConstraint("tag_id", "revision_number", name="uq_tag_revisions_tag_number"),
    )

    def __repr__(self) -> str:
        return f"<TagRevision(tag_id={self.tag_id}, revision={self.revision_number})>"
