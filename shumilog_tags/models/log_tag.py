"""Log-Tag junction table."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Table

from .base import Base, utc_now

# Many-to-many junction table for logs and tags
log_tag_associations = Table(
    "log_tag_associations",
    Base.metadata,
    Column("log_id", String(36), ForeignKey("logs.id", ondelete="CASCADE"), primary_key=True),
    Column(
        "tag_id", String(36), ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True, index=True
    ),
    Column("association_order", Integer, default=0, nullable=False),
    Column("created_at", DateTime, default=utc_now, nullable=False),
)
