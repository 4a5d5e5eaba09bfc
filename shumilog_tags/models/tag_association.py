"""Tag association (tag -> tag edge) model."""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, utc_now


class TagAssociation(Base):
    """
    Directed edge from one tag to another.

    association_order is the position of the hashtag in the source tag's
    description (or the append position for explicitly created edges).
    """

    __tablename__ = "tag_associations"

    tag_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True
    )
    associated_tag_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True, index=True
    )
    association_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)

    __table_args__ = (
        CheckConstraint("tag_id != associated_tag_id", name="ck_tag_associations_no_self_loop"),
    )

    def __repr__(self) -> str:
        return (
            f"<TagAssociation({self.tag_id} -> {self.associated_tag_id}, "
            f"order={self.association_order})>"
        )
