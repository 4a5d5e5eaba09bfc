"""Log model.

Logs are owned by the log CRUD layer; only the columns the tag engine reads
(author, creation time, title for listings) are modelled here.
"""

from sqlalchemy import Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin, new_id


class Log(Base, TimestampMixin):
    """A user's hobby log entry."""

    __tablename__ = "logs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    content_md: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_public: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<Log(id={self.id}, title='{self.title}')>"
