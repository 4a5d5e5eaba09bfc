"""Tag model."""

from typing import Any

from sqlalchemy import DDL, JSON, String, Text, event
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin, new_id

# Name of the SQLite FTS5 table that backs index search over tags
TAGS_FTS_TABLE = "tags_fts"


class Tag(Base, TimestampMixin):
    """A named topic that logs and other tags refer to."""

    __tablename__ = "tags"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    # "metadata" is reserved by declarative models, so the attribute is called meta
    meta: Mapped[dict[str, Any]] = mapped_column("metadata", JSON, default=dict, nullable=False)
    created_by: Mapped[str] = mapped_column(String(255), nullable=False)

    def __repr__(self) -> str:
        return f"<Tag(id={self.id}, name='{self.name}')>"


# =============================================================================
# SQLite full-text index (FTS5, trigram tokenizer)
# =============================================================================
# The trigram tokenizer matches any substring of 3+ characters, case-insensitive.
# Triggers keep the index in step with the tags table.
_SQLITE_FTS_DDL = [
    f"CREATE VIRTUAL TABLE IF NOT EXISTS {TAGS_FTS_TABLE} "
    "USING fts5(tag_id UNINDEXED, name, description, tokenize='trigram')",
    f"""
    CREATE TRIGGER IF NOT EXISTS tags_fts_after_insert AFTER INSERT ON tags BEGIN
        INSERT INTO {TAGS_FTS_TABLE} (tag_id, name, description)
        VALUES (new.id, new.name, COALESCE(new.description, ''));
    END
    """,
    f"""
    CREATE TRIGGER IF NOT EXISTS tags_fts_after_delete AFTER DELETE ON tags BEGIN
        DELETE FROM {TAGS_FTS_TABLE} WHERE tag_id = old.id;
    END
    """,
    f"""
    CREATE TRIGGER IF NOT EXISTS tags_fts_after_update AFTER UPDATE ON tags BEGIN
        DELETE FROM {TAGS_FTS_TABLE} WHERE tag_id = old.id;
        INSERT INTO {TAGS_FTS_TABLE} (tag_id, name, description)
        VALUES (new.id, new.name, COALESCE(new.description, ''));
    END
    """,
]

for _statement in _SQLITE_FTS_DDL:
    event.listen(Tag.__table__, "after_create", DDL(_statement).execute_if(dialect="sqlite"))

event.listen(
    Tag.__table__,
    "before_drop",
    DDL(f"DROP TABLE IF EXISTS {TAGS_FTS_TABLE}").execute_if(dialect="sqlite"),
)
