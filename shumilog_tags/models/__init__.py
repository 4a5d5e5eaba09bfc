"""SQLAlchemy models for the tag engine."""

from .base import Base, TimestampMixin, new_id, utc_now
from .log import Log
from .log_tag import log_tag_associations
from .tag import TAGS_FTS_TABLE, Tag
from .tag_association import TagAssociation
from .tag_revision import TagRevision

__all__ = [
    "Base",
    "TimestampMixin",
    "new_id",
    "utc_now",
    "Tag",
    "TAGS_FTS_TABLE",
    "TagAssociation",
    "TagRevision",
    "Log",
    "log_tag_associations",
]
