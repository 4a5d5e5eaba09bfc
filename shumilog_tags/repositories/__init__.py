"""Repository layer for data access."""

from .base import BaseRepository
from .log import LogRepository
from .tag import TagRepository, fts_phrase, like_pattern
from .tag_association import TagAssociationRepository
from .tag_revision import TagRevisionRepository

__all__ = [
    "BaseRepository",
    "TagRepository",
    "TagAssociationRepository",
    "TagRevisionRepository",
    "LogRepository",
    "fts_phrase",
    "like_pattern",
]
