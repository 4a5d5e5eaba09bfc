"""Revision recorder: append-only history of tag edits."""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.logging import get_logger
from ..errors import NotFoundError
from ..models import Tag, TagRevision
from ..repositories import TagRevisionRepository

logger = get_logger(__name__)

# Fields compared by diff(), as (revision attribute, reported name)
_DIFF_FIELDS = (("name", "name"), ("description", "description"), ("meta", "metadata"))


class RevisionRecorder:
    """
    Записывает снимки тегов.

    Every successful create/update appends exactly one revision with the full
    post-write state of the tag. Numbers start at 0 and have no gaps.
    Rows are never updated or deleted.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.revision_repo = TagRevisionRepository(db)

    async def record(self, tag: Tag, author: str) -> TagRevision:
        """
        Snapshot the current state of a tag.

        Args:
            tag: Tag after the write (already flushed)
            author: User who made the change

        Returns:
            The new revision

        Errors propagate: the caller rolls the whole write back.
        """
        number = await self.revision_repo.next_revision_number(tag.id)
        revision = TagRevision(
            tag_id=tag.id,
            revision_number=number,
            name=tag.name,
            description=tag.description,
            meta=dict(tag.meta or {}),
            created_by=author,
        )
        revision = await self.revision_repo.create(revision)

        logger.debug(
            "Recorded tag revision",
            extra={"tag_id": tag.id, "revision_number": number, "author": author},
        )
        return revision

    async def get_revisions(self, tag_id: str) -> list[TagRevision]:
        """All revisions of a tag, oldest first (empty for unknown ids)."""
        return await self.revision_repo.list_for_tag(tag_id)

    async def get_revision(self, tag_id: str, revision_number: int) -> TagRevision | None:
        return await self.revision_repo.get_by_number(tag_id, revision_number)

    async def diff(
        self, tag_id: str, from_number: int, to_number: int
    ) -> dict[str, tuple[Any, Any]]:
        """
        Compare two revisions field by field.

        Returns:
            {field: (old, new)} for every field that differs

        Raises:
            NotFoundError: If either revision does not exist

        Example:
            await recorder.diff(tag_id, 0, 2)
            # {"name": ("Anime", "アニメ")}
        """
        old = await self.get_revision(tag_id, from_number)
        if old is None:
            raise NotFoundError("TagRevision", f"{tag_id}#{from_number}")
        new = await self.get_revision(tag_id, to_number)
        if new is None:
            raise NotFoundError("TagRevision", f"{tag_id}#{to_number}")

        changes: dict[str, tuple[Any, Any]] = {}
        for attr, field in _DIFF_FIELDS:
            before, after = getattr(old, attr), getattr(new, attr)
            if before != after:
                changes[field] = (before, after)
        return changes
