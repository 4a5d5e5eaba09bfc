"""Tag revision repository."""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import TagRevision
from .base import BaseRepository


class TagRevisionRepository(BaseRepository[TagRevision]):
    """Append-only access to tag revisions. Nothing here updates or deletes."""

    def __init__(self, db: AsyncSession):
        super().__init__(TagRevision, db)

    async def next_revision_number(self, tag_id: str) -> int:
        """
        1 + the highest revision number of the tag, 0 for a tag without history.

        SQL:
            SELECT MAX(revision_number) FROM tag_revisions WHERE tag_id = {tag_id};
        """
        result = await self.db.execute(
            select(func.max(TagRevision.revision_number)).where(TagRevision.tag_id == tag_id)
        )
        current = result.scalar_one()
        return 0 if current is None else current + 1

    async def list_for_tag(self, tag_id: str) -> list[TagRevision]:
        """All revisions of a tag, oldest first."""
        result = await self.db.execute(
            select(TagRevision)
            .where(TagRevision.tag_id == tag_id)
            .order_by(TagRevision.revision_number.asc())
        )
        return list(result.scalars().all())

    async def get_by_number(self, tag_id: str, revision_number: int) -> TagRevision | None:
        result = await self.db.execute(
            select(TagRevision).where(
                TagRevision.tag_id == tag_id,
                TagRevision.revision_number == revision_number,
            )
        )
        return result.scalar_one_or_none()
