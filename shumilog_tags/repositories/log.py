"""Log repository: the tag side of logs (links and usage)."""

from datetime import datetime

from sqlalchemy import delete, func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Log, Tag, log_tag_associations
from .base import BaseRepository


class LogRepository(BaseRepository[Log]):
    """
    Data access for logs and the log <-> tag junction.

    Log CRUD business rules live elsewhere; this repository only reads logs
    and maintains their tag links.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(Log, db)

    # =========================================================================
    # Links
    # =========================================================================

    async def replace_tags(self, log_id: str, tag_ids: list[str]) -> None:
        """
        Replace the full tag set of a log.

        SQL:
            DELETE FROM log_tag_associations WHERE log_id = {log_id};
            INSERT INTO log_tag_associations (log_id, tag_id, association_order) VALUES ...;
        """
        await self.clear_tags(log_id)
        await self.add_tags(log_id, tag_ids)

    async def clear_tags(self, log_id: str) -> int:
        """Unlink every tag from a log. Returns the number of removed links."""
        result = await self.db.execute(
            delete(log_tag_associations).where(log_tag_associations.c.log_id == log_id)
        )
        return result.rowcount

    async def add_tags(self, log_id: str, tag_ids: list[str]) -> None:
        """Link tags to a log; position in tag_ids becomes association_order."""
        if not tag_ids:
            return

        await self.db.execute(
            insert(log_tag_associations),
            [
                {"log_id": log_id, "tag_id": tag_id, "association_order": order}
                for order, tag_id in enumerate(tag_ids)
            ],
        )

    async def get_tags(self, log_id: str) -> list[Tag]:
        """Tags linked to a log, in link order."""
        result = await self.db.execute(
            select(Tag)
            .join(log_tag_associations, log_tag_associations.c.tag_id == Tag.id)
            .where(log_tag_associations.c.log_id == log_id)
            .order_by(log_tag_associations.c.association_order.asc())
        )
        return list(result.scalars().all())

    async def delete_links_for_tag(self, tag_id: str) -> int:
        result = await self.db.execute(
            delete(log_tag_associations).where(log_tag_associations.c.tag_id == tag_id)
        )
        return result.rowcount

    # =========================================================================
    # Usage
    # =========================================================================

    async def usage_for_tag(self, tag_id: str) -> tuple[int, datetime | None]:
        """
        Number of logs carrying the tag and the newest of their creation times.

        SQL:
            SELECT COUNT(*), MAX(logs.created_at)
            FROM log_tag_associations
            JOIN logs ON logs.id = log_tag_associations.log_id
            WHERE log_tag_associations.tag_id = {tag_id};
        """
        result = await self.db.execute(
            select(func.count(), func.max(Log.created_at))
            .select_from(log_tag_associations)
            .join(Log, Log.id == log_tag_associations.c.log_id)
            .where(log_tag_associations.c.tag_id == tag_id)
        )
        count, last_used = result.one()
        return count, last_used

    async def recent_for_tag(self, tag_id: str, limit: int) -> list[Log]:
        """Newest logs carrying the tag."""
        result = await self.db.execute(
            select(Log)
            .join(log_tag_associations, log_tag_associations.c.log_id == Log.id)
            .where(log_tag_associations.c.tag_id == tag_id)
            .order_by(Log.created_at.desc(), Log.id.asc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def recent_tags_for_user(self, user_id: str, limit: int) -> list[Tag]:
        """
        Tags on the user's logs, most recently used first.

        SQL:
            SELECT tags.* FROM tags
            JOIN log_tag_associations ON log_tag_associations.tag_id = tags.id
            JOIN logs ON logs.id = log_tag_associations.log_id
            WHERE logs.user_id = {user_id}
            GROUP BY tags.id
            ORDER BY MAX(logs.created_at) DESC, tags.name ASC
            LIMIT {limit};
        """
        last_used = func.max(Log.created_at)
        result = await self.db.execute(
            select(Tag)
            .join(log_tag_associations, log_tag_associations.c.tag_id == Tag.id)
            .join(Log, Log.id == log_tag_associations.c.log_id)
            .where(Log.user_id == user_id)
            .group_by(Tag.id)
            .order_by(last_used.desc(), Tag.name.asc())
            .limit(limit)
        )
        return list(result.scalars().all())
