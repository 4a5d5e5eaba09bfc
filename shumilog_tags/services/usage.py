"""Usage aggregator: read-only statistics over log <-> tag links."""

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import Settings, settings as default_settings
from ..models import Log, Tag
from ..repositories import LogRepository, TagRepository
from ..schemas import TagUsageStats


class UsageAggregator:
    """Reads only. Unknown ids give empty results, never errors."""

    def __init__(self, db: AsyncSession, config: Settings | None = None):
        self.db = db
        self.config = config or default_settings
        self.tag_repo = TagRepository(db)
        self.log_repo = LogRepository(db)

    async def usage_stats(self, tag_id: str) -> TagUsageStats:
        """
        How often and how recently a tag was used.

        Returns:
            TagUsageStats(usage_count=0, last_used=None) for unused or unknown tags
        """
        count, last_used = await self.log_repo.usage_for_tag(tag_id)
        return TagUsageStats(tag_id=tag_id, usage_count=count, last_used=last_used)

    async def popular_tags(self, limit: int | None = None) -> list[tuple[Tag, int]]:
        """
        Tags ranked by usage (tag cloud).

        Returns:
            [(tag, usage_count), ...], usage desc then name asc
        """
        limit = limit if limit and limit > 0 else self.config.POPULAR_TAGS_DEFAULT_LIMIT
        return await self.tag_repo.find_ranked_by_usage(None, limit)

    async def recent_tags_for_user(self, user_id: str, limit: int | None = None) -> list[Tag]:
        limit = limit if limit and limit > 0 else self.config.RECENT_TAGS_DEFAULT_LIMIT
        return await self.log_repo.recent_tags_for_user(user_id, limit)

    async def recent_logs(self, tag_id: str, limit: int | None = None) -> list[Log]:
        limit = limit if limit and limit > 0 else self.config.RECENT_LOGS_LIMIT
        return await self.log_repo.recent_for_tag(tag_id, limit)
