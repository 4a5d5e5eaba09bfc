"""Hybrid tag search: trigram index for long queries, substring match for short ones."""

from sqlalchemy import ColumnElement
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import Settings, settings as default_settings
from ..core.logging import get_logger
from ..models import Tag
from ..repositories import TagRepository
from ..schemas import TagPage, TagRead, TagSearchParams

logger = get_logger(__name__)


class TagSearchEngine:
    """
    Поиск тегов.

    Engine selection by query length:
        no query        -> all tags, most recently updated first
        1-2 characters  -> case-insensitive substring on name/description
        3+ characters   -> trigram index (FTS5 / pg_trgm)

    A trigram index cannot match anything shorter than 3 characters, which is
    why short queries fall back to LIKE.
    """

    def __init__(self, db: AsyncSession, config: Settings | None = None):
        self.db = db
        self.config = config or default_settings
        self.tag_repo = TagRepository(db)

    # =========================================================================
    # Paging
    # =========================================================================

    def clamp_limit(self, limit: int | None, default: int | None = None) -> int:
        """
        Missing or non-positive limit -> default, capped at SEARCH_MAX_LIMIT.

        Example:
            clamp_limit(0) -> 20
            clamp_limit(500) -> 100
        """
        if default is None:
            default = self.config.SEARCH_DEFAULT_LIMIT
        if limit is None or limit <= 0:
            limit = default
        return min(limit, self.config.SEARCH_MAX_LIMIT)

    @staticmethod
    def clamp_offset(offset: int | None) -> int:
        if offset is None or offset < 0:
            return 0
        return offset

    def predicate_for(self, query: str | None) -> ColumnElement[bool] | None:
        """Pick the search predicate for a query (None = no filtering)."""
        if not query:
            return None
        if len(query) >= self.config.SEARCH_MIN_INDEX_QUERY_LENGTH:
            return self.tag_repo.index_predicate(query)
        return self.tag_repo.substring_predicate(query)

    # =========================================================================
    # Operations
    # =========================================================================

    async def search(self, params: TagSearchParams) -> TagPage:
        """
        Search or list tags.

        Args:
            params: query (optional), limit, offset

        Returns:
            TagPage with items ordered by updated_at desc and the total match count
        """
        limit = self.clamp_limit(params.limit)
        offset = self.clamp_offset(params.offset)

        tags, total = await self.tag_repo.find_page(self.predicate_for(params.query), limit, offset)

        logger.debug(
            "Tag search",
            extra={"query": params.query, "limit": limit, "offset": offset, "total": total},
        )
        return TagPage(
            items=[TagRead.model_validate(tag) for tag in tags],
            total=total,
            limit=limit,
            offset=offset,
            has_more=offset + len(tags) < total,
        )

    async def suggest(self, prefix: str | None, limit: int | None = None) -> list[Tag]:
        """
        Autocomplete: matching tags ranked by usage count, then name.

        Args:
            prefix: What the user typed so far (blank -> no suggestions)
            limit: Max suggestions (default SUGGESTION_DEFAULT_LIMIT)
        """
        prefix = (prefix or "").strip()
        if not prefix:
            return []

        limit = self.clamp_limit(limit, default=self.config.SUGGESTION_DEFAULT_LIMIT)
        ranked = await self.tag_repo.find_ranked_by_usage(self.predicate_for(prefix), limit)
        return [tag for tag, _ in ranked]
