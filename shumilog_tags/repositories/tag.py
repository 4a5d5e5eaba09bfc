"""Tag repository with specific queries."""

from sqlalchemy import ColumnElement, column, func, or_, select, table, text
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import TAGS_FTS_TABLE, Tag, log_tag_associations
from .base import BaseRepository

# Lightweight handle on the FTS5 table (created by DDL hooks on the tags table)
_tags_fts = table(TAGS_FTS_TABLE, column("tag_id"))


def like_pattern(term: str) -> str:
    """
    Build a "contains" LIKE pattern with wildcards in the term escaped.

    Example:
        like_pattern("100%") -> "%100\\%%"
    """
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def fts_phrase(term: str) -> str:
    """Quote a term as a single FTS5 phrase ("" escapes a double quote)."""
    return '"' + term.replace('"', '""') + '"'


class TagRepository(BaseRepository[Tag]):
    """
    Data access for tags.

    Besides CRUD this holds the two search predicates:
    - index_predicate: trigram index (FTS5 on SQLite, pg_trgm-backed ILIKE on PostgreSQL)
    - substring_predicate: plain case-insensitive LIKE
    """

    def __init__(self, db: AsyncSession):
        super().__init__(Tag, db)

    @property
    def dialect_name(self) -> str:
        return self.db.bind.dialect.name

    async def get_by_name(self, name: str) -> Tag | None:
        """
        Get a tag by its exact (case-sensitive) name.

        SQL:
            SELECT * FROM tags WHERE name = {name};
        """
        result = await self.db.execute(select(Tag).where(Tag.name == name))
        return result.scalar_one_or_none()

    async def get_by_names(self, names: list[str]) -> dict[str, Tag]:
        """
        Bulk lookup by exact name.

        Returns:
            Mapping name -> tag for the names that exist
        """
        if not names:
            return {}
        result = await self.db.execute(select(Tag).where(Tag.name.in_(names)))
        return {tag.name: tag for tag in result.scalars().all()}

    # =========================================================================
    # Search predicates
    # =========================================================================

    def index_predicate(self, query: str) -> ColumnElement[bool]:
        """
        Phrase match through the trigram index on name and description.

        Only meaningful for queries of 3+ characters.
        """
        if self.dialect_name == "sqlite":
            matching_ids = select(_tags_fts.c.tag_id).where(
                text(f"{TAGS_FTS_TABLE} MATCH :fts_query").bindparams(fts_query=fts_phrase(query))
            )
            return Tag.id.in_(matching_ids)

        # PostgreSQL: gin_trgm_ops indexes on name/description serve ILIKE directly
        return self.substring_predicate(query)

    def substring_predicate(self, query: str) -> ColumnElement[bool]:
        """
        Case-insensitive "contains" on name OR description.

        SQL:
            WHERE lower(name) LIKE lower('%q%') OR lower(description) LIKE lower('%q%')
        """
        pattern = like_pattern(query)
        return or_(
            Tag.name.ilike(pattern, escape="\\"),
            Tag.description.ilike(pattern, escape="\\"),
        )

    # =========================================================================
    # Listings
    # =========================================================================

    async def find_page(
        self,
        predicate: ColumnElement[bool] | None,
        limit: int,
        offset: int,
    ) -> tuple[list[Tag], int]:
        """
        One page of tags, most recently updated first, plus the total count.

        Args:
            predicate: Filter (None = all tags)
            limit: Page size
            offset: Rows to skip

        Returns:
            (tags, total)
        """
        stmt = select(Tag)
        count_stmt = select(func.count()).select_from(Tag)
        if predicate is not None:
            stmt = stmt.where(predicate)
            count_stmt = count_stmt.where(predicate)

        result = await self.db.execute(
            stmt.order_by(Tag.updated_at.desc(), Tag.created_at.desc(), Tag.name.asc())
            .offset(offset)
            .limit(limit)
        )
        total = await self.db.execute(count_stmt)
        return list(result.scalars().all()), total.scalar_one()

    async def find_ranked_by_usage(
        self,
        predicate: ColumnElement[bool] | None,
        limit: int,
    ) -> list[tuple[Tag, int]]:
        """
        Tags ranked by number of linked logs, name ascending as tie-break.

        SQL:
            SELECT tags.*, COUNT(log_tag_associations.log_id) AS usage_count
            FROM tags
            LEFT JOIN log_tag_associations ON tags.id = log_tag_associations.tag_id
            [WHERE predicate]
            GROUP BY tags.id
            ORDER BY usage_count DESC, tags.name ASC
            LIMIT {limit};
        """
        usage_count = func.count(log_tag_associations.c.log_id).label("usage_count")
        stmt = select(Tag, usage_count).outerjoin(
            log_tag_associations, Tag.id == log_tag_associations.c.tag_id
        )
        if predicate is not None:
            stmt = stmt.where(predicate)

        result = await self.db.execute(
            stmt.group_by(Tag.id).order_by(usage_count.desc(), Tag.name.asc()).limit(limit)
        )
        return [(row[0], row[1]) for row in result.all()]
