"""Tag association repository (the tag -> tag graph)."""

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Tag, TagAssociation
from ..schemas import AssociationSort


class TagAssociationRepository:
    """
    Data access for tag -> tag edges.

    Edges are keyed by (tag_id, associated_tag_id), so this repository does not
    inherit the id-based CRUD of BaseRepository.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, tag_id: str, associated_tag_id: str) -> TagAssociation | None:
        result = await self.db.execute(
            select(TagAssociation).where(
                TagAssociation.tag_id == tag_id,
                TagAssociation.associated_tag_id == associated_tag_id,
            )
        )
        return result.scalar_one_or_none()

    async def add(self, tag_id: str, associated_tag_id: str, order: int) -> TagAssociation:
        """Insert one edge and flush it (raises IntegrityError on a duplicate)."""
        edge = TagAssociation(
            tag_id=tag_id,
            associated_tag_id=associated_tag_id,
            association_order=order,
        )
        self.db.add(edge)
        await self.db.flush()
        return edge

    async def remove(self, tag_id: str, associated_tag_id: str) -> bool:
        """Delete one edge. Returns False if it did not exist."""
        result = await self.db.execute(
            delete(TagAssociation).where(
                TagAssociation.tag_id == tag_id,
                TagAssociation.associated_tag_id == associated_tag_id,
            )
        )
        return result.rowcount > 0

    async def delete_outgoing(self, tag_id: str) -> int:
        """
        Delete every edge leaving a tag.

        SQL:
            DELETE FROM tag_associations WHERE tag_id = {tag_id};
        """
        result = await self.db.execute(
            delete(TagAssociation).where(TagAssociation.tag_id == tag_id)
        )
        return result.rowcount

    async def delete_touching(self, tag_id: str) -> int:
        """Delete every edge where the tag is source or target."""
        result = await self.db.execute(
            delete(TagAssociation).where(
                or_(
                    TagAssociation.tag_id == tag_id,
                    TagAssociation.associated_tag_id == tag_id,
                )
            )
        )
        return result.rowcount

    async def max_order(self, tag_id: str) -> int | None:
        """Highest association_order among a tag's outgoing edges (None if none)."""
        result = await self.db.execute(
            select(func.max(TagAssociation.association_order)).where(
                TagAssociation.tag_id == tag_id
            )
        )
        return result.scalar_one()

    async def list_outgoing(self, tag_id: str) -> list[TagAssociation]:
        """Outgoing edges in association order."""
        result = await self.db.execute(
            select(TagAssociation)
            .where(TagAssociation.tag_id == tag_id)
            .order_by(TagAssociation.association_order.asc())
        )
        return list(result.scalars().all())

    async def get_associated_tags(
        self, tag_id: str, sort: AssociationSort = "order"
    ) -> list[Tag]:
        """
        Tags a tag points to.

        Args:
            tag_id: Source tag
            sort: "order" - as they appear in the description,
                  "recent" - newest edge first

        SQL:
            SELECT tags.* FROM tag_associations
            JOIN tags ON tags.id = tag_associations.associated_tag_id
            WHERE tag_associations.tag_id = {tag_id}
            ORDER BY association_order ASC;
        """
        if sort == "recent":
            ordering = (TagAssociation.created_at.desc(), TagAssociation.association_order.asc())
        else:
            ordering = (TagAssociation.association_order.asc(), TagAssociation.created_at.asc())

        result = await self.db.execute(
            select(Tag)
            .join(TagAssociation, TagAssociation.associated_tag_id == Tag.id)
            .where(TagAssociation.tag_id == tag_id)
            .order_by(*ordering)
        )
        return list(result.scalars().all())

    async def get_referring_tags(self, tag_id: str, limit: int) -> list[Tag]:
        """
        Tags that point to this tag, newest edge first (reverse lookup).

        SQL:
            SELECT tags.* FROM tag_associations
            JOIN tags ON tags.id = tag_associations.tag_id
            WHERE tag_associations.associated_tag_id = {tag_id}
            ORDER BY tag_associations.created_at DESC
            LIMIT {limit};
        """
        result = await self.db.execute(
            select(Tag)
            .join(TagAssociation, TagAssociation.tag_id == Tag.id)
            .where(TagAssociation.associated_tag_id == tag_id)
            .order_by(TagAssociation.created_at.desc(), Tag.name.asc())
            .limit(limit)
        )
        return list(result.scalars().all())
