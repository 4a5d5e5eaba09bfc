"""Generic repository shared by the tag engine tables."""

from typing import Any, Generic, TypeVar

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.base import Base

# Любая ORM-модель с колонкой id
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Row access by opaque string id.

    Repositories never commit: they flush so ids and defaults are populated,
    and the unit of work that owns the session decides when to commit.

    Example:
        logs = BaseRepository[Log](Log, session)
        log = await logs.get_by_id("3f0c...")
    """

    def __init__(self, model: type[ModelType], db: AsyncSession):
        self.model = model
        self.db = db

    async def create(self, obj: ModelType) -> ModelType:
        """
        Persist a new instance.

        Returns:
            The same instance, with id and server defaults loaded
        """
        self.db.add(obj)
        await self.db.flush()  # INSERT без commit
        await self.db.refresh(obj)  # подтягиваем created_at / updated_at
        return obj

    async def get_by_id(self, id: str) -> ModelType | None:
        stmt = select(self.model).where(self.model.id == id)
        return (await self.db.execute(stmt)).scalar_one_or_none()

    async def update(self, id: str, **fields: Any) -> ModelType | None:
        """
        Set attributes on the row and flush.

        Unknown attribute names are ignored.

        Returns:
            The refreshed instance, or None when there is no such row
        """
        obj = await self.get_by_id(id)
        if obj is None:
            return None

        for attr, value in fields.items():
            if hasattr(obj, attr):
                setattr(obj, attr, value)

        await self.db.flush()
        await self.db.refresh(obj)
        return obj

    async def delete(self, id: str) -> bool:
        """
        SQL:
            DELETE FROM table WHERE id = {id};

        Returns:
            True if a row was removed
        """
        result = await self.db.execute(delete(self.model).where(self.model.id == id))
        return result.rowcount > 0

    async def exists(self, id: str) -> bool:
        stmt = select(self.model.id).where(self.model.id == id).limit(1)
        return (await self.db.execute(stmt)).first() is not None
