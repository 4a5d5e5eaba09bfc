"""Tag service with business logic."""

from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import Settings, settings as default_settings
from ..core.logging import get_logger
from ..errors import (
    DuplicateNameError,
    NoFieldsProvidedError,
    NotFoundError,
    SelfAssociationError,
)
from ..models import Tag, utc_now
from ..repositories import LogRepository, TagAssociationRepository, TagRepository
from ..schemas import (
    AssociationSort,
    LogSummary,
    TagCreate,
    TagDetail,
    TagPage,
    TagRead,
    TagRevisionRead,
    TagSearchParams,
    TagUpdate,
    TagUsageStats,
)
from .association import AssociationReconciler
from .revision import RevisionRecorder
from .search import TagSearchEngine
from .usage import UsageAggregator

logger = get_logger(__name__)

# Schema field -> model attribute
_FIELD_TO_ATTR = {"metadata": "meta"}


class TagService:
    """
    Сервис для работы с тегами.

    Write path for create/update, all in the caller's transaction:
        tag row -> revision -> associations

    The service only flushes; the unit of work (session_scope)
    commits. If any step fails the session is rolled back before the error
    propagates, so a half-written tag is never committed.
    """

    def __init__(self, db: AsyncSession, config: Settings | None = None):
        """Инициализация сервиса с несколькими компонентами."""
        self.db = db
        self.config = config or default_settings
        self.tag_repo = TagRepository(db)
        self.association_repo = TagAssociationRepository(db)
        self.log_repo = LogRepository(db)
        self.revisions = RevisionRecorder(db)
        self.reconciler = AssociationReconciler(db, revisions=self.revisions, config=self.config)
        self.search_engine = TagSearchEngine(db, config=self.config)
        self.usage = UsageAggregator(db, config=self.config)

    # =========================================================================
    # Tag store
    # =========================================================================

    async def create_tag(self, data: TagCreate, created_by: str) -> TagRead:
        """
        Создать новый тег.

        Args:
            data: Validated name / description / metadata
            created_by: Acting user

        Returns:
            Созданный тег

        Raises:
            DuplicateNameError: If the name is taken (also when a concurrent
                create wins the race)

        Бизнес-правила:
        1. Название уникально
        2. Каждое создание записывает ревизию 0
        3. Хэштеги в описании становятся связями
        """
        # 1. ВАЛИДАЦИЯ: Проверка уникальности
        if await self.tag_repo.get_by_name(data.name):
            raise DuplicateNameError(data.name)

        # 2. СОЗДАНИЕ: unique constraint is the final arbiter
        try:
            tag = await self.tag_repo.create(
                Tag(
                    name=data.name,
                    description=data.description,
                    meta=dict(data.metadata),
                    created_by=created_by,
                )
            )
        except IntegrityError as exc:
            await self.db.rollback()
            raise DuplicateNameError(data.name) from exc

        # 3. РЕВИЗИЯ и СВЯЗИ
        try:
            await self.revisions.record(tag, created_by)
            await self.reconciler.reconcile(tag.id, tag.description, created_by)
            await self.db.refresh(tag)
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            "Tag created", extra={"tag_id": tag.id, "tag_name": tag.name, "created_by": created_by}
        )
        return TagRead.model_validate(tag)

    async def update_tag(
        self, tag_id: str, patch: TagUpdate, acting_user: str | None = None
    ) -> TagRead:
        """
        Обновить тег (частичное обновление).

        Args:
            tag_id: Tag to change
            patch: Only the fields that were passed are applied
            acting_user: Author of the revision (defaults to the tag's creator)

        Raises:
            NotFoundError: Unknown tag id
            NoFieldsProvidedError: Empty patch
            DuplicateNameError: Renaming onto another tag's name

        Every update records one revision and re-derives the associations,
        even if the description did not change.
        """
        # 1. ВАЛИДАЦИЯ: Тег существует
        tag = await self.tag_repo.get_by_id(tag_id)
        if tag is None:
            raise NotFoundError("Tag", tag_id)

        # 2. ВАЛИДАЦИЯ: Есть что обновлять
        changes = patch.changes()
        if not changes:
            raise NoFieldsProvidedError()

        # 3. ВАЛИДАЦИЯ: Новое название уникально
        new_name = changes.get("name")
        if new_name is not None and new_name != tag.name:
            existing = await self.tag_repo.get_by_name(new_name)
            if existing and existing.id != tag.id:
                raise DuplicateNameError(new_name)

        author = acting_user or tag.created_by
        values: dict[str, Any] = {_FIELD_TO_ATTR.get(key, key): value for key, value in changes.items()}
        values["updated_at"] = utc_now()

        # 4. ОБНОВЛЕНИЕ
        try:
            tag = await self.tag_repo.update(tag_id, **values)
        except IntegrityError as exc:
            await self.db.rollback()
            if new_name is not None:
                raise DuplicateNameError(new_name) from exc
            raise

        # 5. РЕВИЗИЯ и СВЯЗИ
        try:
            await self.revisions.record(tag, author)
            await self.reconciler.reconcile(tag.id, tag.description, author)
            await self.db.refresh(tag)
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            "Tag updated",
            extra={"tag_id": tag.id, "fields": sorted(changes), "updated_by": author},
        )
        return TagRead.model_validate(tag)

    async def get_tag_by_id(self, tag_id: str) -> TagRead | None:
        tag = await self.tag_repo.get_by_id(tag_id)
        return TagRead.model_validate(tag) if tag else None

    async def get_tag_by_name(self, name: str) -> TagRead | None:
        """Exact, case-sensitive lookup."""
        tag = await self.tag_repo.get_by_name(name)
        return TagRead.model_validate(tag) if tag else None

    async def resolve_tag(self, id_or_name: str) -> TagRead | None:
        """
        Find a tag by name first, then by id.

        Routes accept either form in the same path segment.
        """
        tag = await self.tag_repo.get_by_name(id_or_name)
        if tag is None:
            tag = await self.tag_repo.get_by_id(id_or_name)
        return TagRead.model_validate(tag) if tag else None

    async def delete_tag(self, tag_id: str) -> bool:
        """
        Удалить тег.

        Removes the tag, its associations in both directions and its log
        links. Revisions are kept. Deleting an unknown id is a no-op.

        Returns:
            True if a tag was deleted
        """
        try:
            edges = await self.association_repo.delete_touching(tag_id)
            links = await self.log_repo.delete_links_for_tag(tag_id)
            deleted = await self.tag_repo.delete(tag_id)
        except Exception:
            await self.db.rollback()
            raise

        if deleted:
            logger.info(
                "Tag deleted",
                extra={"tag_id": tag_id, "removed_edges": edges, "removed_log_links": links},
            )
        return deleted

    # =========================================================================
    # Search
    # =========================================================================

    async def search_tags(self, params: TagSearchParams | None = None) -> TagPage:
        return await self.search_engine.search(params or TagSearchParams())

    async def get_tag_suggestions(self, query: str, limit: int | None = None) -> list[TagRead]:
        tags = await self.search_engine.suggest(query, limit)
        return [TagRead.model_validate(tag) for tag in tags]

    # =========================================================================
    # Usage
    # =========================================================================

    async def get_tag_usage_stats(self, tag_id: str) -> TagUsageStats:
        return await self.usage.usage_stats(tag_id)

    async def get_popular_tags(self, limit: int | None = None) -> list[TagRead]:
        ranked = await self.usage.popular_tags(limit)
        return [TagRead.model_validate(tag) for tag, _ in ranked]

    async def get_recent_tags_for_user(self, user_id: str, limit: int | None = None) -> list[TagRead]:
        tags = await self.usage.recent_tags_for_user(user_id, limit)
        return [TagRead.model_validate(tag) for tag in tags]

    # =========================================================================
    # Associations
    # =========================================================================

    async def create_tag_association(self, tag_id: str, associated_tag_id: str) -> bool:
        """
        Явно связать два тега.

        The edge is appended after the current highest order. It is an ordinary
        outgoing edge, so the next update of the source tag replaces it.

        Returns:
            True if an edge was created, False if it already existed

        Raises:
            SelfAssociationError: tag_id == associated_tag_id
            NotFoundError: Either tag does not exist
        """
        if tag_id == associated_tag_id:
            raise SelfAssociationError(tag_id)
        for ref in (tag_id, associated_tag_id):
            if not await self.tag_repo.exists(ref):
                raise NotFoundError("Tag", ref)

        if await self.association_repo.get(tag_id, associated_tag_id):
            return False

        max_order = await self.association_repo.max_order(tag_id)
        order = 0 if max_order is None else max_order + 1
        try:
            await self.association_repo.add(tag_id, associated_tag_id, order)
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            "Tag association created",
            extra={"tag_id": tag_id, "associated_tag_id": associated_tag_id, "order": order},
        )
        return True

    async def remove_tag_association(self, tag_id: str, associated_tag_id: str) -> bool:
        """Remove one edge. Returns False if there was nothing to remove."""
        removed = await self.association_repo.remove(tag_id, associated_tag_id)
        if removed:
            logger.info(
                "Tag association removed",
                extra={"tag_id": tag_id, "associated_tag_id": associated_tag_id},
            )
        return removed

    async def get_tag_associations(
        self, tag_id: str, sort: AssociationSort = "order"
    ) -> list[TagRead]:
        tags = await self.association_repo.get_associated_tags(tag_id, sort)
        return [TagRead.model_validate(tag) for tag in tags]

    async def get_recent_referring_tags(self, tag_id: str, limit: int | None = None) -> list[TagRead]:
        """Tags whose descriptions point to this one, newest edge first."""
        limit = limit if limit and limit > 0 else self.config.REFERRING_TAGS_DEFAULT_LIMIT
        tags = await self.association_repo.get_referring_tags(tag_id, limit)
        return [TagRead.model_validate(tag) for tag in tags]

    # =========================================================================
    # Detail & history
    # =========================================================================

    async def get_tag_detail(self, id_or_name: str) -> TagDetail:
        """
        Tag page data: the tag, its usage, newest logs and outgoing associations.

        Raises:
            NotFoundError: If neither a name nor an id matches
        """
        tag = await self.tag_repo.get_by_name(id_or_name)
        if tag is None:
            tag = await self.tag_repo.get_by_id(id_or_name)
        if tag is None:
            raise NotFoundError("Tag", id_or_name)

        stats = await self.usage.usage_stats(tag.id)
        recent_logs = await self.usage.recent_logs(tag.id)
        associated = await self.association_repo.get_associated_tags(tag.id, "order")

        return TagDetail(
            **TagRead.model_validate(tag).model_dump(),
            log_count=stats.usage_count,
            recent_logs=[LogSummary.model_validate(log) for log in recent_logs],
            associated_tags=[TagRead.model_validate(t) for t in associated],
        )

    async def get_tag_revisions(self, tag_id: str) -> list[TagRevisionRead]:
        revisions = await self.revisions.get_revisions(tag_id)
        return [TagRevisionRead.model_validate(revision) for revision in revisions]

    async def diff_tag_revisions(
        self, tag_id: str, from_number: int, to_number: int
    ) -> dict[str, tuple[Any, Any]]:
        return await self.revisions.diff(tag_id, from_number, to_number)
