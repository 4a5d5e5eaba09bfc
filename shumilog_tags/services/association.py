"""Association reconciler: derives tag -> tag edges from a tag's description."""

from collections.abc import Sequence
from dataclasses import dataclass, field

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import Settings, settings as default_settings
from ..core.logging import get_logger
from ..errors import DuplicateNameError
from ..models import Tag
from ..repositories import TagAssociationRepository, TagRepository
from ..text import HashtagParser
from .revision import RevisionRecorder

logger = get_logger(__name__)


@dataclass(frozen=True)
class PlannedEdge:
    """One edge to insert."""

    associated_tag_id: str
    order: int
    name: str


@dataclass
class AssociationPlan:
    """Edges a tag should have after reconciliation."""

    tag_id: str
    edges: list[PlannedEdge] = field(default_factory=list)
    skipped_self: list[str] = field(default_factory=list)  # names resolving to the tag itself


def plan_associations(tag_id: str, resolved: Sequence[tuple[str, str | None]]) -> AssociationPlan:
    """
    Build the edge set for a tag from resolved hashtag names.

    Pure function, no database access.

    Args:
        tag_id: Source tag
        resolved: (name, tag id or None) in order of appearance.
                  The index in this sequence becomes association_order.

    Returns:
        AssociationPlan without self references and unresolved names

    Example:
        plan_associations("a", [("x", "b"), ("self", "a"), ("y", "c")])
        # edges: b (order 0), c (order 2); skipped_self: ["self"]
    """
    plan = AssociationPlan(tag_id=tag_id)
    seen: set[str] = set()

    for order, (name, associated_id) in enumerate(resolved):
        if associated_id is None:
            continue
        if associated_id == tag_id:
            plan.skipped_self.append(name)
            continue
        if associated_id in seen:
            continue
        seen.add(associated_id)
        plan.edges.append(PlannedEdge(associated_tag_id=associated_id, order=order, name=name))

    return plan


class AssociationReconciler:
    """
    Сервис для связей между тегами.

    reconcile() is a full replace: every outgoing edge of the tag is deleted
    and re-derived from the hashtags in its description.

        extract -> resolve (create missing tags) -> plan -> apply
    """

    def __init__(
        self,
        db: AsyncSession,
        revisions: RevisionRecorder | None = None,
        config: Settings | None = None,
    ):
        self.db = db
        self.config = config or default_settings
        self.tag_repo = TagRepository(db)
        self.association_repo = TagAssociationRepository(db)
        self.revisions = revisions or RevisionRecorder(db)
        self.parser = HashtagParser()

    async def resolve_names(self, names: list[str], acting_user: str) -> dict[str, Tag]:
        """
        Look up tags by exact name, creating the missing ones.

        Implicitly created tags get an empty description and metadata,
        acting_user as creator and a revision 0. They are not reconciled
        themselves (their description has no hashtags).

        Names longer than the tag name limit are skipped with a warning.

        Returns:
            Mapping name -> tag for every name that could be resolved
        """
        resolved = await self.tag_repo.get_by_names(names)

        for name in names:
            if name in resolved:
                continue
            if len(name) > self.config.TAG_NAME_MAX_LENGTH:
                logger.warning(
                    "Skipping hashtag longer than the tag name limit",
                    extra={"tag_name": name[:50], "length": len(name)},
                )
                continue

            resolved[name] = await self._get_or_create(name, acting_user)

        return resolved

    async def _get_or_create(self, name: str, acting_user: str) -> Tag:
        """
        Create an implicit tag, or reuse the one a concurrent writer just created.

        The caller must already have written in this transaction, so the
        SAVEPOINT is nested inside it.

        Raises:
            DuplicateNameError: The insert collided but the tag is still not visible
        """
        try:
            async with self.db.begin_nested():
                tag = await self.tag_repo.create(
                    Tag(name=name, description="", meta={}, created_by=acting_user)
                )
        except IntegrityError:
            existing = await self.tag_repo.get_by_name(name)
            if existing is None:
                raise DuplicateNameError(name) from None
            logger.info(
                "Reusing tag created concurrently",
                extra={"tag_id": existing.id, "tag_name": name},
            )
            return existing

        await self.revisions.record(tag, acting_user)

        logger.info(
            "Created tag from hashtag",
            extra={"tag_id": tag.id, "tag_name": name, "created_by": acting_user},
        )
        return tag

    async def reconcile(
        self, tag_id: str, description: str | None, acting_user: str
    ) -> AssociationPlan:
        """
        Replace the outgoing edges of a tag with those named in its description.

        Args:
            tag_id: Source tag
            description: Current description (hashtags are read from here)
            acting_user: Creator of any implicitly created tag

        Returns:
            The applied plan

        Бизнес-правила:
        1. Нет хэштегов -> все исходящие связи удаляются
        2. Отсутствующие теги создаются
        3. Ссылка тега на самого себя пропускается
        4. Ошибка вставки одной связи логируется и не прерывает остальные
        """
        # 1. Все исходящие связи удаляются (полная замена)
        removed = await self.association_repo.delete_outgoing(tag_id)

        # 2. Извлечение хэштегов
        names = self.parser.extract(description)
        if not names:
            logger.debug(
                "No hashtags in description", extra={"tag_id": tag_id, "removed_edges": removed}
            )
            return AssociationPlan(tag_id=tag_id)

        # 3. Разрешение имён (с созданием отсутствующих тегов)
        tags = await self.resolve_names(names, acting_user)
        resolved = [(name, tags[name].id if name in tags else None) for name in names]

        # 4. План и применение
        plan = plan_associations(tag_id, resolved)
        for edge in plan.edges:
            await self._insert_edge(tag_id, edge)

        logger.debug(
            "Reconciled tag associations",
            extra={
                "tag_id": tag_id,
                "removed_edges": removed,
                "edges": len(plan.edges),
                "skipped_self": len(plan.skipped_self),
            },
        )
        return plan

    async def _insert_edge(self, tag_id: str, edge: PlannedEdge) -> None:
        # SAVEPOINT: a failed insert must not poison the surrounding transaction
        try:
            async with self.db.begin_nested():
                await self.association_repo.add(tag_id, edge.associated_tag_id, edge.order)
        except IntegrityError:
            logger.warning(
                "Failed to insert tag association",
                extra={"tag_id": tag_id, "associated_tag_id": edge.associated_tag_id},
                exc_info=True,
            )
