"""Log tag linker: keeps a log's tag links in step with its content."""

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import Settings
from ..core.logging import get_logger
from ..errors import NotFoundError
from ..repositories import LogRepository
from ..schemas import TagRead
from ..text import HashtagParser
from .association import AssociationReconciler

logger = get_logger(__name__)


class LogTagService:
    """
    Связь логов с тегами.

    Called by log create/update. A log is linked to the tags passed
    explicitly plus the hashtags in its markdown content; missing tags are
    created the same way the association reconciler creates them.
    """

    def __init__(self, db: AsyncSession, config: Settings | None = None):
        self.db = db
        self.log_repo = LogRepository(db)
        self.reconciler = AssociationReconciler(db, config=config)
        self.parser = HashtagParser()

    async def link_log(
        self,
        log_id: str,
        content_md: str | None,
        tag_names: list[str] | None = None,
        *,
        acting_user: str,
    ) -> list[TagRead]:
        """
        Replace the tag set of a log.

        Args:
            log_id: Log to link
            content_md: Log content, hashtags are read from here
            tag_names: Explicitly chosen tags (come first)
            acting_user: Creator of any implicitly created tag

        Returns:
            Linked tags in link order

        Raises:
            NotFoundError: Unknown log id

        Example:
            await service.link_log(log.id, "Finished #{Attack on Titan}", ["anime"], acting_user=uid)
            # -> [anime, Attack on Titan]
        """
        if not await self.log_repo.exists(log_id):
            raise NotFoundError("Log", log_id)

        # Explicit names first, then hashtags; first occurrence wins
        names: list[str] = []
        for name in [*(n.strip() for n in tag_names or []), *self.parser.extract(content_md)]:
            if name and name not in names:
                names.append(name)

        try:
            # DELETE first: it opens the transaction the savepoints of resolve_names nest in
            await self.log_repo.clear_tags(log_id)
            tags = await self.reconciler.resolve_names(names, acting_user)
            linked = [tags[name] for name in names if name in tags]
            await self.log_repo.add_tags(log_id, [tag.id for tag in linked])
        except Exception:
            await self.db.rollback()
            raise

        logger.debug("Linked log tags", extra={"log_id": log_id, "tags": len(linked)})
        return [TagRead.model_validate(tag) for tag in linked]

    async def get_log_tags(self, log_id: str) -> list[TagRead]:
        """Tags of a log in link order (empty for an unknown log)."""
        tags = await self.log_repo.get_tags(log_id)
        return [TagRead.model_validate(tag) for tag in tags]
