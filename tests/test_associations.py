"""
Тесты для связей между тегами.

Покрывает:
- plan_associations (чистая функция)
- Реконсиляцию рёбер из описания (порядок, автосоздание, петли, идемпотентность)
- Полную замену рёбер при обновлении
- Явные связи и обратный поиск
"""

import logging
from datetime import datetime

import pytest
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError

from shumilog_tags.core.config import Settings
from shumilog_tags.errors import DuplicateNameError, NotFoundError, SelfAssociationError, TagError
from shumilog_tags.models import Tag, TagAssociation, TagRevision
from shumilog_tags.schemas import TagCreate, TagUpdate
from shumilog_tags.services import PlannedEdge, TagService, plan_associations


async def _edges(db, tag_id):
    result = await db.execute(
        select(TagAssociation)
        .where(TagAssociation.tag_id == tag_id)
        .order_by(TagAssociation.association_order)
    )
    return list(result.scalars().all())


# =============================================================================
# ТЕСТЫ: plan_associations
# =============================================================================


class TestPlanAssociations:
    """Чистое построение плана, без БД."""

    def test_orders_follow_positions(self):
        plan = plan_associations("t", [("a", "id-a"), ("b", "id-b")])

        assert plan.edges == [
            PlannedEdge(associated_tag_id="id-a", order=0, name="a"),
            PlannedEdge(associated_tag_id="id-b", order=1, name="b"),
        ]
        assert plan.skipped_self == []

    def test_self_reference_is_skipped(self):
        plan = plan_associations("t", [("me", "t"), ("other", "o")])

        assert [e.associated_tag_id for e in plan.edges] == ["o"]
        assert plan.edges[0].order == 1
        assert plan.skipped_self == ["me"]

    def test_unresolved_names_are_dropped(self):
        plan = plan_associations("t", [("x", None), ("y", "id-y")])

        assert [(e.name, e.order) for e in plan.edges] == [("y", 1)]

    def test_empty(self):
        plan = plan_associations("t", [])

        assert plan.tag_id == "t"
        assert plan.edges == []


# =============================================================================
# ТЕСТЫ: реконсиляция при создании
# =============================================================================


@pytest.mark.asyncio
async def test_create_derives_edges_in_order(service):
    """Test: рёбра в порядке первого появления хэштегов."""
    tag = await service.create_tag(
        TagCreate(name="AoT", description="#{Attack on Titan} is #anime by #{Studio WIT}"),
        created_by="alice",
    )

    associated = await service.get_tag_associations(tag.id)

    assert [t.name for t in associated] == ["Attack on Titan", "anime", "Studio WIT"]


@pytest.mark.asyncio
async def test_missing_tags_are_created_implicitly(service):
    """Test: отсутствующие теги создаются от имени автора, с ревизией 0."""
    await service.create_tag(TagCreate(name="src", description="#brand-new"), created_by="alice")

    created = await service.get_tag_by_name("brand-new")
    assert created is not None
    assert created.created_by == "alice"
    assert created.description == ""
    assert created.metadata == {}

    revisions = await service.get_tag_revisions(created.id)
    assert [(r.revision_number, r.created_by) for r in revisions] == [(0, "alice")]
    # Автосозданный тег сам не реконсилируется
    assert await service.get_tag_associations(created.id) == []


@pytest.mark.asyncio
async def test_existing_tags_are_reused(service):
    anime = await service.create_tag(TagCreate(name="anime"), created_by="u")

    tag = await service.create_tag(TagCreate(name="x", description="#anime #anime"), created_by="u")

    associated = await service.get_tag_associations(tag.id)
    assert [t.id for t in associated] == [anime.id]


@pytest.mark.asyncio
async def test_self_reference_creates_no_edge(service, test_db):
    """Test: тег, упоминающий сам себя, не получает петлю."""
    tag = await service.create_tag(
        TagCreate(name="anime", description="#anime and #manga"), created_by="u"
    )

    edges = await _edges(test_db, tag.id)

    assert len(edges) == 1
    assert edges[0].associated_tag_id != tag.id
    # order = позиция хэштега среди извлечённых (#anime был 0)
    assert edges[0].association_order == 1


@pytest.mark.asyncio
async def test_no_hashtags_no_edges(service, test_db):
    tag = await service.create_tag(TagCreate(name="plain", description="no tags"), created_by="u")

    assert await _edges(test_db, tag.id) == []


@pytest.mark.asyncio
async def test_overlong_hashtag_is_skipped(service, caplog):
    """Test: имя длиннее лимита пропускается с WARNING."""
    long_name = "x" * 150
    caplog.set_level(logging.WARNING)

    tag = await service.create_tag(
        TagCreate(name="src", description=f"#{long_name} #ok"), created_by="u"
    )

    assert [t.name for t in await service.get_tag_associations(tag.id)] == ["ok"]
    assert await service.get_tag_by_name(long_name) is None
    assert any("longer than the tag name limit" in r.getMessage() for r in caplog.records)


@pytest.mark.asyncio
async def test_overlong_limit_comes_from_injected_config(test_db):
    """Test: лимит длины имени берётся из переданного config."""
    service = TagService(test_db, config=Settings(TAG_NAME_MAX_LENGTH=5))

    tag = await service.create_tag(
        TagCreate(name="src", description="#short #toolong"), created_by="u"
    )

    assert [t.name for t in await service.get_tag_associations(tag.id)] == ["short"]
    assert await service.get_tag_by_name("toolong") is None


@pytest.mark.asyncio
async def test_concurrent_hashtag_creation_reuses_tag(session_factory, monkeypatch):
    """
    Test: два писателя создают один и тот же тег из хэштега.

    Сессия B не видит тег при поиске (как если бы A ещё не закоммитил),
    вставка упирается в unique constraint, и B берёт тег, созданный A.
    """
    async with session_factory() as session_a, session_factory() as session_b:
        service_a = TagService(session_a)
        service_b = TagService(session_b)

        async def nothing_found(names):
            return {}

        monkeypatch.setattr(service_b.reconciler.tag_repo, "get_by_names", nothing_found)

        await service_a.create_tag(TagCreate(name="x", description="#shared"), created_by="alice")
        await session_a.commit()

        tag = await service_b.create_tag(TagCreate(name="y", description="#shared"), created_by="bob")
        await session_b.commit()

        associated = await service_b.get_tag_associations(tag.id)
        assert [t.name for t in associated] == ["shared"]

    async with session_factory() as session:
        names = await session.execute(select(Tag.name).order_by(Tag.name))
        assert names.scalars().all() == ["shared", "x", "y"]
        revisions = await session.execute(select(func.count()).select_from(TagRevision))
        assert revisions.scalar_one() == 3


@pytest.mark.asyncio
async def test_concurrent_hashtag_creation_unresolvable_raises_duplicate(
    session_factory, monkeypatch
):
    """Test: тег не найден и после конфликта -> DuplicateNameError, запись откатывается."""
    async with session_factory() as session_a, session_factory() as session_b:
        service_a = TagService(session_a)
        service_b = TagService(session_b)

        async def nothing_found(names):
            return {}

        async def not_found(name):
            return None

        monkeypatch.setattr(service_b.reconciler.tag_repo, "get_by_names", nothing_found)
        monkeypatch.setattr(service_b.reconciler.tag_repo, "get_by_name", not_found)

        await service_a.create_tag(TagCreate(name="x", description="#shared"), created_by="alice")
        await session_a.commit()

        with pytest.raises(DuplicateNameError) as exc_info:
            await service_b.create_tag(TagCreate(name="y", description="#shared"), created_by="bob")
        assert isinstance(exc_info.value, TagError)
        assert exc_info.value.name == "shared"

    async with session_factory() as session:
        names = await session.execute(select(Tag.name).order_by(Tag.name))
        assert names.scalars().all() == ["shared", "x"]


# =============================================================================
# ТЕСТЫ: реконсиляция при обновлении
# =============================================================================


@pytest.mark.asyncio
async def test_update_replaces_edges(service):
    """Test: обновление полностью заменяет исходящие рёбра."""
    tag = await service.create_tag(TagCreate(name="src", description="#a #b"), created_by="u")

    await service.update_tag(tag.id, TagUpdate(description="#c"))

    assert [t.name for t in await service.get_tag_associations(tag.id)] == ["c"]
    # старые теги остаются, только рёбра удалены
    assert await service.get_tag_by_name("a") is not None


@pytest.mark.asyncio
async def test_update_removing_hashtags_clears_edges(service, test_db):
    tag = await service.create_tag(TagCreate(name="src", description="#a #b"), created_by="u")

    await service.update_tag(tag.id, TagUpdate(description=None))

    assert await _edges(test_db, tag.id) == []


@pytest.mark.asyncio
async def test_reconcile_is_idempotent(service, test_db):
    """Test: неизменное описание даёт тот же набор рёбер."""
    tag = await service.create_tag(TagCreate(name="src", description="#a #{b c} #d"), created_by="u")
    before = [(e.associated_tag_id, e.association_order) for e in await _edges(test_db, tag.id)]

    await service.update_tag(tag.id, TagUpdate(metadata={"touched": True}))
    after = [(e.associated_tag_id, e.association_order) for e in await _edges(test_db, tag.id)]

    assert before == after
    assert len(after) == 3


@pytest.mark.asyncio
async def test_failed_edge_insert_is_swallowed(service, monkeypatch, caplog):
    """Test: ошибка вставки одного ребра логируется, остальные вставляются."""
    repo = service.reconciler.association_repo
    original_add = repo.add

    async def flaky_add(tag_id, associated_tag_id, order):
        if order == 0:
            raise IntegrityError("INSERT INTO tag_associations", None, Exception("boom"))
        return await original_add(tag_id, associated_tag_id, order)

    monkeypatch.setattr(repo, "add", flaky_add)
    caplog.set_level(logging.WARNING)

    tag = await service.create_tag(TagCreate(name="src", description="#a #b"), created_by="u")

    assert [t.name for t in await service.get_tag_associations(tag.id)] == ["b"]
    assert any(r.getMessage() == "Failed to insert tag association" for r in caplog.records)


# =============================================================================
# ТЕСТЫ: явные связи
# =============================================================================


@pytest.mark.asyncio
async def test_explicit_association_appends(service):
    """Test: явная связь добавляется после последней."""
    tag = await service.create_tag(TagCreate(name="src", description="#a #b"), created_by="u")
    extra = await service.create_tag(TagCreate(name="extra"), created_by="u")

    assert await service.create_tag_association(tag.id, extra.id) is True
    assert await service.create_tag_association(tag.id, extra.id) is False

    assert [t.name for t in await service.get_tag_associations(tag.id)] == ["a", "b", "extra"]


@pytest.mark.asyncio
async def test_explicit_association_errors(service):
    tag = await service.create_tag(TagCreate(name="src"), created_by="u")

    with pytest.raises(SelfAssociationError) as exc_info:
        await service.create_tag_association(tag.id, tag.id)
    assert exc_info.value.code == "SELF_ASSOCIATION"

    with pytest.raises(NotFoundError):
        await service.create_tag_association(tag.id, "missing")
    with pytest.raises(NotFoundError):
        await service.create_tag_association("missing", tag.id)


@pytest.mark.asyncio
async def test_explicit_association_replaced_on_update(service):
    """Test: явная связь заменяется при следующем обновлении источника."""
    tag = await service.create_tag(TagCreate(name="src", description="#a"), created_by="u")
    extra = await service.create_tag(TagCreate(name="extra"), created_by="u")
    await service.create_tag_association(tag.id, extra.id)

    await service.update_tag(tag.id, TagUpdate(description="#a"))

    assert [t.name for t in await service.get_tag_associations(tag.id)] == ["a"]


@pytest.mark.asyncio
async def test_remove_association_idempotent(service):
    tag = await service.create_tag(TagCreate(name="src", description="#a"), created_by="u")
    a = await service.get_tag_by_name("a")

    assert await service.remove_tag_association(tag.id, a.id) is True
    assert await service.remove_tag_association(tag.id, a.id) is False
    assert await service.get_tag_associations(tag.id) == []


@pytest.mark.asyncio
async def test_associations_sorted_by_recent(service, test_db):
    """Test: sort="recent" сортирует по времени создания ребра."""
    tag = await service.create_tag(TagCreate(name="src", description="#a #b #c"), created_by="u")
    stamps = {"a": datetime(2024, 1, 2), "b": datetime(2024, 1, 3), "c": datetime(2024, 1, 1)}
    for name, stamp in stamps.items():
        target = await service.get_tag_by_name(name)
        await test_db.execute(
            update(TagAssociation)
            .where(
                TagAssociation.tag_id == tag.id, TagAssociation.associated_tag_id == target.id
            )
            .values(created_at=stamp)
        )

    recent = await service.get_tag_associations(tag.id, sort="recent")
    ordered = await service.get_tag_associations(tag.id, sort="order")

    assert [t.name for t in recent] == ["b", "a", "c"]
    assert [t.name for t in ordered] == ["a", "b", "c"]


@pytest.mark.asyncio
async def test_recent_referring_tags(service, test_db):
    """Test: обратный поиск, кто ссылается на тег."""
    anime = await service.create_tag(TagCreate(name="anime"), created_by="u")
    first = await service.create_tag(TagCreate(name="first", description="#anime"), created_by="u")
    second = await service.create_tag(TagCreate(name="second", description="#anime"), created_by="u")
    await test_db.execute(
        update(TagAssociation)
        .where(TagAssociation.tag_id == first.id)
        .values(created_at=datetime(2020, 1, 1))
    )

    referring = await service.get_recent_referring_tags(anime.id)

    assert [t.id for t in referring] == [second.id, first.id]
    assert [t.id for t in await service.get_recent_referring_tags(anime.id, limit=1)] == [second.id]
    assert await service.get_recent_referring_tags("missing") == []
