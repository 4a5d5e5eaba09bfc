"""
Pytest fixtures для тестов.

Предоставляет:
- test_engine: изолированная SQLite in-memory БД для каждого теста
- test_db: async session поверх неё
- session_factory: фабрика сессий (для тестов с несколькими сессиями)
- service / log_service / make_log: сервисы и хелперы
"""

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shumilog_tags.core.database import build_engine
from shumilog_tags.models import Base, Log
from shumilog_tags.services import LogTagService, TagService

# Test database URL (SQLite in-memory)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def test_engine():
    """
    Создаёт async engine для тестовой БД (SQLite in-memory).

    build_engine даёт StaticPool (одно соединение, иначе in-memory данные
    теряются) и включает foreign keys для ON DELETE CASCADE.
    """
    engine = build_engine(TEST_DATABASE_URL)

    # Создаём все таблицы (и FTS5 индекс)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Удаляем все таблицы после теста
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(test_engine):
    """Session maker bound to the test engine."""
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def test_db(session_factory):
    """
    Предоставляет async session для работы с тестовой БД.

    Каждый тест получает чистую БД.
    Транзакция откатывается после теста.
    """
    async with session_factory() as session:
        yield session
        # Откатываем все изменения после теста
        await session.rollback()


@pytest.fixture
def service(test_db):
    """TagService поверх тестовой сессии."""
    return TagService(test_db)


@pytest.fixture
def log_service(test_db):
    return LogTagService(test_db)


@pytest.fixture
def make_log(test_db):
    """
    Создаёт лог (логи принадлежат внешнему CRUD слою, поэтому напрямую).

    Usage:
        log = await make_log(user_id="alice", created_at=datetime(2024, 1, 1))
    """

    async def _make_log(user_id="user-1", title="Log", content_md=None, created_at=None):
        log = Log(user_id=user_id, title=title, content_md=content_md)
        if created_at is not None:
            log.created_at = created_at
        test_db.add(log)
        await test_db.flush()
        return log

    return _make_log
