"""
Pytest fixtures для тестов.

Предоставляет:
- test_db: изолированная SQLite in-memory БД для каждого теста
- test_client: HTTP клиент для тестирования API endpoints
- admin / member / viewer / outsider: профили с разными правами
- project: проект, в команде которого member (member) и viewer (viewer)
"""

import os
import tempfile

# Настройки читаются при импорте приложения: задаём их до импорта
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("STORAGE_ROOT", tempfile.mkdtemp(prefix="projecthub-test-"))
os.environ.setdefault("LOG_FORMAT", "simple")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from projecthub.api.dependencies import get_storage
from projecthub.core.config import settings
from projecthub.core.database import build_engine, build_session_factory, get_db
from projecthub.main import app
from projecthub.models import Base, MemberRole, Profile, Project, UserRole
from projecthub.services import ProfileService, ProjectService
from projecthub.storage import LocalObjectStorage

# Test database URL (SQLite in-memory)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def test_engine():
    """
    Создаёт async engine для тестовой БД (SQLite in-memory).

    StaticPool (через build_engine) обеспечивает одно и то же соединение,
    что критично для in-memory БД (иначе данные теряются).

    ВАЖНО: Таблицы пересоздаются для каждого теста, обеспечивая полную изоляцию.
    """
    engine = build_engine(TEST_DATABASE_URL)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def test_db(test_engine) -> AsyncSession:
    """
    Предоставляет async session для работы с тестовой БД.

    Каждый тест получает чистую БД.
    """
    TestSessionLocal = build_session_factory(test_engine)

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()


@pytest.fixture
def storage(tmp_path) -> LocalObjectStorage:
    """Хранилище файлов в отдельном временном каталоге теста."""
    return LocalObjectStorage(tmp_path / "storage")


@pytest_asyncio.fixture
async def test_client(test_engine, storage):
    """
    Предоставляет HTTP клиент для тестирования API endpoints.

    Использует тестовую БД и временное хранилище вместо настоящих.
    Заголовок X-API-Key выставлен; X-User-Id тест передаёт сам (см. as_user в test_api.py).
    """
    TestSessionLocal = build_session_factory(test_engine)

    async def override_get_db():
        async with TestSessionLocal() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"X-API-Key": settings.API_KEY},
    ) as client:
        yield client

    app.dependency_overrides.clear()


# ============================================================================
# DATA FIXTURES
# ============================================================================


@pytest_asyncio.fixture
async def admin(test_db) -> Profile:
    profile = await ProfileService(test_db).create_profile(
        "admin@example.com", display_name="Admin", metadata={"role": UserRole.ADMIN.value}
    )
    await test_db.commit()
    return profile


@pytest_asyncio.fixture
async def member(test_db) -> Profile:
    profile = await ProfileService(test_db).create_profile(
        "member@example.com", display_name="Member"
    )
    await test_db.commit()
    return profile


@pytest_asyncio.fixture
async def viewer(test_db) -> Profile:
    profile = await ProfileService(test_db).create_profile(
        "viewer@example.com", full_name="Vera Viewer"
    )
    await test_db.commit()
    return profile


@pytest_asyncio.fixture
async def outsider(test_db) -> Profile:
    profile = await ProfileService(test_db).create_profile("outsider@example.com")
    await test_db.commit()
    return profile


@pytest_asyncio.fixture
async def project(test_db, admin, member, viewer) -> Project:
    """Проект админа: member - участник, viewer - только чтение."""
    service = ProjectService(test_db)
    project = await service.create_project(admin, name="Website")
    await service.add_member(admin, project.id, user_id=member.id, role=MemberRole.MEMBER)
    await service.add_member(admin, project.id, user_id=viewer.id, role=MemberRole.VIEWER)
    await test_db.commit()
    return project


# Pytest configuration
@pytest.fixture(scope="session")
def anyio_backend():
    """Используем asyncio для всех async тестов."""
    return "asyncio"
