"""
Dependencies для FastAPI endpoints.

Dependency Injection (DI) - паттерн для автоматического предоставления зависимостей.

Вместо того чтобы создавать сервисы вручную в каждом endpoint:
    async def create_project(...):
        async with AsyncSessionLocal() as db:
            service = ProjectService(db)
            ...

Мы используем FastAPI Depends():
    async def create_project(
        service: ProjectService = Depends(get_project_service)
    ):
        ...

Цепочка зависимостей:
    get_task_service зависит от get_db
    → FastAPI вызовет get_db() (сессия = одна транзакция на запрос)
    → Передаст сессию в get_task_service()
    → Вернёт TaskService в endpoint
"""

from functools import lru_cache

from fastapi import Depends, HTTPException, status
from fastapi.security import APIKeyHeader
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.database import get_db
from ..core.logging import user_id_var
from ..models import Profile
from ..realtime import ChangeBroker, change_broker
from ..repositories import ProfileRepository
from ..services import (
    ActivityService,
    AdminService,
    CalendarService,
    CommentService,
    FileService,
    KanbanService,
    NotificationService,
    ProfileService,
    ProjectService,
    TaskService,
)
from ..storage import LocalObjectStorage

# ============================================================================
# API KEY AUTHENTICATION
# ============================================================================

# name="X-API-Key" - название заголовка, который клиент должен отправить
api_key_header = APIKeyHeader(
    name="X-API-Key",
    auto_error=False,  # Не выбрасывать ошибку автоматически, мы сами обработаем
    description="API ключ для авторизации. Передавайте в заголовке X-API-Key",
)

# Текущий пользователь: ID профиля
user_id_header = APIKeyHeader(
    name="X-User-Id",
    auto_error=False,
    scheme_name="UserId",
    description="ID профиля, от имени которого выполняется запрос",
)


def api_key_is_valid(api_key: str | None) -> bool:
    return api_key is not None and api_key == settings.API_KEY


async def verify_api_key(api_key: str = Depends(api_key_header)) -> str:
    """
    Dependency для проверки API ключа.

    Пример запроса:
        curl -H "X-API-Key: your-secret-key" http://localhost:8000/api/v1/projects
    """
    if api_key is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="API key is missing. Add header: X-API-Key: your-key",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    if not api_key_is_valid(api_key):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    return api_key


async def get_current_user(
    user_id: str | None = Depends(user_id_header),
    db: AsyncSession = Depends(get_db),
) -> Profile:
    """
    Профиль из заголовка X-User-Id.

    Нет заголовка, не число или профиль не найден → 401.
    """
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User is missing. Add header: X-User-Id: <profile id>",
        )

    try:
        profile_id = int(user_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid X-User-Id header"
        ) from None

    profile = await ProfileRepository(db).get_by_id(profile_id)
    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail=f"Unknown user {profile_id}"
        )

    user_id_var.set(profile.id)
    return profile


# ============================================================================
# INFRASTRUCTURE
# ============================================================================


@lru_cache
def get_storage() -> LocalObjectStorage:
    """Object storage под STORAGE_ROOT (один экземпляр на процесс)."""
    return LocalObjectStorage(settings.STORAGE_ROOT)


def get_change_broker() -> ChangeBroker:
    return change_broker


# ============================================================================
# SERVICE DEPENDENCIES
# ============================================================================


async def get_profile_service(db: AsyncSession = Depends(get_db)) -> ProfileService:
    return ProfileService(db)


async def get_project_service(
    db: AsyncSession = Depends(get_db),
    storage: LocalObjectStorage = Depends(get_storage),
) -> ProjectService:
    """
    Dependency для ProjectService.

    storage нужен для удаления файлов вместе с проектом.
    """
    return ProjectService(db, storage)


async def get_task_service(db: AsyncSession = Depends(get_db)) -> TaskService:
    return TaskService(db)


async def get_comment_service(db: AsyncSession = Depends(get_db)) -> CommentService:
    return CommentService(db)


async def get_kanban_service(db: AsyncSession = Depends(get_db)) -> KanbanService:
    return KanbanService(db)


async def get_calendar_service(db: AsyncSession = Depends(get_db)) -> CalendarService:
    return CalendarService(db)


async def get_file_service(
    db: AsyncSession = Depends(get_db),
    storage: LocalObjectStorage = Depends(get_storage),
) -> FileService:
    return FileService(db, storage)


async def get_activity_service(db: AsyncSession = Depends(get_db)) -> ActivityService:
    return ActivityService(db)


async def get_notification_service(db: AsyncSession = Depends(get_db)) -> NotificationService:
    return NotificationService(db)


async def get_admin_service(db: AsyncSession = Depends(get_db)) -> AdminService:
    return AdminService(db)
