"""
Главный файл FastAPI приложения.

Точка входа в приложение ProjectHub.

Запуск:
    uvicorn projecthub.main:app --reload

API документация:
    http://localhost:8000/docs       - Swagger UI
    http://localhost:8000/redoc      - ReDoc

Версионирование:
    API доступно по путям /api/v1/...
    Старые пути (/projects, /tasks) также поддерживаются для обратной совместимости.

Realtime:
    ws://localhost:8000/api/v1/realtime/{table}?column=value
"""

import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from sqlalchemy import text

from . import __version__
from .api import (
    activity_router,
    admin_router,
    calendar_router,
    comments_router,
    files_router,
    kanban_router,
    profiles_router,
    projects_router,
    realtime_router,
    signup_router,
    storage_router,
    tasks_router,
)
from .api.dependencies import verify_api_key
from .api.errors import register_error_handlers
from .api.middleware import RequestLoggingMiddleware
from .core.config import settings
from .core.database import AsyncSessionLocal
from .core.logging import get_logger, setup_logging
from .realtime import ChangeCapture, change_broker

# Инициализируем логирование при импорте модуля
# LOG_LEVEL: DEBUG/INFO/WARNING/ERROR - что логировать
# LOG_FORMAT: json (production) / simple (development)
setup_logging(log_level=settings.LOG_LEVEL, log_format=settings.LOG_FORMAT)

logger = get_logger(__name__)

# Закоммиченные изменения строк уходят подписчикам realtime
change_capture = ChangeCapture(change_broker).install()

# ============================================================================
# APPLICATION METADATA
# ============================================================================

APP_VERSION = __version__
APP_START_TIME: float = 0.0  # Will be set on startup

# ============================================================================
# RATE LIMITER SETUP
# ============================================================================

# key_func определяет по какому ключу группировать запросы (по IP адресу)
limiter = Limiter(key_func=get_remote_address)


def custom_rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Превышение лимита запросов в едином формате ErrorResponse."""
    return JSONResponse(
        status_code=429,
        content={
            "error": {
                "code": "RATE_LIMIT_EXCEEDED",
                "message": f"Слишком много запросов. Лимит: {exc.detail}",
                "details": [{"field": "rate_limit", "message": str(exc.detail)}],
            }
        },
    )


# ============================================================================
# LIFESPAN EVENT HANDLER
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Lifespan context manager for startup/shutdown events.

    Startup: инициализация ресурсов
    Shutdown: освобождение ресурсов
    """
    global APP_START_TIME

    APP_START_TIME = time.time()

    logger.info(
        "Application started",
        extra={
            "app_name": settings.APP_NAME,
            "version": APP_VERSION,
            "debug": settings.DEBUG,
            "log_level": settings.LOG_LEVEL,
            "storage_root": settings.STORAGE_ROOT,
        },
    )

    print(f"🚀 {settings.APP_NAME} v{APP_VERSION} started!")
    print("📚 Docs: http://localhost:8000/docs")
    print("📦 API v1: http://localhost:8000/api/v1/")
    print("📡 Realtime: ws://localhost:8000/api/v1/realtime/{table}")

    yield  # Application runs here

    uptime = int(time.time() - APP_START_TIME)
    logger.info(
        "Application stopped",
        extra={"uptime_seconds": uptime, "subscribers": change_broker.subscriber_count},
    )
    print(f"👋 {settings.APP_NAME} stopped! (uptime: {uptime}s)")


# ============================================================================
# CREATE APPLICATION
# ============================================================================

app = FastAPI(
    lifespan=lifespan,
    title=settings.APP_NAME,
    description="""
    Бэкенд для управления проектами и задачами команды.

    ## Возможности

    * **Проекты и команды** - роли manager / member / viewer
    * **Задачи** - подзадачи с порядком, прогресс родителя
    * **Доска** - колонки To Do / In Progress / Review / Done и свои колонки
    * **Комментарии** - дерево ответов, упоминания, уведомления
    * **Календарь, файлы, лента активности**
    * **Realtime** - изменения строк через WebSocket

    ## 3-Layer Architecture

    ```
    API Layer (FastAPI) → Service Layer (Business Logic) → Repository Layer (Database)
    ```

    ## Авторизация

    Заголовки `X-API-Key` (все запросы) и `X-User-Id` (запросы от имени пользователя).

    ## Rate Limiting

    - **100 запросов/минуту** для / и /health
    - При превышении лимита вернётся ошибка 429 Too Many Requests
    """,
    version=APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.state.limiter = limiter
# slowapi handler имеет специфичный тип, но работает корректно
app.add_exception_handler(RateLimitExceeded, custom_rate_limit_exceeded_handler)  # type: ignore[arg-type]


# ============================================================================
# MIDDLEWARE
# ============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # В продакшене указать конкретные домены
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Каждый запрос логируется с методом, путём, статусом и временем
app.add_middleware(RequestLoggingMiddleware)


# ============================================================================
# API VERSIONING
# ============================================================================

api_v1_router = APIRouter(prefix="/api/v1")

api_v1_router.include_router(profiles_router)
api_v1_router.include_router(projects_router)
api_v1_router.include_router(tasks_router)
api_v1_router.include_router(comments_router)
api_v1_router.include_router(kanban_router)
api_v1_router.include_router(calendar_router)
api_v1_router.include_router(files_router)
api_v1_router.include_router(activity_router)
api_v1_router.include_router(admin_router)
api_v1_router.include_router(storage_router)


# ============================================================================
# INCLUDE ROUTERS
# ============================================================================

# dependencies=[Depends(verify_api_key)] - все endpoints роутера требуют авторизации
app.include_router(api_v1_router, dependencies=[Depends(verify_api_key)])

# Регистрация профиля и WebSocket проверяют ключ сами
app.include_router(signup_router, prefix="/api/v1")
app.include_router(realtime_router, prefix="/api/v1")

# Для обратной совместимости оставляем старые пути без /api/v1
app.include_router(projects_router, dependencies=[Depends(verify_api_key)], deprecated=True)
app.include_router(tasks_router, dependencies=[Depends(verify_api_key)], deprecated=True)

register_error_handlers(app)


# ============================================================================
# ROOT ENDPOINT
# ============================================================================


@app.get("/", tags=["root"], summary="Root endpoint", description="Информация о API")
@limiter.limit("100/minute")
async def root(request: Request):
    """Возвращает информацию о API и полезные ссылки."""
    return {
        "name": settings.APP_NAME,
        "version": APP_VERSION,
        "api_version": "v1",
        "docs": "/docs",
        "redoc": "/redoc",
        "openapi": "/openapi.json",
        "endpoints": {
            "profiles": "/api/v1/profiles",
            "projects": "/api/v1/projects",
            "tasks": "/api/v1/tasks",
            "board": "/api/v1/projects/{project_id}/board",
            "events": "/api/v1/projects/{project_id}/events",
            "files": "/api/v1/projects/{project_id}/files",
            "notifications": "/api/v1/notifications",
            "admin": "/api/v1/admin",
            "realtime": "/api/v1/realtime/{table}",
        },
        "deprecated_endpoints": {
            "projects": "/projects (use /api/v1/projects)",
            "tasks": "/tasks (use /api/v1/tasks)",
        },
        "rate_limit": "100 requests/minute",
    }


# ============================================================================
# HEALTH CHECK
# ============================================================================


@app.get(
    "/health", tags=["health"], summary="Health check", description="Проверка работоспособности API"
)
@limiter.limit("100/minute")
async def health_check(request: Request):
    """
    Проверяет подключение к базе данных.

    Пример ответа (200 OK):
    ```json
    {
        "status": "ok",
        "checks": {
            "database": "connected",
            "version": "1.0.0",
            "uptime_seconds": 3600,
            "realtime_subscribers": 2
        },
        "timestamp": "2026-01-22T12:00:00Z"
    }
    ```

    Если база недоступна - 503 и "status": "error".
    """
    uptime_seconds = int(time.time() - APP_START_TIME) if APP_START_TIME > 0 else 0

    db_status = "disconnected"
    try:
        async with AsyncSessionLocal() as session:
            await session.execute(text("SELECT 1"))
            db_status = "connected"
    except Exception:
        logger.warning("Health check: database unavailable", exc_info=True)

    checks = {
        "database": db_status,
        "version": APP_VERSION,
        "uptime_seconds": uptime_seconds,
        "realtime_subscribers": change_broker.subscriber_count,
    }

    overall_status = "ok" if db_status == "connected" else "error"
    return JSONResponse(
        status_code=200 if overall_status == "ok" else 503,
        content={
            "status": overall_status,
            "checks": checks,
            "timestamp": datetime.now(UTC).isoformat(),
        },
    )
