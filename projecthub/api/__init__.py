"""API layer - FastAPI endpoints."""

from .activity import router as activity_router
from .admin import router as admin_router
from .calendar import router as calendar_router
from .comments import router as comments_router
from .files import router as files_router
from .kanban import router as kanban_router
from .profiles import router as profiles_router
from .profiles import signup_router
from .projects import router as projects_router
from .realtime import router as realtime_router
from .storage import router as storage_router
from .tasks import router as tasks_router

__all__ = [
    "activity_router",
    "admin_router",
    "calendar_router",
    "comments_router",
    "files_router",
    "kanban_router",
    "profiles_router",
    "signup_router",
    "projects_router",
    "realtime_router",
    "storage_router",
    "tasks_router",
]
