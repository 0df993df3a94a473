"""API endpoints ленты активности и уведомлений."""

from fastapi import APIRouter, Depends, Query

from ..models import Profile
from ..services import ActivityService, NotificationService
from .dependencies import get_activity_service, get_current_user, get_notification_service
from .errors import http_error
from .schemas import (
    ActivityResponse,
    ErrorResponse,
    MarkedRead,
    NotificationResponse,
    UnreadCount,
)

router = APIRouter(tags=["activity"])


# ============================================================================
# ACTIVITY FEED
# ============================================================================


@router.get(
    "/projects/{project_id}/activity",
    response_model=list[ActivityResponse],
    summary="Лента проекта",
    description="Новые записи первыми.",
    responses={
        403: {"model": ErrorResponse, "description": "Нет доступа"},
        404: {"model": ErrorResponse, "description": "Проект не найден"},
    },
)
async def get_project_activity(
    project_id: int,
    limit: int = Query(50, ge=1, le=500),
    user: Profile = Depends(get_current_user),
    service: ActivityService = Depends(get_activity_service),
) -> list[ActivityResponse]:
    try:
        feed = await service.get_project_feed(user, project_id, limit=limit)
        return [ActivityResponse.model_validate(a) for a in feed]
    except ValueError as e:
        raise http_error(e)


@router.get(
    "/activity",
    response_model=list[ActivityResponse],
    summary="Лента всех проектов",
    description="Только для администратора.",
    responses={403: {"model": ErrorResponse, "description": "Нужна роль администратора"}},
)
async def get_global_activity(
    limit: int = Query(100, ge=1, le=500),
    user: Profile = Depends(get_current_user),
    service: ActivityService = Depends(get_activity_service),
) -> list[ActivityResponse]:
    return [ActivityResponse.model_validate(a) for a in await service.get_global_feed(user, limit)]


# ============================================================================
# NOTIFICATIONS
# ============================================================================


@router.get(
    "/notifications",
    response_model=list[NotificationResponse],
    tags=["notifications"],
    summary="Мои уведомления",
)
async def get_notifications(
    unread_only: bool = Query(False, description="Только непрочитанные"),
    limit: int = Query(50, ge=1, le=200),
    user: Profile = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
) -> list[NotificationResponse]:
    notifications = await service.list_notifications(user, unread_only=unread_only, limit=limit)
    return [NotificationResponse.model_validate(n) for n in notifications]


@router.get(
    "/notifications/unread-count",
    response_model=UnreadCount,
    tags=["notifications"],
    summary="Количество непрочитанных",
)
async def get_unread_count(
    user: Profile = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
) -> UnreadCount:
    return UnreadCount(unread=await service.unread_count(user))


@router.post(
    "/notifications/read-all",
    response_model=MarkedRead,
    tags=["notifications"],
    summary="Отметить все прочитанными",
)
async def mark_all_read(
    user: Profile = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
) -> MarkedRead:
    return MarkedRead(updated=await service.mark_all_read(user))


@router.post(
    "/notifications/{notification_id}/read",
    response_model=NotificationResponse,
    tags=["notifications"],
    summary="Отметить прочитанным",
    responses={404: {"model": ErrorResponse, "description": "Уведомление не найдено"}},
)
async def mark_read(
    notification_id: int,
    user: Profile = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
) -> NotificationResponse:
    try:
        return NotificationResponse.model_validate(await service.mark_read(user, notification_id))
    except ValueError as e:
        raise http_error(e)
