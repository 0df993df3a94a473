"""API endpoints календаря проекта."""

from datetime import date

from fastapi import APIRouter, Depends, Query, status

from ..models import Profile
from ..services import CalendarService
from .dependencies import get_calendar_service, get_current_user
from .errors import http_error
from .schemas import ErrorResponse, EventCreate, EventResponse, EventUpdate, SuccessResponse

router = APIRouter(tags=["calendar"])

COMMON_ERRORS = {
    403: {"model": ErrorResponse, "description": "Нет доступа"},
    404: {"model": ErrorResponse, "description": "Проект или событие не найдены"},
}


@router.get(
    "/projects/{project_id}/events",
    response_model=list[EventResponse],
    summary="События проекта",
    description="По возрастанию даты; date_from / date_to включительно.",
    responses=COMMON_ERRORS,
)
async def get_events(
    project_id: int,
    date_from: date | None = Query(None),
    date_to: date | None = Query(None),
    user: Profile = Depends(get_current_user),
    service: CalendarService = Depends(get_calendar_service),
) -> list[EventResponse]:
    try:
        events = await service.list_events(user, project_id, date_from, date_to)
        return [EventResponse.model_validate(e) for e in events]
    except ValueError as e:
        raise http_error(e)


@router.post(
    "/projects/{project_id}/events",
    response_model=EventResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Создать событие",
    responses={400: {"model": ErrorResponse, "description": "Ошибка валидации"}, **COMMON_ERRORS},
)
async def create_event(
    project_id: int,
    data: EventCreate,
    user: Profile = Depends(get_current_user),
    service: CalendarService = Depends(get_calendar_service),
) -> EventResponse:
    """
    Пример запроса:
    ```json
    {"title": "Release 1.0", "event_date": "2026-02-01", "event_type": "milestone"}
    ```
    """
    try:
        event = await service.create_event(user, project_id, **data.model_dump())
        return EventResponse.model_validate(event)
    except ValueError as e:
        raise http_error(e)


@router.put(
    "/events/{event_id}",
    response_model=EventResponse,
    summary="Изменить событие",
    responses=COMMON_ERRORS,
)
async def update_event(
    event_id: int,
    data: EventUpdate,
    user: Profile = Depends(get_current_user),
    service: CalendarService = Depends(get_calendar_service),
) -> EventResponse:
    try:
        event = await service.update_event(user, event_id, **data.model_dump(exclude_unset=True))
        return EventResponse.model_validate(event)
    except ValueError as e:
        raise http_error(e)


@router.delete(
    "/events/{event_id}",
    response_model=SuccessResponse,
    summary="Удалить событие",
    responses=COMMON_ERRORS,
)
async def delete_event(
    event_id: int,
    user: Profile = Depends(get_current_user),
    service: CalendarService = Depends(get_calendar_service),
) -> SuccessResponse:
    try:
        await service.delete_event(user, event_id)
        return SuccessResponse(message=f"Event {event_id} deleted successfully")
    except ValueError as e:
        raise http_error(e)
