"""
API endpoints доски проекта.

- GET    /projects/{id}/board                - колонки с задачами
- GET    /projects/{id}/columns              - колонки
- POST   /projects/{id}/columns              - новая колонка
- PUT    /projects/{id}/columns/{column_id}  - переименовать / перекрасить
- DELETE /projects/{id}/columns/{column_id}  - удалить колонку

Перенос задачи между колонками: POST /tasks/{id}/move
"""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..domain import column_status
from ..models import Profile, TaskPriority
from ..repositories import UNASSIGNED
from ..services import KanbanService
from .dependencies import get_current_user, get_kanban_service
from .errors import http_error
from .schemas import (
    BoardColumnResponse,
    ColumnCreate,
    ColumnResponse,
    ColumnUpdate,
    ErrorResponse,
    SuccessResponse,
    TaskResponse,
)

router = APIRouter(prefix="/projects/{project_id}", tags=["kanban"])

COMMON_ERRORS = {
    403: {"model": ErrorResponse, "description": "Нет доступа"},
    404: {"model": ErrorResponse, "description": "Проект или колонка не найдены"},
}


@router.get(
    "/board",
    response_model=list[BoardColumnResponse],
    summary="Доска проекта",
    description="""
    Колонки по порядку, в каждой - корневые задачи со статусом колонки
    (по kanban_position). Своя колонка проекта без статуса пустая.

    Фильтры: search, assignee (ID или "unassigned"), priority.
    """,
    responses=COMMON_ERRORS,
)
async def get_board(
    project_id: int,
    search: str | None = Query(None, max_length=200),
    assignee: str | None = Query(None, description='ID исполнителя или "unassigned"'),
    priority: TaskPriority | None = Query(None),
    user: Profile = Depends(get_current_user),
    service: KanbanService = Depends(get_kanban_service),
) -> list[BoardColumnResponse]:
    if assignee is not None and assignee != UNASSIGNED and not assignee.isdigit():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f'assignee must be a profile id or "{UNASSIGNED}"',
        )
    try:
        board = await service.get_board(
            user, project_id, search=search, assignee=assignee, priority=priority
        )
    except ValueError as e:
        raise http_error(e)

    return [
        BoardColumnResponse(
            **ColumnResponse.model_validate(entry.column).model_dump(),
            status=column_status(entry.column.name),
            tasks=[TaskResponse.model_validate(t) for t in entry.tasks],
        )
        for entry in board
    ]


@router.get(
    "/columns",
    response_model=list[ColumnResponse],
    summary="Колонки доски",
    responses=COMMON_ERRORS,
)
async def get_columns(
    project_id: int,
    user: Profile = Depends(get_current_user),
    service: KanbanService = Depends(get_kanban_service),
) -> list[ColumnResponse]:
    try:
        return [ColumnResponse.model_validate(c) for c in await service.list_columns(user, project_id)]
    except ValueError as e:
        raise http_error(e)


@router.post(
    "/columns",
    response_model=ColumnResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Добавить колонку",
    description="Колонка добавляется последней (администратор или менеджер проекта).",
    responses={400: {"model": ErrorResponse, "description": "Ошибка валидации"}, **COMMON_ERRORS},
)
async def create_column(
    project_id: int,
    data: ColumnCreate,
    user: Profile = Depends(get_current_user),
    service: KanbanService = Depends(get_kanban_service),
) -> ColumnResponse:
    try:
        column = await service.create_column(user, project_id, data.name, color=data.color)
        return ColumnResponse.model_validate(column)
    except ValueError as e:
        raise http_error(e)


@router.put(
    "/columns/{column_id}",
    response_model=ColumnResponse,
    summary="Изменить колонку",
    responses=COMMON_ERRORS,
)
async def update_column(
    project_id: int,
    column_id: int,
    data: ColumnUpdate,
    user: Profile = Depends(get_current_user),
    service: KanbanService = Depends(get_kanban_service),
) -> ColumnResponse:
    try:
        column = await service.update_column(
            user, project_id, column_id, name=data.name, color=data.color
        )
        return ColumnResponse.model_validate(column)
    except ValueError as e:
        raise http_error(e)


@router.delete(
    "/columns/{column_id}",
    response_model=SuccessResponse,
    summary="Удалить колонку",
    description="Задачи не удаляются.",
    responses=COMMON_ERRORS,
)
async def delete_column(
    project_id: int,
    column_id: int,
    user: Profile = Depends(get_current_user),
    service: KanbanService = Depends(get_kanban_service),
) -> SuccessResponse:
    try:
        await service.delete_column(user, project_id, column_id)
        return SuccessResponse(message=f"Column {column_id} deleted successfully")
    except ValueError as e:
        raise http_error(e)
