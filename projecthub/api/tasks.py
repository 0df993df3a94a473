"""
API endpoints для работы с задачами.

Задачи - самая сложная часть API, включающая:
- CRUD операции
- Перенос по доске (status ↔ kanban_column)
- Подзадачи: порядок, перетаскивание, отметка выполнения
- Прогресс родителя по подзадачам
- Фильтрацию и поиск
"""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..domain import sort_by_order
from ..models import Profile, TaskPriority, TaskStatus
from ..repositories import UNASSIGNED
from ..services import TaskService
from .dependencies import get_current_user, get_task_service
from .errors import http_error
from .schemas import (
    ErrorResponse,
    SubtaskCreate,
    SubtaskReorder,
    SuccessResponse,
    TaskCreate,
    TaskDetailResponse,
    TaskMove,
    TaskProgress,
    TaskResponse,
    TaskStatistics,
    TaskUpdate,
)

router = APIRouter(prefix="/tasks", tags=["tasks"])

COMMON_ERRORS = {
    403: {"model": ErrorResponse, "description": "Нет доступа к проекту задачи"},
    404: {"model": ErrorResponse, "description": "Задача не найдена"},
}


async def _detail(service: TaskService, user: Profile, task_id: int) -> TaskDetailResponse:
    task = await service.get_task(user, task_id, full=True)
    progress = await service.calculate_task_progress(task_id)
    response = TaskDetailResponse.model_validate(task)
    response.subtasks = [TaskResponse.model_validate(s) for s in sort_by_order(task.subtasks)]
    response.progress = progress
    return response


# ============================================================================
# CREATE TASK
# ============================================================================


@router.post(
    "",
    response_model=TaskResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Создать задачу",
    description="""
    Создать новую задачу.

    Бизнес-правила:
    - Проект должен существовать и не быть архивным
    - Исполнитель - участник проекта
    - Родительская задача (если указана) должна быть в том же проекте
    - Новая подзадача встаёт первой, остальные сдвигаются вниз
    """,
    responses={
        201: {"description": "Задача создана"},
        400: {"model": ErrorResponse, "description": "Ошибка валидации"},
        403: {"model": ErrorResponse, "description": "Нет права на изменения в проекте"},
    },
)
async def create_task(
    data: TaskCreate,
    user: Profile = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> TaskResponse:
    """
    Пример запроса:
    ```json
    {
        "title": "Создать REST API",
        "project_id": 1,
        "priority": "high",
        "due_date": "2026-01-25"
    }
    ```
    """
    try:
        task = await service.create_task(user, **data.model_dump())
        return TaskResponse.model_validate(task)
    except ValueError as e:
        raise http_error(e)


# ============================================================================
# GET TASKS
# ============================================================================


@router.get(
    "",
    response_model=list[TaskResponse],
    summary="Задачи проекта",
    description="""
    Задачи проекта с фильтрами (комбинируются через AND).

    **Фильтры:**
    - status, priority
    - assignee: ID исполнителя или "unassigned"
    - search: подстрока в названии или описании
    - root_only: без подзадач
    """,
    responses=COMMON_ERRORS,
)
async def get_tasks(
    project_id: int = Query(..., description="ID проекта"),
    status_filter: TaskStatus | None = Query(None, alias="status", description="Статус"),
    priority: TaskPriority | None = Query(None, description="Приоритет"),
    assignee: str | None = Query(None, description='ID исполнителя или "unassigned"'),
    search: str | None = Query(None, max_length=200, description="Поиск по тексту"),
    root_only: bool = Query(False, description="Только корневые задачи"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    user: Profile = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> list[TaskResponse]:
    """
    Примеры запросов:
    ```
    GET /tasks?project_id=1
    GET /tasks?project_id=1&status=in-progress&assignee=unassigned
    GET /tasks?project_id=1&search=api&root_only=true
    ```
    """
    if assignee is not None and assignee != UNASSIGNED and not assignee.isdigit():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f'assignee must be a profile id or "{UNASSIGNED}"',
        )
    try:
        tasks = await service.list_tasks(
            user,
            project_id,
            status=status_filter,
            priority=priority,
            assignee=assignee,
            search=search,
            root_only=root_only,
            skip=skip,
            limit=limit,
        )
        return [TaskResponse.model_validate(t) for t in tasks]
    except ValueError as e:
        raise http_error(e)


@router.get(
    "/{task_id}",
    response_model=TaskDetailResponse,
    summary="Получить задачу",
    description="Задача с подзадачами (по порядку) и процентом выполнения.",
    responses=COMMON_ERRORS,
)
async def get_task(
    task_id: int,
    user: Profile = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> TaskDetailResponse:
    try:
        return await _detail(service, user, task_id)
    except ValueError as e:
        raise http_error(e)


# ============================================================================
# UPDATE / MOVE / DELETE
# ============================================================================


@router.put(
    "/{task_id}",
    response_model=TaskResponse,
    summary="Обновить задачу",
    description="""
    Частичное обновление задачи.

    - Смена статуса переносит задачу в соответствующую колонку доски
    - version (необязательно): если задача уже изменена кем-то ещё → 409
    """,
    responses={
        400: {"model": ErrorResponse, "description": "Ошибка валидации"},
        409: {"model": ErrorResponse, "description": "Задача изменена другим пользователем"},
        **COMMON_ERRORS,
    },
)
async def update_task(
    task_id: int,
    data: TaskUpdate,
    user: Profile = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> TaskResponse:
    changes = data.model_dump(exclude_unset=True)
    version = changes.pop("version", None)
    try:
        task = await service.update_task(user, task_id, version=version, **changes)
        return TaskResponse.model_validate(task)
    except ValueError as e:
        raise http_error(e)


@router.post(
    "/{task_id}/move",
    response_model=TaskResponse,
    summary="Перенести задачу в колонку",
    description="""
    Колонка по имени ("In Progress") или slug ("in-progress").

    Статус берётся из колонки, задача встаёт первой в колонке.
    Колонка без статуса (своя колонка проекта) → todo.
    """,
    responses={409: {"model": ErrorResponse, "description": "Версия устарела"}, **COMMON_ERRORS},
)
async def move_task(
    task_id: int,
    data: TaskMove,
    user: Profile = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> TaskResponse:
    try:
        task = await service.move_task(user, task_id, data.column, version=data.version)
        return TaskResponse.model_validate(task)
    except ValueError as e:
        raise http_error(e)


@router.delete(
    "/{task_id}",
    response_model=SuccessResponse,
    summary="Удалить задачу",
    description="""
    Удалить задачу (только автор или администратор).

    ⚠️ Удаляются также подзадачи и комментарии.
    """,
    responses=COMMON_ERRORS,
)
async def delete_task(
    task_id: int,
    user: Profile = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> SuccessResponse:
    try:
        await service.delete_task(user, task_id)
        return SuccessResponse(message=f"Task {task_id} deleted successfully")
    except ValueError as e:
        raise http_error(e)


# ============================================================================
# SUBTASKS
# ============================================================================


@router.get(
    "/{task_id}/subtasks",
    response_model=list[TaskResponse],
    summary="Подзадачи",
    description="Подзадачи в порядке отображения (subtask_order).",
    responses=COMMON_ERRORS,
)
async def get_subtasks(
    task_id: int,
    user: Profile = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> list[TaskResponse]:
    try:
        return [TaskResponse.model_validate(t) for t in await service.list_subtasks(user, task_id)]
    except ValueError as e:
        raise http_error(e)


@router.post(
    "/{task_id}/subtasks",
    response_model=TaskResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Создать подзадачу",
    description="Новая подзадача встаёт первой в списке.",
    responses={400: {"model": ErrorResponse, "description": "Ошибка валидации"}, **COMMON_ERRORS},
)
async def create_subtask(
    task_id: int,
    data: SubtaskCreate,
    user: Profile = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> TaskResponse:
    try:
        task = await service.create_subtask(user, task_id, **data.model_dump())
        return TaskResponse.model_validate(task)
    except ValueError as e:
        raise http_error(e)


@router.post(
    "/{task_id}/subtasks/reorder",
    response_model=list[TaskResponse],
    summary="Перетащить подзадачу",
    description="""
    Перенести подзадачу с позиции source_index на destination_index.

    Все изменения порядка сохраняются одной транзакцией.
    """,
    responses={400: {"model": ErrorResponse, "description": "Индекс вне списка"}, **COMMON_ERRORS},
)
async def reorder_subtasks(
    task_id: int,
    data: SubtaskReorder,
    user: Profile = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> list[TaskResponse]:
    try:
        subtasks = await service.reorder_subtasks(
            user, task_id, data.source_index, data.destination_index
        )
        return [TaskResponse.model_validate(t) for t in subtasks]
    except ValueError as e:
        raise http_error(e)


@router.post(
    "/{task_id}/toggle",
    response_model=TaskResponse,
    summary="Отметить подзадачу",
    description="done ↔ todo. Статус родителя пересчитывается.",
    responses=COMMON_ERRORS,
)
async def toggle_subtask(
    task_id: int,
    user: Profile = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> TaskResponse:
    try:
        return TaskResponse.model_validate(await service.toggle_subtask(user, task_id))
    except ValueError as e:
        raise http_error(e)


# ============================================================================
# PROGRESS / STATISTICS
# ============================================================================


@router.get(
    "/{task_id}/progress",
    response_model=TaskProgress,
    summary="Прогресс задачи",
    description="Процент выполненных подзадач (0, если подзадач нет).",
    responses=COMMON_ERRORS,
)
async def get_task_progress(
    task_id: int,
    user: Profile = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> TaskProgress:
    try:
        return TaskProgress(task_id=task_id, progress=await service.get_task_progress(user, task_id))
    except ValueError as e:
        raise http_error(e)


@router.get(
    "/{task_id}/stats",
    response_model=TaskStatistics,
    summary="Статистика задачи",
    responses=COMMON_ERRORS,
)
async def get_task_stats(
    task_id: int,
    user: Profile = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> TaskStatistics:
    try:
        return TaskStatistics(**await service.get_task_statistics(user, task_id))
    except ValueError as e:
        raise http_error(e)
