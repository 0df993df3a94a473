"""
API endpoints для работы с проектами и командой проекта.

URL структура:
- GET    /projects                         - проекты пользователя
- GET    /projects/{id}                    - один проект
- POST   /projects                         - создать проект (администратор)
- PUT    /projects/{id}                    - обновить проект
- DELETE /projects/{id}                    - удалить проект (администратор)
- POST   /projects/{id}/archive            - архивировать
- POST   /projects/{id}/unarchive          - восстановить
- GET    /projects/{id}/stats              - статистика
- GET    /projects/{id}/members            - команда
- POST   /projects/{id}/members            - добавить участника
- PUT    /projects/{id}/members/{mid}      - сменить роль
- DELETE /projects/{id}/members/{mid}      - убрать из команды
"""

from fastapi import APIRouter, Depends, Query, status

from ..models import Profile
from ..services import ProjectService
from .dependencies import get_current_user, get_project_service
from .errors import http_error
from .schemas import (
    ErrorResponse,
    MemberAdd,
    MemberResponse,
    MemberRoleUpdate,
    ProjectCreate,
    ProjectResponse,
    ProjectStatistics,
    ProjectUpdate,
    SuccessResponse,
)

router = APIRouter(prefix="/projects", tags=["projects"])

COMMON_ERRORS = {
    403: {"model": ErrorResponse, "description": "Нет доступа"},
    404: {"model": ErrorResponse, "description": "Проект не найден"},
}


# ============================================================================
# CREATE PROJECT
# ============================================================================


@router.post(
    "",
    response_model=ProjectResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Создать проект",
    description="""
    Создать новый проект (только администратор).

    Бизнес-правила:
    - Название обязательно и уникально
    - Дата окончания не раньше даты начала
    - Создаются колонки доски: To Do, In Progress, Review, Done
    - Создатель становится менеджером проекта
    """,
    responses={
        201: {"description": "Проект успешно создан"},
        400: {"model": ErrorResponse, "description": "Ошибка валидации"},
        403: {"model": ErrorResponse, "description": "Нужна роль администратора"},
    },
)
async def create_project(
    data: ProjectCreate,
    user: Profile = Depends(get_current_user),
    service: ProjectService = Depends(get_project_service),
) -> ProjectResponse:
    """
    Пример запроса:
    ```json
    {
        "name": "Website Redesign",
        "category": "design",
        "start_date": "2026-01-10"
    }
    ```
    """
    try:
        project = await service.create_project(user, **data.model_dump())
        return ProjectResponse.model_validate(project)
    except ValueError as e:
        raise http_error(e)


# ============================================================================
# GET PROJECTS
# ============================================================================


@router.get(
    "",
    response_model=list[ProjectResponse],
    summary="Получить список проектов",
    description="""
    Администратор видит все проекты, остальные - проекты, где состоят в команде.

    **Пагинация:** skip / limit (по умолчанию 20)
    """,
)
async def get_projects(
    skip: int = Query(0, ge=0, description="Количество записей для пропуска (offset)"),
    limit: int = Query(20, ge=1, le=100, description="Максимальное количество записей (1-100)"),
    include_archived: bool = Query(False, description="Включать ли архивные проекты"),
    user: Profile = Depends(get_current_user),
    service: ProjectService = Depends(get_project_service),
) -> list[ProjectResponse]:
    """
    Примеры запросов:
    ```
    GET /projects                          # первые 20 проектов
    GET /projects?skip=20&limit=10         # проекты 21-30
    GET /projects?include_archived=true    # с архивными
    ```
    """
    projects = await service.list_projects(
        user, include_archived=include_archived, skip=skip, limit=limit
    )
    return [ProjectResponse.model_validate(p) for p in projects]


@router.get(
    "/{project_id}",
    response_model=ProjectResponse,
    summary="Получить проект по ID",
    responses=COMMON_ERRORS,
)
async def get_project(
    project_id: int,
    user: Profile = Depends(get_current_user),
    service: ProjectService = Depends(get_project_service),
) -> ProjectResponse:
    try:
        project = await service.get_project(user, project_id)
        return ProjectResponse.model_validate(project)
    except ValueError as e:
        raise http_error(e)


# ============================================================================
# UPDATE / ARCHIVE / DELETE
# ============================================================================


@router.put(
    "/{project_id}",
    response_model=ProjectResponse,
    summary="Обновить проект",
    description="Частичное обновление проекта (администратор или менеджер проекта).",
    responses={400: {"model": ErrorResponse, "description": "Ошибка валидации"}, **COMMON_ERRORS},
)
async def update_project(
    project_id: int,
    data: ProjectUpdate,
    user: Profile = Depends(get_current_user),
    service: ProjectService = Depends(get_project_service),
) -> ProjectResponse:
    try:
        project = await service.update_project(
            user, project_id, **data.model_dump(exclude_unset=True)
        )
        return ProjectResponse.model_validate(project)
    except ValueError as e:
        raise http_error(e)


@router.post(
    "/{project_id}/archive",
    response_model=ProjectResponse,
    summary="Архивировать проект",
    description="Архивный проект не показывается в списке и не принимает новые задачи.",
    responses=COMMON_ERRORS,
)
async def archive_project(
    project_id: int,
    user: Profile = Depends(get_current_user),
    service: ProjectService = Depends(get_project_service),
) -> ProjectResponse:
    try:
        return ProjectResponse.model_validate(await service.archive_project(user, project_id))
    except ValueError as e:
        raise http_error(e)


@router.post(
    "/{project_id}/unarchive",
    response_model=ProjectResponse,
    summary="Восстановить проект из архива",
    responses=COMMON_ERRORS,
)
async def unarchive_project(
    project_id: int,
    user: Profile = Depends(get_current_user),
    service: ProjectService = Depends(get_project_service),
) -> ProjectResponse:
    try:
        return ProjectResponse.model_validate(await service.unarchive_project(user, project_id))
    except ValueError as e:
        raise http_error(e)


@router.delete(
    "/{project_id}",
    response_model=SuccessResponse,
    summary="Удалить проект",
    description="""
    Удалить проект со всеми задачами, комментариями, событиями и файлами.

    ⚠️ ВНИМАНИЕ: операция необратима! Для скрытия используйте archive.
    """,
    responses=COMMON_ERRORS,
)
async def delete_project(
    project_id: int,
    user: Profile = Depends(get_current_user),
    service: ProjectService = Depends(get_project_service),
) -> SuccessResponse:
    try:
        await service.delete_project(user, project_id)
        return SuccessResponse(message=f"Project {project_id} deleted successfully")
    except ValueError as e:
        raise http_error(e)


@router.get(
    "/{project_id}/stats",
    response_model=ProjectStatistics,
    summary="Статистика проекта",
    description="Задачи по статусам, процент выполнения, команда и файлы.",
    responses=COMMON_ERRORS,
)
async def get_project_stats(
    project_id: int,
    user: Profile = Depends(get_current_user),
    service: ProjectService = Depends(get_project_service),
) -> ProjectStatistics:
    try:
        return ProjectStatistics(**await service.get_project_statistics(user, project_id))
    except ValueError as e:
        raise http_error(e)


# ============================================================================
# TEAM
# ============================================================================


@router.get(
    "/{project_id}/members",
    response_model=list[MemberResponse],
    summary="Команда проекта",
    responses=COMMON_ERRORS,
)
async def get_members(
    project_id: int,
    user: Profile = Depends(get_current_user),
    service: ProjectService = Depends(get_project_service),
) -> list[MemberResponse]:
    try:
        members = await service.list_members(user, project_id)
        return [MemberResponse.model_validate(m) for m in members]
    except ValueError as e:
        raise http_error(e)


@router.post(
    "/{project_id}/members",
    response_model=MemberResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Добавить участника",
    description="""
    Добавить пользователя в команду по user_id или email.

    Доступно администратору и менеджеру проекта.
    Роли: member, manager, viewer (только чтение).
    """,
    responses={400: {"model": ErrorResponse, "description": "Уже в команде"}, **COMMON_ERRORS},
)
async def add_member(
    project_id: int,
    data: MemberAdd,
    user: Profile = Depends(get_current_user),
    service: ProjectService = Depends(get_project_service),
) -> MemberResponse:
    try:
        member = await service.add_member(
            user, project_id, user_id=data.user_id, email=data.email, role=data.role
        )
        return MemberResponse.model_validate(member)
    except ValueError as e:
        raise http_error(e)


@router.put(
    "/{project_id}/members/{member_id}",
    response_model=MemberResponse,
    summary="Сменить роль участника",
    responses=COMMON_ERRORS,
)
async def change_member_role(
    project_id: int,
    member_id: int,
    data: MemberRoleUpdate,
    user: Profile = Depends(get_current_user),
    service: ProjectService = Depends(get_project_service),
) -> MemberResponse:
    try:
        member = await service.change_member_role(user, project_id, member_id, data.role)
        return MemberResponse.model_validate(member)
    except ValueError as e:
        raise http_error(e)


@router.delete(
    "/{project_id}/members/{member_id}",
    response_model=SuccessResponse,
    summary="Убрать участника из команды",
    responses=COMMON_ERRORS,
)
async def remove_member(
    project_id: int,
    member_id: int,
    user: Profile = Depends(get_current_user),
    service: ProjectService = Depends(get_project_service),
) -> SuccessResponse:
    try:
        await service.remove_member(user, project_id, member_id)
        return SuccessResponse(message=f"Member {member_id} removed from project {project_id}")
    except ValueError as e:
        raise http_error(e)
