"""
Pydantic схемы для API.

DTOs (Data Transfer Objects) - объекты для передачи данных через HTTP.

Зачем отдельные схемы от моделей SQLAlchemy?
1. Контроль над тем, что видит клиент (можем скрыть поля)
2. Валидация входящих данных
3. Разделение concerns (API ≠ Database)
4. Версионирование API (можем менять схемы без изменения БД)
"""

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from ..domain import CommentNode
from ..models import (
    ContentType,
    EventType,
    MemberRole,
    ProjectStatus,
    TaskPriority,
    TaskStatus,
    UserRole,
)

HEX_COLOR = r"^#[0-9A-Fa-f]{6}$"


# ============================================================================
# PROFILE SCHEMAS
# ============================================================================


class ProfileCreate(BaseModel):
    """
    Схема регистрации (POST /profiles).

    Роль передаётся в метаданных регистрации, по умолчанию "user".

    Пример запроса:
    {
        "email": "anna@example.com",
        "display_name": "Anna",
        "metadata": {"role": "admin"}
    }
    """

    email: EmailStr
    display_name: str | None = Field(None, max_length=100)
    full_name: str | None = Field(None, max_length=200)
    metadata: dict[str, Any] = Field(default_factory=dict, description="Метаданные регистрации")


class ProfileUpdate(BaseModel):
    """Все поля опциональные (частичное обновление)."""

    display_name: str | None = Field(None, max_length=100)
    full_name: str | None = Field(None, max_length=200)


class ProfileSummary(BaseModel):
    """Краткий профиль (внутри участника команды)."""

    id: int
    email: str
    display_name: str | None
    full_name: str | None
    avatar_path: str | None

    model_config = ConfigDict(from_attributes=True)


class ProfileResponse(ProfileSummary):
    role: UserRole
    created_at: datetime
    updated_at: datetime


class AvatarResponse(BaseModel):
    profile: ProfileResponse
    url: str


class RoleChange(BaseModel):
    role: UserRole


# ============================================================================
# PROJECT SCHEMAS
# ============================================================================


class ProjectBase(BaseModel):
    """Базовые поля проекта (общие для Create и Response)."""

    name: str = Field(..., min_length=1, max_length=200, description="Название проекта")
    description: str | None = Field(None, description="Описание проекта")
    category: str = Field("general", max_length=50, description="Категория")
    status: ProjectStatus = Field(ProjectStatus.ACTIVE, description="Статус проекта")
    start_date: date | None = None
    end_date: date | None = None


class ProjectCreate(ProjectBase):
    """
    Схема для создания проекта (POST /projects).

    Пример запроса:
    {
        "name": "Website Redesign",
        "category": "design",
        "start_date": "2026-01-10",
        "end_date": "2026-03-01"
    }
    """


class ProjectUpdate(BaseModel):
    """
    Схема для обновления проекта (PUT /projects/{id}).

    Передаются только изменяемые поля.
    """

    name: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = None
    category: str | None = Field(None, max_length=50)
    status: ProjectStatus | None = None
    start_date: date | None = None
    end_date: date | None = None


class ProjectResponse(ProjectBase):
    """
    Пример ответа:
    {
        "id": 1,
        "name": "Website Redesign",
        "status": "active",
        "is_archived": false,
        "created_by": 1,
        "created_at": "2026-01-18T12:00:00",
        "updated_at": "2026-01-18T12:00:00"
    }
    """

    id: int
    created_by: int
    is_archived: bool
    created_at: datetime
    updated_at: datetime

    # from_attributes=True позволяет создавать схему из SQLAlchemy модели:
    # ProjectResponse.model_validate(project_model)
    model_config = ConfigDict(from_attributes=True)


class ProjectStatistics(BaseModel):
    """GET /projects/{id}/stats"""

    project_id: int
    project_name: str
    total_tasks: int
    tasks_by_status: dict[str, int]
    completion_rate: float
    member_count: int
    file_count: int
    storage_bytes: int


# ============================================================================
# TEAM SCHEMAS
# ============================================================================


class MemberAdd(BaseModel):
    """
    Добавить участника по ID профиля или по email.

    Пример:
    {"email": "bob@example.com", "role": "viewer"}
    """

    user_id: int | None = None
    email: EmailStr | None = None
    role: MemberRole = MemberRole.MEMBER


class MemberRoleUpdate(BaseModel):
    role: MemberRole


class MemberResponse(BaseModel):
    id: int
    project_id: int
    user_id: int
    role: MemberRole
    permissions: dict[str, Any]
    joined_at: datetime
    profile: ProfileSummary | None = None

    model_config = ConfigDict(from_attributes=True)


# ============================================================================
# TASK SCHEMAS
# ============================================================================


class TaskBase(BaseModel):
    """Базовые поля задачи."""

    title: str = Field(..., min_length=1, max_length=300, description="Название задачи")
    description: str | None = Field(None, description="Описание задачи")
    status: TaskStatus = Field(default=TaskStatus.TODO, description="Статус задачи")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="Приоритет")
    assignee_id: int | None = Field(None, description="Исполнитель (участник проекта)")
    due_date: date | None = Field(None, description="Дедлайн")


class TaskCreate(TaskBase):
    """
    Схема для создания задачи (POST /tasks).

    Пример запроса:
    {
        "title": "Создать API",
        "project_id": 1,
        "priority": "high",
        "due_date": "2026-01-25"
    }
    """

    project_id: int = Field(..., description="ID проекта")
    parent_task_id: int | None = Field(None, description="ID родительской задачи (для подзадач)")


class TaskUpdate(BaseModel):
    """
    Схема для обновления задачи (PUT /tasks/{id}).

    version - версия, которую видел клиент; при несовпадении ответ 409.
    """

    title: str | None = Field(None, min_length=1, max_length=300)
    description: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    assignee_id: int | None = None
    due_date: date | None = None
    version: int | None = Field(None, ge=1, description="Ожидаемая версия задачи")


class TaskMove(BaseModel):
    """
    Перенос на доске (POST /tasks/{id}/move).

    Пример: {"column": "In Progress"}
    """

    column: str = Field(..., min_length=1, max_length=100)
    version: int | None = Field(None, ge=1)


class SubtaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=300)
    description: str | None = None
    priority: TaskPriority = TaskPriority.MEDIUM
    assignee_id: int | None = None
    due_date: date | None = None


class SubtaskReorder(BaseModel):
    """
    Перетаскивание подзадачи: индексы в текущем порядке отображения.

    Пример: {"source_index": 2, "destination_index": 0}
    """

    source_index: int = Field(..., ge=0)
    destination_index: int = Field(..., ge=0)


class TaskResponse(TaskBase):
    """
    Схема для ответа API (GET /tasks/{id}).

    kanban_column всегда соответствует status.
    """

    id: int
    project_id: int
    parent_task_id: int | None
    created_by: int
    is_subtask: bool
    subtask_order: int | None
    kanban_column: str | None
    kanban_position: int | None
    version: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TaskDetailResponse(TaskResponse):
    """Задача с подзадачами (по порядку) и процентом выполнения."""

    subtasks: list[TaskResponse] = []
    progress: int = 0


class TaskProgress(BaseModel):
    task_id: int
    progress: int = Field(..., ge=0, le=100)


class TaskStatistics(BaseModel):
    task_id: int
    task_title: str
    total_subtasks: int
    completed_subtasks: int
    progress: int
    comments_count: int
    is_overdue: bool
    days_until_due: int | None


# ============================================================================
# COMMENT SCHEMAS
# ============================================================================


class CommentCreate(BaseModel):
    """
    Схема для создания комментария (POST /tasks/{task_id}/comments).

    Пример:
    {
        "comment": "@bob посмотри, пожалуйста",
        "reply_to": 12,
        "mentions": [3]
    }
    """

    comment: str = Field(..., min_length=1, description="Текст комментария")
    content_type: ContentType = ContentType.PLAIN
    reply_to: int | None = Field(None, description="ID комментария, на который отвечаем")
    mentions: list[int] = Field(default_factory=list, description="ID упомянутых профилей")
    attachments: list[dict[str, Any]] = Field(default_factory=list)


class CommentUpdate(BaseModel):
    comment: str = Field(..., min_length=1)
    mentions: list[int] | None = None


class CommentResponse(BaseModel):
    id: int
    task_id: int
    user_id: int
    comment: str
    content_type: ContentType
    reply_to: int | None
    mentions: list[int]
    attachments: list[dict[str, Any]]
    edited: bool
    edited_at: datetime | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CommentNodeResponse(CommentResponse):
    """Комментарий в дереве: имя автора и вложенные ответы."""

    author_name: str
    replies: list["CommentNodeResponse"] = []

    @classmethod
    def from_node(cls, node: CommentNode) -> "CommentNodeResponse":
        base = CommentResponse.model_validate(node.comment).model_dump()
        return cls(
            **base,
            author_name=node.author_name,
            replies=[cls.from_node(reply) for reply in node.replies],
        )


CommentNodeResponse.model_rebuild()


class CommentTreeResponse(BaseModel):
    """
    Пример ответа:
    {
        "total": 3,
        "comments": [
            {"id": 7, "author_name": "Anna", "replies": [{"id": 8, ...}], ...},
            {"id": 5, "author_name": "Unknown User", "replies": [], ...}
        ]
    }
    """

    total: int
    comments: list[CommentNodeResponse]


# ============================================================================
# KANBAN SCHEMAS
# ============================================================================


class ColumnCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    color: str | None = Field(None, pattern=HEX_COLOR, description="Цвет в формате #RRGGBB")


class ColumnUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    color: str | None = Field(None, pattern=HEX_COLOR)


class ColumnResponse(BaseModel):
    id: int
    project_id: int
    name: str
    position: int
    color: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BoardColumnResponse(ColumnResponse):
    status: TaskStatus | None = Field(None, description="Статус задач колонки (None - своя колонка)")
    tasks: list[TaskResponse] = []


# ============================================================================
# CALENDAR SCHEMAS
# ============================================================================


class EventCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    event_date: date
    event_type: EventType = EventType.MILESTONE


class EventUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = None
    event_date: date | None = None
    event_type: EventType | None = None


class EventResponse(BaseModel):
    id: int
    project_id: int
    title: str
    description: str | None
    event_date: date
    event_type: EventType
    created_by: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ============================================================================
# FILE SCHEMAS
# ============================================================================


class FileResponse(BaseModel):
    id: int
    project_id: int
    filename: str
    file_path: str
    file_size: int
    file_type: str
    uploaded_by: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ============================================================================
# ACTIVITY / NOTIFICATION SCHEMAS
# ============================================================================


class ActivityResponse(BaseModel):
    id: int
    project_id: int
    user_id: int | None
    activity_type: str
    description: str
    entity_type: str | None
    entity_id: int | None
    metadata: dict[str, Any] = Field(default_factory=dict, validation_alias="metadata_")
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class NotificationResponse(BaseModel):
    id: int
    user_id: int
    project_id: int | None
    type: str
    title: str
    message: str
    read_status: bool
    metadata: dict[str, Any] = Field(default_factory=dict, validation_alias="metadata_")
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UnreadCount(BaseModel):
    unread: int


class MarkedRead(BaseModel):
    updated: int


# ============================================================================
# ADMIN SCHEMAS
# ============================================================================


class SystemStatistics(BaseModel):
    total_users: int
    admin_users: int
    total_projects: int
    active_projects: int
    total_tasks: int
    tasks_by_status: dict[str, int]
    total_comments: int


# ============================================================================
# COMMON SCHEMAS
# ============================================================================


class ErrorDetail(BaseModel):
    """
    Детали ошибки для конкретного поля.

    Пример:
    {
        "field": "email",
        "message": "Некорректный формат email"
    }
    """

    field: str = Field(..., description="Название поля с ошибкой")
    message: str = Field(..., description="Описание ошибки")


class ErrorBody(BaseModel):
    """
    Тело ошибки с кодом и деталями.

    Примеры кодов:
    - VALIDATION_ERROR: ошибка валидации полей
    - NOT_FOUND: ресурс не найден
    - FORBIDDEN: нет прав на действие
    - CONFLICT: устаревшая версия записи
    - INTERNAL_ERROR: внутренняя ошибка сервера
    """

    code: str = Field(..., description="Код ошибки (VALIDATION_ERROR, NOT_FOUND, etc.)")
    message: str = Field(..., description="Человекочитаемое сообщение")
    details: list[ErrorDetail] | None = Field(
        default=None, description="Список ошибок по полям (для валидации)"
    )


class ErrorResponse(BaseModel):
    """
    Единый формат ответа для всех ошибок API.

    Пример:
    {
        "error": {
            "code": "NOT_FOUND",
            "message": "Task with id 999 not found",
            "details": null
        }
    }
    """

    error: ErrorBody


class SuccessResponse(BaseModel):
    """
    Схема для успешных операций без возврата данных.

    Пример:
    {
        "message": "Project archived successfully"
    }
    """

    message: str
