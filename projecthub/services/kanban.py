"""Kanban board: project columns and the board view."""

import logging
from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession

from ..domain import column_status
from ..models import KanbanColumn, Profile, Task, TaskPriority
from ..repositories import KanbanColumnRepository, TaskRepository
from .access import AccessPolicy
from .activity import ActivityService

logger = logging.getLogger(__name__)

# Доска показывает все корневые задачи проекта
BOARD_TASK_LIMIT = 1000


@dataclass
class BoardColumn:
    column: KanbanColumn
    tasks: list[Task] = field(default_factory=list)


class KanbanService:
    """
    Колонки доски и представление доски.

    Задача попадает в колонку, если её статус соответствует колонке
    ("In Progress" ↔ in-progress). Пользовательские колонки без статуса
    остаются пустыми.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.column_repo = KanbanColumnRepository(db)
        self.task_repo = TaskRepository(db)
        self.access = AccessPolicy(db)
        self.activity = ActivityService(db)

    async def list_columns(self, actor: Profile, project_id: int) -> list[KanbanColumn]:
        await self.access.require_project_access(actor, project_id)
        return await self.column_repo.get_by_project(project_id)

    async def get_board(
        self,
        actor: Profile,
        project_id: int,
        search: str | None = None,
        assignee: int | str | None = None,
        priority: TaskPriority | None = None,
    ) -> list[BoardColumn]:
        """
        Доска проекта: колонки по position, в каждой - корневые задачи
        по kanban_position.
        """
        await self.access.require_project_access(actor, project_id)

        columns = await self.column_repo.get_by_project(project_id)
        tasks = await self.task_repo.get_filtered(
            project_id,
            priority=priority,
            assignee=assignee,
            search=search,
            root_only=True,
            order_by_board=True,
            limit=BOARD_TASK_LIMIT,
        )

        board = [BoardColumn(column=column) for column in columns]
        by_status: dict[str, BoardColumn] = {}
        for entry in board:
            status = column_status(entry.column.name)
            # Несколько колонок с одним статусом: задачи идут в первую
            if status is not None and status.value not in by_status:
                by_status[status.value] = entry

        for task in tasks:
            entry = by_status.get(task.status.value)
            if entry is not None:
                entry.tasks.append(task)
        return board

    async def create_column(
        self, actor: Profile, project_id: int, name: str, color: str | None = None
    ) -> KanbanColumn:
        """Новая колонка встаёт последней."""
        await self.access.require_project_manager(actor, project_id)

        if not name or not name.strip():
            raise ValueError("Column name cannot be empty")

        column = KanbanColumn(
            project_id=project_id,
            name=name.strip(),
            position=await self.column_repo.next_position(project_id),
        )
        if color:
            column.color = color
        column = await self.column_repo.create(column)

        await self.activity.log_project_activity(
            project_id,
            actor.id,
            "column_created",
            f'Added board column "{column.name}"',
            entity_type="column",
            entity_id=column.id,
        )
        return column

    async def _get_column(self, project_id: int, column_id: int) -> KanbanColumn:
        column = await self.column_repo.get_by_id(column_id)
        if not column or column.project_id != project_id:
            raise ValueError(f"Column with id {column_id} not found in project {project_id}")
        return column

    async def update_column(
        self,
        actor: Profile,
        project_id: int,
        column_id: int,
        name: str | None = None,
        color: str | None = None,
    ) -> KanbanColumn:
        await self.access.require_project_manager(actor, project_id)
        column = await self._get_column(project_id, column_id)

        changes = {}
        if name is not None:
            if not name.strip():
                raise ValueError("Column name cannot be empty")
            changes["name"] = name.strip()
        if color is not None:
            changes["color"] = color
        if not changes:
            return column

        column = await self.column_repo.update_obj(column, **changes)
        await self.activity.log_project_activity(
            project_id,
            actor.id,
            "column_updated",
            f'Updated board column "{column.name}"',
            entity_type="column",
            entity_id=column.id,
        )
        return column

    async def delete_column(self, actor: Profile, project_id: int, column_id: int) -> bool:
        """Задачи не удаляются: их статус от колонки не зависит."""
        await self.access.require_project_manager(actor, project_id)
        column = await self._get_column(project_id, column_id)

        name = column.name
        await self.column_repo.delete_obj(column)
        await self.activity.log_project_activity(
            project_id,
            actor.id,
            "column_deleted",
            f'Removed board column "{name}"',
            entity_type="column",
            entity_id=column_id,
        )
        logger.info("Column deleted", extra={"project_id": project_id, "column_id": column_id})
        return True
