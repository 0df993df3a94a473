"""Task repository with specific queries."""

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models import Task, TaskPriority, TaskStatus
from .base import BaseRepository

# Значение фильтра assignee, означающее "без исполнителя"
UNASSIGNED = "unassigned"


class TaskRepository(BaseRepository[Task]):
    """
    Репозиторий для работы с задачами.

    Включает методы для:
    - Работы с подзадачами (иерархия и порядок)
    - Фильтрации списка и доски (статус, приоритет, исполнитель, поиск)
    - Подсчёта прогресса
    """

    def __init__(self, db: AsyncSession):
        super().__init__(Task, db)

    async def get_by_id_full(self, id: int) -> Task | None:
        """
        Получить задачу с подзадачами и родителем (eager loading).

        Использование:
            task = await repo.get_by_id_full(1)
            for subtask in task.subtasks:  # без дополнительного запроса
                print(subtask.title)
        """
        result = await self.db.execute(
            select(Task)
            .options(
                selectinload(Task.subtasks),
                selectinload(Task.parent_task),
            )
            .where(Task.id == id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_subtasks(self, parent_task_id: int) -> list[Task]:
        """
        Подзадачи в порядке отображения.

        SQL эквивалент:
            SELECT * FROM tasks
            WHERE parent_task_id = {parent_task_id}
            ORDER BY COALESCE(subtask_order, 0), id;

        id как второй ключ сортировки - стабильный порядок при одинаковом
        subtask_order (дубликаты возможны после сбоев старых клиентов).
        """
        result = await self.db.execute(
            select(Task)
            .where(Task.parent_task_id == parent_task_id)
            .order_by(func.coalesce(Task.subtask_order, 0), Task.id)
        )
        return list(result.scalars().all())

    async def count_subtasks(self, parent_task_id: int) -> tuple[int, int]:
        """
        (всего подзадач, выполненных подзадач).

        SQL эквивалент:
            SELECT COUNT(*), COUNT(*) FILTER (WHERE status = 'done')
            FROM tasks WHERE parent_task_id = {parent_task_id};
        """
        total = await self.db.execute(
            select(func.count()).select_from(Task).where(Task.parent_task_id == parent_task_id)
        )
        done = await self.db.execute(
            select(func.count())
            .select_from(Task)
            .where(and_(Task.parent_task_id == parent_task_id, Task.status == TaskStatus.DONE))
        )
        return total.scalar_one(), done.scalar_one()

    async def get_filtered(
        self,
        project_id: int,
        status: TaskStatus | None = None,
        priority: TaskPriority | None = None,
        assignee: int | str | None = None,
        search: str | None = None,
        root_only: bool = False,
        order_by_board: bool = False,
        skip: int = 0,
        limit: int = 100,
    ) -> list[Task]:
        """
        Задачи проекта с фильтрами. Все фильтры комбинируются через AND.

        Args:
            assignee: ID исполнителя или "unassigned" (без исполнителя)
            search: подстрока в title или description (без учёта регистра)
            root_only: только корневые задачи (без подзадач)
            order_by_board: сортировка по kanban_position (для доски),
                иначе новые задачи первыми

        SQL эквивалент:
            SELECT * FROM tasks
            WHERE project_id = {project_id}
              AND status = {status}          -- если указан
              AND priority = {priority}      -- если указан
              AND assignee_id = {assignee}   -- или IS NULL для "unassigned"
              AND (title ILIKE '%s%' OR description ILIKE '%s%')
              AND is_subtask = false         -- root_only
            OFFSET {skip} LIMIT {limit};
        """
        conditions = [Task.project_id == project_id]

        if status is not None:
            conditions.append(Task.status == status)

        if priority is not None:
            conditions.append(Task.priority == priority)

        if assignee == UNASSIGNED:
            conditions.append(Task.assignee_id.is_(None))
        elif assignee is not None:
            conditions.append(Task.assignee_id == int(assignee))

        if search:
            pattern = f"%{search.strip()}%"
            conditions.append(or_(Task.title.ilike(pattern), Task.description.ilike(pattern)))

        if root_only:
            conditions.append(Task.is_subtask.is_(False))

        query = select(Task).where(and_(*conditions))
        if order_by_board:
            query = query.order_by(func.coalesce(Task.kanban_position, 0), Task.id)
        else:
            query = query.order_by(Task.created_at.desc(), Task.id.desc())

        result = await self.db.execute(query.offset(skip).limit(limit))
        return list(result.scalars().all())

    async def count_by_status(self, project_id: int | None = None) -> dict[str, int]:
        """
        Количество задач по статусам.

        SQL эквивалент:
            SELECT status, COUNT(*) FROM tasks [WHERE project_id = ...] GROUP BY status;
        """
        query = select(Task.status, func.count()).group_by(Task.status)
        if project_id is not None:
            query = query.where(Task.project_id == project_id)
        result = await self.db.execute(query)
        counts = {status.value: 0 for status in TaskStatus}
        for status, count in result.all():
            counts[TaskStatus(status).value] = count
        return counts
