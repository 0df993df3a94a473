"""Task service with business logic."""

import logging
from datetime import date
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from ..domain import (
    column_move_fields,
    column_to_status,
    move_item,
    order_assignments,
    shift_for_insert,
    sort_by_order,
    status_fields,
)
from ..models import Profile, Task, TaskPriority, TaskStatus
from ..repositories import ProjectMemberRepository, TaskCommentRepository, TaskRepository
from .access import AccessPolicy
from .activity import ActivityService
from .exceptions import ConflictError

logger = logging.getLogger(__name__)

# Поля, которые можно менять через update_task
UPDATABLE_FIELDS = ("title", "description", "status", "priority", "assignee_id", "due_date")


def progress_percent(total: int, done: int) -> int:
    """Доля выполненных подзадач в процентах, половина округляется вверх; 0 без подзадач."""
    if total == 0:
        return 0
    return (200 * done + total) // (2 * total)


class TaskService:
    """
    Сервис для работы с задачами.

    Самый нагруженный сервис:
    - Задачи и подзадачи (порядок через subtask_order)
    - Пара status / kanban_column (пишется только через _write)
    - Прогресс родителя по подзадачам
    - Версия записи для оптимистичной блокировки
    """

    def __init__(self, db: AsyncSession):
        """Инициализация сервиса с несколькими репозиториями."""
        self.db = db
        self.task_repo = TaskRepository(db)
        self.member_repo = ProjectMemberRepository(db)
        self.comment_repo = TaskCommentRepository(db)
        self.access = AccessPolicy(db)
        self.activity = ActivityService(db)

    # ------------------------------------------------------------------
    # Единая точка записи
    # ------------------------------------------------------------------

    async def _write(self, task: Task, **fields: Any) -> Task:
        """
        Записать изменения задачи.

        - status всегда уходит вместе с kanban_column (и наоборот)
        - version увеличивается на каждую запись
        """
        if "status" in fields:
            fields.update(status_fields(fields["status"]))
        elif "kanban_column" in fields:
            fields.update(status_fields(column_to_status(fields["kanban_column"])))

        fields["version"] = task.version + 1
        return await self.task_repo.update_obj(task, **fields)

    @staticmethod
    def _check_version(task: Task, expected: int | None) -> None:
        if expected is not None and expected != task.version:
            raise ConflictError("Task", task.id, expected, task.version)

    async def _get(self, task_id: int) -> Task:
        task = await self.task_repo.get_by_id(task_id)
        if not task:
            raise ValueError(f"Task with id {task_id} not found")
        return task

    async def _get_accessible(self, actor: Profile, task_id: int) -> Task:
        task = await self._get(task_id)
        await self.access.require_project_access(actor, task.project_id)
        return task

    async def _get_writable(self, actor: Profile, task_id: int) -> Task:
        task = await self._get(task_id)
        await self.access.require_project_write(actor, task.project_id)
        return task

    async def _check_assignee(self, project_id: int, assignee_id: int | None) -> None:
        if assignee_id is None:
            return
        if await self.member_repo.get_membership(project_id, assignee_id) is None:
            raise ValueError(f"Assignee {assignee_id} is not a member of project {project_id}")

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    async def create_task(
        self,
        actor: Profile,
        title: str,
        project_id: int,
        description: str | None = None,
        status: TaskStatus = TaskStatus.TODO,
        priority: TaskPriority = TaskPriority.MEDIUM,
        assignee_id: int | None = None,
        due_date: date | None = None,
        parent_task_id: int | None = None,
    ) -> Task:
        """
        Создать новую задачу с валидацией бизнес-правил.

        Returns:
            Созданная задача

        Raises:
            ValueError: Если валидация не прошла
            PermissionError: Нет доступа к проекту

        Бизнес-правила:
        1. Название обязательно
        2. Проект существует, доступен и не архивирован
        3. Исполнитель - участник проекта
        4. Родительская задача существует и в том же проекте
        5. Подзадача вставляется первой: соседи сдвигаются на +1
        6. kanban_column пишется вместе со status
        """
        # 1. ВАЛИДАЦИЯ: Название
        if not title or not title.strip():
            raise ValueError("Task title cannot be empty")

        # 2. ВАЛИДАЦИЯ: Проект существует и активен
        project = await self.access.require_project_write(actor, project_id)
        if project.is_archived:
            raise ValueError("Cannot add tasks to archived project")

        # 3. ВАЛИДАЦИЯ: Исполнитель
        await self._check_assignee(project_id, assignee_id)

        # 4. ВАЛИДАЦИЯ: Родительская задача (если указана)
        parent_task = None
        if parent_task_id is not None:
            parent_task = await self.task_repo.get_by_id(parent_task_id)
            if not parent_task:
                raise ValueError(f"Parent task with id {parent_task_id} not found")
            if parent_task.project_id != project_id:
                raise ValueError(
                    f"Parent task is in different project "
                    f"(parent: {parent_task.project_id}, current: {project_id})"
                )

        # 5. ПОРЯДОК: освободить позицию 0 (отдельная запись на каждого соседа)
        if parent_task is not None:
            siblings = await self.task_repo.get_subtasks(parent_task.id)
            for sibling, new_order in shift_for_insert(siblings):
                await self._write(sibling, subtask_order=new_order)

        # 6. СОЗДАНИЕ
        task = Task(
            title=title.strip(),
            description=description.strip() if description else None,
            project_id=project_id,
            created_by=actor.id,
            assignee_id=assignee_id,
            priority=priority,
            due_date=due_date,
            parent_task_id=parent_task_id,
            is_subtask=parent_task is not None,
            subtask_order=0 if parent_task is not None else None,
            kanban_position=0,
            version=1,
            **status_fields(status),
        )
        task = await self.task_repo.create(task)

        await self.activity.log_project_activity(
            project_id,
            actor.id,
            "subtask_created" if parent_task else "task_created",
            f'Created {"subtask" if parent_task else "task"} "{task.title}"',
            entity_type="task",
            entity_id=task.id,
        )
        logger.info("Task created", extra={"task_id": task.id, "project_id": project_id})

        # 7. ПРОГРЕСС родителя
        if parent_task is not None:
            await self._sync_parent_progress(parent_task.id)

        return task

    async def get_task(self, actor: Profile, task_id: int, full: bool = False) -> Task:
        """
        Получить задачу по ID.

        Args:
            full: Загружать ли подзадачи и родителя (eager loading)

        Raises:
            ValueError: Если задача не найдена
            PermissionError: Нет доступа к проекту задачи
        """
        task = await self._get_accessible(actor, task_id)
        if full:
            task = await self.task_repo.get_by_id_full(task_id)
        return task

    async def list_tasks(
        self,
        actor: Profile,
        project_id: int,
        status: TaskStatus | None = None,
        priority: TaskPriority | None = None,
        assignee: int | str | None = None,
        search: str | None = None,
        root_only: bool = False,
        skip: int = 0,
        limit: int = 100,
    ) -> list[Task]:
        """
        Задачи проекта с фильтрами.

        Примеры:
            # Невыполненные задачи без исполнителя
            await service.list_tasks(user, 1, status=TaskStatus.TODO, assignee="unassigned")

            # Поиск по тексту среди корневых задач
            await service.list_tasks(user, 1, search="api", root_only=True)
        """
        await self.access.require_project_access(actor, project_id)
        return await self.task_repo.get_filtered(
            project_id,
            status=status,
            priority=priority,
            assignee=assignee,
            search=search,
            root_only=root_only,
            skip=skip,
            limit=limit,
        )

    async def update_task(
        self, actor: Profile, task_id: int, version: int | None = None, **changes: Any
    ) -> Task:
        """
        Частичное обновление задачи.

        Args:
            version: версия, которую видел клиент (None - без проверки)
            **changes: поля из UPDATABLE_FIELDS

        Raises:
            ValueError: Если валидация не прошла
            ConflictError: Если version устарела

        Бизнес-правила:
        1. Смена статуса переписывает kanban_column
        2. Смена статуса подзадачи пересчитывает прогресс родителя
        """
        # 1. ПРОВЕРКА: Задача существует и доступна
        task = await self._get_writable(actor, task_id)
        self._check_version(task, version)

        # 2. ВАЛИДАЦИЯ: только разрешённые поля
        unknown = set(changes) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

        if "title" in changes:
            if not changes["title"] or not changes["title"].strip():
                raise ValueError("Task title cannot be empty")
            changes["title"] = changes["title"].strip()

        if "description" in changes and changes["description"] is not None:
            changes["description"] = changes["description"].strip() or None

        if "status" in changes and changes["status"] is None:
            raise ValueError("Task status cannot be empty")

        if "priority" in changes and changes["priority"] is None:
            raise ValueError("Task priority cannot be empty")

        if changes.get("assignee_id") is not None:
            await self._check_assignee(task.project_id, changes["assignee_id"])

        if not changes:
            return task

        # 3. ПРИМЕНЕНИЕ
        status_changed = "status" in changes and changes["status"] != task.status
        task = await self._write(task, **changes)

        await self.activity.log_project_activity(
            task.project_id,
            actor.id,
            "task_updated",
            f'Updated task "{task.title}"',
            entity_type="task",
            entity_id=task.id,
            metadata={"fields": sorted(changes)},
        )

        # 4. ПРОГРЕСС родителя
        if status_changed and task.parent_task_id is not None:
            await self._sync_parent_progress(task.parent_task_id)

        return task

    async def move_task(
        self, actor: Profile, task_id: int, column: str, version: int | None = None
    ) -> Task:
        """
        Перенести задачу в колонку доски.

        Колонка (имя "Done" или slug "done") → статус; пишутся status,
        kanban_column и kanban_position = 0. Неизвестная колонка → todo.
        """
        task = await self._get_writable(actor, task_id)
        self._check_version(task, version)

        previous = task.status
        task = await self._write(task, **column_move_fields(column))

        await self.activity.log_project_activity(
            task.project_id,
            actor.id,
            "task_moved",
            f'Moved task "{task.title}" to {task.kanban_column}',
            entity_type="task",
            entity_id=task.id,
            metadata={"from": previous.value, "to": task.status.value},
        )
        logger.info(
            "Task moved",
            extra={"task_id": task.id, "kanban_column": task.kanban_column},
        )

        if task.parent_task_id is not None and previous != task.status:
            await self._sync_parent_progress(task.parent_task_id)

        return task

    async def delete_task(self, actor: Profile, task_id: int) -> bool:
        """
        Удалить задачу.

        Бизнес-правила:
        - Удалить может только автор задачи или администратор
        - Cascade удалит подзадачи и комментарии
        - Удаление подзадачи пересчитывает прогресс родителя
        """
        task = await self._get_writable(actor, task_id)
        self.access.require_task_owner(actor, task)

        parent_id = task.parent_task_id
        project_id = task.project_id
        title = task.title

        await self.task_repo.delete_obj(task)

        await self.activity.log_project_activity(
            project_id,
            actor.id,
            "task_deleted",
            f'Deleted task "{title}"',
            entity_type="task",
            entity_id=task_id,
        )
        logger.info("Task deleted", extra={"task_id": task_id, "project_id": project_id})

        if parent_id is not None:
            await self._sync_parent_progress(parent_id)

        return True

    # ------------------------------------------------------------------
    # Подзадачи
    # ------------------------------------------------------------------

    async def list_subtasks(self, actor: Profile, parent_task_id: int) -> list[Task]:
        """Подзадачи по возрастанию subtask_order (отсутствующий порядок = 0)."""
        await self._get_accessible(actor, parent_task_id)
        return sort_by_order(await self.task_repo.get_subtasks(parent_task_id))

    async def create_subtask(
        self,
        actor: Profile,
        parent_task_id: int,
        title: str,
        description: str | None = None,
        priority: TaskPriority = TaskPriority.MEDIUM,
        assignee_id: int | None = None,
        due_date: date | None = None,
    ) -> Task:
        """Новая подзадача встаёт первой в списке, в статусе todo."""
        parent = await self._get_writable(actor, parent_task_id)
        return await self.create_task(
            actor,
            title=title,
            project_id=parent.project_id,
            description=description,
            status=TaskStatus.TODO,
            priority=priority,
            assignee_id=assignee_id,
            due_date=due_date,
            parent_task_id=parent.id,
        )

    async def reorder_subtasks(
        self, actor: Profile, parent_task_id: int, source_index: int, destination_index: int
    ) -> list[Task]:
        """
        Перетащить подзадачу с позиции source_index на destination_index.

        Индексы относятся к списку в порядке отображения. После переноса
        subtask_order каждой подзадачи равен её индексу. Все записи идут
        в одной транзакции запроса: при ошибке откатываются все.
        """
        await self._get_writable(actor, parent_task_id)
        siblings = await self.list_subtasks(actor, parent_task_id)
        reordered = move_item(siblings, source_index, destination_index)

        for subtask, order in order_assignments(reordered):
            if subtask.subtask_order != order:
                await self._write(subtask, subtask_order=order)

        parent = await self._get(parent_task_id)
        await self.activity.log_project_activity(
            parent.project_id,
            actor.id,
            "subtasks_reordered",
            f'Reordered subtasks of "{parent.title}"',
            entity_type="task",
            entity_id=parent.id,
            metadata={"from": source_index, "to": destination_index},
        )
        return reordered

    async def toggle_subtask(self, actor: Profile, subtask_id: int) -> Task:
        """Отметка подзадачи: done ↔ todo."""
        subtask = await self._get_writable(actor, subtask_id)
        if not subtask.is_subtask:
            raise ValueError(f"Task {subtask_id} is not a subtask")
        new_status = TaskStatus.TODO if subtask.status == TaskStatus.DONE else TaskStatus.DONE
        return await self.update_task(actor, subtask_id, status=new_status)

    # ------------------------------------------------------------------
    # Прогресс
    # ------------------------------------------------------------------

    async def calculate_task_progress(self, task_id: int) -> int:
        """
        Процент выполненных подзадач (0..100), 0 если подзадач нет.

        SQL эквивалент:
            SELECT ROUND(100.0 * COUNT(*) FILTER (WHERE status = 'done') / COUNT(*))
            FROM tasks WHERE parent_task_id = {task_id};
        """
        total, done = await self.task_repo.count_subtasks(task_id)
        return progress_percent(total, done)

    async def get_task_progress(self, actor: Profile, task_id: int) -> int:
        await self._get_accessible(actor, task_id)
        return await self.calculate_task_progress(task_id)

    async def _sync_parent_progress(self, parent_task_id: int) -> None:
        """
        Подтянуть статус родителя за подзадачами.

        - 100% → родитель done (если ещё не done)
        - 0 < p < 100 и родитель todo → in-progress
        Изменение статуса родителя поднимается дальше по цепочке.
        """
        current_id: int | None = parent_task_id
        visited: set[int] = set()
        while current_id is not None and current_id not in visited:
            visited.add(current_id)
            parent = await self.task_repo.get_by_id(current_id)
            if parent is None:
                return

            progress = await self.calculate_task_progress(parent.id)
            if progress == 100 and parent.status != TaskStatus.DONE:
                new_status = TaskStatus.DONE
            elif 0 < progress < 100 and parent.status == TaskStatus.TODO:
                new_status = TaskStatus.IN_PROGRESS
            else:
                return

            await self._write(parent, status=new_status)
            logger.info(
                "Parent status follows subtasks",
                extra={"task_id": parent.id, "progress": progress, "status": new_status.value},
            )
            current_id = parent.parent_task_id

    async def get_task_statistics(self, actor: Profile, task_id: int) -> dict:
        """
        Статистика по задаче.

        Пример:
            {
                "total_subtasks": 5,
                "completed_subtasks": 3,
                "progress": 60,
                "comments_count": 7,
                "is_overdue": False,
                "days_until_due": 5
            }
        """
        task = await self._get_accessible(actor, task_id)

        total, done = await self.task_repo.count_subtasks(task_id)
        comments_count = await self.comment_repo.count_by_task(task_id)

        is_overdue = False
        days_until_due = None
        if task.due_date:
            today = date.today()
            is_overdue = task.due_date < today and task.status != TaskStatus.DONE
            days_until_due = (task.due_date - today).days

        return {
            "task_id": task_id,
            "task_title": task.title,
            "total_subtasks": total,
            "completed_subtasks": done,
            "progress": progress_percent(total, done),
            "comments_count": comments_count,
            "is_overdue": is_overdue,
            "days_until_due": days_until_due,
        }
