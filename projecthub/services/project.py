"""Project service: projects, team membership and roles."""

import logging
from datetime import date
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from ..domain import DEFAULT_COLUMNS
from ..models import (
    KanbanColumn,
    MemberRole,
    Profile,
    Project,
    ProjectMember,
    ProjectStatus,
    TaskStatus,
)
from ..repositories import (
    KanbanColumnRepository,
    ProfileRepository,
    ProjectFileRepository,
    ProjectMemberRepository,
    ProjectRepository,
    TaskRepository,
)
from ..storage import PROJECT_FILES_BUCKET, LocalObjectStorage
from .access import AccessPolicy
from .activity import ActivityService

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("name", "description", "category", "status", "start_date", "end_date")


class ProjectService:
    """
    Сервис для работы с проектами.

    Содержит бизнес-логику:
    - Валидация правил (уникальное имя, даты)
    - Начальные колонки доски для нового проекта
    - Команда проекта и роли участников
    """

    def __init__(self, db: AsyncSession, storage: LocalObjectStorage | None = None):
        """
        Args:
            db: Асинхронная сессия БД
            storage: хранилище файлов (нужно для удаления проекта с файлами)
        """
        self.db = db
        self.storage = storage
        self.project_repo = ProjectRepository(db)
        self.member_repo = ProjectMemberRepository(db)
        self.profile_repo = ProfileRepository(db)
        self.task_repo = TaskRepository(db)
        self.column_repo = KanbanColumnRepository(db)
        self.file_repo = ProjectFileRepository(db)
        self.access = AccessPolicy(db)
        self.activity = ActivityService(db)

    @staticmethod
    def _check_dates(start_date: date | None, end_date: date | None) -> None:
        if start_date and end_date and end_date < start_date:
            raise ValueError("Project end date cannot be before start date")

    async def _check_unique_name(self, name: str, exclude_id: int | None = None) -> None:
        existing = await self.project_repo.get_by_name(name)
        if existing and existing.id != exclude_id:
            raise ValueError(f"Project with name '{name}' already exists")

    # ------------------------------------------------------------------
    # Проекты
    # ------------------------------------------------------------------

    async def create_project(
        self,
        actor: Profile,
        name: str,
        description: str | None = None,
        category: str = "general",
        status: ProjectStatus = ProjectStatus.ACTIVE,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> Project:
        """
        Создать новый проект.

        Бизнес-правила:
        1. Создавать проекты может только администратор
        2. Название обязательно и уникально
        3. Дата окончания не раньше даты начала
        4. Проект получает 4 стандартные колонки доски
        5. Создатель становится менеджером проекта
        """
        # 1. ДОСТУП
        self.access.require_admin(actor)

        # 2. ВАЛИДАЦИЯ: Название
        if not name or not name.strip():
            raise ValueError("Project name cannot be empty")
        await self._check_unique_name(name.strip())

        # 3. ВАЛИДАЦИЯ: Даты
        self._check_dates(start_date, end_date)

        # 4. СОЗДАНИЕ
        project = await self.project_repo.create(
            Project(
                name=name.strip(),
                description=description.strip() if description else None,
                category=category or "general",
                status=status,
                start_date=start_date,
                end_date=end_date,
                created_by=actor.id,
            )
        )

        # 5. КОЛОНКИ ДОСКИ
        for position, (column_name, color) in enumerate(DEFAULT_COLUMNS):
            await self.column_repo.create(
                KanbanColumn(
                    project_id=project.id, name=column_name, position=position, color=color
                )
            )

        # 6. КОМАНДА: создатель - менеджер
        await self.member_repo.create(
            ProjectMember(project_id=project.id, user_id=actor.id, role=MemberRole.MANAGER)
        )

        await self.activity.log_project_activity(
            project.id,
            actor.id,
            "project_created",
            f'Created project "{project.name}"',
            entity_type="project",
            entity_id=project.id,
        )
        logger.info("Project created", extra={"project_id": project.id})
        return project

    async def list_projects(
        self, actor: Profile, include_archived: bool = False, skip: int = 0, limit: int = 20
    ) -> list[Project]:
        """Администратор видит все проекты, остальные - только свои."""
        return await self.project_repo.get_visible(
            user_id=None if actor.is_admin else actor.id,
            include_archived=include_archived,
            skip=skip,
            limit=limit,
        )

    async def get_project(self, actor: Profile, project_id: int) -> Project:
        """
        Raises:
            ValueError: Если проект не найден
            PermissionError: Пользователь не в команде проекта
        """
        return await self.access.require_project_access(actor, project_id)

    async def update_project(self, actor: Profile, project_id: int, **changes: Any) -> Project:
        """
        Частичное обновление проекта (администратор или менеджер проекта).

        Бизнес-правила:
        1. Название не пустое и уникальное
        2. Дата окончания не раньше даты начала
        """
        project = await self.access.require_project_manager(actor, project_id)

        unknown = set(changes) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

        if "name" in changes:
            if not changes["name"] or not changes["name"].strip():
                raise ValueError("Project name cannot be empty")
            changes["name"] = changes["name"].strip()
            await self._check_unique_name(changes["name"], exclude_id=project_id)

        if "status" in changes and changes["status"] is None:
            raise ValueError("Project status cannot be empty")

        self._check_dates(
            changes.get("start_date", project.start_date),
            changes.get("end_date", project.end_date),
        )

        if not changes:
            return project

        project = await self.project_repo.update_obj(project, **changes)
        await self.activity.log_project_activity(
            project.id,
            actor.id,
            "project_updated",
            f'Updated project "{project.name}"',
            entity_type="project",
            entity_id=project.id,
            metadata={"fields": sorted(changes)},
        )
        return project

    async def archive_project(self, actor: Profile, project_id: int) -> Project:
        """Архивировать проект (мягкое удаление, только администратор)."""
        return await self._set_status(actor, project_id, ProjectStatus.ARCHIVED, "archived")

    async def unarchive_project(self, actor: Profile, project_id: int) -> Project:
        return await self._set_status(actor, project_id, ProjectStatus.ACTIVE, "unarchived")

    async def _set_status(
        self, actor: Profile, project_id: int, status: ProjectStatus, verb: str
    ) -> Project:
        self.access.require_admin(actor)
        project = await self.access.get_project(project_id)
        project = await self.project_repo.update_obj(project, status=status)
        await self.activity.log_project_activity(
            project.id,
            actor.id,
            f"project_{verb}",
            f'Project "{project.name}" {verb}',
            entity_type="project",
            entity_id=project.id,
        )
        return project

    async def delete_project(self, actor: Profile, project_id: int) -> bool:
        """
        Удалить проект со всем содержимым (только администратор).

        Файлы проекта удаляются из хранилища, строки - каскадом ORM.
        """
        self.access.require_admin(actor)
        project = await self.access.get_project(project_id)

        files = await self.file_repo.get_by_project(project_id)
        if files and self.storage is not None:
            self.storage.remove(PROJECT_FILES_BUCKET, [f.file_path for f in files])

        await self.project_repo.delete_obj(project)
        logger.info("Project deleted", extra={"project_id": project_id})
        return True

    async def get_project_statistics(self, actor: Profile, project_id: int) -> dict:
        """
        Статистика по проекту.

        Пример:
            {
                "project_id": 1,
                "total_tasks": 10,
                "tasks_by_status": {"todo": 4, "in-progress": 3, "review": 1, "done": 2},
                "completion_rate": 20.0,
                "member_count": 3,
                "file_count": 2,
                "storage_bytes": 52311
            }
        """
        project = await self.access.require_project_access(actor, project_id)

        by_status = await self.task_repo.count_by_status(project_id)
        total = sum(by_status.values())
        done = by_status[TaskStatus.DONE.value]

        files = await self.file_repo.get_by_project(project_id)
        return {
            "project_id": project.id,
            "project_name": project.name,
            "total_tasks": total,
            "tasks_by_status": by_status,
            "completion_rate": round(done / total * 100, 2) if total else 0.0,
            "member_count": await self.member_repo.count_by_project(project_id),
            "file_count": len(files),
            "storage_bytes": await self.file_repo.total_size(project_id),
        }

    # ------------------------------------------------------------------
    # Команда
    # ------------------------------------------------------------------

    async def list_members(self, actor: Profile, project_id: int) -> list[ProjectMember]:
        await self.access.require_project_access(actor, project_id)
        return await self.member_repo.get_by_project(project_id)

    async def add_member(
        self,
        actor: Profile,
        project_id: int,
        user_id: int | None = None,
        email: str | None = None,
        role: MemberRole = MemberRole.MEMBER,
    ) -> ProjectMember:
        """
        Добавить участника по ID профиля или email.

        Бизнес-правила:
        1. Только администратор или менеджер проекта
        2. Профиль существует
        3. Пользователь ещё не в команде
        """
        project = await self.access.require_project_manager(actor, project_id)

        if user_id is None and not email:
            raise ValueError("Either user_id or email is required")

        profile = (
            await self.profile_repo.get_by_id(user_id)
            if user_id is not None
            else await self.profile_repo.get_by_email(email)
        )
        if not profile:
            raise ValueError(f"User {user_id if user_id is not None else email} not found")

        if await self.member_repo.get_membership(project_id, profile.id):
            raise ValueError(f"User {profile.id} is already a member of this project")

        member = await self.member_repo.create(
            ProjectMember(project_id=project.id, user_id=profile.id, role=role)
        )
        await self.activity.log_project_activity(
            project_id,
            actor.id,
            "member_added",
            f"Added new team member with {role.value} role",
            entity_type="member",
            entity_id=member.id,
            metadata={"user_id": profile.id, "role": role.value},
        )
        return await self.member_repo.get_with_profile(member.id)

    async def _get_member(self, project_id: int, member_id: int) -> ProjectMember:
        member = await self.member_repo.get_by_id(member_id)
        if not member or member.project_id != project_id:
            raise ValueError(f"Member with id {member_id} not found in project {project_id}")
        return member

    async def change_member_role(
        self, actor: Profile, project_id: int, member_id: int, role: MemberRole
    ) -> ProjectMember:
        await self.access.require_project_manager(actor, project_id)
        member = await self._get_member(project_id, member_id)

        previous = member.role
        member = await self.member_repo.update_obj(member, role=role)
        await self.activity.log_project_activity(
            project_id,
            actor.id,
            "member_role_changed",
            f"Changed member role to {role.value}",
            entity_type="member",
            entity_id=member.id,
            metadata={"user_id": member.user_id, "from": previous.value, "to": role.value},
        )
        return await self.member_repo.get_with_profile(member.id)

    async def remove_member(self, actor: Profile, project_id: int, member_id: int) -> bool:
        await self.access.require_project_manager(actor, project_id)
        member = await self._get_member(project_id, member_id)

        user_id = member.user_id
        await self.member_repo.delete_obj(member)
        await self.activity.log_project_activity(
            project_id,
            actor.id,
            "member_removed",
            "Removed team member",
            entity_type="member",
            entity_id=member_id,
            metadata={"user_id": user_id},
        )
        return True
