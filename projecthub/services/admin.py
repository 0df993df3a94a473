"""Admin console: user management and system statistics."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Profile, ProjectStatus, UserRole
from ..repositories import (
    ProfileRepository,
    ProjectRepository,
    TaskCommentRepository,
    TaskRepository,
)
from .access import AccessPolicy

logger = logging.getLogger(__name__)


class AdminService:
    """Все операции доступны только администраторам."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.profile_repo = ProfileRepository(db)
        self.project_repo = ProjectRepository(db)
        self.task_repo = TaskRepository(db)
        self.comment_repo = TaskCommentRepository(db)

    async def list_profiles(
        self, actor: Profile, search: str | None = None, skip: int = 0, limit: int = 50
    ) -> list[Profile]:
        AccessPolicy.require_admin(actor)
        return await self.profile_repo.search(search, skip=skip, limit=limit)

    async def change_role(self, actor: Profile, profile_id: int, role: UserRole) -> Profile:
        """
        Сменить глобальную роль пользователя.

        Администратор не может снять роль с самого себя.
        """
        AccessPolicy.require_admin(actor)

        profile = await self.profile_repo.get_by_id(profile_id)
        if not profile:
            raise ValueError(f"Profile with id {profile_id} not found")
        if profile.id == actor.id and role != UserRole.ADMIN:
            raise ValueError("Administrators cannot remove their own admin role")

        profile = await self.profile_repo.update_obj(profile, role=role)
        logger.info(
            "Profile role changed",
            extra={"profile_id": profile_id, "role": role.value, "changed_by": actor.id},
        )
        return profile

    async def get_system_statistics(self, actor: Profile) -> dict:
        """
        Пример:
            {
                "total_users": 12,
                "admin_users": 2,
                "total_projects": 5,
                "active_projects": 3,
                "total_tasks": 140,
                "tasks_by_status": {"todo": 50, "in-progress": 40, "review": 10, "done": 40},
                "total_comments": 320
            }
        """
        AccessPolicy.require_admin(actor)

        by_status = await self.task_repo.count_by_status()
        return {
            "total_users": await self.profile_repo.count(),
            "admin_users": await self.profile_repo.count_by_role(UserRole.ADMIN),
            "total_projects": await self.project_repo.count(),
            "active_projects": await self.project_repo.count_by_status(ProjectStatus.ACTIVE),
            "total_tasks": sum(by_status.values()),
            "tasks_by_status": by_status,
            "total_comments": await self.comment_repo.count(),
        }

