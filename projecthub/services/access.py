"""Access rules for projects, tasks and comments."""

from sqlalchemy.ext.asyncio import AsyncSession

from ..models import MemberRole, Profile, Project, ProjectMember, Task, TaskComment
from ..repositories import ProjectMemberRepository, ProjectRepository


class AccessPolicy:
    """
    Проверки доступа. Нарушение → PermissionError (API отвечает 403).

    Правила:
    - Администратор имеет доступ ко всему
    - Остальные видят только проекты, где состоят в команде
    - Роль viewer в проекте - только чтение
    - Удалить задачу может её автор или администратор
    - Изменить / удалить комментарий может его автор или администратор
    - Управлять командой может администратор или менеджер проекта
    """

    def __init__(self, db: AsyncSession):
        self.project_repo = ProjectRepository(db)
        self.member_repo = ProjectMemberRepository(db)

    @staticmethod
    def require_admin(actor: Profile) -> None:
        if not actor.is_admin:
            raise PermissionError("Administrator role required")

    async def get_project(self, project_id: int) -> Project:
        project = await self.project_repo.get_by_id(project_id)
        if not project:
            raise ValueError(f"Project with id {project_id} not found")
        return project

    async def membership(self, actor: Profile, project_id: int) -> ProjectMember | None:
        return await self.member_repo.get_membership(project_id, actor.id)

    async def require_project_access(self, actor: Profile, project_id: int) -> Project:
        """Проект существует и пользователь его видит."""
        project = await self.get_project(project_id)
        if actor.is_admin:
            return project
        if await self.membership(actor, project_id) is None:
            raise PermissionError(f"No access to project {project_id}")
        return project

    async def require_project_write(self, actor: Profile, project_id: int) -> Project:
        """Участник с правом изменений: viewer только читает."""
        project = await self.get_project(project_id)
        if actor.is_admin:
            return project
        member = await self.membership(actor, project_id)
        if member is None:
            raise PermissionError(f"No access to project {project_id}")
        if member.role == MemberRole.VIEWER:
            raise PermissionError("Viewers have read-only access to the project")
        return project

    async def require_project_manager(self, actor: Profile, project_id: int) -> Project:
        project = await self.get_project(project_id)
        if actor.is_admin:
            return project
        member = await self.membership(actor, project_id)
        if member is None or member.role != MemberRole.MANAGER:
            raise PermissionError("Only administrators and project managers can do this")
        return project

    @staticmethod
    def require_task_owner(actor: Profile, task: Task) -> None:
        if not actor.is_admin and task.created_by != actor.id:
            raise PermissionError("Only the task creator or an administrator can delete a task")

    @staticmethod
    def require_comment_author(actor: Profile, comment: TaskComment) -> None:
        if not actor.is_admin and comment.user_id != actor.id:
            raise PermissionError("Only the comment author or an administrator can change it")
