"""Project and membership repositories."""

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models import MemberRole, Project, ProjectMember, ProjectStatus
from .base import BaseRepository


class ProjectRepository(BaseRepository[Project]):
    """
    Репозиторий для работы с проектами.

    Наследуется от BaseRepository и добавляет выборки с учётом
    членства пользователя в проекте.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(Project, db)

    async def get_by_name(self, name: str) -> Project | None:
        result = await self.db.execute(select(Project).where(Project.name == name))
        return result.scalar_one_or_none()

    async def get_visible(
        self,
        user_id: int | None = None,
        include_archived: bool = False,
        skip: int = 0,
        limit: int = 20,
    ) -> list[Project]:
        """
        Проекты, видимые пользователю.

        user_id=None - все проекты (администратор), иначе только те,
        где пользователь состоит в команде.

        SQL эквивалент (для участника):
            SELECT projects.* FROM projects
            JOIN project_members ON project_members.project_id = projects.id
            WHERE project_members.user_id = {user_id}
            ORDER BY created_at DESC;
        """
        query = select(Project)
        if user_id is not None:
            query = query.join(ProjectMember, ProjectMember.project_id == Project.id).where(
                ProjectMember.user_id == user_id
            )
        if not include_archived:
            query = query.where(Project.status != ProjectStatus.ARCHIVED)

        query = query.order_by(Project.created_at.desc(), Project.id.desc()).offset(skip).limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def count_by_status(self, status: ProjectStatus) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(Project).where(Project.status == status)
        )
        return result.scalar_one()


class ProjectMemberRepository(BaseRepository[ProjectMember]):
    """Репозиторий участников проектов (команда и роли)."""

    def __init__(self, db: AsyncSession):
        super().__init__(ProjectMember, db)

    async def get_membership(self, project_id: int, user_id: int) -> ProjectMember | None:
        result = await self.db.execute(
            select(ProjectMember).where(
                and_(ProjectMember.project_id == project_id, ProjectMember.user_id == user_id)
            )
        )
        return result.scalar_one_or_none()

    async def get_by_project(self, project_id: int) -> list[ProjectMember]:
        """Участники проекта вместе с профилями (selectinload), по дате вступления."""
        result = await self.db.execute(
            select(ProjectMember)
            .options(selectinload(ProjectMember.profile))
            .where(ProjectMember.project_id == project_id)
            .order_by(ProjectMember.joined_at, ProjectMember.id)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def get_with_profile(self, id: int) -> ProjectMember | None:
        result = await self.db.execute(
            select(ProjectMember)
            .options(selectinload(ProjectMember.profile))
            .where(ProjectMember.id == id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def count_by_role(self, project_id: int, role: MemberRole) -> int:
        result = await self.db.execute(
            select(func.count())
            .select_from(ProjectMember)
            .where(and_(ProjectMember.project_id == project_id, ProjectMember.role == role))
        )
        return result.scalar_one()

    async def count_by_project(self, project_id: int) -> int:
        result = await self.db.execute(
            select(func.count())
            .select_from(ProjectMember)
            .where(ProjectMember.project_id == project_id)
        )
        return result.scalar_one()
