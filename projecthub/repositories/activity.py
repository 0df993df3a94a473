"""Activity log and notification repositories."""

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Notification, ProjectActivity
from .base import BaseRepository


class ProjectActivityRepository(BaseRepository[ProjectActivity]):
    """Лента активности проектов."""

    def __init__(self, db: AsyncSession):
        super().__init__(ProjectActivity, db)

    async def get_feed(self, project_id: int | None = None, limit: int = 50) -> list[ProjectActivity]:
        """
        Последние записи, новые первыми. project_id=None - по всем проектам.

        SQL эквивалент:
            SELECT * FROM project_activity
            [WHERE project_id = {project_id}]
            ORDER BY created_at DESC LIMIT {limit};
        """
        query = select(ProjectActivity)
        if project_id is not None:
            query = query.where(ProjectActivity.project_id == project_id)
        result = await self.db.execute(
            query.order_by(ProjectActivity.created_at.desc(), ProjectActivity.id.desc()).limit(limit)
        )
        return list(result.scalars().all())


class NotificationRepository(BaseRepository[Notification]):
    """Уведомления пользователей."""

    def __init__(self, db: AsyncSession):
        super().__init__(Notification, db)

    async def get_for_user(
        self, user_id: int, unread_only: bool = False, limit: int = 50
    ) -> list[Notification]:
        conditions = [Notification.user_id == user_id]
        if unread_only:
            conditions.append(Notification.read_status.is_(False))
        result = await self.db.execute(
            select(Notification)
            .where(and_(*conditions))
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def count_unread(self, user_id: int) -> int:
        result = await self.db.execute(
            select(func.count())
            .select_from(Notification)
            .where(and_(Notification.user_id == user_id, Notification.read_status.is_(False)))
        )
        return result.scalar_one()

    async def mark_all_read(self, user_id: int) -> int:
        """Пометить все непрочитанные уведомления пользователя прочитанными."""
        unread = await self.get_for_user(user_id, unread_only=True, limit=10_000)
        for notification in unread:
            notification.read_status = True
        await self.db.flush()
        return len(unread)
