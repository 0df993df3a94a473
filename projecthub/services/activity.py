"""Activity log and notifications."""

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Notification, Profile, ProjectActivity
from ..repositories import NotificationRepository, ProjectActivityRepository
from .access import AccessPolicy

logger = logging.getLogger(__name__)


class ActivityService:
    """
    Журнал действий в проектах.

    log_project_activity и create_notification вызываются другими
    сервисами внутри той же транзакции, что и само изменение.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.activity_repo = ProjectActivityRepository(db)
        self.access = AccessPolicy(db)

    async def log_project_activity(
        self,
        project_id: int,
        user_id: int | None,
        activity_type: str,
        description: str,
        entity_type: str | None = None,
        entity_id: int | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> int:
        """
        Добавить запись в ленту активности проекта.

        Returns:
            ID созданной записи
        """
        activity = await self.activity_repo.create(
            ProjectActivity(
                project_id=project_id,
                user_id=user_id,
                activity_type=activity_type,
                description=description,
                entity_type=entity_type,
                entity_id=entity_id,
                metadata_=metadata or {},
            )
        )
        logger.debug(
            "Activity logged",
            extra={"project_id": project_id, "activity_type": activity_type},
        )
        return activity.id

    async def get_project_feed(
        self, actor: Profile, project_id: int, limit: int = 50
    ) -> list[ProjectActivity]:
        await self.access.require_project_access(actor, project_id)
        return await self.activity_repo.get_feed(project_id, limit=limit)

    async def get_global_feed(self, actor: Profile, limit: int = 100) -> list[ProjectActivity]:
        """Лента по всем проектам (только администратор)."""
        self.access.require_admin(actor)
        return await self.activity_repo.get_feed(None, limit=limit)


class NotificationService:
    """Уведомления текущего пользователя."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.notification_repo = NotificationRepository(db)

    async def create_notification(
        self,
        user_id: int,
        type: str,
        title: str,
        message: str,
        project_id: int | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> int:
        """
        Создать уведомление.

        Returns:
            ID созданного уведомления
        """
        notification = await self.notification_repo.create(
            Notification(
                user_id=user_id,
                project_id=project_id,
                type=type,
                title=title,
                message=message,
                metadata_=metadata or {},
            )
        )
        return notification.id

    async def list_notifications(
        self, actor: Profile, unread_only: bool = False, limit: int = 50
    ) -> list[Notification]:
        return await self.notification_repo.get_for_user(actor.id, unread_only, limit)

    async def unread_count(self, actor: Profile) -> int:
        return await self.notification_repo.count_unread(actor.id)

    async def mark_read(self, actor: Profile, notification_id: int) -> Notification:
        notification = await self.notification_repo.get_by_id(notification_id)
        # Чужие уведомления для пользователя "не существуют"
        if not notification or notification.user_id != actor.id:
            raise ValueError(f"Notification with id {notification_id} not found")
        if not notification.read_status:
            notification = await self.notification_repo.update_obj(notification, read_status=True)
        return notification

    async def mark_all_read(self, actor: Profile) -> int:
        updated = await self.notification_repo.mark_all_read(actor.id)
        logger.info("Notifications marked read", extra={"count": updated})
        return updated
