"""Comment service: threaded comments with mentions and notifications."""

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from ..domain import CommentNode, build_comment_tree, count_comments
from ..domain.comment_tree import UNKNOWN_AUTHOR
from ..models import ContentType, Profile, Task, TaskComment
from ..models.base import utc_now
from ..repositories import ProfileRepository, TaskCommentRepository, TaskRepository
from .access import AccessPolicy
from .activity import ActivityService, NotificationService

logger = logging.getLogger(__name__)


class CommentService:
    """
    Сервис комментариев к задачам.

    Побочные эффекты (в той же транзакции):
    - Уведомления: упомянутым, исполнителю задачи, автору комментария,
      на который ответили. Автор нового комментария уведомлений не получает.
    - Лента активности: comment_created / comment_updated / comment_deleted
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.comment_repo = TaskCommentRepository(db)
        self.task_repo = TaskRepository(db)
        self.profile_repo = ProfileRepository(db)
        self.access = AccessPolicy(db)
        self.activity = ActivityService(db)
        self.notifications = NotificationService(db)

    async def _get_task(self, actor: Profile, task_id: int) -> Task:
        task = await self.task_repo.get_by_id(task_id)
        if not task:
            raise ValueError(f"Task with id {task_id} not found")
        await self.access.require_project_access(actor, task.project_id)
        return task

    async def _get_comment(self, comment_id: int) -> TaskComment:
        comment = await self.comment_repo.get_by_id(comment_id)
        if not comment:
            raise ValueError(f"Comment with id {comment_id} not found")
        return comment

    async def _validate_mentions(self, mentions: list[int]) -> list[int]:
        """Уникальные ID в исходном порядке; каждый должен быть профилем."""
        unique = list(dict.fromkeys(mentions))
        found = {profile.id for profile in await self.profile_repo.get_many(unique)}
        missing = [user_id for user_id in unique if user_id not in found]
        if missing:
            raise ValueError(f"Mentioned users not found: {missing}")
        return unique

    async def get_comment_tree(self, actor: Profile, task_id: int) -> tuple[list[CommentNode], int]:
        """
        Комментарии задачи деревом.

        Плоский список (новые первыми) с именами авторов → лес ответов.

        Returns:
            (корневые узлы, общее количество комментариев)
        """
        await self._get_task(actor, task_id)

        comments = await self.comment_repo.get_by_task(task_id)
        labels = await self.profile_repo.get_labels(list({c.user_id for c in comments}))

        forest = build_comment_tree(comments, lambda c: labels.get(c.user_id, UNKNOWN_AUTHOR))
        return forest, count_comments(forest)

    async def add_comment(
        self,
        actor: Profile,
        task_id: int,
        comment: str,
        content_type: ContentType = ContentType.PLAIN,
        reply_to: int | None = None,
        mentions: list[int] | None = None,
        attachments: list[dict[str, Any]] | None = None,
    ) -> TaskComment:
        """
        Добавить комментарий (или ответ) к задаче.

        Бизнес-правила:
        1. Текст не пустой
        2. reply_to - комментарий этой же задачи
        3. Упомянутые пользователи существуют
        4. Вложения сохраняются как есть
        """
        # 1. ВАЛИДАЦИЯ: Задача существует и доступна
        task = await self._get_task(actor, task_id)
        await self.access.require_project_write(actor, task.project_id)

        # 2. ВАЛИДАЦИЯ: Текст
        if not comment or not comment.strip():
            raise ValueError("Comment content cannot be empty")

        # 3. ВАЛИДАЦИЯ: Родительский комментарий
        parent = None
        if reply_to is not None:
            parent = await self.comment_repo.get_by_id(reply_to)
            if not parent:
                raise ValueError(f"Comment with id {reply_to} not found")
            if parent.task_id != task_id:
                raise ValueError("Reply must belong to the same task as the parent comment")

        # 4. ВАЛИДАЦИЯ: Упоминания
        mention_ids = await self._validate_mentions(mentions or [])

        # 5. СОЗДАНИЕ
        created = await self.comment_repo.create(
            TaskComment(
                task_id=task_id,
                user_id=actor.id,
                comment=comment.strip(),
                content_type=content_type,
                reply_to=reply_to,
                mentions=mention_ids,
                attachments=list(attachments or []),
            )
        )

        # 6. ПОБОЧНЫЕ ЭФФЕКТЫ
        await self._notify_new_comment(actor, task, created, parent)
        await self.activity.log_project_activity(
            task.project_id,
            actor.id,
            "comment_created",
            (
                f'Replied to a comment on task "{task.title}"'
                if parent
                else f'Added a comment to task "{task.title}"'
            ),
            entity_type="comment",
            entity_id=created.id,
        )
        logger.info("Comment added", extra={"task_id": task_id, "comment_id": created.id})
        return created

    async def _notify_new_comment(
        self, actor: Profile, task: Task, comment: TaskComment, parent: TaskComment | None
    ) -> None:
        for user_id in comment.mentions:
            if user_id != actor.id:
                await self.notifications.create_notification(
                    user_id,
                    "comment_mention",
                    "You were mentioned in a comment",
                    f'You were mentioned in a comment on task "{task.title}"',
                    project_id=task.project_id,
                    metadata={
                        "task_id": task.id,
                        "comment_id": comment.id,
                        "mentioned_by": actor.id,
                    },
                )

        if task.assignee_id is not None and task.assignee_id != actor.id:
            await self.notifications.create_notification(
                task.assignee_id,
                "task_comment",
                "New comment on your task",
                f'New comment added to task "{task.title}"',
                project_id=task.project_id,
                metadata={"task_id": task.id, "comment_id": comment.id, "commenter": actor.id},
            )

        if parent is not None and parent.user_id != actor.id:
            await self.notifications.create_notification(
                parent.user_id,
                "comment_reply",
                "Reply to your comment",
                f'Someone replied to your comment on task "{task.title}"',
                project_id=task.project_id,
                metadata={
                    "task_id": task.id,
                    "comment_id": comment.id,
                    "reply_to": parent.id,
                    "replier": actor.id,
                },
            )

    async def edit_comment(
        self,
        actor: Profile,
        comment_id: int,
        comment: str,
        mentions: list[int] | None = None,
    ) -> TaskComment:
        """
        Изменить текст комментария.

        Бизнес-правила:
        - Только автор или администратор
        - Выставляются edited и edited_at
        - mentions (если переданы) заменяют прежние
        """
        existing = await self._get_comment(comment_id)
        task = await self._get_task(actor, existing.task_id)
        self.access.require_comment_author(actor, existing)

        if not comment or not comment.strip():
            raise ValueError("Comment content cannot be empty")

        updates: dict[str, Any] = {
            "comment": comment.strip(),
            "edited": True,
            "edited_at": utc_now(),
        }
        if mentions is not None:
            updates["mentions"] = await self._validate_mentions(mentions)

        updated = await self.comment_repo.update_obj(existing, **updates)

        await self.activity.log_project_activity(
            task.project_id,
            actor.id,
            "comment_updated",
            f'Edited a comment on task "{task.title}"',
            entity_type="comment",
            entity_id=comment_id,
        )
        return updated

    async def delete_comment(self, actor: Profile, comment_id: int) -> bool:
        """Удалить комментарий вместе со всеми ответами на него."""
        existing = await self._get_comment(comment_id)
        task = await self._get_task(actor, existing.task_id)
        self.access.require_comment_author(actor, existing)

        author_id = existing.user_id
        await self.comment_repo.delete_obj(existing)

        await self.activity.log_project_activity(
            task.project_id,
            author_id,
            "comment_deleted",
            f'Deleted a comment on task "{task.title}"',
            entity_type="comment",
            entity_id=comment_id,
        )
        logger.info("Comment deleted", extra={"comment_id": comment_id})
        return True
