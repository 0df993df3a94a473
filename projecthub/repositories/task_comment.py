"""Task comment repository with specific queries."""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import TaskComment
from .base import BaseRepository


class TaskCommentRepository(BaseRepository[TaskComment]):
    """
    Репозиторий для работы с комментариями к задачам.

    Комментарии образуют дерево через reply_to; само дерево строится
    в domain.comment_tree, здесь только плоские выборки.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(TaskComment, db)

    async def get_by_task(self, task_id: int, limit: int | None = None) -> list[TaskComment]:
        """
        Получить все комментарии для задачи, новые первыми.

        SQL эквивалент:
            SELECT * FROM task_comments
            WHERE task_id = {task_id}
            ORDER BY created_at DESC, id DESC
            LIMIT {limit};
        """
        query = (
            select(TaskComment)
            .where(TaskComment.task_id == task_id)
            .order_by(TaskComment.created_at.desc(), TaskComment.id.desc())
        )

        if limit:
            query = query.limit(limit)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def count_by_task(self, task_id: int) -> int:
        """
        SQL эквивалент:
            SELECT COUNT(*) FROM task_comments WHERE task_id = {task_id};
        """
        result = await self.db.execute(
            select(func.count()).select_from(TaskComment).where(TaskComment.task_id == task_id)
        )
        return result.scalar_one()
