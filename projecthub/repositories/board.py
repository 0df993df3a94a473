"""Repositories for kanban columns, calendar events and project files."""

from datetime import date

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import CalendarEvent, KanbanColumn, ProjectFile
from .base import BaseRepository


class KanbanColumnRepository(BaseRepository[KanbanColumn]):
    """Колонки доски проекта."""

    def __init__(self, db: AsyncSession):
        super().__init__(KanbanColumn, db)

    async def get_by_project(self, project_id: int) -> list[KanbanColumn]:
        """
        SQL эквивалент:
            SELECT * FROM kanban_columns WHERE project_id = {project_id} ORDER BY position;
        """
        result = await self.db.execute(
            select(KanbanColumn)
            .where(KanbanColumn.project_id == project_id)
            .order_by(KanbanColumn.position, KanbanColumn.id)
        )
        return list(result.scalars().all())

    async def next_position(self, project_id: int) -> int:
        result = await self.db.execute(
            select(func.max(KanbanColumn.position)).where(KanbanColumn.project_id == project_id)
        )
        current = result.scalar_one_or_none()
        return 0 if current is None else current + 1


class CalendarEventRepository(BaseRepository[CalendarEvent]):
    """События календаря проекта."""

    def __init__(self, db: AsyncSession):
        super().__init__(CalendarEvent, db)

    async def get_by_project(
        self, project_id: int, date_from: date | None = None, date_to: date | None = None
    ) -> list[CalendarEvent]:
        """
        SQL эквивалент:
            SELECT * FROM calendar_events
            WHERE project_id = {project_id}
              AND event_date BETWEEN {date_from} AND {date_to}  -- если указаны
            ORDER BY event_date;
        """
        conditions = [CalendarEvent.project_id == project_id]
        if date_from is not None:
            conditions.append(CalendarEvent.event_date >= date_from)
        if date_to is not None:
            conditions.append(CalendarEvent.event_date <= date_to)

        result = await self.db.execute(
            select(CalendarEvent)
            .where(and_(*conditions))
            .order_by(CalendarEvent.event_date, CalendarEvent.id)
        )
        return list(result.scalars().all())


class ProjectFileRepository(BaseRepository[ProjectFile]):
    """Метаданные файлов проекта (сами байты - в object storage)."""

    def __init__(self, db: AsyncSession):
        super().__init__(ProjectFile, db)

    async def get_by_project(self, project_id: int) -> list[ProjectFile]:
        result = await self.db.execute(
            select(ProjectFile)
            .where(ProjectFile.project_id == project_id)
            .order_by(ProjectFile.created_at.desc(), ProjectFile.id.desc())
        )
        return list(result.scalars().all())

    async def total_size(self, project_id: int) -> int:
        result = await self.db.execute(
            select(func.coalesce(func.sum(ProjectFile.file_size), 0)).where(
                ProjectFile.project_id == project_id
            )
        )
        return result.scalar_one()
