"""Calendar events of a project."""

from datetime import date
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from ..models import CalendarEvent, EventType, Profile
from ..repositories import CalendarEventRepository
from .access import AccessPolicy
from .activity import ActivityService

UPDATABLE_FIELDS = ("title", "description", "event_date", "event_type")


class CalendarService:
    """События календаря: вехи, дедлайны, встречи, напоминания."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.event_repo = CalendarEventRepository(db)
        self.access = AccessPolicy(db)
        self.activity = ActivityService(db)

    async def list_events(
        self,
        actor: Profile,
        project_id: int,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> list[CalendarEvent]:
        """События по возрастанию даты; границы диапазона включительно."""
        await self.access.require_project_access(actor, project_id)
        if date_from and date_to and date_to < date_from:
            raise ValueError("date_to cannot be before date_from")
        return await self.event_repo.get_by_project(project_id, date_from, date_to)

    async def create_event(
        self,
        actor: Profile,
        project_id: int,
        title: str,
        event_date: date,
        description: str | None = None,
        event_type: EventType = EventType.MILESTONE,
    ) -> CalendarEvent:
        await self.access.require_project_write(actor, project_id)

        if not title or not title.strip():
            raise ValueError("Event title cannot be empty")

        event = await self.event_repo.create(
            CalendarEvent(
                project_id=project_id,
                title=title.strip(),
                description=description.strip() if description else None,
                event_date=event_date,
                event_type=event_type,
                created_by=actor.id,
            )
        )
        await self.activity.log_project_activity(
            project_id,
            actor.id,
            "event_created",
            f'Scheduled {event.event_type.value} "{event.title}" on {event.event_date.isoformat()}',
            entity_type="event",
            entity_id=event.id,
        )
        return event

    async def _get_writable(self, actor: Profile, event_id: int) -> CalendarEvent:
        event = await self.event_repo.get_by_id(event_id)
        if not event:
            raise ValueError(f"Event with id {event_id} not found")
        await self.access.require_project_write(actor, event.project_id)
        return event

    async def update_event(self, actor: Profile, event_id: int, **changes: Any) -> CalendarEvent:
        event = await self._get_writable(actor, event_id)

        unknown = set(changes) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

        if "title" in changes:
            if not changes["title"] or not changes["title"].strip():
                raise ValueError("Event title cannot be empty")
            changes["title"] = changes["title"].strip()

        for required in ("event_date", "event_type"):
            if required in changes and changes[required] is None:
                raise ValueError(f"Event {required} cannot be empty")

        if not changes:
            return event

        event = await self.event_repo.update_obj(event, **changes)
        await self.activity.log_project_activity(
            event.project_id,
            actor.id,
            "event_updated",
            f'Updated event "{event.title}"',
            entity_type="event",
            entity_id=event.id,
            metadata={"fields": sorted(changes)},
        )
        return event

    async def delete_event(self, actor: Profile, event_id: int) -> bool:
        event = await self._get_writable(actor, event_id)

        project_id, title = event.project_id, event.title
        await self.event_repo.delete_obj(event)
        await self.activity.log_project_activity(
            project_id,
            actor.id,
            "event_deleted",
            f'Removed event "{title}"',
            entity_type="event",
            entity_id=event_id,
        )
        return True
