"""Calendar event model."""

import enum
from datetime import date

from sqlalchemy import Date, ForeignKey, String, Text
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class EventType(str, enum.Enum):
    """Kind of calendar entry."""

    MILESTONE = "milestone"
    DEADLINE = "deadline"
    MEETING = "meeting"
    REMINDER = "reminder"


class CalendarEvent(Base, TimestampMixin):
    """Dated entry on a project calendar."""

    __tablename__ = "calendar_events"

    id: Mapped[int] = mapped_column(primary_key=True)
    project_id: Mapped[int] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    event_date: Mapped[date] = mapped_column(Date, nullable=False)
    event_type: Mapped[EventType] = mapped_column(
        SQLEnum(EventType, native_enum=False), default=EventType.MILESTONE, nullable=False
    )
    created_by: Mapped[int] = mapped_column(ForeignKey("profiles.id"), nullable=False)

    def __repr__(self) -> str:
        return f"<CalendarEvent(id={self.id}, title='{self.title}', date={self.event_date})>"
