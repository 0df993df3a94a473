"""Task comment model."""

import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Text
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, utc_now


class ContentType(str, enum.Enum):
    """How the comment body should be rendered."""

    PLAIN = "plain"
    MARKDOWN = "markdown"


class TaskComment(Base):
    """Comment model for tasks (supports replies, mentions and attachments)."""

    __tablename__ = "task_comments"

    id: Mapped[int] = mapped_column(primary_key=True)
    task_id: Mapped[int] = mapped_column(
        ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(ForeignKey("profiles.id"), nullable=False)
    comment: Mapped[str] = mapped_column(Text, nullable=False)
    content_type: Mapped[ContentType] = mapped_column(
        SQLEnum(ContentType, native_enum=False), default=ContentType.PLAIN, nullable=False
    )
    reply_to: Mapped[int | None] = mapped_column(
        ForeignKey("task_comments.id", ondelete="CASCADE"), nullable=True
    )
    mentions: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    attachments: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    edited: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    edited_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)

    # Relationships
    task: Mapped["Task"] = relationship("Task", back_populates="comments")
    author: Mapped["Profile"] = relationship("Profile")
    parent: Mapped[Optional["TaskComment"]] = relationship(
        "TaskComment", remote_side=[id], back_populates="replies"
    )
    # Удаление комментария удаляет и ответы на него
    replies: Mapped[list["TaskComment"]] = relationship(
        "TaskComment", back_populates="parent", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        preview = self.comment[:50] + "..." if len(self.comment) > 50 else self.comment
        return f"<TaskComment(id={self.id}, task_id={self.task_id}, comment='{preview}')>"
