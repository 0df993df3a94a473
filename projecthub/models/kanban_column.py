"""Kanban column model."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, utc_now


class KanbanColumn(Base):
    """A named board column of a project."""

    __tablename__ = "kanban_columns"

    id: Mapped[int] = mapped_column(primary_key=True)
    project_id: Mapped[int] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    color: Mapped[str] = mapped_column(String(7), default="#6b7280", nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)

    project: Mapped["Project"] = relationship("Project", back_populates="kanban_columns")

    def __repr__(self) -> str:
        return f"<KanbanColumn(id={self.id}, name='{self.name}', position={self.position})>"
