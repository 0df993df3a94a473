"""Project and project membership models."""

import enum
from datetime import date, datetime

from sqlalchemy import JSON, Date, DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, utc_now


class ProjectStatus(str, enum.Enum):
    """Project lifecycle status."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class MemberRole(str, enum.Enum):
    """Role of a profile inside one project."""

    MEMBER = "member"
    MANAGER = "manager"
    VIEWER = "viewer"


class Project(Base, TimestampMixin):
    """Project model for organizing tasks."""

    __tablename__ = "projects"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(200), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String(50), default="general", nullable=False)
    status: Mapped[ProjectStatus] = mapped_column(
        SQLEnum(ProjectStatus, native_enum=False), default=ProjectStatus.ACTIVE, nullable=False
    )
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    created_by: Mapped[int] = mapped_column(ForeignKey("profiles.id"), nullable=False)

    # Relationships
    tasks: Mapped[list["Task"]] = relationship(
        "Task", back_populates="project", cascade="all, delete-orphan"
    )
    members: Mapped[list["ProjectMember"]] = relationship(
        "ProjectMember", back_populates="project", cascade="all, delete-orphan"
    )
    kanban_columns: Mapped[list["KanbanColumn"]] = relationship(
        "KanbanColumn",
        back_populates="project",
        cascade="all, delete-orphan",
        order_by="KanbanColumn.position",
    )
    events: Mapped[list["CalendarEvent"]] = relationship(
        "CalendarEvent", cascade="all, delete-orphan"
    )
    files: Mapped[list["ProjectFile"]] = relationship("ProjectFile", cascade="all, delete-orphan")
    activity: Mapped[list["ProjectActivity"]] = relationship(
        "ProjectActivity", cascade="all, delete-orphan"
    )
    notifications: Mapped[list["Notification"]] = relationship(
        "Notification", cascade="all, delete-orphan"
    )

    @property
    def is_archived(self) -> bool:
        return self.status == ProjectStatus.ARCHIVED

    def __repr__(self) -> str:
        return f"<Project(id={self.id}, name='{self.name}')>"


class ProjectMember(Base):
    """Membership of a profile in a project."""

    __tablename__ = "project_members"
    __table_args__ = (UniqueConstraint("project_id", "user_id", name="unique_project_member"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    project_id: Mapped[int] = mapped_column(ForeignKey("projects.id"), nullable=False)
    user_id: Mapped[int] = mapped_column(ForeignKey("profiles.id"), nullable=False)
    role: Mapped[MemberRole] = mapped_column(
        SQLEnum(MemberRole, native_enum=False), default=MemberRole.MEMBER, nullable=False
    )
    permissions: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
    joined_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)

    project: Mapped["Project"] = relationship("Project", back_populates="members")
    profile: Mapped["Profile"] = relationship("Profile", back_populates="memberships")

    def __repr__(self) -> str:
        return (
            f"<ProjectMember(project_id={self.project_id}, user_id={self.user_id}, "
            f"role={self.role.value})>"
        )
