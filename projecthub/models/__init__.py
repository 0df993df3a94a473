"""SQLAlchemy models for ProjectHub."""

from .activity import Notification, ProjectActivity
from .base import Base, TimestampMixin
from .calendar_event import CalendarEvent, EventType
from .kanban_column import KanbanColumn
from .profile import Profile, UserRole
from .project import MemberRole, Project, ProjectMember, ProjectStatus
from .project_file import ProjectFile
from .task import Task, TaskPriority, TaskStatus
from .task_comment import ContentType, TaskComment

__all__ = [
    "Base",
    "TimestampMixin",
    "Profile",
    "UserRole",
    "Project",
    "ProjectStatus",
    "ProjectMember",
    "MemberRole",
    "Task",
    "TaskStatus",
    "TaskPriority",
    "TaskComment",
    "ContentType",
    "KanbanColumn",
    "CalendarEvent",
    "EventType",
    "ProjectFile",
    "ProjectActivity",
    "Notification",
]
