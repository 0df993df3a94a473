"""Repository layer for database operations."""

from .activity import NotificationRepository, ProjectActivityRepository
from .base import BaseRepository
from .board import CalendarEventRepository, KanbanColumnRepository, ProjectFileRepository
from .profile import ProfileRepository
from .project import ProjectMemberRepository, ProjectRepository
from .task import UNASSIGNED, TaskRepository
from .task_comment import TaskCommentRepository

__all__ = [
    "BaseRepository",
    "ProfileRepository",
    "ProjectRepository",
    "ProjectMemberRepository",
    "TaskRepository",
    "TaskCommentRepository",
    "KanbanColumnRepository",
    "CalendarEventRepository",
    "ProjectFileRepository",
    "ProjectActivityRepository",
    "NotificationRepository",
    "UNASSIGNED",
]
