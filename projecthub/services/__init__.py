"""Service layer with business logic."""

from .access import AccessPolicy
from .activity import ActivityService, NotificationService
from .admin import AdminService
from .calendar import CalendarService
from .comment import CommentService
from .exceptions import ConflictError
from .files import FileService
from .kanban import BoardColumn, KanbanService
from .profile import ProfileService
from .project import ProjectService
from .task import TaskService, progress_percent

__all__ = [
    "AccessPolicy",
    "ActivityService",
    "NotificationService",
    "AdminService",
    "CalendarService",
    "CommentService",
    "ConflictError",
    "FileService",
    "BoardColumn",
    "KanbanService",
    "ProfileService",
    "ProjectService",
    "TaskService",
    "progress_percent",
]
