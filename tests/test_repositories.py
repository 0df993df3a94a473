"""
Тесты для Repository Layer.

Проверяем:
- Базовые CRUD операции (BaseRepository)
- Специфичные запросы (фильтры задач, подзадачи, лента, уведомления)
"""

from datetime import date

import pytest

from projecthub.models import (
    CalendarEvent,
    EventType,
    MemberRole,
    Notification,
    Profile,
    ProjectStatus,
    Task,
    TaskComment,
    TaskPriority,
    TaskStatus,
    UserRole,
)
from projecthub.repositories import (
    CalendarEventRepository,
    KanbanColumnRepository,
    NotificationRepository,
    ProfileRepository,
    ProjectMemberRepository,
    ProjectRepository,
    TaskCommentRepository,
    TaskRepository,
)


async def add_task(db, project, creator, title, **fields):
    return await TaskRepository(db).create(
        Task(title=title, project_id=project.id, created_by=creator.id, **fields)
    )


# ============================================================================
# BASE REPOSITORY
# ============================================================================


@pytest.mark.asyncio
async def test_create_and_get_profile(test_db):
    """Test: create() возвращает объект с ID, get_by_id() находит его."""
    repo = ProfileRepository(test_db)

    profile = await repo.create(Profile(email="anna@example.com", display_name="Anna"))

    assert profile.id is not None
    assert profile.role == UserRole.USER
    assert profile.created_at is not None

    found = await repo.get_by_id(profile.id)
    assert found is not None
    assert found.email == "anna@example.com"


@pytest.mark.asyncio
async def test_get_by_id_not_found(test_db):
    assert await ProfileRepository(test_db).get_by_id(999) is None


@pytest.mark.asyncio
async def test_update_and_delete(test_db):
    """Test: update() меняет поля, delete() удаляет запись."""
    repo = ProfileRepository(test_db)
    profile = await repo.create(Profile(email="a@example.com"))

    updated = await repo.update(profile.id, display_name="Renamed")
    assert updated.display_name == "Renamed"

    assert await repo.delete(profile.id) is True
    assert await repo.exists(profile.id) is False
    assert await repo.delete(profile.id) is False
    assert await repo.update(profile.id, display_name="x") is None


@pytest.mark.asyncio
async def test_get_many_and_count(test_db):
    repo = ProfileRepository(test_db)
    a = await repo.create(Profile(email="a@example.com"))
    b = await repo.create(Profile(email="b@example.com"))
    await repo.create(Profile(email="c@example.com"))

    found = await repo.get_many([a.id, b.id, 999])

    assert {p.id for p in found} == {a.id, b.id}
    assert await repo.get_many([]) == []
    assert await repo.count() == 3
    assert [p.email for p in await repo.get_all(skip=1, limit=1)] == ["b@example.com"]


# ============================================================================
# PROFILE REPOSITORY
# ============================================================================


@pytest.mark.asyncio
async def test_profile_get_by_email_case_insensitive(test_db):
    repo = ProfileRepository(test_db)
    await repo.create(Profile(email="anna@example.com"))

    assert await repo.get_by_email("ANNA@example.com ") is not None
    assert await repo.get_by_email("other@example.com") is None


@pytest.mark.asyncio
async def test_profile_search_and_labels(test_db):
    """Test: поиск по имени/email и подписи для комментариев."""
    repo = ProfileRepository(test_db)
    anna = await repo.create(Profile(email="anna@example.com", display_name="Anna"))
    ivan = await repo.create(Profile(email="ivan@example.com", full_name="Ivan Petrov"))
    nobody = await repo.create(Profile(email="x@example.com"))

    assert [p.id for p in await repo.search("petrov")] == [ivan.id]
    assert len(await repo.search()) == 3

    labels = await repo.get_labels([anna.id, ivan.id, nobody.id])
    assert labels == {anna.id: "Anna", ivan.id: "Ivan Petrov", nobody.id: "Unknown User"}


@pytest.mark.asyncio
async def test_profile_count_by_role(test_db, admin, member):
    repo = ProfileRepository(test_db)

    assert await repo.count_by_role(UserRole.ADMIN) == 1
    assert await repo.count_by_role(UserRole.USER) == 1


# ============================================================================
# PROJECT REPOSITORY
# ============================================================================


@pytest.mark.asyncio
async def test_get_visible_projects(test_db, project, admin, member, outsider):
    """Test: участник видит свои проекты, администратор - все."""
    repo = ProjectRepository(test_db)

    assert [p.id for p in await repo.get_visible(user_id=member.id)] == [project.id]
    assert await repo.get_visible(user_id=outsider.id) == []
    assert [p.id for p in await repo.get_visible(user_id=None)] == [project.id]


@pytest.mark.asyncio
async def test_get_visible_hides_archived(test_db, project, member):
    repo = ProjectRepository(test_db)
    await repo.update_obj(project, status=ProjectStatus.ARCHIVED)

    assert await repo.get_visible(user_id=member.id) == []
    assert len(await repo.get_visible(user_id=member.id, include_archived=True)) == 1
    assert await repo.count_by_status(ProjectStatus.ARCHIVED) == 1


@pytest.mark.asyncio
async def test_members_with_profile(test_db, project, admin, member, viewer):
    repo = ProjectMemberRepository(test_db)

    members = await repo.get_by_project(project.id)

    assert {m.user_id for m in members} == {admin.id, member.id, viewer.id}
    assert all(m.profile is not None for m in members)
    assert await repo.count_by_project(project.id) == 3
    assert await repo.count_by_role(project.id, MemberRole.VIEWER) == 1
    assert await repo.get_membership(project.id, member.id) is not None


# ============================================================================
# TASK REPOSITORY
# ============================================================================


@pytest.mark.asyncio
async def test_get_subtasks_ordered(test_db, project, admin):
    """Test: подзадачи по subtask_order, NULL считается 0, равные - по id."""
    parent = await add_task(test_db, project, admin, "Parent")
    late = await add_task(test_db, project, admin, "late", parent_task_id=parent.id, subtask_order=2)
    none = await add_task(test_db, project, admin, "none", parent_task_id=parent.id)
    first = await add_task(
        test_db, project, admin, "first", parent_task_id=parent.id, subtask_order=0
    )

    subtasks = await TaskRepository(test_db).get_subtasks(parent.id)

    assert [t.id for t in subtasks] == [none.id, first.id, late.id]


@pytest.mark.asyncio
async def test_count_subtasks(test_db, project, admin):
    parent = await add_task(test_db, project, admin, "Parent")
    await add_task(test_db, project, admin, "a", parent_task_id=parent.id, status=TaskStatus.DONE)
    await add_task(test_db, project, admin, "b", parent_task_id=parent.id)

    assert await TaskRepository(test_db).count_subtasks(parent.id) == (2, 1)


@pytest.mark.asyncio
async def test_get_filtered(test_db, project, admin, member):
    """Test: фильтры задач комбинируются через AND."""
    repo = TaskRepository(test_db)
    api = await add_task(
        test_db, project, admin, "Build API", priority=TaskPriority.HIGH, assignee_id=member.id
    )
    docs = await add_task(test_db, project, admin, "Docs", description="api reference")
    await add_task(test_db, project, admin, "Design", status=TaskStatus.DONE)
    await add_task(test_db, project, admin, "sub", parent_task_id=api.id, is_subtask=True)

    assert {t.id for t in await repo.get_filtered(project.id, search="API")} == {api.id, docs.id}
    assert [t.id for t in await repo.get_filtered(project.id, priority=TaskPriority.HIGH)] == [
        api.id
    ]
    assert [t.id for t in await repo.get_filtered(project.id, assignee=str(member.id))] == [api.id]
    assert len(await repo.get_filtered(project.id, assignee="unassigned")) == 3
    assert len(await repo.get_filtered(project.id, status=TaskStatus.DONE)) == 1
    assert len(await repo.get_filtered(project.id, root_only=True)) == 3


@pytest.mark.asyncio
async def test_count_by_status_has_every_status(test_db, project, admin):
    await add_task(test_db, project, admin, "a", status=TaskStatus.REVIEW)

    counts = await TaskRepository(test_db).count_by_status(project.id)

    assert counts == {"todo": 0, "in-progress": 0, "review": 1, "done": 0}


# ============================================================================
# COMMENTS, BOARD, CALENDAR, NOTIFICATIONS
# ============================================================================


@pytest.mark.asyncio
async def test_comments_newest_first(test_db, project, admin):
    task = await add_task(test_db, project, admin, "Task")
    repo = TaskCommentRepository(test_db)
    first = await repo.create(TaskComment(task_id=task.id, user_id=admin.id, comment="first"))
    second = await repo.create(TaskComment(task_id=task.id, user_id=admin.id, comment="second"))

    comments = await repo.get_by_task(task.id)

    assert [c.id for c in comments] == [second.id, first.id]
    assert await repo.count_by_task(task.id) == 2


@pytest.mark.asyncio
async def test_kanban_columns_seeded_and_next_position(test_db, project):
    repo = KanbanColumnRepository(test_db)

    columns = await repo.get_by_project(project.id)

    assert [c.name for c in columns] == ["To Do", "In Progress", "Review", "Done"]
    assert await repo.next_position(project.id) == 4
    assert await repo.next_position(12345) == 0


@pytest.mark.asyncio
async def test_calendar_date_range(test_db, project, admin):
    repo = CalendarEventRepository(test_db)
    for day in (1, 10, 20):
        await repo.create(
            CalendarEvent(
                project_id=project.id,
                title=f"Day {day}",
                event_date=date(2026, 11, day),
                event_type=EventType.MILESTONE,
                created_by=admin.id,
            )
        )

    events = await repo.get_by_project(project.id, date(2026, 11, 5), date(2026, 11, 20))

    assert [e.title for e in events] == ["Day 10", "Day 20"]


@pytest.mark.asyncio
async def test_notifications_unread_and_mark_all(test_db, member):
    repo = NotificationRepository(test_db)
    for i in range(3):
        await repo.create(
            Notification(user_id=member.id, type="test", title=f"n{i}", message="m")
        )

    assert await repo.count_unread(member.id) == 3
    assert await repo.mark_all_read(member.id) == 3
    assert await repo.count_unread(member.id) == 0
    assert len(await repo.get_for_user(member.id)) == 3
