"""
Тесты для Service Layer (Бизнес-логика).

Проверяем:
- Валидацию бизнес-правил
- Права доступа (администратор / менеджер / участник / viewer / посторонний)
- Порядок подзадач и прогресс родителя
- Пару status / kanban_column и версию задачи
- Побочные эффекты: уведомления и лента активности
"""

from datetime import date

import pytest

from projecthub.models import (
    EventType,
    MemberRole,
    ProjectStatus,
    TaskPriority,
    TaskStatus,
    UserRole,
)
from projecthub.repositories import NotificationRepository, ProjectActivityRepository
from projecthub.services import (
    ActivityService,
    AdminService,
    CalendarService,
    CommentService,
    ConflictError,
    FileService,
    KanbanService,
    NotificationService,
    ProfileService,
    ProjectService,
    TaskService,
)
from projecthub.storage import PROJECT_FILES_BUCKET


async def activity_types(db, project_id):
    feed = await ProjectActivityRepository(db).get_feed(project_id, limit=500)
    return [entry.activity_type for entry in feed]


# ============================================================================
# PROFILE SERVICE TESTS
# ============================================================================


@pytest.mark.asyncio
async def test_create_profile_defaults(test_db):
    """Test: email приводится к нижнему регистру, роль по умолчанию user."""
    profile = await ProfileService(test_db).create_profile(" Anna@Example.com ", full_name="Anna")

    assert profile.email == "anna@example.com"
    assert profile.role == UserRole.USER
    assert profile.display_name == "Anna"


@pytest.mark.asyncio
async def test_create_profile_duplicate_email(test_db, member):
    with pytest.raises(ValueError, match="already exists"):
        await ProfileService(test_db).create_profile("MEMBER@example.com")


@pytest.mark.asyncio
async def test_create_profile_unknown_role(test_db):
    with pytest.raises(ValueError, match="Unknown role"):
        await ProfileService(test_db).create_profile("x@example.com", metadata={"role": "root"})


@pytest.mark.asyncio
async def test_update_me_only_names(test_db, member):
    service = ProfileService(test_db)

    updated = await service.update_me(member, display_name="  Mem  ")
    assert updated.display_name == "Mem"

    with pytest.raises(ValueError, match="cannot be updated"):
        await service.update_me(member, role=UserRole.ADMIN)


# ============================================================================
# PROJECT SERVICE TESTS
# ============================================================================


@pytest.mark.asyncio
async def test_create_project_seeds_columns_and_manager(test_db, admin):
    """Test: новый проект получает 4 колонки, создатель - менеджер."""
    service = ProjectService(test_db)

    project = await service.create_project(admin, name="  Launch  ", category="marketing")
    await test_db.commit()

    assert project.name == "Launch"
    assert project.status == ProjectStatus.ACTIVE

    columns = await KanbanService(test_db).list_columns(admin, project.id)
    assert [(c.name, c.position) for c in columns] == [
        ("To Do", 0),
        ("In Progress", 1),
        ("Review", 2),
        ("Done", 3),
    ]

    members = await service.list_members(admin, project.id)
    assert [(m.user_id, m.role) for m in members] == [(admin.id, MemberRole.MANAGER)]
    assert "project_created" in await activity_types(test_db, project.id)


@pytest.mark.asyncio
async def test_create_project_requires_admin(test_db, member):
    with pytest.raises(PermissionError):
        await ProjectService(test_db).create_project(member, name="Mine")


@pytest.mark.asyncio
async def test_create_project_validation(test_db, admin, project):
    service = ProjectService(test_db)

    with pytest.raises(ValueError, match="name cannot be empty"):
        await service.create_project(admin, name="  ")

    with pytest.raises(ValueError, match="already exists"):
        await service.create_project(admin, name=project.name)

    with pytest.raises(ValueError, match="end date"):
        await service.create_project(
            admin, name="Dates", start_date=date(2026, 5, 2), end_date=date(2026, 5, 1)
        )


@pytest.mark.asyncio
async def test_project_visibility(test_db, project, member, outsider, admin):
    """Test: посторонний не видит проект, участник и администратор видят."""
    service = ProjectService(test_db)

    assert (await service.get_project(member, project.id)).id == project.id
    assert [p.id for p in await service.list_projects(admin)] == [project.id]
    assert await service.list_projects(outsider) == []

    with pytest.raises(PermissionError):
        await service.get_project(outsider, project.id)

    with pytest.raises(ValueError, match="not found"):
        await service.get_project(admin, 999)


@pytest.mark.asyncio
async def test_update_project_requires_manager(test_db, project, admin, member):
    service = ProjectService(test_db)

    with pytest.raises(PermissionError):
        await service.update_project(member, project.id, description="x")

    updated = await service.update_project(admin, project.id, description="New")
    assert updated.description == "New"

    with pytest.raises(ValueError, match="cannot be updated"):
        await service.update_project(admin, project.id, created_by=member.id)


@pytest.mark.asyncio
async def test_archive_and_unarchive(test_db, project, admin, member):
    service = ProjectService(test_db)

    archived = await service.archive_project(admin, project.id)
    assert archived.is_archived
    assert await service.list_projects(member) == []
    assert len(await service.list_projects(member, include_archived=True)) == 1

    with pytest.raises(ValueError, match="archived project"):
        await TaskService(test_db).create_task(member, "Late", project.id)

    with pytest.raises(PermissionError):
        await service.unarchive_project(member, project.id)

    assert (await service.unarchive_project(admin, project.id)).status == ProjectStatus.ACTIVE


@pytest.mark.asyncio
async def test_delete_project_removes_files(test_db, project, admin, storage):
    """Test: удаление проекта удаляет и объекты в хранилище."""
    files = FileService(test_db, storage)
    stored = await files.upload_file(admin, project.id, "plan.txt", b"plan")

    assert await ProjectService(test_db, storage).delete_project(admin, project.id) is True
    assert not storage.exists(PROJECT_FILES_BUCKET, stored.file_path)

    with pytest.raises(ValueError, match="not found"):
        await ProjectService(test_db).get_project(admin, project.id)


@pytest.mark.asyncio
async def test_project_statistics(test_db, project, admin, storage):
    tasks = TaskService(test_db)
    await tasks.create_task(admin, "a", project.id, status=TaskStatus.DONE)
    await tasks.create_task(admin, "b", project.id)
    await tasks.create_task(admin, "c", project.id, status=TaskStatus.REVIEW)
    await FileService(test_db, storage).upload_file(admin, project.id, "f.bin", b"12345")

    stats = await ProjectService(test_db).get_project_statistics(admin, project.id)

    assert stats["total_tasks"] == 3
    assert stats["tasks_by_status"] == {"todo": 1, "in-progress": 0, "review": 1, "done": 1}
    assert stats["completion_rate"] == 33.33
    assert stats["member_count"] == 3
    assert stats["file_count"] == 1
    assert stats["storage_bytes"] == 5


# ============================================================================
# TEAM TESTS
# ============================================================================


@pytest.mark.asyncio
async def test_add_member_by_email(test_db, project, admin, outsider):
    service = ProjectService(test_db)

    added = await service.add_member(admin, project.id, email="OUTSIDER@example.com")

    assert added.user_id == outsider.id
    assert added.role == MemberRole.MEMBER
    assert added.profile.email == "outsider@example.com"
    assert "member_added" in await activity_types(test_db, project.id)


@pytest.mark.asyncio
async def test_add_member_validation(test_db, project, admin, member):
    service = ProjectService(test_db)

    with pytest.raises(ValueError, match="already a member"):
        await service.add_member(admin, project.id, user_id=member.id)

    with pytest.raises(ValueError, match="not found"):
        await service.add_member(admin, project.id, email="ghost@example.com")

    with pytest.raises(ValueError, match="user_id or email"):
        await service.add_member(admin, project.id)


@pytest.mark.asyncio
async def test_member_cannot_manage_team(test_db, project, member, outsider):
    with pytest.raises(PermissionError):
        await ProjectService(test_db).add_member(member, project.id, user_id=outsider.id)


@pytest.mark.asyncio
async def test_manager_manages_team(test_db, project, admin, member, viewer):
    """Test: менеджер проекта (не администратор) меняет роли и удаляет участников."""
    service = ProjectService(test_db)
    members = {m.user_id: m for m in await service.list_members(admin, project.id)}

    promoted = await service.change_member_role(
        admin, project.id, members[member.id].id, MemberRole.MANAGER
    )
    assert promoted.role == MemberRole.MANAGER

    assert await service.remove_member(member, project.id, members[viewer.id].id) is True
    with pytest.raises(PermissionError):
        await service.get_project(viewer, project.id)


# ============================================================================
# TASK SERVICE TESTS
# ============================================================================


@pytest.mark.asyncio
async def test_create_task_sets_column_from_status(test_db, project, member):
    """Test: kanban_column пишется вместе со status."""
    task = await TaskService(test_db).create_task(
        member, "Write copy", project.id, status=TaskStatus.IN_PROGRESS
    )

    assert task.status == TaskStatus.IN_PROGRESS
    assert task.kanban_column == "in-progress"
    assert task.version == 1
    assert task.created_by == member.id
    assert task.is_subtask is False


@pytest.mark.asyncio
async def test_create_task_validation(test_db, project, member, outsider):
    service = TaskService(test_db)

    with pytest.raises(ValueError, match="title cannot be empty"):
        await service.create_task(member, "  ", project.id)

    with pytest.raises(ValueError, match="not found"):
        await service.create_task(member, "x", 999)

    with pytest.raises(ValueError, match="not a member"):
        await service.create_task(member, "x", project.id, assignee_id=outsider.id)

    with pytest.raises(PermissionError):
        await service.create_task(outsider, "x", project.id)


@pytest.mark.asyncio
async def test_viewer_is_read_only(test_db, project, admin, viewer):
    """Test: viewer читает задачи и комментарии, но не меняет их."""
    tasks = TaskService(test_db)
    task = await tasks.create_task(admin, "Visible", project.id)

    assert [t.id for t in await tasks.list_tasks(viewer, project.id)] == [task.id]
    assert (await tasks.get_task(viewer, task.id)).id == task.id

    with pytest.raises(PermissionError, match="read-only"):
        await tasks.create_task(viewer, "Nope", project.id)
    with pytest.raises(PermissionError):
        await tasks.update_task(viewer, task.id, title="Nope")
    with pytest.raises(PermissionError):
        await tasks.move_task(viewer, task.id, "Done")
    with pytest.raises(PermissionError):
        await CommentService(test_db).add_comment(viewer, task.id, "hi")


@pytest.mark.asyncio
async def test_subtask_inserted_first(test_db, project, member):
    """Test: подзадачи с порядком [0, 1] → [1, 2], новая получает 0."""
    service = TaskService(test_db)
    parent = await service.create_task(member, "Parent", project.id)

    first = await service.create_subtask(member, parent.id, "first")
    second = await service.create_subtask(member, parent.id, "second")
    assert (first.subtask_order, second.subtask_order) == (1, 0)

    third = await service.create_subtask(member, parent.id, "third")

    assert (third.subtask_order, second.subtask_order, first.subtask_order) == (0, 1, 2)
    assert third.is_subtask is True
    assert third.status == TaskStatus.TODO
    # Сдвиг соседа - тоже запись
    assert first.version == 3

    ordered = await service.list_subtasks(member, parent.id)
    assert [t.title for t in ordered] == ["third", "second", "first"]


@pytest.mark.asyncio
async def test_subtask_parent_in_other_project(test_db, project, admin):
    service = TaskService(test_db)
    other = await ProjectService(test_db).create_project(admin, name="Other")
    parent = await service.create_task(admin, "Parent", other.id)

    with pytest.raises(ValueError, match="different project"):
        await service.create_task(admin, "Child", project.id, parent_task_id=parent.id)


@pytest.mark.asyncio
async def test_reorder_subtasks(test_db, project, member):
    """Test: после переноса subtask_order равен индексу."""
    service = TaskService(test_db)
    parent = await service.create_task(member, "Parent", project.id)
    for title in ("c", "b", "a"):
        await service.create_subtask(member, parent.id, title)

    reordered = await service.reorder_subtasks(member, parent.id, 0, 2)

    assert [t.title for t in reordered] == ["b", "c", "a"]
    assert [t.subtask_order for t in reordered] == [0, 1, 2]
    assert [t.title for t in await service.list_subtasks(member, parent.id)] == ["b", "c", "a"]
    assert "subtasks_reordered" in await activity_types(test_db, project.id)


@pytest.mark.asyncio
async def test_reorder_subtasks_out_of_range(test_db, project, member):
    service = TaskService(test_db)
    parent = await service.create_task(member, "Parent", project.id)
    await service.create_subtask(member, parent.id, "only")

    with pytest.raises(ValueError, match="out of range"):
        await service.reorder_subtasks(member, parent.id, 0, 1)


@pytest.mark.asyncio
async def test_move_review_task_to_done(test_db, project, member):
    """Test: перенос в колонку "Done" ставит статус done и позицию 0."""
    service = TaskService(test_db)
    task = await service.create_task(member, "Check", project.id, status=TaskStatus.REVIEW)

    moved = await service.move_task(member, task.id, "Done")

    assert moved.status == TaskStatus.DONE
    assert moved.kanban_column == "done"
    assert moved.kanban_position == 0
    assert moved.version == 2


@pytest.mark.asyncio
async def test_move_to_custom_column_means_todo(test_db, project, member):
    service = TaskService(test_db)
    task = await service.create_task(member, "Blocked", project.id, status=TaskStatus.REVIEW)

    moved = await service.move_task(member, task.id, "Blocked")

    assert moved.status == TaskStatus.TODO
    assert moved.kanban_column == "to-do"


@pytest.mark.asyncio
async def test_update_status_rewrites_column(test_db, project, member):
    service = TaskService(test_db)
    task = await service.create_task(member, "Task", project.id)

    updated = await service.update_task(member, task.id, version=1, status=TaskStatus.REVIEW)

    assert updated.kanban_column == "review"
    assert updated.version == 2


@pytest.mark.asyncio
async def test_update_with_stale_version_conflicts(test_db, project, member):
    """Test: устаревшая version → ConflictError, изменение не применяется."""
    service = TaskService(test_db)
    task = await service.create_task(member, "Task", project.id)
    await service.update_task(member, task.id, title="First edit")

    with pytest.raises(ConflictError) as exc_info:
        await service.update_task(member, task.id, version=1, title="Second edit")

    assert exc_info.value.expected == 1
    assert exc_info.value.actual == 2
    assert (await service.get_task(member, task.id)).title == "First edit"

    with pytest.raises(ConflictError):
        await service.move_task(member, task.id, "Done", version=1)


@pytest.mark.asyncio
async def test_update_task_rejects_unknown_fields(test_db, project, member):
    service = TaskService(test_db)
    task = await service.create_task(member, "Task", project.id)

    with pytest.raises(ValueError, match="cannot be updated"):
        await service.update_task(member, task.id, project_id=123)


@pytest.mark.asyncio
async def test_parent_follows_subtasks(test_db, project, member):
    """Test: частичный прогресс → родитель in-progress, 100% → done."""
    service = TaskService(test_db)
    parent = await service.create_task(member, "Parent", project.id)
    a = await service.create_subtask(member, parent.id, "a")
    b = await service.create_subtask(member, parent.id, "b")

    await service.toggle_subtask(member, a.id)
    parent = await service.get_task(member, parent.id)
    assert parent.status == TaskStatus.IN_PROGRESS
    assert parent.kanban_column == "in-progress"
    assert await service.calculate_task_progress(parent.id) == 50

    await service.toggle_subtask(member, b.id)
    parent = await service.get_task(member, parent.id)
    assert parent.status == TaskStatus.DONE
    assert parent.kanban_column == "done"
    assert await service.get_task_progress(member, parent.id) == 100

    # Снятие отметки не возвращает родителя назад
    undone = await service.toggle_subtask(member, b.id)
    assert undone.status == TaskStatus.TODO
    assert (await service.get_task(member, parent.id)).status == TaskStatus.DONE


@pytest.mark.asyncio
async def test_toggle_requires_subtask(test_db, project, member):
    service = TaskService(test_db)
    task = await service.create_task(member, "Root", project.id)

    with pytest.raises(ValueError, match="not a subtask"):
        await service.toggle_subtask(member, task.id)


@pytest.mark.asyncio
async def test_delete_task_owner_or_admin(test_db, project, admin, member):
    """Test: удалить задачу может автор или администратор."""
    service = TaskService(test_db)
    by_admin = await service.create_task(admin, "Admin's", project.id)
    by_member = await service.create_task(member, "Member's", project.id)

    with pytest.raises(PermissionError):
        await service.delete_task(member, by_admin.id)

    assert await service.delete_task(member, by_member.id) is True
    assert await service.delete_task(admin, by_admin.id) is True
    assert await service.list_tasks(admin, project.id) == []


@pytest.mark.asyncio
async def test_delete_subtask_updates_parent(test_db, project, member):
    service = TaskService(test_db)
    parent = await service.create_task(member, "Parent", project.id)
    done = await service.create_subtask(member, parent.id, "done")
    todo = await service.create_subtask(member, parent.id, "todo")
    await service.toggle_subtask(member, done.id)

    await service.delete_task(member, todo.id)

    assert (await service.get_task(member, parent.id)).status == TaskStatus.DONE


@pytest.mark.asyncio
async def test_list_tasks_filters(test_db, project, member):
    service = TaskService(test_db)
    await service.create_task(member, "Urgent fix", project.id, priority=TaskPriority.CRITICAL)
    await service.create_task(member, "Cleanup", project.id, assignee_id=member.id)

    critical = await service.list_tasks(member, project.id, priority=TaskPriority.CRITICAL)
    mine = await service.list_tasks(member, project.id, assignee=member.id)

    assert [t.title for t in critical] == ["Urgent fix"]
    assert [t.title for t in mine] == ["Cleanup"]


@pytest.mark.asyncio
async def test_task_statistics(test_db, project, member):
    service = TaskService(test_db)
    task = await service.create_task(member, "Task", project.id, due_date=date(2000, 1, 1))
    await service.create_subtask(member, task.id, "sub")
    await CommentService(test_db).add_comment(member, task.id, "note")

    stats = await service.get_task_statistics(member, task.id)

    assert stats["total_subtasks"] == 1
    assert stats["completed_subtasks"] == 0
    assert stats["progress"] == 0
    assert stats["comments_count"] == 1
    assert stats["is_overdue"] is True
    assert stats["days_until_due"] < 0


# ============================================================================
# COMMENT SERVICE TESTS
# ============================================================================


@pytest.mark.asyncio
async def test_comment_tree(test_db, project, admin, member):
    """Test: ответы вложены под родителя, у каждого узла имя автора."""
    tasks = TaskService(test_db)
    comments = CommentService(test_db)
    task = await tasks.create_task(admin, "Task", project.id)

    root = await comments.add_comment(admin, task.id, "Root")
    reply = await comments.add_comment(member, task.id, "Reply", reply_to=root.id)
    await comments.add_comment(admin, task.id, "Nested", reply_to=reply.id)
    await comments.add_comment(member, task.id, "Second root")

    forest, total = await comments.get_comment_tree(member, task.id)

    assert total == 4
    assert {node.comment.comment for node in forest} == {"Root", "Second root"}
    root_node = next(node for node in forest if node.id == root.id)
    assert root_node.author_name == "Admin"
    assert [n.comment.comment for n in root_node.replies] == ["Reply"]
    assert root_node.replies[0].author_name == "Member"
    assert [n.comment.comment for n in root_node.replies[0].replies] == ["Nested"]


@pytest.mark.asyncio
async def test_comment_notifications(test_db, project, admin, member, viewer):
    """Test: уведомления упомянутым, исполнителю и автору родительского комментария."""
    task = await TaskService(test_db).create_task(
        admin, "Task", project.id, assignee_id=member.id
    )
    comments = CommentService(test_db)
    notifications = NotificationRepository(test_db)

    root = await comments.add_comment(admin, task.id, "@vera look", mentions=[viewer.id])

    assert [n.type for n in await notifications.get_for_user(viewer.id)] == ["comment_mention"]
    assert [n.type for n in await notifications.get_for_user(member.id)] == ["task_comment"]

    reply = await comments.add_comment(member, task.id, "On it", reply_to=root.id)

    admin_notes = await notifications.get_for_user(admin.id)
    assert [n.type for n in admin_notes] == ["comment_reply"]
    assert admin_notes[0].metadata_["comment_id"] == reply.id


@pytest.mark.asyncio
async def test_commenter_never_notifies_self(test_db, project, member):
    """Test: автор комментария не получает уведомлений о своём комментарии."""
    task = await TaskService(test_db).create_task(
        member, "Mine", project.id, assignee_id=member.id
    )
    comments = CommentService(test_db)

    root = await comments.add_comment(member, task.id, "note to self", mentions=[member.id])
    await comments.add_comment(member, task.id, "and again", reply_to=root.id)

    assert await NotificationRepository(test_db).get_for_user(member.id) == []


@pytest.mark.asyncio
async def test_add_comment_validation(test_db, project, admin, member):
    tasks = TaskService(test_db)
    comments = CommentService(test_db)
    task = await tasks.create_task(admin, "Task", project.id)
    other = await tasks.create_task(admin, "Other", project.id)
    foreign = await comments.add_comment(admin, other.id, "elsewhere")

    with pytest.raises(ValueError, match="cannot be empty"):
        await comments.add_comment(member, task.id, "   ")

    with pytest.raises(ValueError, match="same task"):
        await comments.add_comment(member, task.id, "reply", reply_to=foreign.id)

    with pytest.raises(ValueError, match="not found"):
        await comments.add_comment(member, task.id, "reply", reply_to=999)

    with pytest.raises(ValueError, match="Mentioned users not found"):
        await comments.add_comment(member, task.id, "hey", mentions=[999])


@pytest.mark.asyncio
async def test_edit_comment_author_only(test_db, project, admin, member):
    task = await TaskService(test_db).create_task(admin, "Task", project.id)
    comments = CommentService(test_db)
    comment = await comments.add_comment(member, task.id, "typo")

    edited = await comments.edit_comment(member, comment.id, "fixed")
    assert edited.comment == "fixed"
    assert edited.edited is True
    assert edited.edited_at is not None

    other = await comments.add_comment(admin, task.id, "admin's")
    with pytest.raises(PermissionError):
        await comments.edit_comment(member, other.id, "hijack")

    # Администратор может править чужие комментарии
    assert (await comments.edit_comment(admin, comment.id, "moderated")).comment == "moderated"


@pytest.mark.asyncio
async def test_delete_comment_removes_replies(test_db, project, admin, member):
    task = await TaskService(test_db).create_task(admin, "Task", project.id)
    comments = CommentService(test_db)
    root = await comments.add_comment(member, task.id, "root")
    await comments.add_comment(admin, task.id, "reply", reply_to=root.id)
    kept = await comments.add_comment(admin, task.id, "x")

    with pytest.raises(PermissionError):
        await comments.delete_comment(member, kept.id)

    assert await comments.delete_comment(member, root.id) is True

    forest, total = await comments.get_comment_tree(member, task.id)
    assert total == 1
    assert forest[0].comment.comment == "x"
    assert "comment_deleted" in await activity_types(test_db, project.id)


# ============================================================================
# KANBAN SERVICE TESTS
# ============================================================================


@pytest.mark.asyncio
async def test_board_groups_tasks_by_status(test_db, project, member):
    """Test: задачи в колонке своего статуса, подзадачи на доску не попадают."""
    tasks = TaskService(test_db)
    todo = await tasks.create_task(member, "Todo", project.id)
    review = await tasks.create_task(member, "Review", project.id, status=TaskStatus.REVIEW)
    await tasks.create_subtask(member, todo.id, "hidden")

    board = await KanbanService(test_db).get_board(member, project.id)

    by_name = {entry.column.name: [t.id for t in entry.tasks] for entry in board}
    assert by_name == {"To Do": [todo.id], "In Progress": [], "Review": [review.id], "Done": []}


@pytest.mark.asyncio
async def test_board_custom_column_is_empty(test_db, project, admin, member):
    kanban = KanbanService(test_db)
    await TaskService(test_db).create_task(member, "Todo", project.id)

    column = await kanban.create_column(admin, project.id, "Blocked", color="#ff0000")
    assert column.position == 4

    board = await kanban.get_board(member, project.id)
    assert board[-1].column.name == "Blocked"
    assert board[-1].tasks == []


@pytest.mark.asyncio
async def test_board_filters(test_db, project, member):
    tasks = TaskService(test_db)
    await tasks.create_task(member, "Login page", project.id, priority=TaskPriority.HIGH)
    await tasks.create_task(member, "Footer", project.id)

    board = await KanbanService(test_db).get_board(member, project.id, search="login")

    assert [t.title for t in board[0].tasks] == ["Login page"]


@pytest.mark.asyncio
async def test_columns_require_manager(test_db, project, admin, member):
    kanban = KanbanService(test_db)

    with pytest.raises(PermissionError):
        await kanban.create_column(member, project.id, "Mine")

    columns = await kanban.list_columns(member, project.id)
    renamed = await kanban.update_column(admin, project.id, columns[0].id, name="Backlog")
    assert renamed.name == "Backlog"

    assert await kanban.delete_column(admin, project.id, columns[1].id) is True
    assert len(await kanban.list_columns(member, project.id)) == 3

    with pytest.raises(ValueError, match="not found"):
        await kanban.delete_column(admin, project.id, columns[1].id)


# ============================================================================
# CALENDAR SERVICE TESTS
# ============================================================================


@pytest.mark.asyncio
async def test_calendar_events(test_db, project, member, viewer):
    calendar = CalendarService(test_db)

    launch = await calendar.create_event(
        member, project.id, "Launch", date(2026, 12, 1), event_type=EventType.DEADLINE
    )
    await calendar.create_event(member, project.id, "Kickoff", date(2026, 11, 1))

    events = await calendar.list_events(viewer, project.id)
    assert [e.title for e in events] == ["Kickoff", "Launch"]

    december = await calendar.list_events(viewer, project.id, date(2026, 12, 1), date(2026, 12, 31))
    assert [e.id for e in december] == [launch.id]

    with pytest.raises(ValueError, match="date_to"):
        await calendar.list_events(viewer, project.id, date(2026, 12, 2), date(2026, 12, 1))

    with pytest.raises(PermissionError):
        await calendar.create_event(viewer, project.id, "Nope", date(2026, 12, 1))

    moved = await calendar.update_event(member, launch.id, event_date=date(2026, 12, 15))
    assert moved.event_date == date(2026, 12, 15)

    assert await calendar.delete_event(member, launch.id) is True
    types = await activity_types(test_db, project.id)
    assert {"event_created", "event_updated", "event_deleted"} <= set(types)


# ============================================================================
# FILE SERVICE TESTS
# ============================================================================


@pytest.mark.asyncio
async def test_upload_download_delete_file(test_db, project, member, storage):
    files = FileService(test_db, storage)

    stored = await files.upload_file(member, project.id, "Plan.PDF", b"%PDF-1.7", "application/pdf")

    assert stored.file_path.startswith(f"{project.id}/")
    assert stored.file_path.endswith(".pdf")
    assert stored.file_size == 8
    assert storage.exists(PROJECT_FILES_BUCKET, stored.file_path)

    meta, data = await files.download_file(member, stored.id)
    assert data == b"%PDF-1.7"
    assert meta.file_type == "application/pdf"

    assert [f.id for f in await files.list_files(member, project.id)] == [stored.id]

    assert await files.delete_file(member, stored.id) is True
    assert not storage.exists(PROJECT_FILES_BUCKET, stored.file_path)
    assert await files.list_files(member, project.id) == []


@pytest.mark.asyncio
async def test_upload_size_limits(test_db, project, member, storage):
    files = FileService(test_db, storage, max_bytes=4)

    with pytest.raises(ValueError, match="empty"):
        await files.upload_file(member, project.id, "a.txt", b"")

    with pytest.raises(ValueError, match="too large"):
        await files.upload_file(member, project.id, "a.txt", b"12345")


@pytest.mark.asyncio
async def test_viewer_cannot_upload(test_db, project, viewer, storage):
    with pytest.raises(PermissionError):
        await FileService(test_db, storage).upload_file(viewer, project.id, "a.txt", b"x")


@pytest.mark.asyncio
async def test_upload_avatar_overwrites(test_db, member, storage):
    """Test: аватар один на профиль, публичный URL."""
    files = FileService(test_db, storage)

    profile, url = await files.upload_avatar(member, "me.png", b"one")
    assert profile.avatar_path == f"{member.id}/avatar.png"
    assert url == f"/api/v1/storage/avatars/{member.id}/avatar.png"

    await files.upload_avatar(member, "me.png", b"two")
    assert storage.download("avatars", f"{member.id}/avatar.png") == b"two"

    profile, _ = await files.upload_avatar(member, "me.jpg", b"three")
    assert profile.avatar_path == f"{member.id}/avatar.jpg"
    assert not storage.exists("avatars", f"{member.id}/avatar.png")


# ============================================================================
# ACTIVITY / NOTIFICATION / ADMIN TESTS
# ============================================================================


@pytest.mark.asyncio
async def test_activity_feed_access(test_db, project, admin, member, outsider):
    activity = ActivityService(test_db)

    feed = await activity.get_project_feed(member, project.id)
    assert feed[-1].activity_type == "project_created"

    with pytest.raises(PermissionError):
        await activity.get_project_feed(outsider, project.id)

    with pytest.raises(PermissionError):
        await activity.get_global_feed(member)
    assert len(await activity.get_global_feed(admin)) == len(feed)


@pytest.mark.asyncio
async def test_notifications_mark_read(test_db, member, viewer):
    service = NotificationService(test_db)
    first = await service.create_notification(member.id, "test", "One", "first")
    await service.create_notification(member.id, "test", "Two", "second")

    assert await service.unread_count(member) == 2

    read = await service.mark_read(member, first)
    assert read.read_status is True
    assert await service.unread_count(member) == 1

    with pytest.raises(ValueError, match="not found"):
        await service.mark_read(viewer, first)

    assert await service.mark_all_read(member) == 1
    assert await service.list_notifications(member, unread_only=True) == []


@pytest.mark.asyncio
async def test_admin_change_role(test_db, admin, member):
    service = AdminService(test_db)

    promoted = await service.change_role(admin, member.id, UserRole.ADMIN)
    assert promoted.is_admin

    with pytest.raises(ValueError, match="own admin role"):
        await service.change_role(admin, admin.id, UserRole.USER)

    with pytest.raises(ValueError, match="not found"):
        await service.change_role(admin, 999, UserRole.USER)


@pytest.mark.asyncio
async def test_admin_only_operations(test_db, member):
    service = AdminService(test_db)

    with pytest.raises(PermissionError):
        await service.list_profiles(member)
    with pytest.raises(PermissionError):
        await service.get_system_statistics(member)


@pytest.mark.asyncio
async def test_system_statistics(test_db, project, admin, member):
    task = await TaskService(test_db).create_task(member, "Task", project.id)
    await CommentService(test_db).add_comment(member, task.id, "hello")

    stats = await AdminService(test_db).get_system_statistics(admin)

    assert stats["total_users"] == 3
    assert stats["admin_users"] == 1
    assert stats["total_projects"] == 1
    assert stats["active_projects"] == 1
    assert stats["total_tasks"] == 1
    assert stats["tasks_by_status"]["todo"] == 1
    assert stats["total_comments"] == 1
