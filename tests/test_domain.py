"""
Тесты для доменных функций (без БД).

Проверяем:
- Построение дерева комментариев
- Соответствие статусов и колонок доски
- Порядок подзадач
- Расчёт прогресса
"""

from types import SimpleNamespace

import pytest

from projecthub.domain import (
    DEFAULT_COLUMNS,
    build_comment_tree,
    column_move_fields,
    column_slug,
    column_status,
    column_to_status,
    count_comments,
    move_item,
    order_assignments,
    shift_for_insert,
    sort_by_order,
    status_fields,
    status_to_column,
)
from projecthub.models import TaskStatus
from projecthub.services import progress_percent


def comment(id, reply_to=None, user_id=1):
    return SimpleNamespace(id=id, reply_to=reply_to, user_id=user_id)


def ids(nodes):
    return [node.id for node in nodes]


# ============================================================================
# COMMENT TREE
# ============================================================================


def test_comment_tree_nests_replies():
    """Test: ответы вкладываются под родителя, порядок входа сохраняется."""
    forest = build_comment_tree(
        [comment(1), comment(2, reply_to=1), comment(3), comment(4, reply_to=1)]
    )

    assert ids(forest) == [1, 3]
    assert ids(forest[0].replies) == [2, 4]
    assert forest[1].replies == []


def test_comment_tree_deep_chain():
    """Test: цепочка ответов любой глубины."""
    forest = build_comment_tree([comment(1), comment(2, 1), comment(3, 2), comment(4, 3)])

    assert ids(forest) == [1]
    node = forest[0]
    for expected in (2, 3, 4):
        assert ids(node.replies) == [expected]
        node = node.replies[0]


def test_comment_tree_reply_before_parent_in_input():
    """Test: ответ может стоять раньше родителя (список новые-первыми)."""
    forest = build_comment_tree([comment(5, reply_to=2), comment(2)])

    assert ids(forest) == [2]
    assert ids(forest[0].replies) == [5]


def test_comment_tree_orphan_becomes_root():
    """Test: ответ на удалённый комментарий становится корнем."""
    forest = build_comment_tree([comment(1), comment(7, reply_to=99)])

    assert ids(forest) == [1, 7]


def test_comment_tree_cycle_is_cut():
    """Test: зацикленные ответы не теряются и не вешают построение."""
    forest = build_comment_tree([comment(1, reply_to=2), comment(2, reply_to=1)])

    assert count_comments(forest) == 2
    assert ids(forest) == [1, 2]
    assert all(node.replies == [] for node in forest)


def test_comment_tree_self_reply_is_root():
    forest = build_comment_tree([comment(1, reply_to=1)])

    assert ids(forest) == [1]
    assert forest[0].replies == []


def test_comment_tree_author_names():
    """Test: имя автора из функции, иначе "Unknown User"."""
    names = {1: "Anna"}
    forest = build_comment_tree(
        [comment(1, user_id=1), comment(2, reply_to=1, user_id=2)],
        lambda c: names.get(c.user_id, "Unknown User"),
    )

    assert forest[0].author_name == "Anna"
    assert forest[0].replies[0].author_name == "Unknown User"


def test_comment_tree_empty():
    assert build_comment_tree([]) == []
    assert count_comments([]) == 0


def test_count_comments_includes_replies():
    forest = build_comment_tree([comment(1), comment(2, 1), comment(3, 2), comment(4)])

    assert count_comments(forest) == 4


# ============================================================================
# STATUS ↔ COLUMN
# ============================================================================


@pytest.mark.parametrize(
    "status, column",
    [
        (TaskStatus.TODO, "to-do"),
        (TaskStatus.IN_PROGRESS, "in-progress"),
        (TaskStatus.REVIEW, "review"),
        (TaskStatus.DONE, "done"),
    ],
)
def test_status_to_column(status, column):
    assert status_to_column(status) == column
    assert column_to_status(column) == status


def test_column_display_names_map_to_status():
    """Test: имена колонок доски ("In Progress") тоже распознаются."""
    assert column_to_status("In Progress") == TaskStatus.IN_PROGRESS
    assert column_to_status("Done") == TaskStatus.DONE
    assert column_to_status("  to   do ") == TaskStatus.TODO


def test_unknown_column_means_todo():
    assert column_to_status("Blocked") == TaskStatus.TODO
    assert column_to_status(None) == TaskStatus.TODO
    assert column_status("Blocked") is None


def test_column_slug():
    assert column_slug("In Progress") == "in-progress"
    assert column_slug("Review") == "review"


def test_status_fields_pair():
    """Test: status всегда пишется вместе с kanban_column."""
    assert status_fields(TaskStatus.REVIEW) == {
        "status": TaskStatus.REVIEW,
        "kanban_column": "review",
    }
    assert status_fields("done")["kanban_column"] == "done"
    assert status_fields("nonsense")["status"] == TaskStatus.TODO


def test_column_move_fields_reset_position():
    fields = column_move_fields("Done")

    assert fields == {
        "status": TaskStatus.DONE,
        "kanban_column": "done",
        "kanban_position": 0,
    }


def test_default_columns_cover_every_status():
    statuses = {column_status(name) for name, _ in DEFAULT_COLUMNS}

    assert statuses == set(TaskStatus)
    assert [name for name, _ in DEFAULT_COLUMNS] == ["To Do", "In Progress", "Review", "Done"]


# ============================================================================
# ORDERING
# ============================================================================


def item(name, order):
    return SimpleNamespace(name=name, subtask_order=order)


def test_sort_by_order_missing_order_is_zero():
    items = [item("b", 2), item("a", None), item("c", 1)]

    assert [i.name for i in sort_by_order(items)] == ["a", "c", "b"]


def test_sort_by_order_stable_for_ties():
    items = [item("x", 1), item("y", 1), item("z", 0)]

    assert [i.name for i in sort_by_order(items)] == ["z", "x", "y"]


def test_shift_for_insert():
    """Test: порядок [0, 1] → [1, 2], позиция 0 свободна для новой подзадачи."""
    a, b = item("a", 0), item("b", 1)

    assert [(i.name, order) for i, order in shift_for_insert([a, b])] == [("a", 1), ("b", 2)]


def test_shift_for_insert_keeps_gaps():
    a, b = item("a", 3), item("b", None)

    assert [order for _, order in shift_for_insert([a, b])] == [4, 1]


def test_move_item():
    assert move_item(["a", "b", "c", "d"], 0, 2) == ["b", "c", "a", "d"]
    assert move_item(["a", "b", "c", "d"], 3, 0) == ["d", "a", "b", "c"]
    assert move_item(["a", "b"], 1, 1) == ["a", "b"]


def test_move_item_does_not_mutate_input():
    items = ["a", "b", "c"]
    move_item(items, 0, 2)

    assert items == ["a", "b", "c"]


@pytest.mark.parametrize("source, destination", [(3, 0), (0, 3), (-1, 0)])
def test_move_item_out_of_range(source, destination):
    with pytest.raises(ValueError, match="out of range"):
        move_item(["a", "b", "c"], source, destination)


def test_order_assignments_are_indexes():
    assert order_assignments(["x", "y", "z"]) == [("x", 0), ("y", 1), ("z", 2)]


# ============================================================================
# PROGRESS
# ============================================================================


@pytest.mark.parametrize(
    "total, done, expected",
    [
        (0, 0, 0),
        (4, 0, 0),
        (4, 4, 100),
        (3, 1, 33),
        (3, 2, 67),
        (8, 1, 13),  # 12.5 округляется вверх
        (2, 1, 50),
    ],
)
def test_progress_percent(total, done, expected):
    assert progress_percent(total, done) == expected
