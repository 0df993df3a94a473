"""Чистая доменная логика: без базы данных и ввода-вывода."""

from .comment_tree import CommentNode, build_comment_tree, count_comments
from .kanban import (
    DEFAULT_COLUMNS,
    column_move_fields,
    column_slug,
    column_status,
    column_to_status,
    status_fields,
    status_to_column,
)
from .ordering import move_item, order_assignments, shift_for_insert, sort_by_order

__all__ = [
    "CommentNode",
    "build_comment_tree",
    "count_comments",
    "DEFAULT_COLUMNS",
    "column_move_fields",
    "column_slug",
    "column_status",
    "column_to_status",
    "status_fields",
    "status_to_column",
    "move_item",
    "order_assignments",
    "shift_for_insert",
    "sort_by_order",
]
