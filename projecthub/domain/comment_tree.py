"""Плоский список комментариев → лес деревьев ответов."""

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

UNKNOWN_AUTHOR = "Unknown User"


@dataclass
class CommentNode:
    """Комментарий вместе с именем автора и прямыми ответами."""

    comment: Any
    author_name: str = UNKNOWN_AUTHOR
    replies: list["CommentNode"] = field(default_factory=list)

    @property
    def id(self) -> Any:
        return self.comment.id

    @property
    def reply_to(self) -> Any:
        return self.comment.reply_to


def _closes_cycle(node: CommentNode, parent: CommentNode, by_id: dict[Any, CommentNode]) -> bool:
    """True, если цепочка reply_to от ``parent`` вверх возвращается к ``node``."""
    seen: set[int] = set()
    current: CommentNode | None = parent
    while current is not None and id(current) not in seen:
        if current is node:
            return True
        seen.add(id(current))
        current = by_id.get(current.reply_to) if current.reply_to is not None else None
    return False


def build_comment_tree(
    comments: Iterable[Any],
    author_name: Callable[[Any], str] | None = None,
) -> list[CommentNode]:
    """
    Построить лес ответов для комментариев одной задачи.

    Каждый комментарий попадает в результат ровно один раз: под комментарием,
    на который указывает ``reply_to``, либо в корень, если ``reply_to`` пуст
    или указывает на комментарий вне входного списка (удалённый родитель).
    Исходный порядок сохраняется и для корней, и для ответов каждого узла.

    Повторяющиеся id не вызывают ошибку: ответы цепляются к последнему
    комментарию с этим id. Цикл в цепочке ответов разрывается, зацикленный
    комментарий становится корнем.
    """
    nodes = [
        CommentNode(c, author_name(c) if author_name else UNKNOWN_AUTHOR) for c in comments
    ]
    by_id = {node.id: node for node in nodes}

    roots: list[CommentNode] = []
    for node in nodes:
        parent = by_id.get(node.reply_to) if node.reply_to is not None else None
        if parent is None or _closes_cycle(node, parent, by_id):
            roots.append(node)
        else:
            parent.replies.append(node)
    return roots


def count_comments(forest: Iterable[CommentNode]) -> int:
    """Общее число комментариев в лесу, включая ответы."""
    total = 0
    stack = list(forest)
    while stack:
        node = stack.pop()
        total += 1
        stack.extend(node.replies)
    return total

