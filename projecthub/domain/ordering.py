"""Явный порядок подзадач одного родителя."""

from collections.abc import Iterable, Sequence
from typing import Any, TypeVar

T = TypeVar("T")


def order_of(item: Any) -> int:
    """subtask_order элемента; отсутствующий порядок считается 0."""
    return item.subtask_order or 0


def sort_by_order(items: Iterable[T]) -> list[T]:
    """Подзадачи в порядке отображения (по возрастанию subtask_order, устойчиво при равенстве)."""
    return sorted(items, key=order_of)


def shift_for_insert(siblings: Iterable[T]) -> list[tuple[T, int]]:
    """
    Новые порядки существующих подзадач при вставке новой в начало.

    Каждая подзадача сдвигается вниз на одну позицию, новая получает 0.
    Пропуски и дубли от прежних записей сохраняются: важен только
    относительный ранг.
    """
    return [(item, order_of(item) + 1) for item in siblings]


def move_item(items: Sequence[T], source_index: int, destination_index: int) -> list[T]:
    """
    Копия ``items`` с одним перемещённым элементом.

    Raises:
        ValueError: если любой из индексов вне списка
    """
    size = len(items)
    if not 0 <= source_index < size:
        raise ValueError(f"Source index {source_index} out of range (0..{size - 1})")
    if not 0 <= destination_index < size:
        raise ValueError(f"Destination index {destination_index} out of range (0..{size - 1})")

    result = list(items)
    moved = result.pop(source_index)
    result.insert(destination_index, moved)
    return result


def order_assignments(items: Iterable[T]) -> list[tuple[T, int]]:
    """Пара (элемент, индекс): индекс и есть сохраняемый порядок."""
    return [(item, index) for index, item in enumerate(items)]
