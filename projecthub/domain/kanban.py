"""Соответствие статус ↔ колонка канбан-доски."""

from typing import Any

from ..models.task import TaskStatus

STATUS_TO_COLUMN: dict[TaskStatus, str] = {
    TaskStatus.TODO: "to-do",
    TaskStatus.IN_PROGRESS: "in-progress",
    TaskStatus.REVIEW: "review",
    TaskStatus.DONE: "done",
}
COLUMN_TO_STATUS: dict[str, TaskStatus] = {
    column: status for status, column in STATUS_TO_COLUMN.items()
}

FALLBACK_STATUS = TaskStatus.TODO
FALLBACK_COLUMN = STATUS_TO_COLUMN[FALLBACK_STATUS]

# (имя, цвет) в порядке доски; создаются для каждого нового проекта
DEFAULT_COLUMNS: tuple[tuple[str, str], ...] = (
    ("To Do", "#6b7280"),
    ("In Progress", "#3b82f6"),
    ("Review", "#f59e0b"),
    ("Done", "#10b981"),
)


def column_slug(name: str) -> str:
    """'In Progress' → 'in-progress'."""
    return "-".join(name.strip().lower().split())


def status_to_column(status: TaskStatus | str | None) -> str:
    """Идентификатор колонки для статуса; неизвестный статус попадает в 'to-do'."""
    return STATUS_TO_COLUMN.get(status, FALLBACK_COLUMN)


def column_status(column: str | None) -> TaskStatus | None:
    """Статус, который показывает колонка, или None для пользовательской колонки."""
    if not column:
        return None
    return COLUMN_TO_STATUS.get(column_slug(column))


def column_to_status(column: str | None) -> TaskStatus:
    """Статус по имени или slug колонки; неизвестная колонка означает 'todo'."""
    return column_status(column) or FALLBACK_STATUS


def status_fields(status: TaskStatus | str) -> dict[str, Any]:
    """
    Поля для записи при смене статуса задачи.

    Обе половины пары всегда уходят в одной записи.
    """
    resolved = status if isinstance(status, TaskStatus) else _coerce_status(status)
    return {"status": resolved, "kanban_column": status_to_column(resolved)}


def column_move_fields(column: str) -> dict[str, Any]:
    """Поля для записи при переносе задачи в колонку доски."""
    fields = status_fields(column_to_status(column))
    fields["kanban_position"] = 0
    return fields


def _coerce_status(value: str) -> TaskStatus:
    try:
        return TaskStatus(value)
    except ValueError:
        return FALLBACK_STATUS
