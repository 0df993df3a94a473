"""Base repository with common CRUD operations."""

from typing import Any, Generic, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.base import Base

# TypeVar для Generic класса - позволяет работать с любой моделью
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Базовый репозиторий с CRUD операциями.

    Все изменения идут через ORM (add / setattr / session.delete), а не
    через bulk UPDATE/DELETE: так срабатывают каскады связей и события
    сессии, из которых собирается лента изменений (realtime).

    Пример использования:
        repo = BaseRepository[KanbanColumn](KanbanColumn, db_session)
        column = await repo.get_by_id(1)
    """

    def __init__(self, model: type[ModelType], db: AsyncSession):
        """
        Args:
            model: Класс модели SQLAlchemy (например, Project, Task)
            db: Асинхронная сессия базы данных
        """
        self.model = model
        self.db = db

    async def create(self, obj: ModelType) -> ModelType:
        """
        Создать новую запись в БД.

        flush() отправляет INSERT (ID и defaults появляются у объекта),
        commit делает dependency get_db в конце запроса.
        """
        self.db.add(obj)
        await self.db.flush()
        await self.db.refresh(obj)
        return obj

    async def get_by_id(self, id: int) -> ModelType | None:
        """
        Получить объект по ID.

        SQL эквивалент:
            SELECT * FROM table WHERE id = {id} LIMIT 1;
        """
        result = await self.db.execute(select(self.model).where(self.model.id == id))
        return result.scalar_one_or_none()

    async def get_many(self, ids: list[int]) -> list[ModelType]:
        """Получить объекты по списку ID (порядок не гарантирован)."""
        if not ids:
            return []
        result = await self.db.execute(select(self.model).where(self.model.id.in_(ids)))
        return list(result.scalars().all())

    async def get_all(self, skip: int = 0, limit: int = 100) -> list[ModelType]:
        """
        Получить все записи с пагинацией.

        SQL эквивалент:
            SELECT * FROM table OFFSET {skip} LIMIT {limit};
        """
        result = await self.db.execute(
            select(self.model).order_by(self.model.id).offset(skip).limit(limit)
        )
        return list(result.scalars().all())

    async def update(self, id: int, **kwargs: Any) -> ModelType | None:
        """
        Обновить запись по ID.

        Returns:
            Обновлённый объект или None, если не найден
        """
        obj = await self.get_by_id(id)
        if not obj:
            return None
        return await self.update_obj(obj, **kwargs)

    async def update_obj(self, obj: ModelType, **kwargs: Any) -> ModelType:
        """Обновить уже загруженный объект (без повторного SELECT)."""
        for key, value in kwargs.items():
            if hasattr(obj, key):
                setattr(obj, key, value)

        await self.db.flush()
        await self.db.refresh(obj)
        return obj

    async def delete(self, id: int) -> bool:
        """
        Удалить запись по ID.

        Returns:
            True если удалено, False если не найдено
        """
        obj = await self.get_by_id(id)
        if not obj:
            return False
        await self.delete_obj(obj)
        return True

    async def delete_obj(self, obj: ModelType) -> None:
        """Удалить загруженный объект; ORM каскады удалят зависимые строки."""
        await self.db.delete(obj)
        await self.db.flush()

    async def exists(self, id: int) -> bool:
        """
        SQL эквивалент:
            SELECT EXISTS(SELECT 1 FROM table WHERE id={id});
        """
        obj = await self.get_by_id(id)
        return obj is not None

    async def count(self) -> int:
        """
        SQL эквивалент:
            SELECT COUNT(*) FROM table;
        """
        result = await self.db.execute(select(func.count()).select_from(self.model))
        return result.scalar_one()
