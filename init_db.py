"""
Скрипт для инициализации базы данных.

Создаёт все таблицы напрямую через SQLAlchemy и каталоги бакетов хранилища.
Используется для разработки и тестирования вместо Alembic миграций.
"""

import asyncio
from pathlib import Path

from projecthub.core.config import settings
from projecthub.core.database import init_db
from projecthub.storage import AVATARS_BUCKET, PROJECT_FILES_BUCKET


async def main():
    """Создать все таблицы и бакеты."""
    print("Создание таблиц...")
    await init_db()
    print("✓ Таблицы созданы успешно!")

    for bucket in (AVATARS_BUCKET, PROJECT_FILES_BUCKET):
        (Path(settings.STORAGE_ROOT) / bucket).mkdir(parents=True, exist_ok=True)
    print(f"✓ Хранилище: {settings.STORAGE_ROOT}")


if __name__ == "__main__":
    asyncio.run(main())
