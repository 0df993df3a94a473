"""Project files and avatars on top of object storage."""

import logging
import time
from pathlib import PurePosixPath

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..models import Profile, ProjectFile
from ..repositories import ProfileRepository, ProjectFileRepository
from ..storage import AVATARS_BUCKET, PROJECT_FILES_BUCKET, LocalObjectStorage
from .access import AccessPolicy
from .activity import ActivityService

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


def _extension(filename: str) -> str:
    suffix = PurePosixPath(filename).suffix.lstrip(".").lower()
    return suffix or "bin"


class FileService:
    """
    Файлы проекта.

    Байты лежат в бакете project-files под ключом "<project_id>/<время>.<расширение>",
    метаданные - в таблице project_files.
    """

    def __init__(self, db: AsyncSession, storage: LocalObjectStorage, max_bytes: int | None = None):
        self.db = db
        self.storage = storage
        self.max_bytes = settings.MAX_UPLOAD_BYTES if max_bytes is None else max_bytes
        self.file_repo = ProjectFileRepository(db)
        self.profile_repo = ProfileRepository(db)
        self.access = AccessPolicy(db)
        self.activity = ActivityService(db)

    def _check_size(self, data: bytes) -> None:
        if not data:
            raise ValueError("Uploaded file is empty")
        if len(data) > self.max_bytes:
            raise ValueError(
                f"File is too large ({len(data)} bytes, limit {self.max_bytes} bytes)"
            )

    def _new_key(self, prefix: str | int, filename: str) -> str:
        key = f"{prefix}/{time.time_ns()}.{_extension(filename)}"
        # Два файла в одну наносекунду
        while self.storage.exists(PROJECT_FILES_BUCKET, key):
            key = f"{prefix}/{time.time_ns()}.{_extension(filename)}"
        return key

    async def upload_file(
        self,
        actor: Profile,
        project_id: int,
        filename: str,
        data: bytes,
        content_type: str | None = None,
    ) -> ProjectFile:
        """
        Загрузить файл в проект.

        Бизнес-правила:
        1. Участник проекта с правом записи
        2. Файл не пустой и не больше MAX_UPLOAD_BYTES
        3. Сначала объект в хранилище, потом строка метаданных
        """
        # 1. ДОСТУП
        await self.access.require_project_write(actor, project_id)

        # 2. ВАЛИДАЦИЯ
        if not filename or not filename.strip():
            raise ValueError("File name cannot be empty")
        self._check_size(data)

        # 3. ХРАНИЛИЩЕ
        key = self._new_key(project_id, filename)
        self.storage.upload(PROJECT_FILES_BUCKET, key, data)

        # 4. МЕТАДАННЫЕ
        stored = await self.file_repo.create(
            ProjectFile(
                project_id=project_id,
                filename=filename.strip(),
                file_path=key,
                file_size=len(data),
                file_type=content_type or DEFAULT_CONTENT_TYPE,
                uploaded_by=actor.id,
            )
        )
        await self.activity.log_project_activity(
            project_id,
            actor.id,
            "file_uploaded",
            f'Uploaded file "{stored.filename}"',
            entity_type="file",
            entity_id=stored.id,
            metadata={"size": stored.file_size, "type": stored.file_type},
        )
        logger.info("File uploaded", extra={"project_id": project_id, "key": key})
        return stored

    async def list_files(self, actor: Profile, project_id: int) -> list[ProjectFile]:
        await self.access.require_project_access(actor, project_id)
        return await self.file_repo.get_by_project(project_id)

    async def _get_file(self, file_id: int) -> ProjectFile:
        stored = await self.file_repo.get_by_id(file_id)
        if not stored:
            raise ValueError(f"File with id {file_id} not found")
        return stored

    async def download_file(self, actor: Profile, file_id: int) -> tuple[ProjectFile, bytes]:
        """
        Returns:
            (метаданные, содержимое)

        Raises:
            ObjectNotFoundError: строка есть, а объекта в хранилище нет
        """
        stored = await self._get_file(file_id)
        await self.access.require_project_access(actor, stored.project_id)
        return stored, self.storage.download(PROJECT_FILES_BUCKET, stored.file_path)

    async def delete_file(self, actor: Profile, file_id: int) -> bool:
        """Удалить объект из хранилища, затем строку метаданных."""
        stored = await self._get_file(file_id)
        await self.access.require_project_write(actor, stored.project_id)

        self.storage.remove(PROJECT_FILES_BUCKET, [stored.file_path])

        project_id, filename = stored.project_id, stored.filename
        await self.file_repo.delete_obj(stored)
        await self.activity.log_project_activity(
            project_id,
            actor.id,
            "file_deleted",
            f'Deleted file "{filename}"',
            entity_type="file",
            entity_id=file_id,
        )
        return True

    async def upload_avatar(
        self, actor: Profile, filename: str, data: bytes
    ) -> tuple[Profile, str]:
        """
        Аватар текущего пользователя: один объект на профиль, перезаписывается.

        Returns:
            (обновлённый профиль, публичный URL)
        """
        self._check_size(data)

        key = f"{actor.id}/avatar.{_extension(filename or '')}"
        previous = actor.avatar_path
        self.storage.upload(AVATARS_BUCKET, key, data, upsert=True)
        if previous and previous != key:
            self.storage.remove(AVATARS_BUCKET, [previous])

        profile = await self.profile_repo.update_obj(actor, avatar_path=key)
        return profile, self.storage.public_url(AVATARS_BUCKET, key)
