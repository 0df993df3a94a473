"""Profiles: signup and the current user's own profile."""

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Profile, UserRole
from ..repositories import ProfileRepository

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("display_name", "full_name")


class ProfileService:
    """Профиль создаётся при регистрации; роль берётся из метаданных регистрации."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.profile_repo = ProfileRepository(db)

    async def create_profile(
        self,
        email: str,
        display_name: str | None = None,
        full_name: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Profile:
        """
        Создать профиль (регистрация).

        Бизнес-правила:
        1. Email обязателен и уникален (без учёта регистра)
        2. Роль из metadata["role"], по умолчанию user
        3. display_name по умолчанию из metadata или full_name
        """
        # 1. ВАЛИДАЦИЯ: Email
        if not email or "@" not in email:
            raise ValueError("A valid email is required")
        email = email.strip().lower()
        if await self.profile_repo.get_by_email(email):
            raise ValueError(f"Profile with email '{email}' already exists")

        # 2. РОЛЬ
        metadata = metadata or {}
        raw_role = metadata.get("role", UserRole.USER.value)
        try:
            role = UserRole(raw_role)
        except ValueError:
            raise ValueError(f"Unknown role '{raw_role}'") from None

        # 3. СОЗДАНИЕ
        profile = await self.profile_repo.create(
            Profile(
                email=email,
                display_name=display_name or metadata.get("display_name") or full_name,
                full_name=full_name or metadata.get("full_name"),
                role=role,
            )
        )
        logger.info("Profile created", extra={"profile_id": profile.id, "role": role.value})
        return profile

    async def update_me(self, actor: Profile, **changes: Any) -> Profile:
        unknown = set(changes) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

        for name, value in list(changes.items()):
            changes[name] = value.strip() or None if value is not None else None

        if not changes:
            return actor
        return await self.profile_repo.update_obj(actor, **changes)
