"""Profile repository."""

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Profile, UserRole
from .base import BaseRepository


class ProfileRepository(BaseRepository[Profile]):
    """Репозиторий профилей пользователей."""

    def __init__(self, db: AsyncSession):
        super().__init__(Profile, db)

    async def get_by_email(self, email: str) -> Profile | None:
        """Поиск по email без учёта регистра."""
        result = await self.db.execute(
            select(Profile).where(func.lower(Profile.email) == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def search(self, term: str | None = None, skip: int = 0, limit: int = 50) -> list[Profile]:
        """
        Список профилей с поиском по имени и email.

        SQL эквивалент:
            SELECT * FROM profiles
            WHERE display_name ILIKE '%term%' OR full_name ILIKE ... OR email ILIKE ...
            ORDER BY created_at DESC;
        """
        query = select(Profile)
        if term:
            pattern = f"%{term}%"
            query = query.where(
                or_(
                    Profile.display_name.ilike(pattern),
                    Profile.full_name.ilike(pattern),
                    Profile.email.ilike(pattern),
                )
            )
        query = query.order_by(Profile.created_at.desc(), Profile.id.desc()).offset(skip).limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def count_by_role(self, role: UserRole) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(Profile).where(Profile.role == role)
        )
        return result.scalar_one()

    async def get_labels(self, ids: list[int]) -> dict[int, str]:
        """id → отображаемое имя (для аннотации комментариев)."""
        return {profile.id: profile.label for profile in await self.get_many(ids)}
