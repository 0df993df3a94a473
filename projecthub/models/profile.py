"""Profile model (application users)."""

import enum

from sqlalchemy import String
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin


class UserRole(str, enum.Enum):
    """Global role of a profile."""

    USER = "user"
    ADMIN = "admin"


class Profile(Base, TimestampMixin):
    """A user of the system. Project access is granted through memberships."""

    __tablename__ = "profiles"

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    display_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    full_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    avatar_path: Mapped[str | None] = mapped_column(String(500), nullable=True)
    role: Mapped[UserRole] = mapped_column(
        SQLEnum(UserRole, native_enum=False), default=UserRole.USER, nullable=False
    )

    memberships: Mapped[list["ProjectMember"]] = relationship(
        "ProjectMember", back_populates="profile", cascade="all, delete-orphan"
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def label(self) -> str:
        """Имя для отображения: display_name → full_name → "Unknown User"."""
        return self.display_name or self.full_name or "Unknown User"

    def __repr__(self) -> str:
        return f"<Profile(id={self.id}, email='{self.email}', role={self.role.value})>"
