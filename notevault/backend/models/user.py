"""
User Model.

Identity record: role, session timeout, and the authentication methods a
user may sign in with (password and/or a federated identity). API tokens
are stored only as a keyed digest.
"""

import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from notevault.backend.models.base import Base, TimestampMixin, UUIDMixin

DEFAULT_SESSION_TIMEOUT = 3600


class UserRole(str, enum.Enum):
    """Role gating the admin API. Never consulted for note access."""

    USER = "user"
    ADMIN = "admin"


class User(UUIDMixin, TimestampMixin, Base):
    """User database model."""

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        Enum(
            UserRole,
            name="user_role",
            native_enum=False,
            values_callable=lambda roles: [role.value for role in roles],
        ),
        default=UserRole.USER,
        nullable=False,
    )
    session_timeout: Mapped[int] = mapped_column(
        Integer,
        default=DEFAULT_SESSION_TIMEOUT,
        nullable=False,
    )
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    provider: Mapped[str | None] = mapped_column(String(64), nullable=True)
    uid: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)
    api_token_digest: Mapped[str | None] = mapped_column(
        String(128),
        unique=True,
        nullable=True,
    )
    token_expires_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def has_password(self) -> bool:
        return bool(self.password_hash)

    @property
    def has_federated_identity(self) -> bool:
        return bool(self.uid) and bool(self.provider)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email!r}, role={self.role.value})>"
