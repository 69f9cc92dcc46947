"""
User Repository.
"""

from sqlalchemy import func, select

from notevault.backend.models.user import User
from notevault.backend.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for User model."""

    model = User

    async def get_by_email(self, email: str) -> User | None:
        """Look up a user by email, ignoring case."""
        result = await self.session.execute(
            select(User).where(func.lower(User.email) == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def get_by_uid(self, uid: str) -> User | None:
        result = await self.session.execute(select(User).where(User.uid == uid))
        return result.scalar_one_or_none()

    async def get_by_token_digest(self, digest: str) -> User | None:
        result = await self.session.execute(
            select(User).where(User.api_token_digest == digest)
        )
        return result.scalar_one_or_none()

    async def list_users(self, limit: int = 50, offset: int = 0) -> list[User]:
        result = await self.session.execute(
            select(User).order_by(User.created_at.desc(), User.id).limit(limit).offset(offset)
        )
        return list(result.scalars().all())

    async def email_taken(self, email: str, exclude_id: str | None = None) -> bool:
        query = select(User.id).where(func.lower(User.email) == email.strip().lower())
        if exclude_id is not None:
            query = query.where(User.id != exclude_id)
        result = await self.session.execute(query)
        return result.first() is not None

    async def uid_taken(self, uid: str, exclude_id: str | None = None) -> bool:
        query = select(User.id).where(User.uid == uid)
        if exclude_id is not None:
            query = query.where(User.id != exclude_id)
        result = await self.session.execute(query)
        return result.first() is not None
