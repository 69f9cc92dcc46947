"""
Tag Repository.

Data access for user-scoped tags.
"""

from sqlalchemy import select

from notevault.backend.models.tag import Tag
from notevault.backend.repositories.base import BaseRepository


class TagRepository(BaseRepository[Tag]):
    """Repository for Tag model. Every query is scoped to one owner."""

    model = Tag

    async def list_for_user(self, user_id: str) -> list[Tag]:
        result = await self.session.execute(
            select(Tag).where(Tag.user_id == user_id).order_by(Tag.name)
        )
        return list(result.scalars().all())

    async def get_for_user(self, tag_id: str, user_id: str) -> Tag | None:
        result = await self.session.execute(
            select(Tag).where(Tag.id == tag_id, Tag.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_many_for_user(self, tag_ids: list[str], user_id: str) -> list[Tag]:
        """
        Return the tags among tag_ids that exist and belong to user_id.

        Unknown ids and other users' tags are dropped.
        """
        if not tag_ids:
            return []
        result = await self.session.execute(
            select(Tag)
            .where(Tag.id.in_(tag_ids), Tag.user_id == user_id)
            .order_by(Tag.name)
        )
        return list(result.scalars().all())

    async def name_taken(self, user_id: str, name: str, exclude_id: str | None = None) -> bool:
        """Check for an existing tag with this (already normalized) name."""
        query = select(Tag.id).where(Tag.user_id == user_id, Tag.name == name)
        if exclude_id is not None:
            query = query.where(Tag.id != exclude_id)
        result = await self.session.execute(query)
        return result.first() is not None
