"""
Share Repository.
"""

from sqlalchemy import select

from notevault.backend.models.share import Share
from notevault.backend.repositories.base import BaseRepository


class ShareRepository(BaseRepository[Share]):
    """Repository for Share model."""

    model = Share

    async def list_for_note(self, note_id: str) -> list[Share]:
        result = await self.session.execute(
            select(Share).where(Share.note_id == note_id).order_by(Share.created_at)
        )
        return list(result.scalars().unique().all())

    async def get_for_note(self, share_id: str, note_id: str) -> Share | None:
        result = await self.session.execute(
            select(Share).where(Share.id == share_id, Share.note_id == note_id)
        )
        return result.scalar_one_or_none()

    async def find(self, note_id: str, user_id: str) -> Share | None:
        """The share for (note, user), if any."""
        result = await self.session.execute(
            select(Share).where(Share.note_id == note_id, Share.user_id == user_id)
        )
        return result.scalar_one_or_none()
