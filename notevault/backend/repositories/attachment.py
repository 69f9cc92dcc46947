"""
Attachment Repository.
"""

from sqlalchemy import select

from notevault.backend.models.attachment import Attachment
from notevault.backend.models.note import Note
from notevault.backend.repositories.base import BaseRepository


class AttachmentRepository(BaseRepository[Attachment]):
    """Repository for Attachment model."""

    model = Attachment

    async def list_for_note(self, note_id: str) -> list[Attachment]:
        result = await self.session.execute(
            select(Attachment)
            .where(Attachment.note_id == note_id)
            .order_by(Attachment.created_at, Attachment.filename)
        )
        return list(result.scalars().all())

    async def get_for_note(self, attachment_id: str, note_id: str) -> Attachment | None:
        result = await self.session.execute(
            select(Attachment).where(
                Attachment.id == attachment_id,
                Attachment.note_id == note_id,
            )
        )
        return result.scalar_one_or_none()

    async def storage_keys_for_note(self, note_id: str) -> list[str]:
        result = await self.session.execute(
            select(Attachment.storage_key).where(Attachment.note_id == note_id)
        )
        return list(result.scalars().all())

    async def storage_keys_for_user(self, user_id: str) -> list[str]:
        result = await self.session.execute(
            select(Attachment.storage_key)
            .join(Note, Note.id == Attachment.note_id)
            .where(Note.user_id == user_id)
        )
        return list(result.scalars().all())

    async def storage_keys_by_note(self, note_ids: list[str]) -> dict[str, list[str]]:
        """Map each of note_ids to the storage keys of its attachments."""
        if not note_ids:
            return {}
        result = await self.session.execute(
            select(Attachment.note_id, Attachment.storage_key)
            .where(Attachment.note_id.in_(note_ids))
        )
        keys: dict[str, list[str]] = {}
        for note_id, storage_key in result.all():
            keys.setdefault(note_id, []).append(storage_key)
        return keys
