"""
Note Version Repository.
"""

from sqlalchemy import func, select

from notevault.backend.models.note_version import NoteVersion
from notevault.backend.repositories.base import BaseRepository


class NoteVersionRepository(BaseRepository[NoteVersion]):
    """Repository for NoteVersion model. Versions are only ever inserted."""

    model = NoteVersion

    async def list_for_note(self, note_id: str) -> list[NoteVersion]:
        """Versions of a note, newest first."""
        result = await self.session.execute(
            select(NoteVersion)
            .where(NoteVersion.note_id == note_id)
            .order_by(NoteVersion.version_number.desc())
        )
        return list(result.scalars().all())

    async def get_for_note(self, version_id: str, note_id: str) -> NoteVersion | None:
        result = await self.session.execute(
            select(NoteVersion).where(
                NoteVersion.id == version_id,
                NoteVersion.note_id == note_id,
            )
        )
        return result.scalar_one_or_none()

    async def next_version_number(self, note_id: str) -> int:
        """max(version_number) + 1 for the note, starting at 1."""
        result = await self.session.execute(
            select(func.coalesce(func.max(NoteVersion.version_number), 0))
            .where(NoteVersion.note_id == note_id)
        )
        return result.scalar_one() + 1
