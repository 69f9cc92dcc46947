"""
Note Version Service.

Read access to a note's version history and restoring a version. History
is append-only: restoring writes the chosen snapshot back onto the note,
which records one more version of the pre-restore state.
"""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from notevault.backend.core.exceptions import NotFoundError
from notevault.backend.models.note import Note
from notevault.backend.models.note_version import NoteVersion
from notevault.backend.models.user import User
from notevault.backend.repositories.note_version import NoteVersionRepository
from notevault.backend.services.access import NoteAccess
from notevault.backend.services.base import BaseService
from notevault.backend.services.note import NoteService


@dataclass
class VersionDiff:
    """A version's stored (title, body) next to the note's current values."""

    title_was: str | None
    title_now: str | None
    body_was: str
    body_now: str

    def as_dict(self) -> dict[str, dict[str, str | None]]:
        return {
            "title": {"was": self.title_was, "now": self.title_now},
            "body": {"was": self.body_was, "now": self.body_now},
        }


def diff_from_current(version: NoteVersion, note: Note) -> VersionDiff:
    return VersionDiff(
        title_was=version.title,
        title_now=note.title,
        body_was=version.body,
        body_now=note.body,
    )


class NoteVersionService(BaseService):
    """Service for note version history."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.repo = NoteVersionRepository(session)
        self.access = NoteAccess(session)
        self.notes = NoteService(session)

    async def list_versions(self, note_id: str, user: User) -> list[NoteVersion]:
        """Versions of a readable note, newest first."""
        note = await self.access.readable_note(note_id, user)
        return await self.repo.list_for_note(note.id)

    async def get_version(
        self,
        note_id: str,
        version_id: str,
        user: User,
    ) -> tuple[NoteVersion, VersionDiff]:
        """
        Get one version of a readable note with its diff against the note.

        Raises:
            NotFoundError: If the note or the version is missing
        """
        note = await self.access.readable_note(note_id, user)
        version = await self._version_of(note, version_id)
        return version, diff_from_current(version, note)

    async def restore_version(self, note_id: str, version_id: str, user: User) -> Note:
        """
        Overwrite the note's title and body with a stored version.

        When this changes the body, exactly one new version holding the
        pre-restore state is recorded.

        Raises:
            NotFoundError: If the note or the version is missing
            AuthorizationError: If the user may not edit the note
        """
        note = await self.access.editable_note(note_id, user)
        version = await self._version_of(note, version_id)
        note = await self.notes.apply_changes(note, title=version.title, body=version.body)
        self._log_operation(
            "Note version restored",
            note_id=note.id,
            version_number=version.version_number,
        )
        return note

    async def _version_of(self, note: Note, version_id: str) -> NoteVersion:
        version = await self.repo.get_for_note(version_id, note.id)
        if version is None:
            raise NotFoundError("Version not found")
        return version
