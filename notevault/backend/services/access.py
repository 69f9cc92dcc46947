"""
Note Access Control.

Predicates and guards over (note, user). The acting user is always passed
in; nothing here reads a request-scoped current user.

    accessible  - owner, or any share for (note, user). Read access.
    editable    - owner, or a share whose permission grants writing.
    owner-only  - delete, soft delete, restore from trash, manage sharing.

Notes a user cannot read are reported as NotFoundError so their existence
is never revealed. Visible notes with a forbidden action raise
AuthorizationError.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from notevault.backend.core.exceptions import AuthorizationError, NotFoundError
from notevault.backend.models.note import Note
from notevault.backend.models.user import User
from notevault.backend.repositories.note import NoteRepository
from notevault.backend.repositories.share import ShareRepository


def is_owner(note: Note, user: User) -> bool:
    return note.user_id == user.id


class NoteAccess:
    """Access checks bound to one session."""

    def __init__(self, session: AsyncSession) -> None:
        self.notes = NoteRepository(session)
        self.shares = ShareRepository(session)

    async def accessible(self, note: Note, user: User) -> bool:
        if is_owner(note, user):
            return True
        return await self.shares.find(note.id, user.id) is not None

    async def editable(self, note: Note, user: User) -> bool:
        if is_owner(note, user):
            return True
        share = await self.shares.find(note.id, user.id)
        return share is not None and share.grants_write

    async def readable_note(self, note_id: str, user: User) -> Note:
        """
        Load a note the user may read.

        Raises:
            NotFoundError: If the note is absent or not accessible
        """
        note = await self.notes.get_accessible(note_id, user.id)
        if note is None:
            raise NotFoundError("Note not found")
        return note

    async def editable_note(self, note_id: str, user: User) -> Note:
        """
        Load a note the user may modify.

        Raises:
            NotFoundError: If the note is absent or not accessible
            AuthorizationError: If the user may read but not write
        """
        note = await self.readable_note(note_id, user)
        if not await self.editable(note, user):
            raise AuthorizationError("Permission denied")
        return note

    async def owned_note(self, note_id: str, user: User, action: str = "modify") -> Note:
        """
        Load a note only its owner may act on.

        Raises:
            NotFoundError: If the note is absent or not accessible
            AuthorizationError: If the user is not the owner
        """
        note = await self.readable_note(note_id, user)
        require_owner(note, user, action)
        return note


def require_owner(note: Note, user: User, action: str = "modify") -> None:
    if not is_owner(note, user):
        raise AuthorizationError(f"Only the owner can {action} this note")
