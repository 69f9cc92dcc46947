"""
Share Service.

Owner-managed grants of a note to other users.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from notevault.backend.core.exceptions import NotFoundError, ValidationError
from notevault.backend.models.share import Share, SharePermission
from notevault.backend.models.user import User
from notevault.backend.repositories.share import ShareRepository
from notevault.backend.repositories.user import UserRepository
from notevault.backend.services.access import NoteAccess, require_owner
from notevault.backend.services.base import BaseService, FieldErrors


class ShareService(BaseService):
    """Service for note sharing."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.repo = ShareRepository(session)
        self.users = UserRepository(session)
        self.access = NoteAccess(session)

    async def list_shares(self, note_id: str, user: User) -> list[Share]:
        """Shares of a note the user can read, with their recipients."""
        note = await self.access.readable_note(note_id, user)
        return await self.repo.list_for_note(note.id)

    async def share(
        self,
        note_id: str,
        granter: User,
        recipient_email: str,
        permission: SharePermission = SharePermission.READ_WRITE,
    ) -> Share:
        """
        Grant another user access to a note.

        Not idempotent: a second grant to the same user fails.

        Raises:
            NotFoundError: If the note is not accessible or no user has the email
            AuthorizationError: If the granter is not the owner
            ValidationError: If the recipient is the owner or already has a share
        """
        note = await self.access.readable_note(note_id, granter)
        require_owner(note, granter, "share")

        errors = FieldErrors()
        if not errors.require("email", recipient_email):
            errors.raise_if_any()

        recipient = await self.users.get_by_email(recipient_email)
        if recipient is None:
            raise NotFoundError("User not found")

        if recipient.id == note.user_id:
            errors.add("user", "can't share a note with its owner")
        elif await self.repo.find(note.id, recipient.id) is not None:
            errors.add("user", "already has access to this note")
        errors.raise_if_any()

        share = await self._execute_db_operation(
            "create_share",
            self.repo.save(
                Share(note_id=note.id, user_id=recipient.id, user=recipient, permission=permission)
            ),
            unique_field=("user", "already has access to this note"),
        )
        self._log_operation("Note shared", note_id=note.id, recipient_id=recipient.id)
        return share

    async def revoke(self, note_id: str, actor: User, share_id: str) -> None:
        """
        Remove a share from a note.

        Raises:
            NotFoundError: If the note is not accessible or the share is not on it
            AuthorizationError: If the actor is not the owner
        """
        note = await self.access.readable_note(note_id, actor)
        require_owner(note, actor, "manage sharing on")

        share = await self.repo.get_for_note(share_id, note.id)
        if share is None:
            raise NotFoundError("Share not found")

        await self._execute_db_operation("revoke_share", self.repo.delete(share))
        self._log_operation("Share revoked", note_id=note.id, share_id=share_id)
