"""
Attachment Service.

Files attached to notes. Size limits are enforced on every file before
any byte reaches the store. Blobs are written before their rows and
removed only after the rows' deletion has committed.
"""

from dataclasses import dataclass
from uuid import uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from notevault.backend.core.config import get_app_config
from notevault.backend.core.exceptions import ExternalServiceError, NotFoundError
from notevault.backend.models.attachment import Attachment
from notevault.backend.models.user import User
from notevault.backend.repositories.attachment import AttachmentRepository
from notevault.backend.services.access import NoteAccess
from notevault.backend.services.base import BaseService, FieldErrors
from notevault.backend.storage.attachments import AttachmentStore, purge_blobs


@dataclass
class IncomingFile:
    """An uploaded file, already read into memory."""

    filename: str
    content_type: str | None
    data: bytes


class AttachmentService(BaseService):
    """Service for note attachments."""

    def __init__(self, session: AsyncSession, store: AttachmentStore) -> None:
        super().__init__(session)
        self.repo = AttachmentRepository(session)
        self.access = NoteAccess(session)
        self.store = store

    async def list_attachments(self, note_id: str, user: User) -> list[Attachment]:
        note = await self.access.readable_note(note_id, user)
        return await self.repo.list_for_note(note.id)

    async def attach(self, note_id: str, user: User, files: list[IncomingFile]) -> list[Attachment]:
        """
        Attach files to a note the user may edit.

        Raises:
            NotFoundError: If the note is not accessible
            AuthorizationError: If the user may not edit the note
            ValidationError: If no file is given or any file is too large
            ExternalServiceError: If the store rejects a write
        """
        note = await self.access.editable_note(note_id, user)

        max_bytes = get_app_config().notes.attachments.max_file_bytes
        errors = FieldErrors()
        if not files:
            errors.add("files", "No files provided")
        for incoming in files:
            if len(incoming.data) > max_bytes:
                errors.add(
                    "files",
                    f"{incoming.filename} is too large (maximum is {max_bytes // (1024 * 1024)} MB)",
                )
        errors.raise_if_any()

        stored: list[str] = []
        try:
            for incoming in files:
                key = f"{note.id}/{uuid4().hex}"
                await self.store.save(key, incoming.data)
                stored.append(key)
        except OSError as exc:
            await purge_blobs(self.store, stored)
            raise ExternalServiceError("Attachment storage unavailable") from exc

        attachments = []
        for incoming, key in zip(files, stored):
            attachment = await self._execute_db_operation(
                "create_attachment",
                self.repo.create(
                    note_id=note.id,
                    filename=incoming.filename or "file",
                    content_type=incoming.content_type or "application/octet-stream",
                    byte_size=len(incoming.data),
                    storage_key=key,
                ),
            )
            attachments.append(attachment)

        self._log_operation("Files attached", note_id=note.id, count=len(attachments))
        return attachments

    async def read(self, note_id: str, attachment_id: str, user: User) -> tuple[Attachment, bytes]:
        """Metadata and bytes of an attachment on a readable note."""
        note = await self.access.readable_note(note_id, user)
        attachment = await self._attachment_of(note.id, attachment_id)
        try:
            data = await self.store.read(attachment.storage_key)
        except OSError as exc:
            raise ExternalServiceError("Attachment storage unavailable") from exc
        return attachment, data

    async def purge(self, note_id: str, attachment_id: str, user: User) -> list[str]:
        """
        Remove an attachment row from a note the user may edit.

        Returns:
            The storage key to purge after commit
        """
        note = await self.access.editable_note(note_id, user)
        attachment = await self._attachment_of(note.id, attachment_id)
        key = attachment.storage_key
        await self._execute_db_operation("delete_attachment", self.repo.delete(attachment))
        self._log_operation("Attachment removed", note_id=note.id, attachment_id=attachment_id)
        return [key]

    async def commit_and_purge(self, keys: list[str]) -> int:
        """Commit the session, then delete blobs whose rows are gone."""
        await self.session.commit()
        if not keys:
            return 0
        return await purge_blobs(self.store, keys)

    async def _attachment_of(self, note_id: str, attachment_id: str) -> Attachment:
        attachment = await self.repo.get_for_note(attachment_id, note_id)
        if attachment is None:
            raise NotFoundError("Attachment not found")
        return attachment
