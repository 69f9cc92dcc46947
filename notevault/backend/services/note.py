"""
Note Service.

Business logic layer for notes: the lifecycle state machine, automatic
versioning, tagging, duplicate/merge, listing, export and search.

Versioning: whenever an update changes the body of an already persisted
note, a NoteVersion holding the pre-update (title, body) is written in the
same session, so the note change and its version commit or roll back
together.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from notevault.backend.core.config import get_app_config
from notevault.backend.core.exceptions import NotFoundError, ValidationError
from notevault.backend.core.utils import utc_days_ago, utc_now
from notevault.backend.models.note import COPY_SUFFIX, MERGE_SEPARATOR, TITLE_MAX_LENGTH, Note
from notevault.backend.models.user import User
from notevault.backend.repositories.attachment import AttachmentRepository
from notevault.backend.repositories.note import NoteFilter, NoteRepository, NoteSort, SortDirection
from notevault.backend.repositories.note_version import NoteVersionRepository
from notevault.backend.repositories.tag import TagRepository
from notevault.backend.services.access import NoteAccess
from notevault.backend.services.base import BaseService, FieldErrors

_UPDATABLE_FIELDS = frozenset({"title", "body", "pinned", "max_size", "tag_ids"})


@dataclass
class ExportFile:
    """One exported Markdown document."""

    filename: str
    content: str


@dataclass
class TrashSweepResult:
    """Outcome of a stale-trash sweep."""

    deleted_notes: int
    storage_keys: list[str] = field(default_factory=list)


def validate_note(note: Note) -> None:
    """
    Check a note's field invariants.

    Raises:
        ValidationError: With one entry per violated field
    """
    errors = FieldErrors()
    errors.max_length("title", note.title, TITLE_MAX_LENGTH)
    if note.max_size is None or note.max_size <= 0:
        errors.add("max_size", "must be greater than 0")
    elif len(note.body or "") > note.max_size:
        errors.add("body", f"is too long (maximum is {note.max_size} characters)")
    if not isinstance(note.pinned, bool):
        errors.add("pinned", "is not a boolean")
    elif note.trashed and note.pinned:
        errors.add("pinned", "can't pin a note in the trash")
    errors.raise_if_any()


class NoteService(BaseService):
    """
    Service for note business logic.

    Every method takes the acting user explicitly and checks access
    through NoteAccess before touching the note.
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.repo = NoteRepository(session)
        self.versions = NoteVersionRepository(session)
        self.tags = TagRepository(session)
        self.attachments = AttachmentRepository(session)
        self.access = NoteAccess(session)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def get_note(self, note_id: str, user: User) -> Note:
        """
        Get a note the user may read.

        Raises:
            NotFoundError: If note not found or not accessible
        """
        return await self.access.readable_note(note_id, user)

    async def list_notes(
        self,
        user: User,
        note_filter: NoteFilter = NoteFilter.ACTIVE,
        sort: NoteSort = NoteSort.UPDATED,
        direction: SortDirection = SortDirection.DESC,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Note], int]:
        """
        List accessible notes.

        Returns:
            Tuple of (notes on this page, total matching notes)
        """
        return await self.repo.list_accessible(
            user.id,
            note_filter=note_filter,
            sort=sort,
            direction=direction,
            limit=limit,
            offset=offset,
        )

    async def list_trash(self, user: User) -> list[Note]:
        """The user's own trashed notes, most recently trashed first."""
        return await self.repo.list_owned(user.id, trashed=True)

    async def search(self, user: User, query: str | None) -> list[Note]:
        """
        Full-text search over the user's accessible, non-trashed notes.

        A blank query returns an empty list.
        """
        max_results = get_app_config().notes.search.max_results
        notes = await self.repo.search(user.id, query, limit=max_results)
        self._log_debug("Note search", result_count=len(notes))
        return notes

    # -------------------------------------------------------------------------
    # Create / update
    # -------------------------------------------------------------------------

    async def create_note(
        self,
        user: User,
        title: str | None = None,
        body: str = "",
        max_size: int | None = None,
        pinned: bool = False,
        tag_ids: list[str] | None = None,
    ) -> Note:
        """
        Create a note owned by user. No version is recorded on creation.

        Raises:
            ValidationError: If title, body or max_size are invalid
        """
        note = Note(
            user_id=user.id,
            title=title,
            body=body or "",
            max_size=max_size if max_size is not None else get_app_config().notes.default_max_size,
            pinned=pinned,
            archived=False,
            trashed=False,
        )
        validate_note(note)

        self._log_operation("Creating note", user_id=user.id)
        note = await self._execute_db_operation("create_note", self.repo.save(note))
        if tag_ids is not None:
            await self._assign_tags(note, user, tag_ids)
        self._log_debug("Note created", note_id=note.id)
        return note

    async def update_note(self, note_id: str, user: User, changes: dict[str, Any]) -> Note:
        """
        Apply a partial update to a note the user may edit.

        Args:
            note_id: Note to update
            user: Acting user
            changes: Any of title, body, pinned, max_size, tag_ids

        Raises:
            NotFoundError: If note not found or not accessible
            AuthorizationError: If the user may not edit the note
            ValidationError: If the result violates a note invariant
        """
        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(
                errors=[{"field": name, "message": "is not updatable"} for name in sorted(unknown)]
            )

        note = await self.access.editable_note(note_id, user)
        fields = {key: value for key, value in changes.items() if key != "tag_ids"}
        if "body" in fields and fields["body"] is None:
            fields["body"] = ""

        await self.apply_changes(note, **fields)
        if "tag_ids" in changes and changes["tag_ids"] is not None:
            await self._assign_tags(note, user, changes["tag_ids"])

        self._log_operation("Note updated", note_id=note.id, fields=sorted(changes))
        return note

    async def apply_changes(self, note: Note, **fields: Any) -> Note:
        """
        Set fields on a persisted note and record a version if the body changed.

        The version captures the (title, body) as they were before this call.
        """
        previous_title, previous_body = note.title, note.body
        for name, value in fields.items():
            setattr(note, name, value)
        validate_note(note)

        if note.body != previous_body:
            await self._record_version(note, previous_title, previous_body)

        return await self._execute_db_operation("update_note", self.repo.save(note))

    async def _record_version(self, note: Note, title: str | None, body: str) -> None:
        number = await self.versions.next_version_number(note.id)
        await self._execute_db_operation(
            "create_note_version",
            self.versions.create(
                note_id=note.id,
                version_number=number,
                title=title,
                body=body,
                meta={"changed_at": utc_now().isoformat()},
            ),
        )
        self._log_debug("Note version recorded", note_id=note.id, version_number=number)

    # -------------------------------------------------------------------------
    # Tagging
    # -------------------------------------------------------------------------

    async def assign_tags(self, note_id: str, user: User, tag_ids: list[str]) -> Note:
        """
        Replace the note's tags with those of tag_ids owned by the user.

        Ids that do not exist or belong to someone else are dropped silently.
        """
        note = await self.access.editable_note(note_id, user)
        await self._assign_tags(note, user, tag_ids)
        return note

    async def _assign_tags(self, note: Note, user: User, tag_ids: list[str]) -> None:
        tags = await self.tags.get_many_for_user([str(tag_id) for tag_id in tag_ids], user.id)
        note.tags = tags
        await self._execute_db_operation("assign_tags", self.repo.save(note))

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def soft_delete(self, note_id: str, user: User) -> Note:
        """
        Move a note to the trash. Owner only; repeating it is a no-op.

        Raises:
            NotFoundError: If note not found or not accessible
            AuthorizationError: If the user is not the owner
        """
        note = await self.access.owned_note(note_id, user, "delete")
        if note.trashed:
            return note
        note.soft_delete()
        note = await self._execute_db_operation("soft_delete", self.repo.save(note))
        self._log_operation("Note moved to trash", note_id=note.id)
        return note

    async def restore(self, note_id: str, user: User) -> Note:
        """
        Take a note out of the trash. Owner only.

        Raises:
            NotFoundError: If the note is missing, inaccessible or not trashed
            AuthorizationError: If the user is not the owner
        """
        note = await self.access.owned_note(note_id, user, "restore")
        if not note.trashed:
            raise NotFoundError("Note is not in the trash")
        note.restore()
        note = await self._execute_db_operation("restore", self.repo.save(note))
        self._log_operation("Note restored", note_id=note.id)
        return note

    async def permanently_delete(self, note_id: str, user: User) -> list[str]:
        """
        Delete a trashed note with its versions, shares, tag links and
        attachments. Owner only.

        Returns:
            Storage keys of the note's attachments, to purge after commit

        Raises:
            NotFoundError: If note not found or not accessible
            AuthorizationError: If the user is not the owner
            ValidationError: If the note is not in the trash
        """
        note = await self.access.owned_note(note_id, user, "delete")
        if not note.trashed:
            raise ValidationError.for_field("trashed", "note must be in the trash first")
        keys = await self.attachments.storage_keys_for_note(note.id)
        await self._execute_db_operation("permanently_delete", self.repo.delete(note))
        self._log_operation("Note permanently deleted", note_id=note_id)
        return keys

    async def delete_note(self, note_id: str, user: User) -> tuple[bool, list[str]]:
        """
        Trash a live note, or permanently delete one already in the trash.

        Returns:
            Tuple of (permanently_deleted, attachment storage keys to purge)
        """
        note = await self.access.owned_note(note_id, user, "delete")
        if note.trashed:
            return True, await self.permanently_delete(note_id, user)
        await self.soft_delete(note_id, user)
        return False, []

    async def archive(self, note_id: str, user: User) -> Note:
        note = await self.access.editable_note(note_id, user)
        note.archive()
        note = await self._execute_db_operation("archive", self.repo.save(note))
        self._log_operation("Note archived", note_id=note.id)
        return note

    async def unarchive(self, note_id: str, user: User) -> Note:
        """Clear the archived flag. A note that is not archived is left as is."""
        note = await self.access.editable_note(note_id, user)
        if not note.archived:
            return note
        note.unarchive()
        note = await self._execute_db_operation("unarchive", self.repo.save(note))
        self._log_operation("Note unarchived", note_id=note.id)
        return note

    async def toggle_pin(self, note_id: str, user: User) -> Note:
        """
        Flip the pinned flag.

        Raises:
            ValidationError: If the note is in the trash
        """
        note = await self.access.editable_note(note_id, user)
        if note.trashed:
            raise ValidationError.for_field("pinned", "can't pin a note in the trash")
        note.toggle_pin()
        return await self._execute_db_operation("toggle_pin", self.repo.save(note))

    # -------------------------------------------------------------------------
    # Duplicate / merge
    # -------------------------------------------------------------------------

    async def duplicate(self, note_id: str, user: User) -> Note:
        """
        Copy a readable note into a new note owned by user.

        The title gains " (copy)" (a missing title stays missing); body,
        max_size and tags are copied; every lifecycle flag starts false.
        """
        source = await self.access.readable_note(note_id, user)
        copy = Note(
            user_id=user.id,
            title=f"{source.title}{COPY_SUFFIX}" if source.title else None,
            body=source.body,
            max_size=source.max_size,
            pinned=False,
            archived=False,
            trashed=False,
            trashed_at=None,
        )
        validate_note(copy)
        copy = await self._execute_db_operation("duplicate", self.repo.save(copy))
        copy.tags = list(source.tags)
        copy = await self._execute_db_operation("duplicate_tags", self.repo.save(copy))
        self._log_operation("Note duplicated", source_id=source.id, note_id=copy.id)
        return copy

    async def merge(
        self,
        note_id: str,
        other_id: str,
        user: User,
        trash_other: bool = False,
    ) -> Note:
        """
        Append another note's body and tags to this one.

        The separator is always inserted, even when either body is empty.
        With trash_other the merged-in note is soft-deleted in the same
        transaction, which requires owning it.

        Raises:
            NotFoundError: If either note is missing or not accessible
            AuthorizationError: If the user may not edit the target or,
                with trash_other, does not own the other note
            ValidationError: If both ids name the same note or the merged
                body exceeds max_size
        """
        if str(note_id) == str(other_id):
            raise ValidationError.for_field("merge_with_id", "can't merge a note with itself")

        note = await self.access.editable_note(note_id, user)
        other = await self.access.readable_note(other_id, user)
        if trash_other:
            await self.access.owned_note(other_id, user, "delete")

        present = {tag.id for tag in note.tags}
        merged_tags = list(note.tags) + [tag for tag in other.tags if tag.id not in present]
        note.tags = merged_tags
        note = await self.apply_changes(
            note,
            body=f"{note.body or ''}{MERGE_SEPARATOR}{other.body or ''}",
        )
        self._log_operation("Notes merged", note_id=note.id, other_id=other.id)

        if trash_other:
            await self.soft_delete(other.id, user)
        return note

    # -------------------------------------------------------------------------
    # Export
    # -------------------------------------------------------------------------

    async def export(self, note_id: str, user: User) -> ExportFile:
        note = await self.access.readable_note(note_id, user)
        return ExportFile(filename=note.export_filename, content=note.to_markdown())

    async def bulk_export(self, user: User, note_ids: list[str] | None = None) -> list[ExportFile]:
        """Export the user's own non-trashed notes, optionally limited to note_ids."""
        notes = await self.repo.list_owned(user.id, trashed=False, note_ids=note_ids)
        return [
            ExportFile(
                filename=f"{note.title or f'note-{note.id}'}.md",
                content=note.to_markdown(),
            )
            for note in notes
        ]

    # -------------------------------------------------------------------------
    # Maintenance
    # -------------------------------------------------------------------------

    async def purge_stale_trash(self, cutoff: datetime | None = None) -> TrashSweepResult:
        """
        Permanently delete notes trashed at or before cutoff.

        Defaults to now minus notes.trash.retention_days. Safe to run
        repeatedly or concurrently: already-deleted notes simply no longer
        match and a note restored mid-sweep is kept along with its
        attachments. Blob keys are returned only for notes actually deleted.
        """
        if cutoff is None:
            cutoff = utc_days_ago(get_app_config().notes.trash.retention_days)

        note_ids = await self._execute_db_operation(
            "lock_stale_trash",
            self.repo.lock_stale_trash(cutoff),
        )
        keys_by_note = await self._execute_db_operation(
            "stale_trash_storage_keys",
            self.attachments.storage_keys_by_note(note_ids),
        )
        deleted_ids = await self._execute_db_operation(
            "purge_stale_trash",
            self.repo.delete_stale_trash(note_ids, cutoff),
        )
        keys = [key for note_id in deleted_ids for key in keys_by_note.get(note_id, [])]
        deleted = len(deleted_ids)
        self._log_operation(
            "Stale trash purged",
            deleted_notes=deleted,
            cutoff=cutoff.isoformat(),
        )
        return TrashSweepResult(deleted_notes=deleted, storage_keys=keys)
