"""
Integration tests for tags on notes, duplicate, merge, export, search and
the stale-trash sweep.
"""

from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import select, update

from notevault.backend.core.exceptions import NotFoundError, ValidationError
from notevault.backend.core.utils import utc_days_ago
from notevault.backend.models import Note
from notevault.backend.models.attachment import Attachment
from notevault.backend.services.note import NoteService
from notevault.backend.services.share import ShareService
from notevault.backend.services.tag import TagService


@pytest.fixture
def notes(db_session) -> NoteService:
    return NoteService(db_session)


@pytest.fixture
def tags(db_session) -> TagService:
    return TagService(db_session)


class TestTagAssignment:
    @pytest.mark.asyncio
    async def test_foreign_tag_ids_dropped(self, notes, tags, owner, stranger, make_note):
        mine = await tags.create_tag(owner, "work")
        theirs = await tags.create_tag(stranger, "secret")
        note = await make_note(owner)

        tagged = await notes.assign_tags(note.id, owner, [mine.id, theirs.id, "missing"])

        assert [t.id for t in tagged.tags] == [mine.id]

    @pytest.mark.asyncio
    async def test_create_with_tags(self, notes, tags, owner):
        tag = await tags.create_tag(owner, "ideas")

        note = await notes.create_note(owner, title="Tagged", tag_ids=[tag.id])

        assert [t.name for t in note.tags] == ["ideas"]


class TestDuplicate:
    @pytest.mark.asyncio
    async def test_copy_gets_suffix_and_tags(self, notes, tags, owner, make_note):
        tag = await tags.create_tag(owner, "keep")
        note = await make_note(owner, title="Original", body="text", pinned=True)
        await notes.assign_tags(note.id, owner, [tag.id])

        copy = await notes.duplicate(note.id, owner)

        assert copy.id != note.id
        assert copy.title == "Original (copy)"
        assert copy.body == "text"
        assert copy.pinned is False
        assert [t.id for t in copy.tags] == [tag.id]

    @pytest.mark.asyncio
    async def test_untitled_stays_untitled(self, notes, owner, make_note):
        note = await make_note(owner, title=None, body="b")

        copy = await notes.duplicate(note.id, owner)

        assert copy.title is None

    @pytest.mark.asyncio
    async def test_recipient_owns_the_copy(self, db_session, notes, owner, recipient, make_note):
        note = await make_note(owner, title="Shared")
        await ShareService(db_session).share(note.id, owner, recipient.email)

        copy = await notes.duplicate(note.id, recipient)

        assert copy.user_id == recipient.id


class TestMerge:
    @pytest.mark.asyncio
    async def test_bodies_joined_with_separator(self, notes, tags, owner, make_note):
        first_tag = await tags.create_tag(owner, "a")
        second_tag = await tags.create_tag(owner, "b")
        first = await make_note(owner, body="First")
        second = await make_note(owner, body="Second")
        await notes.assign_tags(first.id, owner, [first_tag.id])
        await notes.assign_tags(second.id, owner, [second_tag.id, first_tag.id])

        merged = await notes.merge(first.id, second.id, owner, trash_other=True)

        assert merged.body == "First\n\n---\n\nSecond"
        assert sorted(t.name for t in merged.tags) == ["a", "b"]
        assert second.trashed is True

    @pytest.mark.asyncio
    async def test_separator_kept_for_empty_bodies(self, notes, owner, make_note):
        first = await make_note(owner, body="")
        second = await make_note(owner, body="")

        merged = await notes.merge(first.id, second.id, owner)

        assert merged.body == "\n\n---\n\n"

    @pytest.mark.asyncio
    async def test_merge_records_version(self, notes, owner, make_note, db_session):
        first = await make_note(owner, body="First")
        second = await make_note(owner, body="Second")

        await notes.merge(first.id, second.id, owner)

        assert await notes.versions.next_version_number(first.id) == 2

    @pytest.mark.asyncio
    async def test_merge_with_self_rejected(self, notes, owner, make_note):
        note = await make_note(owner, body="x")

        with pytest.raises(ValidationError):
            await notes.merge(note.id, note.id, owner)

    @pytest.mark.asyncio
    async def test_merged_body_must_fit(self, notes, owner, make_note):
        first = await make_note(owner, body="12345", max_size=10)
        second = await make_note(owner, body="67890")

        with pytest.raises(ValidationError):
            await notes.merge(first.id, second.id, owner)


class TestExport:
    @pytest.mark.asyncio
    async def test_export_markdown(self, notes, owner, make_note):
        note = await make_note(owner, title="Groceries", body="- milk")

        exported = await notes.export(note.id, owner)

        assert exported.filename == "Groceries.md"
        assert exported.content == "# Groceries\n\n- milk"

    @pytest.mark.asyncio
    async def test_export_untitled(self, notes, owner, make_note):
        note = await make_note(owner, title=None, body="plain")

        exported = await notes.export(note.id, owner)

        assert exported.filename == "untitled.md"
        assert exported.content == "plain"

    @pytest.mark.asyncio
    async def test_bulk_export_skips_trash(self, notes, owner, make_note):
        await make_note(owner, title="kept", body="k")
        await make_note(owner, title="gone", trashed=True, trashed_at=utc_days_ago(1))

        files = await notes.bulk_export(owner)

        assert [f.filename for f in files] == ["kept.md"]

    @pytest.mark.asyncio
    async def test_bulk_export_selected_ids(self, notes, owner, make_note):
        a = await make_note(owner, title="a")
        await make_note(owner, title="b")

        files = await notes.bulk_export(owner, [a.id])

        assert [f.filename for f in files] == ["a.md"]

    @pytest.mark.asyncio
    async def test_bulk_export_untitled_uses_id(self, notes, owner, make_note):
        note = await make_note(owner, title=None)

        (exported,) = await notes.bulk_export(owner)

        assert exported.filename == f"note-{note.id}.md"


class TestSearch:
    @pytest.mark.asyncio
    async def test_stemmed_match(self, notes, owner, make_note):
        note = await make_note(owner, title="Morning", body="I like to run")

        results = await notes.search(owner, "running")

        assert [n.id for n in results] == [note.id]

    @pytest.mark.asyncio
    async def test_case_insensitive_title_match(self, notes, owner, make_note):
        note = await make_note(owner, title="Quarterly Report", body="")

        assert [n.id for n in await notes.search(owner, "quarterly")] == [note.id]

    @pytest.mark.asyncio
    async def test_blank_query_returns_nothing(self, notes, owner, make_note):
        await make_note(owner, body="anything")

        assert await notes.search(owner, "") == []
        assert await notes.search(owner, "   ") == []

    @pytest.mark.asyncio
    async def test_operators_are_literal(self, notes, owner, make_note):
        await make_note(owner, body="alpha or beta")

        assert await notes.search(owner, 'alpha OR "') != []

    @pytest.mark.asyncio
    async def test_scope_excludes_trash_and_strangers(self, notes, owner, stranger, make_note):
        await make_note(owner, body="zebra", trashed=True, trashed_at=utc_days_ago(1))
        await make_note(stranger, body="zebra")

        assert await notes.search(owner, "zebra") == []

    @pytest.mark.asyncio
    async def test_updated_body_is_searchable(self, notes, owner, make_note):
        note = await make_note(owner, body="old words")
        await notes.update_note(note.id, owner, {"body": "giraffe"})

        assert [n.id for n in await notes.search(owner, "giraffe")] == [note.id]
        assert await notes.search(owner, "old") == []


class TestStaleTrashSweep:
    @pytest.mark.asyncio
    async def test_only_expired_trash_removed(self, notes, owner, make_note, db_session):
        stale = await make_note(owner, trashed=True, trashed_at=utc_days_ago(31))
        recent = await make_note(owner, trashed=True, trashed_at=utc_days_ago(5))
        live = await make_note(owner)
        db_session.add(
            Attachment(
                note_id=stale.id,
                filename="a.txt",
                content_type="text/plain",
                byte_size=1,
                storage_key=f"{stale.id}/blob",
            )
        )
        await db_session.flush()

        result = await notes.purge_stale_trash()

        assert result.deleted_notes == 1
        assert result.storage_keys == [f"{stale.id}/blob"]
        remaining = await db_session.execute(select(Note.id))
        assert set(remaining.scalars().all()) == {recent.id, live.id}

    @pytest.mark.asyncio
    async def test_second_run_is_noop(self, notes, owner, make_note):
        await make_note(owner, trashed=True, trashed_at=utc_days_ago(40))

        assert (await notes.purge_stale_trash()).deleted_notes == 1
        assert (await notes.purge_stale_trash()).deleted_notes == 0

    @pytest.mark.asyncio
    async def test_explicit_cutoff(self, notes, owner, make_note):
        await make_note(owner, trashed=True, trashed_at=utc_days_ago(5))

        result = await notes.purge_stale_trash(cutoff=utc_days_ago(1))

        assert result.deleted_notes == 1


    @pytest.mark.asyncio
    async def test_note_restored_mid_sweep_keeps_attachments(
        self, notes, owner, make_note, db_session
    ):
        note = await make_note(owner, trashed=True, trashed_at=utc_days_ago(31))
        db_session.add(
            Attachment(
                note_id=note.id,
                filename="a.txt",
                content_type="text/plain",
                byte_size=1,
                storage_key=f"{note.id}/blob",
            )
        )
        await db_session.flush()

        delete_stale_trash = notes.repo.delete_stale_trash

        async def restore_then_delete(note_ids, cutoff):
            await db_session.execute(
                update(Note)
                .where(Note.id == note.id)
                .values(trashed=False, trashed_at=None)
            )
            return await delete_stale_trash(note_ids, cutoff)

        notes.repo.delete_stale_trash = restore_then_delete

        result = await notes.purge_stale_trash()

        assert result.deleted_notes == 0
        assert result.storage_keys == []
        remaining = await db_session.execute(
            select(Attachment.storage_key).where(Attachment.note_id == note.id)
        )
        assert remaining.scalars().all() == [f"{note.id}/blob"]


class TestTagService:
    @pytest.mark.asyncio
    async def test_names_normalized(self, tags, owner):
        tag = await tags.create_tag(owner, "  Work ")
        assert tag.name == "work"

    @pytest.mark.asyncio
    async def test_duplicate_name_rejected(self, tags, owner):
        await tags.create_tag(owner, "work")

        with pytest.raises(ValidationError):
            await tags.create_tag(owner, "WORK")

    @pytest.mark.asyncio
    async def test_concurrent_duplicate_name_rejected(self, tags, owner):
        await tags.create_tag(owner, "work")

        with patch.object(tags.repo, "name_taken", AsyncMock(return_value=False)):
            with pytest.raises(ValidationError) as exc_info:
                await tags.create_tag(owner, "work")

        assert exc_info.value.errors == [{"field": "name", "message": "has already been taken"}]

    @pytest.mark.asyncio
    async def test_same_name_for_different_users(self, tags, owner, stranger):
        await tags.create_tag(owner, "work")
        assert (await tags.create_tag(stranger, "work")).user_id == stranger.id

    @pytest.mark.asyncio
    async def test_bad_color_rejected(self, tags, owner):
        with pytest.raises(ValidationError):
            await tags.create_tag(owner, "red", color="red")

    @pytest.mark.asyncio
    async def test_tags_are_private(self, tags, owner, stranger):
        tag = await tags.create_tag(owner, "mine")

        with pytest.raises(NotFoundError):
            await tags.get_tag(tag.id, stranger)

    @pytest.mark.asyncio
    async def test_tag_detail_lists_live_notes(self, notes, tags, owner, make_note):
        tag = await tags.create_tag(owner, "t")
        live = await make_note(owner, title="live")
        gone = await make_note(owner, title="gone")
        await notes.assign_tags(live.id, owner, [tag.id])
        await notes.assign_tags(gone.id, owner, [tag.id])
        await notes.soft_delete(gone.id, owner)

        _, tagged = await tags.get_tag_with_notes(tag.id, owner)

        assert [n.id for n in tagged] == [live.id]

    @pytest.mark.asyncio
    async def test_rename_to_taken_name_rejected(self, tags, owner):
        await tags.create_tag(owner, "a")
        b = await tags.create_tag(owner, "b")

        with pytest.raises(ValidationError):
            await tags.update_tag(b.id, owner, {"name": "A"})
