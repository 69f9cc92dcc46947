"""
Note Repository.

Data access layer for notes: the accessible-notes query, the named
filter and sort variants used by listings, full-text search, and the
stale-trash sweep.
"""

import enum
import re
from datetime import datetime

from sqlalchemy import Float, Select, String, column, delete, func, or_, select, text
from sqlalchemy.ext.asyncio import AsyncSession

from notevault.backend.models.note import SEARCH_LANGUAGE, SEARCH_TABLE, Note
from notevault.backend.models.share import Share
from notevault.backend.models.tag import note_tags
from notevault.backend.repositories.base import BaseRepository

_SEARCH_TOKEN = re.compile(r"\w+", re.UNICODE)


class NoteFilter(str, enum.Enum):
    """Named listing filters."""

    ACTIVE = "active"
    PINNED = "pinned"
    ARCHIVED = "archived"
    TRASH = "trash"


class NoteSort(str, enum.Enum):
    """Named listing orders. UPDATED puts pinned notes first."""

    UPDATED = "updated"
    CREATED_AT = "created_at"
    TITLE = "title"


class SortDirection(str, enum.Enum):
    ASC = "asc"
    DESC = "desc"


def search_terms(query: str | None) -> list[str]:
    """Reduce free text to word tokens safe to hand to the search engine."""
    if not query:
        return []
    return _SEARCH_TOKEN.findall(query)


def accessible_notes_query(user_id: str) -> Select:
    """
    Notes owned by user_id or shared with user_id.

    A single SELECT over notes with an OR predicate, so each note appears
    at most once.
    """
    shared_with_user = select(Share.note_id).where(Share.user_id == user_id)
    return select(Note).where(
        or_(Note.user_id == user_id, Note.id.in_(shared_with_user))
    )


def apply_filter(query: Select, note_filter: NoteFilter) -> Select:
    if note_filter is NoteFilter.TRASH:
        return query.where(Note.trashed.is_(True))
    query = query.where(Note.trashed.is_(False))
    if note_filter is NoteFilter.PINNED:
        return query.where(Note.pinned.is_(True))
    if note_filter is NoteFilter.ARCHIVED:
        return query.where(Note.archived.is_(True))
    return query.where(Note.archived.is_(False))


def apply_sort(query: Select, sort: NoteSort, direction: SortDirection) -> Select:
    def ordered(expr):
        return expr.asc() if direction is SortDirection.ASC else expr.desc()

    if sort is NoteSort.CREATED_AT:
        return query.order_by(ordered(Note.created_at), Note.id)
    if sort is NoteSort.TITLE:
        return query.order_by(ordered(func.lower(func.coalesce(Note.title, ""))), Note.id)
    return query.order_by(Note.pinned.desc(), ordered(Note.updated_at), Note.id)


class NoteRepository(BaseRepository[Note]):
    """
    Repository for Note model.

    Inherits standard CRUD operations from BaseRepository
    and adds note-specific queries.
    """

    model = Note

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)

    async def get_accessible(self, note_id: str, user_id: str) -> Note | None:
        """The note if it exists and user_id may read it."""
        result = await self.session.execute(
            accessible_notes_query(user_id).where(Note.id == note_id)
        )
        return result.scalar_one_or_none()

    async def list_accessible(
        self,
        user_id: str,
        note_filter: NoteFilter = NoteFilter.ACTIVE,
        sort: NoteSort = NoteSort.UPDATED,
        direction: SortDirection = SortDirection.DESC,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Note], int]:
        """
        Get one page of accessible notes and the total matching count.

        Args:
            user_id: Acting user
            note_filter: Which lifecycle slice to return
            sort: Ordering variant
            direction: Ascending or descending
            limit: Page size
            offset: Number of notes to skip

        Returns:
            Tuple of (notes, total)
        """
        filtered = apply_filter(accessible_notes_query(user_id), note_filter)

        total_result = await self.session.execute(
            select(func.count()).select_from(filtered.subquery())
        )
        total = total_result.scalar_one()

        result = await self.session.execute(
            apply_sort(filtered, sort, direction).limit(limit).offset(offset)
        )
        return list(result.scalars().all()), total

    async def list_owned(
        self,
        user_id: str,
        trashed: bool = False,
        note_ids: list[str] | None = None,
    ) -> list[Note]:
        """Notes owned by user_id with the given trashed flag, newest first."""
        query = select(Note).where(Note.user_id == user_id, Note.trashed.is_(trashed))
        if note_ids is not None:
            query = query.where(Note.id.in_(note_ids))
        result = await self.session.execute(
            query.order_by(Note.trashed_at.desc() if trashed else Note.updated_at.desc(), Note.id)
        )
        return list(result.scalars().all())

    async def list_accessible_with_tag(self, user_id: str, tag_id: str) -> list[Note]:
        tagged = select(note_tags.c.note_id).where(note_tags.c.tag_id == tag_id)
        result = await self.session.execute(
            accessible_notes_query(user_id)
            .where(Note.id.in_(tagged), Note.trashed.is_(False))
            .order_by(Note.updated_at.desc(), Note.id)
        )
        return list(result.scalars().all())

    async def search(self, user_id: str, query: str | None, limit: int = 50) -> list[Note]:
        """
        Full-text search over accessible, non-trashed notes.

        A query with no word tokens returns an empty list without touching
        the database. Results are ordered by the engine's relevance.
        """
        terms = search_terms(query)
        if not terms:
            return []

        scope = accessible_notes_query(user_id).where(Note.trashed.is_(False))

        dialect = self.session.get_bind().dialect.name
        if dialect == "sqlite":
            # Each token quoted: FTS5 operators in user input stay literal
            match = " ".join(f'"{term}"' for term in terms)
            matches = (
                text(f"SELECT note_id, rank FROM {SEARCH_TABLE} WHERE {SEARCH_TABLE} MATCH :match")
                .bindparams(match=match)
                .columns(column("note_id", String), column("rank", Float))
                .subquery("matches")
            )
            statement = (
                scope.join(matches, matches.c.note_id == Note.id)
                .order_by(matches.c.rank, Note.updated_at.desc())
            )
        else:
            document = func.to_tsvector(
                SEARCH_LANGUAGE,
                func.coalesce(Note.title, "") + " " + func.coalesce(Note.body, ""),
            )
            ts_query = func.plainto_tsquery(SEARCH_LANGUAGE, " ".join(terms))
            statement = (
                scope.where(document.op("@@")(ts_query))
                .order_by(func.ts_rank(document, ts_query).desc(), Note.updated_at.desc())
            )

        result = await self.session.execute(statement.limit(limit))
        return list(result.scalars().all())

    async def lock_stale_trash(self, cutoff: datetime) -> list[str]:
        """
        Select and row-lock the ids of notes trashed at or before cutoff.

        Rows already locked by a concurrent restore or sweep are skipped;
        they are picked up by the next run if still stale.
        """
        result = await self.session.execute(
            select(Note.id)
            .where(Note.trashed.is_(True), Note.trashed_at <= cutoff)
            .with_for_update(skip_locked=True)
        )
        return list(result.scalars().all())

    async def delete_stale_trash(self, note_ids: list[str], cutoff: datetime) -> list[str]:
        """
        Permanently delete the given notes if they are still stale trash.

        The trashed condition is re-checked in the DELETE itself, so a note
        restored since it was selected survives. Dependent rows go via FK
        cascades.

        Returns:
            Ids of the notes actually deleted
        """
        if not note_ids:
            return []
        result = await self.session.execute(
            delete(Note)
            .where(
                Note.id.in_(note_ids),
                Note.trashed.is_(True),
                Note.trashed_at <= cutoff,
            )
            .returning(Note.id)
            .execution_options(synchronize_session=False)
        )
        return list(result.scalars().all())

