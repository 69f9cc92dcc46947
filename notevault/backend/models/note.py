"""
Note Model.

The central entity. A note belongs to exactly one owner and carries three
independent lifecycle flags (pinned, archived, trashed). The transition
methods here only mutate flags; who may call them is decided by the
service layer.

Full-text search is backed by the database:
    SQLite      - FTS5 table notes_search_index (porter tokenizer) kept in
                  sync by triggers on notes
    PostgreSQL  - GIN expression index over to_tsvector(title || body)
"""

import enum
from datetime import datetime

from sqlalchemy import DDL, Boolean, DateTime, ForeignKey, Integer, String, Text, event
from sqlalchemy.orm import Mapped, mapped_column, relationship

from notevault.backend.core.utils import utc_now
from notevault.backend.models.base import Base, TimestampMixin, UUIDMixin
from notevault.backend.models.tag import Tag, note_tags

DEFAULT_MAX_SIZE = 32768
TITLE_MAX_LENGTH = 255
COPY_SUFFIX = " (copy)"
MERGE_SEPARATOR = "\n\n---\n\n"

SEARCH_TABLE = "notes_search_index"
SEARCH_LANGUAGE = "english"


class NoteStatus(str, enum.Enum):
    """Lifecycle classification, derived from the flags in priority order."""

    TRASHED = "trashed"
    ARCHIVED = "archived"
    PINNED = "pinned"
    ACTIVE = "active"


class Note(UUIDMixin, TimestampMixin, Base):
    """Note database model."""

    __tablename__ = "notes"

    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str | None] = mapped_column(String(TITLE_MAX_LENGTH), nullable=True)
    body: Mapped[str] = mapped_column(Text, default="", nullable=False)
    max_size: Mapped[int] = mapped_column(Integer, default=DEFAULT_MAX_SIZE, nullable=False)
    pinned: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    archived: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    trashed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)
    trashed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    tags: Mapped[list[Tag]] = relationship(
        secondary=note_tags,
        lazy="selectin",
        order_by=Tag.name,
        passive_deletes=True,
    )

    @property
    def status(self) -> NoteStatus:
        if self.trashed:
            return NoteStatus.TRASHED
        if self.archived:
            return NoteStatus.ARCHIVED
        if self.pinned:
            return NoteStatus.PINNED
        return NoteStatus.ACTIVE

    def soft_delete(self) -> None:
        """Move to trash. A second call keeps the original trashed_at."""
        if self.trashed:
            return
        self.trashed = True
        self.trashed_at = utc_now()
        self.pinned = False

    def restore(self) -> None:
        self.trashed = False
        self.trashed_at = None

    def archive(self) -> None:
        self.archived = True
        self.pinned = False

    def unarchive(self) -> None:
        self.archived = False

    def toggle_pin(self) -> None:
        self.pinned = not self.pinned

    def to_markdown(self) -> str:
        if self.title:
            return f"# {self.title}\n\n{self.body or ''}"
        return self.body or ""

    @property
    def export_filename(self) -> str:
        return f"{self.title or 'untitled'}.md"

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, title={self.title!r}, status={self.status.value})>"


# SQLite full-text index. One DDL per statement; sqlite3 executes one at a time.
SQLITE_SEARCH_DDL = [
    f"CREATE VIRTUAL TABLE IF NOT EXISTS {SEARCH_TABLE} "
    "USING fts5(note_id UNINDEXED, title, body, tokenize='porter')",
    f"""CREATE TRIGGER IF NOT EXISTS notes_search_ai AFTER INSERT ON notes BEGIN
        INSERT INTO {SEARCH_TABLE}(note_id, title, body)
        VALUES (new.id, coalesce(new.title, ''), new.body);
    END""",
    f"""CREATE TRIGGER IF NOT EXISTS notes_search_au AFTER UPDATE OF title, body ON notes BEGIN
        UPDATE {SEARCH_TABLE} SET title = coalesce(new.title, ''), body = new.body
        WHERE note_id = old.id;
    END""",
    f"""CREATE TRIGGER IF NOT EXISTS notes_search_ad AFTER DELETE ON notes BEGIN
        DELETE FROM {SEARCH_TABLE} WHERE note_id = old.id;
    END""",
]

POSTGRES_SEARCH_DDL = [
    "CREATE INDEX IF NOT EXISTS ix_notes_search ON notes USING GIN "
    f"(to_tsvector('{SEARCH_LANGUAGE}', coalesce(title, '') || ' ' || coalesce(body, '')))",
]

for _statement in SQLITE_SEARCH_DDL:
    event.listen(Note.__table__, "after_create", DDL(_statement).execute_if(dialect="sqlite"))
for _statement in POSTGRES_SEARCH_DDL:
    event.listen(Note.__table__, "after_create", DDL(_statement).execute_if(dialect="postgresql"))

event.listen(
    Note.__table__,
    "before_drop",
    DDL(f"DROP TABLE IF EXISTS {SEARCH_TABLE}").execute_if(dialect="sqlite"),
)
