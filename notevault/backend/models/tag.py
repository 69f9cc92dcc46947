"""
Tag Model.

User-scoped labels attached to notes through the note_tags join table.
"""

from sqlalchemy import Column, ForeignKey, String, Table, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from notevault.backend.models.base import Base, TimestampMixin, UUIDMixin

DEFAULT_TAG_COLOR = "#6b7280"

note_tags = Table(
    "note_tags",
    Base.metadata,
    Column("note_id", ForeignKey("notes.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True, index=True),
)


class Tag(UUIDMixin, TimestampMixin, Base):
    """Tag database model. Names are stored trimmed and lower-cased."""

    __tablename__ = "tags"
    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_tags_user_name"),
    )

    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    color: Mapped[str | None] = mapped_column(
        String(7),
        default=DEFAULT_TAG_COLOR,
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Tag(id={self.id}, name={self.name!r})>"
