"""
NoteVersion Model.

Append-only snapshot of a note's (title, body) taken right before a body
change. Rows are written by the system and never updated.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from notevault.backend.core.utils import utc_now
from notevault.backend.models.base import Base, UUIDMixin


class NoteVersion(UUIDMixin, Base):
    """Note version database model."""

    __tablename__ = "note_versions"
    __table_args__ = (
        UniqueConstraint("note_id", "version_number", name="uq_note_versions_note_number"),
    )

    note_id: Mapped[str] = mapped_column(
        ForeignKey("notes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    version_number: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    body: Mapped[str] = mapped_column(Text, default="", nullable=False)
    # "metadata" is reserved on declarative classes
    meta: Mapped[dict[str, Any]] = mapped_column("metadata", JSON, default=dict, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)

    def __repr__(self) -> str:
        return f"<NoteVersion(note_id={self.note_id}, version_number={self.version_number})>"
