"""
Attachment Model.

Metadata for a file attached to a note. The bytes live in the attachment
store under storage_key.
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from notevault.backend.core.utils import utc_now
from notevault.backend.models.base import Base, UUIDMixin


class Attachment(UUIDMixin, Base):
    """Attachment database model."""

    __tablename__ = "attachments"

    note_id: Mapped[str] = mapped_column(
        ForeignKey("notes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    content_type: Mapped[str] = mapped_column(
        String(255),
        default="application/octet-stream",
        nullable=False,
    )
    byte_size: Mapped[int] = mapped_column(Integer, nullable=False)
    storage_key: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)

    def __repr__(self) -> str:
        return f"<Attachment(id={self.id}, filename={self.filename!r})>"
