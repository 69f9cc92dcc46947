"""
Share Model.

A grant from a note's owner to another user. Unique per (note, user).
"""

import enum

from sqlalchemy import Enum, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from notevault.backend.models.base import Base, TimestampMixin, UUIDMixin
from notevault.backend.models.user import User


class SharePermission(str, enum.Enum):
    """
    Access level granted by a share.

    Only read_write exists today. New members (e.g. a read-only grant) are
    added here and left out of WRITE_PERMISSIONS.
    """

    READ_WRITE = "read_write"


WRITE_PERMISSIONS = frozenset({SharePermission.READ_WRITE})


class Share(UUIDMixin, TimestampMixin, Base):
    """Share database model."""

    __tablename__ = "shares"
    __table_args__ = (
        UniqueConstraint("note_id", "user_id", name="uq_shares_note_user"),
    )

    note_id: Mapped[str] = mapped_column(
        ForeignKey("notes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    permission: Mapped[SharePermission] = mapped_column(
        Enum(
            SharePermission,
            name="share_permission",
            native_enum=False,
            values_callable=lambda perms: [perm.value for perm in perms],
        ),
        default=SharePermission.READ_WRITE,
        nullable=False,
    )

    user: Mapped[User] = relationship(lazy="joined")

    @property
    def grants_write(self) -> bool:
        return self.permission in WRITE_PERMISSIONS

    def __repr__(self) -> str:
        return f"<Share(note_id={self.note_id}, user_id={self.user_id}, permission={self.permission.value})>"
