# Importing every model registers its table on Base.metadata
from notevault.backend.models.attachment import Attachment
from notevault.backend.models.base import Base
from notevault.backend.models.note import Note, NoteStatus
from notevault.backend.models.note_version import NoteVersion
from notevault.backend.models.share import Share, SharePermission
from notevault.backend.models.tag import Tag, note_tags
from notevault.backend.models.user import User, UserRole

__all__ = [
    "Attachment",
    "Base",
    "Note",
    "NoteStatus",
    "NoteVersion",
    "Share",
    "SharePermission",
    "Tag",
    "User",
    "UserRole",
    "note_tags",
]
