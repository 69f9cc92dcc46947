"""
Note Schemas.

Pydantic schemas for note API request/response validation. Field-level
business rules (title length, body within max_size, pinning in trash)
are checked by the note service so they report through one error shape.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from notevault.backend.models.note import NoteStatus
from notevault.backend.schemas.tag import TagSummary


class NoteCreate(BaseModel):
    """Schema for creating a new note."""

    title: str | None = Field(
        default=None,
        description="Note title",
        examples=["Groceries"],
    )
    body: str = Field(
        default="",
        description="Note body (Markdown)",
        examples=["- milk\n- eggs"],
    )
    max_size: int | None = Field(
        default=None,
        description="Maximum body length in characters",
    )
    pinned: bool = Field(default=False, description="Pin the note")
    tag_ids: list[str] | None = Field(
        default=None,
        description="Tags to attach; ids not owned by the caller are ignored",
    )


class NoteUpdate(BaseModel):
    """Schema for a partial note update. Only fields sent are changed."""

    title: str | None = None
    body: str | None = None
    max_size: int | None = None
    pinned: bool | None = None
    tag_ids: list[str] | None = None


class NoteMerge(BaseModel):
    """Schema for merging another note into this one."""

    merge_with_id: str = Field(description="Note whose body and tags are appended")
    trash_merged: bool = Field(
        default=True,
        description="Move the merged-in note to the trash afterwards",
    )


class NoteResponse(BaseModel):
    """Schema for note in API responses."""

    id: str = Field(description="Note unique identifier")
    user_id: str = Field(description="Owner id")
    title: str | None
    body: str
    max_size: int
    pinned: bool
    archived: bool
    trashed: bool
    trashed_at: datetime | None
    status: NoteStatus
    tags: list[TagSummary]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class NoteListResponse(BaseModel):
    """Schema for notes in listings; omits the body."""

    id: str
    user_id: str
    title: str | None
    pinned: bool
    archived: bool
    trashed: bool
    status: NoteStatus
    tags: list[TagSummary]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class NoteDeleteResponse(BaseModel):
    id: str
    permanently_deleted: bool
    message: str


class ExportResponse(BaseModel):
    filename: str
    content: str

    model_config = ConfigDict(from_attributes=True)


class BulkExportRequest(BaseModel):
    note_ids: list[str] | None = Field(
        default=None,
        description="Limit the export to these notes; all non-trashed notes when omitted",
    )


class BulkExportResponse(BaseModel):
    files: list[ExportResponse]
