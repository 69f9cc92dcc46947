"""
Tag Schemas.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from notevault.backend.models.tag import DEFAULT_TAG_COLOR


class TagSummary(BaseModel):
    """Tag as embedded in a note."""

    id: str
    name: str
    color: str | None

    model_config = ConfigDict(from_attributes=True)


class TagCreate(BaseModel):
    name: str = Field(description="Tag name; stored trimmed and lower-cased", examples=["Work"])
    color: str | None = Field(default=DEFAULT_TAG_COLOR, examples=["#ff0000"])


class TagUpdate(BaseModel):
    name: str | None = None
    color: str | None = None


class TagResponse(BaseModel):
    id: str
    name: str
    color: str | None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TaggedNote(BaseModel):
    id: str
    title: str | None
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TagDetailResponse(TagResponse):
    notes: list[TaggedNote]
