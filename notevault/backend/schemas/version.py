"""
Note Version Schemas.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class VersionResponse(BaseModel):
    id: str
    note_id: str
    version_number: int
    title: str | None
    body: str
    metadata: dict[str, Any] = Field(validation_alias="meta")
    created_at: datetime

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class FieldChange(BaseModel):
    was: str | None
    now: str | None


class VersionDiff(BaseModel):
    title: FieldChange
    body: FieldChange


class VersionDetailResponse(VersionResponse):
    diff_from_current: VersionDiff
