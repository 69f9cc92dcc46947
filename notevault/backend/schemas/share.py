"""
Share Schemas.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from notevault.backend.models.share import SharePermission


class ShareCreate(BaseModel):
    email: str = Field(description="Email of the user to share with", examples=["friend@example.com"])
    permission: SharePermission = SharePermission.READ_WRITE


class ShareRecipient(BaseModel):
    id: str
    name: str
    email: str

    model_config = ConfigDict(from_attributes=True)


class ShareResponse(BaseModel):
    id: str
    note_id: str
    permission: SharePermission
    user: ShareRecipient
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
