"""
Attachment Schemas.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class AttachmentResponse(BaseModel):
    id: str
    note_id: str
    filename: str
    content_type: str
    byte_size: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
