"""
User Schemas.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from notevault.backend.models.user import UserRole


class UserResponse(BaseModel):
    id: str
    email: str
    name: str
    role: UserRole
    session_timeout: int
    provider: str | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserAdminUpdate(BaseModel):
    role: UserRole | None = None
    session_timeout: int | None = None


class AdminStats(BaseModel):
    user_count: int
    note_count: int
