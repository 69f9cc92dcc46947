"""
Authentication Schemas.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class TokenRequest(BaseModel):
    """Either email + password, or email + uid of a federated identity."""

    email: str
    password: str | None = None
    uid: str | None = Field(default=None, description="Federated identity uid")


class TokenResponse(BaseModel):
    token: str
    expires_at: datetime
