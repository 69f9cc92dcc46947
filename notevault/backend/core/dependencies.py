"""
FastAPI Dependencies.

Shared dependencies for request handling. The authenticated user is
resolved here from the bearer token and handed to endpoints as an explicit
parameter; services never look it up on their own.
"""

import uuid
from typing import Annotated

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from notevault.backend.core.config import get_app_config
from notevault.backend.core.database import get_db_session
from notevault.backend.core.exceptions import AuthorizationError, NotFoundError
from notevault.backend.core.logging import get_logger
from notevault.backend.core.security import extract_bearer_token
from notevault.backend.models.user import User
from notevault.backend.services.auth import AuthService
from notevault.backend.storage.attachments import AttachmentStore, get_attachment_store

logger = get_logger(__name__)

# Type alias for database session dependency
DbSession = Annotated[AsyncSession, Depends(get_db_session)]


async def get_request_id(request: Request, x_request_id: str | None = Header(None)) -> str:
    """
    Request ID for tracing and correlation.

    Prefers the id bound by RequestContextMiddleware, then the header.
    """
    state_id = getattr(request.state, "request_id", None)
    return state_id or x_request_id or str(uuid.uuid4())


RequestId = Annotated[str, Depends(get_request_id)]


def get_bearer_token(authorization: str | None = Header(None)) -> str | None:
    return extract_bearer_token(authorization)


BearerToken = Annotated[str | None, Depends(get_bearer_token)]


async def get_current_user(db: DbSession, token: BearerToken) -> User:
    """
    Resolve the acting user from the Authorization header.

    Raises:
        AuthenticationError: If the token is missing, unknown or expired
    """
    user = await AuthService(db).resolve_token(token)
    logger.debug("Request authenticated", extra={"user_id": user.id})
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


async def require_admin(user: CurrentUser) -> User:
    """
    Allow only admins. Disabled admin API reads as absent.

    Raises:
        NotFoundError: If the admin API is turned off
        AuthorizationError: If the user is not an admin
    """
    if not get_app_config().features.admin_api_enabled:
        raise NotFoundError("Not found")
    if not user.is_admin:
        raise AuthorizationError("Admin access required")
    return user


AdminUser = Annotated[User, Depends(require_admin)]


def require_attachments_enabled() -> None:
    if not get_app_config().features.attachments_enabled:
        raise NotFoundError("Not found")


def get_store() -> AttachmentStore:
    return get_attachment_store()


Store = Annotated[AttachmentStore, Depends(get_store)]
