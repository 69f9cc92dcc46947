"""
Authentication Service.

Turns credentials into a User and manages opaque API tokens. Tokens are
random hex strings returned to the client once; only their keyed digest is
stored, with an expiry of now + api_tokens.ttl_days.
"""

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from notevault.backend.core.exceptions import AuthenticationError
from notevault.backend.core.security import (
    digest_api_token,
    generate_api_token,
    token_expiry,
    verify_password,
)
from notevault.backend.core.utils import utc_now
from notevault.backend.models.user import User
from notevault.backend.repositories.user import UserRepository
from notevault.backend.services.base import BaseService


@dataclass
class IssuedToken:
    """A token as handed to the client."""

    token: str
    expires_at: datetime


def token_expired(user: User) -> bool:
    return user.token_expires_at is None or user.token_expires_at < utc_now()


class AuthService(BaseService):
    """Service for credentials and API tokens."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.users = UserRepository(session)

    async def authenticate_password(self, email: str, password: str) -> User:
        """
        Raises:
            AuthenticationError: If the email is unknown, the user has no
                password, or the password does not match
        """
        user = await self.users.get_by_email(email or "")
        if user is None or not user.has_password or not verify_password(password, user.password_hash):
            self._log_debug("Password authentication failed")
            raise AuthenticationError("Invalid credentials")
        return user

    async def authenticate_federated(self, email: str, uid: str) -> User:
        """
        Raises:
            AuthenticationError: If no user has both this email and uid
        """
        user = await self.users.get_by_email(email or "")
        if user is None or not uid or user.uid != uid:
            raise AuthenticationError("Invalid credentials")
        return user

    async def issue_token(self, user: User) -> IssuedToken:
        """Replace the user's token with a new one."""
        token, digest = generate_api_token()
        user.api_token_digest = digest
        user.token_expires_at = token_expiry()
        user = await self._execute_db_operation("issue_token", self.users.save(user))
        self._log_operation("API token issued", user_id=user.id)
        return IssuedToken(token=token, expires_at=user.token_expires_at)

    async def refresh_token(self, token: str | None) -> IssuedToken:
        """
        Extend a still-valid token, or replace an expired one.

        Raises:
            AuthenticationError: If the token is missing or unknown
        """
        if not token:
            raise AuthenticationError("Invalid token")
        user = await self.users.get_by_token_digest(digest_api_token(token))
        if user is None:
            raise AuthenticationError("Invalid token")

        if token_expired(user):
            return await self.issue_token(user)

        user.token_expires_at = token_expiry()
        user = await self._execute_db_operation("refresh_token", self.users.save(user))
        self._log_operation("API token extended", user_id=user.id)
        return IssuedToken(token=token, expires_at=user.token_expires_at)

    async def resolve_token(self, token: str | None) -> User:
        """
        The user a bearer token belongs to.

        Raises:
            AuthenticationError: If the token is missing, unknown or expired
        """
        if not token:
            raise AuthenticationError("Authentication required")
        user = await self.users.get_by_token_digest(digest_api_token(token))
        if user is None or token_expired(user):
            raise AuthenticationError("Unauthorized")
        return user
