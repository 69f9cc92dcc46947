"""
User Service.

User lifecycle and validation. Every write runs the full set of user
invariants, including "has at least one authentication method", not
only on creation.
"""

import re
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from notevault.backend.core.config import get_app_config
from notevault.backend.core.exceptions import AuthorizationError, NotFoundError
from notevault.backend.core.security import hash_password
from notevault.backend.models.user import User, UserRole
from notevault.backend.repositories.attachment import AttachmentRepository
from notevault.backend.repositories.note import NoteRepository
from notevault.backend.repositories.user import UserRepository
from notevault.backend.services.base import BaseService, FieldErrors

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class UserService(BaseService):
    """Service for user accounts."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.repo = UserRepository(session)
        self.notes = NoteRepository(session)
        self.attachments = AttachmentRepository(session)

    async def validate(self, user: User, password: str | None = None) -> None:
        """
        Check every user invariant.

        Args:
            user: User with pending changes applied
            password: Plaintext password being set, if any

        Raises:
            ValidationError: With one entry per violated field
        """
        errors = FieldErrors()
        errors.require("name", user.name)

        if errors.require("email", user.email):
            if not EMAIL_PATTERN.match(user.email):
                errors.add("email", "is invalid")
            elif await self.repo.email_taken(user.email, exclude_id=user.id):
                errors.add("email", "has already been taken")

        if user.uid and await self.repo.uid_taken(user.uid, exclude_id=user.id):
            errors.add("uid", "has already been taken")

        if user.session_timeout is None or user.session_timeout <= 0:
            errors.add("session_timeout", "must be greater than 0")

        if password is not None:
            errors.min_length("password", password, get_app_config().security.passwords.min_length)

        if not (user.has_password or password or user.has_federated_identity):
            errors.add("base", "Must have either OAuth credentials or a password")

        errors.raise_if_any()

    async def create_user(
        self,
        email: str,
        name: str,
        password: str | None = None,
        provider: str | None = None,
        uid: str | None = None,
        role: UserRole = UserRole.USER,
        session_timeout: int | None = None,
    ) -> User:
        """
        Create a user with a password and/or a federated identity.

        Raises:
            ValidationError: If any user invariant fails
        """
        user = User(
            email=(email or "").strip(),
            name=name,
            provider=provider,
            uid=uid,
            role=role,
            session_timeout=(
                session_timeout
                if session_timeout is not None
                else get_app_config().security.default_session_timeout
            ),
        )
        await self.validate(user, password=password)
        if password:
            user.password_hash = hash_password(password)

        user = await self._execute_db_operation("create_user", self.repo.save(user))
        self._log_operation("User created", user_id=user.id, role=user.role.value)
        return user

    async def upsert_federated_user(self, provider: str, uid: str, name: str, email: str) -> User:
        """
        Find the user for (provider, uid) or create one, refreshing name and email.
        """
        user = await self.repo.get_by_uid(uid)
        if user is None or user.provider != provider:
            return await self.create_user(email=email, name=name, provider=provider, uid=uid)

        user.name = name
        user.email = (email or "").strip()
        await self.validate(user)
        return await self._execute_db_operation("update_user", self.repo.save(user))

    async def set_password(self, user: User, password: str) -> User:
        """Set or replace a user's password."""
        errors = FieldErrors()
        if errors.require("password", password):
            errors.min_length("password", password, get_app_config().security.passwords.min_length)
        errors.raise_if_any()

        user.password_hash = hash_password(password)
        await self.validate(user)
        user = await self._execute_db_operation("set_password", self.repo.save(user))
        self._log_operation("Password changed", user_id=user.id)
        return user

    async def get_user(self, user_id: str) -> User:
        return await self.repo.get_by_id(user_id)

    async def list_users(self, limit: int = 50, offset: int = 0) -> tuple[list[User], int]:
        users = await self.repo.list_users(limit=limit, offset=offset)
        return users, await self.repo.count()

    async def update_user(self, user_id: str, changes: dict[str, Any]) -> User:
        """
        Admin update of a user's role and session timeout.

        Raises:
            NotFoundError: If the user does not exist
            ValidationError: If the result violates a user invariant
        """
        user = await self.repo.get_by_id(user_id)
        if changes.get("role") is not None:
            user.role = UserRole(changes["role"])
        if "session_timeout" in changes:
            user.session_timeout = changes["session_timeout"]
        await self.validate(user)

        user = await self._execute_db_operation("update_user", self.repo.save(user))
        self._log_operation("User updated", user_id=user.id, fields=sorted(changes))
        return user

    async def delete_user(self, user_id: str, actor: User) -> list[str]:
        """
        Delete a user with their notes, tags and shares.

        Returns:
            Storage keys of attachments on the user's notes, to purge after commit

        Raises:
            AuthorizationError: If actor tries to delete themselves
            NotFoundError: If the user does not exist
        """
        if user_id == actor.id:
            raise AuthorizationError("You cannot delete your own account")
        user = await self.repo.get_by_id_or_none(user_id)
        if user is None:
            raise NotFoundError("User not found")

        keys = await self.attachments.storage_keys_for_user(user.id)
        await self._execute_db_operation("delete_user", self.repo.delete(user))
        self._log_operation("User deleted", user_id=user_id)
        return keys

    async def stats(self) -> dict[str, int]:
        """User and note totals for the admin dashboard."""
        return {
            "user_count": await self.repo.count(),
            "note_count": await self.notes.count(),
        }
