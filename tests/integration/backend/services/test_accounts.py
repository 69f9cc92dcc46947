"""
Integration tests for user accounts and API tokens.
"""

import pytest
from sqlalchemy import select

from notevault.backend.core.exceptions import AuthenticationError, AuthorizationError, ValidationError
from notevault.backend.core.utils import utc_days_ago
from notevault.backend.models import Note
from notevault.backend.models.user import UserRole
from notevault.backend.services.auth import AuthService
from notevault.backend.services.user import UserService


@pytest.fixture
def users(db_session) -> UserService:
    return UserService(db_session)


@pytest.fixture
def auth(db_session) -> AuthService:
    return AuthService(db_session)


def _fields(exc_info) -> list[str]:
    return [e["field"] for e in exc_info.value.details["errors"]]


class TestCreateUser:
    @pytest.mark.asyncio
    async def test_password_user(self, users):
        user = await users.create_user(email="ann@example.com", name="Ann", password="correct-horse")

        assert user.has_password
        assert user.password_hash != "correct-horse"
        assert user.role is UserRole.USER
        assert user.session_timeout == 3600

    @pytest.mark.asyncio
    async def test_needs_an_authentication_method(self, users):
        with pytest.raises(ValidationError) as exc_info:
            await users.create_user(email="ann@example.com", name="Ann")

        assert "base" in _fields(exc_info)

    @pytest.mark.asyncio
    async def test_federated_user_needs_no_password(self, users):
        user = await users.create_user(
            email="fed@example.com", name="Fed", provider="github", uid="gh-1"
        )
        assert user.has_federated_identity

    @pytest.mark.asyncio
    async def test_duplicate_email_rejected(self, users, owner):
        with pytest.raises(ValidationError) as exc_info:
            await users.create_user(email=owner.email, name="Dup", password="long-enough")

        assert "email" in _fields(exc_info)

    @pytest.mark.asyncio
    async def test_short_password_rejected(self, users):
        with pytest.raises(ValidationError) as exc_info:
            await users.create_user(email="s@example.com", name="S", password="short")

        assert "password" in _fields(exc_info)

    @pytest.mark.asyncio
    async def test_invalid_email_rejected(self, users):
        with pytest.raises(ValidationError) as exc_info:
            await users.create_user(email="not-an-email", name="X", password="long-enough")

        assert "email" in _fields(exc_info)


class TestFederatedUpsert:
    @pytest.mark.asyncio
    async def test_existing_identity_is_refreshed(self, users):
        created = await users.upsert_federated_user("github", "gh-9", "Old", "old@example.com")

        updated = await users.upsert_federated_user("github", "gh-9", "New", "new@example.com")

        assert updated.id == created.id
        assert updated.name == "New"
        assert updated.email == "new@example.com"


class TestAdminOperations:
    @pytest.mark.asyncio
    async def test_update_role(self, users, stranger):
        updated = await users.update_user(stranger.id, {"role": "admin"})
        assert updated.is_admin

    @pytest.mark.asyncio
    async def test_non_positive_session_timeout_rejected(self, users, stranger):
        with pytest.raises(ValidationError):
            await users.update_user(stranger.id, {"session_timeout": 0})

    @pytest.mark.asyncio
    async def test_cannot_delete_self(self, users, owner):
        with pytest.raises(AuthorizationError):
            await users.delete_user(owner.id, owner)

    @pytest.mark.asyncio
    async def test_delete_cascades_to_notes(self, db_session, users, owner, stranger, make_note):
        await make_note(stranger, title="doomed")

        await users.delete_user(stranger.id, owner)

        remaining = await db_session.execute(select(Note.id).where(Note.user_id == stranger.id))
        assert remaining.scalars().all() == []

    @pytest.mark.asyncio
    async def test_stats(self, users, owner, make_note):
        await make_note(owner)

        assert await users.stats() == {"user_count": 1, "note_count": 1}


class TestSetPassword:
    @pytest.mark.asyncio
    async def test_federated_user_gains_password(self, users, auth, owner):
        await users.set_password(owner, "brand-new-pass")

        assert (await auth.authenticate_password(owner.email, "brand-new-pass")).id == owner.id

    @pytest.mark.asyncio
    async def test_short_password_rejected(self, users, owner):
        with pytest.raises(ValidationError) as exc_info:
            await users.set_password(owner, "short")

        assert _fields(exc_info) == ["password"]


class TestPasswordAuthentication:
    @pytest.mark.asyncio
    async def test_valid_credentials(self, users, auth):
        user = await users.create_user(email="pw@example.com", name="Pw", password="correct-horse")

        assert (await auth.authenticate_password("pw@example.com", "correct-horse")).id == user.id

    @pytest.mark.asyncio
    async def test_wrong_password(self, users, auth):
        await users.create_user(email="pw@example.com", name="Pw", password="correct-horse")

        with pytest.raises(AuthenticationError):
            await auth.authenticate_password("pw@example.com", "wrong-horse")

    @pytest.mark.asyncio
    async def test_federated_user_has_no_password(self, auth, owner):
        with pytest.raises(AuthenticationError):
            await auth.authenticate_password(owner.email, "anything")

    @pytest.mark.asyncio
    async def test_federated_uid(self, auth, owner):
        assert (await auth.authenticate_federated(owner.email, owner.uid)).id == owner.id

        with pytest.raises(AuthenticationError):
            await auth.authenticate_federated(owner.email, "wrong-uid")


class TestTokens:
    @pytest.mark.asyncio
    async def test_issued_token_resolves(self, auth, owner):
        issued = await auth.issue_token(owner)

        assert (await auth.resolve_token(issued.token)).id == owner.id
        assert owner.api_token_digest != issued.token

    @pytest.mark.asyncio
    async def test_reissue_invalidates_old_token(self, auth, owner):
        old = await auth.issue_token(owner)
        await auth.issue_token(owner)

        with pytest.raises(AuthenticationError):
            await auth.resolve_token(old.token)

    @pytest.mark.asyncio
    async def test_expired_token_rejected(self, db_session, auth, owner):
        issued = await auth.issue_token(owner)
        owner.token_expires_at = utc_days_ago(1)
        await db_session.flush()

        with pytest.raises(AuthenticationError):
            await auth.resolve_token(issued.token)

    @pytest.mark.asyncio
    async def test_missing_token_rejected(self, auth):
        with pytest.raises(AuthenticationError):
            await auth.resolve_token(None)

    @pytest.mark.asyncio
    async def test_refresh_valid_token_keeps_it(self, auth, owner):
        issued = await auth.issue_token(owner)

        refreshed = await auth.refresh_token(issued.token)

        assert refreshed.token == issued.token
        assert refreshed.expires_at >= issued.expires_at

    @pytest.mark.asyncio
    async def test_refresh_expired_token_replaces_it(self, db_session, auth, owner):
        issued = await auth.issue_token(owner)
        owner.token_expires_at = utc_days_ago(1)
        await db_session.flush()

        refreshed = await auth.refresh_token(issued.token)

        assert refreshed.token != issued.token
        assert (await auth.resolve_token(refreshed.token)).id == owner.id

    @pytest.mark.asyncio
    async def test_refresh_unknown_token(self, auth):
        with pytest.raises(AuthenticationError):
            await auth.refresh_token("not-a-token")
