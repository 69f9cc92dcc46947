"""
Security Utilities.

Password hashing and opaque API token helpers.

API tokens are random strings handed to the client exactly once. Only a
keyed digest (HMAC-SHA256 with API_KEY_SALT) is stored, so tokens can be
looked up by equality without keeping the plaintext in the database.
"""

import hashlib
import hmac
import secrets
from datetime import datetime, timedelta

import bcrypt

from notevault.backend.core.config import get_app_config, get_settings
from notevault.backend.core.logging import get_logger
from notevault.backend.core.utils import utc_now

logger = get_logger(__name__)


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    password_bytes = password.encode("utf-8")
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(password_bytes, salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return bcrypt.checkpw(
        plain_password.encode("utf-8"),
        hashed_password.encode("utf-8"),
    )


def generate_api_token() -> tuple[str, str]:
    """
    Generate a new API token.

    Returns:
        Tuple of (token, digest)
        - token: Show to user once
        - digest: Store in database
    """
    byte_length = get_app_config().security.api_tokens.byte_length
    token = secrets.token_hex(byte_length)
    return token, digest_api_token(token)


def digest_api_token(token: str) -> str:
    """Return the keyed digest stored for a token."""
    salt = get_settings().api_key_salt.encode("utf-8")
    return hmac.new(salt, token.encode("utf-8"), hashlib.sha256).hexdigest()


def token_expiry() -> datetime:
    """Expiry timestamp for a token issued or extended now."""
    ttl_days = get_app_config().security.api_tokens.ttl_days
    return utc_now() + timedelta(days=ttl_days)


def extract_bearer_token(authorization: str | None) -> str | None:
    """
    Pull the token out of an Authorization header value.

    Accepts "Bearer <token>" as well as a bare token.
    Returns None for a missing or blank header.
    """
    if not authorization or not authorization.strip():
        return None
    return authorization.strip().split(" ")[-1]
