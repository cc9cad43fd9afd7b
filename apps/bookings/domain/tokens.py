"""
Bearer token primitives

Tokens carry 256 bits of entropy and are never stored; only their
SHA-256 digest is persisted. Collisions are not checked for.
"""

import hashlib
import secrets
from datetime import datetime

TOKEN_SIZE_BYTES = 32


def generate_raw_token() -> str:
    """URL-safe base64 of 32 random bytes, without padding (43 characters)."""
    return secrets.token_urlsafe(TOKEN_SIZE_BYTES)


def hash_token(raw_token: str) -> str:
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()


def is_token_expired(expires_at: datetime, now: datetime) -> bool:
    """A token is still valid at the exact expiry instant."""
    return expires_at < now
