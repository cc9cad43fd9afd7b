"""Token generation, hashing and expiry rules."""

import re
from datetime import datetime, timedelta, timezone as dt_timezone

from apps.bookings.domain.tokens import generate_raw_token, hash_token, is_token_expired

URL_SAFE = re.compile(r"^[A-Za-z0-9_-]+$")


def test_generated_token_shape():
    token = generate_raw_token()
    assert len(token) >= 43
    assert URL_SAFE.match(token)
    assert "=" not in token


def test_hash_is_deterministic_sha256_hex():
    token = generate_raw_token()
    digest = hash_token(token)

    assert digest == hash_token(token)
    assert len(digest) == 64
    assert re.match(r"^[0-9a-f]{64}$", digest)
    assert digest != token


def test_no_collisions_across_samples():
    tokens = [generate_raw_token() for _ in range(1000)]
    digests = {hash_token(token) for token in tokens}

    assert len(set(tokens)) == 1000
    assert len(digests) == 1000


def test_expiry_is_strict():
    expires_at = datetime(2031, 1, 10, 12, 0, tzinfo=dt_timezone.utc)

    assert not is_token_expired(expires_at, expires_at)
    assert not is_token_expired(expires_at, expires_at - timedelta(seconds=1))
    assert is_token_expired(expires_at, expires_at + timedelta(microseconds=1))
