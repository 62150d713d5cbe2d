"""Tests for password hashing and token issuance/verification."""

from __future__ import annotations

import time

import jwt
import pytest

from app.security.passwords import hash_password, verify_password
from app.security.tokens import ExpiredTokenError, InvalidTokenError, decode_token, issue_token

SECRET = "token-test-secret-0123456789abcdefghij"


def test_hash_password_is_verifiable_and_not_plaintext():
    digest = hash_password("correct horse")
    assert digest != "correct horse"
    assert digest.startswith("argon2$")
    assert verify_password("correct horse", digest)
    assert not verify_password("wrong horse", digest)


@pytest.mark.parametrize("digest", [None, "", "plain-text", "argon2$not-a-hash", "argon2$$argon2id$v=19$garbage"])
def test_verify_password_returns_false_for_malformed_digests(digest):
    assert verify_password("secret", digest) is False


def test_round_trip_preserves_subject_and_grants():
    token = issue_token(
        subject_id=42,
        client_id="web-app",
        client_secret=SECRET,
        expiry_seconds=60,
        grants=["api:access", "account:read"],
    )
    claims = decode_token(token, SECRET)
    assert claims.subject_id == 42
    assert claims.grants == ["api:access", "account:read"]
    assert claims.client_id == "web-app"
    assert claims.expires_at - claims.issued_at == 60


def test_token_without_subject_decodes_with_none():
    token = issue_token(subject_id=None, client_id="web-app", client_secret=SECRET, expiry_seconds=60, grants=[])
    assert decode_token(token, SECRET).subject_id is None


def test_expiry_boundary():
    issued_at = int(time.time()) - 10
    token = issue_token(
        subject_id=7, client_id="web-app", client_secret=SECRET, expiry_seconds=100, grants=[], issued_at=issued_at
    )
    expires_at = issued_at + 100

    assert decode_token(token, SECRET, now=expires_at - 1).subject_id == 7
    with pytest.raises(ExpiredTokenError):
        decode_token(token, SECRET, now=expires_at)
    with pytest.raises(ExpiredTokenError):
        decode_token(token, SECRET, now=expires_at + 1)


def test_expired_token_against_wall_clock():
    token = issue_token(
        subject_id=7,
        client_id="web-app",
        client_secret=SECRET,
        expiry_seconds=5,
        grants=[],
        issued_at=int(time.time()) - 60,
    )
    with pytest.raises(ExpiredTokenError):
        decode_token(token, SECRET)


def test_wrong_secret_is_invalid():
    token = issue_token(subject_id=1, client_id="web-app", client_secret=SECRET, expiry_seconds=60, grants=[])
    with pytest.raises(InvalidTokenError):
        decode_token(token, "another-secret-0123456789abcdefghijkl")


def test_garbage_token_is_invalid():
    with pytest.raises(InvalidTokenError):
        decode_token("not.a.token", SECRET)


def test_issuer_mismatch_is_invalid():
    token = issue_token(
        subject_id=1, client_id="web-app", client_secret=SECRET, expiry_seconds=60, grants=[], issuer="someone-else"
    )
    with pytest.raises(InvalidTokenError):
        decode_token(token, SECRET, issuer="account-service")


def test_non_numeric_subject_is_invalid():
    now = int(time.time())
    token = jwt.encode({"sub": "alice", "iat": now, "exp": now + 60}, SECRET, algorithm="HS256")
    with pytest.raises(InvalidTokenError):
        decode_token(token, SECRET)


def test_missing_expiry_is_invalid():
    token = jwt.encode({"sub": "1", "iat": int(time.time())}, SECRET, algorithm="HS256")
    with pytest.raises(InvalidTokenError):
        decode_token(token, SECRET)


def test_issued_at_ahead_of_verifier_clock_still_verifies():
    token = issue_token(
        subject_id=3,
        client_id="web-app",
        client_secret=SECRET,
        expiry_seconds=300,
        grants=["api:access"],
        issued_at=int(time.time()) + 30,
    )
    claims = decode_token(token, SECRET)
    assert claims.subject_id == 3
    assert claims.grants == ["api:access"]


def test_non_numeric_expiry_is_invalid():
    now = int(time.time())
    token = jwt.encode({"sub": "1", "iat": now, "exp": "soon"}, SECRET, algorithm="HS256")
    with pytest.raises(InvalidTokenError):
        decode_token(token, SECRET)
