"""Utilities for issuing and validating signed, expiring account tokens."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Iterable

import jwt

ALGORITHM = "HS256"


class TokenError(Exception):
    """Base class for token verification failures."""


class InvalidTokenError(TokenError):
    pass


class ExpiredTokenError(TokenError):
    pass


@dataclass(slots=True)
class TokenClaims:
    """Decoded claims of a verified token."""

    subject_id: int | None
    client_id: str | None
    issued_at: int
    expires_at: int
    grants: list[str] = field(default_factory=list)


def issue_token(
    *,
    subject_id: int | None,
    client_id: str,
    client_secret: str,
    expiry_seconds: int,
    grants: Iterable[str],
    issuer: str | None = None,
    issued_at: int | None = None,
) -> str:
    """Create a signed JWT for an account.

    Parameters
    ----------
    subject_id:
        Account identifier embedded in the ``sub`` claim; omitted when ``None``.
    client_id:
        Registered client the token is issued for.
    client_secret:
        HMAC signing secret.
    expiry_seconds:
        Lifetime of the token counted from ``issued_at``.
    grants:
        Scopes granted to the bearer.
    issuer:
        Optional ``iss`` claim.
    issued_at:
        Issuance instant as a UNIX timestamp; defaults to the current time.

    Returns
    -------
    str
        The encoded JWT.
    """

    now = int(time.time()) if issued_at is None else int(issued_at)
    payload: dict[str, Any] = {
        "client_id": client_id,
        "scopes": list(grants),
        "iat": now,
        "exp": now + int(expiry_seconds),
    }
    if subject_id is not None:
        payload["sub"] = str(subject_id)
    if issuer:
        payload["iss"] = issuer
    return jwt.encode(payload, client_secret, algorithm=ALGORITHM)


def decode_token(
    token: str,
    secret: str,
    *,
    issuer: str | None = None,
    now: float | None = None,
) -> TokenClaims:
    """Verify signature and expiry of ``token`` and return its claims.

    A token is expired from its ``exp`` instant onwards.

    Raises
    ------
    InvalidTokenError
        The token is malformed, signed with another secret, issued by another
        issuer, or carries claims of the wrong shape.
    ExpiredTokenError
        The verification instant is at or past the token's expiry.
    """

    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[ALGORITHM],
            issuer=issuer,
            options={"require": ["exp", "iat"], "verify_exp": False, "verify_iat": False},
        )
    except jwt.PyJWTError as exc:
        raise InvalidTokenError("invalid token") from exc

    expires_at = payload["exp"]
    if isinstance(expires_at, bool) or not isinstance(expires_at, (int, float)):
        raise InvalidTokenError("invalid token expiry")
    current = time.time() if now is None else now
    if current >= expires_at:
        raise ExpiredTokenError("token expired")

    grants = payload.get("scopes", [])
    if not isinstance(grants, list):
        raise InvalidTokenError("invalid token grants")

    subject = payload.get("sub")
    try:
        subject_id = int(subject) if subject is not None else None
    except (TypeError, ValueError) as exc:
        raise InvalidTokenError("invalid token subject") from exc

    return TokenClaims(
        subject_id=subject_id,
        client_id=payload.get("client_id"),
        issued_at=_as_int(payload["iat"]),
        expires_at=int(expires_at),
        grants=[str(grant) for grant in grants],
    )


def _as_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise InvalidTokenError("invalid token timestamp") from exc
