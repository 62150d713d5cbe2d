from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import datetime


@dataclass(slots=True)
class Account:
    """Identity record moving from pending activation to active."""

    id: int
    username: str
    email: str
    password_hash: str
    first_name: str | None
    active: bool
    created_at: datetime
    updated_at: datetime
    created_by: int | None = None
    updated_by: int | None = None


ACCOUNT_FIELDS: tuple[str, ...] = tuple(f.name for f in fields(Account))
