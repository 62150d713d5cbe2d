"""Account-related DTOs shared across services."""

from __future__ import annotations

from datetime import datetime
from pydantic import BaseModel, EmailStr


class Account(BaseModel):
    """Public view of an account; never carries the password hash."""

    id: int
    username: str
    email: EmailStr
    first_name: str | None = None
    active: bool = False
    created_at: datetime
    updated_at: datetime
    created_by: int | None = None
    updated_by: int | None = None
