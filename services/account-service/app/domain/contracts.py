"""Domain-level request contracts and collaborator ports shared by multiple layers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from .account import Account


@dataclass(slots=True, frozen=True)
class FieldPredicate:
    """Equality match on a single account field."""

    field: str
    value: Any


@dataclass(slots=True)
class Credentials:
    """Username and plaintext password supplied at login; never persisted."""

    username: str
    password: str


@dataclass(slots=True)
class CreateAccountInput:
    """Validated inputs required to create a pending account."""

    username: str
    email: str
    password: str
    first_name: str | None = None


@dataclass(slots=True)
class UpdateAccountInput:
    """Partial update of an existing account; ``None`` leaves a field unchanged."""

    account_id: int
    email: str | None = None
    first_name: str | None = None
    password: str | None = None


class AccountStore(Protocol):
    async def find_one(self, predicate: FieldPredicate) -> Account | None:
        """Return the first account matching the predicate, or ``None``."""

    async def update(
        self, values: dict[str, Any], predicate: FieldPredicate
    ) -> tuple[int, list[Account]]:
        """Apply ``values`` to matching accounts; return (affected count, updated rows)."""

    async def create(self, record: dict[str, Any]) -> Account | None:
        """Insert an account and return it as stored."""
