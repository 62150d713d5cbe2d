from __future__ import annotations

from dataclasses import replace
from typing import Any

import pytest

from app.config import OAuthClient, Settings
from app.domain.account import Account
from app.domain.contracts import FieldPredicate
from app.domain.errors import AccountExistsError
from app.domain.service import AccountService
from app.mailer import ActivationEmailParameters

TEST_SECRET = "test-access-token-secret-0123456789abcdef"


class FakeRepository:
    """In-memory store mimicking the Postgres-backed behaviours, unique constraints included."""

    def __init__(self) -> None:
        self.accounts: dict[int, Account] = {}
        self.calls: list[str] = []
        self.fail_create = False
        self._seq = 0

    def _matching(self, predicate: FieldPredicate) -> list[Account]:
        return [a for a in self.accounts.values() if getattr(a, predicate.field) == predicate.value]

    async def find_one(self, predicate: FieldPredicate):
        self.calls.append("find_one")
        matches = self._matching(predicate)
        return replace(matches[0]) if matches else None

    async def update(self, values: dict[str, Any], predicate: FieldPredicate):
        self.calls.append("update")
        matching = self._matching(predicate)
        matched_ids = {account.id for account in matching}
        for unique_field in ("username", "email"):
            if unique_field not in values:
                continue
            for other in self.accounts.values():
                if other.id not in matched_ids and getattr(other, unique_field) == values[unique_field]:
                    raise AccountExistsError()
        updated = []
        for account in matching:
            for key, value in values.items():
                setattr(account, key, value)
            updated.append(replace(account))
        return len(updated), updated

    async def create(self, record: dict[str, Any]):
        self.calls.append("create")
        if self.fail_create:
            return None
        for account in self.accounts.values():
            if account.username == record["username"] or account.email == record["email"]:
                raise AccountExistsError()
        self._seq += 1
        account = Account(id=self._seq, **record)
        self.accounts[account.id] = account
        return replace(account)


class FakeEmailSender:
    def __init__(self) -> None:
        self.sent: list[tuple[str, str, ActivationEmailParameters]] = []

    async def send_account_activation_email(
        self, to_address: str, from_address: str, parameters: ActivationEmailParameters
    ) -> None:
        self.sent.append((to_address, from_address, parameters))


@pytest.fixture
def settings() -> Settings:
    return Settings(
        access_token_secret=TEST_SECRET,
        jwt_issuer="account-service-test",
        oauth_clients=(OAuthClient("web-app", ("api:access",), 600),),
        activation_token_ttl_seconds=3600,
        activation_grant="account:activate",
        email_from="accounts@example.com",
        client_base_url="https://app.example.com",
    )


@pytest.fixture
def repository() -> FakeRepository:
    return FakeRepository()


@pytest.fixture
def email_sender() -> FakeEmailSender:
    return FakeEmailSender()


@pytest.fixture
def service(repository, email_sender, settings) -> AccountService:
    return AccountService(repository, email_sender, settings=settings)
