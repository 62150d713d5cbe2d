"""Account service orchestrating persistence, credential checks, token issuance and activation email."""

from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any, Protocol
from urllib.parse import quote

from .account import Account
from .contracts import AccountStore, CreateAccountInput, Credentials, FieldPredicate, UpdateAccountInput
from .errors import (
    AccountExistsError,
    AccountNotFoundError,
    InvalidCredentialsError,
    OperationFailedError,
)
from ..config import Settings, get_settings
from ..mailer import ActivationEmailParameters
from ..security.passwords import dummy_hash, hash_password, verify_password
from ..security.tokens import InvalidTokenError, decode_token, issue_token


class EmailSender(Protocol):
    async def send_account_activation_email(
        self, to_address: str, from_address: str, parameters: ActivationEmailParameters
    ) -> None: ...


class AccountService:
    """Account lifecycle workflows: pending accounts become active through emailed tokens."""

    def __init__(
        self,
        repository: AccountStore,
        email_sender: EmailSender,
        settings: Settings | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        """Store the collaborators used to orchestrate persistence, tokens and email."""
        self._repository = repository
        self._email_sender = email_sender
        self._settings = settings or get_settings()
        self._logger = logger or logging.getLogger(__name__)

    @property
    def settings(self) -> Settings:
        return self._settings

    async def verify(self, credentials: Credentials) -> Account:
        """Return the account owning ``credentials``.

        Unknown usernames and wrong passwords raise the same error so callers
        cannot tell which check failed.
        """
        account = await self.find_by_field("username", credentials.username)
        digest = account.password_hash if account is not None else dummy_hash()
        if not verify_password(credentials.password, digest) or account is None:
            self._logger.info("credential check failed for username %r", credentials.username)
            raise InvalidCredentialsError()
        return account

    async def find(self, account_id: int) -> Account:
        """Return the account with ``account_id`` or raise ``AccountNotFoundError``."""
        account = await self.find_by_field("id", account_id)
        if account is None:
            raise AccountNotFoundError()
        return account

    async def find_by_field(self, field: str, value: Any) -> Account | None:
        return await self._repository.find_one(FieldPredicate(field, value))

    async def activate(self, token: str) -> None:
        """Mark the account referenced by an activation token as active."""
        claims = decode_token(token, self._settings.access_token_secret, issuer=self._settings.jwt_issuer)
        if claims.subject_id is None:
            raise InvalidTokenError("token does not carry an account id")
        if self._settings.activation_grant not in claims.grants:
            raise InvalidTokenError("token does not grant account activation")
        self._logger.debug("decoded activation token for account %s", claims.subject_id)

        affected, _ = await self._repository.update(
            {"active": True, "updated_at": _now()},
            FieldPredicate("id", claims.subject_id),
        )
        if affected == 0:
            message = f"Account not found during activation (id={claims.subject_id})"
            self._logger.error(message)
            raise OperationFailedError(message)
        self._logger.info("activated account %s", claims.subject_id)

    def generate_activation_token(self, account: Account) -> str:
        """Issue a token that authorises activating ``account``."""
        client = self._settings.default_client
        return issue_token(
            subject_id=account.id,
            client_id=client.client_id,
            client_secret=self._settings.access_token_secret,
            expiry_seconds=self._settings.activation_token_ttl_seconds,
            grants=[self._settings.activation_grant],
            issuer=self._settings.jwt_issuer,
        )

    def generate_access_token(self, account: Account) -> str:
        """Issue an API access token for ``account`` using the default client's policy."""
        client = self._settings.default_client
        return issue_token(
            subject_id=account.id,
            client_id=client.client_id,
            client_secret=self._settings.access_token_secret,
            expiry_seconds=client.access_token_expiry_seconds,
            grants=client.grants,
            issuer=self._settings.jwt_issuer,
        )

    async def create(self, payload: CreateAccountInput, created_by: int) -> Account:
        """Persist a pending account and email it an activation link."""
        if await self._account_exists(payload):
            error = AccountExistsError()
            self._logger.error(error.message)
            raise error

        now = _now()
        record: dict[str, Any] = {
            "username": payload.username,
            "email": payload.email,
            "password_hash": hash_password(payload.password),
            "first_name": payload.first_name,
            "active": False,
            "created_at": now,
            "updated_at": now,
            "created_by": created_by,
            "updated_by": created_by,
        }
        account = await self._repository.create(record)
        if account is None:
            message = "Account not created"
            self._logger.error(message)
            raise OperationFailedError(message)
        self._logger.info("created account %s (%s) by %s", account.id, account.username, created_by)

        await self._send_activation_email(account)
        return account

    async def bootstrap_admin(self) -> Account | None:
        """Seed an active administrator from settings when none with that username exists.

        The seeded account skips activation so a fresh deployment has an actor
        able to create further accounts.
        """
        s = self._settings
        if not (s.bootstrap_admin_username and s.bootstrap_admin_email and s.bootstrap_admin_password):
            return None
        existing = await self.find_by_field("username", s.bootstrap_admin_username)
        if existing is not None:
            self._logger.debug("bootstrap admin %s already present", s.bootstrap_admin_username)
            return existing

        now = _now()
        account = await self._repository.create(
            {
                "username": s.bootstrap_admin_username,
                "email": s.bootstrap_admin_email,
                "password_hash": hash_password(s.bootstrap_admin_password),
                "first_name": None,
                "active": True,
                "created_at": now,
                "updated_at": now,
                "created_by": None,
                "updated_by": None,
            }
        )
        if account is None:
            message = "Bootstrap admin not created"
            self._logger.error(message)
            raise OperationFailedError(message)
        self._logger.info("seeded bootstrap admin account %s (%s)", account.id, account.username)
        return account

    async def update(self, payload: UpdateAccountInput, updated_by: int) -> None:
        """Apply a partial update; a new password is hashed before it is stored."""
        values: dict[str, Any] = {
            key: value
            for key, value in asdict(payload).items()
            if key not in {"account_id", "password"} and value is not None
        }
        if payload.password:
            values["password_hash"] = hash_password(payload.password)
        values["updated_at"] = _now()
        values["updated_by"] = updated_by

        affected, _ = await self._repository.update(values, FieldPredicate("id", payload.account_id))
        if affected == 0:
            message = "Failed to update account"
            self._logger.error("%s (id=%s)", message, payload.account_id)
            raise OperationFailedError(message)

    async def _account_exists(self, payload: CreateAccountInput) -> bool:
        if await self.find_by_field("username", payload.username) is not None:
            return True
        if await self.find_by_field("email", payload.email) is not None:
            return True
        return False

    async def _send_activation_email(self, account: Account) -> None:
        token = self.generate_activation_token(account)
        link = f"{self._settings.client_base_url}/account/activate?token={quote(token, safe='')}"
        await self._email_sender.send_account_activation_email(
            account.email,
            self._settings.email_from,
            ActivationEmailParameters(name=account.first_name, activation_link=link),
        )


def _now() -> datetime:
    return datetime.now(timezone.utc)
