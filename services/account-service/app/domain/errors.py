"""Error kinds raised by account workflows.

The HTTP layer translates these into responses using ``code`` and
``http_status``; nothing here is retried.
"""

from __future__ import annotations


class AccountError(Exception):
    """Base class for account-related exceptions."""

    code = "ACCOUNT_ERROR"
    http_status = 400
    default_message = "Account operation failed."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidCredentialsError(AccountError):
    code = "INVALID_CREDENTIALS"
    default_message = "Invalid credentials."


class AccountNotFoundError(AccountError):
    code = "NOT_FOUND"
    http_status = 404
    default_message = "Account not found."


class AccountExistsError(AccountError):
    code = "ALREADY_EXISTS"
    http_status = 409
    default_message = "An account with the same username or email already exists."


class OperationFailedError(AccountError):
    code = "OPERATION_FAILED"
    http_status = 500
