"""Shared schema exports."""

from .account import Account

__all__ = [
    "Account",
]
