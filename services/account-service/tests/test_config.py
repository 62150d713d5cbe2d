from __future__ import annotations

import pytest

from app.config import OAuthClient, Settings, _load_oauth_clients


def test_oauth_clients_default_when_unset(monkeypatch):
    monkeypatch.delenv("OAUTH_CLIENTS", raising=False)
    assert _load_oauth_clients() == (OAuthClient("web-app", ("api:access",), 3600),)


def test_oauth_clients_parsed_from_json(monkeypatch):
    monkeypatch.setenv(
        "OAUTH_CLIENTS",
        '[{"id": "spa", "grants": ["api:access", "account:read"], "accessTokenExpirySeconds": 900},'
        ' {"id": "cli", "grants": []}]',
    )
    clients = _load_oauth_clients()
    assert clients[0] == OAuthClient("spa", ("api:access", "account:read"), 900)
    assert clients[1].access_token_expiry_seconds == 3600


def test_default_client_requires_configuration():
    with pytest.raises(RuntimeError):
        Settings(oauth_clients=()).default_client
