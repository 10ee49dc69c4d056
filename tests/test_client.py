from __future__ import annotations

import pytest

import client


class DummyTelegramClient:
    def __init__(self, session, api_id, api_hash) -> None:
        self.session = session
        self.api_id = api_id
        self.api_hash = api_hash


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    monkeypatch.setattr(client, "load_dotenv", lambda: None)
    monkeypatch.setattr(client, "TelegramClient", DummyTelegramClient)
    for name in ("API_ID", "API_HASH", "SESSION_NAME", "BOT_TOKEN"):
        monkeypatch.delenv(name, raising=False)


def test_build_client_uses_api_credentials(monkeypatch) -> None:
    monkeypatch.setenv("API_ID", "12345")
    monkeypatch.setenv("API_HASH", "abc")

    built = client.build_client()

    assert (built.session, built.api_id, built.api_hash) == ("telesearch", 12345, "abc")


def test_build_client_requires_api_credentials_even_for_bots(monkeypatch) -> None:
    monkeypatch.setenv("BOT_TOKEN", "1:token")

    with pytest.raises(RuntimeError):
        client.build_client()


def test_bot_token_is_required() -> None:
    with pytest.raises(RuntimeError):
        client.bot_token()


def test_bot_token_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("BOT_TOKEN", "1:token")

    assert client.bot_token() == "1:token"
