from __future__ import annotations

import json
import sqlite3

from gitea_bridge.clients.token_store import InMemoryTokenStore, SQLiteTokenStore
from gitea_bridge.models.token import AccountToken
from gitea_bridge.services.token_cipher import TokenCipherService


def _token(access_token: str, sub: str = "https://git.example.com/alice") -> AccountToken:
    return AccountToken(
        access_token=access_token,
        refresh_token="refresh",
        expires_on=1_700_000_000_000,
        server_url="https://git.example.com",
        application_id="app-id",
        application_secret="app-secret",
        sub=sub,
        name=sub.rsplit("/", 1)[-1],
    )


def test_in_memory_store_replaces_by_sub() -> None:
    store = InMemoryTokenStore()
    store.add_token(_token("first"))
    store.add_token(_token("second"))
    store.add_token(_token("other", sub="https://git.example.com/bob"))

    tokens = store.tokens_by_sub()
    assert len(tokens) == 2
    assert tokens["https://git.example.com/alice"].access_token == "second"


def test_sqlite_store_encrypts_secrets_at_rest(tmp_path) -> None:
    db_path = tmp_path / "tokens.db"
    store = SQLiteTokenStore(str(db_path), TokenCipherService(secret="test-secret"))

    store.add_token(_token("first"))
    store.add_token(_token("second"))

    with sqlite3.connect(db_path) as conn:
        rows = conn.execute("SELECT data FROM account_tokens").fetchall()
    assert len(rows) == 1
    raw = json.loads(rows[0][0])
    assert raw["access_token"] != "second"
    assert raw["application_secret"] != "app-secret"
    assert raw["sub"] == "https://git.example.com/alice"

    reopened = SQLiteTokenStore(str(db_path), TokenCipherService(secret="test-secret"))
    assert reopened.tokens_by_sub()["https://git.example.com/alice"] == _token("second")


def test_sqlite_store_keeps_legacy_tokens(tmp_path) -> None:
    store = SQLiteTokenStore(str(tmp_path / "nested" / "tokens.db"), TokenCipherService(secret="s"))
    legacy = _token("legacy").model_copy(update={"refresh_token": None, "expires_on": None})

    store.add_token(legacy)

    loaded = store.tokens_by_sub()[legacy.sub]
    assert loaded.refresh_token is None
    assert loaded.expires_on is None
