"""Stores for linked account tokens, keyed by ``sub``."""

from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path
from typing import TYPE_CHECKING, Dict, Mapping, Protocol

from gitea_bridge.models.token import AccountToken

if TYPE_CHECKING:  # pragma: no cover - type hints only
    from gitea_bridge.services.token_cipher import TokenCipherService

logger = logging.getLogger(__name__)

_ENCRYPTED_FIELDS = ("access_token", "refresh_token", "application_secret")


class TokenStore(Protocol):
    def add_token(self, token: AccountToken) -> None:
        """Insert or replace the token stored for ``token.sub``."""

    def tokens_by_sub(self) -> Mapping[str, AccountToken]:
        """Return every stored token keyed by ``sub``."""


class InMemoryTokenStore:
    """Process-local token store."""

    def __init__(self) -> None:
        self._tokens: Dict[str, AccountToken] = {}

    def add_token(self, token: AccountToken) -> None:
        self._tokens[token.sub] = token

    def tokens_by_sub(self) -> Mapping[str, AccountToken]:
        return dict(self._tokens)


class SQLiteTokenStore:
    """SQLite-backed token store with secrets encrypted at rest."""

    def __init__(self, db_path: str, cipher: "TokenCipherService") -> None:
        self._db_path = Path(db_path)
        self._cipher = cipher
        if self._db_path.parent and not self._db_path.parent.exists():
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS account_tokens (
                    sub TEXT PRIMARY KEY,
                    data TEXT NOT NULL
                )
                """
            )

    def add_token(self, token: AccountToken) -> None:
        record = token.model_dump()
        for field in _ENCRYPTED_FIELDS:
            if record.get(field) is not None:
                record[field] = self._cipher.encrypt(record[field])

        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO account_tokens (sub, data)
                VALUES (?, ?)
                ON CONFLICT(sub) DO UPDATE SET data = excluded.data
                """,
                (token.sub, json.dumps(record)),
            )
        logger.debug("Stored token for %s", token.sub)

    def tokens_by_sub(self) -> Mapping[str, AccountToken]:
        with self._connect() as conn:
            rows = conn.execute("SELECT sub, data FROM account_tokens").fetchall()

        tokens: Dict[str, AccountToken] = {}
        for row in rows:
            record = json.loads(row["data"])
            for field in _ENCRYPTED_FIELDS:
                if record.get(field) is not None:
                    record[field] = self._cipher.decrypt(record[field])
            tokens[row["sub"]] = AccountToken(**record)
        return tokens


__all__ = ["InMemoryTokenStore", "SQLiteTokenStore", "TokenStore"]
