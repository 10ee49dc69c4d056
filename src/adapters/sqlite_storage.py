"""SQLite posting store adapter.

Implements the core PostingStorePort using a simple SQLite database. Blocking
sqlite3 calls run in a worker thread so the bot's event loop keeps serving
updates while a query pages through posting lists.
"""

from __future__ import annotations

import asyncio
import hashlib
import sqlite3
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple

from core.models import Posting

# Rows fetched per round trip while a cursor walks a posting list.
CURSOR_BATCH_SIZE = 64


def hash_keyword(keyword: str) -> str:
    """Return the stored form of a keyword when hashing is enabled."""

    return hashlib.sha256(keyword.encode("utf-8")).hexdigest()


class SQLitePostingCursor:
    """Most-recent-first cursor over one (chat, keyword) posting list.

    Pages with keyset pagination on (timestamp_ms, message_id, id), so postings appended
    while the cursor is open never shift rows already visited.
    """

    def __init__(self, store: "SQLitePostingStore", chat_id: int, keyword: str) -> None:
        self._store = store
        self._chat_id = chat_id
        self._keyword = keyword
        self._buffer: List[Tuple[int, int, int]] = []
        self._position: Optional[Tuple[int, int, int]] = None
        self._exhausted = False

    async def next(self) -> Optional[Posting]:
        if not self._buffer and not self._exhausted:
            self._buffer = await asyncio.to_thread(
                self._store.fetch_batch, self._chat_id, self._keyword, self._position, CURSOR_BATCH_SIZE
            )
            self._buffer.reverse()
            if len(self._buffer) < CURSOR_BATCH_SIZE:
                self._exhausted = True
        if not self._buffer:
            return None
        row_id, message_id, timestamp_ms = self._buffer.pop()
        self._position = (timestamp_ms, message_id, row_id)
        return Posting(
            chat_id=self._chat_id,
            keyword=self._keyword,
            message_id=message_id,
            timestamp_ms=timestamp_ms,
        )


class SQLitePostingStore:
    """Thin SQLite wrapper that satisfies the PostingStorePort contract."""

    def __init__(self, db_path: str, hash_keywords: bool = True) -> None:
        self._db_path = db_path
        self._hash_keywords = hash_keywords

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _stored_keyword(self, keyword: str) -> str:
        return hash_keyword(keyword) if self._hash_keywords else keyword

    def init_db(self) -> None:
        """Create tables if they do not exist.

        Tables:
        - postings: one row per (keyword, message) pair
        """

        with self._connect() as conn:
            # Fields:
            # - id: auto-increment primary key, last tie-break in list order
            # - chat_id: Telegram chat the message belongs to
            # - keyword: keyword, or its SHA-256 digest when hashing is enabled
            # - message_id: message id within the chat
            # - timestamp_ms: message date in epoch milliseconds
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS postings (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    chat_id INTEGER NOT NULL,
                    keyword TEXT NOT NULL,
                    message_id INTEGER NOT NULL,
                    timestamp_ms INTEGER NOT NULL
                )
                """
            )
            # Cursor reads walk this index backwards.
            conn.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_postings_list
                ON postings (chat_id, keyword, timestamp_ms, message_id, id)
                """
            )
            # Edits and purges remove every posting of one message.
            conn.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_postings_message
                ON postings (chat_id, message_id)
                """
            )

    def append_sync(self, chat_id: int, keyword: str, message_id: int, timestamp_ms: int) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO postings (chat_id, keyword, message_id, timestamp_ms)
                VALUES (?, ?, ?, ?)
                """,
                (chat_id, self._stored_keyword(keyword), message_id, timestamp_ms),
            )

    def delete_message_sync(self, chat_id: int, message_id: int) -> int:
        with self._connect() as conn:
            cur = conn.execute(
                "DELETE FROM postings WHERE chat_id = ? AND message_id = ?",
                (chat_id, message_id),
            )
            return cur.rowcount

    def fetch_batch(
        self,
        chat_id: int,
        keyword: str,
        position: Optional[Tuple[int, int, int]],
        limit: int,
    ) -> List[Tuple[int, int, int]]:
        """Return up to ``limit`` (id, message_id, timestamp_ms) rows older than ``position``."""

        stored = self._stored_keyword(keyword)
        with self._connect() as conn:
            if position is None:
                rows = conn.execute(
                    """
                    SELECT id, message_id, timestamp_ms FROM postings
                    WHERE chat_id = ? AND keyword = ?
                    ORDER BY timestamp_ms DESC, message_id DESC, id DESC
                    LIMIT ?
                    """,
                    (chat_id, stored, limit),
                ).fetchall()
            else:
                timestamp_ms, message_id, row_id = position
                rows = conn.execute(
                    """
                    SELECT id, message_id, timestamp_ms FROM postings
                    WHERE chat_id = ? AND keyword = ?
                      AND (timestamp_ms, message_id, id) < (?, ?, ?)
                    ORDER BY timestamp_ms DESC, message_id DESC, id DESC
                    LIMIT ?
                    """,
                    (chat_id, stored, timestamp_ms, message_id, row_id, limit),
                ).fetchall()
        return [(int(row["id"]), int(row["message_id"]), int(row["timestamp_ms"])) for row in rows]

    async def append(self, chat_id: int, keyword: str, message_id: int, timestamp_ms: int) -> None:
        """Persist one posting."""

        await asyncio.to_thread(self.append_sync, chat_id, keyword, message_id, timestamp_ms)

    async def delete_message(self, chat_id: int, message_id: int) -> int:
        """Delete every posting of a message and return the number removed."""

        return await asyncio.to_thread(self.delete_message_sync, chat_id, message_id)

    def open_cursor(self, chat_id: int, keyword: str) -> SQLitePostingCursor:
        """Open a most-recent-first cursor; no I/O happens until ``next``."""

        return SQLitePostingCursor(self, chat_id, keyword)

    def cleanup_postings(self, retention_days: int) -> int:
        """Delete postings older than the retention horizon and return the number removed."""

        cutoff = datetime.now(timezone.utc) - timedelta(days=retention_days)
        cutoff_ms = int(cutoff.timestamp() * 1000)
        with self._connect() as conn:
            cur = conn.execute(
                "DELETE FROM postings WHERE timestamp_ms < ?",
                (cutoff_ms,),
            )
            return cur.rowcount

    def count_postings(self, chat_id: Optional[int] = None) -> int:
        """Return the number of stored postings, optionally for one chat."""

        with self._connect() as conn:
            if chat_id is None:
                row = conn.execute("SELECT COUNT(*) AS count FROM postings").fetchone()
            else:
                row = conn.execute(
                    "SELECT COUNT(*) AS count FROM postings WHERE chat_id = ?",
                    (chat_id,),
                ).fetchone()
        return int(row["count"]) if row else 0
