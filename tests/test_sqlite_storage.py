from __future__ import annotations

import asyncio
import sqlite3
from datetime import datetime, timedelta, timezone

from adapters.sqlite_storage import CURSOR_BATCH_SIZE, SQLitePostingStore, hash_keyword


def _store(tmp_path, hash_keywords: bool = True) -> SQLitePostingStore:
    store = SQLitePostingStore(str(tmp_path / "postings.db"), hash_keywords=hash_keywords)
    store.init_db()
    return store


async def _drain(cursor, extra_calls: int = 0):
    postings = []
    while True:
        posting = await cursor.next()
        if posting is None:
            break
        postings.append(posting)
    tail = [await cursor.next() for _ in range(extra_calls)]
    return postings, tail


def test_cursor_is_most_recent_first_regardless_of_append_order(tmp_path) -> None:
    store = _store(tmp_path)

    async def scenario():
        await store.append(1, "猫", 30, 3_000)
        await store.append(1, "猫", 10, 1_000)
        await store.append(1, "猫", 20, 2_000)
        await store.append(1, "狗", 40, 4_000)
        await store.append(2, "猫", 50, 5_000)
        return await _drain(store.open_cursor(1, "猫"), extra_calls=2)

    postings, tail = asyncio.run(scenario())

    assert [p.message_id for p in postings] == [30, 20, 10]
    assert all(p.keyword == "猫" and p.chat_id == 1 for p in postings)
    assert tail == [None, None]


def test_cursor_pages_across_batches(tmp_path) -> None:
    store = _store(tmp_path)
    total = CURSOR_BATCH_SIZE * 2 + 5

    async def scenario():
        for message_id in range(total):
            # Pairs share a timestamp so the message id tie-break is exercised.
            await store.append(1, "kw", message_id, (message_id // 2) * 10)
        return await _drain(store.open_cursor(1, "kw"))

    postings, _ = asyncio.run(scenario())

    assert len(postings) == total
    assert [p.message_id for p in postings] == list(reversed(range(total)))


def test_same_timestamp_orders_by_message_id_not_append_order(tmp_path) -> None:
    store = _store(tmp_path)

    async def scenario():
        await store.append(1, "y", 2, 5_000)
        await store.append(1, "y", 1, 5_000)
        await store.append(1, "y", 3, 5_000)
        return await _drain(store.open_cursor(1, "y"))

    postings, _ = asyncio.run(scenario())

    assert [p.message_id for p in postings] == [3, 2, 1]


def test_cursor_on_unknown_keyword_is_exhausted(tmp_path) -> None:
    store = _store(tmp_path)

    postings, tail = asyncio.run(_drain(store.open_cursor(1, "missing"), extra_calls=1))

    assert postings == []
    assert tail == [None]


def test_delete_message_removes_every_keyword(tmp_path) -> None:
    store = _store(tmp_path)

    async def scenario():
        for keyword in ("a", "b", "c"):
            await store.append(1, keyword, 7, 1_000)
        await store.append(1, "a", 8, 2_000)
        removed = await store.delete_message(1, 7)
        remaining, _ = await _drain(store.open_cursor(1, "a"))
        return removed, remaining

    removed, remaining = asyncio.run(scenario())

    assert removed == 3
    assert [p.message_id for p in remaining] == [8]
    assert store.count_postings(1) == 1


def test_keywords_are_hashed_at_rest(tmp_path) -> None:
    store = _store(tmp_path)
    asyncio.run(store.append(1, "secret", 1, 1_000))

    with sqlite3.connect(str(tmp_path / "postings.db")) as conn:
        stored = [row[0] for row in conn.execute("SELECT keyword FROM postings")]

    assert stored == [hash_keyword("secret")]
    postings, _ = asyncio.run(_drain(store.open_cursor(1, "secret")))
    assert [p.keyword for p in postings] == ["secret"]


def test_plaintext_keywords_when_hashing_disabled(tmp_path) -> None:
    store = _store(tmp_path, hash_keywords=False)
    asyncio.run(store.append(1, "visible", 1, 1_000))

    with sqlite3.connect(str(tmp_path / "postings.db")) as conn:
        stored = [row[0] for row in conn.execute("SELECT keyword FROM postings")]

    assert stored == ["visible"]


def test_cleanup_postings_removes_old_entries(tmp_path) -> None:
    store = _store(tmp_path)
    now = datetime.now(timezone.utc)
    old_ms = int((now - timedelta(days=40)).timestamp() * 1000)
    recent_ms = int((now - timedelta(days=1)).timestamp() * 1000)

    async def scenario():
        await store.append(1, "kw", 1, old_ms)
        await store.append(1, "kw", 2, recent_ms)

    asyncio.run(scenario())

    assert store.cleanup_postings(30) == 1
    assert store.count_postings() == 1
