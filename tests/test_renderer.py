from __future__ import annotations

import asyncio

import pytest

from core import formatting
from core.config import IndexingConfig, SearchConfig
from core.indexer import MessageIndexer
from core.models import Posting, RequestContext
from core.pagination import decode_search_token
from core.renderer import PreviewRegistry, SearchResultRenderer, build_controls
from core.search_engine import KeywordSearchEngine
from fakes import FakeMessenger, InMemoryPostingStore, WhitespaceTokenizer

SOURCE_CHAT = -1001234
USER_CHAT = 555
NOTICE = "privacy"


def _setup():
    store = InMemoryPostingStore()
    messenger = FakeMessenger()
    previews = PreviewRegistry()
    indexer = MessageIndexer(store, WhitespaceTokenizer(), IndexingConfig())
    renderer = SearchResultRenderer(messenger, indexer, previews, NOTICE)
    return store, messenger, previews, renderer


def _posting(message_id: int = 77) -> Posting:
    return Posting(SOURCE_CHAT, "猫", message_id, 1_700_000_000_000)


def test_build_controls_for_first_result() -> None:
    controls = build_controls(SOURCE_CHAT, "猫 狗", 0, _posting())

    assert [c.text for c in controls] == [formatting.EARLIER_LABEL, formatting.LINK_LABEL]
    assert decode_search_token(controls[0].data).skip == 1
    assert controls[1].url == "https://t.me/c/1234/77"


def test_build_controls_for_later_result() -> None:
    controls = build_controls(SOURCE_CHAT, "猫 狗", 3, _posting())

    labels = [c.text for c in controls]
    assert labels == [formatting.EARLIER_LABEL, formatting.LATER_LABEL, formatting.LINK_LABEL]
    assert decode_search_token(controls[0].data).skip == 4
    assert decode_search_token(controls[1].data).skip == 2


def test_build_controls_for_misses() -> None:
    assert build_controls(SOURCE_CHAT, "猫", 0, None) == []
    controls = build_controls(SOURCE_CHAT, "猫", 2, None)
    assert [c.text for c in controls] == [formatting.LATER_LABEL]
    assert decode_search_token(controls[0].data).skip == 1


def test_fresh_match_replies_and_forwards_preview() -> None:
    _, messenger, previews, renderer = _setup()
    request = RequestContext(chat_id=USER_CHAT, reply_to_message_id=10)

    asyncio.run(renderer.render(request, SOURCE_CHAT, _posting(), "猫", 0))

    chat_id, text, controls, reply_to, _ = messenger.sent[0]
    assert chat_id == USER_CHAT
    assert reply_to == 10
    assert "Result #1" in text
    assert NOTICE in text
    assert len(controls) == 2
    assert messenger.forwarded == [(USER_CHAT, SOURCE_CHAT, 77, messenger.forwarded[0][3])]
    assert previews.get(USER_CHAT) == messenger.forwarded[0][3]
    assert messenger.edited == []


def test_pagination_edits_in_place_and_replaces_preview() -> None:
    _, messenger, previews, renderer = _setup()
    previews.set(USER_CHAT, 900)
    request = RequestContext(chat_id=USER_CHAT, control_message_id=50)

    asyncio.run(renderer.render(request, SOURCE_CHAT, _posting(), "猫", 1))

    assert messenger.deleted == [(USER_CHAT, 900)]
    chat_id, message_id, text, controls = messenger.edited[0]
    assert (chat_id, message_id) == (USER_CHAT, 50)
    assert "Result #2" in text
    assert NOTICE not in text
    assert len(controls) == 3
    assert messenger.sent == []
    assert previews.get(USER_CHAT) == messenger.forwarded[0][3]


def test_preview_delete_failures_are_ignored() -> None:
    _, messenger, previews, renderer = _setup()
    messenger.delete_error = RuntimeError("already gone")
    previews.set(USER_CHAT, 900)
    request = RequestContext(chat_id=USER_CHAT, control_message_id=50)

    asyncio.run(renderer.render(request, SOURCE_CHAT, _posting(), "猫", 1))

    assert messenger.edited
    assert previews.get(USER_CHAT) == messenger.forwarded[0][3]


def test_fresh_query_does_not_delete_previous_preview() -> None:
    _, messenger, previews, renderer = _setup()
    previews.set(USER_CHAT, 900)
    request = RequestContext(chat_id=USER_CHAT, reply_to_message_id=10)

    asyncio.run(renderer.render(request, SOURCE_CHAT, None, "猫", 0))

    assert messenger.deleted == []
    assert previews.get(USER_CHAT) is None


def test_no_results_messages() -> None:
    _, messenger, _, renderer = _setup()

    asyncio.run(renderer.render(RequestContext(chat_id=USER_CHAT), SOURCE_CHAT, None, "猫", 0))
    _, text, controls, _, _ = messenger.sent[0]
    assert text.startswith("No messages found")
    assert controls == []

    pagination = RequestContext(chat_id=USER_CHAT, control_message_id=50)
    asyncio.run(renderer.render(pagination, SOURCE_CHAT, None, "猫", 2))
    _, _, text, controls = messenger.edited[0]
    assert text.startswith("No further messages found")
    assert [c.text for c in controls] == [formatting.LATER_LABEL]
    assert messenger.forwarded == []


def test_missing_message_is_purged_from_index() -> None:
    store, messenger, previews, renderer = _setup()
    store.add_message(SOURCE_CHAT, 77, ["猫", "狗"], 2_000)
    store.add_message(SOURCE_CHAT, 76, ["猫", "狗"], 1_000)
    engine = KeywordSearchEngine(store, WhitespaceTokenizer(), SearchConfig())
    messenger.missing.add((SOURCE_CHAT, 77))
    request = RequestContext(chat_id=USER_CHAT, reply_to_message_id=10)

    posting = asyncio.run(engine.search(SOURCE_CHAT, "猫 狗", 0))
    assert posting.message_id == 77
    asyncio.run(renderer.render(request, SOURCE_CHAT, posting, "猫 狗", 0))

    notice = messenger.sent[-1]
    assert notice[1] == formatting.MISSING_NOTICE
    assert previews.get(USER_CHAT) == notice[4]
    assert store.postings_for(SOURCE_CHAT, 77) == []
    assert asyncio.run(engine.search(SOURCE_CHAT, "猫 狗", 0)).message_id == 76


def test_other_forward_failures_leave_index_untouched() -> None:
    store, messenger, previews, renderer = _setup()
    store.add_message(SOURCE_CHAT, 77, ["猫"], 2_000)
    messenger.forward_error = RuntimeError("flood wait")

    asyncio.run(renderer.render(RequestContext(chat_id=USER_CHAT), SOURCE_CHAT, _posting(), "猫", 0))

    notice = messenger.sent[-1]
    assert notice[1] == formatting.FORWARD_FAILED_NOTICE
    assert previews.get(USER_CHAT) == notice[4]
    assert len(store.postings_for(SOURCE_CHAT, 77)) == 1


def test_missing_message_is_purged_even_if_notice_fails() -> None:
    store, messenger, previews, renderer = _setup()
    store.add_message(SOURCE_CHAT, 77, ["猫"], 2_000)
    messenger.missing.add((SOURCE_CHAT, 77))
    messenger.send_error = RuntimeError("chat write forbidden")
    # Pagination edits the control message, so only the notice goes through send_text.
    request = RequestContext(chat_id=USER_CHAT, control_message_id=50)

    with pytest.raises(RuntimeError):
        asyncio.run(renderer.render(request, SOURCE_CHAT, _posting(), "猫", 1))

    assert messenger.edited
    assert store.postings_for(SOURCE_CHAT, 77) == []
    assert previews.get(USER_CHAT) is None
