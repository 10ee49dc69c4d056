"""Message indexing (core domain).

Indexing is best-effort: the bot's primary job is relaying messages, so a
tokenizer or store failure is logged and never propagated to the caller.
"""

from __future__ import annotations

import logging

from core.config import IndexingConfig
from core.keywords import extract_keywords
from core.models import MessageContext
from core.ports import PostingStorePort, TokenizerPort

LOGGER = logging.getLogger(__name__)


class MessageIndexer:
    """Writes and invalidates keyword postings for chat messages."""

    def __init__(
        self,
        store: PostingStorePort,
        tokenizer: TokenizerPort,
        config: IndexingConfig,
    ) -> None:
        self._store = store
        self._tokenizer = tokenizer
        self._config = config

    def should_index(self, context: MessageContext) -> bool:
        """Return False for chats the bot never indexes."""

        return self._config.index_private_chats or not context.is_private

    async def record_message(self, chat_id: int, message_id: int, text: str, timestamp_ms: int) -> int:
        """Index one message and return the number of postings written.

        Callers must ensure a message is recorded at most once per text
        version; recording twice duplicates its postings.
        """

        try:
            return await self._write_postings(chat_id, message_id, text, timestamp_ms)
        except Exception:
            LOGGER.exception("Failed to index message %s in chat %s", message_id, chat_id)
            return 0

    async def record_edited_message(
        self, chat_id: int, message_id: int, text: str, timestamp_ms: int
    ) -> int:
        """Replace the postings of an edited message with its latest text."""

        try:
            # Old postings go first and unconditionally, so an edit that turns
            # a message into a command or empties it still removes it.
            await self._store.delete_message(chat_id, message_id)
            return await self._write_postings(chat_id, message_id, text, timestamp_ms)
        except Exception:
            LOGGER.exception("Failed to re-index edited message %s in chat %s", message_id, chat_id)
            return 0

    async def purge_message(self, chat_id: int, message_id: int) -> int:
        """Remove every posting of a message, returning the number removed."""

        try:
            removed = await self._store.delete_message(chat_id, message_id)
        except Exception:
            LOGGER.exception("Failed to purge message %s in chat %s", message_id, chat_id)
            return 0
        LOGGER.info("Purged %s postings for message %s in chat %s", removed, message_id, chat_id)
        return removed

    async def handle(self, context: MessageContext, edited: bool = False) -> int:
        """Index an inbound or edited message context."""

        if not self.should_index(context):
            return 0
        if edited:
            return await self.record_edited_message(
                context.chat_id, context.message_id, context.text, context.timestamp_ms
            )
        return await self.record_message(
            context.chat_id, context.message_id, context.text, context.timestamp_ms
        )

    async def _write_postings(self, chat_id: int, message_id: int, text: str, timestamp_ms: int) -> int:
        if not text or text.startswith(self._config.command_prefix):
            return 0
        keywords = extract_keywords(self._tokenizer, text)
        if not keywords:
            return 0
        for keyword in keywords:
            await self._store.append(chat_id, keyword, message_id, timestamp_ms)
        LOGGER.debug("Indexed message %s in chat %s (%s keywords)", message_id, chat_id, len(keywords))
        return len(keywords)
