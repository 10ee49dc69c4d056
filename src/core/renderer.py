"""Search result rendering and pagination controls (core domain)."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from core import formatting
from core.chat_ids import build_message_link
from core.indexer import MessageIndexer
from core.models import InlineControl, Posting, RequestContext
from core.pagination import encode_search_token
from core.ports import ForwardTargetMissing, MessengerPort

LOGGER = logging.getLogger(__name__)


class PreviewRegistry:
    """Remembers the last forwarded preview message per requesting chat.

    Held in process memory only; losing it on restart just leaves one stale
    preview in the chat.
    """

    def __init__(self) -> None:
        self._previews: Dict[int, int] = {}

    def get(self, chat_id: int) -> Optional[int]:
        return self._previews.get(chat_id)

    def set(self, chat_id: int, message_id: int) -> None:
        self._previews[chat_id] = message_id

    def pop(self, chat_id: int) -> Optional[int]:
        return self._previews.pop(chat_id, None)


def build_controls(chat_id: int, keywords: str, skip: int, posting: Optional[Posting]) -> List[InlineControl]:
    """Return the inline controls for a result (or for a miss when posting is None)."""

    controls: List[InlineControl] = []
    if posting is not None:
        controls.append(
            InlineControl(formatting.EARLIER_LABEL, data=encode_search_token(chat_id, keywords, skip + 1))
        )
    if skip > 0:
        controls.append(
            InlineControl(formatting.LATER_LABEL, data=encode_search_token(chat_id, keywords, skip - 1))
        )
    if posting is not None:
        controls.append(
            InlineControl(formatting.LINK_LABEL, url=build_message_link(chat_id, posting.message_id))
        )
    return controls


class SearchResultRenderer:
    """Turns a search outcome into replies, controls and a forwarded preview."""

    def __init__(
        self,
        messenger: MessengerPort,
        indexer: MessageIndexer,
        previews: PreviewRegistry,
        privacy_notice: str,
    ) -> None:
        self._messenger = messenger
        self._indexer = indexer
        self._previews = previews
        self._privacy_notice = privacy_notice

    async def render(
        self,
        request: RequestContext,
        chat_id: int,
        posting: Optional[Posting],
        keywords: str,
        skip: int,
    ) -> None:
        if request.is_pagination:
            await self._delete_previous_preview(request.chat_id)
        else:
            self._previews.pop(request.chat_id)

        controls = build_controls(chat_id, keywords, skip, posting)
        if posting is None:
            await self._reply(request, formatting.format_no_results(keywords, skip), controls)
            return

        notice = None if request.is_pagination else self._privacy_notice
        await self._reply(request, formatting.format_result(keywords, posting, skip, notice), controls)
        await self._forward_preview(request, posting)

    async def _reply(self, request: RequestContext, text: str, controls: List[InlineControl]) -> None:
        if request.is_pagination:
            await self._messenger.edit_text(
                request.chat_id, request.control_message_id, text, controls=controls
            )
            return
        await self._messenger.send_text(
            request.chat_id, text, controls=controls, reply_to=request.reply_to_message_id
        )

    async def _delete_previous_preview(self, chat_id: int) -> None:
        preview_id = self._previews.pop(chat_id)
        if preview_id is None:
            return
        try:
            await self._messenger.delete_message(chat_id, preview_id)
        except Exception:
            LOGGER.debug("Could not delete preview %s in chat %s", preview_id, chat_id, exc_info=True)

    async def _forward_preview(self, request: RequestContext, posting: Posting) -> None:
        try:
            preview_id = await self._messenger.forward_message(
                request.chat_id, posting.chat_id, posting.message_id
            )
        except ForwardTargetMissing:
            LOGGER.info(
                "Message %s in chat %s is gone upstream, purging its postings",
                posting.message_id,
                posting.chat_id,
            )
            await self._indexer.purge_message(posting.chat_id, posting.message_id)
            notice_id = await self._messenger.send_text(request.chat_id, formatting.MISSING_NOTICE)
            self._previews.set(request.chat_id, notice_id)
            return
        except Exception:
            LOGGER.exception(
                "Failed to forward message %s from chat %s", posting.message_id, posting.chat_id
            )
            notice_id = await self._messenger.send_text(request.chat_id, formatting.FORWARD_FAILED_NOTICE)
            self._previews.set(request.chat_id, notice_id)
            return
        self._previews.set(request.chat_id, preview_id)
