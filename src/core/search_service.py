"""Search command handling (core domain).

Validates commands and pagination presses before they reach the engine, then
hands the outcome to the renderer. Integration-agnostic: Telegram events are
mapped to ``CommandRequest``/``RequestContext`` by the adapters.
"""

from __future__ import annotations

import logging

from core import formatting
from core.chat_ids import parse_chat_id
from core.config import SearchConfig
from core.models import CommandRequest, RequestContext
from core.pagination import decode_search_token, token_fits
from core.ports import MessengerPort
from core.renderer import SearchResultRenderer
from core.search_engine import KeywordSearchEngine

LOGGER = logging.getLogger(__name__)


class SearchCommandService:
    """Entry point for search commands and pagination controls."""

    def __init__(
        self,
        engine: KeywordSearchEngine,
        renderer: SearchResultRenderer,
        messenger: MessengerPort,
        config: SearchConfig,
    ) -> None:
        self._engine = engine
        self._renderer = renderer
        self._messenger = messenger
        self._config = config

    async def handle_command(self, request: CommandRequest) -> None:
        """Handle ``/search [<chat_id> <keyword>...]``."""

        if not request.is_private:
            await self._reply(request, formatting.format_group_hint(self._config.command, request.chat_id))
            return

        # The first token is the command itself, possibly with an @botname suffix.
        args = request.text.split()[1:]
        chat_id = parse_chat_id(args[0]) if args else None
        keywords = " ".join(args[1:])
        if chat_id is None or not keywords:
            await self._reply(request, formatting.format_usage(self._config.command))
            return
        if chat_id == request.chat_id:
            await self._reply(request, formatting.SELF_CHAT_REJECTED)
            return
        if not self._engine.query_keywords(keywords):
            await self._reply(request, formatting.format_no_keywords(keywords))
            return
        if not token_fits(chat_id, keywords):
            await self._reply(request, formatting.format_query_too_long(keywords))
            return

        LOGGER.info("Search requested in chat %s for chat %s", request.chat_id, chat_id)
        posting = await self._engine.search(chat_id, keywords, 0)
        context = RequestContext(chat_id=request.chat_id, reply_to_message_id=request.message_id)
        await self._renderer.render(context, chat_id, posting, keywords, 0)

    async def handle_pagination(self, request: RequestContext, data: str) -> None:
        """Replay a search for the cursor carried by a pagination control.

        Raises PaginationTokenError for tokens this service did not produce.
        """

        cursor = decode_search_token(data)
        posting = await self._engine.search(cursor.chat_id, cursor.keywords, cursor.skip)
        await self._renderer.render(request, cursor.chat_id, posting, cursor.keywords, cursor.skip)

    async def _reply(self, request: CommandRequest, text: str) -> None:
        await self._messenger.send_text(request.chat_id, text, reply_to=request.message_id)
