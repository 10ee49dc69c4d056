"""Telethon messenger adapter.

Implements the core MessengerPort on top of a Telethon client logged in as
the bot.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from telethon import Button
from telethon.errors import MessageIdInvalidError

from core.models import InlineControl
from core.ports import ForwardTargetMissing

LOGGER = logging.getLogger(__name__)

PARSE_MODE = "html"


def to_buttons(controls: Optional[Sequence[InlineControl]]) -> Optional[List[list]]:
    """Map core controls to a single row of Telethon inline buttons."""

    if not controls:
        return None
    row = []
    for control in controls:
        if control.url:
            row.append(Button.url(control.text, control.url))
        else:
            row.append(Button.inline(control.text, data=(control.data or "").encode("utf-8")))
    return [row]


class TelethonMessenger:
    """Messenger adapter that talks to Telegram through a Telethon client."""

    def __init__(self, client) -> None:
        self._client = client

    async def send_text(
        self,
        chat_id: int,
        text: str,
        *,
        controls: Optional[Sequence[InlineControl]] = None,
        reply_to: Optional[int] = None,
    ) -> int:
        message = await self._client.send_message(
            chat_id,
            text,
            parse_mode=PARSE_MODE,
            buttons=to_buttons(controls),
            reply_to=reply_to,
            link_preview=False,
        )
        return message.id

    async def edit_text(
        self,
        chat_id: int,
        message_id: int,
        text: str,
        *,
        controls: Optional[Sequence[InlineControl]] = None,
    ) -> None:
        # An empty button list removes the old keyboard instead of keeping it.
        await self._client.edit_message(
            chat_id,
            message_id,
            text,
            parse_mode=PARSE_MODE,
            buttons=to_buttons(controls) or [],
            link_preview=False,
        )

    async def forward_message(self, to_chat_id: int, from_chat_id: int, message_id: int) -> int:
        try:
            forwarded = await self._client.forward_messages(to_chat_id, message_id, from_chat_id)
        except MessageIdInvalidError as e:
            raise ForwardTargetMissing(from_chat_id, message_id) from e
        # Telegram answers without a new message when the source was deleted.
        if forwarded is None:
            raise ForwardTargetMissing(from_chat_id, message_id)
        return forwarded.id

    async def delete_message(self, chat_id: int, message_id: int) -> None:
        await self._client.delete_messages(chat_id, [message_id])
