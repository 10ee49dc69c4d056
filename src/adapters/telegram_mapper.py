"""Telegram-to-core mapping adapter.

This keeps Telethon-specific details out of the core.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from telethon.tl.custom import Message

from core.models import CommandRequest, MessageContext, RequestContext


def to_timestamp_ms(moment: Optional[datetime]) -> int:
    """Convert a Telethon message date to epoch milliseconds."""

    if moment is None:
        return 0
    return int(moment.timestamp() * 1000)


def _message_text(message: Message) -> str:
    # Telethon exposes captions of media messages through raw_text as well.
    return message.raw_text or ""


def build_context(message: Message) -> MessageContext:
    """Build a core MessageContext from a Telethon Message.

    Edited messages keep their original send date, so an edit re-indexes the
    message at its original position in every posting list.
    """

    return MessageContext(
        chat_id=message.chat_id,
        message_id=message.id,
        timestamp_ms=to_timestamp_ms(message.date),
        text=_message_text(message),
        is_private=bool(getattr(message, "is_private", False)),
    )


def build_command_request(event) -> CommandRequest:
    """Build a CommandRequest from a Telethon NewMessage event."""

    return CommandRequest(
        chat_id=event.chat_id,
        message_id=event.message.id,
        text=_message_text(event.message),
        is_private=bool(event.is_private),
    )


def build_callback_request(event) -> RequestContext:
    """Build a pagination RequestContext from a Telethon CallbackQuery event."""

    return RequestContext(chat_id=event.chat_id, control_message_id=event.message_id)


def callback_data(event) -> str:
    """Return the callback payload of a CallbackQuery event as text."""

    data = event.data or b""
    return data.decode("utf-8", errors="replace")
