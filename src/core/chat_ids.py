"""Helpers for working with Telegram chat ids."""

from __future__ import annotations

import re
from typing import Optional

_CHAT_ID_RE = re.compile(r"^-?\d+$")
# Supergroups and channels use "-100<channel_id>" as their bot-facing chat id.
CHANNEL_PREFIX = "-100"


def parse_chat_id(raw_value: str) -> Optional[int]:
    """Return the chat id in ``raw_value`` or None if it is not an integer."""

    raw_value = raw_value.strip()
    if not _CHAT_ID_RE.match(raw_value):
        return None
    return int(raw_value)


def internal_chat_id(chat_id: int) -> str:
    """Strip the channel prefix, yielding the id used by t.me/c/ links."""

    raw_text = str(chat_id)
    if raw_text.startswith(CHANNEL_PREFIX):
        return raw_text[len(CHANNEL_PREFIX) :]
    return raw_text.lstrip("-")


def build_message_link(chat_id: int, message_id: int) -> str:
    """Return the private t.me/c/ permalink of a message."""

    return f"https://t.me/c/{internal_chat_id(chat_id)}/{message_id}"
