"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any integration-specific types.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Posting:
    """One (keyword, message) entry in a chat's keyword posting list."""

    chat_id: int
    keyword: str
    message_id: int
    timestamp_ms: int


@dataclass(frozen=True)
class MessageContext:
    """Minimal inbound message context used by the indexer."""

    chat_id: int
    message_id: int
    timestamp_ms: int
    text: str
    is_private: bool = False


@dataclass(frozen=True)
class RequestContext:
    """Who asked for a search result and where the reply should go.

    ``control_message_id`` is set when the request comes from a pagination
    button; the reply then edits that message instead of sending a new one.
    """

    chat_id: int
    reply_to_message_id: Optional[int] = None
    control_message_id: Optional[int] = None

    @property
    def is_pagination(self) -> bool:
        return self.control_message_id is not None


@dataclass(frozen=True)
class CommandRequest:
    """A search command as typed by a user."""

    chat_id: int
    message_id: int
    text: str
    is_private: bool


@dataclass(frozen=True)
class InlineControl:
    """An inline button: either callback data or an external URL."""

    text: str
    data: Optional[str] = None
    url: Optional[str] = None
