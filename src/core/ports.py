"""Ports (interfaces) used by the core.

Ports define the minimal contracts for storage, tokenization and messaging
adapters so that the core can be reused with different backends.
"""

from __future__ import annotations

from typing import Iterable, Optional, Protocol, Sequence

from core.models import InlineControl, Posting


class ForwardTargetMissing(Exception):
    """Raised by a messenger when the message to forward no longer exists."""

    def __init__(self, chat_id: int, message_id: int) -> None:
        super().__init__(f"Message {message_id} in chat {chat_id} no longer exists")
        self.chat_id = chat_id
        self.message_id = message_id


class PostingCursor(Protocol):
    """Resumable most-recent-first iteration over one keyword posting list.

    ``next`` returns None once the list is exhausted, and keeps returning
    None on further calls.
    """

    async def next(self) -> Optional[Posting]:
        ...


class PostingStorePort(Protocol):
    """Posting store operations required by the indexer and the engine."""

    async def append(self, chat_id: int, keyword: str, message_id: int, timestamp_ms: int) -> None:
        ...

    async def delete_message(self, chat_id: int, message_id: int) -> int:
        ...

    def open_cursor(self, chat_id: int, keyword: str) -> PostingCursor:
        ...


class TokenizerPort(Protocol):
    """Splits text into candidate keyword tokens."""

    def cut(self, text: str) -> Iterable[str]:
        ...


class MessengerPort(Protocol):
    """Outbound messaging operations required by the renderer."""

    async def send_text(
        self,
        chat_id: int,
        text: str,
        *,
        controls: Optional[Sequence[InlineControl]] = None,
        reply_to: Optional[int] = None,
    ) -> int:
        ...

    async def edit_text(
        self,
        chat_id: int,
        message_id: int,
        text: str,
        *,
        controls: Optional[Sequence[InlineControl]] = None,
    ) -> None:
        ...

    async def forward_message(self, to_chat_id: int, from_chat_id: int, message_id: int) -> int:
        ...

    async def delete_message(self, chat_id: int, message_id: int) -> None:
        ...
