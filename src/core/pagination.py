"""Pagination control tokens.

A token carries everything needed to replay a search, so no server-side
session survives between button presses:

    search:<chat_id>:<keywords>:<skip>

The chat id is split from the left and the skip count from the right, which
lets keyword strings contain the delimiter and still round-trip exactly.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

DISCRIMINATOR = "search"
DELIMITER = ":"
# Telegram rejects inline buttons whose callback data exceeds 64 bytes.
MAX_TOKEN_BYTES = 64
# Skip count assumed when checking whether a query leaves room to paginate.
_SKIP_HEADROOM = 9999

_CHAT_ID_RE = re.compile(r"^-?\d+$")
_SKIP_RE = re.compile(r"^\d+$")


class PaginationTokenError(ValueError):
    """Raised for malformed or tampered pagination tokens."""


@dataclass(frozen=True)
class SearchCursor:
    """Decoded pagination state."""

    chat_id: int
    keywords: str
    skip: int


def encode_search_token(chat_id: int, keywords: str, skip: int) -> str:
    if skip < 0:
        raise ValueError(f"skip must be non-negative, got {skip}")
    return DELIMITER.join((DISCRIMINATOR, str(chat_id), keywords, str(skip)))


def is_search_token(data: str) -> bool:
    return data.startswith(DISCRIMINATOR + DELIMITER)


def decode_search_token(data: str) -> SearchCursor:
    """Decode a token produced by ``encode_search_token``."""

    discriminator, sep, rest = data.partition(DELIMITER)
    if not sep or discriminator != DISCRIMINATOR:
        raise PaginationTokenError(f"Not a search token: {data!r}")
    raw_chat_id, sep, rest = rest.partition(DELIMITER)
    if not sep or not _CHAT_ID_RE.match(raw_chat_id):
        raise PaginationTokenError(f"Invalid chat id in token: {data!r}")
    keywords, sep, raw_skip = rest.rpartition(DELIMITER)
    if not sep or not keywords or not _SKIP_RE.match(raw_skip):
        raise PaginationTokenError(f"Invalid keywords or skip count in token: {data!r}")
    return SearchCursor(chat_id=int(raw_chat_id), keywords=keywords, skip=int(raw_skip))


def token_fits(chat_id: int, keywords: str) -> bool:
    """Return True if tokens for this query stay within Telegram's limit."""

    token = encode_search_token(chat_id, keywords, _SKIP_HEADROOM)
    return len(token.encode("utf-8")) <= MAX_TOKEN_BYTES
