"""Streaming multi-keyword merge-match search (core domain).

Each query keyword owns a most-recent-first cursor over its posting list.
The engine looks at the current head of every cursor, checks whether enough
heads point at the same message, and then advances only the cursor holding
the most recent head. Heads are therefore visited in non-increasing
(timestamp, message id) order across all lists, so the first message that reaches the hit
threshold is the most recent qualifying one. Nothing is sorted or
materialized beyond one head per keyword.
"""

from __future__ import annotations

import asyncio
import logging
import math
from typing import AbstractSet, List, Optional, Sequence, Tuple

from core.config import SearchConfig
from core.keywords import extract_query_keywords
from core.models import Posting
from core.ports import PostingStorePort, TokenizerPort

LOGGER = logging.getLogger(__name__)


def required_hits(keyword_count: int, hit_ratio: float) -> int:
    """Number of keywords a message must share with a query of this size."""

    return math.ceil(keyword_count * hit_ratio)


def most_hit(
    heads: Sequence[Optional[Posting]],
    exclude: AbstractSet[int] = frozenset(),
) -> Tuple[Optional[Posting], int]:
    """Return the head posting whose message id occurs most often, and its count.

    Ties keep the message encountered first during the scan. Message ids in
    ``exclude`` are not counted.
    """

    counts: dict[int, int] = {}
    best: Optional[Posting] = None
    for head in heads:
        if head is None or head.message_id in exclude:
            continue
        counts[head.message_id] = counts.get(head.message_id, 0) + 1
        if best is None or counts[head.message_id] > counts[best.message_id]:
            best = head
    if best is None:
        return None, 0
    return best, counts[best.message_id]


def latest_index(heads: Sequence[Optional[Posting]]) -> Optional[int]:
    """Index of the head that comes first in posting list order.

    Posting lists run by descending (timestamp_ms, message_id), so messages
    sent within the same second still advance in a fixed order. Equal heads
    keep the earliest index.
    """

    latest: Optional[int] = None
    for index, head in enumerate(heads):
        if head is None:
            continue
        if latest is None or _order_key(head) > _order_key(heads[latest]):
            latest = index
    return latest


def _order_key(posting: Posting) -> Tuple[int, int]:
    return posting.timestamp_ms, posting.message_id


class KeywordSearchEngine:
    """Finds the Nth most recent message sharing enough keywords with a query."""

    def __init__(self, store: PostingStorePort, tokenizer: TokenizerPort, config: SearchConfig) -> None:
        self._store = store
        self._tokenizer = tokenizer
        self._config = config

    def query_keywords(self, keywords_str: str) -> List[str]:
        return extract_query_keywords(self._tokenizer, keywords_str, self._config.extra_stopwords)

    async def search(self, chat_id: int, keywords_str: str, skip: int = 0) -> Optional[Posting]:
        """Return the (skip + 1)-th most recent matching posting, or None."""

        if skip < 0:
            raise ValueError(f"skip must be non-negative, got {skip}")
        keywords = self.query_keywords(keywords_str)
        if not keywords:
            return None

        threshold = required_hits(len(keywords), self._config.hit_ratio)
        cursors = [self._store.open_cursor(chat_id, keyword) for keyword in keywords]
        heads: List[Optional[Posting]] = list(await asyncio.gather(*(cursor.next() for cursor in cursors)))

        # Messages already handed out to a skip. With K >= 4 a match survives
        # one stream advancing, so it would otherwise be counted twice.
        consumed: set[int] = set()
        remaining = skip
        rounds = 0
        while any(head is not None for head in heads):
            rounds += 1
            candidate, hits = most_hit(heads, consumed)
            if candidate is not None and hits >= threshold:
                if remaining == 0:
                    LOGGER.debug(
                        "Search in chat %s matched message %s after %s rounds",
                        chat_id,
                        candidate.message_id,
                        rounds,
                    )
                    return candidate
                remaining -= 1
                consumed.add(candidate.message_id)

            index = latest_index(heads)
            heads[index] = await cursors[index].next()

        LOGGER.debug("Search in chat %s exhausted after %s rounds", chat_id, rounds)
        return None
