"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class SearchConfig:
    """Query-time settings for the merge-match engine."""

    hit_ratio: float = 0.75
    extra_stopwords: frozenset[str] = field(default_factory=frozenset)
    command: str = "search"


@dataclass(frozen=True)
class IndexingConfig:
    """Settings consumed by the message indexer."""

    command_prefix: str = "/"
    index_private_chats: bool = False

