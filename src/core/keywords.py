"""Keyword extraction helpers (core domain)."""

from __future__ import annotations

from typing import Iterable, List

from core.ports import TokenizerPort

# High-frequency function words that would otherwise dominate the hit ratio.
STOPWORDS = frozenset("的一不是了我人在有这来它中大上个国说也子")


def normalize_token(token: str) -> str:
    """Normalize a raw tokenizer token; returns "" for tokens to drop."""

    token = token.strip().lower()
    if not any(ch.isalnum() for ch in token):
        return ""
    return token


def _dedupe(tokens: Iterable[str]) -> List[str]:
    seen: set[str] = set()
    result: List[str] = []
    for token in tokens:
        normalized = normalize_token(token)
        if not normalized or normalized in seen:
            continue
        seen.add(normalized)
        result.append(normalized)
    return result


def extract_keywords(tokenizer: TokenizerPort, text: str) -> List[str]:
    """Return the distinct keywords of a message, in first-seen order."""

    return _dedupe(tokenizer.cut(text))


def extract_query_keywords(
    tokenizer: TokenizerPort,
    query: str,
    extra_stopwords: Iterable[str] = (),
) -> List[str]:
    """Return the distinct query keywords with stopwords removed."""

    stopwords = STOPWORDS | {normalize_token(word) for word in extra_stopwords}
    return [keyword for keyword in extract_keywords(tokenizer, query) if keyword not in stopwords]
