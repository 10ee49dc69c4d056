"""Jieba tokenizer adapter.

Implements the core TokenizerPort with two independent segmentations: the
dictionary-based cut, and the HMM-only cut that also catches words missing
from the dictionary. Their union is returned.
"""

from __future__ import annotations

import logging
from typing import List, Optional

import jieba
from jieba import finalseg

LOGGER = logging.getLogger(__name__)


class JiebaTokenizer:
    """Thin jieba wrapper that satisfies the TokenizerPort contract."""

    def __init__(self, user_dict_path: Optional[str] = None) -> None:
        if user_dict_path:
            jieba.load_userdict(user_dict_path)
            LOGGER.info("Loaded jieba user dictionary from %s", user_dict_path)

    def cut(self, text: str) -> List[str]:
        words = jieba.lcut(text, HMM=True)
        markov_words = list(finalseg.cut(text))
        return words + markov_words
