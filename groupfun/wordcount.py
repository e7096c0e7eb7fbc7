"""Hot-word counting over chat history."""

from __future__ import annotations

import re
from collections import Counter
from typing import Collection, Iterable, Mapping

HANZI = re.compile("[\u4e00-\u9fa5]+")
TOP_WORDS = 20
DEFAULT_MESSAGES = 1000
MAX_MESSAGES = 10000


def load_stopwords(text: str) -> frozenset[str]:
    """Parse a newline-separated stopword list."""
    return frozenset(text.replace("\r", "").split("\n"))


def is_countable(word: str, stopwords: Collection[str]) -> bool:
    """A word counts when it is all Chinese characters and not a stopword."""
    return HANZI.fullmatch(word) is not None and word not in stopwords


def count_words(slices: Iterable[str], stopwords: Collection[str]) -> Counter[str]:
    """Count the countable words among already segmented slices."""
    counts: Counter[str] = Counter()
    for piece in slices:
        word = piece.strip()
        if is_countable(word, stopwords):
            counts[word] += 1
    return counts


def rank_by_word_count(
    frequencies: Mapping[str, int], limit: int = TOP_WORDS
) -> list[tuple[str, int]]:
    """Return the most frequent words, most frequent first."""
    ranked = sorted(frequencies.items(), key=lambda pair: pair[1], reverse=True)
    return ranked[:limit]


def clamp_message_count(count: int) -> int:
    """Apply the default and the upper bound to a requested message count."""
    if count > MAX_MESSAGES:
        return MAX_MESSAGES
    if count == 0:
        return DEFAULT_MESSAGES
    return count