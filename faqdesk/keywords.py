# SPDX-License-Identifier: CC0-1.0

from __future__ import annotations

import re
from typing import Iterable, List

MIN_TOKEN_LENGTH = 2

STOP_WORDS = frozenset({
    # articles, conjunctions, prepositions
    "a", "an", "the", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "by",
    # auxiliaries
    "is", "are", "was", "were", "be", "been", "am", "do", "does", "did", "have", "has", "had",
    "can", "could", "would", "should", "will", "may", "might",
    # question words
    "what", "when", "where", "why", "how", "who", "which",
    # pronouns and determiners
    "i", "you", "we", "they", "he", "she", "it", "me", "my", "your", "our", "their",
    "this", "that", "these", "those", "there",
    # greetings and politeness
    "please", "thank", "thanks", "hello", "hi", "hey",
})

_PUNCT_RE = re.compile(r"[^\w\s]", re.UNICODE)


def _filter(tokens: Iterable[str]) -> List[str]:
    seen = set()
    result = []
    for token in tokens:
        if len(token) < MIN_TOKEN_LENGTH or token in STOP_WORDS or token in seen:
            continue
        seen.add(token)
        result.append(token)
    return result


def extract_keywords(query: str) -> List[str]:
    """
    Keywords of a free-text query: lowercase, punctuation removed, stop words dropped.

    When nothing survives, the raw whitespace split is filtered again without
    stripping punctuation, so tokens like "e-mail" still get a chance.
    """
    if not query:
        return []
    lowered = query.lower()
    keywords = _filter(_PUNCT_RE.sub("", lowered).split())
    if keywords:
        return keywords
    return _filter(lowered.split())


def broad_words(query: str) -> List[str]:
    if not query:
        return []
    return _filter(query.lower().split())
