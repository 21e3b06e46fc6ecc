# SPDX-License-Identifier: CC0-1.0

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Protocol, Sequence

from .keywords import broad_words


@dataclass
class FAQItem:
    id: int
    question: str
    answer: str
    category: str = "General"
    views: int = 0
    helpful_count: int = 0
    company_id: Optional[int] = None

    def related(self) -> dict:
        """Public projection without the answer text."""
        return {
            "id": self.id,
            "question": self.question,
            "category": self.category,
            "views": self.views,
            "helpfulCount": self.helpful_count,
        }


class MatchTier(str, Enum):
    KEYWORD = "keyword"
    BROAD = "broad"
    GENERAL = "general"
    CROSS_TENANT = "cross_tenant"
    NONE = "none"


@dataclass
class MatchResult:
    tier: MatchTier
    items: List[FAQItem] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.items)

    def __len__(self) -> int:
        return len(self.items)

    @property
    def top(self) -> Optional[FAQItem]:
        return self.items[0] if self.items else None


class SupportsFAQLookup(Protocol):
    def search(self, company_id: int, terms: Sequence[str], limit: int) -> List[FAQItem]: ...

    def top(self, company_id: Optional[int], limit: int) -> List[FAQItem]: ...


def find_top_faq_matches(
        store: SupportsFAQLookup,
        company_id: int,
        keywords: Sequence[str],
        query: str,
        limit: int = 5,
        cross_tenant: bool = True,
) -> MatchResult:
    """
    Tiered lookup, first non-empty tier wins:
    keywords -> broad query words -> tenant's top FAQs -> top FAQs of all tenants.

    The last tier only fires when the tenant has no active FAQs at all.
    """
    if keywords:
        items = store.search(company_id, keywords, limit)
        if items:
            return MatchResult(MatchTier.KEYWORD, items)

    words = broad_words(query)
    if words:
        items = store.search(company_id, words, limit)
        if items:
            return MatchResult(MatchTier.BROAD, items)

    items = store.top(company_id, limit)
    if items:
        return MatchResult(MatchTier.GENERAL, items)

    if cross_tenant:
        items = store.top(None, limit)
        if items:
            return MatchResult(MatchTier.CROSS_TENANT, items)

    return MatchResult(MatchTier.NONE, [])


def score_confidence(matches: Sequence[FAQItem], keywords: Sequence[str]) -> float:
    """Average share of keywords found in each FAQ's question+answer, in [0, 1]."""
    if not matches or not keywords:
        return 0.0

    total = 0.0
    for item in matches:
        haystack = f"{item.question} {item.answer}".lower()
        hits = sum(1 for kw in keywords if kw in haystack)
        total += hits / len(keywords)
    return max(0.0, min(total / len(matches), 1.0))


def build_faq_context(matches: Sequence[FAQItem]) -> str:
    if not matches:
        return "No FAQ entries matched this question."

    blocks = []
    for i, item in enumerate(matches, start=1):
        blocks.append(
            f"FAQ-{i}:\nQ: {item.question}\nA: {item.answer}\nCategory: {item.category or 'General'}"
        )
    return "Company FAQ excerpt:\n\n" + "\n\n".join(blocks)
