# SPDX-License-Identifier: CC0-1.0

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from .config import Settings
from .events import EventLog
from .faq import MatchResult, find_top_faq_matches
from .keywords import extract_keywords
from .llm import AnswerResult, Completer, compose_answer


class InvalidQueryError(ValueError):
    pass


class AIDisabledError(RuntimeError):
    pass


class FAQNotFoundError(LookupError):
    pass


@dataclass
class SearchResult:
    answer: AnswerResult
    matches: MatchResult
    keywords: List[str]

    def to_dict(self) -> dict:
        return {
            "answer": self.answer.answer,
            "source": self.answer.source,
            "confidence": self.answer.confidence,
            "relatedFAQs": [item.related() for item in self.matches.items],
        }


def require_query(query: Optional[str]) -> str:
    text = (query or "").strip()
    if not text:
        raise InvalidQueryError("Search query is required")
    return text


def resolve_answer(
        query: Optional[str],
        company_id: int,
        store,
        completer: Completer,
        settings: Settings,
        limit: Optional[int] = None,
        events: Optional[EventLog] = None,
) -> SearchResult:
    """Answer a widget question from the tenant's FAQs."""
    events = events or EventLog()
    text = require_query(query)
    limit = settings.clamp_limit(limit)

    events.emit("search_started", company_id=company_id, query=text, limit=limit)

    store.ping()
    if not store.is_ai_enabled(company_id):
        events.emit("ai_disabled", company_id=company_id)
        raise AIDisabledError(
            "AI chatbot is not enabled for this company. Please contact your administrator."
        )

    keywords = extract_keywords(text)
    matches = find_top_faq_matches(
        store,
        company_id=company_id,
        keywords=keywords,
        query=text,
        limit=limit,
        cross_tenant=settings.cross_tenant_fallback,
    )
    events.emit(
        "tier_matched",
        company_id=company_id,
        keywords=keywords,
        tier=matches.tier.value,
        faq_ids=[item.id for item in matches.items],
    )

    support_contact = store.support_contact(company_id)
    answer = compose_answer(
        text,
        matches.items,
        keywords,
        completer=completer,
        support_contact=support_contact,
        events=events,
    )
    events.emit(
        "answer_generated",
        company_id=company_id,
        source=answer.source,
        confidence=answer.confidence,
        usage=answer.usage,
    )
    return SearchResult(answer=answer, matches=matches, keywords=keywords)


def suggest(
        query: Optional[str],
        company_id: int,
        store,
        settings: Settings,
        limit: Optional[int] = None,
) -> List[dict]:
    """Related-FAQ suggestions; an empty query yields the tenant's popular FAQs."""
    limit = settings.clamp_limit(limit)

    store.ping()
    keywords = extract_keywords((query or "").strip())
    items = store.search(company_id, keywords, limit) if keywords else []
    if not items:
        # popular FAQs of this tenant only, suggestions never cross tenants
        items = store.top(company_id, limit)
    return [item.related() for item in items]


def faq_answer(company_id: int, faq_id: int, store) -> dict:
    store.ping()
    item = store.record_view(company_id, faq_id)
    if item is None:
        raise FAQNotFoundError("FAQ not found")
    return {
        "answer": item.answer,
        "question": item.question,
        "category": item.category,
        "views": item.views,
        "helpfulCount": item.helpful_count,
    }
