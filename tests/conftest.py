# SPDX-License-Identifier: CC0-1.0

import pytest

from faqdesk.faq import FAQItem
from faqdesk.llm import Completion, CompletionError, SOURCE_AI
from faqdesk.store import FAQ, Company, FAQStore, SupportSettings, create_store_engine, init_db, make_session_factory


@pytest.fixture
def session_factory():
    engine = create_store_engine("sqlite://")
    init_db(engine)
    yield make_session_factory(engine)
    engine.dispose()


@pytest.fixture
def store(session_factory):
    session = session_factory()
    yield FAQStore(session)
    session.close()


@pytest.fixture
def add_faq(session_factory):
    def _add(company_id, question, answer, category="General", views=0, helpful=0, active=True) -> int:
        with session_factory() as session:
            faq = FAQ(
                company_id=company_id,
                question=question,
                answer=answer,
                category=category,
                views=views,
                helpful_count=helpful,
                is_active=active,
            )
            session.add(faq)
            session.commit()
            return faq.id
    return _add


@pytest.fixture
def add_company(session_factory):
    def _add(company_id, name="Acme", email=None, phone=None, chat_settings=None):
        with session_factory() as session:
            session.add(Company(id=company_id, name=name, email=email, phone=phone))
            if chat_settings is not None:
                session.add(SupportSettings(company_id=company_id, chat_settings=chat_settings))
            session.commit()
    return _add


class FakeCompleter:
    def __init__(self, text="Mon-Fri 9-6.", error=None):
        self.text = text
        self.error = error
        self.calls = []

    def complete(self, query, matches, support_contact):
        self.calls.append((query, list(matches), support_contact))
        if self.error is not None:
            raise self.error
        return Completion(text=self.text, source=SOURCE_AI, usage={"prompt_tokens": 1, "completion_tokens": 2, "total_tokens": 3})


class SpyStore:
    """In-memory store that records every call."""

    def __init__(self, faqs=(), ai_enabled=True, ping_error=None):
        self.faqs = list(faqs)
        self.ai_enabled = ai_enabled
        self.ping_error = ping_error
        self.calls = []

    def ping(self):
        self.calls.append("ping")
        if self.ping_error is not None:
            raise self.ping_error

    def is_ai_enabled(self, company_id):
        self.calls.append("is_ai_enabled")
        return self.ai_enabled

    def search(self, company_id, terms, limit):
        self.calls.append("search")
        hits = [
            f for f in self.faqs
            if f.company_id == company_id
            and any(t in f"{f.question} {f.answer}".lower() for t in terms)
        ]
        return hits[:limit]

    def top(self, company_id, limit):
        self.calls.append("top")
        return [f for f in self.faqs if company_id is None or f.company_id == company_id][:limit]

    def support_contact(self, company_id):
        self.calls.append("support_contact")
        return "Contact support@example.com."

    def record_view(self, company_id, faq_id):
        self.calls.append("record_view")
        for f in self.faqs:
            if f.id == faq_id and f.company_id == company_id:
                f.views += 1
                return f
        return None


def faq_item(id, question, answer, company_id=1, **kw) -> FAQItem:
    return FAQItem(id=id, question=question, answer=answer, company_id=company_id, **kw)


@pytest.fixture
def failing_completer():
    return FakeCompleter(error=CompletionError("boom"))
