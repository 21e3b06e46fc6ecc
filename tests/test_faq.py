# SPDX-License-Identifier: CC0-1.0

from faqdesk.faq import FAQItem, MatchTier, build_faq_context, find_top_faq_matches, score_confidence
from faqdesk.keywords import extract_keywords


def _match(store, company_id, query, limit=5, cross_tenant=True):
    return find_top_faq_matches(
        store, company_id, extract_keywords(query), query, limit=limit, cross_tenant=cross_tenant
    )


def test_keyword_tier_finds_matching_faq(store, add_faq):
    faq_id = add_faq(1, "What are your business hours?", "Mon-Fri 9-6")
    add_faq(1, "Do you ship abroad?", "Yes, worldwide.")

    result = _match(store, 1, "When are you open? business hours please")

    assert result.tier is MatchTier.KEYWORD
    assert [item.id for item in result.items] == [faq_id]
    assert score_confidence(result.items, extract_keywords("business hours")) > 0


def test_broad_tier_uses_raw_words(store, add_faq):
    faq_id = add_faq(1, "Change contact e-mail", "Open profile settings.")

    result = _match(store, 1, "e-mail")

    assert result.tier is MatchTier.BROAD
    assert [item.id for item in result.items] == [faq_id]


def test_general_tier_when_nothing_matches(store, add_faq):
    add_faq(1, "Do you ship abroad?", "Yes.", helpful=1)
    add_faq(1, "Return policy", "30 days.", helpful=5)

    result = _match(store, 1, "quantum entanglement")

    assert result.tier is MatchTier.GENERAL
    assert [item.question for item in result.items] == ["Return policy", "Do you ship abroad?"]


def test_stop_word_query_falls_to_general_tier(store, add_faq):
    add_faq(1, "This is the shipping FAQ", "We ship with the post.")

    keywords = extract_keywords("hi there please")
    result = _match(store, 1, "hi there please")

    assert keywords == []
    assert result.tier is MatchTier.GENERAL
    assert score_confidence(result.items, keywords) == 0


def test_cross_tenant_tier_when_tenant_has_no_faqs(store, add_faq):
    other_id = add_faq(2, "Warranty terms", "Two years.")
    add_faq(1, "Inactive entry", "hidden", active=False)

    result = _match(store, 1, "warranty")

    assert result.tier is MatchTier.CROSS_TENANT
    assert [item.id for item in result.items] == [other_id]
    assert result.items[0].company_id == 2


def test_cross_tenant_tier_can_be_disabled(store, add_faq):
    add_faq(2, "Warranty terms", "Two years.")

    result = _match(store, 1, "warranty", cross_tenant=False)

    assert result.tier is MatchTier.NONE
    assert not result


def test_empty_everywhere_is_empty_result(store):
    result = _match(store, 1, "warranty")
    assert result.tier is MatchTier.NONE
    assert result.items == []
    assert result.top is None


def test_every_tier_keeps_ranking(store, add_faq):
    add_faq(1, "Shipping A", "ship", helpful=1, views=100)
    add_faq(1, "Shipping B", "ship", helpful=3, views=1)
    add_faq(1, "Shipping C", "ship", helpful=3, views=50)
    add_faq(1, "Shipping D", "ship", helpful=0, views=999)

    expected = ["Shipping C", "Shipping B", "Shipping A", "Shipping D"]
    for query in ("shipping", "zzz"):
        result = _match(store, 1, query)
        assert [item.question for item in result.items] == expected

    cross = _match(store, 7, "zzz")
    assert cross.tier is MatchTier.CROSS_TENANT
    assert [item.question for item in cross.items] == expected


def test_limit_caps_results(store, add_faq):
    for i in range(8):
        add_faq(1, f"Delivery question {i}", "answer")

    assert len(_match(store, 1, "delivery", limit=3)) == 3
    assert len(_match(store, 1, "nothing-here", limit=2)) == 2


def test_score_confidence_averages_keyword_coverage():
    faqs = [
        FAQItem(1, "Business hours", "Mon-Fri 9-6"),
        FAQItem(2, "Holiday hours", "Closed on holidays"),
    ]
    # first covers both keywords, second only "hours"
    assert score_confidence(faqs, ["business", "hours"]) == 0.75


def test_score_confidence_zero_guards():
    assert score_confidence([], ["hours"]) == 0.0
    assert score_confidence([FAQItem(1, "Q", "A")], []) == 0.0


def test_score_confidence_stays_in_range():
    faqs = [FAQItem(1, "hours hours", "hours")]
    assert score_confidence(faqs, ["hours"]) == 1.0


def test_build_faq_context_empty():
    ctx = build_faq_context([])
    assert "no faq" in ctx.lower()


def test_build_faq_context_non_empty():
    ctx = build_faq_context([FAQItem(1, "Q1", "A1", category="Billing")])
    assert "FAQ-1" in ctx
    assert "Q1" in ctx
    assert "A1" in ctx
    assert "Billing" in ctx


def test_related_projection_omits_answer():
    item = FAQItem(3, "Q", "long answer", category="General", views=4, helpful_count=2)
    assert item.related() == {"id": 3, "question": "Q", "category": "General", "views": 4, "helpfulCount": 2}
