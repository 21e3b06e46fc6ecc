# SPDX-License-Identifier: CC0-1.0

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Protocol, Sequence

from langchain_core.prompts import ChatPromptTemplate
from langchain_openai import ChatOpenAI

from .config import Settings
from .faq import FAQItem, build_faq_context, score_confidence

logger = logging.getLogger(__name__)

SOURCE_AI = "ai"
SOURCE_FALLBACK = "fallback"
FALLBACK_CONFIDENCE = 0.5

SYSTEM_TEMPLATE = """
You are a customer support assistant for a company website chat widget.
Rules:
- Answer ONLY from the FAQ content supplied below. Never invent facts, prices or policies.
- If an FAQ answers the question exactly, reply with its answer, lightly rephrased.
- If the FAQs only partly cover the question, give a short answer of at most 2 lines and end with: {support_contact}
- If the question is related to the company, you may combine several partly relevant FAQs into one answer.
- If no FAQ is relevant, say that you don't have information about it and end with: {support_contact}
- Do not mention "FAQ" or "knowledge base" in the answer.
""".strip()

INSUFFICIENT_TEMPLATE = (
    "I don't have enough information about \"{query}\" in our knowledge base. {support_contact}"
)

HELPFUL_TEMPLATE = (
    "Based on our knowledge base, here's information that might be helpful:\n\n"
    "**{question}**\n{answer}\n\n"
    "For more specific information about \"{query}\": {support_contact}"
)


class CompletionError(RuntimeError):
    """The answer generator could not produce an answer."""


@dataclass
class Completion:
    text: str
    source: str
    usage: Optional[Dict[str, int]] = None


@dataclass
class AnswerResult:
    answer: str
    source: str
    confidence: float
    usage: Optional[Dict[str, int]] = None


class Completer(Protocol):
    def complete(self, query: str, matches: Sequence[FAQItem], support_contact: str) -> Completion: ...


class SupportsInvoke(Protocol):
    def invoke(self, inp: dict) -> object: ...


def build_chain(
        model_name: str,
        api_key: str,
        max_tokens: int = 150,
        temperature: float = 0.3,
        timeout: float = 15,
        http_client=None,
):
    chat = ChatOpenAI(
        model=model_name,
        api_key=api_key,
        temperature=temperature,
        max_tokens=max_tokens,
        timeout=timeout,
        # single attempt, failures go to the fallback completer
        max_retries=0,
        http_client=http_client,
    )

    prompt = ChatPromptTemplate.from_messages([
        ("system", SYSTEM_TEMPLATE),
        ("system", "{context}"),
        ("human", "{question}"),
    ])

    return prompt | chat


def _usage_from(response) -> Optional[Dict[str, int]]:
    usage_meta = getattr(response, "usage_metadata", None)
    if not usage_meta:
        return None
    return {
        "prompt_tokens": usage_meta.get("input_tokens", 0),
        "completion_tokens": usage_meta.get("output_tokens", 0),
        "total_tokens": usage_meta.get("total_tokens", 0),
    }


class LLMCompleter:
    """Grounded answers from a chat model; every failure surfaces as CompletionError."""

    def __init__(self, chain: Optional[SupportsInvoke]):
        self.chain = chain

    @classmethod
    def from_settings(cls, settings: Settings, http_client=None) -> "LLMCompleter":
        if not settings.openai_api_key:
            logger.warning("OPENAI_API_KEY is not set, answers will use the fallback composer")
            return cls(None)
        return cls(build_chain(
            model_name=settings.openai_model,
            api_key=settings.openai_api_key,
            max_tokens=settings.llm_max_tokens,
            temperature=settings.llm_temperature,
            timeout=settings.llm_timeout,
            http_client=http_client,
        ))

    def complete(self, query: str, matches: Sequence[FAQItem], support_contact: str) -> Completion:
        if self.chain is None:
            raise CompletionError("OpenAI API key is not configured")

        try:
            response = self.chain.invoke({
                "question": query,
                "context": build_faq_context(matches),
                "support_contact": support_contact,
            })
        except Exception as e:
            raise CompletionError(f"LLM call failed: {e}") from e

        content = getattr(response, "content", None)
        if not isinstance(content, str) or not content.strip():
            raise CompletionError("LLM returned an empty or malformed message")

        return Completion(text=content.strip(), source=SOURCE_AI, usage=_usage_from(response))


class FallbackCompleter:
    """Deterministic answer built from the top-ranked FAQ. Never fails."""

    def complete(self, query: str, matches: Sequence[FAQItem], support_contact: str) -> Completion:
        if not matches:
            return Completion(
                text=INSUFFICIENT_TEMPLATE.format(query=query, support_contact=support_contact),
                source=SOURCE_FALLBACK,
            )
        top = matches[0]
        return Completion(
            text=HELPFUL_TEMPLATE.format(
                question=top.question,
                answer=top.answer,
                query=query,
                support_contact=support_contact,
            ),
            source=SOURCE_FALLBACK,
        )


def compose_answer(
        query: str,
        matches: Sequence[FAQItem],
        keywords: Sequence[str],
        completer: Completer,
        support_contact: str,
        fallback: Optional[Completer] = None,
        events=None,
) -> AnswerResult:
    fallback = fallback or FallbackCompleter()

    if not matches:
        completion = fallback.complete(query, matches, support_contact)
        return AnswerResult(answer=completion.text, source=SOURCE_FALLBACK, confidence=0.0)

    try:
        completion = completer.complete(query, matches, support_contact)
    except CompletionError as e:
        logger.warning("Answer generation failed, using fallback: %s", e)
        if events is not None:
            events.emit("llm_failed", error=str(e))
        completion = fallback.complete(query, matches, support_contact)

    if completion.source == SOURCE_AI:
        confidence = score_confidence(matches, keywords)
    else:
        confidence = FALLBACK_CONFIDENCE
    return AnswerResult(
        answer=completion.text,
        source=completion.source,
        confidence=confidence,
        usage=completion.usage,
    )
