# SPDX-License-Identifier: CC0-1.0

from __future__ import annotations

import logging
from typing import Iterator, List, Literal, Optional

from fastapi import Depends, FastAPI, Header, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings
from .events import EventLog
from .llm import Completer, LLMCompleter
from .pipeline import (
    AIDisabledError,
    FAQNotFoundError,
    InvalidQueryError,
    faq_answer,
    require_query,
    resolve_answer,
    suggest,
)
from .store import FAQStore, StoreUnavailableError, create_store_engine, make_session_factory

logger = logging.getLogger(__name__)

DB_ERROR_MESSAGE = "Database connection error. Please try again later."
UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred while processing your request. Please try again."


class RelatedFAQ(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    question: str
    category: Optional[str] = None
    views: int = 0
    helpful_count: int = Field(0, alias="helpfulCount")


class SearchData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    answer: str
    source: Literal["ai", "fallback"]
    confidence: float = Field(ge=0.0, le=1.0)
    related_faqs: List[RelatedFAQ] = Field(default_factory=list, alias="relatedFAQs")


class SearchResponse(BaseModel):
    success: bool = True
    data: SearchData


class SuggestionsResponse(BaseModel):
    success: bool = True
    data: List[RelatedFAQ]


class FAQAnswer(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    answer: str
    question: str
    category: Optional[str] = None
    views: int = 0
    helpful_count: int = Field(0, alias="helpfulCount")


class FAQAnswerResponse(BaseModel):
    success: bool = True
    data: FAQAnswer


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> Iterator[FAQStore]:
    session = request.app.state.session_factory()
    try:
        yield FAQStore(session)
    finally:
        session.close()


def get_completer(request: Request) -> Completer:
    return request.app.state.completer


def get_events(request: Request) -> EventLog:
    return request.app.state.events


def _search(query, company_id, limit, store, completer, settings, events):
    try:
        result = resolve_answer(
            query,
            company_id=company_id,
            store=store,
            completer=completer,
            settings=settings,
            limit=limit,
            events=events,
        )
    except (InvalidQueryError, AIDisabledError) as e:
        return _error(400, str(e))
    except StoreUnavailableError:
        logger.error("AI search for company %s failed: database unavailable", company_id)
        return _error(500, DB_ERROR_MESSAGE)
    except Exception:
        logger.exception("Error in AI search for company %s", company_id)
        return _error(500, UNEXPECTED_ERROR_MESSAGE)

    return {"success": True, "data": result.to_dict()}


def _suggest(query, company_id, limit, store, settings):
    try:
        data = suggest(query, company_id=company_id, store=store, settings=settings, limit=limit)
    except StoreUnavailableError:
        return _error(500, DB_ERROR_MESSAGE)
    except Exception:
        logger.exception("Error getting search suggestions for company %s", company_id)
        return _error(500, "Failed to get search suggestions")
    return {"success": True, "data": data}


def create_app(
        settings: Optional[Settings] = None,
        session_factory=None,
        completer: Optional[Completer] = None,
        events: Optional[EventLog] = None,
) -> FastAPI:
    settings = settings or Settings.load()
    if session_factory is None:
        session_factory = make_session_factory(create_store_engine(settings.database_url))

    app = FastAPI(title="faqdesk", description="FAQ answer resolution for the support chat widget")
    app.state.settings = settings
    app.state.session_factory = session_factory
    app.state.completer = completer or LLMCompleter.from_settings(settings)
    app.state.events = events or EventLog(settings.event_log_path)

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        loc = errors[0].get("loc", ()) if errors else ()
        if loc:
            return _error(400, f"Invalid request parameter: {loc[-1]}")
        return _error(400, "Invalid request parameters")

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return _error(exc.status_code, str(exc.detail))

    @app.get("/health")
    def health(store: FAQStore = Depends(get_store)):
        try:
            store.ping()
        except StoreUnavailableError:
            return JSONResponse(status_code=503, content={"success": False, "database": "unavailable"})
        return {"success": True, "database": "connected"}

    @app.get("/search/ai", response_model=SearchResponse)
    def ai_search(
            query: Optional[str] = None,
            limit: Optional[int] = None,
            company_id: Optional[int] = Header(None, alias="X-Company-Id"),
            store: FAQStore = Depends(get_store),
            completer: Completer = Depends(get_completer),
            settings: Settings = Depends(get_settings),
            events: EventLog = Depends(get_events),
    ):
        if company_id is None:
            return _error(401, "Authentication required. Please log in to use the AI search.")
        return _search(query, company_id, limit, store, completer, settings, events)

    @app.get("/search/ai/public", response_model=SearchResponse)
    def public_ai_search(
            query: Optional[str] = None,
            limit: Optional[int] = None,
            company_id: Optional[int] = Query(None, alias="companyId"),
            store: FAQStore = Depends(get_store),
            completer: Completer = Depends(get_completer),
            settings: Settings = Depends(get_settings),
            events: EventLog = Depends(get_events),
    ):
        try:
            require_query(query)
        except InvalidQueryError as e:
            return _error(400, str(e))
        if company_id is None:
            return _error(400, "Company ID is required")
        return _search(query, company_id, limit, store, completer, settings, events)

    @app.get("/search/suggestions", response_model=SuggestionsResponse)
    def suggestions(
            query: Optional[str] = None,
            limit: Optional[int] = None,
            company_id: Optional[int] = Header(None, alias="X-Company-Id"),
            store: FAQStore = Depends(get_store),
            settings: Settings = Depends(get_settings),
    ):
        if company_id is None:
            return _error(401, "Authentication required")
        return _suggest(query, company_id, limit, store, settings)

    @app.get("/search/suggestions/public", response_model=SuggestionsResponse)
    def public_suggestions(
            query: Optional[str] = None,
            limit: Optional[int] = None,
            company_id: Optional[int] = Query(None, alias="companyId"),
            store: FAQStore = Depends(get_store),
            settings: Settings = Depends(get_settings),
    ):
        try:
            require_query(query)
        except InvalidQueryError as e:
            return _error(400, str(e))
        if company_id is None:
            return _error(400, "Company ID is required")
        return _suggest(query, company_id, limit, store, settings)

    @app.get("/faq/public", response_model=FAQAnswerResponse)
    def public_faq_answer(
            faq_id: Optional[int] = Query(None, alias="faqId"),
            company_id: Optional[int] = Query(None, alias="companyId"),
            store: FAQStore = Depends(get_store),
    ):
        if faq_id is None:
            return _error(400, "FAQ ID is required")
        if company_id is None:
            return _error(400, "Company ID is required")
        try:
            data = faq_answer(company_id, faq_id, store)
        except FAQNotFoundError as e:
            return _error(404, str(e))
        except StoreUnavailableError:
            return _error(500, DB_ERROR_MESSAGE)
        except Exception:
            logger.exception("Error getting FAQ %s for company %s", faq_id, company_id)
            return _error(500, "Error getting FAQ answer")
        return {"success": True, "data": data}

    return app
