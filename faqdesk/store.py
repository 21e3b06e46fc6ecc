# SPDX-License-Identifier: CC0-1.0

from __future__ import annotations

import functools
import logging
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    create_engine,
    event,
    func,
    or_,
    select,
    text,
    update,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .faq import FAQItem

logger = logging.getLogger(__name__)

Base = declarative_base()

DEFAULT_SUPPORT_CONTACT = "Please contact our support team for further assistance."


def _utcnow():
    return datetime.now(timezone.utc)


class Company(Base):
    __tablename__ = "companies"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(64), nullable=True)
    domain = Column(String(255), nullable=True)


class FAQ(Base):
    __tablename__ = "faqs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    question = Column(Text, nullable=False)
    answer = Column(Text, nullable=False)
    category = Column(String(100), nullable=False, default="General")
    is_active = Column(Boolean, nullable=False, default=True)
    views = Column(Integer, nullable=False, default=0)
    helpful_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    def to_item(self) -> FAQItem:
        return FAQItem(
            id=self.id,
            question=self.question,
            answer=self.answer,
            category=self.category,
            views=self.views or 0,
            helpful_count=self.helpful_count or 0,
            company_id=self.company_id,
        )


class SupportSettings(Base):
    __tablename__ = "support_settings"

    id = Column(Integer, primary_key=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, unique=True)
    chat_settings = Column(JSON, nullable=True)


class StoreUnavailableError(RuntimeError):
    """The FAQ database could not be reached."""


def _guarded(method):
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except (OperationalError, InterfaceError) as e:
            logger.error("FAQ store call %s failed: %s", method.__name__, e)
            raise StoreUnavailableError(str(e)) from e
    return wrapper


def _unicode_lower(value):
    return value.lower() if isinstance(value, str) else value


def _register_unicode_lower(dbapi_connection, connection_record):
    dbapi_connection.create_function("lower", 1, _unicode_lower, deterministic=True)


def create_store_engine(url: str) -> Engine:
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # one shared connection, otherwise every session sees an empty database
            kwargs["poolclass"] = StaticPool
        engine = create_engine(url, **kwargs)
        # sqlite lower() folds ASCII only, matching needs the same folding as str.lower()
        event.listen(engine, "connect", _register_unicode_lower)
        return engine
    return create_engine(url, pool_pre_ping=True)


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    Base.metadata.create_all(engine)


def _ranked(stmt):
    return stmt.order_by(
        FAQ.helpful_count.desc(),
        FAQ.views.desc(),
        FAQ.created_at.desc(),
        FAQ.id.asc(),
    )


class FAQStore:
    """Read API over FAQs, companies and support settings bound to one session."""

    def __init__(self, session: Session):
        self.session = session

    @_guarded
    def ping(self) -> None:
        self.session.execute(text("SELECT 1"))

    @_guarded
    def search(self, company_id: int, terms: Sequence[str], limit: int) -> List[FAQItem]:
        """Active FAQs of the company whose question or answer contains any of the terms."""
        if not terms:
            return []
        conditions = []
        for term in terms:
            needle = term.lower()
            conditions.append(func.lower(FAQ.question).contains(needle, autoescape=True))
            conditions.append(func.lower(FAQ.answer).contains(needle, autoescape=True))
        stmt = select(FAQ).where(
            FAQ.company_id == company_id,
            FAQ.is_active.is_(True),
            or_(*conditions),
        )
        rows = self.session.execute(_ranked(stmt).limit(limit)).scalars().all()
        return [row.to_item() for row in rows]

    @_guarded
    def top(self, company_id: Optional[int], limit: int) -> List[FAQItem]:
        """Most helpful active FAQs; company_id=None searches every tenant."""
        stmt = select(FAQ).where(FAQ.is_active.is_(True))
        if company_id is not None:
            stmt = stmt.where(FAQ.company_id == company_id)
        rows = self.session.execute(_ranked(stmt).limit(limit)).scalars().all()
        return [row.to_item() for row in rows]

    @_guarded
    def is_ai_enabled(self, company_id: int) -> bool:
        stmt = select(SupportSettings.chat_settings).where(SupportSettings.company_id == company_id)
        chat_settings = self.session.execute(stmt).scalar_one_or_none()
        if not isinstance(chat_settings, dict):
            return True
        return chat_settings.get("enableChatbot") is not False

    @_guarded
    def support_contact(self, company_id: int) -> str:
        company = self.session.get(Company, company_id)
        if company is None:
            return DEFAULT_SUPPORT_CONTACT
        channels = [c for c in (company.email, company.phone) if c]
        if not channels:
            return DEFAULT_SUPPORT_CONTACT
        return f"Please contact the {company.name} support team at {' or '.join(channels)}."

    @_guarded
    def record_view(self, company_id: int, faq_id: int) -> Optional[FAQItem]:
        bump = (
            update(FAQ)
            .where(FAQ.id == faq_id, FAQ.company_id == company_id, FAQ.is_active.is_(True))
            .values(views=FAQ.views + 1)
            .execution_options(synchronize_session=False)
        )
        if self.session.execute(bump).rowcount == 0:
            self.session.rollback()
            return None
        self.session.commit()
        stmt = select(FAQ).where(FAQ.id == faq_id).execution_options(populate_existing=True)
        return self.session.execute(stmt).scalar_one().to_item()
