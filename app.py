# SPDX-License-Identifier: CC0-1.0
"""ASGI entry point: uvicorn app:app"""
import logging

from faqdesk.api import create_app
from faqdesk.config import Settings
from faqdesk.store import create_store_engine, init_db, make_session_factory

settings = Settings.load()
logging.basicConfig(
  level=getattr(logging, settings.log_level, logging.INFO),
  format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

engine = create_store_engine(settings.database_url)
init_db(engine)

app = create_app(settings=settings, session_factory=make_session_factory(engine))
