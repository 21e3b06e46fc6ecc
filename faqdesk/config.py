# SPDX-License-Identifier: CC0-1.0

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent

_TRUE = ("1", "true", "yes", "on")
_FALSE = ("0", "false", "no", "off")


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}")


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be a number, got {raw!r}")


def _bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise RuntimeError(f"{name} must be true/false, got {raw!r}")


@dataclass
class Settings:
    database_url: str = "sqlite:///faqdesk.db"
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    llm_max_tokens: int = 150
    llm_temperature: float = 0.3
    llm_timeout: float = 15.0
    default_limit: int = 5
    max_limit: int = 50
    cross_tenant_fallback: bool = True
    event_log_path: Optional[Path] = None
    log_level: str = "INFO"

    @classmethod
    def load(cls) -> "Settings":
        env_path = BASE_DIR / ".env"
        if env_path.exists():
            load_dotenv(env_path)

        # an unset key is not fatal: answers degrade to the fallback composer
        api_key = os.getenv("OPENAI_API_KEY") or None
        event_log = os.getenv("FAQDESK_EVENT_LOG")

        return cls(
            database_url=os.getenv("FAQDESK_DATABASE_URL", cls.database_url),
            openai_api_key=api_key,
            openai_model=os.getenv("OPENAI_MODEL", cls.openai_model),
            llm_max_tokens=_int_env("FAQDESK_LLM_MAX_TOKENS", cls.llm_max_tokens),
            llm_temperature=_float_env("FAQDESK_LLM_TEMPERATURE", cls.llm_temperature),
            llm_timeout=_float_env("FAQDESK_LLM_TIMEOUT", cls.llm_timeout),
            default_limit=_int_env("FAQDESK_DEFAULT_LIMIT", cls.default_limit),
            max_limit=_int_env("FAQDESK_MAX_LIMIT", cls.max_limit),
            cross_tenant_fallback=_bool_env("FAQDESK_CROSS_TENANT_FALLBACK", cls.cross_tenant_fallback),
            event_log_path=Path(event_log) if event_log else None,
            log_level=os.getenv("FAQDESK_LOG_LEVEL", cls.log_level).upper(),
        )

    def clamp_limit(self, limit: Optional[int]) -> int:
        if limit is None:
            return self.default_limit
        return max(1, min(int(limit), self.max_limit))
