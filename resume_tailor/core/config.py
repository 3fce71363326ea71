from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

def _get_env(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value


def _get_env_bool(name: str, default: bool) -> bool:
    raw = _get_env(name, None)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _get_env_int(name: str, default: int) -> int:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_env_float(name: str, default: float) -> float:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _get_env_list(name: str, default: list[str]) -> tuple[str, ...]:
    raw = _get_env(name, None)
    if raw is None:
        return tuple(default)
    values = [item.strip() for item in raw.split(",")]
    clean = [item for item in values if item]
    return tuple(clean) if clean else tuple(default)


@dataclass(frozen=True)
class Settings:
    rate_limit: str
    rate_limit_enabled: bool
    log_level: str
    sentry_dsn: str | None
    cors_allowed_origins: tuple[str, ...]
    cors_allow_credentials: bool
    ai_provider: str
    ai_model: str
    oracle_timeout_s: float
    oracle_max_retries: int
    oracle_temperature: float
    session_store_backend: str
    session_db_path: str
    analytics_enabled: bool
    analytics_db_path: str
    analytics_retention_days: int
    resume_prompt_max_chars: int
    job_prompt_max_chars: int


settings = Settings(
    rate_limit=_get_env("RATE_LIMIT", "30/minute") or "30/minute",
    rate_limit_enabled=_get_env_bool("RATE_LIMIT_ENABLED", True),
    log_level=_get_env("LOG_LEVEL", "INFO") or "INFO",
    sentry_dsn=_get_env("SENTRY_DSN"),
    cors_allowed_origins=_get_env_list(
        "CORS_ALLOWED_ORIGINS",
        [
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:3000",
        ],
    ),
    cors_allow_credentials=_get_env_bool("CORS_ALLOW_CREDENTIALS", False),
    ai_provider=(_get_env("AI_PROVIDER", "openai") or "openai").strip().lower(),
    ai_model=(_get_env("AI_MODEL", "gpt-4o") or "gpt-4o").strip(),
    oracle_timeout_s=_get_env_float("ORACLE_TIMEOUT_S", 60.0),
    oracle_max_retries=_get_env_int("OPENAI_MAX_RETRIES", 2),
    oracle_temperature=_get_env_float("ORACLE_TEMPERATURE", 0.2),
    session_store_backend=(_get_env("SESSION_STORE", "sqlite") or "sqlite").strip().lower(),
    session_db_path=_get_env("SESSION_DB_PATH", "data/sessions.db") or "data/sessions.db",
    analytics_enabled=_get_env_bool("ANALYTICS_ENABLED", True),
    analytics_db_path=_get_env("ANALYTICS_DB_PATH", "data/analytics.db") or "data/analytics.db",
    analytics_retention_days=_get_env_int("ANALYTICS_RETENTION_DAYS", 180),
    resume_prompt_max_chars=_get_env_int("RESUME_PROMPT_MAX_CHARS", 12000),
    job_prompt_max_chars=_get_env_int("JOB_PROMPT_MAX_CHARS", 12000),
)

if settings.session_store_backend not in {"sqlite", "memory"}:
    raise RuntimeError("SESSION_STORE must be either 'sqlite' or 'memory'.")
