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
    ai_provider: str
    gemini_api_key: str | None
    openai_api_key: str | None
    model_id_override: str | None
    fast_model_ids: tuple[str, ...]
    default_model_ids: tuple[str, ...]
    ai_timeout_s: float
    ai_retry_max_attempts: int
    ai_retry_base_delay_s: float
    host: str
    port: int
    cors_allowed_origins: tuple[str, ...]
    cors_allow_credentials: bool
    log_level: str
    sentry_dsn: str | None
    rate_limit: str
    rate_limit_enabled: bool
    upload_rate_limit: str
    trust_proxy_headers: bool
    max_upload_bytes: int
    session_backend: str
    session_db_path: str
    session_ttl_minutes: int
    session_max_entries: int
    session_purge_interval_s: int
    feedback_source: str


settings = Settings(
    ai_provider=(_get_env("AI_PROVIDER", "gemini") or "gemini").strip().lower(),
    gemini_api_key=_get_env("GEMINI_API_KEY"),
    openai_api_key=_get_env("OPENAI_API_KEY"),
    model_id_override=_get_env("GEMINI_MODEL_ID") or _get_env("AI_MODEL"),
    fast_model_ids=_get_env_list("AI_FAST_MODELS", []),
    default_model_ids=_get_env_list("AI_DEFAULT_MODELS", []),
    ai_timeout_s=_get_env_float("AI_TIMEOUT_S", 60.0),
    ai_retry_max_attempts=max(1, _get_env_int("AI_RETRY_MAX_ATTEMPTS", 3)),
    ai_retry_base_delay_s=_get_env_float("AI_RETRY_BASE_DELAY_S", 1.0),
    host=_get_env("HOST", "0.0.0.0") or "0.0.0.0",
    port=_get_env_int("PORT", 5001),
    cors_allowed_origins=_get_env_list(
        "ALLOW_ORIGIN",
        [
            "http://localhost:3000",
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ],
    ),
    cors_allow_credentials=_get_env_bool("CORS_ALLOW_CREDENTIALS", True),
    log_level=_get_env("LOG_LEVEL", "INFO") or "INFO",
    sentry_dsn=_get_env("SENTRY_DSN"),
    rate_limit=_get_env("RATE_LIMIT", "30/minute") or "30/minute",
    rate_limit_enabled=_get_env_bool("RATE_LIMIT_ENABLED", True),
    upload_rate_limit=_get_env("UPLOAD_RATE_LIMIT", "10/minute") or "10/minute",
    trust_proxy_headers=_get_env_bool("TRUST_PROXY_HEADERS", False),
    max_upload_bytes=_get_env_int("MAX_UPLOAD_MB", 10) * 1024 * 1024,
    session_backend=(_get_env("SESSION_BACKEND", "memory") or "memory").strip().lower(),
    session_db_path=_get_env("SESSION_DB_PATH", "data/sessions.db") or "data/sessions.db",
    session_ttl_minutes=_get_env_int("SESSION_TTL_MINUTES", 120),
    session_max_entries=_get_env_int("SESSION_MAX_ENTRIES", 500),
    session_purge_interval_s=_get_env_int("SESSION_PURGE_INTERVAL_S", 300),
    feedback_source=(_get_env("FEEDBACK_SOURCE", "model") or "model").strip().lower(),
)

if settings.ai_provider not in {"gemini", "openai"}:
    raise RuntimeError("AI_PROVIDER must be either 'gemini' or 'openai'.")

if settings.session_backend not in {"memory", "sqlite"}:
    raise RuntimeError("SESSION_BACKEND must be either 'memory' or 'sqlite'.")

if settings.feedback_source not in {"model", "bracket"}:
    raise RuntimeError("FEEDBACK_SOURCE must be either 'model' or 'bracket'.")
