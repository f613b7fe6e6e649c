from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from mockmate.core.config import Settings, settings as default_settings

# Flash models have the friendlier rate limits, so question generation prefers them.
GEMINI_FAST_MODEL_IDS = (
    "gemini-2.5-flash",
    "gemini-2.0-flash",
    "gemini-1.5-flash",
)
GEMINI_FAST_FALLBACK_IDS = (
    "gemini-2.5-pro",
    "gemini-pro",
)
GEMINI_DEFAULT_MODEL_IDS = (
    "gemini-2.5-pro",
    "gemini-2.5-flash",
    "gemini-2.0-flash",
    "gemini-2.0-pro-exp",
    "gemini-1.5-pro",
    "gemini-1.5-flash",
    "gemini-pro",
)

OPENAI_FAST_MODEL_IDS = ("gpt-4o-mini",)
OPENAI_FAST_FALLBACK_IDS = ("gpt-4o",)
OPENAI_DEFAULT_MODEL_IDS = ("gpt-4o", "gpt-4o-mini")


@dataclass(frozen=True)
class AIConfig:
    provider: str
    api_key: str | None
    fast_models: tuple[str, ...]
    default_models: tuple[str, ...]


def candidate_list(ids: Iterable[str | None]) -> tuple[str, ...]:
    """Ordered, de-duplicated model ids with blank entries dropped."""
    seen: list[str] = []
    for raw in ids:
        value = (raw or "").strip()
        if value and value not in seen:
            seen.append(value)
    return tuple(seen)


def load_ai_config(cfg: Settings | None = None) -> AIConfig:
    cfg = cfg or default_settings
    override = cfg.model_id_override

    if cfg.ai_provider == "openai":
        fast_base, fast_fallback, default_base = (
            OPENAI_FAST_MODEL_IDS,
            OPENAI_FAST_FALLBACK_IDS,
            OPENAI_DEFAULT_MODEL_IDS,
        )
        api_key = cfg.openai_api_key
    else:
        fast_base, fast_fallback, default_base = (
            GEMINI_FAST_MODEL_IDS,
            GEMINI_FAST_FALLBACK_IDS,
            GEMINI_DEFAULT_MODEL_IDS,
        )
        api_key = cfg.gemini_api_key

    fast = cfg.fast_model_ids or candidate_list([*fast_base, override, *fast_fallback])
    default = cfg.default_model_ids or candidate_list([override, *default_base])
    return AIConfig(
        provider=cfg.ai_provider,
        api_key=(api_key or "").strip() or None,
        fast_models=candidate_list(fast),
        default_models=candidate_list(default),
    )
