from mockmate.ai.config import load_ai_config
from mockmate.ai.types import AIClient
from mockmate.core.config import settings
from mockmate.core.errors import AIUnavailableError

from mockmate.ai.providers.gemini_provider import GeminiProvider
from mockmate.ai.providers.openai_provider import OpenAIProvider


def get_ai_client() -> AIClient:
    cfg = load_ai_config()

    if not cfg.api_key:
        raise AIUnavailableError(f"{cfg.provider.capitalize()} not configured")

    if cfg.provider == "gemini":
        return GeminiProvider(api_key=cfg.api_key, timeout_s=settings.ai_timeout_s)

    if cfg.provider == "openai":
        return OpenAIProvider(api_key=cfg.api_key, timeout_s=settings.ai_timeout_s)

    raise ValueError(f"Unsupported AI_PROVIDER='{cfg.provider}'")
