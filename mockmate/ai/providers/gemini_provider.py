from __future__ import annotations

from typing import Sequence

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from mockmate.ai.types import AIProviderError, Attachment


class GeminiProvider:
    provider = "gemini"
    supports_attachments = True

    def __init__(self, api_key: str, timeout_s: float | None = None):
        http_options = None
        if timeout_s:
            # google-genai expects milliseconds here.
            http_options = types.HttpOptions(timeout=int(timeout_s * 1000))
        self._client = genai.Client(api_key=api_key, http_options=http_options)

    async def generate(
        self,
        model: str,
        prompt: str,
        *,
        temperature: float | None = None,
        max_output_tokens: int | None = None,
        attachments: Sequence[Attachment] = (),
    ) -> str:
        parts = [types.Part.from_text(text=prompt)]
        for attachment in attachments:
            parts.append(types.Part.from_bytes(data=attachment.data, mime_type=attachment.mime_type))

        config = types.GenerateContentConfig(
            temperature=temperature,
            max_output_tokens=max_output_tokens,
        )
        try:
            response = await self._client.aio.models.generate_content(
                model=model,
                contents=[types.Content(role="user", parts=parts)],
                config=config,
            )
        except genai_errors.APIError as exc:
            raise AIProviderError(str(exc), status=exc.code) from exc
        except httpx.HTTPError as exc:
            # Connection failures and HttpOptions timeouts surface from the SDK's httpx layer.
            raise AIProviderError(f"Gemini request failed: {type(exc).__name__}: {exc}") from exc
        return (response.text or "").strip()

    def list_models(self) -> list[str]:
        try:
            return [model.name for model in self._client.models.list() if model.name]
        except genai_errors.APIError as exc:
            raise AIProviderError(str(exc), status=exc.code) from exc
        except httpx.HTTPError as exc:
            raise AIProviderError(f"Gemini request failed: {type(exc).__name__}: {exc}") from exc
