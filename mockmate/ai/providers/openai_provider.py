from __future__ import annotations

import os
from typing import Optional, Sequence

import openai
from openai import AsyncOpenAI

from mockmate.ai.types import AIProviderError, Attachment


class OpenAIProvider:
    provider = "openai"
    supports_attachments = False

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        timeout_s: float = 30.0,
    ):
        key = (api_key or "").strip()
        if not key:
            raise RuntimeError("OPENAI_API_KEY is missing")

        # Rate-limit retries are handled by retry_with_backoff, not the SDK.
        self._client = AsyncOpenAI(
            api_key=key,
            base_url=(base_url or os.getenv("OPENAI_BASE_URL") or None),
            timeout=float(os.getenv("OPENAI_TIMEOUT_S", str(timeout_s))),
            max_retries=0,
        )

    async def generate(
        self,
        model: str,
        prompt: str,
        *,
        temperature: float | None = None,
        max_output_tokens: int | None = None,
        attachments: Sequence[Attachment] = (),
    ) -> str:
        if attachments:
            raise AIProviderError("OpenAIProvider does not accept inline attachments", status=400)

        create_kwargs = {
            "model": model,
            "messages": [{"role": "user", "content": prompt}],
        }
        if temperature is not None:
            create_kwargs["temperature"] = temperature
        if max_output_tokens is not None:
            create_kwargs["max_tokens"] = max_output_tokens

        try:
            response = await self._client.chat.completions.create(**create_kwargs)
        except openai.APIStatusError as exc:
            raise AIProviderError(str(exc), status=exc.status_code) from exc
        except openai.APIError as exc:
            raise AIProviderError(str(exc)) from exc

        content = response.choices[0].message.content if response.choices else ""
        return (content or "").strip()
