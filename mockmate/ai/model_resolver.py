from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Sequence

from mockmate.ai.retry import retry_with_backoff
from mockmate.ai.types import AIClient
from mockmate.core.errors import NoWorkingModelError

logger = logging.getLogger("mockmate.ai")

PROBE_PROMPT = "ping"


class ModelResolver:
    """Finds the first candidate model the configured key can actually call.

    The winner is cached for the life of the resolver; one resolver exists per candidate
    list so the fast and default lists keep separate caches.
    """

    def __init__(
        self,
        client: AIClient,
        candidates: Sequence[str],
        *,
        label: str = "default",
        max_attempts: int = 3,
        base_delay: float = 1.0,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ):
        self._client = client
        self._candidates = tuple(candidates)
        self._label = label
        self._max_attempts = max_attempts
        self._base_delay = base_delay
        self._sleep = sleep
        self._resolved: str | None = None
        self._lock = asyncio.Lock()

    @property
    def candidates(self) -> tuple[str, ...]:
        return self._candidates

    @property
    def resolved(self) -> str | None:
        return self._resolved

    def reset(self) -> None:
        self._resolved = None

    async def _probe(self, model_id: str) -> str:
        return await retry_with_backoff(
            lambda: self._client.generate(model_id, PROBE_PROMPT),
            self._max_attempts,
            self._base_delay,
            sleep=self._sleep,
        )

    async def resolve(self) -> str:
        if self._resolved:
            return self._resolved

        async with self._lock:
            if self._resolved:
                return self._resolved

            for model_id in self._candidates:
                try:
                    text = await self._probe(model_id)
                except Exception as exc:  # noqa: BLE001 - any failure means "try the next id"
                    logger.warning(
                        "model probe failed list=%s id=%s status=%s: %s",
                        self._label,
                        model_id,
                        getattr(exc, "status", None),
                        exc,
                    )
                    continue
                if not (text or "").strip():
                    logger.warning("model probe returned no text list=%s id=%s", self._label, model_id)
                    continue

                logger.info(
                    json.dumps({"event": "model_resolved", "list": self._label, "model": model_id})
                )
                self._resolved = model_id
                return model_id

        provider = getattr(self._client, "provider", "AI").capitalize()
        raise NoWorkingModelError(f"No working {provider} model found for this API key/region.")

    async def probe_all(self, prompt: str = "model-check") -> list[dict[str, Any]]:
        results: list[dict[str, Any]] = []
        for model_id in self._candidates:
            try:
                text = await self._client.generate(model_id, prompt)
            except Exception as exc:  # noqa: BLE001 - reported back to the caller
                results.append(
                    {
                        "id": model_id,
                        "ok": False,
                        "status": getattr(exc, "status", None),
                        "message": str(exc),
                    }
                )
                continue
            results.append({"id": model_id, "ok": True, "sample": (text or "")[:40]})
        return results
