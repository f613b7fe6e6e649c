from __future__ import annotations

import json
import logging
import re
from typing import Any, Awaitable, Callable

logger = logging.getLogger("mockmate.ai")

_LEADING_FENCE = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_TRAILING_FENCE = re.compile(r"\s*```$")
_JSON_SPAN = re.compile(r"(\{[\s\S]*\}|\[[\s\S]*\])")


class JSONParseError(ValueError):
    pass


def clean_json_response(text: str | None) -> str:
    """Best-effort JSON substring of a model reply.

    Drops markdown fences and any prose around the first ``{``/``[`` to last ``}``/``]``
    span. Text without such a span comes back fence-stripped but otherwise unchanged.
    """
    if not text:
        return ""

    cleaned = text.strip()
    cleaned = _LEADING_FENCE.sub("", cleaned)
    cleaned = _TRAILING_FENCE.sub("", cleaned)
    cleaned = cleaned.strip()

    match = _JSON_SPAN.search(cleaned)
    if match:
        cleaned = match.group(0)
    return cleaned.strip()


def normalize_to_json(text: str | None) -> Any:
    cleaned = clean_json_response(text)
    if not cleaned:
        raise JSONParseError("Model returned an empty response")
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise JSONParseError(f"Model returned invalid JSON: {exc.msg}") from exc


async def parse_json_with_fixer(
    raw_text: str,
    fixer: Callable[[str], Awaitable[str]],
    validate: Callable[[Any], Any] | None = None,
) -> Any:
    """Parse (and optionally validate) ``raw_text``, asking ``fixer`` for one rewrite on failure.

    ``validate`` receives the decoded JSON and returns the value to hand back; it signals a
    wrong shape by raising ``ValueError``. The second failure propagates.
    """

    def _decode(text: str) -> Any:
        payload = normalize_to_json(text)
        return validate(payload) if validate else payload

    try:
        return _decode(raw_text)
    except ValueError as exc:
        logger.warning(
            json.dumps(
                {
                    "event": "model_json_fixer",
                    "reason": str(exc),
                    "raw_preview": (raw_text or "")[:200],
                }
            )
        )

    fixed_text = await fixer(raw_text)
    return _decode(fixed_text)
