from __future__ import annotations

import asyncio
import logging
import re
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger("mockmate.ai")

T = TypeVar("T")

_RETRY_HINT = re.compile(r"retry\D*?(\d+(?:\.\d+)?)\s*s", re.IGNORECASE)


def _status_of(exc: BaseException):
    for attr in ("status", "code", "status_code"):
        value = getattr(exc, attr, None)
        if value is not None:
            return value
    return None


def is_rate_limit_error(exc: BaseException) -> bool:
    status = _status_of(exc)
    if status == 429 or str(status) == "429":
        return True
    message = str(exc).lower()
    return "429" in message or "quota" in message


def retry_delay_hint(exc: BaseException) -> float | None:
    """Seconds the provider asked us to wait ("Please retry in 13.2s"), if any."""
    match = _RETRY_HINT.search(str(exc))
    if not match:
        return None
    return float(match.group(1))


async def retry_with_backoff(
    fn: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    base_delay: float = 1.0,
    *,
    sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
) -> T:
    """Await ``fn()``, retrying only when the failure is a rate-limit signal.

    The wait is ``base_delay * 2 ** attempt`` seconds unless the error names its own retry
    delay. Other errors, and the last rate-limit error, propagate unchanged. The sleep is a
    plain awaitable so cancelling the calling task stops the loop.
    """
    attempts = max(1, max_attempts)
    for attempt in range(attempts):
        try:
            return await fn()
        except Exception as exc:
            if not is_rate_limit_error(exc) or attempt >= attempts - 1:
                raise
            delay = retry_delay_hint(exc)
            if delay is None:
                delay = base_delay * (2 ** attempt)
            logger.warning(
                "rate limited, retrying in %.2fs (attempt %s/%s)", delay, attempt + 1, attempts
            )
            await sleep(delay)
    raise RuntimeError("retry_with_backoff exhausted without a result")  # pragma: no cover
