import contextlib
from contextlib import asynccontextmanager
import asyncio
import logging

from mockmate.core.config import settings
from mockmate.core.session_store import get_session_store
from mockmate.services.interview_service import get_interview_service

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app):
    store = get_session_store()
    service = get_interview_service()
    if not service.ai_configured:
        logger.warning("[WARN] %s; AI endpoints will return 500.", service.unavailable_reason)

    stop_event = asyncio.Event()

    async def periodic_purge() -> None:
        while not stop_event.is_set():
            try:
                purged = store.purge_expired()
                if purged:
                    logger.info("session_ttl_purge deleted=%s", purged)
            except Exception as exc:  # pragma: no cover
                logger.warning("session_ttl_purge_failed: %s", exc)
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=settings.session_purge_interval_s)
            except asyncio.TimeoutError:
                continue

    purge_task = asyncio.create_task(periodic_purge())
    yield
    stop_event.set()
    if not purge_task.done():
        purge_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await purge_task
