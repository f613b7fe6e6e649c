from __future__ import annotations

import asyncio
import json
import logging
import math
import re
import time
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Awaitable, Callable

from mockmate.ai.config import load_ai_config
from mockmate.ai.factory import get_ai_client
from mockmate.ai.json_repair import parse_json_with_fixer
from mockmate.ai.model_resolver import ModelResolver
from mockmate.ai.retry import retry_with_backoff
from mockmate.ai.types import AIClient, AIProviderError, Attachment
from mockmate.core.config import settings
from mockmate.core.errors import (
    AIUnavailableError,
    InvalidRequestError,
    ModelOutputError,
    SessionNotFoundError,
)
from mockmate.core.session_store import InterviewSession, ReviewRecord, SessionStore, get_session_store
from mockmate.services import prompts
from mockmate.services.feedback import feedback_for_score

logger = logging.getLogger("mockmate.interview")

MIN_QUESTION_CHARS = 10
_PLACEHOLDER_QUESTION = re.compile(
    r"^(?:q\d*|question\s*\d*|\.{3}|…|string|<?the question>?|your question here|todo|n/?a)$",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class ReviewResult:
    score: int
    feedback: list[str] = field(default_factory=list)
    transcript: str | None = None


def extract_question(payload: Any) -> str:
    """Single usable question from the model's JSON, or ``ValueError``."""
    if isinstance(payload, dict):
        if isinstance(payload.get("question"), str):
            candidates = [payload["question"]]
        elif isinstance(payload.get("questions"), list):
            candidates = payload["questions"]
        else:
            raise ValueError("Model did not return a question")
    elif isinstance(payload, list):
        candidates = payload
    else:
        raise ValueError("Model did not return a question")

    if len(candidates) != 1 or not isinstance(candidates[0], str):
        raise ValueError(f"Model returned {len(candidates)} questions instead of 1")

    question = " ".join(candidates[0].split())
    if len(question) < MIN_QUESTION_CHARS or _PLACEHOLDER_QUESTION.match(question):
        raise ValueError("Model returned a placeholder question")
    return question


def coerce_score(value: Any) -> int:
    """Numeric score clamped to 0..100 and rounded half-up."""
    if isinstance(value, bool):
        raise ValueError("Score must be a number")
    if isinstance(value, str):
        try:
            value = float(value.strip().rstrip("%"))
        except ValueError as exc:
            raise ValueError("Score must be a number") from exc
    # Ints are clamped as ints; huge ones do not fit in a float.
    if isinstance(value, int):
        return max(0, min(100, value))
    if not isinstance(value, float) or math.isnan(value):
        raise ValueError("Score must be a number")
    clamped = min(100.0, max(0.0, value))
    return int(math.floor(clamped + 0.5))


def _feedback_items(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        raise ValueError("Feedback must be a list")

    items: list[str] = []
    for entry in value:
        if isinstance(entry, dict):
            text = "; ".join(f"{key}: {val}" for key, val in entry.items() if str(val).strip())
        else:
            text = str(entry)
        text = text.strip()
        if text:
            items.append(text)
    return items


def extract_review(payload: Any, *, require_transcript: bool = False) -> ReviewResult:
    if not isinstance(payload, dict):
        raise ValueError("Model returned unexpected review format")
    if "score" not in payload:
        raise ValueError("Model review is missing a score")

    transcript = None
    if require_transcript:
        transcript = payload.get("transcript")
        if not isinstance(transcript, str) or not transcript.strip():
            raise ValueError("Model review is missing a transcript")
        transcript = transcript.strip()

    return ReviewResult(
        score=coerce_score(payload["score"]),
        feedback=_feedback_items(payload.get("feedback")),
        transcript=transcript,
    )


class InterviewService:
    def __init__(
        self,
        store: SessionStore,
        client: AIClient | None,
        fast_resolver: ModelResolver | None = None,
        default_resolver: ModelResolver | None = None,
        *,
        timeout_s: float = 60.0,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        feedback_source: str = "model",
        unavailable_reason: str = "AI provider not configured",
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ):
        self.store = store
        self._client = client
        self._fast_resolver = fast_resolver
        self._default_resolver = default_resolver
        self._timeout_s = timeout_s
        self._max_attempts = max_attempts
        self._base_delay = base_delay
        self._feedback_source = feedback_source
        self._unavailable_reason = unavailable_reason
        self._sleep = sleep

    @property
    def ai_configured(self) -> bool:
        return self._client is not None

    @property
    def provider(self) -> str | None:
        return getattr(self._client, "provider", None)

    @property
    def unavailable_reason(self) -> str:
        return self._unavailable_reason

    def _require_client(self) -> AIClient:
        if self._client is None:
            raise AIUnavailableError(self._unavailable_reason)
        return self._client

    def require_session(self, session_id: str) -> InterviewSession:
        session = self.store.get(session_id)
        if session is None:
            raise SessionNotFoundError()
        return session

    def create_session(self, resume_text: str) -> str:
        return self.store.create(resume_text)

    async def _resolve(self, resolver: ModelResolver | None) -> str:
        self._require_client()
        if resolver is None:
            raise AIUnavailableError(self._unavailable_reason)
        try:
            return await resolver.resolve()
        except AIUnavailableError as exc:
            provider = (self.provider or "AI").capitalize()
            raise AIUnavailableError(f"{provider} model not available: {exc}") from exc

    async def _generate(self, model: str, prompt: str, **kwargs: Any) -> str:
        client = self._require_client()
        return await retry_with_backoff(
            lambda: client.generate(model, prompt, **kwargs),
            self._max_attempts,
            self._base_delay,
            sleep=self._sleep,
        )

    async def _bounded(self, work: Awaitable[Any], failure_prefix: str) -> Any:
        try:
            return await asyncio.wait_for(work, timeout=self._timeout_s)
        except asyncio.TimeoutError as exc:
            raise AIUnavailableError(
                f"{failure_prefix}: model request timed out after {self._timeout_s:g}s"
            ) from exc
        except AIProviderError as exc:
            raise AIUnavailableError(f"{failure_prefix}: {exc}") from exc
        except ValueError as exc:
            raise ModelOutputError(f"{failure_prefix}: {exc}") from exc

    async def generate_question(self, session_id: str, company: str, role: str) -> str:
        session = self.store.update(session_id, company=company, role=role)
        self._require_client()
        started = time.perf_counter()

        async def _work() -> str:
            model = await self._resolve(self._fast_resolver)
            raw = await self._generate(
                model,
                prompts.build_question_prompt(session.resume_text, company, role),
                temperature=0.7,
                max_output_tokens=500,
            )

            async def _fixer(text: str) -> str:
                return await self._generate(
                    model,
                    prompts.build_question_fixer_prompt(text),
                    temperature=0.1,
                    max_output_tokens=500,
                )

            return await parse_json_with_fixer(raw, _fixer, validate=extract_question)

        question = await self._bounded(_work(), "Failed to generate questions")
        if self.store.get(session_id) is not None:
            self.store.update(session_id, questions=[question])

        logger.info(
            json.dumps(
                {
                    "event": "question_generated",
                    "provider": self.provider,
                    "question_len": len(question),
                    "duration_ms": int((time.perf_counter() - started) * 1000),
                }
            )
        )
        return question

    def _final_feedback(self, review: ReviewResult) -> list[str]:
        if self._feedback_source == "bracket" or not review.feedback:
            return feedback_for_score(review.score)
        return review.feedback

    def _record(self, session_id: str, question: str, review: ReviewResult) -> None:
        if self.store.get(session_id) is None:
            logger.info("review_not_recorded reason=session_expired")
            return
        self.store.append_review(
            session_id,
            ReviewRecord(
                question=question,
                score=review.score,
                feedback=list(review.feedback),
                transcript=review.transcript,
            ),
        )

    async def review_answer(self, session_id: str, question: str, answer: str) -> ReviewResult:
        session = self.require_session(session_id)
        self._require_client()
        started = time.perf_counter()

        async def _work() -> ReviewResult:
            model = await self._resolve(self._default_resolver)
            raw = await self._generate(
                model,
                prompts.build_review_prompt(
                    question=question,
                    answer=answer,
                    company=session.company,
                    role=session.role,
                    resume_text=session.resume_text,
                ),
                temperature=0.3,
                max_output_tokens=800,
            )

            async def _fixer(text: str) -> str:
                return await self._generate(
                    model,
                    prompts.build_review_fixer_prompt(text),
                    temperature=0.1,
                    max_output_tokens=800,
                )

            return await parse_json_with_fixer(raw, _fixer, validate=extract_review)

        review = await self._bounded(_work(), "Failed to analyze answer")
        result = ReviewResult(score=review.score, feedback=self._final_feedback(review))
        self._record(session_id, question, result)

        logger.info(
            json.dumps(
                {
                    "event": "answer_reviewed",
                    "provider": self.provider,
                    "score": result.score,
                    "answer_len": len(answer),
                    "duration_ms": int((time.perf_counter() - started) * 1000),
                }
            )
        )
        return result

    async def review_audio_answer(
        self,
        session_id: str,
        question: str,
        audio: bytes,
        mime_type: str,
    ) -> ReviewResult:
        session = self.require_session(session_id)
        client = self._require_client()
        if not getattr(client, "supports_attachments", False):
            raise InvalidRequestError(
                f"Audio answers are not supported by the {(self.provider or 'AI').capitalize()} provider"
            )
        started = time.perf_counter()

        async def _work() -> ReviewResult:
            model = await self._resolve(self._default_resolver)
            raw = await self._generate(
                model,
                prompts.build_audio_review_prompt(
                    question=question,
                    company=session.company,
                    role=session.role,
                    resume_text=session.resume_text,
                ),
                attachments=[Attachment(mime_type=mime_type, data=audio)],
            )

            async def _fixer(text: str) -> str:
                return await self._generate(
                    model,
                    prompts.build_review_fixer_prompt(text, with_transcript=True),
                    temperature=0.1,
                )

            return await parse_json_with_fixer(
                raw,
                _fixer,
                validate=lambda payload: extract_review(payload, require_transcript=True),
            )

        review = await self._bounded(_work(), "Failed to analyze answer")
        result = ReviewResult(
            score=review.score,
            feedback=self._final_feedback(review),
            transcript=review.transcript,
        )
        self._record(session_id, question, result)

        logger.info(
            json.dumps(
                {
                    "event": "audio_answer_reviewed",
                    "provider": self.provider,
                    "score": result.score,
                    "audio_bytes": len(audio),
                    "duration_ms": int((time.perf_counter() - started) * 1000),
                }
            )
        )
        return result

    async def probe_models(self) -> list[dict[str, Any]]:
        self._require_client()
        if self._default_resolver is None:
            raise AIUnavailableError(self._unavailable_reason)
        return await self._default_resolver.probe_all()


@lru_cache(maxsize=1)
def get_interview_service() -> InterviewService:
    store = get_session_store()
    common = {
        "timeout_s": settings.ai_timeout_s,
        "max_attempts": settings.ai_retry_max_attempts,
        "base_delay": settings.ai_retry_base_delay_s,
        "feedback_source": settings.feedback_source,
    }
    try:
        client = get_ai_client()
    except AIUnavailableError as exc:
        logger.warning("[WARN] %s; AI endpoints will return 500.", exc)
        return InterviewService(store, None, unavailable_reason=str(exc), **common)

    cfg = load_ai_config()
    resolver_kwargs = {
        "max_attempts": settings.ai_retry_max_attempts,
        "base_delay": settings.ai_retry_base_delay_s,
    }
    return InterviewService(
        store,
        client,
        ModelResolver(client, cfg.fast_models, label="fast", **resolver_kwargs),
        ModelResolver(client, cfg.default_models, label="default", **resolver_kwargs),
        **common,
    )
