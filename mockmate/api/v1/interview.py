import asyncio
import json
import logging

from fastapi import APIRouter, Depends, File, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError
from starlette.datastructures import UploadFile as StarletteUploadFile

from mockmate.core.config import settings
from mockmate.core.errors import InvalidRequestError, MockMateError
from mockmate.core.rate_limit import rate_limit
from mockmate.parsing.pdf import PdfExtractionError, extract_pdf_text, looks_like_pdf
from mockmate.schemas.interview import (
    AnswerRequest,
    AudioAnswerFields,
    AudioReviewResponse,
    GenerateQuestionsRequest,
    GenerateQuestionsResponse,
    ReviewResponse,
    UploadResumeResponse,
)
from mockmate.services.interview_service import InterviewService, get_interview_service

logger = logging.getLogger("mockmate.api")
router = APIRouter()

RESUME_PREVIEW_CHARS = 600
PDF_CONTENT_TYPE = "application/pdf"


def _too_large_message() -> str:
    return f"File too large. Maximum allowed size is {settings.max_upload_bytes // (1024 * 1024)} MB."


async def _read_limited(file: StarletteUploadFile) -> bytes:
    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = await file.read(1024 * 64)
        if not chunk:
            break
        total += len(chunk)
        if total > settings.max_upload_bytes:
            raise InvalidRequestError(_too_large_message())
        chunks.append(chunk)
    return b"".join(chunks)


def _validate(model: type[BaseModel], data: dict):
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise RequestValidationError(exc.errors()) from exc


@router.post("/upload-resume", response_model=UploadResumeResponse)
@rate_limit(settings.upload_rate_limit)
async def upload_resume(
    request: Request,
    resume: UploadFile | None = File(default=None),
    service: InterviewService = Depends(get_interview_service),
):
    _ = request
    if resume is None:
        raise InvalidRequestError("Missing file field: resume")
    if (resume.content_type or "").lower() != PDF_CONTENT_TYPE:
        raise InvalidRequestError("PDF required")

    content = await _read_limited(resume)
    if not looks_like_pdf(content):
        raise InvalidRequestError("PDF required")

    try:
        parsed = await asyncio.to_thread(extract_pdf_text, content)
    except PdfExtractionError as exc:
        logger.warning("resume_parse_failed: %s", exc)
        raise MockMateError("Resume parsing failed") from exc

    if not parsed.text:
        raise InvalidRequestError("Could not extract text from PDF")

    session_id = service.create_session(parsed.text)
    logger.info(
        json.dumps(
            {
                "event": "resume_uploaded",
                "pages": parsed.pages,
                "resume_chars": len(parsed.text),
                "upload_bytes": len(content),
            }
        )
    )
    return UploadResumeResponse(
        session_id=session_id,
        resume_preview=parsed.text[:RESUME_PREVIEW_CHARS],
        pages=parsed.pages,
    )


@router.post("/generate-questions", response_model=GenerateQuestionsResponse)
@rate_limit()
async def generate_questions(
    request: Request,
    payload: GenerateQuestionsRequest,
    service: InterviewService = Depends(get_interview_service),
):
    _ = request
    question = await service.generate_question(str(payload.session_id), payload.company, payload.role)
    return GenerateQuestionsResponse(question=question, questions=[question])


async def _answer_audio(request: Request, service: InterviewService) -> AudioReviewResponse:
    form = await request.form()
    fields = _validate(
        AudioAnswerFields,
        {"sessionId": form.get("sessionId"), "question": form.get("question")},
    )
    session_id = str(fields.session_id)
    service.require_session(session_id)

    audio = form.get("audio")
    if not isinstance(audio, StarletteUploadFile):
        raise InvalidRequestError("Missing file field: audio")
    mime_type = (audio.content_type or "").lower()
    if not mime_type.startswith("audio/"):
        raise InvalidRequestError("Audio file required")

    content = await _read_limited(audio)
    if not content:
        raise InvalidRequestError("Audio file is empty")

    review = await service.review_audio_answer(session_id, fields.question, content, mime_type)
    return AudioReviewResponse(
        transcript=review.transcript or "",
        score=review.score,
        feedback=review.feedback,
    )


@router.post("/answer", response_model=None)
@rate_limit()
async def answer(
    request: Request,
    service: InterviewService = Depends(get_interview_service),
):
    content_type = request.headers.get("content-type", "").lower()
    if content_type.startswith("multipart/form-data"):
        return await _answer_audio(request, service)

    try:
        body = await request.json()
    except ValueError as exc:
        raise InvalidRequestError("Request body must be JSON") from exc
    if not isinstance(body, dict):
        raise InvalidRequestError("Request body must be a JSON object")

    payload = _validate(AnswerRequest, body)
    review = await service.review_answer(str(payload.session_id), payload.question, payload.answer)
    return ReviewResponse(score=review.score, feedback=review.feedback)
