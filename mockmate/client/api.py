"""HTTP client for the MockMate backend used by the practice wizard."""
from __future__ import annotations

import mimetypes
from dataclasses import dataclass, field
from pathlib import Path

import httpx

UPLOAD_TIMEOUT_S = 60.0
JSON_TIMEOUT_S = 30.0


class ClientError(RuntimeError):
    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class UploadResult:
    session_id: str
    resume_preview: str = ""
    pages: int | None = None


@dataclass(frozen=True)
class QuestionsResult:
    question: str
    questions: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class AnswerResult:
    score: int
    feedback: list[str] = field(default_factory=list)
    transcript: str | None = None


class MockMateClient:
    def __init__(self, base_url: str = "http://localhost:5001", *, transport: httpx.BaseTransport | None = None):
        self._client = httpx.Client(base_url=base_url.rstrip("/"), transport=transport)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "MockMateClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _post(self, path: str, *, timeout: float, **kwargs) -> dict:
        try:
            response = self._client.post(path, timeout=timeout, **kwargs)
        except httpx.TimeoutException as exc:
            raise ClientError(f"Request timeout after {int(timeout * 1000)}ms") from exc
        except httpx.HTTPError as exc:
            raise ClientError(f"Could not reach the MockMate backend: {exc}") from exc

        if response.status_code >= 400:
            message = f"HTTP {response.status_code}: {response.reason_phrase}"
            try:
                error = response.json().get("error")
            except (ValueError, AttributeError):
                error = None
            raise ClientError(error or message, status_code=response.status_code)
        return response.json()

    def upload_resume(self, path: str | Path) -> UploadResult:
        file_path = Path(path)
        if not file_path.is_file():
            raise ClientError("File is required")
        mime_type = mimetypes.guess_type(file_path.name)[0]
        if mime_type != "application/pdf":
            raise ClientError("PDF required")

        with file_path.open("rb") as handle:
            data = self._post(
                "/api/upload-resume",
                timeout=UPLOAD_TIMEOUT_S,
                files={"resume": (file_path.name, handle, "application/pdf")},
            )
        return UploadResult(
            session_id=data["sessionId"],
            resume_preview=data.get("resumePreview") or "",
            pages=data.get("pages"),
        )

    def generate_questions(self, session_id: str, company: str, role: str) -> QuestionsResult:
        if not session_id or not company or not role:
            raise ClientError("sessionId, company, and role are required")
        data = self._post(
            "/api/generate-questions",
            timeout=JSON_TIMEOUT_S,
            json={"sessionId": session_id, "company": company, "role": role},
        )
        questions = data.get("questions") or ([data["question"]] if data.get("question") else [])
        return QuestionsResult(question=data.get("question") or (questions[0] if questions else ""), questions=questions)

    def submit_answer(self, session_id: str, question: str, answer: str) -> AnswerResult:
        if not session_id or not question or not answer:
            raise ClientError("sessionId, question, and answer are required")
        data = self._post(
            "/api/answer",
            timeout=JSON_TIMEOUT_S,
            json={"sessionId": session_id, "question": question, "answer": answer},
        )
        return AnswerResult(score=int(data.get("score") or 0), feedback=list(data.get("feedback") or []))

    def submit_audio_answer(self, session_id: str, question: str, audio_path: str | Path) -> AnswerResult:
        file_path = Path(audio_path)
        if not file_path.is_file():
            raise ClientError("Audio file is required")
        mime_type = mimetypes.guess_type(file_path.name)[0] or "audio/webm"
        if not mime_type.startswith("audio/"):
            raise ClientError("Audio file required")

        with file_path.open("rb") as handle:
            data = self._post(
                "/api/answer",
                timeout=UPLOAD_TIMEOUT_S,
                data={"sessionId": session_id, "question": question},
                files={"audio": (file_path.name, handle, mime_type)},
            )
        return AnswerResult(
            score=int(data.get("score") or 0),
            feedback=list(data.get("feedback") or []),
            transcript=data.get("transcript"),
        )
