from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class UploadResumeResponse(_CamelModel):
    session_id: str = Field(alias="sessionId")
    resume_preview: str = Field(alias="resumePreview")
    pages: int | None = None


class GenerateQuestionsRequest(_CamelModel):
    session_id: UUID = Field(alias="sessionId")
    company: str = Field(min_length=1, max_length=120)
    role: str = Field(min_length=1, max_length=120)

    @field_validator("company", "role", mode="before")
    @classmethod
    def _strip_text(cls, value):
        return value.strip() if isinstance(value, str) else value


class GenerateQuestionsResponse(BaseModel):
    question: str
    questions: list[str]


class AnswerRequest(_CamelModel):
    session_id: UUID = Field(alias="sessionId")
    question: str = Field(min_length=10, max_length=1000)
    answer: str = Field(min_length=1, max_length=5000)

    @field_validator("question", "answer", mode="before")
    @classmethod
    def _strip_text(cls, value):
        return value.strip() if isinstance(value, str) else value


class AudioAnswerFields(_CamelModel):
    session_id: UUID = Field(alias="sessionId")
    question: str = Field(min_length=10, max_length=1000)

    @field_validator("question", mode="before")
    @classmethod
    def _strip_text(cls, value):
        return value.strip() if isinstance(value, str) else value


class ReviewResponse(BaseModel):
    score: int = Field(ge=0, le=100)
    feedback: list[str]


class AudioReviewResponse(ReviewResponse):
    transcript: str


class HealthResponse(BaseModel):
    status: str
    timestamp: str
