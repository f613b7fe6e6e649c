from __future__ import annotations

from pydantic import BaseModel, Field


class ParsedPdf(BaseModel):
    text: str
    pages: int | None = None
    parsing_warnings: list[str] = Field(default_factory=list)
