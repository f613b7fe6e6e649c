from dataclasses import dataclass
from typing import Protocol, Sequence


@dataclass(frozen=True)
class Attachment:
    mime_type: str
    data: bytes


class AIProviderError(RuntimeError):
    """Provider SDK failure with the upstream HTTP status preserved for retry decisions."""

    def __init__(self, message: str, *, status: int | None = None):
        super().__init__(message)
        self.status = status


class AIClient(Protocol):
    provider: str
    supports_attachments: bool

    async def generate(
        self,
        model: str,
        prompt: str,
        *,
        temperature: float | None = None,
        max_output_tokens: int | None = None,
        attachments: Sequence[Attachment] = (),
    ) -> str: ...
