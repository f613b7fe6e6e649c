from __future__ import annotations

import sys
from pathlib import Path
from typing import Sequence

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from mockmate.ai.model_resolver import PROBE_PROMPT, ModelResolver  # noqa: E402
from mockmate.ai.types import AIProviderError, Attachment  # noqa: E402
from mockmate.core.session_store import InMemorySessionStore  # noqa: E402
from mockmate.services.interview_service import InterviewService  # noqa: E402


async def no_sleep(_delay: float) -> None:
    return None


class FakeAIClient:
    """Replays queued replies; probe prompts always succeed unless the model is listed in ``broken``."""

    provider = "gemini"

    def __init__(self, replies: Sequence[object] = (), *, broken: Sequence[str] = (), supports_attachments: bool = True):
        self.replies = list(replies)
        self.broken = set(broken)
        self.supports_attachments = supports_attachments
        self.calls: list[dict] = []

    @property
    def prompt_calls(self) -> list[dict]:
        return [call for call in self.calls if call["prompt"] != PROBE_PROMPT]

    async def generate(
        self,
        model: str,
        prompt: str,
        *,
        temperature: float | None = None,
        max_output_tokens: int | None = None,
        attachments: Sequence[Attachment] = (),
    ) -> str:
        self.calls.append(
            {
                "model": model,
                "prompt": prompt,
                "temperature": temperature,
                "max_output_tokens": max_output_tokens,
                "attachments": list(attachments),
            }
        )
        if model in self.broken:
            raise AIProviderError(f"404 NOT_FOUND. models/{model} is not found", status=404)
        if prompt == PROBE_PROMPT:
            return "pong"
        if not self.replies:
            raise AssertionError("FakeAIClient ran out of replies")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return str(reply)


def build_service(client: FakeAIClient | None, *, feedback_source: str = "model", timeout_s: float = 5.0) -> InterviewService:
    store = InMemorySessionStore(ttl_seconds=3600)
    if client is None:
        return InterviewService(store, None, unavailable_reason="Gemini not configured")
    return InterviewService(
        store,
        client,
        ModelResolver(client, ["gemini-fast-test"], label="fast", sleep=no_sleep),
        ModelResolver(client, ["gemini-default-test"], label="default", sleep=no_sleep),
        timeout_s=timeout_s,
        feedback_source=feedback_source,
        sleep=no_sleep,
    )


def _pdf_escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")


def build_text_pdf(lines: Sequence[str]) -> bytes:
    """Minimal single-page PDF with one Helvetica text line per entry."""
    ops = ["BT", "/F1 11 Tf", "14 TL", "72 740 Td"]
    for line in lines:
        ops.append(f"({_pdf_escape(line)}) Tj T*")
    ops.append("ET")
    stream = "\n".join(ops).encode("latin-1")

    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        (
            b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] /Contents 4 0 R "
            b"/Resources << /Font << /F1 5 0 R >> >> >>"
        ),
        b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica /Encoding /WinAnsiEncoding >>",
    ]

    out = bytearray(b"%PDF-1.4\n")
    offsets: list[int] = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += b"%d 0 obj\n" % number + body + b"\nendobj\n"

    xref_offset = len(out)
    out += b"xref\n0 %d\n" % (len(objects) + 1)
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += b"%010d 00000 n \n" % offset
    out += b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (len(objects) + 1, xref_offset)
    return bytes(out)


SAMPLE_RESUME_LINES = [
    "Jordan Lee - Senior Backend Engineer",
    "Built Python microservices for payments used by 1.2M users.",
    "Reduced API latency by 38% and cut infra costs by 42,000 USD per year.",
    "Led migration from a monolith to an event-driven architecture.",
]
