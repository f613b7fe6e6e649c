from __future__ import annotations

import logging
from io import BytesIO

from pypdf import PdfReader
from pypdf.errors import PyPdfError

from .models import ParsedPdf

logger = logging.getLogger(__name__)

PDF_MAGIC = b"%PDF-"


class PdfExtractionError(RuntimeError):
    pass


def looks_like_pdf(content: bytes) -> bool:
    # Some generators emit a few junk bytes before the header; readers tolerate up to 1 KB.
    return PDF_MAGIC in content[:1024]


def extract_pdf_text(content: bytes) -> ParsedPdf:
    warnings: list[str] = []
    try:
        reader = PdfReader(BytesIO(content))
        text_parts: list[str] = []
        for index, page in enumerate(reader.pages, start=1):
            try:
                page_text = (page.extract_text() or "").strip()
            except (PyPdfError, KeyError, ValueError) as exc:
                warnings.append(f"Page {index} could not be read: {exc}")
                continue
            if page_text:
                text_parts.append(page_text)
        pages = len(reader.pages)
    except (PyPdfError, ValueError, OSError) as exc:
        raise PdfExtractionError(f"PDF parsing failed: {exc}") from exc

    if warnings:
        logger.info("pdf_extract_warnings count=%s", len(warnings))
    return ParsedPdf(text="\n".join(text_parts).strip(), pages=pages, parsing_warnings=warnings)
