# File: clients/pdf_client.py
import asyncio
import logging
from typing import Optional, Tuple

import fitz

from utils.sanitization import clean_text, normalize_whitespace

logger = logging.getLogger(__name__)

MAX_PDF_BYTES = 10 * 1024 * 1024


class PDFExtractionError(ValueError):
    """The uploaded bytes are not a readable PDF or contain no text."""


def extract_text_from_pdf_bytes(pdf_bytes: bytes) -> Tuple[str, Optional[str]]:
    """
    Returns (text, title). Page breaks become blank lines so heading
    anchors stay at line starts. Title comes from PDF metadata when set.
    """
    if not pdf_bytes:
        raise PDFExtractionError("Empty file")

    try:
        doc = fitz.open(stream=pdf_bytes, filetype="pdf")
    except Exception as e:
        logger.warning(f"PDF open failed: {e}")
        raise PDFExtractionError("File is not a readable PDF") from e

    try:
        text = "\n\n".join(page.get_text("text") for page in doc)
        title = clean_text((doc.metadata or {}).get("title")) or None
    finally:
        doc.close()

    text = normalize_whitespace(text)
    if not text:
        raise PDFExtractionError("PDF contains no extractable text")

    logger.info(f"📄 Extracted {len(text)} chars from PDF")
    return text, title


async def extract_pdf_text(pdf_bytes: bytes) -> Tuple[str, Optional[str]]:
    return await asyncio.to_thread(extract_text_from_pdf_bytes, pdf_bytes)
