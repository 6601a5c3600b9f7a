"""PDF text extraction for external item content.

Graph rejects external item content above 4 MiB, so oversized text is an
error rather than something to truncate.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from typing import BinaryIO, Protocol

from pypdf import PdfReader

from kpbridge.errors import ExtractedTextTooLargeError

logger = logging.getLogger(__name__)

MAX_EXTRACTED_TEXT_BYTES = 4 * 1024 * 1024

# streams larger than this are buffered on disk
_SPOOL_MAX_MEMORY = 8 * 1024 * 1024


class TextExtractor(Protocol):
    def extract(self, stream: BinaryIO) -> str: ...


def ensure_text_within_limit(text: str) -> str:
    size = len(text.encode("utf-8"))
    if size > MAX_EXTRACTED_TEXT_BYTES:
        raise ExtractedTextTooLargeError(
            f"Extracted text is {size} bytes; maximum external item content is {MAX_EXTRACTED_TEXT_BYTES} bytes"
        )
    return text


class PdfTextExtractor:
    """Reads every page of a PDF stream and joins the page texts line by line."""

    def extract(self, stream: BinaryIO) -> str:
        if stream is None:
            raise ValueError("stream is required")

        logger.debug("Buffering PDF stream for parsing")
        with tempfile.SpooledTemporaryFile(max_size=_SPOOL_MAX_MEMORY) as buffer:
            shutil.copyfileobj(stream, buffer)
            buffer.seek(0)
            try:
                reader = PdfReader(buffer)
                parts = [(page.extract_text() or "") + "\n" for page in reader.pages]
            except Exception:
                logger.exception("Failed to extract text from PDF")
                raise

        text = "".join(parts)
        try:
            return ensure_text_within_limit(text)
        except ExtractedTextTooLargeError:
            logger.error("Extracted text exceeds 4MB")
            raise
