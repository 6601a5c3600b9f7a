from kpbridge.extraction.pdf_text import (
    MAX_EXTRACTED_TEXT_BYTES,
    PdfTextExtractor,
    TextExtractor,
    ensure_text_within_limit,
)

__all__ = ["MAX_EXTRACTED_TEXT_BYTES", "PdfTextExtractor", "TextExtractor", "ensure_text_within_limit"]
