"""Tests for PDF text extraction and the 4 MiB content limit."""

from __future__ import annotations

import io
import unittest
from unittest.mock import MagicMock, patch

from kpbridge.errors import ExtractedTextTooLargeError
from kpbridge.extraction.pdf_text import MAX_EXTRACTED_TEXT_BYTES, PdfTextExtractor, ensure_text_within_limit


def _make_pdf(texts: list[str]) -> bytes:
    """Minimal PDF with one Helvetica text line per page."""
    page_ids = [4 + 2 * i for i in range(len(texts))]
    objs: dict[int, str] = {
        1: "<< /Type /Catalog /Pages 2 0 R >>",
        2: f"<< /Type /Pages /Kids [{' '.join(f'{p} 0 R' for p in page_ids)}] /Count {len(texts)} >>",
        3: "<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    }
    for pid, text in zip(page_ids, texts):
        stream = f"BT /F1 12 Tf 72 720 Td ({text}) Tj ET"
        objs[pid] = (
            "<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
            f"/Resources << /Font << /F1 3 0 R >> >> /Contents {pid + 1} 0 R >>"
        )
        objs[pid + 1] = f"<< /Length {len(stream)} >>\nstream\n{stream}\nendstream"

    out = b"%PDF-1.4\n"
    offsets = {}
    for oid in sorted(objs):
        offsets[oid] = len(out)
        out += f"{oid} 0 obj\n{objs[oid]}\nendobj\n".encode("latin-1")
    xref = len(out)
    size = max(objs) + 1
    out += f"xref\n0 {size}\n0000000000 65535 f \n".encode("ascii")
    for oid in range(1, size):
        out += f"{offsets[oid]:010d} 00000 n \n".encode("ascii")
    out += f"trailer\n<< /Size {size} /Root 1 0 R >>\nstartxref\n{xref}\n%%EOF\n".encode("ascii")
    return out


def _fake_reader(*page_texts: str) -> MagicMock:
    reader = MagicMock()
    pages = []
    for text in page_texts:
        page = MagicMock()
        page.extract_text.return_value = text
        pages.append(page)
    reader.pages = pages
    return reader


# ===========================================================================
# 1. Size limit
# ===========================================================================

class TestTextLimit(unittest.TestCase):
    def test_exactly_four_mib_is_accepted(self):
        text = "a" * MAX_EXTRACTED_TEXT_BYTES
        self.assertIs(ensure_text_within_limit(text), text)

    def test_one_byte_over_is_rejected(self):
        with self.assertRaises(ExtractedTextTooLargeError):
            ensure_text_within_limit("a" * (MAX_EXTRACTED_TEXT_BYTES + 1))

    def test_limit_is_measured_in_utf8_bytes(self):
        two_byte = "é" * (MAX_EXTRACTED_TEXT_BYTES // 2)
        ensure_text_within_limit(two_byte)
        with self.assertRaises(ExtractedTextTooLargeError):
            ensure_text_within_limit(two_byte + "a")

    def test_error_is_a_value_error(self):
        self.assertTrue(issubclass(ExtractedTextTooLargeError, ValueError))


# ===========================================================================
# 2. Extractor
# ===========================================================================

class TestPdfTextExtractor(unittest.TestCase):
    def test_reads_pages_in_order(self):
        text = PdfTextExtractor().extract(io.BytesIO(_make_pdf(["Hello", "World"])))
        self.assertIn("Hello", text)
        self.assertIn("World", text)
        self.assertLess(text.index("Hello"), text.index("World"))
        self.assertTrue(text.endswith("\n"))

    def test_each_page_followed_by_newline(self):
        with patch("kpbridge.extraction.pdf_text.PdfReader", return_value=_fake_reader("one", "", "three")):
            text = PdfTextExtractor().extract(io.BytesIO(b"%PDF"))
        self.assertEqual(text, "one\n\nthree\n")

    def test_page_without_text_layer(self):
        with patch("kpbridge.extraction.pdf_text.PdfReader", return_value=_fake_reader(None)):
            self.assertEqual(PdfTextExtractor().extract(io.BytesIO(b"%PDF")), "\n")

    def test_output_at_limit_passes(self):
        page = "a" * (MAX_EXTRACTED_TEXT_BYTES - 1)
        with patch("kpbridge.extraction.pdf_text.PdfReader", return_value=_fake_reader(page)):
            text = PdfTextExtractor().extract(io.BytesIO(b"%PDF"))
        self.assertEqual(len(text.encode("utf-8")), MAX_EXTRACTED_TEXT_BYTES)

    def test_output_over_limit_fails(self):
        page = "a" * MAX_EXTRACTED_TEXT_BYTES
        with patch("kpbridge.extraction.pdf_text.PdfReader", return_value=_fake_reader(page)):
            with self.assertRaises(ExtractedTextTooLargeError):
                PdfTextExtractor().extract(io.BytesIO(b"%PDF"))

    def test_invalid_pdf_raises(self):
        with self.assertRaises(Exception):
            PdfTextExtractor().extract(io.BytesIO(b"this is not a pdf"))

    def test_none_stream_rejected(self):
        with self.assertRaises(ValueError):
            PdfTextExtractor().extract(None)


if __name__ == "__main__":
    unittest.main()
