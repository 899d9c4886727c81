"""
PDF text extraction: text layer first, OCR for scanned invoices.
"""

from unittest.mock import MagicMock, patch

import PyPDF2
import pytesseract
import pytest
from PIL import Image

from icdc_parser.services import text_extraction
from icdc_parser.services.text_extraction import MIN_TEXT_LAYER_CHARS, TextExtractionService

from .samples import FULL_INVOICE


def _reader(*page_texts):
    reader = MagicMock()
    reader.pages = [MagicMock(**{"extract_text.return_value": text}) for text in page_texts]
    return reader


@pytest.fixture
def ocr():
    with patch.object(text_extraction, "convert_from_bytes") as render, \
            patch.object(pytesseract, "image_to_string") as image_to_string:
        render.return_value = [Image.new("RGB", (20, 20), "white")]
        image_to_string.return_value = "OCR INVOICE TEXT"
        yield render, image_to_string


class TestTextExtractionService:

    def test_text_layer_used_when_long_enough(self, ocr):
        render, _ = ocr
        assert len(FULL_INVOICE) >= MIN_TEXT_LAYER_CHARS

        with patch.object(PyPDF2, "PdfReader", return_value=_reader(FULL_INVOICE)):
            text = TextExtractionService().extract_text_from_pdf(b"%PDF-1.4")

        assert text == FULL_INVOICE
        render.assert_not_called()

    def test_pages_joined_in_order(self, ocr):
        first = "A" * MIN_TEXT_LAYER_CHARS
        with patch.object(PyPDF2, "PdfReader", return_value=_reader(first, "SECOND PAGE")):
            text = TextExtractionService().extract_text_from_pdf(b"%PDF-1.4")

        assert text == f"{first}\nSECOND PAGE"

    def test_short_text_layer_falls_back_to_ocr(self, ocr):
        render, image_to_string = ocr

        with patch.object(PyPDF2, "PdfReader", return_value=_reader("ICDC", None)):
            text = TextExtractionService().extract_text_from_pdf(b"%PDF-1.4")

        assert text == "OCR INVOICE TEXT"
        render.assert_called_once()
        image_to_string.assert_called_once()
        # Preprocessed to grayscale before OCR
        assert image_to_string.call_args[0][0].mode == "L"

    def test_unreadable_text_layer_falls_back_to_ocr(self, ocr):
        error = PyPDF2.errors.PdfReadError("EOF marker not found")
        with patch.object(PyPDF2, "PdfReader", side_effect=error):
            text = TextExtractionService().extract_text_from_pdf(b"not a pdf")

        assert text == "OCR INVOICE TEXT"

    def test_ocr_failure_returns_empty_text(self, ocr):
        render, _ = ocr
        render.side_effect = RuntimeError("poppler not installed")

        with patch.object(PyPDF2, "PdfReader", return_value=_reader("")):
            text = TextExtractionService().extract_text_from_pdf(b"%PDF-1.4")

        assert text == ""
