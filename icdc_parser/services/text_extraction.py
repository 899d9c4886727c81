"""
Text extraction service for ICDC invoice PDFs.

Depot printers emit text-layer PDFs; scanned copies fall back to OCR.
"""

import io
import logging
from typing import List

import PyPDF2
import pytesseract
from pdf2image import convert_from_bytes
from PIL import Image, ImageEnhance

from icdc_parser.config import settings

logger = logging.getLogger(__name__)

# Below this many characters the PDF is treated as scanned
MIN_TEXT_LAYER_CHARS = 50

# Invoice tables are dense; render above the pdf2image default
OCR_DPI = 300

TESSERACT_CONFIG = r'--oem 3 --psm 6'


class TextExtractionService:
    """Service for extracting raw text from invoice PDFs."""

    def __init__(self):
        """Initialize OCR with the configured Tesseract binary."""
        pytesseract.pytesseract.tesseract_cmd = settings.TESSERACT_CMD

    def extract_text_from_pdf(self, pdf_data: bytes) -> str:
        """
        Extract text from a PDF file.
        First tries the text layer, then falls back to OCR.

        Args:
            pdf_data: Raw PDF bytes

        Returns:
            Extracted text, empty if nothing could be read
        """
        try:
            text = self._extract_pdf_text_direct(pdf_data)

            if len(text.strip()) < MIN_TEXT_LAYER_CHARS:
                logger.info("PDF appears to be image-based, using OCR")
                text = self._extract_pdf_text_ocr(pdf_data)

            return text.strip()

        except Exception:
            logger.warning("Error extracting text from PDF", exc_info=True)
            return ""

    def _extract_pdf_text_direct(self, pdf_data: bytes) -> str:
        try:
            reader = PyPDF2.PdfReader(io.BytesIO(pdf_data))
            return "\n".join((page.extract_text() or "") for page in reader.pages)
        except PyPDF2.errors.PdfReadError:
            logger.warning("Could not read PDF text layer", exc_info=True)
            return ""

    def _extract_pdf_text_ocr(self, pdf_data: bytes) -> str:
        images: List[Image.Image] = convert_from_bytes(pdf_data, dpi=OCR_DPI)

        pages = []
        for image in images:
            image = self._preprocess_image(image)
            pages.append(pytesseract.image_to_string(image, config=TESSERACT_CONFIG))

        logger.debug("OCR read %d page(s)", len(pages))
        return "\n".join(pages)

    def _preprocess_image(self, image: Image.Image) -> Image.Image:
        """Grayscale and boost contrast; faded carbon copies OCR poorly."""
        if image.mode != 'RGB':
            image = image.convert('RGB')
        image = image.convert('L')
        return ImageEnhance.Contrast(image).enhance(2.0)
