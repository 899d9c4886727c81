"""
Invoice API router: parse ICDC invoice text or uploaded PDFs.
"""

import json
import logging
from typing import List, Optional

from fastapi import APIRouter, File, Form, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError

from icdc_parser.config import settings
from icdc_parser.models.invoice import MasterBrandRecord, ParseRequest, ParseResult
from icdc_parser.services.catalog import CatalogLoadError, load_master_brands
from icdc_parser.services.parser import InvoiceParser
from icdc_parser.services.text_extraction import TextExtractionService

router = APIRouter(prefix="/invoices", tags=["invoices"])
logger = logging.getLogger(__name__)


def _default_master_brands() -> List[MasterBrandRecord]:
    try:
        return load_master_brands(settings.MASTER_BRANDS_PATH)
    except CatalogLoadError as e:
        logger.error("Master brand catalog unavailable: %s", e)
        raise HTTPException(status_code=500, detail=str(e))


def _master_brands_from_form(raw: Optional[str]) -> List[MasterBrandRecord]:
    if not raw:
        return _default_master_brands()

    try:
        records = json.loads(raw)
        if not isinstance(records, list):
            raise ValueError("master_brands must be a JSON array")
        return [MasterBrandRecord.model_validate(record) for record in records]
    except (ValueError, ValidationError) as e:
        raise HTTPException(status_code=400, detail=f"Invalid master_brands: {e}")


@router.post("/parse", response_model=ParseResult)
async def parse_invoice_text(request: ParseRequest):
    """
    Parse already-extracted invoice text.

    Uses the master brands from the request body when given,
    otherwise the configured catalog file.
    """
    if request.master_brands is not None:
        master_brands = request.master_brands
    else:
        master_brands = _default_master_brands()

    return InvoiceParser().parse(request.text, master_brands)


@router.post("/upload", response_model=ParseResult)
async def upload_invoice(
    file: UploadFile = File(...),
    master_brands: Optional[str] = Form(None)
):
    """
    Upload an ICDC invoice PDF and parse it.

    Args:
        file: Invoice PDF
        master_brands: Optional JSON array of master brand records

    Returns:
        Parse result with validated items and financial summary
    """
    if file.content_type != "application/pdf":
        raise HTTPException(
            status_code=400,
            detail=f"Invalid file type: {file.content_type}. Allowed: PDF"
        )

    file_data = await file.read()
    file_size_mb = len(file_data) / (1024 * 1024)

    if file_size_mb > settings.MAX_UPLOAD_MB:
        raise HTTPException(
            status_code=400,
            detail=f"File too large: {file_size_mb:.2f}MB. Maximum: {settings.MAX_UPLOAD_MB}MB"
        )

    brands = _master_brands_from_form(master_brands)

    logger.debug("Extracting text from %s", file.filename)
    text = await run_in_threadpool(TextExtractionService().extract_text_from_pdf, file_data)

    if not text:
        raise HTTPException(status_code=400, detail="No text could be extracted from the PDF")

    result = await run_in_threadpool(InvoiceParser().parse, text, brands)

    logger.info("Parsed upload %s", file.filename, extra={
        "invoice_number": result.invoice_number,
        "success": result.success,
        "validated_items": result.summary.validated_items,
    })

    return result
