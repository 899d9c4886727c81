"""
Invoice header fields: ICDC number and invoice date.
"""

import re
import logging
from datetime import datetime
from typing import Optional

from icdc_parser.utils.patterns import PatternSpec

logger = logging.getLogger(__name__)

INVOICE_NUMBER_PATTERNS = [
    PatternSpec(
        name='icdc_number_label',
        pattern=r'ICDC\s*Number[:\s]*([A-Z0-9]+)',
        example='ICDC Number: ICDC050625012345',
        flags=re.IGNORECASE,
    ),
    PatternSpec(
        name='icdc_digits',
        pattern=r'ICDC([0-9]{12,18})(?!\d)',
        example='ICDC050625012345',
        flags=re.IGNORECASE,
    ),
]

DATE_PATTERNS = [
    PatternSpec(
        name='invoice_date_label',
        pattern=r'Invoice\s*Date[:\s]*(\d{1,2}[-/][A-Za-z]{3}[-/]\d{4})',
        example='Invoice Date: 06-Jun-2025',
        flags=re.IGNORECASE,
    ),
    PatternSpec(
        name='day_month_year',
        pattern=r'(\d{1,2}[-/][A-Za-z]{3}[-/]\d{4})',
        example='06-Jun-2025',
    ),
]

DATE_FORMATS = ['%d-%b-%Y', '%d/%b/%Y']


def extract_invoice_number(text: str) -> Optional[str]:
    for spec in INVOICE_NUMBER_PATTERNS:
        match = spec.search(text)
        if match:
            return match.group(1)
    return None


def extract_invoice_date(text: str) -> Optional[str]:
    """
    Find the invoice date and return it as YYYY-MM-DD.

    Falls back to the raw token when the month abbreviation is not
    recognised.
    """
    for spec in DATE_PATTERNS:
        match = spec.search(text)
        if match:
            return _to_iso_date(match.group(1))
    return None


def _to_iso_date(date_str: str) -> str:
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(date_str, fmt).date().isoformat()
        except ValueError:
            continue
    logger.debug("Unrecognised date format: %r", date_str)
    return date_str
