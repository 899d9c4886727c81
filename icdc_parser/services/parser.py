"""
Invoice parser service: turns ICDC invoice text into validated line items
and a reconciled financial summary.
"""

import logging
from collections import Counter
from typing import Any, Dict, List

from icdc_parser.models.invoice import MasterBrandRecord, ParseResult, ParseSummary
from icdc_parser.services.catalog import CatalogMatcher
from icdc_parser.services.detectors import extract_candidates, normalize_lines
from icdc_parser.services.financials import extract_financials
from icdc_parser.services.header import extract_invoice_date, extract_invoice_number

logger = logging.getLogger(__name__)


class InvoiceParser:
    """Service for parsing ICDC invoice text against the master brand catalog."""

    METHOD = 'multi_format_parser'

    # The heuristics do not self-calibrate; every successful parse reports this
    SUCCESS_CONFIDENCE = 0.95

    def parse(self, text: str, master_brands: List[MasterBrandRecord]) -> ParseResult:
        """
        Parse invoice text and validate its products against the catalog.

        Never raises: unexpected errors come back as success=False.

        Args:
            text: Raw text extracted from the invoice PDF
            master_brands: Current master brand catalog (read-only)

        Returns:
            ParseResult. success=False only when no product line was found
            at all or processing failed; unmatched products are warnings.
        """
        try:
            return self._parse(text, master_brands)
        except Exception as e:
            logger.exception("Invoice parsing failed")
            return ParseResult(success=False, error=str(e) or type(e).__name__, confidence=0.0)

    def _parse(self, text: str, master_brands: List[MasterBrandRecord]) -> ParseResult:
        debug: Dict[str, Any] = {}

        lines = normalize_lines(text)
        logger.debug("Normalized %d line(s), %d master brand(s)", len(lines), len(master_brands))

        invoice_number = extract_invoice_number(text)
        invoice_date = extract_invoice_date(text)
        financials = extract_financials(lines, _debug=debug)

        products = extract_candidates(lines)
        debug['detectors'] = dict(Counter(p.detector for p in products))

        if not products:
            logger.info("No products found in invoice %s", invoice_number or '(unnumbered)')
            return ParseResult(
                success=False,
                error='No products found in invoice',
                confidence=0.0,
                invoice_number=invoice_number,
                invoice_date=invoice_date,
                financials=financials,
                debug=debug,
            )

        validated, skipped, warnings = CatalogMatcher(master_brands).match(products)

        match_rate = len(validated) / max(len(products), 1)
        summary = ParseSummary(
            total_items_parsed=len(products),
            validated_items=len(validated),
            skipped_items=len(skipped),
            total_quantity=sum(item.total_quantity for item in validated),
            match_rate=match_rate,
        )

        logger.info(
            "Parsed invoice %s: %d product(s), %d validated, %d skipped (%.1f%% match)",
            invoice_number or '(unnumbered)', len(products), len(validated), len(skipped), match_rate * 100
        )

        return ParseResult(
            success=True,
            confidence=self.SUCCESS_CONFIDENCE,
            method=self.METHOD,
            invoice_number=invoice_number,
            invoice_date=invoice_date,
            financials=financials,
            items=validated,
            skipped_items=skipped,
            summary=summary,
            warnings=warnings,
            debug=debug,
        )
