"""
Format detectors for ICDC product lines.

Invoice printers lay the same product table out in several shapes. Each
detector recognises one shape and returns the products it finds:

- table:      "1 5016 (12) KING FISHER PREMIUM LAGER BEER Beer G 12 / 650 ml 100 0"
- compact:    "15016KING FISHER PREMIUM LAGER BEERBeerG12 / 650 ml1000"
- vertical:   "15016 (12)" header, name lines, then "BeerG12 / 650 ml1000"
- standalone: "15016" header, name lines, then "BeerG12 / 650 ml1000"

Detectors run in that fixed order. A (brand number, size) key claimed by
an earlier detector is never re-read by a later one, so the order is the
conflict-resolution priority.
"""

import re
import logging
from typing import Callable, List, Optional, Set, Tuple

from icdc_parser.utils.candidates import (
    CandidateProduct,
    create_candidate_product,
    dedup_key,
)
from icdc_parser.utils.patterns import PatternSpec
from icdc_parser.utils.quantity import split_cases_bottles

logger = logging.getLogger(__name__)

# Lines inspected after a vertical/standalone header (header included)
LOOKAHEAD_LINES = 10

_PRODUCT_TYPE = r'(?P<product_type>Beer|IML|Duty\s*Paid)'

TABLE_PATTERNS = [
    PatternSpec(
        name='table_with_pack',
        pattern=(
            r'^(?P<serial>\d{1,2})\s+(?P<brand>\d{4})\s*\((?P<header_qty>\d+)\)\s+(?P<name>.+?)\s+'
            + _PRODUCT_TYPE +
            r'\s+(?P<pack_type>[GCP])\s+(?P<pack_qty>\d+)\s*/\s*(?P<size>\d+)\s*ml\s+(?P<cases>\d+)\s+(?P<bottles>\d+)'
        ),
        example='1 5016 (12) KING FISHER PREMIUM LAGER BEER Beer G 12 / 650 ml 100 0',
        notes='Bracketed pack quantity after the brand number',
    ),
    PatternSpec(
        name='table_plain',
        pattern=(
            r'^(?P<serial>\d{1,2})\s+(?P<brand>\d{4})\s+(?P<name>.+?)\s+'
            + _PRODUCT_TYPE +
            r'\s+(?P<pack_type>[GCP])\s+(?P<pack_qty>\d+)\s*/\s*(?P<size>\d+)\s*ml\s+(?P<cases>\d+)\s+(?P<bottles>\d+)'
        ),
        example='1 5016 KING FISHER PREMIUM LAGER BEER Beer G 12 / 650 ml 100 0',
    ),
]

COMPACT_PATTERN = PatternSpec(
    name='compact',
    pattern=(
        r'^(?P<serial>\d{1,2})(?P<brand>\d{4})(?P<name>.+?)'
        + _PRODUCT_TYPE +
        r'(?P<pack_type>[GCP])(?P<pack_qty>\d+)\s*/\s*(?P<size>\d+)\s*ml(?P<quantity>\d+)$'
    ),
    example='15016KING FISHER PREMIUM LAGER BEERBeerG12 / 650 ml1000',
    notes='Trailing numeral is cases and bottles run together',
)

VERTICAL_HEADER = PatternSpec(
    name='vertical_header',
    pattern=r'^(?P<serial>\d{1,2})(?P<brand>\d{4})\s*\((?P<pack_qty>\d+)\)$',
    example='15016 (12)',
)

STANDALONE_HEADER = PatternSpec(
    name='standalone_header',
    pattern=r'^(?P<serial>\d{1,2})(?P<brand>\d{4})$',
    example='170258',
)

DETAIL_PATTERNS = [
    PatternSpec(
        name='detail_concatenated',
        pattern=(
            _PRODUCT_TYPE +
            r'(?P<pack_type>[GCP])(?P<pack_qty>\d+)\s*/\s*(?P<size>\d+)\s*ml(?P<quantity>\d+)$'
        ),
        example='BeerG12 / 650 ml6800',
    ),
    PatternSpec(
        name='detail_spaced',
        pattern=(
            _PRODUCT_TYPE +
            r'\s*(?P<pack_type>[GCP])\s*(?P<pack_qty>\d+)\s*/\s*(?P<size>\d+)\s*ml\s*(?P<cases>\d+)\s*(?P<bottles>\d+)?'
        ),
        example='Beer G 12 / 650 ml 680 0',
    ),
]

NEXT_HEADER_RE = re.compile(r'^\d{1,2}\d{4}')
SECTION_END_RE = re.compile(r'TIN\s*NO:|Particulars|Invoice\s*Qty', re.IGNORECASE)
NAME_LINE_RE = re.compile(r"^[A-Z\s`'&.-]+$")
NAME_TYPE_PREFIX_RE = re.compile(r'^(Beer|IML|Duty)', re.IGNORECASE)
NAME_NOISE_RE = re.compile(r'(Rs\.|Rate|Case|Total)', re.IGNORECASE)

Detector = Callable[[List[str], Set[str]], List[CandidateProduct]]


def normalize_lines(text: str) -> List[str]:
    """Split raw text into trimmed, non-empty lines. Position = list index."""
    if not text:
        return []
    return [line.strip() for line in text.split('\n') if line.strip()]


def detect_table(lines: List[str], claimed: Set[str]) -> List[CandidateProduct]:
    """Fully spaced single-line rows. Rows with zero cases are ignored."""
    seen = set(claimed)
    found = []

    for line in lines:
        for spec in TABLE_PATTERNS:
            match = spec.match(line)
            if not match:
                continue

            key = dedup_key(match['brand'], f"{match['size']}ml")
            cases = int(match['cases'])
            if key in seen or cases <= 0:
                continue

            pack_qty = int(match.groupdict().get('header_qty') or match['pack_qty'])
            product = create_candidate_product(
                serial=match['serial'],
                brand_number=match['brand'],
                description=match['name'],
                size_ml=match['size'],
                cases=cases,
                bottles=int(match['bottles']),
                pack_qty=pack_qty,
                product_type=match['product_type'],
                pack_type=match['pack_type'],
                detector='table',
            )
            found.append(product)
            seen.add(key)
            logger.debug("Table: %s %s - qty %d", product.brand_number, product.size, product.total_quantity)
            break

    return found


def detect_compact(lines: List[str], claimed: Set[str]) -> List[CandidateProduct]:
    """Whitespace-free rows whose trailing numeral needs a cases/bottles split."""
    seen = set(claimed)
    found = []

    for line in lines:
        match = COMPACT_PATTERN.match(line)
        if not match:
            continue

        pack_qty = int(match['pack_qty'])
        cases, bottles = split_cases_bottles(match['quantity'], pack_qty)

        key = dedup_key(match['brand'], f"{match['size']}ml")
        if key in seen or cases <= 0:
            continue

        product = create_candidate_product(
            serial=match['serial'],
            brand_number=match['brand'],
            description=match['name'],
            size_ml=match['size'],
            cases=cases,
            bottles=bottles,
            pack_qty=pack_qty,
            product_type=match['product_type'],
            pack_type=match['pack_type'],
            detector='compact',
        )
        found.append(product)
        seen.add(key)
        logger.debug(
            "Compact: %s %s - %r -> %dc %db, total %d",
            product.brand_number, product.size, match['quantity'], cases, bottles, product.total_quantity
        )

    return found


def _is_name_line(line: str) -> bool:
    return (
        bool(NAME_LINE_RE.match(line))
        and len(line) > 2
        and not NAME_TYPE_PREFIX_RE.match(line)
        and not line[0].isdigit()
        and not NAME_NOISE_RE.search(line)
    )


def _read_detail(line: str, pack_qty: Optional[int]) -> Optional[dict]:
    """
    Parse a type/pack/size/quantity detail line.

    pack_qty comes from the block header when it has one; otherwise the
    detail line's own pack quantity is used.
    """
    for spec in DETAIL_PATTERNS:
        match = spec.search(line)
        if not match:
            continue

        qty = pack_qty or int(match['pack_qty'])
        if spec.name == 'detail_concatenated':
            cases, bottles = split_cases_bottles(match['quantity'], qty)
        else:
            cases = int(match['cases'])
            bottles = int(match['bottles'] or 0)

        return {
            'product_type': match['product_type'],
            'pack_type': match['pack_type'],
            'pack_qty': qty,
            'size': match['size'],
            'cases': cases,
            'bottles': bottles,
        }
    return None


def _scan_block(lines: List[str], start: int, pack_qty: Optional[int]) -> Tuple[str, Optional[dict]]:
    """
    Collect the product name and detail that follow a header line.

    Stops at the next header, at a section marker or once a detail
    line has been read.
    """
    name_parts = []
    end = min(start + LOOKAHEAD_LINES, len(lines))

    for line in lines[start + 1:end]:
        if NEXT_HEADER_RE.match(line) or SECTION_END_RE.search(line):
            break

        if _is_name_line(line):
            name_parts.append(line)

        detail = _read_detail(line, pack_qty)
        if detail:
            return ' '.join(name_parts), detail

    return ' '.join(name_parts), None


def _detect_blocks(
    lines: List[str],
    claimed: Set[str],
    header: PatternSpec,
    detector: str
) -> List[CandidateProduct]:
    seen = set(claimed)
    found = []

    for index, line in enumerate(lines):
        match = header.match(line)
        if not match:
            continue

        header_qty = match.groupdict().get('pack_qty')
        name, detail = _scan_block(lines, index, int(header_qty) if header_qty else None)
        if not detail:
            continue

        key = dedup_key(match['brand'], f"{detail['size']}ml")
        if key in seen or detail['cases'] <= 0:
            continue

        product = create_candidate_product(
            serial=match['serial'],
            brand_number=match['brand'],
            description=name,
            size_ml=detail['size'],
            cases=detail['cases'],
            bottles=detail['bottles'],
            pack_qty=detail['pack_qty'],
            product_type=detail['product_type'],
            pack_type=detail['pack_type'],
            detector=detector,
        )
        found.append(product)
        seen.add(key)
        logger.debug(
            "%s: %s %s - %r - qty %d",
            detector.title(), product.brand_number, product.size, product.description, product.total_quantity
        )

    return found


def detect_vertical(lines: List[str], claimed: Set[str]) -> List[CandidateProduct]:
    """Multi-line blocks headed by "<serial><brand> (<packQty>)"."""
    return _detect_blocks(lines, claimed, VERTICAL_HEADER, 'vertical')


def detect_standalone(lines: List[str], claimed: Set[str]) -> List[CandidateProduct]:
    """Multi-line blocks headed by a bare "<serial><brand>"; pack quantity from the detail line."""
    return _detect_blocks(lines, claimed, STANDALONE_HEADER, 'standalone')


# Priority order; must run sequentially
DETECTORS: List[Tuple[str, Detector]] = [
    ('table', detect_table),
    ('compact', detect_compact),
    ('vertical', detect_vertical),
    ('standalone', detect_standalone),
]


def extract_candidates(lines: List[str]) -> List[CandidateProduct]:
    """
    Run every detector in priority order and return products in invoice order.

    The claimed-key set lives only for this call.
    """
    claimed: Set[str] = set()
    products: List[CandidateProduct] = []

    for name, detector in DETECTORS:
        found = detector(lines, claimed)
        for product in found:
            claimed.add(product.dedup_key)
        products.extend(found)
        logger.debug("Detector %s found %d product(s)", name, len(found))

    products.sort(key=lambda p: p.sort_key)
    return products
