"""
Financial summary extraction for ICDC invoices.

The footer of an ICDC invoice carries six totals whose labels and values
get scrambled differently by each printer release. Five passes run in
order over the same lines; each only fills fields still at zero, so the
first pass to find a field owns it:

1. same-line     "TCS:15,162.00"
2. block         "Invoice" / "Value:" / "MRP" / ... then a run of bare amounts
3. split-line    "Retail Shop Excise Turnover Tax:" then "1,30,944.00"
4. interleaved   "Invoice" / "Value:" / "24,13,858.92" / "MRP" / ...
5. positional    every amount-shaped figure, reconciled by arithmetic
"""

import re
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional

from icdc_parser.models.invoice import FinancialSummary
from icdc_parser.utils.candidates import AmountCandidate
from icdc_parser.utils.money import (
    format_money,
    is_amount_line,
    is_plausible_amount,
    parse_amount,
    quantize_money,
)
from icdc_parser.utils.patterns import PatternSpec
from icdc_parser.utils.scoring import fallback_assignment, select_best_combination

logger = logging.getLogger(__name__)

FIELDS = [
    'invoice_value',
    'mrp_rounding_off',
    'net_invoice_value',
    'retail_excise_turnover_tax',
    'special_excise_cess',
    'tcs',
]

# Fields summed into total_amount
TOTAL_FIELDS = [
    'invoice_value',
    'mrp_rounding_off',
    'retail_excise_turnover_tax',
    'special_excise_cess',
    'tcs',
]

# Positional pass needs at least this many figures to reconcile
MIN_RECONCILE_AMOUNTS = 5

# The financial summary sits in the last 40% of the document
SUMMARY_SECTION_START = 0.6

# Retail Shop Excise Tax is printed in the header block
HEADER_LINES = 50

FIELD_LABELS = [
    PatternSpec(
        name='invoice_value',
        pattern=r'(?<!Net\s)Invoice\s+Value:',
        example='Invoice Value:13,09,438.00',
        flags=re.IGNORECASE,
    ),
    PatternSpec(
        name='mrp_rounding_off',
        pattern=r'MRP\s+Rounding\s+Off:',
        example='MRP Rounding Off:75,794.40',
        flags=re.IGNORECASE,
    ),
    PatternSpec(
        name='net_invoice_value',
        pattern=r'Net\s+Invoice\s+Value:',
        example='Net Invoice Value:13,85,232.40',
        flags=re.IGNORECASE,
    ),
    PatternSpec(
        name='retail_excise_turnover_tax',
        pattern=r'Retail.*?Excise.*?Turnover.*?Tax:',
        example='Retail Shop Excise Turnover Tax:1,30,944.00',
        flags=re.IGNORECASE,
    ),
    PatternSpec(
        name='special_excise_cess',
        pattern=r'Special\s+Excise\s+Cess:',
        example='Special Excise Cess:1,91,760.00',
        flags=re.IGNORECASE,
    ),
    PatternSpec(
        name='tcs',
        pattern=r'TCS:',
        example='TCS:15,162.00',
        flags=re.IGNORECASE,
    ),
]

SAME_LINE_AMOUNT_RE = re.compile(r'\s*([\d,]+\.?\d*)')
SPLIT_LINE_AMOUNT_RE = re.compile(r'^([\d,]+\.?\d*)$')
HAS_DIGITS_RE = re.compile(r'[\d,]')

RETAIL_SHOP_EXCISE_TAX = PatternSpec(
    name='retail_shop_excise_tax',
    pattern=r'Retail Shop Excise Tax:(\d+)',
    example='Retail Shop Excise Tax:4000',
)

# Lakh-grouped figures; the first pattern also covers ".00" round amounts
AMOUNT_PATTERNS = [
    PatternSpec(
        name='large_amount',
        pattern=r'((?:\d{1,2},)*\d{2,3},\d{3}\.\d{2})',
        example='24,13,858.92',
        notes='Invoice/net values and round taxes such as 2,41,386.00',
    ),
    PatternSpec(
        name='small_amount',
        pattern=r'(\d{1,2},\d{3}\.\d{2})',
        example='5,162.50',
        notes='TCS and other thousands-range charges',
    ),
]


@dataclass
class FinancialDraft:
    """Working values while the passes run. First writer wins per field."""
    values: Dict[str, Decimal] = field(default_factory=lambda: {name: Decimal("0") for name in FIELDS})
    sources: Dict[str, str] = field(default_factory=dict)

    def is_empty(self, name: str) -> bool:
        return self.values[name] == 0

    def offer(self, name: str, value: Optional[Decimal], source: str) -> bool:
        if value is None or not self.is_empty(name):
            return False
        self.values[name] = value
        self.sources[name] = source
        logger.debug("%s = %s (%s)", name, format_money(value), source)
        return True


def extract_same_line(lines: List[str], draft: FinancialDraft) -> None:
    """Method 1: label and amount on one line."""
    for line in lines:
        for spec in FIELD_LABELS:
            if not draft.is_empty(spec.name):
                continue
            label = spec.search(line)
            if not label:
                continue
            amount = SAME_LINE_AMOUNT_RE.match(line, label.end())
            if amount:
                draft.offer(spec.name, parse_amount(amount.group(1)), 'same_line')


def _find_fragmented_labels(lines: List[str]) -> Optional[int]:
    for i in range(len(lines) - 5):
        if 'Invoice' in lines[i] and 'Value:' in lines[i + 1] and (
            'MRP' in lines[i + 2] or 'Rounding' in lines[i + 2]
        ):
            return i
    return None


def extract_block(lines: List[str], draft: FinancialDraft) -> None:
    """
    Method 2: fragmented labels followed by a block of bare amounts.

    "Invoice" / "Value:" / "MRP" / "Rounding" / "Off:" / ... and, several
    lines later, "13,09,438.00" / "75,794.40" / "13,85,232.40" mapped in
    label order. Falls back to whole-line labels when no fragmented run
    exists.
    """
    start = _find_fragmented_labels(lines)
    if start is None:
        _extract_block_fallback(lines, draft)
        return

    amounts = []
    for line in lines[start + 6:start + 15]:
        if is_amount_line(line):
            amounts.append(parse_amount(line))
            if len(amounts) >= 3:
                break
        elif amounts:
            break

    if len(amounts) < 3:
        logger.debug("Block labels at line %d but only %d amount(s)", start, len(amounts))
        return

    draft.offer('invoice_value', amounts[0], 'block')
    draft.offer('mrp_rounding_off', amounts[1], 'block')
    draft.offer('net_invoice_value', amounts[2], 'block')


def _extract_block_fallback(lines: List[str], draft: FinancialDraft) -> None:
    """Whole-line labels without digits, then the first run of amounts."""
    block_labels = FIELD_LABELS[:3]
    positions: Dict[str, int] = {}

    for index, line in enumerate(lines):
        if HAS_DIGITS_RE.search(line):
            continue
        for spec in block_labels:
            if spec.name not in positions and spec.search(line):
                positions[spec.name] = index

    if not positions:
        return

    last_label = max(positions.values())
    amounts = []
    for line in lines[last_label + 1:last_label + 10]:
        if is_amount_line(line):
            amounts.append(parse_amount(line))
        elif amounts:
            break

    queue = iter(amounts)
    for spec in block_labels:
        if spec.name in positions and draft.is_empty(spec.name):
            value = next(queue, None)
            if value is None:
                break
            draft.offer(spec.name, value, 'block_fallback')


def extract_split_line(lines: List[str], draft: FinancialDraft) -> None:
    """Method 3: digit-free label line, amount alone on the next line."""
    for i in range(len(lines) - 1):
        line = lines[i]
        if HAS_DIGITS_RE.search(line):
            continue
        for spec in FIELD_LABELS:
            if not draft.is_empty(spec.name) or not spec.search(line):
                continue
            match = SPLIT_LINE_AMOUNT_RE.match(lines[i + 1])
            if match:
                draft.offer(spec.name, parse_amount(match.group(1)), 'split_line')


def extract_interleaved(lines: List[str], draft: FinancialDraft) -> None:
    """
    Method 4: label fragments and amounts alternating line by line.

    "Invoice" "Value:" "24,13,858.92" "MRP" "Rounding" "Off:" "1,52,598.60"
    "Net" "Invoice" "Value:" "25,66,457.52"
    """
    count = len(lines)

    for i in range(count - 2):
        if not draft.is_empty('invoice_value'):
            break
        if 'Invoice' in lines[i] and 'Value:' in lines[i + 1] and is_amount_line(lines[i + 2]):
            draft.offer('invoice_value', parse_amount(lines[i + 2]), 'interleaved')

    for i in range(count - 3):
        if not draft.is_empty('mrp_rounding_off'):
            break
        if not ('MRP' in lines[i] and 'Rounding' in lines[i + 1] and 'Off:' in lines[i + 2]):
            continue

        if is_amount_line(lines[i + 3]):
            draft.offer('mrp_rounding_off', parse_amount(lines[i + 3]), 'interleaved')
        elif 'Net' in lines[i + 3]:
            # Amount printed after the "Net Invoice Value:" label run
            for j in range(i + 4, min(i + 8, count)):
                if 'Value:' in lines[j] and j + 1 < count and is_amount_line(lines[j + 1]):
                    draft.offer('mrp_rounding_off', parse_amount(lines[j + 1]), 'interleaved')
                    break

    for i in range(count - 3):
        if not draft.is_empty('net_invoice_value'):
            break
        if not ('Net' in lines[i] and 'Invoice' in lines[i + 1] and 'Value:' in lines[i + 2]):
            continue

        # Second bare amount after the label run is the net value
        seen = 0
        for line in lines[i + 3:min(i + 8, count)]:
            if is_amount_line(line):
                seen += 1
                if seen == 2:
                    draft.offer('net_invoice_value', parse_amount(line), 'interleaved')
                    break

    if draft.is_empty('mrp_rounding_off'):
        for i in range(count - 1):
            if 'Off:' in lines[i] and is_amount_line(lines[i + 1]) and i + 2 < count and 'Net' in lines[i + 2]:
                draft.offer('mrp_rounding_off', parse_amount(lines[i + 1]), 'interleaved')
                break


def collect_amounts(lines: List[str]) -> List[AmountCandidate]:
    """
    Every amount-shaped figure in the document, in print order.

    A match overlapping one already taken on the same line is dropped,
    so "13,858.92" inside "24,13,858.92" is not counted twice.
    """
    amounts = []

    for index, line in enumerate(lines):
        taken: List[tuple[int, int]] = []
        for spec in AMOUNT_PATTERNS:
            for match in spec.finditer(line):
                start, end = match.span(1)
                if any(start < t_end and t_start < end for t_start, t_end in taken):
                    continue
                taken.append((start, end))

                raw = match.group(1)
                value = parse_amount(raw)
                if not is_plausible_amount(value):
                    logger.debug("Skipping oversized amount %r at line %d", raw, index)
                    continue

                amounts.append(AmountCandidate(
                    value=value,
                    line_index=index,
                    match_span=(start, end),
                    raw_text=raw,
                    pattern_name=spec.name,
                    is_round=raw.endswith('.00'),
                ))

    amounts.sort(key=lambda a: (a.line_index, a.match_span[0]))
    return amounts


def extract_positional(lines: List[str], draft: FinancialDraft) -> None:
    """Method 5: reconcile unlabelled amounts from the summary section."""
    amounts = collect_amounts(lines)
    if len(amounts) < MIN_RECONCILE_AMOUNTS:
        logger.debug("Only %d amount(s) found, skipping reconciliation", len(amounts))
        return

    summary_start = int(len(lines) * SUMMARY_SECTION_START)
    summary_amounts = [a for a in amounts if a.line_index >= summary_start]
    pool = summary_amounts if len(summary_amounts) >= MIN_RECONCILE_AMOUNTS else amounts

    combo = select_best_combination(pool)
    if combo:
        for name in FIELDS:
            candidate = getattr(combo, name)
            if candidate:
                draft.offer(name, candidate.value, 'reconciled')
        return

    for name, candidate in fallback_assignment(pool).items():
        draft.offer(name, candidate.value, 'shape_fallback')


def extract_retail_shop_excise_tax(lines: List[str]) -> Optional[Decimal]:
    for line in lines[:HEADER_LINES]:
        if 'Retail Shop Excise Tax:' in line:
            match = RETAIL_SHOP_EXCISE_TAX.search(line)
            return parse_amount(match.group(1)) if match else None
    return None


EXTRACTION_METHODS = [
    extract_same_line,
    extract_block,
    extract_split_line,
    extract_interleaved,
    extract_positional,
]


def extract_financials(lines: List[str], _debug: Optional[Dict] = None) -> FinancialSummary:
    """
    Recover the financial summary from normalized invoice lines.

    Args:
        lines: Trimmed, non-empty invoice lines
        _debug: Optional dict receiving the method that set each field

    Returns:
        FinancialSummary; fields nothing could recover are 0.00
    """
    draft = FinancialDraft()

    for method in EXTRACTION_METHODS:
        method(lines, draft)

    values = {name: quantize_money(value) for name, value in draft.values.items()}
    total = sum((values[name] for name in TOTAL_FIELDS), Decimal("0.00"))

    missing = [name for name in FIELDS if draft.is_empty(name)]
    if missing:
        logger.info("Financial fields not recovered: %s", ', '.join(missing))

    if _debug is not None:
        _debug['financial_sources'] = dict(draft.sources)

    return FinancialSummary(
        **values,
        retail_shop_excise_tax=quantize_money(extract_retail_shop_excise_tax(lines)),
        total_amount=quantize_money(total),
    )
