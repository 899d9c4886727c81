"""
Shared money parsing utilities for Indian-format invoice amounts.

Handles the number shapes printed on ICDC invoices:
- Lakh grouping: 24,13,858.92
- Western grouping: 2,413,858.92
- Missing decimals: 15162 → 15162.00
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional
import re

# Amounts at or above this are never invoice totals (stray concatenated digits)
MAX_PLAUSIBLE_AMOUNT = Decimal("100000000")

TWO_PLACES = Decimal("0.01")

AMOUNT_LINE_RE = re.compile(r'^[\d,]+\.?\d{0,2}$')


def parse_amount(amount_str: str) -> Optional[Decimal]:
    """
    Parse an invoice amount string into a Decimal.

    Args:
        amount_str: String containing amount (e.g., "24,13,858.92", "Rs. 15,162.00")

    Returns:
        Decimal amount or None if parsing fails

    Examples:
        >>> parse_amount("24,13,858.92")
        Decimal('2413858.92')
        >>> parse_amount("15162")
        Decimal('15162')
    """
    if not amount_str or not isinstance(amount_str, str):
        return None

    cleaned = amount_str.strip()

    # Strip rupee markers
    cleaned = re.sub(r'^(?:rs\.?|inr|₹)\s*', '', cleaned, flags=re.IGNORECASE)

    # Grouping commas carry no information in either locale
    cleaned = cleaned.replace(',', '').replace(' ', '')

    if not cleaned:
        return None

    try:
        return Decimal(cleaned)
    except (InvalidOperation, ValueError):
        return None


def is_amount_line(line: str) -> bool:
    """True when the whole line is a bare amount such as "13,09,438.00"."""
    return bool(AMOUNT_LINE_RE.match(line))


def is_plausible_amount(amount: Optional[Decimal]) -> bool:
    """Reject missing values and oversized matches that would overflow storage."""
    return amount is not None and amount < MAX_PLAUSIBLE_AMOUNT


def quantize_money(amount: Optional[Decimal]) -> Decimal:
    """Round to paise. Missing amounts become 0.00."""
    if amount is None:
        return Decimal("0.00")
    return amount.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def format_money(amount: Decimal) -> str:
    """
    Format Decimal amount with Indian lakh/crore grouping.

    Examples:
        >>> format_money(Decimal('2413858.92'))
        '24,13,858.92'
        >>> format_money(Decimal('999'))
        '999.00'
    """
    if amount is None:
        return 'N/A'

    sign = '-' if amount < 0 else ''
    whole, fraction = f"{abs(quantize_money(amount)):.2f}".split('.')

    if len(whole) > 3:
        head, tail = whole[:-3], whole[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        whole = ','.join(groups + [tail])

    return f"{sign}{whole}.{fraction}"
