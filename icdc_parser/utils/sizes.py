"""
Bottle size helpers: normalization and two-letter size codes.
"""

from typing import Optional

SIZE_CODES = {
    '60ml': 'OO',
    '90ml': 'DD',
    '180ml': 'NN',
    '275ml': 'GP',
    '330ml': 'UP',
    '375ml': 'PP',
    '500ml': 'AP',
    '650ml': 'BS',
    '750ml': 'QQ',
    '1000ml': 'LL',
    '2000ml': 'XG',
}

UNKNOWN_SIZE_CODE = 'XX'


def normalize_size(size: Optional[str]) -> str:
    """"650 ML" → "650ml"."""
    if not size:
        return ''
    return ''.join(size.split()).lower()


def size_to_ml(size: Optional[str]) -> Optional[int]:
    """"650ml" → 650, or None when the size is not numeric."""
    digits = normalize_size(size).replace('ml', '')
    return int(digits) if digits.isdigit() else None


def map_size_to_code(size: str) -> str:
    return SIZE_CODES.get(normalize_size(size), UNKNOWN_SIZE_CODE)


def format_size(size_code: str, size_ml: int) -> str:
    """Display form used on stock sheets, e.g. "BS(650)"."""
    return f"{size_code}({size_ml})"
